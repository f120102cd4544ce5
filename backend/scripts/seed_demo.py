# backend/scripts/seed_demo.py
from __future__ import annotations

import argparse
import secrets
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sqlalchemy import create_engine, delete, select
from sqlalchemy.orm import sessionmaker

# Permet de lancer le script depuis backend/ sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from gleba.core.security import hash_token
from gleba.core.settings import settings
from gleba.models import (
    Aliment,
    ConsommationAliment,
    Culture,
    Espece,
    Famille,
    Itp,
    Lot,
    Planche,
    Rotation,
    RotationDetail,
    User,
    UserSession,
    UserStockAliment,
    Variete,
)
from gleba.models.user import ROLE_ADMIN

"""
Script CLI: seed_demo

Rôle (fonctionnel) :
- Charge le référentiel (familles, espèces, variétés, ITPs, rotations, aliments).
- Crée un utilisateur de démo avec ses planches (2 îlots), ses lots et un stock d’aliments.
- Ouvre une session et affiche le token à utiliser (Authorization: Bearer <token>).

Notes :
- Idempotent pour le référentiel (merge par id).
- --reset supprime d’abord les données de l’utilisateur de démo.
"""

DEMO_EMAIL = "demo@gleba.local"

# (id, couleur)
FAMILLES = [
    ("Solanacées", "#E53935"),
    ("Cucurbitacées", "#FB8C00"),
    ("Fabacées", "#43A047"),
    ("Astéracées", "#8E24AA"),
    ("Brassicacées", "#1E88E5"),
]

# (id, famille, rendement kg/m², besoin_n, besoin_eau, prix_kg, densite, couleur)
ESPECES = [
    ("Tomate", "Solanacées", 6.0, 4, 4, 3.5, 2.5, "#E53935"),
    ("Courgette", "Cucurbitacées", 5.0, 4, 4, 2.5, 1.0, "#FB8C00"),
    ("Haricot", "Fabacées", 1.5, 1, 3, 6.0, 20.0, "#43A047"),
    ("Laitue", "Astéracées", 3.0, 2, 3, 4.0, 12.0, "#7CB342"),
    ("Chou", "Brassicacées", 3.5, 4, 3, 2.0, 3.0, "#1E88E5"),
]

# (id, espece, nb_graines_g, stock_graines g, stock_plants)
VARIETES = [
    ("Cœur de bœuf", "Tomate", 300, 2, 0),
    ("Black Beauty", "Courgette", 8, 10, 0),
    ("Contender", "Haricot", 4, 250, 0),
]

# (id, espece, semis, plantation, recolte, duree_culture, nb_rangs, espacement, espacement_rangs)
ITPS = [
    ("Tomate standard", "Tomate", 10, 18, 30, 120, 2, 50, 60),
    ("Courgette plein champ", "Courgette", 15, 20, 27, 90, 1, 80, 100),
    ("Haricot semis direct", "Haricot", 20, None, 30, 80, 3, 10, 40),
    ("Laitue printemps", "Laitue", 8, 14, 20, 60, 3, 25, 30),
    ("Chou automne", "Chou", 22, 28, 44, 120, 2, 45, 50),
]

# (id, nb_annees, [(annee, itp)])
ROTATIONS = [
    ("Légumes fruits", 3, [(1, "Tomate standard"), (2, "Haricot semis direct"), (3, "Courgette plein champ")]),
    ("Légumes feuilles", 2, [(1, "Laitue printemps"), (1, "Chou automne"), (2, "Haricot semis direct")]),
]

# (id, nom, type, especes_cibles, proteines, prix)
ALIMENTS = [
    ("ble", "Blé", "cereale", "poules", 11.0, 0.32),
    ("mais", "Maïs concassé", "cereale", "poules,canards", 9.0, 0.35),
    ("granules-pondeuses", "Granulés pondeuses", "complet", "poules", 16.5, 0.55),
]


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def seed_referentiel(db) -> None:
    for fid, couleur in FAMILLES:
        db.merge(Famille(id=fid, couleur=couleur))

    for eid, famille, rendement, besoin_n, besoin_eau, prix_kg, densite, couleur in ESPECES:
        db.merge(
            Espece(
                id=eid,
                famille_id=famille,
                rendement=rendement,
                besoin_n=besoin_n,
                besoin_eau=besoin_eau,
                prix_kg=prix_kg,
                densite=densite,
                vivace=False,
                a_planifier=True,
                couleur=couleur,
            )
        )

    for vid, espece, nb_graines_g, stock_graines, stock_plants in VARIETES:
        db.merge(
            Variete(
                id=vid,
                espece_id=espece,
                nb_graines_g=nb_graines_g,
                stock_graines=stock_graines,
                stock_plants=stock_plants,
            )
        )

    for iid, espece, semis, plantation, recolte, duree, nb_rangs, esp, esp_rangs in ITPS:
        db.merge(
            Itp(
                id=iid,
                espece_id=espece,
                semaine_semis=semis,
                semaine_plantation=plantation,
                semaine_recolte=recolte,
                duree_culture=duree,
                nb_rangs=nb_rangs,
                espacement=esp,
                espacement_rangs=esp_rangs,
            )
        )
    db.flush()

    for rid, nb_annees, details in ROTATIONS:
        rotation = db.get(Rotation, rid)
        if rotation is None:
            rotation = Rotation(id=rid, active=True, nb_annees=nb_annees)
            rotation.details = [RotationDetail(annee=a, itp_id=itp) for a, itp in details]
            db.add(rotation)

    for aid, nom, type_, cibles, proteines, prix in ALIMENTS:
        db.merge(Aliment(id=aid, nom=nom, type=type_, especes_cibles=cibles, proteines=proteines, prix=prix))

    db.flush()


def reset_user(db, user: User) -> None:
    # ordre inverse des FK
    db.execute(delete(ConsommationAliment).where(ConsommationAliment.user_id == user.id))
    db.execute(delete(UserStockAliment).where(UserStockAliment.user_id == user.id))
    db.execute(delete(Lot).where(Lot.user_id == user.id))
    db.execute(delete(Culture).where(Culture.user_id == user.id))
    db.execute(delete(Planche).where(Planche.user_id == user.id))
    db.execute(delete(UserSession).where(UserSession.user_id == user.id))
    db.flush()


def seed_user(db, annee: int) -> User:
    user = db.execute(select(User).where(User.email == DEMO_EMAIL)).scalars().first()
    if user is None:
        user = User(email=DEMO_EMAIL, name="Démo", role=ROLE_ADMIN)
        db.add(user)
        db.flush()

    # Îlot A : légumes fruits (3 planches voisines), îlot B : légumes feuilles
    planches = [
        ("A1", "A", "Légumes fruits", "A2"),
        ("A2", "A", "Légumes fruits", "A1,A3"),
        ("A3", "A", "Légumes fruits", "A2"),
        ("B1", "B", "Légumes feuilles", "B2"),
        ("B2", "B", "Légumes feuilles", "B1"),
    ]
    for i, (pid, ilot, rotation, voisines) in enumerate(planches):
        if db.get(Planche, pid) is not None:
            continue
        db.add(
            Planche(
                id=pid,
                user_id=user.id,
                ilot=ilot,
                rotation_id=rotation,
                # planches décalées d’un an dans le cycle
                rotation_debut=annee - i,
                longueur=10,
                largeur=0.8,
                surface=8,
                planches_influencees=voisines,
            )
        )

    if db.execute(select(Lot.id).where(Lot.user_id == user.id)).first() is None:
        db.add(Lot(user_id=user.id, nom="Poules pondeuses", espece="poule", effectif=12))
        db.add(Lot(user_id=user.id, nom="Canards", espece="canard", effectif=5))

    for aid, *_ in ALIMENTS:
        exists = db.execute(
            select(UserStockAliment.id).where(
                UserStockAliment.user_id == user.id, UserStockAliment.aliment_id == aid
            )
        ).first()
        if exists is None:
            db.add(UserStockAliment(user_id=user.id, aliment_id=aid, stock=50, date_stock=now_utc()))

    db.flush()
    return user


def open_session(db, user: User) -> str:
    token = secrets.token_urlsafe(32)
    db.add(
        UserSession(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=now_utc() + timedelta(hours=settings.SESSION_TTL_HOURS),
        )
    )
    return token


def seed(reset: bool, annee: int) -> None:
    engine = create_engine(settings.DATABASE_URL_SYNC, future=True)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    with SessionLocal() as db:
        seed_referentiel(db)

        if reset:
            existing = db.execute(select(User).where(User.email == DEMO_EMAIL)).scalars().first()
            if existing is not None:
                reset_user(db, existing)
                print("✅ Reset done (demo user data deleted).")

        user = seed_user(db, annee)
        token = open_session(db, user)
        db.commit()

        print("✅ Seed terminé.")
        print(f"   - Utilisateur: {user.email} ({user.id})")
        print(f"   - Espèces: {len(ESPECES)}, ITPs: {len(ITPS)}, rotations: {len(ROTATIONS)}")
        print(f"   - Token de session: {token}")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="Supprime les données de l'utilisateur démo avant de reseed")
    parser.add_argument("--annee", type=int, default=now_utc().year, help="Année de démarrage des rotations")
    args = parser.parse_args()

    seed(reset=args.reset, annee=args.annee)


if __name__ == "__main__":
    main()
