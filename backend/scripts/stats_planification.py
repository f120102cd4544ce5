import sys
import asyncio
import argparse
from datetime import date
from pathlib import Path

# Windows: compat event loop (évite certains soucis avec drivers async PostgreSQL)
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Permet de lancer le script depuis backend/ sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import select

from gleba.db.session import AsyncSessionLocal
from gleba.models.user import User
from gleba.services.planification_service import get_stats_planification

"""
Script CLI: stats_planification

Rôle (fonctionnel) :
- Retrouve un utilisateur par email.
- Calcule ses statistiques de planification pour une année (mêmes calculs que l’API).
- Affiche le résumé (cultures prévues / existantes / à créer, surface, récoltes, espèces).

Usage typique :
- Vérifier qu’une rotation produit bien les cultures attendues, sans passer par l’API.
"""


async def main(email: str, annee: int) -> int:
    async with AsyncSessionLocal() as db:
        user = (await db.execute(select(User).where(User.email == email))).scalars().first()
        if not user:
            print(f"Utilisateur introuvable : {email}")
            return 1

        stats = await get_stats_planification(db, user.id, annee)

        print("Utilisateur:", user.email, f"({user.id})")
        print("Année:", annee)
        print("Cultures prévues:", stats.total_cultures)
        print("  - existantes:", stats.cultures_existantes)
        print("  - à créer:", stats.cultures_a_creer)
        print("Surface totale (m²):", stats.surface_totale)
        print("Récoltes totales (kg):", stats.recoltes_totales)
        print("Espèces:", stats.nb_especes)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", default="demo@gleba.local", help="Email de l'utilisateur")
    parser.add_argument("--annee", type=int, default=date.today().year, help="Année planifiée")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.email, args.annee)))
