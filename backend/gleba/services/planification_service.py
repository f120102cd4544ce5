from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gleba.core.settings import settings
from gleba.models.culture import Culture
from gleba.models.espece import Espece, Variete
from gleba.models.itp import Itp
from gleba.models.planche import Planche
from gleba.models.rotation import Rotation, RotationDetail
from gleba.schemas.planification import (
    AssociationCulture,
    BesoinPlant,
    BesoinSemence,
    CultureACreer,
    CultureCreee,
    CulturePrevue,
    CultureVoisine,
    EspeceRecolte,
    PlancheBesoin,
    RecoltePrevue,
    StatsPlanification,
    round2,
)

"""
Planification Service.

Rôle (fonctionnel) :
- Déduit les cultures prévues d’une année à partir des rotations assignées aux planches.
- En dérive, sans rien persister :
  - les récoltes prévues par mois / semaine (surface × rendement de l’espèce),
  - les besoins en semences (graines + marge de pertes) et en plants (plants + marge),
  - les associations entre planches voisines,
  - les statistiques annuelles (getStatsPlanification).
- Crée en lot les cultures prévues retenues par l’utilisateur.

Organisation :
- Helpers purs (calculs, regroupements) : testables sans base.
- Fonctions async : requêtes scoping user_id, puis appel des helpers.

Notes :
- Lecture seule, sauf creer_cultures_batch.
- Une erreur d’accès aux données remonte telle quelle ; la couche API la convertit en 500.
"""

log = logging.getLogger("gleba.planification")

MOIS_NOMS = [
    "Janvier", "Fevrier", "Mars", "Avril", "Mai", "Juin",
    "Juillet", "Aout", "Septembre", "Octobre", "Novembre", "Decembre",
]

GROUP_BY_MOIS = "mois"
GROUP_BY_SEMAINE = "semaine"


# -----------------------------
# Helpers purs
# -----------------------------
def annee_cycle(annee: int, annee_debut: int, nb_annees: int) -> int:
    """Année (1-indexée) du cycle de rotation correspondant à `annee`."""
    if nb_annees <= 0:
        return 1
    return (annee - annee_debut) % nb_annees + 1


def calculer_nb_plants(
    longueur: Optional[float],
    nb_rangs: Optional[int],
    espacement: Optional[float],
) -> int:
    """Plants sur une planche : longueur en m, espacement dans le rang en cm."""
    if not longueur or not nb_rangs or not espacement:
        return 0
    plants_par_rang = math.floor(longueur * 100 / espacement)
    return plants_par_rang * nb_rangs


def semaine_vers_mois(semaine: int) -> int:
    """Mois 1..12 d’une semaine 1..52 (4,33 semaines par mois)."""
    return min(12, max(1, math.ceil(semaine / 4.33)))


def date_semaine(annee: int, semaine: Optional[int]) -> Optional[date]:
    """Premier jour de la semaine `semaine`, comptée depuis le 1er janvier."""
    if not semaine:
        return None
    return date(annee, 1, 1) + timedelta(days=(semaine - 1) * 7)


def parse_voisines(csv: Optional[str]) -> List[str]:
    if not csv:
        return []
    return [s.strip() for s in csv.split(",") if s.strip()]


def planifier_planche(
    planche: Planche,
    cultures_annee: Sequence[Culture],
    annee: int,
    espece_id: Optional[str] = None,
) -> List[CulturePrevue]:
    """
    Cultures prévues sur une planche pour `annee`.

    La planche doit avoir sa rotation (et les ITPs/espèces des détails) chargés.
    """
    rotation = planche.rotation
    if rotation is None or not rotation.details:
        return []

    debut = planche.rotation_debut
    if debut is None:
        debut = annee - settings.ROTATION_LOOKBACK_YEARS
    if annee < debut:
        return []

    nb_annees = rotation.nb_annees or len(rotation.details)
    cycle = annee_cycle(annee, debut, nb_annees)
    surface = (planche.longueur or 0) * (planche.largeur or 0)

    prevues: List[CulturePrevue] = []
    for detail in rotation.details:
        if detail.annee != cycle:
            continue

        itp = detail.itp
        detail_espece = itp.espece_id if itp else None
        if espece_id and detail_espece != espece_id:
            continue

        existante = next(
            (
                c for c in cultures_annee
                if (detail.itp_id is not None and c.itp_id == detail.itp_id)
                or (detail_espece is not None and c.espece_id == detail_espece)
            ),
            None,
        )

        prevues.append(
            CulturePrevue(
                planche_id=planche.id,
                planche_longueur=planche.longueur,
                planche_largeur=planche.largeur,
                planche_surface=planche.surface,
                ilot=planche.ilot,
                rotation_id=planche.rotation_id,
                rotation_annee=detail.annee,
                itp_id=detail.itp_id,
                espece_id=detail_espece,
                espece_couleur=itp.espece.couleur if itp and itp.espece else None,
                variete_id=None,  # choisie à la création de la culture
                annee=annee,
                semaine_semis=itp.semaine_semis if itp else None,
                semaine_plantation=itp.semaine_plantation if itp else None,
                semaine_recolte=itp.semaine_recolte if itp else None,
                duree_culture=itp.duree_culture if itp else None,
                nb_rangs=itp.nb_rangs if itp else None,
                espacement=itp.espacement if itp else None,
                surface=surface,
                existante=existante is not None,
                culture_id=existante.id if existante is not None else None,
            )
        )

    return prevues


def regrouper_recoltes(
    cultures: Iterable[CulturePrevue],
    rendements: Mapping[str, Optional[float]],
    group_by: str = GROUP_BY_MOIS,
) -> List[RecoltePrevue]:
    """Récoltes prévues par période ; toutes les périodes sont présentes, même vides."""
    groupes: Dict[int, Dict[str, EspeceRecolte]] = {}

    for culture in cultures:
        if not culture.semaine_recolte or not culture.espece_id:
            continue

        periode = (
            semaine_vers_mois(culture.semaine_recolte)
            if group_by == GROUP_BY_MOIS
            else culture.semaine_recolte
        )
        especes = groupes.setdefault(periode, {})
        entry = especes.get(culture.espece_id)
        if entry is None:
            entry = EspeceRecolte(
                espece_id=culture.espece_id,
                espece_couleur=culture.espece_couleur,
                quantite=0,
                surface=0,
            )
            especes[culture.espece_id] = entry

        entry.quantite += culture.surface * (rendements.get(culture.espece_id) or 0)
        entry.surface += culture.surface

    max_periode = 12 if group_by == GROUP_BY_MOIS else 52
    result: List[RecoltePrevue] = []
    for i in range(1, max_periode + 1):
        especes_list = list(groupes.get(i, {}).values())
        result.append(
            RecoltePrevue(
                periode=MOIS_NOMS[i - 1] if group_by == GROUP_BY_MOIS else f"S{i}",
                periode_num=i,
                especes=especes_list,
                total_kg=sum(e.quantite for e in especes_list),
                total_surface=sum(e.surface for e in especes_list),
            )
        )
    return result


def _cle_besoin(culture: CulturePrevue) -> str:
    return f"{culture.espece_id}|{culture.variete_id or ''}"


def calculer_besoins_semences(
    cultures: Iterable[CulturePrevue],
    varietes: Mapping[str, Variete],
    marge: float,
) -> List[BesoinSemence]:
    besoins: Dict[str, BesoinSemence] = {}

    for culture in cultures:
        if not culture.espece_id:
            continue

        besoin = besoins.get(_cle_besoin(culture))
        if besoin is None:
            variete = varietes.get(culture.variete_id) if culture.variete_id else None
            besoin = BesoinSemence(
                espece_id=culture.espece_id,
                espece_couleur=culture.espece_couleur,
                variete_id=culture.variete_id,
                stock_actuel=(variete.stock_graines or 0) if variete else 0,
                nb_graines_g=(variete.nb_graines_g or None) if variete else None,
            )
            besoins[_cle_besoin(culture)] = besoin

        besoin.surface_totale += culture.surface
        besoin.nb_plants += calculer_nb_plants(
            culture.planche_longueur, culture.nb_rangs, culture.espacement
        )

    for besoin in besoins.values():
        if besoin.nb_graines_g and besoin.nb_graines_g > 0:
            besoin.graines_necessaires = math.ceil(besoin.nb_plants * (1 + marge) / besoin.nb_graines_g)
        besoin.a_commander = max(0, besoin.graines_necessaires - besoin.stock_actuel)

    return sorted(besoins.values(), key=lambda b: b.espece_id)


def calculer_besoins_plants(
    cultures: Iterable[CulturePrevue],
    varietes: Mapping[str, Variete],
    marge: float,
) -> List[BesoinPlant]:
    """Besoins en plants : uniquement les cultures repiquées (semaine de plantation connue)."""
    besoins: Dict[str, BesoinPlant] = {}

    for culture in cultures:
        if culture.semaine_plantation is None or not culture.espece_id:
            continue

        nb_plants = calculer_nb_plants(culture.planche_longueur, culture.nb_rangs, culture.espacement)

        besoin = besoins.get(_cle_besoin(culture))
        if besoin is None:
            variete = varietes.get(culture.variete_id) if culture.variete_id else None
            besoin = BesoinPlant(
                espece_id=culture.espece_id,
                espece_couleur=culture.espece_couleur,
                variete_id=culture.variete_id,
                semaine_plantation=culture.semaine_plantation,
                stock_actuel=(variete.stock_plants or 0) if variete else 0,
            )
            besoins[_cle_besoin(culture)] = besoin

        besoin.nb_plants += nb_plants
        besoin.cultures.append(
            PlancheBesoin(planche_id=culture.planche_id, surface=culture.surface, nb_plants=nb_plants)
        )

    for besoin in besoins.values():
        avec_marge = math.ceil(besoin.nb_plants * (1 + marge))
        besoin.a_commander = max(0, avec_marge - besoin.stock_actuel)

    return sorted(besoins.values(), key=lambda b: b.espece_id)


def construire_associations(
    cultures: Sequence[CulturePrevue],
    planches: Mapping[str, Planche],
) -> List[AssociationCulture]:
    # Une culture par planche pour le voisinage (la dernière l’emporte)
    par_planche = {c.planche_id: c for c in cultures}

    associations: List[AssociationCulture] = []
    for culture in cultures:
        planche = planches.get(culture.planche_id)
        if planche is None:
            continue

        voisines = parse_voisines(planche.planches_influencees)
        cultures_voisines = [
            CultureVoisine(planche_id=pid, espece_id=par_planche[pid].espece_id)
            for pid in voisines
            if pid in par_planche
        ]

        associations.append(
            AssociationCulture(
                planche_id=culture.planche_id,
                ilot=culture.ilot,
                culture_espece_id=culture.espece_id,
                culture_semaine=culture.semaine_plantation or culture.semaine_semis,
                planches_voisines=voisines,
                cultures_voisines=cultures_voisines,
            )
        )
    return associations


def resumer_stats(
    cultures: Sequence[CulturePrevue],
    recoltes: Sequence[RecoltePrevue],
) -> StatsPlanification:
    total = len(cultures)
    existantes = sum(1 for c in cultures if c.existante)
    return StatsPlanification(
        total_cultures=total,
        cultures_existantes=existantes,
        cultures_a_creer=total - existantes,
        surface_totale=round2(sum(c.surface for c in cultures)),
        recoltes_totales=round2(sum(r.total_kg for r in recoltes)),
        nb_especes=len({c.espece_id for c in cultures if c.espece_id}),
    )


# -----------------------------
# Accès DB
# -----------------------------
async def _rendements(db: AsyncSession, espece_ids: Iterable[Optional[str]]) -> Dict[str, Optional[float]]:
    ids = sorted({e for e in espece_ids if e})
    if not ids:
        return {}
    rows = (await db.execute(select(Espece.id, Espece.rendement).where(Espece.id.in_(ids)))).all()
    return {r.id: r.rendement for r in rows}


async def _varietes(db: AsyncSession, cultures: Iterable[CulturePrevue]) -> Dict[str, Variete]:
    ids = sorted({c.variete_id for c in cultures if c.variete_id})
    if not ids:
        return {}
    rows = (await db.execute(select(Variete).where(Variete.id.in_(ids)))).scalars().all()
    return {v.id: v for v in rows}


async def get_cultures_prevues(
    db: AsyncSession,
    user_id: str,
    annee: int,
    *,
    espece_id: Optional[str] = None,
    ilot: Optional[str] = None,
    planche_id: Optional[str] = None,
) -> List[CulturePrevue]:
    """Cultures prévues pour `annee`, d’après les rotations des planches de l’utilisateur."""
    stmt = (
        select(Planche)
        .where(Planche.user_id == user_id, Planche.rotation_id.is_not(None))
        .options(
            selectinload(Planche.rotation)
            .selectinload(Rotation.details)
            .selectinload(RotationDetail.itp)
            .selectinload(Itp.espece)
        )
        .order_by(Planche.id)
    )
    if ilot:
        stmt = stmt.where(Planche.ilot == ilot)
    if planche_id:
        stmt = stmt.where(Planche.id == planche_id)

    planches = (await db.execute(stmt)).scalars().all()
    if not planches:
        return []

    cultures_stmt = select(Culture).where(
        Culture.user_id == user_id,
        Culture.annee == annee,
        Culture.planche_id.in_([p.id for p in planches]),
    )
    cultures_par_planche: Dict[str, List[Culture]] = {}
    for culture in (await db.execute(cultures_stmt)).scalars().all():
        cultures_par_planche.setdefault(culture.planche_id, []).append(culture)

    prevues: List[CulturePrevue] = []
    for planche in planches:
        prevues.extend(
            planifier_planche(planche, cultures_par_planche.get(planche.id, []), annee, espece_id)
        )
    return prevues


async def get_recoltes_prevues(
    db: AsyncSession,
    user_id: str,
    annee: int,
    group_by: str = GROUP_BY_MOIS,
) -> List[RecoltePrevue]:
    cultures = await get_cultures_prevues(db, user_id, annee)
    rendements = await _rendements(db, (c.espece_id for c in cultures))
    return regrouper_recoltes(cultures, rendements, group_by)


async def get_besoins_semences(db: AsyncSession, user_id: str, annee: int) -> List[BesoinSemence]:
    cultures = await get_cultures_prevues(db, user_id, annee)
    varietes = await _varietes(db, cultures)
    return calculer_besoins_semences(cultures, varietes, settings.SEED_MARGIN)


async def get_besoins_plants(db: AsyncSession, user_id: str, annee: int) -> List[BesoinPlant]:
    cultures = await get_cultures_prevues(db, user_id, annee)
    varietes = await _varietes(db, cultures)
    return calculer_besoins_plants(cultures, varietes, settings.PLANT_MARGIN)


async def get_associations(db: AsyncSession, user_id: str, annee: int) -> List[AssociationCulture]:
    cultures = await get_cultures_prevues(db, user_id, annee)
    planches = (await db.execute(select(Planche).where(Planche.user_id == user_id))).scalars().all()
    return construire_associations(cultures, {p.id: p for p in planches})


async def get_stats_planification(db: AsyncSession, user_id: str, annee: int) -> StatsPlanification:
    """
    Statistiques de planification d’un utilisateur pour une année.

    Deux lectures (cultures prévues, rendements des espèces), aucune écriture.
    """
    cultures = await get_cultures_prevues(db, user_id, annee)
    rendements = await _rendements(db, (c.espece_id for c in cultures))
    recoltes = regrouper_recoltes(cultures, rendements, GROUP_BY_MOIS)
    return resumer_stats(cultures, recoltes)


async def creer_cultures_batch(
    db: AsyncSession,
    user_id: str,
    items: Sequence[CultureACreer],
) -> List[CultureCreee]:
    """
    Crée les cultures demandées à partir de leurs ITPs.

    Ignorés (sans erreur) : ITP inconnu ou sans espèce, planche d’un autre utilisateur,
    culture déjà présente (même planche, espèce, année).
    """
    itp_ids = sorted({i.itp_id for i in items})
    itps = {
        itp.id: itp
        for itp in (await db.execute(select(Itp).where(Itp.id.in_(itp_ids)))).scalars().all()
    }

    planche_ids = sorted({i.planche_id for i in items})
    planches_user = set(
        (
            await db.execute(
                select(Planche.id).where(Planche.user_id == user_id, Planche.id.in_(planche_ids))
            )
        ).scalars().all()
    )

    creees: List[CultureCreee] = []
    for item in items:
        itp = itps.get(item.itp_id)
        if itp is None or not itp.espece_id or item.planche_id not in planches_user:
            continue

        existing = (
            await db.execute(
                select(Culture.id).where(
                    Culture.user_id == user_id,
                    Culture.planche_id == item.planche_id,
                    Culture.espece_id == itp.espece_id,
                    Culture.annee == item.annee,
                )
            )
        ).first()
        if existing:
            continue

        culture = Culture(
            user_id=user_id,
            espece_id=itp.espece_id,
            variete_id=item.variete_id or None,
            itp_id=itp.id,
            planche_id=item.planche_id,
            annee=item.annee,
            date_semis=date_semaine(item.annee, itp.semaine_semis),
            date_plantation=date_semaine(item.annee, itp.semaine_plantation),
            date_recolte=date_semaine(item.annee, itp.semaine_recolte),
            nb_rangs=itp.nb_rangs,
        )
        db.add(culture)
        await db.flush()  # récupère culture.id

        creees.append(CultureCreee(id=culture.id, planche_id=item.planche_id, espece_id=itp.espece_id))

    await db.commit()

    log.info("cultures_batch_created", extra={"user_id": user_id, "nb_created": len(creees)})
    return creees
