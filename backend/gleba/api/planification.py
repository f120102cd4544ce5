from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gleba.api.deps import AnneeDep, SessionDep
from gleba.core.errors import AppHTTPException, internal_error
from gleba.core.security import SessionContext
from gleba.db.session import get_db
from gleba.schemas.planification import (
    AssociationsResponse,
    AssociationsStats,
    CreerCulturesRequest,
    CreerCulturesResponse,
    CulturesPrevuesResponse,
    CulturesPrevuesStats,
    PlantsResponse,
    PlantsStats,
    RecoltesPrevuesResponse,
    RecoltesPrevuesStats,
    SemencesResponse,
    SemencesStats,
    StatsPlanificationResponse,
    round2,
)
from gleba.services import planification_service as svc

"""
API Planification.

Rôle (fonctionnel) :
- Statistiques annuelles (GET /planification/stats?annee=).
- Vues dérivées des rotations : cultures prévues, récoltes prévues, besoins en semences
  et en plants, associations entre planches voisines.
- Création en lot des cultures prévues retenues (POST /planification/creer-cultures).

Notes :
- La session est résolue avant le corps du handler (401 sans aucune requête métier).
- Toute erreur inattendue est loggée (stacktrace) puis renvoyée en 500 générique :
  le message décrit l’opération, jamais la cause.
"""

router = APIRouter(prefix="/planification", tags=["planification"])

log = logging.getLogger("gleba.planification")

GROUP_BY_CULTURES = ("espece", "ilot", "planche")
SANS_ILOT = "Sans ilot"


@router.get("/stats", response_model=StatsPlanificationResponse)
async def get_stats(
    ctx: SessionContext = SessionDep,
    annee: int = AnneeDep,
    db: AsyncSession = Depends(get_db),
):
    try:
        stats = await svc.get_stats_planification(db, ctx.user_id, annee)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("stats_failed", extra={"user_id": ctx.user_id, "annee": annee})
        raise internal_error("Erreur lors de la recuperation des statistiques")

    return StatsPlanificationResponse(**stats.model_dump(), annee=annee)


@router.get("/cultures-prevues", response_model=CulturesPrevuesResponse)
async def get_cultures_prevues(
    ctx: SessionContext = SessionDep,
    annee: int = AnneeDep,
    db: AsyncSession = Depends(get_db),
    group_by: str = Query("espece", alias="groupBy"),
    espece_id: Optional[str] = Query(None, alias="especeId"),
    ilot: Optional[str] = None,
    planche_id: Optional[str] = Query(None, alias="plancheId"),
):
    try:
        cultures = await svc.get_cultures_prevues(
            db,
            ctx.user_id,
            annee,
            espece_id=espece_id or None,
            ilot=ilot or None,
            planche_id=planche_id or None,
        )
    except AppHTTPException:
        raise
    except Exception:
        log.exception("cultures_prevues_failed", extra={"user_id": ctx.user_id, "annee": annee})
        raise internal_error("Erreur lors de la recuperation des cultures prevues")

    par_espece: Dict[str, int] = {}
    par_ilot: Dict[str, int] = {}
    for c in cultures:
        if c.espece_id:
            par_espece[c.espece_id] = par_espece.get(c.espece_id, 0) + 1
        cle_ilot = c.ilot or SANS_ILOT
        par_ilot[cle_ilot] = par_ilot.get(cle_ilot, 0) + 1

    # Tri selon le groupement (groupBy inconnu : ordre des planches conservé)
    if group_by == "espece":
        cultures = sorted(cultures, key=lambda c: (c.espece_id or "", c.planche_id))
    elif group_by == "ilot":
        cultures = sorted(cultures, key=lambda c: (c.ilot or "", c.planche_id))
    elif group_by == "planche":
        cultures = sorted(cultures, key=lambda c: c.planche_id)

    existantes = sum(1 for c in cultures if c.existante)
    return CulturesPrevuesResponse(
        data=cultures,
        stats=CulturesPrevuesStats(
            total=len(cultures),
            existantes=existantes,
            a_creer=len(cultures) - existantes,
            surface_totale=sum(c.surface for c in cultures),
            par_espece=par_espece,
            par_ilot=par_ilot,
        ),
        annee=annee,
        group_by=group_by,
    )


@router.get("/recoltes-prevues", response_model=RecoltesPrevuesResponse)
async def get_recoltes_prevues(
    ctx: SessionContext = SessionDep,
    annee: int = AnneeDep,
    db: AsyncSession = Depends(get_db),
    group_by: str = Query(svc.GROUP_BY_MOIS, alias="groupBy", pattern="^(mois|semaine)$"),
):
    try:
        recoltes = await svc.get_recoltes_prevues(db, ctx.user_id, annee, group_by)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("recoltes_prevues_failed", extra={"user_id": ctx.user_id, "annee": annee})
        raise internal_error("Erreur lors de la recuperation des recoltes prevues")

    # Période la plus chargée : la première atteignant le maximum
    meilleure_periode, meilleure_kg = "", 0.0
    for r in recoltes:
        if r.total_kg > meilleure_kg:
            meilleure_periode, meilleure_kg = r.periode, r.total_kg

    return RecoltesPrevuesResponse(
        data=recoltes,
        stats=RecoltesPrevuesStats(
            total_annee=round2(sum(r.total_kg for r in recoltes)),
            surface_totale=round2(sum(r.total_surface for r in recoltes)),
            meilleure_periode=meilleure_periode,
            meilleure_quantite=round2(meilleure_kg),
        ),
        annee=annee,
        group_by=group_by,
    )


@router.get("/semences", response_model=SemencesResponse)
async def get_semences(
    ctx: SessionContext = SessionDep,
    annee: int = AnneeDep,
    db: AsyncSession = Depends(get_db),
):
    try:
        besoins = await svc.get_besoins_semences(db, ctx.user_id, annee)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("semences_failed", extra={"user_id": ctx.user_id, "annee": annee})
        raise internal_error("Erreur lors de la recuperation des besoins en semences")

    return SemencesResponse(
        data=besoins,
        stats=SemencesStats(
            nb_especes=len(besoins),
            total_plants=sum(b.nb_plants for b in besoins),
            total_graines=sum(b.graines_necessaires for b in besoins),
            total_a_commander=sum(b.a_commander for b in besoins),
            especes_sans_stock=sum(1 for b in besoins if b.a_commander > 0),
        ),
        annee=annee,
    )


@router.get("/plants", response_model=PlantsResponse)
async def get_plants(
    ctx: SessionContext = SessionDep,
    annee: int = AnneeDep,
    db: AsyncSession = Depends(get_db),
):
    try:
        besoins = await svc.get_besoins_plants(db, ctx.user_id, annee)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("plants_failed", extra={"user_id": ctx.user_id, "annee": annee})
        raise internal_error("Erreur lors de la recuperation des besoins en plants")

    par_semaine: Dict[int, int] = {}
    for b in besoins:
        if b.semaine_plantation:
            par_semaine[b.semaine_plantation] = par_semaine.get(b.semaine_plantation, 0) + b.nb_plants

    return PlantsResponse(
        data=besoins,
        stats=PlantsStats(
            nb_especes=len(besoins),
            total_plants=sum(b.nb_plants for b in besoins),
            total_cultures=sum(len(b.cultures) for b in besoins),
            total_a_commander=sum(b.a_commander for b in besoins),
            especes_sans_stock=sum(1 for b in besoins if b.a_commander > 0),
            par_semaine=par_semaine,
        ),
        annee=annee,
    )


@router.get("/associations", response_model=AssociationsResponse)
async def get_associations(
    ctx: SessionContext = SessionDep,
    annee: int = AnneeDep,
    db: AsyncSession = Depends(get_db),
):
    try:
        associations = await svc.get_associations(db, ctx.user_id, annee)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("associations_failed", extra={"user_id": ctx.user_id, "annee": annee})
        raise internal_error("Erreur lors de la recuperation des associations")

    return AssociationsResponse(
        data=associations,
        stats=AssociationsStats(
            total_planches=len(associations),
            planches_avec_voisins=sum(1 for a in associations if a.planches_voisines),
        ),
        annee=annee,
    )


@router.post("/creer-cultures", response_model=CreerCulturesResponse, status_code=201)
async def creer_cultures(
    payload: CreerCulturesRequest,
    ctx: SessionContext = SessionDep,
    db: AsyncSession = Depends(get_db),
):
    try:
        creees = await svc.creer_cultures_batch(db, ctx.user_id, payload.cultures)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("creer_cultures_failed", extra={"user_id": ctx.user_id})
        await db.rollback()
        raise internal_error("Erreur lors de la creation des cultures")

    return CreerCulturesResponse(created=len(creees), cultures=creees)
