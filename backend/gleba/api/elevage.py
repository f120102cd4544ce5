from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gleba.api.deps import SessionDep
from gleba.core.errors import AppHTTPException, internal_error
from gleba.core.security import SessionContext
from gleba.db.session import get_db
from gleba.schemas.common import parse_datetime
from gleba.schemas.elevage import (
    ConsommationAlimentCreate,
    ConsommationCreatedResponse,
    ConsommationListResponse,
    SuccessResponse,
)
from gleba.services.elevage_service import DEFAULT_LIMIT, ConsommationFiltres, ConsommationService

"""
API Élevage : consommations d’aliments.

Rôle (fonctionnel) :
- GET    /elevage/consommations-aliments : liste filtrée + stats (total kg, par aliment).
- POST   /elevage/consommations-aliments : enregistre une consommation, décrémente le stock.
- DELETE /elevage/consommations-aliments?id= : supprime une consommation, ré-incrémente le stock.

Notes :
- La validation du payload (Aliment requis, quantité positive…) renvoie 422 par champ.
- dateDebut / dateFin acceptent ISO-8601 ou epoch (ms) ; une date illisible est ignorée.
"""

router = APIRouter(prefix="/elevage", tags=["elevage"])

log = logging.getLogger("gleba.elevage")


def _date_filtre(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return parse_datetime(raw)
    except ValueError:
        return None


@router.get("/consommations-aliments", response_model=ConsommationListResponse)
async def list_consommations(
    ctx: SessionContext = SessionDep,
    db: AsyncSession = Depends(get_db),
    aliment_id: Optional[str] = Query(None, alias="alimentId"),
    lot_id: Optional[int] = Query(None, alias="lotId"),
    date_debut: Optional[str] = Query(None, alias="dateDebut"),
    date_fin: Optional[str] = Query(None, alias="dateFin"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=1000),
):
    filtres = ConsommationFiltres(
        aliment_id=aliment_id or None,
        lot_id=lot_id,
        date_debut=_date_filtre(date_debut),
        date_fin=_date_filtre(date_fin),
    )

    try:
        data, stats = await ConsommationService(db, ctx.user_id).lister(filtres, limit)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("consommations_list_failed", extra={"user_id": ctx.user_id})
        raise internal_error("Erreur lors de la recuperation des consommations")

    return ConsommationListResponse(data=data, stats=stats)


@router.post("/consommations-aliments", response_model=ConsommationCreatedResponse, status_code=201)
async def create_consommation(
    payload: ConsommationAlimentCreate,
    ctx: SessionContext = SessionDep,
    db: AsyncSession = Depends(get_db),
):
    try:
        created = await ConsommationService(db, ctx.user_id).creer(payload)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("consommation_create_failed", extra={"user_id": ctx.user_id})
        await db.rollback()
        raise internal_error("Erreur lors de l'enregistrement de la consommation")

    return ConsommationCreatedResponse(data=created)


@router.delete("/consommations-aliments", response_model=SuccessResponse)
async def delete_consommation(
    ctx: SessionContext = SessionDep,
    db: AsyncSession = Depends(get_db),
    consommation_id: Optional[str] = Query(None, alias="id"),
):
    if not consommation_id:
        raise AppHTTPException(400, "BAD_REQUEST", "ID requis")
    try:
        cid = int(consommation_id)
    except ValueError:
        raise AppHTTPException(400, "BAD_REQUEST", "ID invalide")

    try:
        await ConsommationService(db, ctx.user_id).supprimer(cid)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("consommation_delete_failed", extra={"user_id": ctx.user_id})
        await db.rollback()
        raise internal_error("Erreur lors de la suppression de la consommation")

    return SuccessResponse()
