from __future__ import annotations

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gleba.api.deps import AdminDep, SessionDep
from gleba.core.errors import AppHTTPException, internal_error
from gleba.core.security import SessionContext
from gleba.db.session import get_db
from gleba.models.culture import Culture
from gleba.models.espece import Espece, Famille, Variete
from gleba.models.itp import Itp
from gleba.schemas.elevage import SuccessResponse
from gleba.schemas.referentiel import EspeceCreate, EspeceListResponse, EspeceOut, EspeceUpdate

"""
API Espèces (référentiel).

Rôle (fonctionnel) :
- Liste paginée avec recherche (nom, nom latin, description), filtres et tri.
- Détail, création, mise à jour partielle, suppression.

Notes :
- Lecture : toute session valide. Écriture : administrateurs uniquement.
- Une espèce déjà existante (même nom) -> 409 ; une espèce utilisée ne peut pas être supprimée (409).
"""

router = APIRouter(prefix="/especes", tags=["referentiel"])

log = logging.getLogger("gleba")

SORT_FIELDS = {
    "id": Espece.id,
    "familleId": Espece.famille_id,
    "rendement": Espece.rendement,
    "prixKg": Espece.prix_kg,
}


async def _get_or_404(db: AsyncSession, espece_id: str) -> Espece:
    espece = await db.get(Espece, espece_id)
    if espece is None:
        raise AppHTTPException(404, "NOT_FOUND", f'Espèce "{espece_id}" non trouvée')
    return espece


async def _check_famille(db: AsyncSession, famille_id: Optional[str]) -> None:
    if famille_id and await db.get(Famille, famille_id) is None:
        raise AppHTTPException(400, "BAD_REQUEST", f"La famille \"{famille_id}\" n'existe pas")


@router.get("", response_model=EspeceListResponse)
async def list_especes(
    ctx: SessionContext = SessionDep,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500, alias="pageSize"),
    sort_by: str = Query("id", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder", pattern="^(asc|desc)$"),
    search: Optional[str] = None,
    famille_id: Optional[str] = Query(None, alias="familleId"),
    vivace: Optional[bool] = None,
    a_planifier: Optional[bool] = Query(None, alias="aPlanifier"),
):
    conds = []
    if search:
        pattern = f"%{search.lower()}%"
        conds.append(
            or_(
                func.lower(Espece.id).like(pattern),
                func.lower(Espece.nom_latin).like(pattern),
                func.lower(Espece.description).like(pattern),
            )
        )
    if famille_id:
        conds.append(Espece.famille_id == famille_id)
    if vivace is not None:
        conds.append(Espece.vivace == vivace)
    if a_planifier is not None:
        conds.append(Espece.a_planifier == a_planifier)

    column = SORT_FIELDS.get(sort_by, Espece.id)
    order = column.desc() if sort_order == "desc" else column.asc()

    total = (await db.execute(select(func.count(Espece.id)).where(*conds))).scalar_one()
    rows = (
        await db.execute(
            select(Espece)
            .where(*conds)
            .order_by(order, Espece.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).scalars().all()

    return EspeceListResponse(
        data=[EspeceOut.model_validate(e) for e in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )


@router.get("/{espece_id}", response_model=EspeceOut)
async def get_espece(espece_id: str, ctx: SessionContext = SessionDep, db: AsyncSession = Depends(get_db)):
    return EspeceOut.model_validate(await _get_or_404(db, espece_id))


@router.post("", response_model=EspeceOut, status_code=201)
async def create_espece(
    payload: EspeceCreate,
    ctx: SessionContext = AdminDep,
    db: AsyncSession = Depends(get_db),
):
    try:
        if await db.get(Espece, payload.id) is not None:
            raise AppHTTPException(409, "CONFLICT", f"L'espèce \"{payload.id}\" existe déjà")
        await _check_famille(db, payload.famille_id)

        espece = Espece(**payload.model_dump())
        db.add(espece)
        await db.commit()
        await db.refresh(espece)
    except AppHTTPException:
        raise
    except IntegrityError:
        # Création concurrente du même identifiant
        await db.rollback()
        raise AppHTTPException(409, "CONFLICT", f"L'espèce \"{payload.id}\" existe déjà")
    except Exception:
        log.exception("espece_create_failed", extra={"user_id": ctx.user_id})
        await db.rollback()
        raise internal_error("Erreur lors de la creation de l'espece")

    log.info("espece_created", extra={"user_id": ctx.user_id})
    return EspeceOut.model_validate(espece)


@router.patch("/{espece_id}", response_model=EspeceOut)
async def update_espece(
    espece_id: str,
    payload: EspeceUpdate,
    ctx: SessionContext = AdminDep,
    db: AsyncSession = Depends(get_db),
):
    try:
        espece = await _get_or_404(db, espece_id)

        changes = payload.model_dump(exclude_unset=True)
        if "famille_id" in changes:
            await _check_famille(db, changes["famille_id"])
        for field, value in changes.items():
            setattr(espece, field, value)

        await db.commit()
        await db.refresh(espece)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("espece_update_failed", extra={"user_id": ctx.user_id})
        await db.rollback()
        raise internal_error("Erreur lors de la mise a jour de l'espece")

    return EspeceOut.model_validate(espece)


@router.delete("/{espece_id}", response_model=SuccessResponse)
async def delete_espece(espece_id: str, ctx: SessionContext = AdminDep, db: AsyncSession = Depends(get_db)):
    try:
        espece = await _get_or_404(db, espece_id)

        # Utilisée = au moins une variété, un ITP ou une culture
        for model in (Variete, Itp, Culture):
            used = (await db.execute(select(model.id).where(model.espece_id == espece_id).limit(1))).first()
            if used is not None:
                raise AppHTTPException(
                    409, "CONFLICT", f"Impossible de supprimer l'espèce \"{espece_id}\" car elle est utilisée"
                )

        await db.delete(espece)
        await db.commit()
    except AppHTTPException:
        raise
    except Exception:
        log.exception("espece_delete_failed", extra={"user_id": ctx.user_id})
        await db.rollback()
        raise internal_error("Erreur lors de la suppression de l'espece")

    return SuccessResponse()
