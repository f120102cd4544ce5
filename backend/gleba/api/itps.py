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
from gleba.models.espece import Espece
from gleba.models.itp import Itp
from gleba.models.rotation import RotationDetail
from gleba.schemas.elevage import SuccessResponse
from gleba.schemas.referentiel import ItpCreate, ItpListResponse, ItpOut, ItpUpdate

"""
API ITPs (itinéraires techniques, référentiel).

Rôle (fonctionnel) :
- Liste paginée (recherche sur id / notes / espèce, filtre espèce), détail, création,
  mise à jour partielle, suppression.
- Lecture : toute session valide. Écriture : administrateurs uniquement.
"""

router = APIRouter(prefix="/itps", tags=["referentiel"])

log = logging.getLogger("gleba")

SORT_FIELDS = {
    "id": Itp.id,
    "especeId": Itp.espece_id,
    "semaineSemis": Itp.semaine_semis,
    "semainePlantation": Itp.semaine_plantation,
    "semaineRecolte": Itp.semaine_recolte,
}


async def _get_or_404(db: AsyncSession, itp_id: str) -> Itp:
    itp = await db.get(Itp, itp_id)
    if itp is None:
        raise AppHTTPException(404, "NOT_FOUND", f'ITP "{itp_id}" non trouvé')
    return itp


async def _check_espece(db: AsyncSession, espece_id: Optional[str]) -> None:
    if espece_id and await db.get(Espece, espece_id) is None:
        raise AppHTTPException(400, "BAD_REQUEST", f"L'espèce \"{espece_id}\" n'existe pas")


@router.get("", response_model=ItpListResponse)
async def list_itps(
    ctx: SessionContext = SessionDep,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500, alias="pageSize"),
    sort_by: str = Query("id", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder", pattern="^(asc|desc)$"),
    search: Optional[str] = None,
    espece_id: Optional[str] = Query(None, alias="especeId"),
):
    conds = []
    if search:
        pattern = f"%{search.lower()}%"
        conds.append(
            or_(
                func.lower(Itp.id).like(pattern),
                func.lower(Itp.notes).like(pattern),
                func.lower(Itp.espece_id).like(pattern),
            )
        )
    if espece_id:
        conds.append(Itp.espece_id == espece_id)

    column = SORT_FIELDS.get(sort_by, Itp.id)
    order = column.desc() if sort_order == "desc" else column.asc()

    total = (await db.execute(select(func.count(Itp.id)).where(*conds))).scalar_one()
    rows = (
        await db.execute(
            select(Itp).where(*conds).order_by(order, Itp.id).offset((page - 1) * page_size).limit(page_size)
        )
    ).scalars().all()

    return ItpListResponse(
        data=[ItpOut.model_validate(i) for i in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )


@router.get("/{itp_id}", response_model=ItpOut)
async def get_itp(itp_id: str, ctx: SessionContext = SessionDep, db: AsyncSession = Depends(get_db)):
    return ItpOut.model_validate(await _get_or_404(db, itp_id))


@router.post("", response_model=ItpOut, status_code=201)
async def create_itp(payload: ItpCreate, ctx: SessionContext = AdminDep, db: AsyncSession = Depends(get_db)):
    try:
        if await db.get(Itp, payload.id) is not None:
            raise AppHTTPException(409, "CONFLICT", f"L'ITP \"{payload.id}\" existe déjà")
        await _check_espece(db, payload.espece_id)

        itp = Itp(**payload.model_dump())
        db.add(itp)
        await db.commit()
        await db.refresh(itp)
    except AppHTTPException:
        raise
    except IntegrityError:
        await db.rollback()
        raise AppHTTPException(409, "CONFLICT", f"L'ITP \"{payload.id}\" existe déjà")
    except Exception:
        log.exception("itp_create_failed", extra={"user_id": ctx.user_id})
        await db.rollback()
        raise internal_error("Erreur lors de la creation de l'ITP")

    log.info("itp_created", extra={"user_id": ctx.user_id})
    return ItpOut.model_validate(itp)


@router.patch("/{itp_id}", response_model=ItpOut)
async def update_itp(
    itp_id: str,
    payload: ItpUpdate,
    ctx: SessionContext = AdminDep,
    db: AsyncSession = Depends(get_db),
):
    try:
        itp = await _get_or_404(db, itp_id)

        changes = payload.model_dump(exclude_unset=True)
        if "espece_id" in changes:
            await _check_espece(db, changes["espece_id"])
        for field, value in changes.items():
            setattr(itp, field, value)

        await db.commit()
        await db.refresh(itp)
    except AppHTTPException:
        raise
    except Exception:
        log.exception("itp_update_failed", extra={"user_id": ctx.user_id})
        await db.rollback()
        raise internal_error("Erreur lors de la mise a jour de l'ITP")

    return ItpOut.model_validate(itp)


@router.delete("/{itp_id}", response_model=SuccessResponse)
async def delete_itp(itp_id: str, ctx: SessionContext = AdminDep, db: AsyncSession = Depends(get_db)):
    try:
        itp = await _get_or_404(db, itp_id)

        for model in (Culture, RotationDetail):
            used = (await db.execute(select(model.id).where(model.itp_id == itp_id).limit(1))).first()
            if used is not None:
                raise AppHTTPException(
                    409, "CONFLICT", f"Impossible de supprimer l'ITP \"{itp_id}\" car il est utilisé"
                )

        await db.delete(itp)
        await db.commit()
    except AppHTTPException:
        raise
    except Exception:
        log.exception("itp_delete_failed", extra={"user_id": ctx.user_id})
        await db.rollback()
        raise internal_error("Erreur lors de la suppression de l'ITP")

    return SuccessResponse()
