from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gleba.core.settings import settings
from gleba.db.session import get_db
from gleba.models.espece import Espece
from gleba.models.itp import Itp

"""
API System Status.

Rôle (fonctionnel) :
- Expose un endpoint de statut “healthcheck” pour la plateforme (sans auth).
- Vérifie la disponibilité de la base (requête simple).
- Indique si le référentiel est chargé (nombre d’espèces et d’ITPs).
"""

router = APIRouter(prefix="/system", tags=["system"])

log = logging.getLogger("gleba")


@router.get("/status")
async def system_status(db: AsyncSession = Depends(get_db)):
    # 1) DB check (requête minimale)
    db_ok = True
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        log.warning("status_db_unavailable", exc_info=True)
        db_ok = False

    # 2) Référentiel (seed appliqué ?)
    referentiel = {"especes": None, "itps": None}
    if db_ok:
        try:
            referentiel["especes"] = (await db.execute(select(func.count(Espece.id)))).scalar_one()
            referentiel["itps"] = (await db.execute(select(func.count(Itp.id)))).scalar_one()
        except SQLAlchemyError:
            # Schéma absent (migrations non appliquées)
            log.warning("status_referentiel_unavailable", exc_info=True)

    # Réponse (format constant) pour monitoring / UI
    return {
        "ok": db_ok,
        "env": settings.ENV,
        "db": {"ok": db_ok},
        "referentiel": referentiel,
        "ts": datetime.now(timezone.utc).isoformat(),
    }
