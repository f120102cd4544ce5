from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gleba.core.security import SessionContext, require_admin, resolve_session
from gleba.core.settings import settings
from gleba.db.session import get_db

"""
Dépendances API.

Rôle (fonctionnel) :
- Centralise les dépendances réutilisables sur les routes.
- Session : résolue AVANT le corps du handler, puis passée explicitement (SessionContext).
- Paramètre ?annee= : étape explicite “valider ou défaut” (jamais de NaN côté métier).
"""


async def get_session_context(request: Request, db: AsyncSession = Depends(get_db)) -> SessionContext:
    # 401 si pas de session valide : la logique métier n’est jamais atteinte
    return await resolve_session(request, db)


async def get_admin_context(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
    return require_admin(ctx)


def parse_annee(raw: Optional[str], today: Optional[date] = None) -> int:
    """
    Année demandée, ou l’année courante si `raw` est absent, vide, non entier
    ou hors de [YEAR_MIN, YEAR_MAX].
    """
    default = (today or date.today()).year
    if raw is None:
        return default

    value = raw.strip()
    if not value:
        return default

    # int() accepte aussi "2_024" et les chiffres non ASCII
    if not (value.isascii() and value.lstrip("+-").isdigit()):
        return default

    try:
        annee = int(value)
    except ValueError:
        return default

    if annee < settings.YEAR_MIN or annee > settings.YEAR_MAX:
        return default
    return annee


async def annee_param(annee: Optional[str] = Query(None)) -> int:
    return parse_annee(annee)


# Dépendances prêtes à l’emploi
SessionDep = Depends(get_session_context)
AdminDep = Depends(get_admin_context)
AnneeDep = Depends(annee_param)
