from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gleba.core.errors import AppHTTPException, authentication_error
from gleba.core.settings import settings
from gleba.models.user import ROLE_ADMIN, User, UserSession

"""
Core Security (sessions).

Rôle (fonctionnel) :
- Résout la session de l’appelant en un SessionContext explicite, passé ensuite à chaque handler.
- Deux formats de headers acceptés :
  - Authorization: Bearer <token>
  - X-Session-Token: <token>
- Le token n’est jamais stocké en clair : recherche par hash sha256, sessions expirées ignorées.

Comportement du bypass de dev :
- AUTH_DEV_USER_ID renseigné et ENV != prod : une requête sans token agit au nom de cet utilisateur.
- AUTH_DEV_USER_ID renseigné et ENV = prod : erreur 500 (configuration serveur invalide).
"""


@dataclass(frozen=True)
class SessionContext:
    """Identité de l’appelant pour la durée d’une requête."""
    user_id: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def extract_token(request: Request) -> Optional[str]:
    """Extrait un token depuis Authorization Bearer ou X-Session-Token (si présent)."""
    auth = request.headers.get("authorization")
    if auth:
        parts = auth.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1].strip() or None

    header_token = request.headers.get("x-session-token")
    if header_token:
        return header_token.strip() or None

    return None


async def create_session(db: AsyncSession, user_id: str, ttl_hours: Optional[int] = None) -> str:
    """Crée une session pour user_id et retourne le token brut (à transmettre une seule fois)."""
    token = secrets.token_urlsafe(32)
    hours = ttl_hours if ttl_hours is not None else settings.SESSION_TTL_HOURS
    db.add(
        UserSession(
            user_id=user_id,
            token_hash=hash_token(token),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=hours),
        )
    )
    await db.commit()
    return token


async def _dev_bypass(db: AsyncSession) -> Optional[SessionContext]:
    dev_user_id = settings.AUTH_DEV_USER_ID
    if not dev_user_id:
        return None

    if str(settings.ENV).lower() == "prod":
        raise AppHTTPException(500, "SERVER_MISCONFIG", "AUTH_DEV_USER_ID interdit en production")

    user = await db.get(User, dev_user_id)
    if user is None:
        return None
    return SessionContext(user_id=user.id, email=user.email, role=user.role)


async def resolve_session(request: Request, db: AsyncSession) -> SessionContext:
    """
    Retourne le SessionContext de la requête ou lève 401.

    Ne touche à aucune donnée métier : appelé avant le corps du handler.
    """
    token = extract_token(request)

    if token is None:
        ctx = await _dev_bypass(db)
        if ctx is None:
            raise authentication_error()
        return ctx

    stmt = (
        select(User)
        .join(UserSession, UserSession.user_id == User.id)
        .where(UserSession.token_hash == hash_token(token))
        .where(UserSession.expires_at > datetime.now(timezone.utc))
    )
    user = (await db.execute(stmt)).scalars().first()
    if user is None:
        raise authentication_error()

    return SessionContext(user_id=user.id, email=user.email, role=user.role)


def require_admin(ctx: SessionContext) -> SessionContext:
    if not ctx.is_admin:
        raise AppHTTPException(403, "FORBIDDEN", "Accès interdit")
    return ctx
