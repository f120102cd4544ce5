from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gleba.core.rate_limit import rate_limiter
from gleba.core.security import create_session
from gleba.core.settings import settings
from gleba.db.base import Base
from gleba.db.session import get_db
from gleba.main import app
from gleba.models import (
    Aliment,
    Espece,
    Famille,
    Itp,
    Lot,
    Planche,
    Rotation,
    RotationDetail,
    User,
    UserSession,
)
from gleba.models.user import ROLE_ADMIN, ROLE_USER

"""
Fixtures de test.

- Base SQLite en mémoire (aiosqlite + StaticPool : une seule connexion partagée).
- get_db surchargé : chaque requête HTTP ouvre sa propre session sur cette base.
- Client httpx branché directement sur l’app ASGI (pas de serveur).
"""


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    # Pas de bypass dev ni de rate limit, quel que soit le .env local
    monkeypatch.setattr(settings, "AUTH_DEV_USER_ID", "")
    monkeypatch.setattr(settings, "ENV", "dev")
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
    rate_limiter.reset()


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def user(db):
    u = User(email="maraicher@example.org", name="Maraîcher", role=ROLE_USER)
    db.add(u)
    await db.commit()
    return u


@pytest.fixture
async def admin(db):
    u = User(email="admin@example.org", name="Admin", role=ROLE_ADMIN)
    db.add(u)
    await db.commit()
    return u


@pytest.fixture
async def token(db, user):
    return await create_session(db, user.id)


@pytest.fixture
async def admin_token(db, admin):
    return await create_session(db, admin.id)


@pytest.fixture
def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_auth(admin_token):
    return {"X-Session-Token": admin_token}


@pytest.fixture
async def expired_token(db, user):
    from gleba.core.security import hash_token

    raw = "jeton-expire"
    db.add(
        UserSession(
            user_id=user.id,
            token_hash=hash_token(raw),
            expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
        )
    )
    await db.commit()
    return raw


@pytest.fixture
async def planning(db, user):
    """
    Jardin minimal : une rotation de 2 ans (Tomate puis Haricot) sur la planche A1,
    démarrée en 2024. A1 a pour voisine A2 (sans rotation).
    """
    db.add(Famille(id="Solanacées", couleur="#E53935"))
    db.add(Famille(id="Fabacées", couleur="#43A047"))
    db.add(Espece(id="Tomate", famille_id="Solanacées", rendement=6.0, couleur="#E53935"))
    db.add(Espece(id="Haricot", famille_id="Fabacées", rendement=1.5, couleur="#43A047"))
    await db.flush()

    db.add(
        Itp(
            id="Tomate standard",
            espece_id="Tomate",
            semaine_semis=10,
            semaine_plantation=18,
            semaine_recolte=30,
            nb_rangs=2,
            espacement=50,
        )
    )
    db.add(
        Itp(
            id="Haricot direct",
            espece_id="Haricot",
            semaine_semis=20,
            semaine_recolte=30,
            nb_rangs=3,
            espacement=10,
        )
    )
    await db.flush()

    rotation = Rotation(id="R2", active=True, nb_annees=2)
    rotation.details = [
        RotationDetail(annee=1, itp_id="Tomate standard"),
        RotationDetail(annee=2, itp_id="Haricot direct"),
    ]
    db.add(rotation)
    await db.flush()

    db.add(
        Planche(
            id="A1",
            user_id=user.id,
            rotation_id="R2",
            rotation_debut=2024,
            longueur=10,
            largeur=0.75,
            ilot="A",
            planches_influencees="A2",
        )
    )
    db.add(Planche(id="A2", user_id=user.id, longueur=10, largeur=0.75, ilot="A"))
    await db.commit()
    return rotation


@pytest.fixture
async def aliments(db, user):
    db.add(Aliment(id="ble", nom="Blé", type="cereale"))
    db.add(Aliment(id="mais", nom="Maïs", type="cereale"))
    lot = Lot(user_id=user.id, nom="Poules pondeuses", espece="poule", effectif=12)
    db.add(lot)
    await db.commit()
    return lot
