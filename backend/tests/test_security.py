import pytest

from gleba.core.errors import AppHTTPException
from gleba.core.security import extract_token, hash_token, resolve_session
from gleba.core.settings import settings
from starlette.requests import Request


def _request(headers: dict) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def test_extract_token():
    assert extract_token(_request({"Authorization": "Bearer abc"})) == "abc"
    assert extract_token(_request({"X-Session-Token": " xyz "})) == "xyz"
    assert extract_token(_request({"Authorization": "Basic abc"})) is None
    assert extract_token(_request({})) is None


def test_hash_token_stable():
    assert hash_token("abc") == hash_token("abc")
    assert len(hash_token("abc")) == 64


async def test_session_valide(db, user, token):
    ctx = await resolve_session(_request({"Authorization": f"Bearer {token}"}), db)
    assert ctx.user_id == user.id
    assert ctx.is_admin is False


async def test_session_expiree(db, expired_token):
    with pytest.raises(AppHTTPException) as exc:
        await resolve_session(_request({"X-Session-Token": expired_token}), db)
    assert exc.value.status_code == 401


async def test_bypass_dev(client, db, user, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DEV_USER_ID", user.id)

    ctx = await resolve_session(_request({}), db)
    assert ctx.user_id == user.id

    r = await client.get("/api/planification/stats")
    assert r.status_code == 200


async def test_bypass_dev_interdit_en_prod(client, user, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DEV_USER_ID", user.id)
    monkeypatch.setattr(settings, "ENV", "prod")

    r = await client.get("/api/planification/stats")

    assert r.status_code == 500
    assert r.json()["code"] == "SERVER_MISCONFIG"


async def test_bypass_ignore_si_token_fourni(client, user, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DEV_USER_ID", user.id)

    r = await client.get("/api/planification/stats", headers={"Authorization": "Bearer faux"})
    assert r.status_code == 401
