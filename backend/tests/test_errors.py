from gleba.core.rate_limit import InMemoryRateLimiter, rate_limiter
from gleba.core.settings import settings


async def test_enveloppe_404(client):
    r = await client.get("/api/inexistant", headers={"X-Request-Id": "req-123"})

    assert r.status_code == 404
    body = r.json()
    assert body["code"] == "NOT_FOUND"
    assert body["status"] == 404
    assert body["request_id"] == "req-123"
    assert "timestamp" in body
    assert r.headers["X-Request-Id"] == "req-123"


async def test_request_id_genere(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.headers["X-Request-Id"]


async def test_json_invalide(client, auth):
    r = await client.post(
        "/api/elevage/consommations-aliments",
        content=b"{pas du json",
        headers={**auth, "Content-Type": "application/json"},
    )
    assert r.status_code == 422
    assert r.json()["code"] == "VALIDATION_ERROR"


async def test_system_status(client):
    r = await client.get("/api/system/status")
    body = r.json()
    assert body["ok"] is True
    assert body["referentiel"] == {"especes": 0, "itps": 0}


async def test_rate_limit(client, auth, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(settings, "RATE_LIMIT_RPM", 2)
    rate_limiter.reset()

    codes = [(await client.get("/api/planification/stats", headers=auth)).status_code for _ in range(3)]

    assert codes == [200, 200, 429]
    r = await client.get("/api/planification/stats", headers=auth)
    assert r.json()["code"] == "RATE_LIMITED"
    assert int(r.headers["Retry-After"]) >= 1

    # hors /api : jamais limité
    assert (await client.get("/health")).status_code == 200


def test_rate_limit_nouvelle_fenetre(monkeypatch):
    from starlette.requests import Request

    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(settings, "RATE_LIMIT_RPM", 1)
    now = [1000.0]
    limiter = InMemoryRateLimiter(clock=lambda: now[0])
    request = Request({"type": "http", "method": "GET", "path": "/api/x", "headers": [], "client": ("1.2.3.4", 1)})

    limiter.check(request)
    now[0] += 61
    limiter.check(request)  # nouvelle fenêtre : pas d’exception
