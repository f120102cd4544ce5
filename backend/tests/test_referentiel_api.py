from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession


async def test_lecture_pour_toute_session(client, auth, planning):
    r = await client.get("/api/especes", headers=auth)

    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 2
    assert body["totalPages"] == 1
    assert [e["id"] for e in body["data"]] == ["Haricot", "Tomate"]

    tomate = (await client.get("/api/especes/Tomate", headers=auth)).json()
    assert tomate["rendement"] == 6.0
    assert tomate["aPlanifier"] is True


async def test_liste_especes_recherche_et_tri(client, auth, planning):
    r = await client.get("/api/especes", params={"search": "tom"}, headers=auth)
    assert [e["id"] for e in r.json()["data"]] == ["Tomate"]

    r = await client.get("/api/especes", params={"sortBy": "rendement", "sortOrder": "desc"}, headers=auth)
    assert [e["id"] for e in r.json()["data"]] == ["Tomate", "Haricot"]


async def test_espece_inconnue(client, auth):
    r = await client.get("/api/especes/Panais", headers=auth)
    assert r.status_code == 404
    assert r.json()["error"] == 'Espèce "Panais" non trouvée'


async def test_ecriture_reservee_aux_admins(client, auth):
    r = await client.post("/api/especes", json={"id": "Panais"}, headers=auth)
    assert r.status_code == 403
    assert r.json()["code"] == "FORBIDDEN"


async def test_creation_espece(client, admin_auth, planning):
    payload = {"id": "Panais", "familleId": "Fabacées", "rendement": 2.5, "couleur": "#F5F5DC"}

    r = await client.post("/api/especes", json=payload, headers=admin_auth)
    assert r.status_code == 201
    assert r.json()["id"] == "Panais"
    assert r.json()["vivace"] is False

    r = await client.post("/api/especes", json=payload, headers=admin_auth)
    assert r.status_code == 409


async def test_creation_espece_invalide(client, admin_auth):
    r = await client.post("/api/especes", json={"rendement": 500}, headers=admin_auth)

    assert r.status_code == 422
    field_errors = r.json()["details"]["fieldErrors"]
    assert field_errors["id"] == ["Le nom de l'espèce est requis"]
    assert "rendement" in field_errors


async def test_mise_a_jour_espece(client, admin_auth, planning):
    r = await client.patch("/api/especes/Tomate", json={"prixKg": 4.2}, headers=admin_auth)
    assert r.status_code == 200
    assert r.json()["prixKg"] == 4.2
    assert r.json()["rendement"] == 6.0

    r = await client.patch("/api/especes/Tomate", json={"couleur": "rouge"}, headers=admin_auth)
    assert r.status_code == 422
    assert r.json()["details"]["fieldErrors"]["couleur"] == ["Format couleur invalide (#RRGGBB)"]


async def test_mise_a_jour_espece_booleen_nul(client, admin_auth, planning):
    for champ in ("vivace", "aPlanifier"):
        r = await client.patch("/api/especes/Tomate", json={champ: None}, headers=admin_auth)
        assert r.status_code == 422
        assert r.json()["details"]["fieldErrors"][champ] == ["Valeur booléenne requise"]

    tomate = (await client.get("/api/especes/Tomate", headers=admin_auth)).json()
    assert tomate["vivace"] is False
    assert tomate["aPlanifier"] is True


async def test_mise_a_jour_espece_echec_base(client, admin_auth, planning, monkeypatch):
    async def _boom(self):
        raise SQLAlchemyError("verrou expiré sur especes")

    monkeypatch.setattr(AsyncSession, "commit", _boom)

    r = await client.patch("/api/especes/Tomate", json={"prixKg": 5}, headers=admin_auth)

    assert r.status_code == 500
    assert r.json()["error"] == "Erreur lors de la mise a jour de l'espece"
    assert r.json()["details"] == "Erreur interne du serveur"
    assert "verrou" not in r.text


async def test_creation_itp_echec_base(client, admin_auth, planning, monkeypatch):
    async def _boom(self):
        raise SQLAlchemyError("connexion perdue")

    monkeypatch.setattr(AsyncSession, "commit", _boom)

    r = await client.post("/api/itps", json={"id": "Tomate tardive", "especeId": "Tomate"}, headers=admin_auth)

    assert r.status_code == 500
    assert r.json()["error"] == "Erreur lors de la creation de l'ITP"


async def test_suppression_espece_utilisee(client, admin_auth, planning):
    r = await client.delete("/api/especes/Tomate", headers=admin_auth)
    assert r.status_code == 409


async def test_itps(client, auth, admin_auth, planning):
    body = (await client.get("/api/itps", params={"especeId": "Tomate"}, headers=auth)).json()
    assert [i["id"] for i in body["data"]] == ["Tomate standard"]

    r = await client.post(
        "/api/itps", json={"id": "Tomate tardive", "especeId": "Tomate", "semaineSemis": 14}, headers=admin_auth
    )
    assert r.status_code == 201
    assert r.json()["semaineSemis"] == 14

    r = await client.post("/api/itps", json={"id": "Tomate tardive"}, headers=admin_auth)
    assert r.status_code == 409

    r = await client.post("/api/itps", json={"id": "Panais", "especeId": "Panais"}, headers=admin_auth)
    assert r.status_code == 400

    r = await client.patch("/api/itps/Tomate tardive", json={"nbRangs": 3}, headers=admin_auth)
    assert r.json()["nbRangs"] == 3

    # utilisé par la rotation R2
    assert (await client.delete("/api/itps/Tomate standard", headers=admin_auth)).status_code == 409
    assert (await client.delete("/api/itps/Tomate tardive", headers=admin_auth)).status_code == 200
