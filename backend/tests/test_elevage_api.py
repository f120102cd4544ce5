from sqlalchemy import select

from gleba.models import Lot, UserStockAliment

URL = "/api/elevage/consommations-aliments"


async def _stock(db, user_id, aliment_id):
    return (
        await db.execute(
            select(UserStockAliment.stock).where(
                UserStockAliment.user_id == user_id, UserStockAliment.aliment_id == aliment_id
            )
        )
    ).scalar_one_or_none()


async def test_creation_decremente_le_stock(client, db, user, auth, aliments):
    db.add(UserStockAliment(user_id=user.id, aliment_id="ble", stock=50))
    await db.commit()

    r = await client.post(URL, json={"alimentId": "ble", "quantite": 2.5, "lotId": aliments.id}, headers=auth)

    assert r.status_code == 201
    data = r.json()["data"]
    assert data["alimentId"] == "ble"
    assert data["quantite"] == 2.5
    assert data["aliment"]["nom"] == "Blé"
    assert data["lot"]["nom"] == "Poules pondeuses"
    assert await _stock(db, user.id, "ble") == 47.5


async def test_creation_sans_stock_part_en_negatif(client, db, user, auth, aliments):
    r = await client.post(URL, json={"alimentId": "mais", "quantite": 3}, headers=auth)

    assert r.status_code == 201
    assert await _stock(db, user.id, "mais") == -3


async def test_creation_payload_invalide(client, auth, aliments):
    r = await client.post(URL, json={"alimentId": "", "quantite": -1}, headers=auth)

    assert r.status_code == 422
    body = r.json()
    assert body["error"] == "Données invalides"
    messages = [m for msgs in body["details"]["fieldErrors"].values() for m in msgs]
    assert "Aliment requis" in messages
    assert "La quantité doit être positive" in messages


async def test_creation_aliment_inconnu(client, auth, aliments):
    r = await client.post(URL, json={"alimentId": "soja", "quantite": 1}, headers=auth)
    assert r.status_code == 404
    assert r.json()["error"] == "Aliment non trouvé"


async def test_creation_lot_d_un_autre_utilisateur(client, db, admin, auth, aliments):
    autre = Lot(user_id=admin.id, nom="Canards")
    db.add(autre)
    await db.commit()

    r = await client.post(URL, json={"alimentId": "ble", "quantite": 1, "lotId": autre.id}, headers=auth)
    assert r.status_code == 404
    assert r.json()["error"] == "Lot non trouvé"


async def test_liste_et_stats(client, auth, aliments):
    for aliment_id, quantite, jour in (("ble", 2, "2025-01-10"), ("ble", 3, "2025-02-10"), ("mais", 1.5, "2025-02-11")):
        r = await client.post(
            URL, json={"alimentId": aliment_id, "quantite": quantite, "date": jour}, headers=auth
        )
        assert r.status_code == 201

    body = (await client.get(URL, headers=auth)).json()
    assert body["stats"]["totalKg"] == 6.5
    assert body["stats"]["nbEnregistrements"] == 3
    assert {p["alimentId"]: p["totalKg"] for p in body["stats"]["parAliment"]} == {"ble": 5, "mais": 1.5}
    # plus récente en premier
    assert [c["quantite"] for c in body["data"]] == [1.5, 3, 2]

    filtre = (await client.get(URL, params={"alimentId": "ble", "dateDebut": "2025-02-01"}, headers=auth)).json()
    assert [c["quantite"] for c in filtre["data"]] == [3]
    assert filtre["stats"]["totalKg"] == 3


async def test_suppression_reincremente_le_stock(client, db, user, auth, aliments):
    created = (await client.post(URL, json={"alimentId": "ble", "quantite": 4}, headers=auth)).json()["data"]
    assert await _stock(db, user.id, "ble") == -4

    r = await client.delete(URL, params={"id": created["id"]}, headers=auth)

    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert await _stock(db, user.id, "ble") == 0
    assert (await client.get(URL, headers=auth)).json()["data"] == []


async def test_suppression_erreurs(client, auth, aliments):
    assert (await client.delete(URL, headers=auth)).status_code == 400
    r = await client.delete(URL, params={"id": 999}, headers=auth)
    assert r.status_code == 404
    assert r.json()["error"] == "Consommation non trouvée"


async def test_consommations_isolees_par_utilisateur(client, auth, admin_auth, aliments):
    created = (await client.post(URL, json={"alimentId": "ble", "quantite": 1}, headers=auth)).json()["data"]

    assert (await client.get(URL, headers=admin_auth)).json()["data"] == []
    r = await client.delete(URL, params={"id": created["id"]}, headers=admin_auth)
    assert r.status_code == 404
