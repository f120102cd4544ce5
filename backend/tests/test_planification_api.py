from datetime import date

from gleba.services import planification_service as svc


async def test_stats_sans_session_court_circuite_le_calcul(client, monkeypatch):
    called = False

    async def _spy(*args, **kwargs):
        nonlocal called
        called = True

    monkeypatch.setattr(svc, "get_stats_planification", _spy)

    r = await client.get("/api/planification/stats")

    assert r.status_code == 401
    body = r.json()
    assert body["error"] == "Non autorisé"
    assert body["code"] == "UNAUTHORIZED"
    assert called is False


async def test_stats_jeton_invalide(client):
    r = await client.get("/api/planification/stats", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


async def test_stats_annee_renvoyee(client, auth, planning):
    r = await client.get("/api/planification/stats", params={"annee": "2024"}, headers=auth)

    assert r.status_code == 200
    body = r.json()
    assert body["annee"] == 2024
    assert body == {
        "totalCultures": 1,
        "culturesExistantes": 0,
        "culturesACreer": 1,
        "surfaceTotale": 7.5,
        "recoltesTotales": 45.0,
        "nbEspeces": 1,
        "annee": 2024,
    }


async def test_stats_annee_par_defaut(client, auth):
    r = await client.get("/api/planification/stats", headers=auth)
    assert r.status_code == 200
    assert r.json()["annee"] == date.today().year


async def test_stats_annee_invalide_vaut_annee_courante(client, auth):
    for raw in ("abc", "NaN", "99999", ""):
        r = await client.get("/api/planification/stats", params={"annee": raw}, headers=auth)
        assert r.status_code == 200
        assert r.json()["annee"] == date.today().year


async def test_stats_sans_donnees(client, auth):
    r = await client.get("/api/planification/stats", params={"annee": 2024}, headers=auth)
    assert r.status_code == 200
    assert r.json()["totalCultures"] == 0


async def test_stats_erreur_interne(client, auth, monkeypatch):
    async def _boom(*args, **kwargs):
        raise RuntimeError("connexion perdue vers 10.0.0.3")

    monkeypatch.setattr(svc, "get_stats_planification", _boom)

    r = await client.get("/api/planification/stats", headers=auth)

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Erreur lors de la recuperation des statistiques"
    assert body["details"] == "Erreur interne du serveur"
    assert "10.0.0.3" not in r.text


async def test_cultures_prevues(client, auth, planning):
    r = await client.get("/api/planification/cultures-prevues", params={"annee": 2025}, headers=auth)

    assert r.status_code == 200
    body = r.json()
    assert body["groupBy"] == "espece"
    assert [c["especeId"] for c in body["data"]] == ["Haricot"]
    assert body["data"][0]["plancheId"] == "A1"
    assert body["data"][0]["existante"] is False
    assert body["stats"]["parEspece"] == {"Haricot": 1}
    assert body["stats"]["parIlot"] == {"A": 1}
    assert body["stats"]["aCreer"] == 1


async def test_recoltes_prevues(client, auth, planning):
    r = await client.get("/api/planification/recoltes-prevues", params={"annee": 2024}, headers=auth)

    assert r.status_code == 200
    body = r.json()
    assert len(body["data"]) == 12
    assert body["stats"] == {
        "totalAnnee": 45.0,
        "surfaceTotale": 7.5,
        "meilleurePeriode": "Juillet",
        "meilleureQuantite": 45.0,
    }


async def test_recoltes_prevues_group_by_invalide(client, auth):
    r = await client.get("/api/planification/recoltes-prevues", params={"groupBy": "jour"}, headers=auth)
    assert r.status_code == 422
    assert r.json()["code"] == "VALIDATION_ERROR"


async def test_plants_et_semences(client, auth, planning):
    plants = (await client.get("/api/planification/plants", params={"annee": 2024}, headers=auth)).json()
    assert plants["stats"]["totalPlants"] == 40
    assert plants["stats"]["totalCultures"] == 1
    assert plants["stats"]["parSemaine"] == {"18": 40}

    semences = (await client.get("/api/planification/semences", params={"annee": 2025}, headers=auth)).json()
    assert semences["stats"]["nbEspeces"] == 1
    assert semences["data"][0]["especeId"] == "Haricot"
    assert semences["data"][0]["nbPlants"] == 300  # floor(1000 / 10) * 3


async def test_associations(client, auth, planning):
    r = await client.get("/api/planification/associations", params={"annee": 2024}, headers=auth)
    body = r.json()
    assert body["stats"] == {"totalPlanches": 1, "planchesAvecVoisins": 1}
    assert body["data"][0]["planchesVoisines"] == ["A2"]
    assert body["data"][0]["culturesVoisines"] == []


async def test_creer_cultures(client, auth, planning):
    payload = {"cultures": [{"plancheId": "A1", "itpId": "Tomate standard", "annee": 2024}]}

    r = await client.post("/api/planification/creer-cultures", json=payload, headers=auth)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["created"] == 1
    assert body["cultures"][0]["especeId"] == "Tomate"

    stats = (await client.get("/api/planification/stats", params={"annee": 2024}, headers=auth)).json()
    assert stats["culturesExistantes"] == 1


async def test_creer_cultures_annee_hors_bornes(client, auth, planning):
    payload = {"cultures": [{"plancheId": "A1", "itpId": "Tomate standard", "annee": 0}]}

    r = await client.post("/api/planification/creer-cultures", json=payload, headers=auth)

    assert r.status_code == 422
    assert r.json()["code"] == "VALIDATION_ERROR"
    assert "cultures.0.annee" in r.json()["details"]["fieldErrors"]


async def test_creer_cultures_echec_base(client, auth, planning, monkeypatch):
    async def _boom(*args, **kwargs):
        raise RuntimeError("disque plein")

    monkeypatch.setattr(svc, "creer_cultures_batch", _boom)
    payload = {"cultures": [{"plancheId": "A1", "itpId": "Tomate standard", "annee": 2024}]}

    r = await client.post("/api/planification/creer-cultures", json=payload, headers=auth)

    assert r.status_code == 500
    assert r.json()["error"] == "Erreur lors de la creation des cultures"
    assert "disque plein" not in r.text


async def test_creer_cultures_liste_vide(client, auth):
    r = await client.post("/api/planification/creer-cultures", json={"cultures": []}, headers=auth)
    assert r.status_code == 422
    assert r.json()["details"]["fieldErrors"]["cultures"] == ["Aucune culture a creer"]
