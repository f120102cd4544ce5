from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from gleba.api.deps import parse_annee
from gleba.core.errors import flatten_validation_errors
from gleba.schemas.elevage import ConsommationAlimentCreate
from gleba.schemas.planification import CreerCulturesRequest, round2
from gleba.schemas.referentiel import EspeceCreate, EspeceUpdate, ItpCreate


def _messages(exc: ValidationError) -> list[str]:
    return [e["msg"] for e in exc.errors()]


# -----------------------------
# Consommation d’aliment
# -----------------------------
def test_consommation_valide_date_par_defaut():
    before = datetime.now(timezone.utc)
    c = ConsommationAlimentCreate.model_validate({"alimentId": "ble", "quantite": 2.5})

    assert c.aliment_id == "ble"
    assert c.quantite == 2.5
    assert c.lot_id is None
    assert c.notes is None
    assert c.date >= before


def test_consommation_date_nulle_vaut_maintenant():
    c = ConsommationAlimentCreate.model_validate({"alimentId": "ble", "quantite": 1, "date": None})
    assert (datetime.now(timezone.utc) - c.date).total_seconds() < 5


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2025-03-14", datetime(2025, 3, 14, tzinfo=timezone.utc)),
        ("2025-03-14T08:30:00Z", datetime(2025, 3, 14, 8, 30, tzinfo=timezone.utc)),
        (1700000000000, datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)),
    ],
)
def test_consommation_date_coercee(raw, expected):
    c = ConsommationAlimentCreate.model_validate({"alimentId": "ble", "quantite": 1, "date": raw})
    assert c.date == expected


def test_consommation_date_illisible():
    with pytest.raises(ValidationError):
        ConsommationAlimentCreate.model_validate({"alimentId": "ble", "quantite": 1, "date": "pas une date"})


@pytest.mark.parametrize("quantite", [0, -1, -0.01])
def test_consommation_quantite_positive(quantite):
    with pytest.raises(ValidationError) as exc:
        ConsommationAlimentCreate.model_validate({"alimentId": "ble", "quantite": quantite})
    assert "La quantité doit être positive" in _messages(exc.value)


@pytest.mark.parametrize("payload", [{}, {"alimentId": None}, {"alimentId": ""}, {"alimentId": "   "}])
def test_consommation_aliment_requis(payload):
    with pytest.raises(ValidationError) as exc:
        ConsommationAlimentCreate.model_validate({**payload, "quantite": 1})
    assert "Aliment requis" in _messages(exc.value)


def test_consommation_notes_bornees():
    ConsommationAlimentCreate.model_validate({"alimentId": "ble", "quantite": 1, "notes": "x" * 5000})
    with pytest.raises(ValidationError):
        ConsommationAlimentCreate.model_validate({"alimentId": "ble", "quantite": 1, "notes": "x" * 5001})


def test_consommation_lot_nullable():
    c = ConsommationAlimentCreate.model_validate({"alimentId": "ble", "quantite": 1, "lotId": None})
    assert c.lot_id is None
    c = ConsommationAlimentCreate.model_validate({"alimentId": "ble", "quantite": 1, "lotId": 3})
    assert c.lot_id == 3


def test_erreurs_aplaties_par_champ():
    with pytest.raises(ValidationError) as exc:
        ConsommationAlimentCreate.model_validate({"alimentId": "ble", "quantite": -3})

    flat = flatten_validation_errors(exc.value.errors())
    assert flat["fieldErrors"] == {"quantite": ["La quantité doit être positive"]}
    assert flat["formErrors"] == []


def test_erreurs_sans_champ_vont_dans_form_errors():
    flat = flatten_validation_errors([{"loc": ("body",), "msg": "JSON invalide"}])
    assert flat == {"fieldErrors": {}, "formErrors": ["JSON invalide"]}


# -----------------------------
# Référentiel
# -----------------------------
def test_espece_nom_requis():
    with pytest.raises(ValidationError) as exc:
        EspeceCreate.model_validate({"rendement": 2})
    assert "Le nom de l'espèce est requis" in _messages(exc.value)


def test_espece_defauts_et_bornes():
    e = EspeceCreate.model_validate({"id": "Tomate", "rendement": 6, "couleur": "#E53935"})
    assert e.vivace is False
    assert e.a_planifier is True

    with pytest.raises(ValidationError):
        EspeceCreate.model_validate({"id": "Tomate", "rendement": 101})
    with pytest.raises(ValidationError):
        EspeceCreate.model_validate({"id": "Tomate", "besoinN": 6})


def test_espece_couleur_invalide():
    with pytest.raises(ValidationError) as exc:
        EspeceUpdate.model_validate({"couleur": "rouge"})
    assert "Format couleur invalide (#RRGGBB)" in _messages(exc.value)


def test_espece_update_refuse_l_identifiant():
    with pytest.raises(ValidationError):
        EspeceUpdate.model_validate({"id": "Autre"})


@pytest.mark.parametrize("champ", ["vivace", "aPlanifier"])
def test_espece_update_refuse_booleen_nul(champ):
    assert EspeceUpdate.model_validate({champ: False}).model_dump(exclude_unset=True)
    with pytest.raises(ValidationError) as exc:
        EspeceUpdate.model_validate({champ: None})
    assert "Valeur booléenne requise" in _messages(exc.value)


def test_itp_bornes():
    ItpCreate.model_validate({"id": "Tomate standard", "semaineSemis": 52, "nbRangs": 20})
    with pytest.raises(ValidationError):
        ItpCreate.model_validate({"id": "X", "semaineSemis": 53})
    with pytest.raises(ValidationError):
        ItpCreate.model_validate({"id": "X", "espacement": 0})
    with pytest.raises(ValidationError) as exc:
        ItpCreate.model_validate({"semaineSemis": 10})
    assert "L'identifiant de l'ITP est requis" in _messages(exc.value)


def test_creer_cultures_liste_vide():
    with pytest.raises(ValidationError) as exc:
        CreerCulturesRequest.model_validate({"cultures": []})
    assert "Aucune culture a creer" in _messages(exc.value)


@pytest.mark.parametrize("annee", [0, -5, 1899, 2201, 10000])
def test_creer_cultures_annee_bornee(annee):
    item = {"plancheId": "A1", "itpId": "Tomate standard", "annee": annee}
    with pytest.raises(ValidationError):
        CreerCulturesRequest.model_validate({"cultures": [item]})

    item["annee"] = 2024
    assert CreerCulturesRequest.model_validate({"cultures": [item]}).cultures[0].annee == 2024


# -----------------------------
# Paramètre ?annee=
# -----------------------------
TODAY = date(2026, 5, 1)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024", 2024),
        (" 2030 ", 2030),
        (None, 2026),
        ("", 2026),
        ("abc", 2026),
        ("2024.5", 2026),
        ("NaN", 2026),
        ("1899", 2026),
        ("99999", 2026),
        ("2_024", 2026),
        ("\u0662\u0660\u0662\u0664", 2026),
    ],
)
def test_parse_annee_valide_ou_defaut(raw, expected):
    assert parse_annee(raw, TODAY) == expected


def test_round2_arrondit_demi_vers_le_haut():
    assert round2(0.125) == 0.13
    assert round2(None) == 0
    assert round2(45) == 45.0
