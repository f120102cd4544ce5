from __future__ import annotations

import re
from typing import Any, List, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from gleba.schemas.common import CamelModel

"""
Schemas Référentiel (Pydantic) : espèces et ITPs.

Rôle (fonctionnel) :
- Création : identifiant obligatoire + bornes métier sur chaque champ numérique.
- Mise à jour : tous les champs optionnels, identifiant exclu (il sert de clé).
- Sortie : représentation camelCase lue depuis l’ORM.

Bornes :
- Espèce : rendement 0..100 kg/m², besoins 0..5, couleur #RRGGBB.
- ITP : semaines 1..52, durées 0..365 j, 1..20 rangs, espacement 1..200 cm (rangs : 1..500 cm).
"""

_COULEUR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _required_id(v: Any, code: str, message: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise PydanticCustomError(code, message)
    return v.strip()


def _check_couleur(v: Optional[str]) -> Optional[str]:
    if v is not None and not _COULEUR_RE.match(v):
        raise PydanticCustomError("couleur_invalide", "Format couleur invalide (#RRGGBB)")
    return v


# -----------------------------
# Espèces
# -----------------------------
class EspeceFields(CamelModel):
    model_config = ConfigDict(extra="forbid")

    famille_id: Optional[str] = None
    nom_latin: Optional[str] = Field(default=None, max_length=200)
    rendement: Optional[float] = Field(default=None, ge=0, le=100)
    vivace: Optional[bool] = None
    besoin_n: Optional[float] = Field(default=None, ge=0, le=5)
    besoin_p: Optional[float] = Field(default=None, ge=0, le=5)
    besoin_k: Optional[float] = Field(default=None, ge=0, le=5)
    besoin_eau: Optional[float] = Field(default=None, ge=0, le=5)
    prix_kg: Optional[float] = Field(default=None, ge=0)
    densite: Optional[float] = Field(default=None, ge=0)
    dose_semis: Optional[float] = Field(default=None, ge=0)
    a_planifier: Optional[bool] = None
    couleur: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("couleur")
    @classmethod
    def _couleur(cls, v: Optional[str]) -> Optional[str]:
        return _check_couleur(v)


class EspeceCreate(EspeceFields):
    id: str = Field(default="", max_length=100, validate_default=True)
    vivace: bool = False
    a_planifier: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _id_requis(cls, v: Any) -> str:
        return _required_id(v, "espece_requise", "Le nom de l'espèce est requis")


class EspeceUpdate(EspeceFields):
    # Colonnes NOT NULL : on peut les changer, pas les effacer
    @field_validator("vivace", "a_planifier")
    @classmethod
    def _booleen_requis(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise PydanticCustomError("booleen_requis", "Valeur booléenne requise")
        return v


class EspeceOut(CamelModel):
    id: str
    famille_id: Optional[str] = None
    nom_latin: Optional[str] = None
    rendement: Optional[float] = None
    vivace: bool
    besoin_n: Optional[float] = None
    besoin_p: Optional[float] = None
    besoin_k: Optional[float] = None
    besoin_eau: Optional[float] = None
    prix_kg: Optional[float] = None
    densite: Optional[float] = None
    dose_semis: Optional[float] = None
    a_planifier: bool
    couleur: Optional[str] = None
    description: Optional[str] = None


# -----------------------------
# ITPs
# -----------------------------
class ItpFields(CamelModel):
    model_config = ConfigDict(extra="forbid")

    espece_id: Optional[str] = None
    semaine_semis: Optional[int] = Field(default=None, ge=1, le=52)
    semaine_plantation: Optional[int] = Field(default=None, ge=1, le=52)
    semaine_recolte: Optional[int] = Field(default=None, ge=1, le=52)
    duree_pepiniere: Optional[int] = Field(default=None, ge=0, le=365)
    duree_culture: Optional[int] = Field(default=None, ge=0, le=365)
    nb_rangs: Optional[int] = Field(default=None, ge=1, le=20)
    espacement: Optional[float] = Field(default=None, ge=1, le=200)
    espacement_rangs: Optional[float] = Field(default=None, ge=1, le=500)
    notes: Optional[str] = Field(default=None, max_length=5000)


class ItpCreate(ItpFields):
    id: str = Field(default="", max_length=100, validate_default=True)

    @field_validator("id", mode="before")
    @classmethod
    def _id_requis(cls, v: Any) -> str:
        return _required_id(v, "itp_requis", "L'identifiant de l'ITP est requis")


class ItpUpdate(ItpFields):
    pass


class ItpOut(CamelModel):
    id: str
    espece_id: Optional[str] = None
    semaine_semis: Optional[int] = None
    semaine_plantation: Optional[int] = None
    semaine_recolte: Optional[int] = None
    duree_pepiniere: Optional[int] = None
    duree_culture: Optional[int] = None
    nb_rangs: Optional[int] = None
    espacement: Optional[float] = None
    espacement_rangs: Optional[float] = None
    notes: Optional[str] = None


# -----------------------------
# Listes paginées
# -----------------------------
class EspeceListResponse(CamelModel):
    data: List[EspeceOut]
    total: int
    page: int
    page_size: int
    total_pages: int


class ItpListResponse(CamelModel):
    data: List[ItpOut]
    total: int
    page: int
    page_size: int
    total_pages: int
