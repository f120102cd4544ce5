from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from gleba.schemas.common import CamelModel, coerce_datetime

"""
Schemas Élevage (Pydantic).

Rôle (fonctionnel) :
- Valide la saisie d’une consommation d’aliment (formulaire élevage) :
  - alimentId : chaîne non vide (“Aliment requis”)
  - lotId : entier optionnel / nullable
  - date : coercition string/number -> datetime, “maintenant” si absente ou nulle
  - quantite : strictement positive (“La quantité doit être positive”)
  - notes : optionnelles, 5000 caractères max
- Sérialise les consommations et leurs statistiques pour le front.
"""

NOTES_MAX_LENGTH = 5000


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ConsommationAlimentCreate(CamelModel):
    """Payload de création d’une consommation (JSON camelCase)."""
    model_config = ConfigDict(extra="ignore")

    aliment_id: str = Field(default="", validate_default=True)
    lot_id: Optional[int] = None
    date: datetime = Field(default_factory=_now)
    quantite: float = Field(..., allow_inf_nan=False)
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)

    @field_validator("aliment_id", mode="before")
    @classmethod
    def _aliment_requis(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise PydanticCustomError("aliment_requis", "Aliment requis")
        return v.strip()

    @field_validator("date", mode="before")
    @classmethod
    def _date_par_defaut(cls, v: Any) -> Any:
        if v is None:
            return _now()
        return coerce_datetime(v)

    @field_validator("quantite")
    @classmethod
    def _quantite_positive(cls, v: float) -> float:
        if v <= 0:
            raise PydanticCustomError("quantite_positive", "La quantité doit être positive")
        return v


class AlimentRef(CamelModel):
    id: str
    nom: str
    type: Optional[str] = None


class LotRef(CamelModel):
    id: int
    nom: str


class ConsommationAlimentOut(CamelModel):
    id: int
    aliment_id: str
    lot_id: Optional[int] = None
    date: datetime
    quantite: float
    notes: Optional[str] = None
    created_at: datetime
    aliment: Optional[AlimentRef] = None
    lot: Optional[LotRef] = None


class ConsommationParAliment(CamelModel):
    aliment_id: str
    nom: str
    total_kg: float
    count: int


class ConsommationStats(CamelModel):
    total_kg: float
    nb_enregistrements: int
    par_aliment: List[ConsommationParAliment]


class ConsommationListResponse(BaseModel):
    data: List[ConsommationAlimentOut]
    stats: ConsommationStats


class ConsommationCreatedResponse(BaseModel):
    data: ConsommationAlimentOut


class SuccessResponse(BaseModel):
    success: bool = True
