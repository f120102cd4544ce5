from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

from gleba.core.settings import settings
from gleba.schemas.common import CamelModel

"""
Schemas Planification (Pydantic).

Rôle (fonctionnel) :
- DTO de lecture calculés par le service de planification (rien n’est persisté) :
  cultures prévues, récoltes prévues par période, besoins en semences / plants,
  associations entre planches voisines, statistiques annuelles.
- Payload de création en lot des cultures prévues.

Notes :
- Tous les champs sortent en camelCase (alias) pour le front.
- Les surfaces sont en m², les quantités en kg, les graines en g.
"""


class CulturePrevue(CamelModel):
    planche_id: str
    planche_longueur: Optional[float] = None
    planche_largeur: Optional[float] = None
    planche_surface: Optional[float] = None
    ilot: Optional[str] = None
    rotation_id: Optional[str] = None
    rotation_annee: int  # année dans le cycle (1, 2, 3…)
    itp_id: Optional[str] = None
    espece_id: Optional[str] = None
    espece_couleur: Optional[str] = None
    variete_id: Optional[str] = None
    annee: int  # année réelle
    semaine_semis: Optional[int] = None
    semaine_plantation: Optional[int] = None
    semaine_recolte: Optional[int] = None
    duree_culture: Optional[int] = None
    nb_rangs: Optional[int] = None
    espacement: Optional[float] = None
    surface: float
    existante: bool
    culture_id: Optional[int] = None


class EspeceRecolte(CamelModel):
    espece_id: str
    espece_couleur: Optional[str] = None
    quantite: float
    surface: float


class RecoltePrevue(CamelModel):
    periode: str  # "Janvier"… ou "S1"…
    periode_num: int
    especes: List[EspeceRecolte]
    total_kg: float
    total_surface: float


class BesoinSemence(CamelModel):
    espece_id: str
    espece_couleur: Optional[str] = None
    variete_id: Optional[str] = None
    surface_totale: float = 0
    nb_plants: int = 0
    graines_necessaires: int = 0
    stock_actuel: float = 0
    nb_graines_g: Optional[float] = None
    a_commander: float = 0


class PlancheBesoin(CamelModel):
    planche_id: str
    surface: float
    nb_plants: int


class BesoinPlant(CamelModel):
    espece_id: str
    espece_couleur: Optional[str] = None
    variete_id: Optional[str] = None
    nb_plants: int = 0
    semaine_plantation: Optional[int] = None
    stock_actuel: int = 0
    a_commander: int = 0
    cultures: List[PlancheBesoin] = Field(default_factory=list)


class CultureVoisine(CamelModel):
    planche_id: str
    espece_id: Optional[str] = None


class AssociationCulture(CamelModel):
    planche_id: str
    ilot: Optional[str] = None
    culture_espece_id: Optional[str] = None
    culture_semaine: Optional[int] = None
    planches_voisines: List[str]
    cultures_voisines: List[CultureVoisine]


class StatsPlanification(CamelModel):
    total_cultures: int
    cultures_existantes: int
    cultures_a_creer: int
    surface_totale: float
    recoltes_totales: float
    nb_especes: int


class StatsPlanificationResponse(StatsPlanification):
    annee: int


# -----------------------------
# Réponses des listes
# -----------------------------
class CulturesPrevuesStats(CamelModel):
    total: int
    existantes: int
    a_creer: int
    surface_totale: float
    par_espece: Dict[str, int]
    par_ilot: Dict[str, int]


class CulturesPrevuesResponse(CamelModel):
    data: List[CulturePrevue]
    stats: CulturesPrevuesStats
    annee: int
    group_by: str


class RecoltesPrevuesStats(CamelModel):
    total_annee: float
    surface_totale: float
    meilleure_periode: str
    meilleure_quantite: float


class RecoltesPrevuesResponse(CamelModel):
    data: List[RecoltePrevue]
    stats: RecoltesPrevuesStats
    annee: int
    group_by: str


class SemencesStats(CamelModel):
    nb_especes: int
    total_plants: int
    total_graines: int
    total_a_commander: float
    especes_sans_stock: int


class SemencesResponse(CamelModel):
    data: List[BesoinSemence]
    stats: SemencesStats
    annee: int


class PlantsStats(CamelModel):
    nb_especes: int
    total_plants: int
    total_cultures: int
    total_a_commander: int
    especes_sans_stock: int
    par_semaine: Dict[int, int]


class PlantsResponse(CamelModel):
    data: List[BesoinPlant]
    stats: PlantsStats
    annee: int


class AssociationsStats(CamelModel):
    total_planches: int
    planches_avec_voisins: int


class AssociationsResponse(CamelModel):
    data: List[AssociationCulture]
    stats: AssociationsStats
    annee: int


# -----------------------------
# Création en lot
# -----------------------------
class CultureACreer(CamelModel):
    planche_id: str = Field(..., min_length=1)
    itp_id: str = Field(..., min_length=1)
    annee: int = Field(..., ge=settings.YEAR_MIN, le=settings.YEAR_MAX)
    variete_id: Optional[str] = None


class CreerCulturesRequest(CamelModel):
    cultures: List[CultureACreer]

    @field_validator("cultures")
    @classmethod
    def _non_vide(cls, v: List[CultureACreer]) -> List[CultureACreer]:
        if not v:
            raise PydanticCustomError("aucune_culture", "Aucune culture a creer")
        return v


class CultureCreee(CamelModel):
    id: int
    planche_id: str
    espece_id: str


class CreerCulturesResponse(BaseModel):
    success: bool = True
    created: int
    cultures: List[CultureCreee]


def round2(value: Any) -> float:
    """Arrondi d’affichage à 2 décimales, demi vers le haut (surfaces, kg)."""
    return math.floor(float(value or 0) * 100 + 0.5) / 100
