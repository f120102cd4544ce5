"""
gleba.models

Package ORM (SQLAlchemy) : définition des entités persistées en base.

Rôle (fonctionnel) :
- Comptes et sessions (User, UserSession).
- Référentiel potager (Famille, Espece, Variete, Itp, Rotation, RotationDetail).
- Terrain de l’utilisateur (Planche, Culture).
- Élevage (Aliment, UserStockAliment, Lot, ConsommationAliment).

Importer ce package enregistre toutes les tables dans Base.metadata (Alembic, tests).
"""

from gleba.models.user import User, UserSession
from gleba.models.espece import Famille, Espece, Variete
from gleba.models.itp import Itp
from gleba.models.rotation import Rotation, RotationDetail
from gleba.models.planche import Planche
from gleba.models.culture import Culture
from gleba.models.aliment import Aliment, UserStockAliment
from gleba.models.lot import Lot
from gleba.models.consommation_aliment import ConsommationAliment

__all__ = [
    "User",
    "UserSession",
    "Famille",
    "Espece",
    "Variete",
    "Itp",
    "Rotation",
    "RotationDetail",
    "Planche",
    "Culture",
    "Aliment",
    "UserStockAliment",
    "Lot",
    "ConsommationAliment",
]
