from __future__ import annotations

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gleba.db.base import Base

"""
Models Famille / Espece / Variete (référentiel potager).

Rôle (fonctionnel) :
- Données de référence, chargées une fois (seed / import) puis lues par la planification.
- Espece.id est le nom usuel de l’espèce (ex : "Tomate"), utilisé comme clé par les ITPs.

Unités :
- rendement : kg/m² ; prix_kg : €/kg
- besoin_* : échelle 0..5
- densite : plants/m² ; dose_semis : g/m²
"""


class Famille(Base):
    __tablename__ = "familles"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    couleur: Mapped[str | None] = mapped_column(String(7), nullable=True)

    especes = relationship("Espece", back_populates="famille")


class Espece(Base):
    __tablename__ = "especes"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    famille_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("familles.id", ondelete="SET NULL"), nullable=True, index=True
    )
    nom_latin: Mapped[str | None] = mapped_column(String(200), nullable=True)

    rendement: Mapped[float | None] = mapped_column(Float, nullable=True)
    vivace: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Besoins nutritifs et hydriques
    besoin_n: Mapped[float | None] = mapped_column(Float, nullable=True)
    besoin_p: Mapped[float | None] = mapped_column(Float, nullable=True)
    besoin_k: Mapped[float | None] = mapped_column(Float, nullable=True)
    besoin_eau: Mapped[float | None] = mapped_column(Float, nullable=True)

    prix_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    densite: Mapped[float | None] = mapped_column(Float, nullable=True)
    dose_semis: Mapped[float | None] = mapped_column(Float, nullable=True)

    a_planifier: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    couleur: Mapped[str | None] = mapped_column(String(7), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    famille = relationship("Famille", back_populates="especes")
    varietes = relationship("Variete", back_populates="espece")
    itps = relationship("Itp", back_populates="espece")


class Variete(Base):
    __tablename__ = "varietes"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    espece_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("especes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    nb_graines_g: Mapped[float | None] = mapped_column(Float, nullable=True)
    stock_graines: Mapped[float | None] = mapped_column(Float, nullable=True)  # g
    stock_plants: Mapped[int | None] = mapped_column(Integer, nullable=True)

    espece = relationship("Espece", back_populates="varietes")
