from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gleba.db.base import Base

"""
Models Aliment / UserStockAliment (élevage).

Rôle (fonctionnel) :
- Aliment : référence globale (nom, type, valeurs nutritives, prix indicatif).
- UserStockAliment : stock propre à chaque utilisateur (kg) pour un aliment.
  Décrémenté à chaque consommation, ré-incrémenté à la suppression ; peut devenir négatif
  si des consommations sont saisies avant tout inventaire.
"""


class Aliment(Base):
    __tablename__ = "aliments"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    nom: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    especes_cibles: Mapped[str | None] = mapped_column(String(255), nullable=True)
    proteines: Mapped[float | None] = mapped_column(Float, nullable=True)  # %
    energie: Mapped[float | None] = mapped_column(Float, nullable=True)  # kcal/kg
    prix: Mapped[float | None] = mapped_column(Float, nullable=True)  # €/kg
    stock_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    consommations = relationship("ConsommationAliment", back_populates="aliment")


class UserStockAliment(Base):
    __tablename__ = "user_stocks_aliments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    aliment_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("aliments.id", ondelete="CASCADE"), nullable=False
    )
    stock: Mapped[float | None] = mapped_column(Float, nullable=True)
    date_stock: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    stock_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    prix: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "aliment_id", name="uq_user_stocks_aliments_user_aliment"),
    )
