from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gleba.db.base import Base, utcnow

"""
Model ConsommationAliment.

Rôle (fonctionnel) :
- Une distribution d’aliment (kg) à une date donnée, éventuellement à un lot d’animaux.
- Jamais modifiée après création : une erreur de saisie se corrige par suppression + nouvelle saisie.

Invariants :
- quantite > 0 (contrainte CHECK, en plus de la validation API)
- notes : 5000 caractères max (validation API)

Index :
- (user_id, date) : listes et rapports filtrés par période.
"""


class ConsommationAliment(Base):
    __tablename__ = "consommations_aliments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    aliment_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("aliments.id"), nullable=False, index=True
    )
    lot_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("lots.id", ondelete="SET NULL"), nullable=True, index=True
    )

    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    quantite: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    aliment = relationship("Aliment", back_populates="consommations", lazy="joined")
    lot = relationship("Lot", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantite > 0", name="quantite_positive"),
        Index("ix_consommations_aliments_user_date", "user_id", "date"),
    )
