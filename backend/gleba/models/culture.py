from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gleba.db.base import Base, utcnow

"""
Model Culture.

Rôle (fonctionnel) :
- Culture effectivement mise en place (ou à mettre en place) sur une planche pour une année.
- Créée à la main ou en lot depuis la planification (dates déduites des semaines de l’ITP).

Index :
- (user_id, annee) : toutes les requêtes de planification filtrent sur l’utilisateur et l’année.
"""


class Culture(Base):
    __tablename__ = "cultures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    espece_id: Mapped[str] = mapped_column(String(100), ForeignKey("especes.id"), nullable=False)
    variete_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("varietes.id", ondelete="SET NULL"), nullable=True
    )
    itp_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("itps.id", ondelete="SET NULL"), nullable=True
    )
    planche_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("planches.id", ondelete="SET NULL"), nullable=True, index=True
    )

    annee: Mapped[int] = mapped_column(Integer, nullable=False)
    date_semis: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_plantation: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_recolte: Mapped[date | None] = mapped_column(Date, nullable=True)
    nb_rangs: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    planche = relationship("Planche", back_populates="cultures")

    __table_args__ = (
        Index("ix_cultures_user_annee", "user_id", "annee"),
    )
