from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gleba.db.base import Base

"""
Models Rotation / RotationDetail.

Rôle (fonctionnel) :
- Une rotation est un cycle de nb_annees années ; chaque détail associe une année du cycle
  (1-indexée) à un ITP. Plusieurs détails peuvent partager la même année (cultures associées).
- Les planches pointent vers une rotation ; la planification en déduit les cultures prévues.
"""


class Rotation(Base):
    __tablename__ = "rotations"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    nb_annees: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    details = relationship(
        "RotationDetail",
        back_populates="rotation",
        order_by="RotationDetail.annee",
        cascade="all, delete-orphan",
    )


class RotationDetail(Base):
    __tablename__ = "rotation_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rotation_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("rotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    annee: Mapped[int] = mapped_column(Integer, nullable=False)
    itp_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("itps.id", ondelete="SET NULL"), nullable=True
    )

    rotation = relationship("Rotation", back_populates="details")
    itp = relationship("Itp")
