from __future__ import annotations

from sqlalchemy import Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gleba.db.base import Base

"""
Model Planche.

Rôle (fonctionnel) :
- Planche de culture d’un utilisateur (dimensions en mètres, îlot d’appartenance).
- rotation_id + rotation_debut : la planche suit une rotation dont l’année 1 tombe en rotation_debut.
  Sans rotation_debut, la planification suppose un démarrage ROTATION_LOOKBACK_YEARS ans plus tôt.
- planches_influencees : ids des planches voisines, séparés par des virgules ("A1,A3").
"""


class Planche(Base):
    __tablename__ = "planches"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    rotation_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("rotations.id", ondelete="SET NULL"), nullable=True, index=True
    )
    rotation_debut: Mapped[int | None] = mapped_column(Integer, nullable=True)

    longueur: Mapped[float | None] = mapped_column(Float, nullable=True)
    largeur: Mapped[float | None] = mapped_column(Float, nullable=True)
    surface: Mapped[float | None] = mapped_column(Float, nullable=True)

    ilot: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    planches_influencees: Mapped[str | None] = mapped_column(Text, nullable=True)

    rotation = relationship("Rotation")
    cultures = relationship("Culture", back_populates="planche")
