from __future__ import annotations

from sqlalchemy import Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gleba.db.base import Base

"""
Model Itp (itinéraire technique de production).

Rôle (fonctionnel) :
- Décrit comment cultiver une espèce : calendrier (semaines 1..52), durées (jours),
  géométrie de plantation (rangs, espacements en cm).
- Rattaché à l’espèce par espece_id ; les rotations référencent des ITPs année par année.
"""


class Itp(Base):
    __tablename__ = "itps"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    espece_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("especes.id", ondelete="SET NULL"), nullable=True, index=True
    )

    semaine_semis: Mapped[int | None] = mapped_column(Integer, nullable=True)
    semaine_plantation: Mapped[int | None] = mapped_column(Integer, nullable=True)
    semaine_recolte: Mapped[int | None] = mapped_column(Integer, nullable=True)

    duree_pepiniere: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duree_culture: Mapped[int | None] = mapped_column(Integer, nullable=True)

    nb_rangs: Mapped[int | None] = mapped_column(Integer, nullable=True)
    espacement: Mapped[float | None] = mapped_column(Float, nullable=True)  # dans le rang
    espacement_rangs: Mapped[float | None] = mapped_column(Float, nullable=True)  # entre rangs

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    espece = relationship("Espece", back_populates="itps")
