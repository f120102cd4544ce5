from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from gleba.db.base import Base

"""
Model Lot : groupe d’animaux suivi collectivement (ex : "Poules pondeuses 2025").
"""


class Lot(Base):
    __tablename__ = "lots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    nom: Mapped[str] = mapped_column(String(200), nullable=False)
    espece: Mapped[str | None] = mapped_column(String(100), nullable=True)
    effectif: Mapped[int | None] = mapped_column(Integer, nullable=True)
