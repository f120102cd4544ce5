from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gleba.core.errors import AppHTTPException
from gleba.models.aliment import Aliment, UserStockAliment
from gleba.models.consommation_aliment import ConsommationAliment
from gleba.models.lot import Lot
from gleba.schemas.elevage import (
    ConsommationAlimentCreate,
    ConsommationAlimentOut,
    ConsommationParAliment,
    ConsommationStats,
)

"""
Élevage Service : consommations d’aliments.

Rôle (fonctionnel) :
- Liste les consommations d’un utilisateur (filtres aliment / lot / période) avec stats agrégées.
- Enregistre une consommation et décrémente le stock utilisateur de l’aliment,
  dans une même transaction (le stock démarre en négatif si l’utilisateur n’en avait pas).
- Supprime une consommation et ré-incrémente le stock (même transaction).

Notes :
- Les consommations ne sont jamais modifiées : pas d’opération d’update.
- Toute requête est filtrée par user_id ; un lot ou une consommation d’un autre utilisateur
  est traité comme inexistant (404).
"""

log = logging.getLogger("gleba.elevage")

DEFAULT_LIMIT = 100


@dataclass(frozen=True)
class ConsommationFiltres:
    aliment_id: Optional[str] = None
    lot_id: Optional[int] = None
    date_debut: Optional[datetime] = None
    date_fin: Optional[datetime] = None


class ConsommationService:
    """Cas d’usage des consommations d’aliments pour un utilisateur donné."""

    def __init__(self, db: AsyncSession, user_id: str) -> None:
        self.db = db
        self.user_id = user_id

    def _conditions(self, filtres: ConsommationFiltres) -> list:
        conds = [ConsommationAliment.user_id == self.user_id]
        if filtres.aliment_id:
            conds.append(ConsommationAliment.aliment_id == filtres.aliment_id)
        if filtres.lot_id is not None:
            conds.append(ConsommationAliment.lot_id == filtres.lot_id)
        if filtres.date_debut is not None:
            conds.append(ConsommationAliment.date >= filtres.date_debut)
        if filtres.date_fin is not None:
            conds.append(ConsommationAliment.date <= filtres.date_fin)
        return conds

    async def lister(
        self,
        filtres: ConsommationFiltres,
        limit: int = DEFAULT_LIMIT,
    ) -> tuple[List[ConsommationAlimentOut], ConsommationStats]:
        conds = self._conditions(filtres)

        rows = (
            await self.db.execute(
                select(ConsommationAliment)
                .where(*conds)
                .order_by(ConsommationAliment.date.desc(), ConsommationAliment.id.desc())
                .limit(limit)
            )
        ).scalars().unique().all()

        # Stats globales (sur tout le filtre, pas seulement la page retournée)
        total_kg, nb = (
            await self.db.execute(
                select(func.sum(ConsommationAliment.quantite), func.count(ConsommationAliment.id)).where(*conds)
            )
        ).one()

        par_aliment_rows = (
            await self.db.execute(
                select(
                    ConsommationAliment.aliment_id,
                    Aliment.nom,
                    func.sum(ConsommationAliment.quantite).label("total_kg"),
                    func.count(ConsommationAliment.id).label("cnt"),
                )
                .join(Aliment, Aliment.id == ConsommationAliment.aliment_id)
                .where(*conds)
                .group_by(ConsommationAliment.aliment_id, Aliment.nom)
                .order_by(ConsommationAliment.aliment_id)
            )
        ).all()

        stats = ConsommationStats(
            total_kg=float(total_kg or 0),
            nb_enregistrements=int(nb or 0),
            par_aliment=[
                ConsommationParAliment(
                    aliment_id=r.aliment_id,
                    nom=r.nom or r.aliment_id,
                    total_kg=float(r.total_kg or 0),
                    count=int(r.cnt),
                )
                for r in par_aliment_rows
            ],
        )
        return [ConsommationAlimentOut.model_validate(c) for c in rows], stats

    async def _stock(self, aliment_id: str) -> Optional[UserStockAliment]:
        return (
            await self.db.execute(
                select(UserStockAliment).where(
                    UserStockAliment.user_id == self.user_id,
                    UserStockAliment.aliment_id == aliment_id,
                )
            )
        ).scalars().first()

    async def _ajuster_stock(self, aliment_id: str, delta: float) -> None:
        """Upsert du stock utilisateur : stock += delta (création à delta si absent)."""
        now = datetime.now(timezone.utc)
        stock = await self._stock(aliment_id)
        if stock is None:
            self.db.add(
                UserStockAliment(user_id=self.user_id, aliment_id=aliment_id, stock=delta, date_stock=now)
            )
            return
        stock.stock = (stock.stock or 0) + delta
        stock.date_stock = now

    async def creer(self, payload: ConsommationAlimentCreate) -> ConsommationAlimentOut:
        if await self.db.get(Aliment, payload.aliment_id) is None:
            raise AppHTTPException(404, "NOT_FOUND", "Aliment non trouvé")

        if payload.lot_id is not None:
            lot = (
                await self.db.execute(
                    select(Lot.id).where(Lot.id == payload.lot_id, Lot.user_id == self.user_id)
                )
            ).first()
            if lot is None:
                raise AppHTTPException(404, "NOT_FOUND", "Lot non trouvé")

        conso = ConsommationAliment(
            user_id=self.user_id,
            aliment_id=payload.aliment_id,
            lot_id=payload.lot_id,
            date=payload.date,
            quantite=payload.quantite,
            notes=payload.notes,
        )
        self.db.add(conso)
        await self._ajuster_stock(payload.aliment_id, -payload.quantite)
        await self.db.commit()

        created = (
            await self.db.execute(
                select(ConsommationAliment)
                .where(ConsommationAliment.id == conso.id)
                .execution_options(populate_existing=True)
            )
        ).scalars().first()

        log.info(
            "consommation_created",
            extra={
                "user_id": self.user_id,
                "aliment_id": payload.aliment_id,
                "lot_id": payload.lot_id,
                "quantite": payload.quantite,
            },
        )
        return ConsommationAlimentOut.model_validate(created)

    async def supprimer(self, consommation_id: int) -> None:
        existing = (
            await self.db.execute(
                select(ConsommationAliment).where(
                    ConsommationAliment.id == consommation_id,
                    ConsommationAliment.user_id == self.user_id,
                )
            )
        ).scalars().first()
        if existing is None:
            raise AppHTTPException(404, "NOT_FOUND", "Consommation non trouvée")

        await self._ajuster_stock(existing.aliment_id, existing.quantite)
        await self.db.delete(existing)
        await self.db.commit()

        log.info(
            "consommation_deleted",
            extra={"user_id": self.user_id, "aliment_id": existing.aliment_id, "quantite": existing.quantite},
        )
