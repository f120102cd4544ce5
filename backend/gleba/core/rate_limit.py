from __future__ import annotations

import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Tuple

from fastapi import Request

from gleba.core.errors import AppHTTPException
from gleba.core.settings import settings

"""
Core Rate Limit.

Rôle (fonctionnel) :
- Limite les rafales de requêtes sur /api/* (fenêtre fixe de 60 secondes, clé IP + route).
- Seul état en mémoire partagé entre requêtes ; désactivé par défaut (RATE_LIMIT_ENABLED).
- En cas de dépassement : AppHTTPException(429) avec l’en-tête Retry-After.

Note :
- Compteurs locaux au process : avec plusieurs workers, chaque worker a sa propre limite.
"""

WINDOW_SECONDS = 60.0


@dataclass
class _Bucket:
    window_start: float
    count: int


class InMemoryRateLimiter:
    """Compteur par (IP, "METHOD /path"), remis à zéro à chaque nouvelle fenêtre."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._lock = Lock()
        self._clock = clock
        self._buckets: Dict[Tuple[str, str], _Bucket] = {}

    def _client_ip(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def _purge(self, now: float) -> None:
        # Évite la croissance illimitée du dict (IP éphémères)
        expired = [k for k, b in self._buckets.items() if now - b.window_start >= WINDOW_SECONDS]
        for k in expired:
            del self._buckets[k]

    def check(self, request: Request) -> None:
        """Vérifie la limite pour (IP + route). Lève 429 si dépassement."""
        if not settings.RATE_LIMIT_ENABLED:
            return

        limit = int(settings.RATE_LIMIT_RPM or 0)
        if limit <= 0:
            return

        key = (self._client_ip(request), f"{request.method} {request.url.path}")
        now = self._clock()

        with self._lock:
            if len(self._buckets) > 10_000:
                self._purge(now)

            bucket = self._buckets.get(key)
            if bucket is None or (now - bucket.window_start) >= WINDOW_SECONDS:
                self._buckets[key] = _Bucket(window_start=now, count=1)
                return

            bucket.count += 1
            if bucket.count > limit:
                retry_after = max(1, math.ceil(WINDOW_SECONDS - (now - bucket.window_start)))
                raise AppHTTPException(
                    429,
                    "RATE_LIMITED",
                    "Trop de requêtes, veuillez réessayer plus tard",
                    details={"limit_rpm": limit},
                    headers={"Retry-After": str(retry_after)},
                )


# Instance globale importable (utilisée dans le middleware)
rate_limiter = InMemoryRateLimiter()
