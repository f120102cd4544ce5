from fastapi import APIRouter

from gleba import __version__
from gleba.core.settings import settings

"""
API Health.

Rôle (fonctionnel) :
- Sonde de vie pour le load balancer / docker : ne touche pas la base.
- L’état de la base et du référentiel est exposé par /api/system/status.
"""

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok", "app": settings.APP_NAME, "version": __version__, "env": settings.ENV}
