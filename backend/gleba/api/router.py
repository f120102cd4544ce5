from fastapi import APIRouter

from gleba.core.settings import settings

from .elevage import router as elevage_router
from .especes import router as especes_router
from .health import router as health_router
from .itps import router as itps_router
from .planification import router as planification_router
from .redirects import router as redirects_router
from .status import router as status_router

"""
Router principal de l’API.

Rôle (fonctionnel) :
- Regroupe les routeurs par domaine (planification, élevage, référentiel, système).
- Les routes métier sont montées sous API_PREFIX (/api) ; /health et les
  redirections des anciennes pages restent à la racine.
- Sert de point d’entrée unique pour l’inclusion dans l’application FastAPI.
"""

domain_router = APIRouter()
domain_router.include_router(planification_router)
domain_router.include_router(elevage_router)
domain_router.include_router(especes_router)
domain_router.include_router(itps_router)
domain_router.include_router(status_router)

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(redirects_router)
api_router.include_router(domain_router, prefix=settings.API_PREFIX)
