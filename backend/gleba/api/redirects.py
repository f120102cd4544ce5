from fastapi import APIRouter
from starlette.responses import RedirectResponse

"""
Redirections des anciennes routes.

Rôle (fonctionnel) :
- Les anciennes pages (verger, planification) sont regroupées en onglets sur une page unique.
- Chaque ancienne URL redirige (308, permanente) vers la page cible avec le bon ?tab=.
- Aucune auth, aucun état : simple alias de navigation.
"""

router = APIRouter(tags=["redirects"], include_in_schema=False)

# Ancienne route -> destination canonique
LEGACY_REDIRECTS = {
    "/arbres/liste": "/arbres?tab=arbres",
    "/arbres/bois": "/arbres?tab=productions",
    "/arbres/recoltes": "/arbres?tab=productions",
    "/arbres/operations": "/arbres?tab=operations",
    "/arbres/taches": "/arbres?tab=calendrier",
    "/planification": "/?tab=planification",
}


def _redirect_to(target: str):
    async def redirect() -> RedirectResponse:
        return RedirectResponse(url=target, status_code=308)

    return redirect


for _path, _target in LEGACY_REDIRECTS.items():
    router.add_api_route(_path, _redirect_to(_target), methods=["GET"])
