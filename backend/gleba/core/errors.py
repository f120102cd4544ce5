from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException

"""
Core Errors.

Rôle (fonctionnel) :
- Standardise le format des erreurs renvoyées par l’API (payload homogène, à plat).
- Fournit une exception applicative (AppHTTPException) pour lever des erreurs métier de façon cohérente.
- Aplatit les erreurs de validation Pydantic en erreurs adressables par champ (fieldErrors / formErrors).

Convention de réponse (exemple) :
{
  "error": "Erreur lors de la recuperation des statistiques",
  "details": "Erreur interne du serveur",
  "code": "INTERNAL_ERROR",
  "status": 500,
  "request_id": "...",
  "timestamp": "..."
}

Taxonomie :
- 401 UNAUTHORIZED : pas de session valide (court-circuite la logique métier).
- 422 VALIDATION_ERROR : erreurs par champ, à afficher à l’utilisateur.
- 500 INTERNAL_ERROR : tout le reste ; message générique, aucun détail interne exposé.
"""

INTERNAL_DETAILS = "Erreur interne du serveur"

# Segments de loc qui ne désignent pas un champ (source de la donnée)
_LOC_SOURCES = {"body", "query", "path", "header", "cookie"}


def now_iso() -> str:
    """Timestamp ISO-8601 en UTC (utilisé dans toutes les erreurs)."""
    return datetime.now(timezone.utc).isoformat()


def error_payload(
    *,
    code: str,
    message: str,
    status: int,
    request_id: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """Construit un payload d’erreur homogène pour l’API."""
    payload: Dict[str, Any] = {
        "error": message,
        "code": code,
        "status": status,
        "request_id": request_id,
        "timestamp": now_iso(),
    }
    if details is not None:
        payload["details"] = details
    return payload


def flatten_validation_errors(errors: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Regroupe une liste d’erreurs Pydantic par champ.

    - {"loc": ("body", "quantite"), "msg": "..."} -> fieldErrors["quantite"] = ["..."]
    - une erreur sans champ (modèle entier, JSON invalide) -> formErrors
    """
    field_errors: Dict[str, List[str]] = {}
    form_errors: List[str] = []

    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if str(part) not in _LOC_SOURCES]
        msg = str(err.get("msg", "Valeur invalide"))
        if loc:
            field_errors.setdefault(".".join(loc), []).append(msg)
        else:
            form_errors.append(msg)

    return {"fieldErrors": field_errors, "formErrors": form_errors}


class AppHTTPException(HTTPException):
    """
    Exception applicative standardisée.

    Usage :
    - Lever une erreur “métier” avec un code stable et un message explicite.
    - Laisser la couche API/middlewares produire une réponse cohérente.

    Exemple :
        raise AppHTTPException(404, "NOT_FOUND", "Consommation non trouvée")
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(
            status_code=status_code,
            detail={"code": code, "message": message, "details": details},
            headers=headers,
        )


def authentication_error() -> AppHTTPException:
    return AppHTTPException(401, "UNAUTHORIZED", "Non autorisé")


def internal_error(message: str) -> AppHTTPException:
    """Erreur 500 générique : le message décrit l’opération, jamais la cause."""
    return AppHTTPException(500, "INTERNAL_ERROR", message, details=INTERNAL_DETAILS)
