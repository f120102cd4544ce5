from __future__ import annotations

import uuid
from contextvars import ContextVar

"""
Core Request ID.

Rôle (fonctionnel) :
- Stocke l’identifiant de la requête courante dans un ContextVar (isolé par requête en async).
- Sert à corréler les lignes de log et les payloads d’erreur d’une même requête.
- Valeur reprise du header entrant X-Request-Id (tronquée) ou générée.
"""

REQUEST_ID_HEADER = "X-Request-Id"

# Au-delà, un header client n’est plus un identifiant mais du bruit dans les logs
_MAX_LEN = 64

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(rid: str | None) -> None:
    _request_id.set(rid)


def get_request_id() -> str | None:
    return _request_id.get()


def ensure_request_id(incoming: str | None = None) -> str:
    """Reprend le request_id entrant (nettoyé) ou en génère un, puis l’attache au contexte."""
    rid = (incoming or "").strip()[:_MAX_LEN] or str(uuid.uuid4())
    set_request_id(rid)
    return rid
