from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

"""
Schemas communs.

Rôle (fonctionnel) :
- CamelModel : base de tous les schémas HTTP. Attributs Python en snake_case,
  JSON en camelCase (alimentId, semaineRecolte…) comme l’attend le front.
- parse_datetime : coercition tolérante des dates envoyées par les formulaires
  (ISO avec "Z", fractions à 7 chiffres, date seule, epoch en millisecondes).
"""


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _parse_iso(value: str) -> datetime:
    """
    Parse robuste de datetime ISO.

    Accepte :
    - "2025-03-14"
    - "2025-03-14T08:30:00Z"
    - "2025-03-14T08:30:00.4600072Z" (7 digits -> tronqué à 6)
    - "2025-03-14T08:30:00.460007+01:00"

    Sans tzinfo : UTC.
    """
    s = value.strip()

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    if "." in s:
        head, rest = s.split(".", 1)
        frac, tz = rest, ""
        if "+" in rest:
            frac, tz = rest.split("+", 1)
            tz = "+" + tz
        elif "-" in rest[1:]:
            frac, tz = rest.split("-", 1)
            tz = "-" + tz

        frac_digits = "".join(ch for ch in frac if ch.isdigit())[:6]
        s = f"{head}.{frac_digits}{tz}" if frac_digits else f"{head}{tz}"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_datetime(value: Union[str, int, float, date, datetime]) -> datetime:
    """
    Convertit une représentation texte / numérique / date en datetime UTC-aware.

    Les nombres sont des epoch en millisecondes (convention des formulaires JS).
    Lève ValueError si la valeur n’est pas interprétable.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise ValueError("date invalide")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str) and value.strip():
        return _parse_iso(value)
    raise ValueError("date invalide")


def coerce_datetime(value: Any) -> Any:
    """Variante pour validateurs mode="before" : laisse Pydantic signaler les échecs."""
    try:
        return parse_datetime(value)
    except (TypeError, ValueError, OverflowError):
        return value
