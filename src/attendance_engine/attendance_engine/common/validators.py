from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Iterable, Optional

from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date, parse_iso_datetime


def _invalid(field_name: str, message: str) -> ValidationError:
    return ValidationError(message, errors=[{"field": field_name, "message": message}])


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise _invalid(field_name, f"Valid {field_name} is required")
    return value.strip()


def require_iso_datetime(value: Any, field_name: str) -> datetime:
    if not isinstance(value, str):
        raise _invalid(field_name, f"Valid {field_name} is required")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise _invalid(field_name, f"Valid {field_name} is required") from None


def require_iso_date(value: Any, field_name: str) -> date:
    if not isinstance(value, str) or not value.strip():
        raise _invalid(field_name, f"Valid {field_name} is required")
    try:
        return parse_iso_date(value)
    except ValueError:
        raise _invalid(field_name, f"Valid {field_name} is required") from None


def optional_iso_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    return require_iso_date(value, field_name)


def require_coordinates(location: Any, field_name: str = "location.coordinates") -> tuple[float, float]:
    """Return (longitude, latitude) from a `{"coordinates": [lng, lat]}` object."""

    coords = location.get("coordinates") if isinstance(location, dict) else None
    if not isinstance(coords, (list, tuple)) or len(coords) != 2:
        raise _invalid(field_name, "Location coordinates must be [longitude, latitude]")
    if not all(_is_number(c) for c in coords):
        raise _invalid(field_name, "Coordinates must be numbers")
    return float(coords[0]), float(coords[1])


def require_float_vector(values: Any, field_name: str, length: int) -> list[float]:
    if not isinstance(values, (list, tuple)):
        raise _invalid(field_name, f"{field_name} must be an array")
    if len(values) != length:
        raise _invalid(field_name, f"{field_name} must be {length} numbers")
    if not all(_is_number(v) for v in values):
        raise _invalid(field_name, f"{field_name} must be numbers")
    return [float(v) for v in values]


def require_choice(value: Any, field_name: str, choices: Iterable[str]) -> str:
    options = list(choices)
    if value not in options:
        raise _invalid(field_name, f"{field_name} must be one of: {', '.join(options)}")
    return value
