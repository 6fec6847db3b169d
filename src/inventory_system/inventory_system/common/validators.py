from __future__ import annotations

from datetime import datetime

from ..core.exceptions import ValidationError


def require_positive_id(value, field_name: str) -> int:
    try:
        ident = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")
    if ident <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return ident


def require_after(value: datetime, reference: datetime, field_name: str) -> datetime:
    if value <= reference:
        raise ValidationError(f"{field_name} must be in the future")
    return value
