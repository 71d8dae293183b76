from __future__ import annotations

from ..core.exceptions import ValidationError


def require_positive(value: int | float, field_name: str) -> int | float:
    if value is None or value <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")
    return value
