from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, float, str, Decimal]

_ONE = Decimal("1")


def to_centavos(value: Number | None) -> int:
    """Convert a peso amount (``1500``, ``"212.50"``) into integer centavos."""
    if value is None or value == "":
        return 0
    return int((Decimal(str(value)) * 100).quantize(_ONE, rounding=ROUND_HALF_UP))


def round_centavos(value: Decimal) -> int:
    """Round a fractional centavo amount half-up to a whole centavo."""
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def to_pesos(centavos: int) -> Decimal:
    return (Decimal(int(centavos)) / 100).quantize(Decimal("0.01"))


def format_peso(centavos: int) -> str:
    sign = "-" if centavos < 0 else ""
    return f"{sign}₱{abs(to_pesos(centavos)):,.2f}"
