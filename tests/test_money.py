from decimal import Decimal

import pytest

from src.payflow.payflow.common.money import format_peso, round_centavos, to_centavos, to_pesos


@pytest.mark.parametrize("value, expected", [("212.50", 212_50), (1500, 1_500_00), ("0.005", 1), ("", 0), (None, 0)])
def test_to_centavos(value, expected):
    assert to_centavos(value) == expected


def test_round_centavos_is_half_up():
    assert round_centavos(Decimal("236.5")) == 237
    assert round_centavos(Decimal("236.49")) == 236


def test_peso_display():
    assert to_pesos(1_234_50) == Decimal("1234.50")
    assert format_peso(1_234_50) == "₱1,234.50"
    assert format_peso(-1_000_00) == "-₱1,000.00"
