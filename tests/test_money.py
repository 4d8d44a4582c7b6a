"""BRL tutar dönüşümleri: centavo sadece gateway sınırında."""
from decimal import Decimal

import pytest

from app.services.money import format_brl, from_minor_units, installment_value, to_minor_units


def test_to_minor_units_plan_price():
    assert to_minor_units(Decimal("49.90")) == 4990
    assert to_minor_units("54.9") == 5490
    assert to_minor_units(10) == 1000


def test_repeated_conversion_does_not_drift():
    amount = Decimal("49.90")
    for _ in range(100):
        amount = from_minor_units(to_minor_units(amount))
    assert amount == Decimal("49.90")
    assert to_minor_units(amount) == 4990


def test_half_cent_rounds_up():
    assert to_minor_units(Decimal("0.005")) == 1
    assert to_minor_units(Decimal("49.895")) == 4990


def test_float_rejected():
    with pytest.raises(TypeError):
        to_minor_units(49.90)


@pytest.mark.parametrize("bad", ["abc", "NaN", "Infinity"])
def test_invalid_amount_rejected(bad):
    with pytest.raises(ValueError):
        to_minor_units(bad)


def test_from_minor_units_two_places():
    assert str(from_minor_units(4990)) == "49.90"
    assert str(from_minor_units(5)) == "0.05"


def test_installment_value_rounds_to_nearest_cent():
    assert installment_value(4990, 1) == 4990
    assert installment_value(4990, 3) == 1663  # 1663.33
    assert installment_value(1001, 2) == 501  # 500.5 -> yukarı
    assert installment_value(5490, 12) == 458  # 457.5 -> yukarı


def test_installment_value_requires_positive_count():
    with pytest.raises(ValueError):
        installment_value(4990, 0)


def test_format_brl():
    assert format_brl(Decimal("49.9")) == "R$ 49,90"
