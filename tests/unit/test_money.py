"""Unit tests for piastre/milligram integer helpers."""

from decimal import Decimal

from src.au_common.money import (
    coerce_piastres,
    grams_to_mg,
    mg_to_display,
    per_gram_to_per_ounce,
    piastres_to_display,
    value_of_metal,
)


def test_piastres_display() -> None:
    assert piastres_to_display(250_000) == "2,500.00 EGP"
    assert piastres_to_display(5) == "0.05 EGP"
    assert piastres_to_display(-1_200) == "-12.00 EGP"
    assert piastres_to_display(0) == "0.00 EGP"


def test_mg_display() -> None:
    assert mg_to_display(12_500) == "12.500 g"
    assert mg_to_display(7) == "0.007 g"


def test_per_ounce_conversion_rounds_half_up() -> None:
    # 1 piastre/g * 31.1035 = 31.1035 → 31
    assert per_gram_to_per_ounce(1) == 31
    # 400000 * 31.1035 = 12_441_400
    assert per_gram_to_per_ounce(400_000) == 12_441_400
    # 5 * 31.1035 = 155.5175 → 156
    assert per_gram_to_per_ounce(5) == 156


def test_value_of_metal_floors() -> None:
    # 1.5 g at 4,000.00 EGP/g = 6,000.00 EGP
    assert value_of_metal(1_500, 400_000) == 600_000
    assert value_of_metal(1, 999) == 0


def test_grams_to_mg() -> None:
    assert grams_to_mg("2.5") == 2_500
    assert grams_to_mg(Decimal("0.0005")) == 1
    assert grams_to_mg(None) == 0
    assert grams_to_mg("n/a") == 0


def test_coerce_piastres() -> None:
    assert coerce_piastres(42) == 42
    assert coerce_piastres("42.5") == 43
    assert coerce_piastres(None) == 0
    assert coerce_piastres(False) == 0
    assert coerce_piastres(float("inf")) == 0
