"""Integer arithmetic utilities for piastre-based money and milligram weights.

All amounts, prices and balances use int piastres (1/100 EGP).
All metal weights use int milligrams. No float, no Decimal in storage;
Decimal only appears when parsing numeric values handed back by procedures.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

# 1 troy ounce = 31.1035 g, kept as a ratio to stay in integer math
_OUNCE_NUM = 311_035
_OUNCE_DEN = 10_000


def piastres_to_display(piastres: int) -> str:
    """Convert piastres to display string: 250000 -> '2,500.00 EGP', -1200 -> '-12.00 EGP'."""
    if piastres < 0:
        abs_p = -piastres
        return f"-{abs_p // 100:,}.{abs_p % 100:02d} EGP"
    return f"{piastres // 100:,}.{piastres % 100:02d} EGP"


def mg_to_display(mg: int) -> str:
    """Convert milligrams to display string: 12500 -> '12.500 g'."""
    sign = "-" if mg < 0 else ""
    mg = abs(mg)
    return f"{sign}{mg // 1000:,}.{mg % 1000:03d} g"


def per_gram_to_per_ounce(price_per_gram: int) -> int:
    """Scale a per-gram price to a per-ounce price, rounded half up."""
    return (price_per_gram * _OUNCE_NUM + _OUNCE_DEN // 2) // _OUNCE_DEN


def value_of_metal(grams_mg: int, price_per_gram: int) -> int:
    """Value in piastres of `grams_mg` milligrams at `price_per_gram` piastres (floor)."""
    return grams_mg * price_per_gram // 1000


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        d = Decimal(str(value))
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def coerce_piastres(value: Any) -> int:
    """Loose numeric input (int, Decimal, numeric string) to int piastres.

    None, booleans and unparseable or non-finite values count as 0.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    d = _to_decimal(value)
    if d is None:
        return 0
    return int(d.to_integral_value(rounding=ROUND_HALF_UP))


def grams_to_mg(grams: Any) -> int:
    """Procedures report weights as numeric grams; convert to int mg, rounded half up."""
    d = _to_decimal(grams)
    if d is None:
        return 0
    return int((d * 1000).to_integral_value(rounding=ROUND_HALF_UP))
