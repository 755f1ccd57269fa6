"""Integer arithmetic utilities for VND amounts.

All prices, bids and ceilings use int (whole dong); no float arithmetic.
Amounts arriving from the wire are coerced through ``to_amount``, which
parses strings exactly with Decimal and rejects fractional and non-finite
values.
"""

import math
from decimal import Decimal, InvalidOperation


def to_amount(value: object) -> int | None:
    """Coerce a wire/user value into whole dong, or None if it is not one.

    Accepts int, integral float and numeric strings ("30000000", "3e7").
    Rejects bool, NaN, infinities and fractional values.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return None
        if not parsed.is_finite() or parsed != parsed.to_integral_value():
            return None
        return int(parsed)
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        return int(value)
    return None


def format_vnd(amount: int) -> str:
    """Full display string: 30000000 -> '30.000.000 ₫', -1200 -> '-1.200 ₫'."""
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(amount):,}".replace(",", ".")
    return f"{sign}{grouped} ₫"


def format_compact(amount: int) -> str:
    """Compact display for tickers: 1_500_000_000 -> '1.5b', 30_000_000 -> '30m'."""
    abs_amount = abs(amount)
    sign = "-" if amount < 0 else ""
    for divisor, suffix in ((1_000_000_000, "b"), (1_000_000, "m"), (1_000, "k")):
        if abs_amount >= divisor:
            scaled = abs_amount / divisor
            text = f"{scaled:.0f}" if scaled.is_integer() else f"{scaled:.1f}"
            return f"{sign}{text}{suffix}"
    return f"{sign}{abs_amount}"
