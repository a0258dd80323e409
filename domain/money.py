"""
Domain: Money values and the rounding policy.

Rounding policy (single rule for the whole system):
- Every monetary input (unit price, discount, tendered amount) is quantized to
  2 decimals with ROUND_HALF_UP when it enters the domain.
- Sums and differences of 2-decimal values are exact, so the only derived value
  that needs rounding is the tax, rounded once with ROUND_HALF_UP.
- Floats are never used for arithmetic.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# IGV (Peru) is the only tax rate the terminal knows about.
DEFAULT_TAX_RATE = Decimal("0.18")

MoneyLike = Union[Decimal, int, float, str]


def to_decimal(value: MoneyLike) -> Decimal:
    """
    Convert a number-like value into a Decimal without going through binary floats.

    Floats are converted via `str()` so that 0.1 becomes Decimal("0.1").
    """

    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary value")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid monetary value: {value!r}") from None


def round_money(value: MoneyLike) -> Decimal:
    """Round to 2 decimals, half-up."""

    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: MoneyLike | None) -> Decimal:
    """
    Normalize a monetary input at the domain boundary.

    None and non-finite values are rejected; the result always has 2 decimals.
    """

    if value is None:
        raise ValueError("Monetary value is required")
    amount = to_decimal(value)
    if not amount.is_finite():
        raise ValueError(f"Monetary value must be finite, got {value!r}")
    return round_money(amount)


def non_negative_money(value: MoneyLike | None) -> Decimal:
    """Like `to_money`, but negative amounts are clamped to zero."""

    amount = to_money(value)
    return amount if amount > ZERO else ZERO


def to_tax_rate(value: MoneyLike) -> Decimal:
    rate = to_decimal(value)
    if not rate.is_finite() or rate < 0 or rate >= 1:
        raise ValueError(f"Tax rate must be in [0, 1), got {value!r}")
    return rate
