"""
Domain: Cart calculator.

Pure function from (cart lines, general discount, tax rate, payment) to the
totals summary shown at the till and written with the sale header. It is
recomputed on every cart mutation and has no side effects.

Algorithm:
1. gross_subtotal = sum(unit_price * quantity)
2. subtotal = gross_subtotal - sum(item discounts)   (item discounts already clamped)
3. net_subtotal = max(0, subtotal - general_discount)
4. tax = round_half_up(net_subtotal * tax_rate); total = net_subtotal + tax
5. cash: change = tendered - total when tendered >= total, else not payable
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Optional

from .money import DEFAULT_TAX_RATE, ZERO, MoneyLike, non_negative_money, round_money, to_tax_rate
from .sale import PaymentMethod

if TYPE_CHECKING:
    from .cart import CartItem


@dataclass(frozen=True, slots=True)
class SaleSummary:
    """Totals for a cart. Every amount has exactly 2 decimals."""

    gross_subtotal: Decimal
    subtotal: Decimal  # after item discounts, before general discount and tax
    item_discount: Decimal
    general_discount: Decimal  # effective (never more than subtotal)
    discount: Decimal  # item_discount + general_discount
    net_subtotal: Decimal  # the amount tax applies to
    tax: Decimal
    total: Decimal
    change: Decimal
    is_payable: bool

    @property
    def is_empty(self) -> bool:
        return self.gross_subtotal == ZERO and self.total == ZERO


def compute_totals(
    items: Iterable["CartItem"],
    general_discount: MoneyLike = ZERO,
    tax_rate: MoneyLike = DEFAULT_TAX_RATE,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    amount_tendered: Optional[MoneyLike] = None,
) -> SaleSummary:
    """
    Compute the sale summary for a set of cart lines.

    Args:
        items: Cart lines (unit_price, quantity and an already-clamped discount)
        general_discount: Discount on the whole sale; negatives count as zero
        tax_rate: Fixed tax rate in [0, 1)
        payment_method: cash or card
        amount_tendered: Cash handed over by the customer (ignored for card)

    Returns:
        SaleSummary

    Example:
        two lines (10.00 x 2) and (5.00 x 1, discount 1.00), general discount 2.00,
        rate 0.18 -> subtotal 24.00, net 22.00, tax 3.96, total 25.96
    """

    rate = to_tax_rate(tax_rate)

    gross = ZERO
    item_discount = ZERO
    for item in items:
        line_gross = item.unit_price * item.quantity
        gross += line_gross
        item_discount += min(max(item.discount, ZERO), line_gross)

    subtotal = gross - item_discount
    requested_general = non_negative_money(general_discount)
    general = min(requested_general, subtotal)
    net_subtotal = subtotal - general

    tax = round_money(net_subtotal * rate)
    total = net_subtotal + tax

    if payment_method is PaymentMethod.CASH:
        tendered = non_negative_money(amount_tendered if amount_tendered is not None else ZERO)
        is_payable = tendered >= total
        change = tendered - total if is_payable else ZERO
    else:
        is_payable = True
        change = ZERO

    return SaleSummary(
        gross_subtotal=round_money(gross),
        subtotal=round_money(subtotal),
        item_discount=round_money(item_discount),
        general_discount=round_money(general),
        discount=round_money(item_discount + general),
        net_subtotal=round_money(net_subtotal),
        tax=tax,
        total=round_money(total),
        change=round_money(change),
        is_payable=is_payable,
    )


__all__ = ["SaleSummary", "compute_totals"]
