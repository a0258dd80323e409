"""
Tests for `domain/cart_calculator.py`.

Covers contract rules:
- subtotal = gross - item discounts; net = max(0, subtotal - general discount).
- tax = round_half_up(net * rate); total = net + tax, exactly.
- Cash is payable only when tendered >= total; change is 0 otherwise.
- Card is always payable with no change.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from domain.cart import CartItem
from domain.cart_calculator import compute_totals
from domain.money import round_money
from domain.sale import PaymentMethod


def _item(product_id: int, price: str, quantity: int, discount: str = "0.00", stock: int = 100) -> CartItem:
    return CartItem(
        product_id=product_id,
        name=f"Product {product_id}",
        unit_price=Decimal(price),
        quantity=quantity,
        available_stock=stock,
        discount=Decimal(discount),
    )


def test_reference_example() -> None:
    """Two lines, an item discount and a general discount at 18% tax."""

    items = [_item(1, "10.00", 2), _item(2, "5.00", 1, discount="1.00")]

    summary = compute_totals(items, general_discount="2.00", tax_rate="0.18")

    assert summary.gross_subtotal == Decimal("25.00")
    assert summary.item_discount == Decimal("1.00")
    assert summary.subtotal == Decimal("24.00")
    assert summary.general_discount == Decimal("2.00")
    assert summary.discount == Decimal("3.00")
    assert summary.net_subtotal == Decimal("22.00")
    assert summary.tax == Decimal("3.96")
    assert summary.total == Decimal("25.96")


def test_cash_change_when_tendered_covers_total() -> None:
    items = [_item(1, "10.00", 2), _item(2, "5.00", 1, discount="1.00")]

    summary = compute_totals(items, general_discount="2.00", tax_rate="0.18", amount_tendered="30.00")

    assert summary.is_payable is True
    assert summary.change == Decimal("4.04")


def test_cash_not_payable_when_tendered_short() -> None:
    summary = compute_totals([_item(1, "10.00", 1)], tax_rate="0.18", amount_tendered="11.00")

    assert summary.total == Decimal("11.80")
    assert summary.is_payable is False
    assert summary.change == Decimal("0.00")


def test_cash_exact_amount_gives_zero_change() -> None:
    summary = compute_totals([_item(1, "10.00", 1)], tax_rate="0.18", amount_tendered="11.80")

    assert summary.is_payable is True
    assert summary.change == Decimal("0.00")


def test_card_is_always_payable_without_change() -> None:
    summary = compute_totals(
        [_item(1, "10.00", 1)],
        tax_rate="0.18",
        payment_method=PaymentMethod.CARD,
        amount_tendered="50.00",
    )

    assert summary.is_payable is True
    assert summary.change == Decimal("0.00")


def test_general_discount_larger_than_subtotal_floors_at_zero() -> None:
    summary = compute_totals([_item(1, "10.00", 2)], general_discount="100.00", tax_rate="0.18")

    assert summary.net_subtotal == Decimal("0.00")
    assert summary.tax == Decimal("0.00")
    assert summary.total == Decimal("0.00")
    assert summary.general_discount == Decimal("20.00")
    assert summary.is_payable is True


def test_negative_general_discount_counts_as_zero() -> None:
    summary = compute_totals([_item(1, "10.00", 1)], general_discount="-5.00", tax_rate="0")

    assert summary.general_discount == Decimal("0.00")
    assert summary.total == Decimal("10.00")


def test_tax_rounds_half_up_once() -> None:
    """0.25 * 0.18 = 0.045 -> 0.05."""

    summary = compute_totals([_item(1, "0.25", 1)], tax_rate="0.18")

    assert summary.tax == Decimal("0.05")
    assert summary.total == Decimal("0.30")


def test_empty_cart_is_all_zeroes() -> None:
    summary = compute_totals([], tax_rate="0.18")

    assert summary.is_empty
    assert summary.total == Decimal("0.00")
    assert summary.change == Decimal("0.00")


def test_item_discount_above_line_total_is_capped() -> None:
    """Items built by hand with an oversized discount never push the subtotal negative."""

    summary = compute_totals([_item(1, "3.00", 1, discount="9.00")], tax_rate="0.18")

    assert summary.item_discount == Decimal("3.00")
    assert summary.subtotal == Decimal("0.00")


@pytest.mark.parametrize("general", ["0", "0.99", "7.77", "24.00", "24.01", "500"])
@pytest.mark.parametrize("rate", ["0", "0.18", "0.075"])
def test_totals_reconcile(general: str, rate: str) -> None:
    """net >= 0, total == net + tax and tax == round_half_up(net * rate) for any inputs."""

    items = [_item(1, "10.00", 2), _item(2, "5.00", 1, discount="1.00"), _item(3, "0.33", 3)]

    summary = compute_totals(items, general_discount=general, tax_rate=rate)

    assert summary.net_subtotal >= Decimal("0")
    assert summary.total == summary.net_subtotal + summary.tax
    assert summary.tax == round_money(summary.net_subtotal * Decimal(rate))
    assert summary.subtotal - summary.general_discount == summary.net_subtotal
    assert summary.discount == summary.item_discount + summary.general_discount
