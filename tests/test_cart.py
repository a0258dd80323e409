"""
Tests for `domain/cart.py`.

Covers contract rules:
- Adding a product without stock is rejected and leaves the cart unchanged.
- Quantities never exceed the stock known for a line; rejected edits change nothing.
- Zero, negative or non-integer quantities remove the line.
- Line discounts are re-clamped to [0, unit_price * quantity] on every edit.
- reset() returns to a fresh sale (walk-in customer, cash, no discount, no tendered amount).
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from domain.cart import CartSession
from domain.customer import WALK_IN_CUSTOMER, Customer
from domain.errors import InsufficientStockError, OutOfStockError
from domain.product import Product
from domain.sale import PaymentMethod


def _product(product_id: int = 1, price: str = "10.00", stock: int = 5, name: str | None = None) -> Product:
    return Product(
        product_id=product_id,
        name=name or f"Product {product_id}",
        sale_price=Decimal(price),
        stock=stock,
    )


def test_adding_out_of_stock_product_is_rejected() -> None:
    session = CartSession()

    with pytest.raises(OutOfStockError):
        session.add_product(_product(stock=0))

    assert session.is_empty()
    assert session.summary().total == Decimal("0.00")


def test_adding_same_product_increments_quantity() -> None:
    session = CartSession()
    product = _product(stock=3)

    session.add_product(product)
    session.add_product(product)

    assert len(session) == 1
    assert session.get_item(1).quantity == 2


def test_adding_beyond_stock_leaves_quantity_unchanged() -> None:
    session = CartSession()
    product = _product(stock=2)
    session.add_product(product)
    session.add_product(product)

    with pytest.raises(InsufficientStockError) as excinfo:
        session.add_product(product)

    assert excinfo.value.requested == 3
    assert excinfo.value.available == 2
    assert session.get_item(1).quantity == 2


def test_unit_price_is_fixed_when_added() -> None:
    session = CartSession()
    session.add_product(_product(price="10.00", stock=5))

    session.add_product(_product(price="12.00", stock=5))

    assert session.get_item(1).unit_price == Decimal("10.00")
    assert session.get_item(1).quantity == 2


def test_update_quantity_above_stock_is_rejected() -> None:
    session = CartSession()
    session.add_product(_product(stock=4))
    session.update_quantity(1, 3)

    with pytest.raises(InsufficientStockError):
        session.update_quantity(1, 5)

    assert session.get_item(1).quantity == 3


@pytest.mark.parametrize("quantity", [0, -1, "abc", 2.5, "", None, float("nan")])
def test_invalid_or_non_positive_quantity_removes_line(quantity) -> None:
    session = CartSession()
    session.add_product(_product(stock=4))

    assert session.update_quantity(1, quantity) is None
    assert session.get_item(1) is None
    assert session.is_empty()


@pytest.mark.parametrize(("quantity", "expected"), [("3", 3), (2.0, 2), (Decimal("4"), 4)])
def test_whole_number_quantities_are_accepted(quantity, expected) -> None:
    session = CartSession()
    session.add_product(_product(stock=4))

    item = session.update_quantity(1, quantity)

    assert item.quantity == expected


def test_unknown_product_raises_key_error() -> None:
    session = CartSession()

    with pytest.raises(KeyError):
        session.update_quantity(99, 1)
    with pytest.raises(KeyError):
        session.set_item_discount(99, "1.00")


def test_item_discount_is_clamped_to_line_total() -> None:
    session = CartSession()
    session.add_product(_product(price="10.00", stock=5))

    assert session.set_item_discount(1, "25.00").discount == Decimal("10.00")
    assert session.set_item_discount(1, "-3.00").discount == Decimal("0.00")


def test_item_discount_reclamped_when_quantity_drops() -> None:
    session = CartSession()
    session.add_product(_product(price="10.00", stock=5))
    session.update_quantity(1, 3)
    session.set_item_discount(1, "25.00")

    item = session.update_quantity(1, 2)

    assert item.discount == Decimal("20.00")
    assert item.subtotal == Decimal("0.00")


def test_remove_item() -> None:
    session = CartSession()
    session.add_product(_product(product_id=1))
    session.add_product(_product(product_id=2))

    session.remove_item(1)

    assert [item.product_id for item in session.items] == [2]


def test_refresh_stock_allows_higher_quantity() -> None:
    session = CartSession()
    session.add_product(_product(stock=1))

    session.refresh_stock(1, 10)
    item = session.update_quantity(1, 8)

    assert item.quantity == 8
    assert item.available_stock == 10


def test_card_payment_clears_tendered_amount() -> None:
    session = CartSession()
    session.set_amount_tendered("50.00")

    session.set_payment_method(PaymentMethod.CARD)

    assert session.amount_tendered == Decimal("0.00")
    assert session.payment_method is PaymentMethod.CARD


def test_select_customer_none_restores_walk_in() -> None:
    session = CartSession()
    session.select_customer(Customer(customer_id=7, full_name="Ana Torres"))
    assert session.customer.customer_id == 7

    session.select_customer(None)

    assert session.customer is WALK_IN_CUSTOMER


def test_summary_matches_reference_example() -> None:
    session = CartSession(tax_rate="0.18")
    session.add_product(_product(product_id=1, price="10.00", stock=5))
    session.update_quantity(1, 2)
    session.add_product(_product(product_id=2, price="5.00", stock=5))
    session.set_item_discount(2, "1.00")
    session.set_general_discount("2.00")

    summary = session.summary()

    assert summary.subtotal == Decimal("24.00")
    assert summary.net_subtotal == Decimal("22.00")
    assert summary.tax == Decimal("3.96")
    assert summary.total == Decimal("25.96")


def test_detail_inputs_reconcile_with_lines() -> None:
    session = CartSession()
    session.add_product(_product(product_id=1, price="10.00", stock=5))
    session.update_quantity(1, 2)
    session.set_item_discount(1, "1.50")

    (line,) = session.detail_inputs()

    assert line.quantity == 2
    assert line.unit_price == Decimal("10.00")
    assert line.discount == Decimal("1.50")
    assert line.subtotal == Decimal("18.50")


def test_reset_returns_to_fresh_sale() -> None:
    session = CartSession()
    session.add_product(_product())
    session.set_general_discount("1.00")
    session.set_amount_tendered("20.00")
    session.select_customer(Customer(customer_id=7, full_name="Ana Torres"))
    session.set_payment_method("card")

    session.reset()

    assert session.is_empty()
    assert session.general_discount == Decimal("0.00")
    assert session.amount_tendered == Decimal("0.00")
    assert session.customer is WALK_IN_CUSTOMER
    assert session.payment_method is PaymentMethod.CASH
