"""
Checkout service for registering sales.

Handles:
- Precondition checks before any write (operator, empty cart, stock, cash tendered)
- Role-gated general discount (a capability check done here, outside the calculator)
- The atomic commit through `sale_repository.commit_sale()`
- Resetting the cart session only after a successful commit
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from domain.cart import CartSession
from domain.cart_calculator import SaleSummary
from domain.customer import Customer
from domain.errors import (
    DiscountNotAllowedError,
    EmptyCartError,
    InactiveOperatorError,
    InsufficientPaymentError,
    InsufficientStockError,
)
from domain.money import ZERO, MoneyLike, non_negative_money
from domain.operator import Operator
from domain.sale import DocumentType, PaymentMethod, SaleHeaderInput
from repositories.customer_repository import get_customer_by_id, get_walk_in_customer
from repositories.database import get_tax_rate
from repositories.product_repository import get_products_by_ids
from repositories.sale_repository import commit_sale

logger = logging.getLogger(__name__)


class UnknownReferenceError(LookupError):
    """A product, customer or operator referenced by a checkout does not exist."""


@dataclass(frozen=True, slots=True)
class CartLineRequest:
    """A cart line as sent by the till: product, quantity and optional line discount."""

    product_id: int
    quantity: int
    discount: MoneyLike = ZERO


@dataclass(frozen=True, slots=True)
class CheckoutReceipt:
    """
    Result of a successful checkout.

    summary holds the totals that were committed; change is what the cashier
    hands back (0 for card payments).
    """

    sale_id: int
    sold_at: datetime
    summary: SaleSummary
    change: Decimal
    customer_id: int
    payment_method: PaymentMethod


def new_session(customer: Optional[Customer] = None) -> CartSession:
    """A fresh cart using the configured tax rate and the walk-in customer."""

    return CartSession(
        tax_rate=get_tax_rate(),
        customer=customer or get_walk_in_customer(),
    )


def apply_general_discount(session: CartSession, operator: Operator, amount: MoneyLike) -> None:
    """
    Set the discount on the whole sale after checking the operator may do so.

    Clearing the discount (zero) is always allowed.
    """

    value = non_negative_money(amount)
    if value > ZERO and not operator.can_apply_general_discount():
        raise DiscountNotAllowedError(
            f"Operator {operator.username} ({operator.role.value}) may not apply a general discount"
        )
    session.set_general_discount(value)


def load_cart(
    session: CartSession,
    lines: Sequence[CartLineRequest],
) -> CartSession:
    """
    Fill a session from till lines using the current catalog snapshot.

    Each product is added once and then set to the requested quantity, so the
    same stock rules as interactive editing apply. Lines with quantity <= 0 end
    up removed.

    Raises:
        UnknownReferenceError: a product id does not exist or is inactive
        InsufficientStockError / OutOfStockError: a quantity exceeds stock
    """

    catalog = get_products_by_ids(line.product_id for line in lines)

    for line in lines:
        product = catalog.get(line.product_id)
        if product is None or not product.active:
            raise UnknownReferenceError(f"Product not found: {line.product_id}")

        session.add_product(product)
        if session.update_quantity(product.product_id, line.quantity) is not None:
            session.set_item_discount(product.product_id, line.discount)

    return session


def select_customer(session: CartSession, customer_id: Optional[int]) -> Customer:
    """Select a customer by id; None selects the walk-in customer."""

    if customer_id is None:
        customer = get_walk_in_customer()
    else:
        customer = get_customer_by_id(customer_id)
        if customer is None or not customer.active:
            raise UnknownReferenceError(f"Customer not found: {customer_id}")

    session.select_customer(customer)
    return customer


def validate_cart(session: CartSession, operator: Operator) -> SaleSummary:
    """
    Check every commit precondition and return the totals to commit.

    Raises:
        InactiveOperatorError, EmptyCartError, InsufficientStockError,
        InsufficientPaymentError, DiscountNotAllowedError
    """

    if not operator.active:
        raise InactiveOperatorError(f"Operator {operator.username} is inactive")

    if session.is_empty():
        raise EmptyCartError()

    if session.general_discount > ZERO and not operator.can_apply_general_discount():
        raise DiscountNotAllowedError(
            f"Operator {operator.username} ({operator.role.value}) may not apply a general discount"
        )

    for item in session.items:
        if item.quantity > item.available_stock:
            raise InsufficientStockError(
                item.product_id,
                requested=item.quantity,
                available=item.available_stock,
                product_name=item.name,
            )

    summary = session.summary()
    if session.payment_method is PaymentMethod.CASH and not summary.is_payable:
        raise InsufficientPaymentError(session.amount_tendered, summary.total)

    return summary


def build_sale_header(
    session: CartSession,
    operator: Operator,
    summary: SaleSummary,
    document_type: DocumentType = DocumentType.RECEIPT,
    notes: Optional[str] = None,
) -> SaleHeaderInput:
    return SaleHeaderInput(
        operator_id=operator.operator_id,
        customer_id=session.customer.customer_id,
        subtotal=summary.net_subtotal,
        tax=summary.tax,
        total=summary.total,
        discount=summary.discount,
        payment_method=session.payment_method,
        document_type=document_type,
        notes=notes,
    )


def commit_cart(
    session: CartSession,
    operator: Operator,
    document_type: DocumentType = DocumentType.RECEIPT,
    notes: Optional[str] = None,
) -> CheckoutReceipt:
    """
    Register the sale held in `session`.

    Process:
    1. Validate preconditions (nothing is written if any fails)
    2. Build the header from the calculator's summary and one line per cart item
    3. Commit header, lines and stock decrements atomically
    4. Reset the session (empty cart, walk-in customer, no discount, no tendered amount)

    On any error the session is left exactly as it was so the cashier can retry.

    Example:
        session = new_session()
        session.add_product(product)
        session.set_amount_tendered("20.00")
        receipt = commit_cart(session, operator)
        print(f"Sale {receipt.sale_id}, change {receipt.change}")
    """

    summary = validate_cart(session, operator)
    header = build_sale_header(session, operator, summary, document_type, notes)
    lines = session.detail_inputs()
    payment_method = session.payment_method

    result = commit_sale(header, lines)

    session.reset()

    return CheckoutReceipt(
        sale_id=result.sale_id,
        sold_at=result.sold_at,
        summary=summary,
        change=summary.change,
        customer_id=header.customer_id,
        payment_method=payment_method,
    )


__all__ = [
    "UnknownReferenceError",
    "CartLineRequest",
    "CheckoutReceipt",
    "new_session",
    "apply_general_discount",
    "load_cart",
    "select_customer",
    "validate_cart",
    "build_sale_header",
    "commit_cart",
]
