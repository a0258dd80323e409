"""
Domain: Cart session.

The cart is the in-memory, uncommitted state of one sale at the till. It is an
explicit object owned by the caller (the active sale session); nothing about it
is process-wide.

Rules enforced here:
- Lines are keyed by product id and keep insertion order.
- The unit price is copied when the product is added and never changes.
- Quantity is an integer >= 1 and never exceeds the stock known for the line.
- A line's discount is re-clamped to [0, unit_price * quantity] on every edit.
- Rejected mutations raise and leave the cart exactly as it was.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, List, Optional

from .cart_calculator import SaleSummary, compute_totals
from .customer import WALK_IN_CUSTOMER, Customer
from .errors import InsufficientStockError, OutOfStockError
from .money import DEFAULT_TAX_RATE, ZERO, MoneyLike, non_negative_money, to_money, to_tax_rate
from .product import Product
from .sale import PaymentMethod, SaleDetailInput


def _clamp_discount(discount: Decimal, gross_total: Decimal) -> Decimal:
    if discount < ZERO:
        return ZERO
    return min(discount, gross_total)


@dataclass(frozen=True, slots=True)
class CartItem:
    """
    One cart line. Immutable: edits return a new instance with the discount
    re-clamped against the new gross total.
    """

    product_id: int
    name: str
    unit_price: Decimal
    quantity: int
    available_stock: int
    discount: Decimal = ZERO

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.unit_price < ZERO:
            raise ValueError("unit_price must be >= 0")

    @staticmethod
    def from_product(product: Product) -> "CartItem":
        return CartItem(
            product_id=product.product_id,
            name=product.name,
            unit_price=to_money(product.sale_price),
            quantity=1,
            available_stock=product.stock,
        )

    @property
    def gross_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def subtotal(self) -> Decimal:
        return self.gross_total - self.discount

    def with_quantity(self, quantity: int) -> "CartItem":
        if quantity > self.available_stock:
            raise InsufficientStockError(
                self.product_id, requested=quantity, available=self.available_stock, product_name=self.name
            )
        gross = self.unit_price * quantity
        return replace(self, quantity=quantity, discount=_clamp_discount(self.discount, gross))

    def with_discount(self, discount: MoneyLike) -> "CartItem":
        return replace(self, discount=_clamp_discount(to_money(discount), self.gross_total))

    def with_stock(self, stock: int) -> "CartItem":
        return replace(self, available_stock=max(stock, 0))

    def to_detail_input(self) -> SaleDetailInput:
        return SaleDetailInput(
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            discount=self.discount,
            subtotal=self.subtotal,
        )


def _parse_quantity(value: object) -> Optional[int]:
    """Integer quantity from user input, or None when it isn't a whole number."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        return int(value)
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            return None
        return int(value)
    return None


class CartSession:
    """
    Mutable cart for one sale in progress.

    Example:
        session = CartSession()
        session.add_product(product)
        session.set_amount_tendered("50.00")
        summary = session.summary()
    """

    def __init__(
        self,
        tax_rate: MoneyLike = DEFAULT_TAX_RATE,
        customer: Customer = WALK_IN_CUSTOMER,
        payment_method: PaymentMethod = PaymentMethod.CASH,
    ) -> None:
        self.tax_rate: Decimal = to_tax_rate(tax_rate)
        self._items: Dict[int, CartItem] = {}
        self.general_discount: Decimal = ZERO
        self.customer: Customer = customer
        self.payment_method: PaymentMethod = payment_method
        self.amount_tendered: Decimal = ZERO

    # Lines

    @property
    def items(self) -> List[CartItem]:
        return list(self._items.values())

    def get_item(self, product_id: int) -> Optional[CartItem]:
        return self._items.get(product_id)

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)

    def _require_item(self, product_id: int) -> CartItem:
        item = self._items.get(product_id)
        if item is None:
            raise KeyError(f"Product {product_id} is not in the cart")
        return item

    def add_product(self, product: Product) -> CartItem:
        """
        Add one unit of a product.

        A product already in the cart has its quantity increased by one. The
        stock check uses the product snapshot passed in.

        Raises:
            OutOfStockError: product has no stock (cart unchanged)
            InsufficientStockError: one more unit would exceed stock (cart unchanged)
        """

        existing = self._items.get(product.product_id)
        if existing is None:
            if product.stock <= 0:
                raise OutOfStockError(product.product_id, product_name=product.name)
            item = CartItem.from_product(product)
        else:
            item = existing.with_stock(product.stock).with_quantity(existing.quantity + 1)

        self._items[product.product_id] = item
        return item

    def update_quantity(self, product_id: int, quantity: object) -> Optional[CartItem]:
        """
        Set a line's quantity.

        Zero, negative or non-integer quantities remove the line (returns None).
        Quantities above the line's known stock raise InsufficientStockError and
        leave the line untouched.
        """

        item = self._require_item(product_id)
        parsed = _parse_quantity(quantity)
        if parsed is None or parsed <= 0:
            del self._items[product_id]
            return None

        updated = item.with_quantity(parsed)
        self._items[product_id] = updated
        return updated

    def set_item_discount(self, product_id: int, amount: MoneyLike) -> CartItem:
        item = self._require_item(product_id)
        updated = item.with_discount(amount)
        self._items[product_id] = updated
        return updated

    def remove_item(self, product_id: int) -> None:
        self._items.pop(product_id, None)

    def refresh_stock(self, product_id: int, stock: int) -> CartItem:
        """Record newly known stock for a line without changing its quantity."""

        item = self._require_item(product_id)
        updated = item.with_stock(stock)
        self._items[product_id] = updated
        return updated

    # Sale-level state

    def set_general_discount(self, amount: MoneyLike) -> None:
        # Role gating happens in the caller; the cart stays role-agnostic.
        self.general_discount = non_negative_money(amount)

    def select_customer(self, customer: Optional[Customer]) -> None:
        self.customer = customer if customer is not None else WALK_IN_CUSTOMER

    def set_payment_method(self, method: PaymentMethod | str) -> None:
        self.payment_method = PaymentMethod(method)
        if self.payment_method is PaymentMethod.CARD:
            self.amount_tendered = ZERO

    def set_amount_tendered(self, amount: MoneyLike) -> None:
        self.amount_tendered = non_negative_money(amount)

    def summary(self) -> SaleSummary:
        return compute_totals(
            self._items.values(),
            general_discount=self.general_discount,
            tax_rate=self.tax_rate,
            payment_method=self.payment_method,
            amount_tendered=self.amount_tendered,
        )

    def detail_inputs(self) -> List[SaleDetailInput]:
        return [item.to_detail_input() for item in self._items.values()]

    def reset(self) -> None:
        """Return to a fresh sale: empty cart, walk-in customer, cash, no discount."""

        self._items.clear()
        self.general_discount = ZERO
        self.amount_tendered = ZERO
        self.customer = WALK_IN_CUSTOMER
        self.payment_method = PaymentMethod.CASH


__all__ = ["CartItem", "CartSession"]
