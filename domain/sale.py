"""
Domain: Sale records.

A sale is a header plus one detail row per cart line. Both are written in a
single atomic unit and are immutable afterwards; there is no update path for a
committed sale.

Reconciliation (per committed sale):
- detail.subtotal == detail.unit_price * detail.quantity - detail.discount
- sum(detail.subtotal) - effective general discount == header.subtotal
- header.subtotal + header.tax == header.total
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from .money import ZERO
from .time import require_utc_timestamp


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"


class SaleStatus(str, Enum):
    COMPLETED = "completed"


class DocumentType(str, Enum):
    RECEIPT = "receipt"
    INVOICE = "invoice"


@dataclass(frozen=True, slots=True)
class SaleDetailInput:
    """One line to persist, derived from a CartItem."""

    product_id: int
    quantity: int
    unit_price: Decimal
    discount: Decimal
    subtotal: Decimal

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.unit_price < ZERO or self.discount < ZERO:
            raise ValueError("unit_price and discount must be >= 0")
        if self.unit_price * self.quantity - self.discount != self.subtotal:
            raise ValueError("subtotal must equal unit_price * quantity - discount")


@dataclass(frozen=True, slots=True)
class SaleHeaderInput:
    """Sale header to persist; totals come from the cart calculator."""

    operator_id: int
    customer_id: int
    subtotal: Decimal  # net subtotal (after every discount, before tax)
    tax: Decimal
    total: Decimal
    discount: Decimal  # item discounts + effective general discount
    payment_method: PaymentMethod
    document_type: DocumentType = DocumentType.RECEIPT
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.subtotal + self.tax != self.total:
            raise ValueError("total must equal subtotal + tax")


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """Immutable, persisted sale header."""

    sale_id: int
    operator_id: int
    customer_id: int
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    discount: Decimal
    payment_method: PaymentMethod
    document_type: DocumentType
    status: SaleStatus
    sold_at: datetime
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("sold_at", self.sold_at)


@dataclass(frozen=True, slots=True)
class SaleDetailRecord:
    detail_id: int
    sale_id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    discount: Decimal
    subtotal: Decimal
    product_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SaleWithDetails:
    sale: SaleRecord
    details: List[SaleDetailRecord] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Outcome of the atomic store write."""

    sale_id: int
    success: bool
    sold_at: datetime


@dataclass(frozen=True, slots=True)
class StockMovement:
    movement_id: int
    product_id: int
    movement_type: str  # sale, adjustment
    quantity_delta: int
    stock_after: int
    created_at: datetime
    sale_id: Optional[int] = None
    operator_id: Optional[int] = None
    reason: Optional[str] = None
    product_name: Optional[str] = None
