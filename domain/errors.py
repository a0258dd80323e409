"""
Domain errors raised by the sale transaction engine.

Validation errors subclass ValueError and are raised before anything is
written (or inside the commit transaction, which then rolls back in full).
Persistence failures during a commit surface as SaleCommitError.
"""

from __future__ import annotations

from typing import Optional


class SaleValidationError(ValueError):
    """A sale or cart mutation was rejected; no state was changed."""


class EmptyCartError(SaleValidationError):
    def __init__(self) -> None:
        super().__init__("Cart is empty")


class InsufficientStockError(SaleValidationError):
    """Requested quantity exceeds the stock known for the product."""

    def __init__(
        self,
        product_id: int,
        requested: int,
        available: int,
        product_name: Optional[str] = None,
    ) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.product_name = product_name
        label = product_name or f"product {product_id}"
        super().__init__(
            f"Insufficient stock for {label}: requested {requested}, available {available}"
        )


class OutOfStockError(InsufficientStockError):
    def __init__(self, product_id: int, product_name: Optional[str] = None) -> None:
        super().__init__(product_id, requested=1, available=0, product_name=product_name)


class InsufficientPaymentError(SaleValidationError):
    def __init__(self, tendered, total) -> None:
        self.tendered = tendered
        self.total = total
        super().__init__(f"Amount tendered {tendered} is less than total {total}")


class DiscountNotAllowedError(SaleValidationError):
    """The operator's role may not apply a general discount."""


class InactiveOperatorError(SaleValidationError):
    pass


class SaleCommitError(RuntimeError):
    """The store failed while writing a sale; nothing was persisted."""


__all__ = [
    "SaleValidationError",
    "EmptyCartError",
    "InsufficientStockError",
    "OutOfStockError",
    "InsufficientPaymentError",
    "DiscountNotAllowedError",
    "InactiveOperatorError",
    "SaleCommitError",
]
