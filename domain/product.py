"""
Domain: Catalog products.

Products are created and edited through catalog management and are
deactivated (soft-deleted) instead of removed once a sale references them.
The sale engine only needs id, name, price and stock from this type.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .money import ZERO

DEFAULT_MIN_STOCK = 5


@dataclass(frozen=True, slots=True)
class Product:
    """Snapshot of a catalog product as read from the store."""

    product_id: int
    name: str
    sale_price: Decimal
    stock: int
    min_stock: int = DEFAULT_MIN_STOCK
    cost_price: Optional[Decimal] = None
    barcode: Optional[str] = None
    sku: Optional[str] = None
    brand: Optional[str] = None
    category_id: Optional[int] = None
    description: Optional[str] = None
    active: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Product name is required")
        if self.sale_price < ZERO:
            raise ValueError("sale_price must be >= 0")
        if self.cost_price is not None and self.cost_price < ZERO:
            raise ValueError("cost_price must be >= 0")
        if self.stock < 0:
            raise ValueError("stock must be >= 0")
        if self.min_stock < 0:
            raise ValueError("min_stock must be >= 0")

    @property
    def is_low_stock(self) -> bool:
        return self.stock < self.min_stock

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
