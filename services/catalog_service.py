"""
Catalog service: keeps a cart's stock snapshot in line with the store.

A product that disappeared or was deactivated since it was added is a
not-fatal data error: it is logged and skipped, and the line keeps its
previous snapshot. The commit re-validates stock anyway.
"""

from __future__ import annotations

import logging
from typing import List

from domain.cart import CartSession
from domain.product import Product
from repositories.product_repository import get_product_by_code, get_products_by_ids

logger = logging.getLogger(__name__)


def refresh_cart_stock(session: CartSession) -> List[int]:
    """
    Reload stock for every cart line.

    Returns:
        Product ids that could not be refreshed (missing or inactive)
    """

    catalog = get_products_by_ids(item.product_id for item in session.items)
    skipped: List[int] = []

    for item in session.items:
        product = catalog.get(item.product_id)
        if product is None or not product.active:
            logger.warning(
                "Product %s in cart not found in catalog during refresh; keeping last known stock %s",
                item.product_id,
                item.available_stock,
            )
            skipped.append(item.product_id)
            continue
        session.refresh_stock(item.product_id, product.stock)

    return skipped


def find_by_code(code: str) -> Product | None:
    """
    Exact barcode or SKU match, for scanner input.

    Returns None when the code matches no active product, including when it
    only appears inside names.
    """

    return get_product_by_code(code)


__all__ = ["refresh_cart_stock", "find_by_code"]
