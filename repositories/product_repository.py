"""
Product repository (persistence).

Catalog queries and the small set of catalog writes the terminal needs. It does
not enforce sale rules; the stock decrement used by the sale commit lives in
`sale_repository` so it runs inside the sale's transaction.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from domain.product import DEFAULT_MIN_STOCK, Product
from domain.money import to_money
from domain.time import to_iso_utc, utc_now
from repositories.database import LIKE_ESCAPE, contains_pattern, read_connection, unit_of_work
from repositories.schema import products, stock_movements

logger = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 50

ADJUSTMENT_MOVEMENT = "adjustment"


def _row_to_product(row: Mapping[str, Any]) -> Product:
    """Convert a products row into a Product."""

    return Product(
        product_id=int(row["product_id"]),
        name=str(row["name"]),
        sale_price=Decimal(row["sale_price"]),
        stock=int(row["stock"]),
        min_stock=int(row["min_stock"]),
        cost_price=Decimal(row["cost_price"]) if row.get("cost_price") is not None else None,
        barcode=row.get("barcode"),
        sku=row.get("sku"),
        brand=row.get("brand"),
        category_id=row.get("category_id"),
        description=row.get("description"),
        active=bool(row["active"]),
    )


def _rows_to_products(rows: Iterable[Mapping[str, Any]]) -> List[Product]:
    """Map rows, skipping (and logging) any row that doesn't form a valid Product."""

    result: List[Product] = []
    for row in rows:
        try:
            result.append(_row_to_product(row))
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.warning(
                "Skipping malformed product row %s: %s", row.get("product_id"), e
            )
    return result


def _fetch(statement) -> List[Mapping[str, Any]]:
    try:
        with read_connection() as conn:
            return list(conn.execute(statement).mappings().all())
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to query products: {e}") from e


def list_active_products(limit: Optional[int] = None) -> List[Product]:
    """All active products ordered by name."""

    statement = select(products).where(products.c.active.is_(True)).order_by(products.c.name)
    if limit is not None:
        statement = statement.limit(limit)
    return _rows_to_products(_fetch(statement))


def search_products(term: str, limit: int = SEARCH_RESULT_LIMIT) -> List[Product]:
    """
    Case-insensitive substring search on name, barcode or SKU (active products only).

    An empty term lists active products. Results are capped at `limit` (50 by default).
    """

    limit = max(1, min(limit, SEARCH_RESULT_LIMIT))
    cleaned = (term or "").strip()
    if not cleaned:
        return list_active_products(limit=limit)

    pattern = contains_pattern(cleaned)
    statement = (
        select(products)
        .where(products.c.active.is_(True))
        .where(
            or_(
                func.lower(products.c.name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(func.coalesce(products.c.barcode, "")).like(pattern, escape=LIKE_ESCAPE),
                func.lower(func.coalesce(products.c.sku, "")).like(pattern, escape=LIKE_ESCAPE),
            )
        )
        .order_by(products.c.name)
        .limit(limit)
    )
    return _rows_to_products(_fetch(statement))


def get_product_by_id(product_id: int) -> Optional[Product]:
    rows = _fetch(select(products).where(products.c.product_id == product_id).limit(1))
    if not rows:
        return None
    return _row_to_product(rows[0])


def get_product_by_code(code: str) -> Optional[Product]:
    """Active product whose barcode or SKU equals `code` exactly, or None."""

    cleaned = (code or "").strip()
    if not cleaned:
        return None
    statement = (
        select(products)
        .where(products.c.active.is_(True))
        .where(or_(products.c.barcode == cleaned, products.c.sku == cleaned))
        .order_by(products.c.product_id)
        .limit(1)
    )
    rows = _fetch(statement)
    if not rows:
        return None
    return _row_to_product(rows[0])


def get_products_by_ids(product_ids: Iterable[int]) -> dict[int, Product]:
    """Fetch several products at once, keyed by id. Missing ids are simply absent."""

    ids = sorted(set(product_ids))
    if not ids:
        return {}
    rows = _fetch(select(products).where(products.c.product_id.in_(ids)))
    return {p.product_id: p for p in _rows_to_products(rows)}


def list_low_stock_products() -> List[Product]:
    """Active products whose stock is below their minimum, lowest stock first."""

    statement = (
        select(products)
        .where(products.c.active.is_(True))
        .where(products.c.stock < products.c.min_stock)
        .order_by(products.c.stock, products.c.name)
    )
    return _rows_to_products(_fetch(statement))


def create_product(
    name: str,
    sale_price: Decimal | str | int,
    stock: int = 0,
    min_stock: int = DEFAULT_MIN_STOCK,
    cost_price: Decimal | str | int | None = None,
    barcode: Optional[str] = None,
    sku: Optional[str] = None,
    brand: Optional[str] = None,
    category_id: Optional[int] = None,
    description: Optional[str] = None,
) -> Product:
    """
    Insert a new product.

    Raises:
        ValueError: invalid values, or barcode/SKU already in use
        RuntimeError: any other store failure
    """

    payload: dict[str, Any] = {
        "name": name,
        "sale_price": to_money(sale_price),
        "cost_price": to_money(cost_price) if cost_price is not None else None,
        "stock": stock,
        "min_stock": min_stock,
        "barcode": barcode or None,
        "sku": sku or None,
        "brand": brand,
        "category_id": category_id,
        "description": description,
        "active": True,
        "created_at_utc": to_iso_utc(utc_now(), name="created_at"),
    }

    # Validate before touching the store so bad input never reaches the table.
    Product(product_id=0, **{k: v for k, v in payload.items() if k != "created_at_utc"})

    try:
        with unit_of_work() as conn:
            result = conn.execute(insert(products).values(payload))
            product_id = int(result.inserted_primary_key[0])
    except IntegrityError as e:
        raise ValueError(f"Product barcode or SKU already exists: {e.orig}") from None
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to create product: {e}") from e

    created = get_product_by_id(product_id)
    if created is None:
        raise RuntimeError(f"Product {product_id} not found after insert")
    return created


def update_product(
    product_id: int,
    reason: Optional[str] = None,
    operator_id: Optional[int] = None,
    **changes: Any,
) -> Product:
    """
    Update catalog fields of a product.

    Only known columns are accepted; money fields are normalized to 2 decimals.
    A stock change is recorded as an "adjustment" stock movement in the same
    transaction, attributed to `operator_id` with `reason`.
    """

    allowed = {
        "name", "sale_price", "cost_price", "stock", "min_stock",
        "barcode", "sku", "brand", "category_id", "description",
    }
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown product fields: {sorted(unknown)}")

    payload = dict(changes)
    for key in ("sale_price", "cost_price"):
        if payload.get(key) is not None:
            payload[key] = to_money(payload[key])
    if "stock" in payload:
        stock = payload["stock"]
        if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
            raise ValueError(f"Stock must be a non-negative integer, got {stock!r}")

    current = get_product_by_id(product_id)
    if current is None:
        raise ValueError(f"Product not found: {product_id}")

    if payload:
        try:
            with unit_of_work() as conn:
                previous_stock = conn.execute(
                    select(products.c.stock).where(products.c.product_id == product_id)
                ).scalar_one()
                conn.execute(update(products).where(products.c.product_id == product_id).values(payload))
                if "stock" in payload and payload["stock"] != previous_stock:
                    conn.execute(
                        insert(stock_movements).values(
                            product_id=product_id,
                            movement_type=ADJUSTMENT_MOVEMENT,
                            quantity_delta=payload["stock"] - previous_stock,
                            stock_after=payload["stock"],
                            operator_id=operator_id,
                            reason=reason or "Stock adjustment",
                            created_at_utc=to_iso_utc(utc_now(), name="created_at"),
                        )
                    )
        except IntegrityError as e:
            raise ValueError(f"Invalid product update: {e.orig}") from None
        except SQLAlchemyError as e:
            raise RuntimeError(f"Failed to update product: {e}") from e

        if "stock" in payload and payload["stock"] != current.stock:
            logger.info(
                "Stock of product %s adjusted from %s to %s", product_id, current.stock, payload["stock"]
            )

    updated = get_product_by_id(product_id)
    if updated is None:
        raise RuntimeError(f"Product {product_id} disappeared during update")
    return updated


def deactivate_product(product_id: int) -> None:
    """Soft-delete a product so existing sales keep their reference."""

    try:
        with unit_of_work() as conn:
            result = conn.execute(
                update(products).where(products.c.product_id == product_id).values(active=False)
            )
            updated_rows = result.rowcount
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to deactivate product: {e}") from e

    if updated_rows == 0:
        raise ValueError(f"Product not found: {product_id}")


__all__ = [
    "SEARCH_RESULT_LIMIT",
    "ADJUSTMENT_MOVEMENT",
    "list_active_products",
    "search_products",
    "get_product_by_id",
    "get_product_by_code",
    "get_products_by_ids",
    "list_low_stock_products",
    "create_product",
    "update_product",
    "deactivate_product",
]
