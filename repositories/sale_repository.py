"""
Sale repository (persistence).

Writes a sale as one atomic unit and reads committed sales back. The write
path is the only place in the application that changes stock for a sale:

- insert the sale header
- for every line: conditionally decrement stock (stock >= quantity, product
  active), insert the detail row, insert a stock movement row
- commit; any failure rolls the whole unit back

Commits are serialized by a process-wide lock so two commits never interleave
their header/detail writes, even though a single writer is expected.
"""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence

from sqlalchemy import Connection, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from domain.errors import (
    EmptyCartError,
    InsufficientStockError,
    SaleCommitError,
    SaleValidationError,
)
from domain.sale import (
    CommitResult,
    DocumentType,
    PaymentMethod,
    SaleDetailInput,
    SaleDetailRecord,
    SaleHeaderInput,
    SaleRecord,
    SaleStatus,
    SaleWithDetails,
)
from domain.time import parse_utc_datetime, require_utc_timestamp, start_of_utc_day, to_iso_utc, utc_now
from repositories.database import read_connection, unit_of_work
from repositories.schema import products, sale_details, sales, stock_movements

logger = logging.getLogger(__name__)

_COMMIT_LOCK = threading.Lock()

SALE_MOVEMENT = "sale"


def _row_to_sale(row: Mapping[str, Any]) -> SaleRecord:
    """Convert a sales row into a SaleRecord."""

    return SaleRecord(
        sale_id=int(row["sale_id"]),
        operator_id=int(row["operator_id"]),
        customer_id=int(row["customer_id"]),
        subtotal=Decimal(row["subtotal"]),
        tax=Decimal(row["tax"]),
        total=Decimal(row["total"]),
        discount=Decimal(row["discount"]),
        payment_method=PaymentMethod(str(row["payment_method"])),
        document_type=DocumentType(str(row["document_type"])),
        status=SaleStatus(str(row["status"])),
        sold_at=parse_utc_datetime(row["sold_at_utc"]),
        notes=row.get("notes"),
    )


def _row_to_detail(row: Mapping[str, Any]) -> SaleDetailRecord:
    return SaleDetailRecord(
        detail_id=int(row["detail_id"]),
        sale_id=int(row["sale_id"]),
        product_id=int(row["product_id"]),
        quantity=int(row["quantity"]),
        unit_price=Decimal(row["unit_price"]),
        discount=Decimal(row["discount"]),
        subtotal=Decimal(row["subtotal"]),
        product_name=row.get("product_name"),
    )


def _insert_header(conn: Connection, header: SaleHeaderInput, sold_at: datetime) -> int:
    payload: dict[str, Any] = {
        "operator_id": header.operator_id,
        "customer_id": header.customer_id,
        "subtotal": header.subtotal,
        "tax": header.tax,
        "total": header.total,
        "discount": header.discount,
        "payment_method": header.payment_method.value,
        "document_type": header.document_type.value,
        "status": SaleStatus.COMPLETED.value,
        "notes": header.notes,
        "sold_at_utc": to_iso_utc(sold_at, name="sold_at"),
    }
    result = conn.execute(insert(sales).values(payload))
    return int(result.inserted_primary_key[0])


def _decrement_stock(conn: Connection, line: SaleDetailInput) -> int:
    """
    Take `line.quantity` units out of stock, re-validating against the stored value.

    Returns the stock left after the decrement.

    Raises:
        InsufficientStockError: stock is lower than requested or the product is
            missing/inactive (reported as 0 available)
    """

    result = conn.execute(
        update(products)
        .where(products.c.product_id == line.product_id)
        .where(products.c.active.is_(True))
        .where(products.c.stock >= line.quantity)
        .values(stock=products.c.stock - line.quantity)
    )

    current = conn.execute(
        select(products.c.stock, products.c.name, products.c.active).where(
            products.c.product_id == line.product_id
        )
    ).mappings().first()

    if result.rowcount != 1:
        if current is None or not current["active"]:
            raise InsufficientStockError(line.product_id, requested=line.quantity, available=0)
        raise InsufficientStockError(
            line.product_id,
            requested=line.quantity,
            available=int(current["stock"]),
            product_name=current["name"],
        )

    return int(current["stock"])


def _insert_line(conn: Connection, sale_id: int, header: SaleHeaderInput, line: SaleDetailInput, sold_at_iso: str) -> None:
    stock_after = _decrement_stock(conn, line)

    conn.execute(
        insert(sale_details).values(
            sale_id=sale_id,
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
            discount=line.discount,
            subtotal=line.subtotal,
        )
    )

    conn.execute(
        insert(stock_movements).values(
            product_id=line.product_id,
            movement_type=SALE_MOVEMENT,
            quantity_delta=-line.quantity,
            stock_after=stock_after,
            sale_id=sale_id,
            operator_id=header.operator_id,
            reason=f"Sale #{sale_id}",
            created_at_utc=sold_at_iso,
        )
    )


def commit_sale(
    header: SaleHeaderInput,
    lines: Sequence[SaleDetailInput],
    sold_at: Optional[datetime] = None,
) -> CommitResult:
    """
    Persist a sale header, its lines and the matching stock decrements atomically.

    Args:
        header: Totals, payment and references for the sale
        lines: One entry per product (product ids must be unique)
        sold_at: UTC timestamp of the sale (default: now)

    Returns:
        CommitResult with the new sale id

    Raises:
        EmptyCartError: no lines
        InsufficientStockError: a line exceeds the stored stock (nothing written)
        SaleValidationError: duplicate product lines
        SaleCommitError: the store failed (nothing written)
    """

    if not lines:
        raise EmptyCartError()

    product_ids = [line.product_id for line in lines]
    if len(set(product_ids)) != len(product_ids):
        raise SaleValidationError("Each product may appear only once in a sale")

    sold_at = sold_at or utc_now()
    require_utc_timestamp("sold_at", sold_at)
    sold_at_iso = to_iso_utc(sold_at, name="sold_at")

    with _COMMIT_LOCK:
        try:
            with unit_of_work() as conn:
                sale_id = _insert_header(conn, header, sold_at)
                for line in lines:
                    _insert_line(conn, sale_id, header, line, sold_at_iso)
        except SaleValidationError as e:
            logger.warning("Sale rejected at commit time, transaction rolled back: %s", e)
            raise
        except SQLAlchemyError as e:
            logger.exception("Sale commit failed, transaction rolled back")
            raise SaleCommitError(f"Failed to record sale: {e}") from e

    logger.info(
        "Sale %s committed: %d line(s), total %s (%s)",
        sale_id, len(lines), header.total, header.payment_method.value,
    )
    return CommitResult(sale_id=sale_id, success=True, sold_at=sold_at)


def get_sale_by_id(sale_id: int) -> Optional[SaleRecord]:
    """
    Retrieve a single sale header by its ID.

    Returns:
        SaleRecord or None if not found
    """

    try:
        with read_connection() as conn:
            row = conn.execute(select(sales).where(sales.c.sale_id == sale_id).limit(1)).mappings().first()
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to get sale: {e}") from e

    return _row_to_sale(row) if row is not None else None


def list_sale_details(sale_id: int) -> List[SaleDetailRecord]:
    """Detail rows of a sale with the product name, in insertion order."""

    statement = (
        select(sale_details, products.c.name.label("product_name"))
        .join(products, products.c.product_id == sale_details.c.product_id)
        .where(sale_details.c.sale_id == sale_id)
        .order_by(sale_details.c.detail_id)
    )
    try:
        with read_connection() as conn:
            rows = conn.execute(statement).mappings().all()
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to list sale details: {e}") from e

    return [_row_to_detail(row) for row in rows]


def get_sale_with_details(sale_id: int) -> Optional[SaleWithDetails]:
    sale = get_sale_by_id(sale_id)
    if sale is None:
        return None
    return SaleWithDetails(sale=sale, details=list_sale_details(sale_id))


def list_sales_between(start: datetime, end: datetime) -> List[SaleRecord]:
    """Completed sales with start <= sold_at < end, newest first."""

    statement = (
        select(sales)
        .where(sales.c.status == SaleStatus.COMPLETED.value)
        .where(sales.c.sold_at_utc >= to_iso_utc(start, name="start"))
        .where(sales.c.sold_at_utc < to_iso_utc(end, name="end"))
        .order_by(sales.c.sold_at_utc.desc(), sales.c.sale_id.desc())
    )
    try:
        with read_connection() as conn:
            rows = conn.execute(statement).mappings().all()
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to list sales: {e}") from e

    return [_row_to_sale(row) for row in rows]


def list_sales_for_day(day: date) -> List[SaleRecord]:
    start = start_of_utc_day(day)
    return list_sales_between(start, start + timedelta(days=1))


def list_sales_by_customer(customer_id: int) -> List[SaleRecord]:
    statement = select(sales).where(sales.c.customer_id == customer_id).order_by(sales.c.sold_at_utc.desc())
    try:
        with read_connection() as conn:
            rows = conn.execute(statement).mappings().all()
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to list sales: {e}") from e

    return [_row_to_sale(row) for row in rows]


__all__ = [
    "commit_sale",
    "get_sale_by_id",
    "list_sale_details",
    "get_sale_with_details",
    "list_sales_between",
    "list_sales_for_day",
    "list_sales_by_customer",
]
