"""
Report repository for read-only aggregates over completed sales.

All grouping is by UTC day (the first 10 characters of the stored ISO timestamp).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from domain.money import ZERO
from domain.sale import SaleStatus, StockMovement
from domain.time import parse_utc_datetime, start_of_utc_day, to_iso_utc
from repositories.database import read_connection
from repositories.schema import products, sale_details, sales, stock_movements


@dataclass(frozen=True, slots=True)
class DashboardStats:
    total_products: int
    sales_today: int
    revenue_today: Decimal
    low_stock_products: int


@dataclass(frozen=True, slots=True)
class TopSellingProduct:
    product_id: int
    name: str
    quantity_sold: int
    amount_sold: Decimal


@dataclass(frozen=True, slots=True)
class DailySalesRow:
    day: date
    sale_count: int
    revenue: Decimal
    discount_total: Decimal


def _fetch(statement, what: str) -> List[Mapping[str, Any]]:
    try:
        with read_connection() as conn:
            return list(conn.execute(statement).mappings().all())
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to query {what}: {e}") from e


def _completed():
    return sales.c.status == SaleStatus.COMPLETED.value


def get_dashboard_stats(today: date) -> DashboardStats:
    """Headline numbers for the dashboard: catalog size, today's sales, low stock."""

    start = to_iso_utc(start_of_utc_day(today), name="start")
    end = to_iso_utc(start_of_utc_day(today + timedelta(days=1)), name="end")

    statement = select(
        select(func.count())
        .select_from(products)
        .where(products.c.active.is_(True))
        .scalar_subquery()
        .label("total_products"),
        select(func.count())
        .select_from(sales)
        .where(_completed(), sales.c.sold_at_utc >= start, sales.c.sold_at_utc < end)
        .scalar_subquery()
        .label("sales_today"),
        select(func.coalesce(func.sum(sales.c.total), 0))
        .where(_completed(), sales.c.sold_at_utc >= start, sales.c.sold_at_utc < end)
        .scalar_subquery()
        .label("revenue_cents"),
        select(func.count())
        .select_from(products)
        .where(products.c.active.is_(True), products.c.stock < products.c.min_stock)
        .scalar_subquery()
        .label("low_stock_products"),
    )
    row = _fetch(statement, "dashboard stats")[0]

    return DashboardStats(
        total_products=int(row["total_products"]),
        sales_today=int(row["sales_today"]),
        revenue_today=_cents_to_money(row["revenue_cents"]),
        low_stock_products=int(row["low_stock_products"]),
    )


def _cents_to_money(value: Any) -> Decimal:
    # Aggregates that lose the Money column type come back as raw cents.
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return (Decimal(int(value)) / 100).quantize(Decimal("0.01"))


def get_top_selling_products(limit: int = 10) -> List[TopSellingProduct]:
    """Products ordered by units sold across all completed sales."""

    quantity_sold = func.sum(sale_details.c.quantity).label("quantity_sold")
    statement = (
        select(
            products.c.product_id,
            products.c.name,
            quantity_sold,
            func.sum(sale_details.c.subtotal).label("amount_sold"),
        )
        .select_from(sale_details)
        .join(sales, sales.c.sale_id == sale_details.c.sale_id)
        .join(products, products.c.product_id == sale_details.c.product_id)
        .where(_completed())
        .group_by(products.c.product_id, products.c.name)
        .order_by(quantity_sold.desc(), products.c.name)
        .limit(limit)
    )

    return [
        TopSellingProduct(
            product_id=int(row["product_id"]),
            name=str(row["name"]),
            quantity_sold=int(row["quantity_sold"]),
            amount_sold=_cents_to_money(row["amount_sold"]),
        )
        for row in _fetch(statement, "top selling products")
    ]


def get_daily_sales(days: int, today: date) -> List[DailySalesRow]:
    """
    One row per UTC day with sales in the last `days` days (today included), newest first.
    """

    if days < 1:
        raise ValueError("days must be >= 1")

    start = to_iso_utc(start_of_utc_day(today - timedelta(days=days - 1)), name="start")
    day = func.substr(sales.c.sold_at_utc, 1, 10).label("day")
    statement = (
        select(
            day,
            func.count().label("sale_count"),
            func.sum(sales.c.total).label("revenue"),
            func.sum(sales.c.discount).label("discount_total"),
        )
        .where(_completed(), sales.c.sold_at_utc >= start)
        .group_by(day)
        .order_by(day.desc())
    )

    return [
        DailySalesRow(
            day=date.fromisoformat(str(row["day"])),
            sale_count=int(row["sale_count"]),
            revenue=_cents_to_money(row["revenue"]),
            discount_total=_cents_to_money(row["discount_total"]),
        )
        for row in _fetch(statement, "daily sales")
    ]


def list_stock_movements(product_id: Optional[int] = None, limit: int = 100) -> List[StockMovement]:
    """Most recent stock movements, optionally for one product."""

    statement = (
        select(stock_movements, products.c.name.label("product_name"))
        .join(products, products.c.product_id == stock_movements.c.product_id)
        .order_by(stock_movements.c.created_at_utc.desc(), stock_movements.c.movement_id.desc())
        .limit(limit)
    )
    if product_id is not None:
        statement = statement.where(stock_movements.c.product_id == product_id)

    return [
        StockMovement(
            movement_id=int(row["movement_id"]),
            product_id=int(row["product_id"]),
            movement_type=str(row["movement_type"]),
            quantity_delta=int(row["quantity_delta"]),
            stock_after=int(row["stock_after"]),
            created_at=parse_utc_datetime(row["created_at_utc"]),
            sale_id=row.get("sale_id"),
            operator_id=row.get("operator_id"),
            reason=row.get("reason"),
            product_name=row.get("product_name"),
        )
        for row in _fetch(statement, "stock movements")
    ]


__all__ = [
    "DashboardStats",
    "TopSellingProduct",
    "DailySalesRow",
    "get_dashboard_stats",
    "get_top_selling_products",
    "get_daily_sales",
    "list_stock_movements",
]
