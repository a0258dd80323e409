"""
Report service: dashboard and sales summaries built on the report repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from domain.money import ZERO, round_money
from domain.time import utc_now
from repositories.report_repository import (
    DashboardStats,
    TopSellingProduct,
    get_daily_sales,
    get_dashboard_stats,
    get_top_selling_products,
)

DEFAULT_REPORT_DAYS = 30
DEFAULT_TOP_PRODUCTS = 10


@dataclass(frozen=True, slots=True)
class DailySalesSummary:
    day: date
    sale_count: int
    revenue: Decimal
    discount_total: Decimal
    average_ticket: Decimal


def _today(today: Optional[date]) -> date:
    return today or utc_now().date()


def dashboard(today: Optional[date] = None) -> DashboardStats:
    return get_dashboard_stats(_today(today))


def top_products(limit: int = DEFAULT_TOP_PRODUCTS) -> List[TopSellingProduct]:
    if limit < 1:
        raise ValueError("limit must be >= 1")
    return get_top_selling_products(limit)


def daily_sales_summary(days: int = DEFAULT_REPORT_DAYS, today: Optional[date] = None) -> List[DailySalesSummary]:
    """
    Per-day sales for the last `days` days, newest first.

    The average ticket is revenue / sale count, rounded half-up to 2 decimals.
    """

    return [
        DailySalesSummary(
            day=row.day,
            sale_count=row.sale_count,
            revenue=row.revenue,
            discount_total=row.discount_total,
            average_ticket=round_money(row.revenue / row.sale_count) if row.sale_count else ZERO,
        )
        for row in get_daily_sales(days, _today(today))
    ]


__all__ = [
    "DailySalesSummary",
    "DEFAULT_REPORT_DAYS",
    "DEFAULT_TOP_PRODUCTS",
    "dashboard",
    "top_products",
    "daily_sales_summary",
]
