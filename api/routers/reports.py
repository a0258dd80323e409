"""
Reports API Endpoints.

Dashboard figures, best sellers, per-day sales and the stock movement log.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response

from api.models import (
    DailySalesResponse,
    DashboardResponse,
    StockMovementResponse,
    TopProductResponse,
)
from domain.time import utc_now
from repositories.report_repository import list_stock_movements
from services.csv_export_service import generate_daily_summary_csv
from services.report_service import (
    DEFAULT_REPORT_DAYS,
    DEFAULT_TOP_PRODUCTS,
    daily_sales_summary,
    dashboard,
    top_products,
)

router = APIRouter()


@router.get(
    "/reports/dashboard",
    response_model=DashboardResponse,
    summary="Dashboard",
    description="Active products, today's sales and revenue, and low stock count."
)
def get_dashboard():
    try:
        stats = dashboard()
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load dashboard: {str(e)}")

    return DashboardResponse(
        total_products=stats.total_products,
        sales_today=stats.sales_today,
        revenue_today=stats.revenue_today,
        low_stock_products=stats.low_stock_products,
    )


@router.get(
    "/reports/top-products",
    response_model=List[TopProductResponse],
    summary="Best Sellers",
)
def get_top_products(
    limit: int = Query(DEFAULT_TOP_PRODUCTS, ge=1, le=100, description="Number of products"),
):
    try:
        rows = top_products(limit)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load top products: {str(e)}")

    return [
        TopProductResponse(
            product_id=row.product_id,
            name=row.name,
            quantity_sold=row.quantity_sold,
            amount_sold=row.amount_sold,
        )
        for row in rows
    ]


@router.get(
    "/reports/daily",
    response_model=List[DailySalesResponse],
    summary="Daily Sales",
    description="Sale count, revenue, discounts and average ticket per UTC day, newest first."
)
def get_daily_sales(
    days: int = Query(DEFAULT_REPORT_DAYS, ge=1, le=366, description="Number of days back from today"),
):
    try:
        rows = daily_sales_summary(days=days)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load daily sales: {str(e)}")

    return [
        DailySalesResponse(
            day=row.day,
            sale_count=row.sale_count,
            revenue=row.revenue,
            discount_total=row.discount_total,
            average_ticket=row.average_ticket,
        )
        for row in rows
    ]


@router.get(
    "/reports/daily.csv",
    summary="Download Daily Sales CSV",
    response_class=Response,
)
def download_daily_sales_csv(
    days: int = Query(DEFAULT_REPORT_DAYS, ge=1, le=366),
):
    """
    Daily sales summary as a CSV download.

    Free-text values are sanitized against CSV formula injection.
    """
    try:
        csv_content = generate_daily_summary_csv(days=days)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate CSV: {str(e)}")

    filename = f"daily_sales_{utc_now().date().isoformat()}.csv"
    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get(
    "/reports/stock-movements",
    response_model=List[StockMovementResponse],
    summary="Stock Movements",
    description="Stock movement log, newest first, optionally for one product."
)
def get_stock_movements(
    product_id: Optional[int] = Query(None, description="Only movements of this product"),
    limit: int = Query(100, ge=1, le=1000),
):
    try:
        movements = list_stock_movements(product_id=product_id, limit=limit)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load stock movements: {str(e)}")

    return [
        StockMovementResponse(
            movement_id=m.movement_id,
            product_id=m.product_id,
            product_name=m.product_name,
            movement_type=m.movement_type,
            quantity_delta=m.quantity_delta,
            stock_after=m.stock_after,
            sale_id=m.sale_id,
            operator_id=m.operator_id,
            reason=m.reason,
            created_at=m.created_at,
        )
        for m in movements
    ]
