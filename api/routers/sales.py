"""
Sales API Endpoints.

Pricing a cart (quote) and registering a sale (commit), plus sale lookup.

Status codes for POST /sales:
- 400: validation (empty cart, insufficient payment, inactive operator)
- 403: general discount not allowed for the operator's role
- 404: unknown product, customer or operator
- 409: insufficient stock (at add time or re-checked at commit time)
- 500: the store failed; nothing was written
"""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, HTTPException, status

from api.models import (
    QuoteLineResponse,
    QuoteRequest,
    QuoteResponse,
    SaleCommitResponse,
    SaleDetailResponse,
    SaleListResponse,
    SaleRequest,
    SaleResponse,
    SaleSummaryResponse,
    SaleWithDetailsResponse,
)
from domain.cart import CartSession
from domain.cart_calculator import SaleSummary
from domain.errors import (
    DiscountNotAllowedError,
    InsufficientStockError,
    SaleCommitError,
    SaleValidationError,
)
from domain.money import ZERO
from domain.operator import Operator
from domain.sale import SaleRecord
from domain.time import utc_now
from repositories.operator_repository import get_operator_by_id
from repositories.sale_repository import get_sale_with_details, list_sales_for_day
from services.checkout_service import (
    CartLineRequest,
    UnknownReferenceError,
    apply_general_discount,
    commit_cart,
    load_cart,
    new_session,
    select_customer,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def summary_to_response(summary: SaleSummary) -> SaleSummaryResponse:
    return SaleSummaryResponse(
        gross_subtotal=summary.gross_subtotal,
        subtotal=summary.subtotal,
        item_discount=summary.item_discount,
        general_discount=summary.general_discount,
        discount=summary.discount,
        net_subtotal=summary.net_subtotal,
        tax=summary.tax,
        total=summary.total,
        change=summary.change,
        is_payable=summary.is_payable,
    )


def sale_to_response(sale: SaleRecord) -> SaleResponse:
    return SaleResponse(
        sale_id=sale.sale_id,
        operator_id=sale.operator_id,
        customer_id=sale.customer_id,
        subtotal=sale.subtotal,
        tax=sale.tax,
        total=sale.total,
        discount=sale.discount,
        payment_method=sale.payment_method,
        document_type=sale.document_type,
        status=sale.status.value,
        sold_at=sale.sold_at,
        notes=sale.notes,
    )


def _load_operator(operator_id: int) -> Operator:
    operator = get_operator_by_id(operator_id)
    if operator is None:
        raise UnknownReferenceError(f"Operator not found: {operator_id}")
    return operator


def _build_session(request: QuoteRequest, operator: Optional[Operator]) -> CartSession:
    """Rebuild the till's cart from a request payload."""

    session = new_session()
    select_customer(session, request.customer_id)
    load_cart(
        session,
        [CartLineRequest(line.product_id, line.quantity, line.discount) for line in request.items],
    )

    if operator is not None:
        apply_general_discount(session, operator, request.general_discount)
    else:
        session.set_general_discount(request.general_discount)

    session.set_payment_method(request.payment_method)
    if request.amount_tendered is not None:
        session.set_amount_tendered(request.amount_tendered)
    return session


def _to_http_error(e: Exception, action: str) -> HTTPException:
    if isinstance(e, UnknownReferenceError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, DiscountNotAllowedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, InsufficientStockError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, (SaleValidationError, ValueError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, SaleCommitError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    logger.exception("Unexpected error while trying to %s", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(e)}"
    )


@router.post(
    "/sales/quote",
    response_model=QuoteResponse,
    summary="Price Cart",
    description="Compute subtotal, discounts, tax, total and change for a cart. Nothing is written."
)
def quote_cart(request: QuoteRequest):
    """
    Price a cart.

    Lines with quantity 0 or less are dropped. Quantities above stock are
    rejected with 409. When `operator_id` is given, a general discount is
    checked against the operator's role (403 if not allowed).

    **Example request:**
    ```json
    {
      "items": [
        {"product_id": 12, "quantity": 2},
        {"product_id": 15, "quantity": 1, "discount": "1.00"}
      ],
      "general_discount": "2.00",
      "payment_method": "cash",
      "amount_tendered": "30.00"
    }
    ```
    """
    try:
        operator = _load_operator(request.operator_id) if request.operator_id is not None else None
        session = _build_session(request, operator)
        summary = session.summary()
    except Exception as e:
        raise _to_http_error(e, "price cart")

    return QuoteResponse(
        items=[
            QuoteLineResponse(
                product_id=item.product_id,
                name=item.name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                discount=item.discount,
                subtotal=item.subtotal,
                available_stock=item.available_stock,
            )
            for item in session.items
        ],
        summary=summary_to_response(summary),
        tax_rate=session.tax_rate,
        customer_id=session.customer.customer_id,
        payment_method=session.payment_method,
    )


@router.post(
    "/sales",
    response_model=SaleCommitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Sale",
    description="Validate and atomically commit a sale: header, lines and stock decrements."
)
def register_sale(request: SaleRequest):
    """
    Register a sale.

    **Process:**
    1. Loads the operator, customer and current catalog snapshot
    2. Rebuilds the cart with the same rules as the till
    3. Checks preconditions (operator active, cart not empty, stock, discount role, cash tendered)
    4. Writes header, lines, stock decrements and stock movements in one transaction

    **All-or-Nothing:**
    If any line fails the commit-time stock check, or the store fails, nothing is written.
    """
    try:
        operator = _load_operator(request.operator_id)
        session = _build_session(request, operator)
        receipt = commit_cart(session, operator, request.document_type, request.notes)
    except Exception as e:
        raise _to_http_error(e, "register sale")

    message = "Sale registered."
    if receipt.change > ZERO:
        message = f"Sale registered. Change due: {receipt.change}"

    return SaleCommitResponse(
        success=True,
        sale_id=receipt.sale_id,
        sold_at=receipt.sold_at,
        customer_id=receipt.customer_id,
        payment_method=receipt.payment_method,
        summary=summary_to_response(receipt.summary),
        change=receipt.change,
        message=message,
    )


@router.get(
    "/sales/today",
    response_model=SaleListResponse,
    summary="Today's Sales",
    description="Completed sales for the current UTC day, newest first."
)
def sales_today():
    try:
        sales = list_sales_for_day(utc_now().date())
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to list sales: {str(e)}")

    return SaleListResponse(
        items=[sale_to_response(s) for s in sales],
        total_count=len(sales),
        revenue=sum((s.total for s in sales), Decimal("0.00")),
    )


@router.get(
    "/sales/{sale_id}",
    response_model=SaleWithDetailsResponse,
    summary="Get Sale",
    description="Sale header with its line items."
)
def get_sale(sale_id: int):
    try:
        found = get_sale_with_details(sale_id)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load sale: {str(e)}")

    if found is None:
        raise HTTPException(status_code=404, detail=f"Sale not found: {sale_id}")

    return SaleWithDetailsResponse(
        sale=sale_to_response(found.sale),
        details=[
            SaleDetailResponse(
                detail_id=d.detail_id,
                product_id=d.product_id,
                product_name=d.product_name,
                quantity=d.quantity,
                unit_price=d.unit_price,
                discount=d.discount,
                subtotal=d.subtotal,
            )
            for d in found.details
        ],
    )
