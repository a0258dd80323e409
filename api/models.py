"""
API Request and Response Models.

Pydantic models for validating till requests and serializing responses.
Money is always sent and returned as decimal strings ("25.96").
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from domain.sale import DocumentType, PaymentMethod


# ============================================================================
# Catalog Models
# ============================================================================

class ProductResponse(BaseModel):
    """Single catalog product."""
    product_id: int
    name: str
    sale_price: Decimal
    stock: int
    min_stock: int
    barcode: Optional[str] = None
    sku: Optional[str] = None
    brand: Optional[str] = None
    category_id: Optional[int] = None
    is_low_stock: bool

    class Config:
        json_schema_extra = {
            "example": {
                "product_id": 12,
                "name": "Cuaderno A4 100 hojas",
                "sale_price": "10.00",
                "stock": 24,
                "min_stock": 5,
                "barcode": "7751234500012",
                "sku": "CUA-A4-100",
                "brand": "Standford",
                "category_id": 3,
                "is_low_stock": False
            }
        }


class ProductListResponse(BaseModel):
    """Response for catalog search."""
    items: List[ProductResponse]
    total_count: int
    query: Optional[str] = None


class CategoryResponse(BaseModel):
    """Catalog category."""
    category_id: int
    name: str
    description: Optional[str] = None


class CategoryCreateRequest(BaseModel):
    """New catalog category."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Oficina",
                "description": "Papeleria y articulos de escritorio"
            }
        }


# ============================================================================
# Customer Models
# ============================================================================

class CustomerResponse(BaseModel):
    """Single customer."""
    customer_id: int
    full_name: str
    document_type: str
    document_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_walk_in: bool


class CustomerListResponse(BaseModel):
    """Response for customer lookup."""
    items: List[CustomerResponse]
    total_count: int


# ============================================================================
# Cart / Sale Models
# ============================================================================

class CartLine(BaseModel):
    """One line of the cart as sent by the till."""
    product_id: int
    quantity: int = Field(..., description="Units; 0 or less drops the line")
    discount: Decimal = Field(Decimal("0"), description="Line discount, clamped to the line total")


class QuoteRequest(BaseModel):
    """Cart payload to price without writing anything."""
    items: List[CartLine] = Field(default_factory=list)
    general_discount: Decimal = Decimal("0")
    payment_method: PaymentMethod = PaymentMethod.CASH
    amount_tendered: Optional[Decimal] = None
    customer_id: Optional[int] = Field(None, description="Omit for the walk-in customer")
    operator_id: Optional[int] = Field(
        None,
        description="When given, the general discount is checked against the operator's role"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "items": [
                    {"product_id": 12, "quantity": 2, "discount": "0"},
                    {"product_id": 15, "quantity": 1, "discount": "1.00"}
                ],
                "general_discount": "2.00",
                "payment_method": "cash",
                "amount_tendered": "30.00",
                "operator_id": 1
            }
        }


class SaleRequest(QuoteRequest):
    """Cart payload to commit as a sale."""
    operator_id: int = Field(..., description="Operator registering the sale")
    items: List[CartLine] = Field(..., min_length=1)
    document_type: DocumentType = DocumentType.RECEIPT
    notes: Optional[str] = Field(None, max_length=500)


class QuoteLineResponse(BaseModel):
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int
    discount: Decimal
    subtotal: Decimal
    available_stock: int


class SaleSummaryResponse(BaseModel):
    """Totals computed by the cart calculator."""
    gross_subtotal: Decimal
    subtotal: Decimal
    item_discount: Decimal
    general_discount: Decimal
    discount: Decimal
    net_subtotal: Decimal
    tax: Decimal
    total: Decimal
    change: Decimal
    is_payable: bool


class QuoteResponse(BaseModel):
    """Priced cart."""
    items: List[QuoteLineResponse]
    summary: SaleSummaryResponse
    tax_rate: Decimal
    customer_id: int
    payment_method: PaymentMethod

    class Config:
        json_schema_extra = {
            "example": {
                "items": [],
                "summary": {
                    "gross_subtotal": "25.00",
                    "subtotal": "24.00",
                    "item_discount": "1.00",
                    "general_discount": "2.00",
                    "discount": "3.00",
                    "net_subtotal": "22.00",
                    "tax": "3.96",
                    "total": "25.96",
                    "change": "4.04",
                    "is_payable": True
                },
                "tax_rate": "0.18",
                "customer_id": 1,
                "payment_method": "cash"
            }
        }


class SaleCommitResponse(BaseModel):
    """Response after a committed sale."""
    success: bool
    sale_id: int
    sold_at: datetime
    customer_id: int
    payment_method: PaymentMethod
    summary: SaleSummaryResponse
    change: Decimal
    message: Optional[str] = None


class SaleResponse(BaseModel):
    """Persisted sale header."""
    sale_id: int
    operator_id: int
    customer_id: int
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    discount: Decimal
    payment_method: PaymentMethod
    document_type: DocumentType
    status: str
    sold_at: datetime
    notes: Optional[str] = None


class SaleDetailResponse(BaseModel):
    detail_id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    discount: Decimal
    subtotal: Decimal


class SaleWithDetailsResponse(BaseModel):
    sale: SaleResponse
    details: List[SaleDetailResponse]


class SaleListResponse(BaseModel):
    items: List[SaleResponse]
    total_count: int
    revenue: Decimal


# ============================================================================
# Report Models
# ============================================================================

class DashboardResponse(BaseModel):
    total_products: int
    sales_today: int
    revenue_today: Decimal
    low_stock_products: int


class TopProductResponse(BaseModel):
    product_id: int
    name: str
    quantity_sold: int
    amount_sold: Decimal


class DailySalesResponse(BaseModel):
    day: date
    sale_count: int
    revenue: Decimal
    discount_total: Decimal
    average_ticket: Decimal


class StockMovementResponse(BaseModel):
    movement_id: int
    product_id: int
    product_name: Optional[str] = None
    movement_type: str
    quantity_delta: int
    stock_after: int
    sale_id: Optional[int] = None
    operator_id: Optional[int] = None
    reason: Optional[str] = None
    created_at: datetime


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Insufficient stock",
                "detail": "Insufficient stock for 'Cuaderno A4 100 hojas' (id 12): requested 30, available 24",
                "status_code": 409
            }
        }
