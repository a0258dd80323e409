"""
Products API Endpoints.

Catalog search and lookup for the till.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from api.models import ProductListResponse, ProductResponse
from domain.product import Product
from repositories.product_repository import (
    SEARCH_RESULT_LIMIT,
    get_product_by_id,
    list_low_stock_products,
    search_products,
)

router = APIRouter()


def product_to_response(product: Product) -> ProductResponse:
    return ProductResponse(
        product_id=product.product_id,
        name=product.name,
        sale_price=product.sale_price,
        stock=product.stock,
        min_stock=product.min_stock,
        barcode=product.barcode,
        sku=product.sku,
        brand=product.brand,
        category_id=product.category_id,
        is_low_stock=product.is_low_stock,
    )


@router.get(
    "/products",
    response_model=ProductListResponse,
    summary="Search Products",
    description="Case-insensitive search on name, barcode or SKU over active products."
)
def list_products(
    q: Optional[str] = Query(None, description="Text to match against name, barcode or SKU"),
    limit: int = Query(SEARCH_RESULT_LIMIT, ge=1, le=SEARCH_RESULT_LIMIT, description="Maximum results"),
):
    """
    Search the catalog.

    **Example usage:**
    - Active products: `GET /api/v1/products`
    - By name: `GET /api/v1/products?q=cuaderno`
    - By scanned barcode: `GET /api/v1/products?q=7751234500012`
    """
    try:
        found = search_products(q or "", limit=limit)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to search products: {str(e)}")

    return ProductListResponse(
        items=[product_to_response(p) for p in found],
        total_count=len(found),
        query=q,
    )


@router.get(
    "/products/low-stock",
    response_model=ProductListResponse,
    summary="Low Stock Products",
    description="Active products whose stock is below their minimum."
)
def low_stock_products():
    try:
        found = list_low_stock_products()
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to list low stock products: {str(e)}")

    return ProductListResponse(items=[product_to_response(p) for p in found], total_count=len(found))


@router.get(
    "/products/{product_id}",
    response_model=ProductResponse,
    summary="Get Product",
)
def get_product(product_id: int):
    try:
        product = get_product_by_id(product_id)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load product: {str(e)}")

    if product is None or not product.active:
        raise HTTPException(status_code=404, detail=f"Product not found: {product_id}")
    return product_to_response(product)
