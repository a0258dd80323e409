"""
Customers API Endpoints.

Customer lookup for the till; the walk-in customer is always available.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from api.models import CustomerListResponse, CustomerResponse
from domain.customer import Customer
from repositories.customer_repository import get_walk_in_customer, search_customers

router = APIRouter()


def customer_to_response(customer: Customer) -> CustomerResponse:
    return CustomerResponse(
        customer_id=customer.customer_id,
        full_name=customer.full_name,
        document_type=customer.document_type,
        document_number=customer.document_number,
        email=customer.email,
        phone=customer.phone,
        is_walk_in=customer.is_walk_in,
    )


@router.get(
    "/customers",
    response_model=CustomerListResponse,
    summary="Search Customers",
    description="Search active customers by name or document number (at least 3 characters)."
)
def find_customers(
    q: Optional[str] = Query(None, description="Name or document number fragment"),
):
    """
    Search customers.

    Terms shorter than 3 characters return an empty list.

    **Example usage:** `GET /api/v1/customers?q=garc`
    """
    try:
        found = search_customers(q or "")
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to search customers: {str(e)}")

    return CustomerListResponse(items=[customer_to_response(c) for c in found], total_count=len(found))


@router.get(
    "/customers/walk-in",
    response_model=CustomerResponse,
    summary="Walk-in Customer",
)
def walk_in_customer():
    try:
        return customer_to_response(get_walk_in_customer())
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load walk-in customer: {str(e)}")
