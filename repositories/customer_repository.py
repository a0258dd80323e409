"""
Customer repository (persistence).

Lookup and maintenance of customers. The walk-in sentinel (id 1) is seeded by
`schema.create_schema` and is protected from deactivation.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from domain.customer import WALK_IN_CUSTOMER, WALK_IN_CUSTOMER_ID, Customer
from domain.time import to_iso_utc, utc_now
from repositories.database import LIKE_ESCAPE, contains_pattern, read_connection, unit_of_work
from repositories.schema import customers

MIN_SEARCH_TERM_LENGTH = 3
SEARCH_RESULT_LIMIT = 20

_EDITABLE_FIELDS = {
    "full_name", "document_type", "document_number", "email", "phone", "address", "notes",
}


def _row_to_customer(row: Mapping[str, Any]) -> Customer:
    """Convert a customers row into a Customer."""

    return Customer(
        customer_id=int(row["customer_id"]),
        full_name=str(row["full_name"]),
        document_type=str(row.get("document_type") or "DNI"),
        document_number=row.get("document_number"),
        email=row.get("email"),
        phone=row.get("phone"),
        address=row.get("address"),
        notes=row.get("notes"),
        active=bool(row["active"]),
    )


def _fetch(statement) -> List[Mapping[str, Any]]:
    try:
        with read_connection() as conn:
            return list(conn.execute(statement).mappings().all())
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to query customers: {e}") from e


def search_customers(term: str, limit: int = SEARCH_RESULT_LIMIT) -> List[Customer]:
    """
    Case-insensitive substring search on full name or document number.

    Terms shorter than 3 characters return no results.
    """

    cleaned = (term or "").strip()
    if len(cleaned) < MIN_SEARCH_TERM_LENGTH:
        return []

    pattern = contains_pattern(cleaned)
    statement = (
        select(customers)
        .where(customers.c.active.is_(True))
        .where(
            or_(
                func.lower(customers.c.full_name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(func.coalesce(customers.c.document_number, "")).like(pattern, escape=LIKE_ESCAPE),
            )
        )
        .order_by(customers.c.full_name)
        .limit(limit)
    )
    return [_row_to_customer(row) for row in _fetch(statement)]


def list_active_customers() -> List[Customer]:
    statement = select(customers).where(customers.c.active.is_(True)).order_by(customers.c.full_name)
    return [_row_to_customer(row) for row in _fetch(statement)]


def get_customer_by_id(customer_id: int) -> Optional[Customer]:
    rows = _fetch(select(customers).where(customers.c.customer_id == customer_id).limit(1))
    if not rows:
        return None
    return _row_to_customer(rows[0])


def get_walk_in_customer() -> Customer:
    """The walk-in sentinel as stored, falling back to the built-in definition."""

    return get_customer_by_id(WALK_IN_CUSTOMER_ID) or WALK_IN_CUSTOMER


def create_customer(
    full_name: str,
    document_type: str = "DNI",
    document_number: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    address: Optional[str] = None,
    notes: Optional[str] = None,
) -> Customer:
    if not full_name or not full_name.strip():
        raise ValueError("Customer full_name is required")

    payload: dict[str, Any] = {
        "full_name": full_name.strip(),
        "document_type": document_type or "DNI",
        "document_number": document_number or None,
        "email": email or None,
        "phone": phone or None,
        "address": address or None,
        "notes": notes or None,
        "active": True,
        "created_at_utc": to_iso_utc(utc_now(), name="created_at"),
    }

    try:
        with unit_of_work() as conn:
            result = conn.execute(insert(customers).values(payload))
            customer_id = int(result.inserted_primary_key[0])
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to create customer: {e}") from e

    created = get_customer_by_id(customer_id)
    if created is None:
        raise RuntimeError(f"Customer {customer_id} not found after insert")
    return created


def update_customer(customer_id: int, **changes: Any) -> Customer:
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown customer fields: {sorted(unknown)}")
    if "full_name" in changes and not (changes["full_name"] or "").strip():
        raise ValueError("Customer full_name is required")

    if get_customer_by_id(customer_id) is None:
        raise ValueError(f"Customer not found: {customer_id}")

    if changes:
        try:
            with unit_of_work() as conn:
                conn.execute(
                    update(customers).where(customers.c.customer_id == customer_id).values(changes)
                )
        except SQLAlchemyError as e:
            raise RuntimeError(f"Failed to update customer: {e}") from e

    updated = get_customer_by_id(customer_id)
    if updated is None:
        raise RuntimeError(f"Customer {customer_id} disappeared during update")
    return updated


def deactivate_customer(customer_id: int) -> None:
    """Soft-delete a customer. The walk-in customer cannot be deactivated."""

    if customer_id == WALK_IN_CUSTOMER_ID:
        raise ValueError("The walk-in customer cannot be deactivated")

    try:
        with unit_of_work() as conn:
            result = conn.execute(
                update(customers).where(customers.c.customer_id == customer_id).values(active=False)
            )
            updated_rows = result.rowcount
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to deactivate customer: {e}") from e

    if updated_rows == 0:
        raise ValueError(f"Customer not found: {customer_id}")


__all__ = [
    "search_customers",
    "list_active_customers",
    "get_customer_by_id",
    "get_walk_in_customer",
    "create_customer",
    "update_customer",
    "deactivate_customer",
]
