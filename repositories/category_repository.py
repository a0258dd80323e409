"""
Category repository (persistence).

Read and create catalog categories. Categories are never hard-deleted; an
inactive category is simply left out of listings.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from domain.category import Category
from repositories.database import read_connection, unit_of_work
from repositories.schema import categories

logger = logging.getLogger(__name__)


def _row_to_category(row: Mapping[str, Any]) -> Category:
    return Category(
        category_id=int(row["category_id"]),
        name=str(row["name"]),
        description=row.get("description"),
        active=bool(row["active"]),
    )


def list_categories() -> List[Category]:
    """Active categories ordered by name."""

    statement = select(categories).where(categories.c.active.is_(True)).order_by(categories.c.name)
    try:
        with read_connection() as conn:
            rows = conn.execute(statement).mappings().all()
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to list categories: {e}") from e

    return [_row_to_category(row) for row in rows]


def get_category_by_id(category_id: int) -> Optional[Category]:
    try:
        with read_connection() as conn:
            row = conn.execute(
                select(categories).where(categories.c.category_id == category_id).limit(1)
            ).mappings().first()
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to get category: {e}") from e

    return _row_to_category(row) if row is not None else None


def create_category(name: str, description: Optional[str] = None) -> Category:
    """
    Insert a new category.

    Raises:
        ValueError: empty name, or a category with that name already exists
        RuntimeError: any other store failure
    """

    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Category name is required")

    payload: dict[str, Any] = {
        "name": cleaned,
        "description": (description or "").strip() or None,
        "active": True,
    }

    try:
        with unit_of_work() as conn:
            result = conn.execute(insert(categories).values(payload))
            category_id = int(result.inserted_primary_key[0])
    except IntegrityError:
        raise ValueError(f"Category already exists: {cleaned}") from None
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to create category: {e}") from e

    logger.info("Category %s created: %s", category_id, cleaned)
    return Category(category_id=category_id, **payload)


__all__ = ["list_categories", "get_category_by_id", "create_category"]
