"""
Operator repository (persistence).

Operators are the cashiers who register sales. Credentials are managed
outside this application; only identity and role are stored here.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from domain.operator import Operator, OperatorRole
from domain.time import to_iso_utc, utc_now
from repositories.database import read_connection, unit_of_work
from repositories.schema import operators


def _row_to_operator(row: Mapping[str, Any]) -> Operator:
    return Operator(
        operator_id=int(row["operator_id"]),
        username=str(row["username"]),
        full_name=str(row["full_name"]),
        role=OperatorRole(str(row["role"])),
        active=bool(row["active"]),
        email=row.get("email"),
    )


def get_operator_by_id(operator_id: int) -> Optional[Operator]:
    try:
        with read_connection() as conn:
            row = conn.execute(
                select(operators).where(operators.c.operator_id == operator_id).limit(1)
            ).mappings().first()
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to get operator: {e}") from e

    return _row_to_operator(row) if row is not None else None


def list_operators() -> List[Operator]:
    try:
        with read_connection() as conn:
            rows = conn.execute(select(operators).order_by(operators.c.full_name)).mappings().all()
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to list operators: {e}") from e

    return [_row_to_operator(row) for row in rows]


def create_operator(
    username: str,
    full_name: str,
    role: OperatorRole = OperatorRole.SELLER,
    email: Optional[str] = None,
) -> Operator:
    """
    Insert a new operator.

    Raises:
        ValueError: username already taken
    """

    payload: dict[str, Any] = {
        "username": username,
        "full_name": full_name,
        "role": OperatorRole(role).value,
        "email": email,
        "active": True,
        "created_at_utc": to_iso_utc(utc_now(), name="created_at"),
    }

    try:
        with unit_of_work() as conn:
            result = conn.execute(insert(operators).values(payload))
            operator_id = int(result.inserted_primary_key[0])
    except IntegrityError:
        raise ValueError(f"Operator username already exists: {username}") from None
    except SQLAlchemyError as e:
        raise RuntimeError(f"Failed to create operator: {e}") from e

    return Operator(
        operator_id=operator_id,
        username=username,
        full_name=full_name,
        role=OperatorRole(role),
        active=True,
        email=email,
    )


__all__ = ["get_operator_by_id", "list_operators", "create_operator"]
