"""
Tests for `repositories/customer_repository.py` against a temporary SQLite store.

Covers contract rules:
- The walk-in customer (id 1) is seeded and cannot be deactivated.
- Search needs at least 3 characters and matches name or document number.
- Search returns at most 20 active customers.
- `%` and `_` in a search term match literally.
"""

from __future__ import annotations

import pytest

from domain.customer import WALK_IN_CUSTOMER_ID
from repositories.customer_repository import (
    SEARCH_RESULT_LIMIT,
    create_customer,
    deactivate_customer,
    get_customer_by_id,
    get_walk_in_customer,
    list_active_customers,
    search_customers,
    update_customer,
)
from repositories.database import get_engine
from repositories.schema import create_schema


def test_walk_in_customer_is_seeded(store) -> None:
    walk_in = get_walk_in_customer()

    assert walk_in.customer_id == WALK_IN_CUSTOMER_ID
    assert walk_in.is_walk_in
    assert walk_in.active


def test_schema_initialisation_is_idempotent(store) -> None:
    create_schema(get_engine())

    assert [c.customer_id for c in list_active_customers()] == [WALK_IN_CUSTOMER_ID]


def test_walk_in_customer_cannot_be_deactivated(store) -> None:
    with pytest.raises(ValueError):
        deactivate_customer(WALK_IN_CUSTOMER_ID)

    assert get_walk_in_customer().active


def test_search_requires_three_characters(store) -> None:
    create_customer("Ana Torres", document_number="45678912")

    assert search_customers("an") == []
    assert search_customers("  a ") == []
    assert [c.full_name for c in search_customers("ana")] == ["Ana Torres"]


def test_search_by_document_number(store) -> None:
    create_customer("Librería El Estudiante", document_type="RUC", document_number="20512345678")

    found = search_customers("512345")

    assert [c.document_type for c in found] == ["RUC"]


def test_search_is_case_insensitive_and_capped(store) -> None:
    for i in range(SEARCH_RESULT_LIMIT + 3):
        create_customer(f"Cliente Frecuente {i:02d}")

    found = search_customers("FRECUENTE")

    assert len(found) == SEARCH_RESULT_LIMIT


def test_deactivated_customer_is_not_searchable(store) -> None:
    customer = create_customer("Pedro Ramos")

    deactivate_customer(customer.customer_id)

    assert search_customers("pedro") == []
    assert get_customer_by_id(customer.customer_id).active is False


def test_update_customer(store) -> None:
    customer = create_customer("Rosa Quispe")

    updated = update_customer(customer.customer_id, phone="999888777", email="rosa@example.com")

    assert updated.phone == "999888777"
    assert updated.email == "rosa@example.com"

    with pytest.raises(ValueError):
        update_customer(customer.customer_id, full_name="  ")


def test_create_customer_requires_name(store) -> None:
    with pytest.raises(ValueError):
        create_customer("   ")


def test_search_treats_percent_and_underscore_literally(store) -> None:
    create_customer("Ana Torres", document_number="45678912")
    create_customer("Bodega 100% Natural")
    create_customer("Comercial Rio_Sur", document_number="20_400_100")
    create_customer("Comercial RioXSur")

    assert [c.full_name for c in search_customers("0% n")] == ["Bodega 100% Natural"]
    assert [c.full_name for c in search_customers("rio_sur")] == ["Comercial Rio_Sur"]
    assert [c.full_name for c in search_customers("_40")] == ["Comercial Rio_Sur"]
    assert search_customers("%%%") == []
    assert search_customers("___") == []


def test_customer_missing_after_write_is_a_runtime_error(store, monkeypatch) -> None:
    from repositories import customer_repository

    customer = create_customer("Ana Torres")
    monkeypatch.setattr(
        customer_repository,
        "get_customer_by_id",
        lambda customer_id: None if customer_id != customer.customer_id else customer,
    )

    with pytest.raises(RuntimeError):
        create_customer("Luis Paredes")
