"""
Tests for `repositories/category_repository.py` against a temporary SQLite store.

Covers contract rules:
- Listing returns active categories ordered by name.
- Names are required and unique.
- Products can reference a created category.
"""

from __future__ import annotations

import pytest
from sqlalchemy import update

from repositories.category_repository import create_category, get_category_by_id, list_categories
from repositories.database import unit_of_work
from repositories.schema import categories


def test_create_and_list_categories_ordered_by_name(store) -> None:
    create_category("Oficina", "Papeleria")
    create_category("Bebidas")
    create_category("  Útiles escolares  ")

    listed = list_categories()

    assert [c.name for c in listed] == ["Bebidas", "Oficina", "Útiles escolares"]
    assert listed[1].description == "Papeleria"
    assert listed[0].description is None


def test_list_categories_skips_inactive(store) -> None:
    kept = create_category("Oficina")
    hidden = create_category("Temporada")
    with unit_of_work() as conn:
        conn.execute(
            update(categories).where(categories.c.category_id == hidden.category_id).values(active=False)
        )

    assert [c.category_id for c in list_categories()] == [kept.category_id]
    assert get_category_by_id(hidden.category_id).active is False


def test_category_name_is_required_and_unique(store) -> None:
    create_category("Oficina")

    with pytest.raises(ValueError):
        create_category("Oficina")
    with pytest.raises(ValueError):
        create_category("   ")

    assert len(list_categories()) == 1


def test_product_references_category(store, make_product) -> None:
    category = create_category("Bebidas")

    product = make_product(name="Agua mineral", category_id=category.category_id)

    assert product.category_id == category.category_id
    assert get_category_by_id(999) is None
