"""
Tests for `repositories/product_repository.py` against a temporary SQLite store.

Covers contract rules:
- Search is a case-insensitive substring match on name, barcode or SKU over active products.
- Search results are capped at 50; an empty term lists active products.
- Deactivated products disappear from search but remain readable by id.
- Low stock means stock < min_stock.
- `%` and `_` in a search term match literally.
- A stock change through update_product writes an "adjustment" movement.
- Exact code lookup matches barcode or SKU, never names.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from repositories.product_repository import (
    ADJUSTMENT_MOVEMENT,
    SEARCH_RESULT_LIMIT,
    create_product,
    deactivate_product,
    get_product_by_code,
    get_product_by_id,
    get_products_by_ids,
    list_active_products,
    list_low_stock_products,
    search_products,
    update_product,
)
from repositories.report_repository import list_stock_movements


def test_create_and_read_product(store) -> None:
    created = create_product(
        name="Cuaderno A4",
        sale_price="10.005",
        stock=12,
        barcode="7751234500012",
        sku="CUA-A4",
    )

    loaded = get_product_by_id(created.product_id)

    assert loaded == created
    assert loaded.sale_price == Decimal("10.01")
    assert loaded.min_stock == 5


def test_search_matches_name_barcode_and_sku_case_insensitively(make_product) -> None:
    make_product(name="Cuaderno A4", barcode="7751234500012", sku="CUA-A4")
    make_product(name="Lapicero azul", barcode="7751234500029", sku="LAP-AZ")

    assert [p.name for p in search_products("cuaDERNO")] == ["Cuaderno A4"]
    assert [p.name for p in search_products("500029")] == ["Lapicero azul"]
    assert [p.name for p in search_products("lap-az")] == ["Lapicero azul"]
    assert search_products("borrador") == []


def test_search_excludes_inactive_products(make_product) -> None:
    product = make_product(name="Engrapador")
    deactivate_product(product.product_id)

    assert search_products("engrapador") == []
    assert get_product_by_id(product.product_id).active is False


def test_search_is_capped(make_product) -> None:
    for i in range(SEARCH_RESULT_LIMIT + 5):
        make_product(name=f"Item {i:03d}")

    assert len(search_products("item")) == SEARCH_RESULT_LIMIT
    assert len(search_products("item", limit=500)) == SEARCH_RESULT_LIMIT
    assert len(search_products("")) == SEARCH_RESULT_LIMIT
    assert len(list_active_products()) == SEARCH_RESULT_LIMIT + 5


def test_duplicate_barcode_is_rejected(make_product) -> None:
    make_product(barcode="123")

    with pytest.raises(ValueError):
        make_product(barcode="123")


def test_invalid_product_is_rejected(store) -> None:
    with pytest.raises(ValueError):
        create_product(name="", sale_price="1.00")
    with pytest.raises(ValueError):
        create_product(name="Negative", sale_price="1.00", stock=-1)


def test_update_product(make_product) -> None:
    product = make_product(sale_price="10.00", stock=3)

    updated = update_product(product.product_id, sale_price="12.50", stock=8)

    assert updated.sale_price == Decimal("12.50")
    assert updated.stock == 8

    with pytest.raises(ValueError):
        update_product(product.product_id, unknown_field=1)


def test_get_products_by_ids_skips_missing(make_product) -> None:
    a = make_product()
    b = make_product()

    found = get_products_by_ids([a.product_id, b.product_id, 999])

    assert set(found) == {a.product_id, b.product_id}


def test_low_stock_products(make_product) -> None:
    make_product(name="Low", stock=2, min_stock=5)
    make_product(name="Boundary", stock=5, min_stock=5)
    make_product(name="Plenty", stock=50, min_stock=5)

    low = list_low_stock_products()

    assert [p.name for p in low] == ["Low"]
    assert low[0].is_low_stock is True


def test_search_treats_percent_and_underscore_literally(make_product) -> None:
    make_product(name="Cuaderno A4")
    make_product(name="Descuento 50% off")
    make_product(name="Lapiz HB")
    make_product(name="Borrador", sku="ABX1")

    assert [p.name for p in search_products("%")] == ["Descuento 50% off"]
    assert [p.name for p in search_products("50%")] == ["Descuento 50% off"]
    assert search_products("AB_1") == []
    assert search_products("_") == []


def test_search_matches_literal_underscore_and_backslash(make_product) -> None:
    make_product(name="Cable USB", sku="USB_C")
    make_product(name="Cable USB largo", sku="USBXC")
    make_product(name="Separador \\ azul")

    assert [p.sku for p in search_products("usb_c")] == ["USB_C"]
    assert [p.name for p in search_products("\\")] == ["Separador \\ azul"]


def test_stock_change_records_adjustment_movement(make_product, admin) -> None:
    product = make_product(stock=3)

    update_product(product.product_id, stock=8, reason="Inventory count", operator_id=admin.operator_id)
    update_product(product.product_id, stock=6)

    movements = list_stock_movements(product_id=product.product_id)

    assert [m.movement_type for m in movements] == [ADJUSTMENT_MOVEMENT, ADJUSTMENT_MOVEMENT]
    latest, first = movements
    assert (first.quantity_delta, first.stock_after) == (5, 8)
    assert first.reason == "Inventory count"
    assert first.operator_id == admin.operator_id
    assert first.sale_id is None
    assert (latest.quantity_delta, latest.stock_after) == (-2, 6)
    assert latest.reason == "Stock adjustment"
    assert get_product_by_id(product.product_id).stock == 6


def test_update_without_stock_change_records_no_movement(make_product) -> None:
    product = make_product(stock=4)

    update_product(product.product_id, sale_price="11.00")
    update_product(product.product_id, stock=4)

    assert list_stock_movements(product_id=product.product_id) == []


def test_negative_stock_update_is_rejected_without_movement(make_product) -> None:
    product = make_product(stock=4)

    with pytest.raises(ValueError):
        update_product(product.product_id, stock=-1)

    assert get_product_by_id(product.product_id).stock == 4
    assert list_stock_movements(product_id=product.product_id) == []


def test_get_product_by_code_matches_barcode_or_sku_only(make_product) -> None:
    by_barcode = make_product(name="Cuaderno", barcode="7751234500012")
    by_sku = make_product(name="Lapicero", sku="LAP-AZ")
    hidden = make_product(name="Regla", barcode="7751234500029")
    deactivate_product(hidden.product_id)

    assert get_product_by_code("7751234500012").product_id == by_barcode.product_id
    assert get_product_by_code("LAP-AZ").product_id == by_sku.product_id
    assert get_product_by_code("Cuaderno") is None
    assert get_product_by_code("775123450001") is None
    assert get_product_by_code("7751234500029") is None
    assert get_product_by_code("  ") is None


def test_product_missing_after_write_is_a_runtime_error(make_product, monkeypatch) -> None:
    from repositories import product_repository

    product = make_product()
    real_get = product_repository.get_product_by_id
    reads = {"n": 0}

    def vanishes_after_first_read(product_id):
        reads["n"] += 1
        return real_get(product_id) if reads["n"] == 1 else None

    monkeypatch.setattr(product_repository, "get_product_by_id", lambda product_id: None)
    with pytest.raises(RuntimeError):
        create_product(name="Tijera", sale_price="4.00")

    monkeypatch.setattr(product_repository, "get_product_by_id", vanishes_after_first_read)
    with pytest.raises(RuntimeError):
        update_product(product.product_id, name="Tijera escolar")
