"""
Tests for the HTTP API (`api/`), using FastAPI's TestClient against a temporary store.

Covers contract rules:
- Quotes price a cart without writing anything.
- POST /sales maps failures to 400 / 403 / 404 / 409 and writes nothing on failure.
- A committed sale is readable with its lines and shows up in reports.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from api.main import app
from repositories.product_repository import get_product_by_id


@pytest.fixture
def client(store):
    return TestClient(app)


@pytest.fixture
def catalog(make_product):
    return (
        make_product(name="Cuaderno", sale_price="10.00", stock=5, barcode="7751234500012"),
        make_product(name="Lapicero", sale_price="5.00", stock=3),
    )


def _cart(catalog, **extra):
    a, b = catalog
    payload = {
        "items": [
            {"product_id": a.product_id, "quantity": 2},
            {"product_id": b.product_id, "quantity": 1, "discount": "1.00"},
        ],
        "general_discount": "2.00",
        "payment_method": "cash",
        "amount_tendered": "30.00",
    }
    payload.update(extra)
    return payload


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_search_products(client, catalog) -> None:
    response = client.get("/api/v1/products", params={"q": "cuad"})

    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 1
    assert body["items"][0]["barcode"] == "7751234500012"


def test_get_missing_product(client, store) -> None:
    assert client.get("/api/v1/products/999").status_code == 404


def test_low_stock_products(client, make_product) -> None:
    make_product(name="Resaltador", stock=1, min_stock=5)

    body = client.get("/api/v1/products/low-stock").json()

    assert [p["name"] for p in body["items"]] == ["Resaltador"]


def test_categories(client, store) -> None:
    created = client.post("/api/v1/categories", json={"name": "Oficina", "description": "Papeleria"})
    client.post("/api/v1/categories", json={"name": "Bebidas"})

    assert created.status_code == 201
    assert created.json()["name"] == "Oficina"

    listed = client.get("/api/v1/categories")

    assert listed.status_code == 200
    assert [c["name"] for c in listed.json()] == ["Bebidas", "Oficina"]

    duplicate = client.post("/api/v1/categories", json={"name": "Oficina"})
    assert duplicate.status_code == 400


def test_customers(client, store) -> None:
    assert client.get("/api/v1/customers", params={"q": "wa"}).json()["total_count"] == 0
    assert client.get("/api/v1/customers", params={"q": "walk"}).json()["items"][0]["is_walk_in"] is True
    assert client.get("/api/v1/customers/walk-in").json()["customer_id"] == 1


def test_quote_reference_cart(client, catalog) -> None:
    response = client.post("/api/v1/sales/quote", json=_cart(catalog))

    assert response.status_code == 200
    summary = response.json()["summary"]
    assert Decimal(summary["subtotal"]) == Decimal("24.00")
    assert Decimal(summary["net_subtotal"]) == Decimal("22.00")
    assert Decimal(summary["tax"]) == Decimal("3.96")
    assert Decimal(summary["total"]) == Decimal("25.96")
    assert Decimal(summary["change"]) == Decimal("4.04")
    assert get_product_by_id(catalog[0].product_id).stock == 5


def test_quote_checks_discount_role_when_operator_given(client, catalog, seller) -> None:
    response = client.post("/api/v1/sales/quote", json=_cart(catalog, operator_id=seller.operator_id))

    assert response.status_code == 403


def test_register_sale(client, catalog, admin) -> None:
    a, b = catalog

    response = client.post(
        "/api/v1/sales",
        json=_cart(catalog, operator_id=admin.operator_id, document_type="invoice"),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert Decimal(body["change"]) == Decimal("4.04")
    assert get_product_by_id(a.product_id).stock == 3

    sale = client.get(f"/api/v1/sales/{body['sale_id']}").json()
    assert Decimal(sale["sale"]["total"]) == Decimal("25.96")
    assert sale["sale"]["document_type"] == "invoice"
    assert [d["product_name"] for d in sale["details"]] == ["Cuaderno", "Lapicero"]

    today = client.get("/api/v1/sales/today").json()
    assert today["total_count"] == 1
    assert Decimal(today["revenue"]) == Decimal("25.96")

    dashboard = client.get("/api/v1/reports/dashboard").json()
    assert dashboard["sales_today"] == 1

    movements = client.get("/api/v1/reports/stock-movements", params={"product_id": a.product_id}).json()
    assert [m["quantity_delta"] for m in movements] == [-2]

    top = client.get("/api/v1/reports/top-products").json()
    assert top[0]["product_id"] == a.product_id

    daily = client.get("/api/v1/reports/daily", params={"days": 1}).json()
    assert daily[0]["sale_count"] == 1

    csv_response = client.get("/api/v1/reports/daily.csv")
    assert csv_response.status_code == 200
    assert csv_response.headers["content-type"].startswith("text/csv")
    assert csv_response.text.startswith("Date,Sales,Revenue")


def test_register_sale_seller_discount_forbidden(client, catalog, seller) -> None:
    response = client.post("/api/v1/sales", json=_cart(catalog, operator_id=seller.operator_id))

    assert response.status_code == 403
    assert client.get("/api/v1/sales/today").json()["total_count"] == 0


def test_register_sale_insufficient_stock(client, catalog, admin) -> None:
    a, _ = catalog
    payload = _cart(catalog, operator_id=admin.operator_id)
    payload["items"][0]["quantity"] = 6

    response = client.post("/api/v1/sales", json=payload)

    assert response.status_code == 409
    assert get_product_by_id(a.product_id).stock == 5


def test_register_sale_insufficient_payment(client, catalog, admin) -> None:
    response = client.post(
        "/api/v1/sales",
        json=_cart(catalog, operator_id=admin.operator_id, amount_tendered="10.00"),
    )

    assert response.status_code == 400


def test_register_sale_unknown_references(client, catalog, admin) -> None:
    assert client.post("/api/v1/sales", json=_cart(catalog, operator_id=999)).status_code == 404
    assert client.post(
        "/api/v1/sales", json=_cart(catalog, operator_id=admin.operator_id, customer_id=999)
    ).status_code == 404

    payload = _cart(catalog, operator_id=admin.operator_id)
    payload["items"].append({"product_id": 999, "quantity": 1})
    assert client.post("/api/v1/sales", json=payload).status_code == 404


def test_register_sale_requires_items(client, admin) -> None:
    response = client.post("/api/v1/sales", json={"operator_id": admin.operator_id, "items": []})

    assert response.status_code == 422


def test_card_sale(client, catalog, seller) -> None:
    payload = _cart(catalog, operator_id=seller.operator_id, payment_method="card", general_discount="0")
    payload.pop("amount_tendered")

    response = client.post("/api/v1/sales", json=payload)

    assert response.status_code == 201
    assert Decimal(response.json()["summary"]["total"]) == Decimal("28.32")
    assert Decimal(response.json()["change"]) == Decimal("0.00")


def test_missing_sale(client, store) -> None:
    assert client.get("/api/v1/sales/12345").status_code == 404
