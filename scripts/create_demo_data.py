#!/usr/bin/env python3
"""
Create demo data for testing and demos.

Seeds the store with:
- Two operators: admin (may apply general discounts) and vendedor (seller)
- A few categories and products, some of them below their minimum stock
- Two registered customers (the walk-in customer is seeded by the schema)

Running it twice is harmless: existing usernames, barcodes and customers are skipped.

Usage:
    python scripts/create_demo_data.py
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import from repositories
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.operator import OperatorRole
from repositories.category_repository import create_category, list_categories
from repositories.customer_repository import create_customer, search_customers
from repositories.database import get_engine
from repositories.operator_repository import create_operator
from repositories.product_repository import create_product
from repositories.schema import create_schema

DEMO_OPERATORS = [
    ("admin", "Administrador", OperatorRole.ADMIN),
    ("vendedor", "Vendedor de turno", OperatorRole.SELLER),
]

DEMO_CATEGORIES = ["Útiles escolares", "Oficina", "Bebidas"]

# name, price, cost, stock, min_stock, barcode, sku, brand, category
DEMO_PRODUCTS = [
    ("Cuaderno A4 100 hojas", "10.00", "6.50", 40, 10, "7751234500012", "CUA-A4-100", "Standford", "Útiles escolares"),
    ("Lapicero azul", "1.50", "0.60", 200, 50, "7751234500029", "LAP-AZ", "Faber-Castell", "Útiles escolares"),
    ("Resaltador amarillo", "3.20", "1.40", 3, 5, "7751234500036", "RES-AM", "Faber-Castell", "Útiles escolares"),
    ("Papel bond A4 (millar)", "25.90", "19.00", 12, 5, "7751234500043", "PAP-A4-1000", "Atlas", "Oficina"),
    ("Engrapador", "14.00", "8.00", 0, 2, "7751234500050", "ENG-01", "Artesco", "Oficina"),
    ("Agua mineral 625 ml", "2.00", "1.10", 48, 12, "7751234500067", "AGU-625", "San Luis", "Bebidas"),
]

DEMO_CUSTOMERS = [
    ("María García López", "DNI", "45678912", "maria.garcia@example.com"),
    ("Librería El Estudiante SAC", "RUC", "20512345678", "compras@elestudiante.example.com"),
]


def _ensure_categories() -> dict[str, int]:
    ids = {category.name: category.category_id for category in list_categories()}
    for name in DEMO_CATEGORIES:
        if name not in ids:
            category = create_category(name)
            print(f"[SUCCESS] Category created: {category.name}")
            ids[name] = category.category_id
    return ids


def create_demo_data() -> None:
    """Create the demo operators, products and customers."""

    create_schema(get_engine())
    category_ids = _ensure_categories()

    for username, full_name, role in DEMO_OPERATORS:
        try:
            operator = create_operator(username, full_name, role)
            print(f"[SUCCESS] Operator created: {operator.username} ({operator.role.value})")
        except ValueError:
            print(f"Operator already exists: {username}")

    for name, price, cost, stock, min_stock, barcode, sku, brand, category in DEMO_PRODUCTS:
        try:
            product = create_product(
                name=name,
                sale_price=price,
                cost_price=cost,
                stock=stock,
                min_stock=min_stock,
                barcode=barcode,
                sku=sku,
                brand=brand,
                category_id=category_ids[category],
            )
            flag = " [LOW STOCK]" if product.is_low_stock else ""
            print(f"[SUCCESS] Product created: {product.name} (stock {product.stock}){flag}")
        except ValueError:
            print(f"Product already exists: {name}")

    for full_name, document_type, document_number, email in DEMO_CUSTOMERS:
        if search_customers(document_number):
            print(f"Customer already exists: {full_name}")
            continue
        customer = create_customer(
            full_name=full_name,
            document_type=document_type,
            document_number=document_number,
            email=email,
        )
        print(f"[SUCCESS] Customer created: {customer.full_name} (id {customer.customer_id})")


if __name__ == "__main__":
    create_demo_data()
