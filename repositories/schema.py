"""
Table definitions for the local store.

Monetary columns are stored as integer cents (see `Money`) so SQLite never
round-trips amounts through floating point; reads come back as Decimal with
2 decimals. Timestamps are stored as ISO-8601 UTC strings, which sort and
prefix-match by day.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Engine,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    insert,
    select,
)
from sqlalchemy.types import TypeDecorator

from domain.customer import WALK_IN_CUSTOMER
from domain.money import CENT, round_money, to_money
from domain.time import to_iso_utc, utc_now

logger = logging.getLogger(__name__)


class Money(TypeDecorator):
    """Decimal amount persisted as integer cents."""

    impl = Integer
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(to_money(value) / CENT)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return round_money(Decimal(int(value)) * CENT)


metadata = MetaData()

categories = Table(
    "categories",
    metadata,
    Column("category_id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, unique=True),
    Column("description", Text),
    Column("active", Boolean, nullable=False, default=True),
)

products = Table(
    "products",
    metadata,
    Column("product_id", Integer, primary_key=True, autoincrement=True),
    Column("barcode", String(64), unique=True),
    Column("sku", String(64), unique=True),
    Column("name", String(200), nullable=False),
    Column("description", Text),
    Column("brand", String(100)),
    Column("category_id", Integer, ForeignKey("categories.category_id")),
    Column("sale_price", Money, nullable=False),
    Column("cost_price", Money),
    Column("stock", Integer, nullable=False, default=0),
    Column("min_stock", Integer, nullable=False, default=5),
    Column("active", Boolean, nullable=False, default=True),
    Column("created_at_utc", String(40), nullable=False),
    CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    CheckConstraint("sale_price >= 0", name="ck_products_price_non_negative"),
)

customers = Table(
    "customers",
    metadata,
    Column("customer_id", Integer, primary_key=True, autoincrement=True),
    Column("document_type", String(20), nullable=False, default="DNI"),
    Column("document_number", String(20)),
    Column("full_name", String(200), nullable=False),
    Column("email", String(200)),
    Column("phone", String(40)),
    Column("address", Text),
    Column("notes", Text),
    Column("active", Boolean, nullable=False, default=True),
    Column("created_at_utc", String(40), nullable=False),
)

operators = Table(
    "operators",
    metadata,
    Column("operator_id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("full_name", String(200), nullable=False),
    Column("email", String(200)),
    Column("role", String(20), nullable=False, default="seller"),
    Column("active", Boolean, nullable=False, default=True),
    Column("created_at_utc", String(40), nullable=False),
    CheckConstraint("role IN ('admin', 'seller')", name="ck_operators_role"),
)

sales = Table(
    "sales",
    metadata,
    Column("sale_id", Integer, primary_key=True, autoincrement=True),
    Column("operator_id", Integer, ForeignKey("operators.operator_id"), nullable=False),
    Column("customer_id", Integer, ForeignKey("customers.customer_id"), nullable=False),
    Column("subtotal", Money, nullable=False),
    Column("tax", Money, nullable=False),
    Column("total", Money, nullable=False),
    Column("discount", Money, nullable=False, default=0),
    Column("payment_method", String(20), nullable=False),
    Column("document_type", String(20), nullable=False),
    Column("status", String(20), nullable=False),
    Column("notes", Text),
    Column("sold_at_utc", String(40), nullable=False),
    CheckConstraint("payment_method IN ('cash', 'card')", name="ck_sales_payment_method"),
    CheckConstraint("total >= 0", name="ck_sales_total_non_negative"),
)

sale_details = Table(
    "sale_details",
    metadata,
    Column("detail_id", Integer, primary_key=True, autoincrement=True),
    Column("sale_id", Integer, ForeignKey("sales.sale_id"), nullable=False),
    Column("product_id", Integer, ForeignKey("products.product_id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Money, nullable=False),
    Column("discount", Money, nullable=False, default=0),
    Column("subtotal", Money, nullable=False),
    CheckConstraint("quantity > 0", name="ck_sale_details_quantity_positive"),
)

stock_movements = Table(
    "stock_movements",
    metadata,
    Column("movement_id", Integer, primary_key=True, autoincrement=True),
    Column("product_id", Integer, ForeignKey("products.product_id"), nullable=False),
    Column("movement_type", String(20), nullable=False),
    Column("quantity_delta", Integer, nullable=False),
    Column("stock_after", Integer, nullable=False),
    Column("sale_id", Integer, ForeignKey("sales.sale_id")),
    Column("operator_id", Integer, ForeignKey("operators.operator_id")),
    Column("reason", Text),
    Column("created_at_utc", String(40), nullable=False),
)

Index("ix_sales_sold_at_utc", sales.c.sold_at_utc)
Index("ix_sale_details_sale_id", sale_details.c.sale_id)
Index("ix_stock_movements_product_id", stock_movements.c.product_id)
Index("ix_products_name", products.c.name)


def create_schema(engine: Engine) -> None:
    """
    Create missing tables and seed the walk-in customer.

    Safe to call on every start-up.
    """

    metadata.create_all(engine)

    with engine.begin() as conn:
        existing = conn.execute(
            select(func.count()).select_from(customers).where(
                customers.c.customer_id == WALK_IN_CUSTOMER.customer_id
            )
        ).scalar_one()
        if not existing:
            conn.execute(
                insert(customers).values(
                    customer_id=WALK_IN_CUSTOMER.customer_id,
                    full_name=WALK_IN_CUSTOMER.full_name,
                    document_type=WALK_IN_CUSTOMER.document_type,
                    active=True,
                    created_at_utc=to_iso_utc(utc_now(), name="created_at"),
                )
            )
            logger.info("Seeded walk-in customer (id=%s)", WALK_IN_CUSTOMER.customer_id)


__all__ = [
    "metadata",
    "categories",
    "products",
    "customers",
    "operators",
    "sales",
    "sale_details",
    "stock_movements",
    "create_schema",
]
