"""
Pytest configuration.

Adds the project root to the Python path so that tests can import the
domain, repositories, services and api packages, and provides fixtures that
point the store at a fresh SQLite file per test.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.operator import OperatorRole  # noqa: E402
from repositories import database  # noqa: E402
from repositories.schema import create_schema  # noqa: E402


@pytest.fixture
def store(tmp_path, monkeypatch):
    """A fresh, schema-initialised SQLite database for one test."""

    monkeypatch.setenv("POS_TAX_RATE", "0.18")
    monkeypatch.setenv("POS_BACKUP_DIR", str(tmp_path / "backups"))
    url = f"sqlite:///{tmp_path / 'pos.db'}"
    monkeypatch.setenv("POS_DATABASE_URL", url)

    engine = database.configure(url)
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def admin(store):
    from repositories.operator_repository import create_operator

    return create_operator("admin", "Store Admin", OperatorRole.ADMIN)


@pytest.fixture
def seller(store):
    from repositories.operator_repository import create_operator

    return create_operator("seller", "Counter Seller", OperatorRole.SELLER)


@pytest.fixture
def make_product(store):
    """Factory inserting products with sensible defaults."""

    from repositories.product_repository import create_product

    counter = {"n": 0}

    def _make(name=None, sale_price="10.00", stock=10, **kwargs):
        counter["n"] += 1
        return create_product(
            name=name or f"Product {counter['n']}",
            sale_price=sale_price,
            stock=stock,
            **kwargs,
        )

    return _make
