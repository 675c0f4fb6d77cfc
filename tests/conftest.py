"""
Test Suite Configuration
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from commerce_metrics.config import Settings
from commerce_metrics.data.models import (
    Customer,
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentMethod,
)
from commerce_metrics.data.seed import SEED_TABLES, load_seed_store
from commerce_metrics.data.store import RecordStore


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(app_env="testing")


@pytest.fixture
def seed_store() -> RecordStore:
    """Store holding the reference seed dataset"""
    return load_seed_store()


@pytest.fixture
def seed_tables():
    """Raw seed rows, copied so tests can alter them"""
    return {table: [dict(row) for row in rows] for table, rows in SEED_TABLES.items()}


@pytest.fixture
def customers():
    return [
        Customer(id=1, name="Alice", email="alice@ex.com", city="Dallas"),
        Customer(id=2, name="Bob", email="bob@ex.com", city="Seattle"),
        Customer(id=3, name="Caro", email="caro@ex.com", city="Miami"),
        Customer(id=4, name="Dani", email="dani@ex.com", city="Dallas"),
    ]


@pytest.fixture
def spend_orders():
    """Alice pays twice, Caro buys two vacuums, Bob's order has no items"""
    return [
        Order(id=1, customer_id=1, order_date=date(2025, 10, 1), status=OrderStatus.PAID),
        Order(id=2, customer_id=1, order_date=date(2025, 10, 12), status=OrderStatus.PAID),
        Order(id=3, customer_id=3, order_date=date(2025, 10, 14), status=OrderStatus.PAID),
        Order(id=4, customer_id=2, order_date=date(2025, 10, 20), status=OrderStatus.NEW),
    ]


@pytest.fixture
def spend_items():
    return [
        OrderItem(id=1, order_id=1, product_id=1, qty=1, unit_price=Decimal("699.00")),
        OrderItem(id=2, order_id=1, product_id=4, qty=1, unit_price=Decimal("39.00")),
        OrderItem(id=3, order_id=2, product_id=2, qty=1, unit_price=Decimal("1299.00")),
        OrderItem(id=4, order_id=3, product_id=3, qty=2, unit_price=Decimal("199.00")),
    ]


@pytest.fixture
def payments():
    return [
        Payment(id=1, order_id=1, paid_at=datetime(2025, 10, 1, 10, 5), method=PaymentMethod.CARD, amount=Decimal("738.00")),
        Payment(id=2, order_id=2, paid_at=datetime(2025, 10, 12, 9, 30), method=PaymentMethod.ACH, amount=Decimal("1299.00")),
    ]


@pytest.fixture
def make_payment():
    """Factory for payment rows"""
    def factory(payment_id: int, paid_at: datetime, amount: str, method: PaymentMethod = PaymentMethod.CARD) -> Payment:
        return Payment(id=payment_id, order_id=1, paid_at=paid_at, method=method, amount=Decimal(amount))
    return factory
