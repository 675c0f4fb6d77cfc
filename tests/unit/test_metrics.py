"""
Unit Tests - Analytics Metrics
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from commerce_metrics.analytics.errors import ConfigurationError, OrderViolationError, UnresolvedReferenceError
from commerce_metrics.analytics.metrics import (
    average_price_by_category,
    compute_daily_revenue_with_running_total,
    compute_lifetime_spend,
    compute_payment_islands,
    customers_per_city,
    customers_with_order_status,
    daily_revenue,
    daily_revenue_by_method,
    label_price_bands,
    last_order_per_customer,
    orders_with_customer,
    payment_day,
    price_band,
    product_attributes,
    products_above_average_price,
    products_by_category,
    products_with_attribute_at_least,
    rank_by_spend,
    resolve_timezone,
    top_priced_products,
)
from commerce_metrics.analytics.ranking import SortOrder
from commerce_metrics.data.models import Category, Order, OrderStatus, PaymentMethod, PriceBand, Product


class TestSpendRanking:
    """Tests for compute_lifetime_spend and rank_by_spend"""

    def test_descending_spend_ranking(self, customers, spend_orders, spend_items):
        records = compute_lifetime_spend(customers, spend_orders, spend_items, order=SortOrder.DESCENDING)

        ranked = rank_by_spend(records, SortOrder.DESCENDING)

        assert [(r.record.name, r.record.total_spend, r.dense_rank, r.row_number) for r in ranked] == [
            ("Alice", Decimal("2037.00"), 1, 1),
            ("Caro", Decimal("398.00"), 2, 2),
            ("Bob", Decimal("0.00"), 3, 3),
            ("Dani", Decimal("0.00"), 3, 4),
        ]

    def test_ascending_spend_ranking(self, customers, spend_orders, spend_items):
        records = compute_lifetime_spend(customers, spend_orders, spend_items, order=SortOrder.ASCENDING)

        ranked = rank_by_spend(records, SortOrder.ASCENDING)

        assert [(r.record.name, r.dense_rank) for r in ranked] == [
            ("Bob", 1),
            ("Dani", 1),
            ("Caro", 2),
            ("Alice", 3),
        ]

    def test_unsorted_records_are_rejected(self, customers, spend_orders, spend_items):
        records = compute_lifetime_spend(customers, spend_orders, spend_items)

        with pytest.raises(OrderViolationError):
            rank_by_spend(records, SortOrder.DESCENDING)

    def test_default_order_follows_customers(self, customers, spend_orders, spend_items):
        records = compute_lifetime_spend(customers, spend_orders, spend_items)

        assert [r.customer_id for r in records] == [1, 2, 3, 4]

    def test_rank_empty(self):
        assert rank_by_spend([]) == []


class TestDailyRevenue:
    """Tests for daily revenue reports"""

    def test_running_total(self, payments):
        rows = compute_daily_revenue_with_running_total(payments, tz="UTC")

        assert [(r.day, r.daily_total, r.running_total) for r in rows] == [
            (date(2025, 10, 1), Decimal("738.00"), Decimal("738.00")),
            (date(2025, 10, 12), Decimal("1299.00"), Decimal("2037.00")),
        ]

    def test_single_day_running_total_equals_daily_total(self, make_payment):
        payments = [
            make_payment(1, datetime(2025, 3, 3, 8, 0), "10.10"),
            make_payment(2, datetime(2025, 3, 3, 22, 0), "0.20"),
        ]

        [row] = compute_daily_revenue_with_running_total(payments, tz="UTC")

        assert row.daily_total == row.running_total == Decimal("10.30")

    def test_days_are_sorted(self, make_payment):
        payments = [
            make_payment(1, datetime(2025, 3, 5), "1.00"),
            make_payment(2, datetime(2025, 3, 1), "2.00"),
        ]

        rows = daily_revenue(payments, tz="UTC")

        assert [r.day for r in rows] == [date(2025, 3, 1), date(2025, 3, 5)]

    def test_bucketing_follows_reporting_timezone(self, make_payment):
        payments = [make_payment(1, datetime(2025, 10, 1, 3, 0), "5.00")]

        utc_day = daily_revenue(payments, tz="UTC")[0].day
        chicago_day = daily_revenue(payments, tz="America/Chicago")[0].day

        assert utc_day == date(2025, 10, 1)
        assert chicago_day == date(2025, 9, 30)

    def test_aware_timestamps_are_converted(self):
        paid_at = datetime(2025, 10, 1, 23, 30, tzinfo=ZoneInfo("America/New_York"))

        assert payment_day(paid_at, timezone.utc) == date(2025, 10, 2)

    def test_unknown_timezone(self, payments):
        with pytest.raises(ConfigurationError):
            daily_revenue(payments, tz="Mars/Olympus_Mons")

    def test_default_timezone_is_utc(self):
        assert resolve_timezone(None) == ZoneInfo("UTC")

    def test_revenue_by_method(self, payments, make_payment):
        payments = payments + [make_payment(3, datetime(2025, 10, 1, 18, 0), "12.50", PaymentMethod.CASH)]

        rows = daily_revenue_by_method(payments, tz="UTC")

        assert [(r.day, r.card_amount, r.ach_amount, r.cash_amount) for r in rows] == [
            (date(2025, 10, 1), Decimal("738.00"), Decimal("0.00"), Decimal("12.50")),
            (date(2025, 10, 12), Decimal("0.00"), Decimal("1299.00"), Decimal("0.00")),
        ]


class TestPaymentIslands:
    """Tests for compute_payment_islands"""

    def test_two_isolated_payment_days(self, payments):
        islands = compute_payment_islands(payments, tz="UTC")

        assert len(islands) == 2
        assert [i.day_count for i in islands] == [1, 1]

    def test_several_payments_on_one_day_count_once(self, make_payment):
        payments = [
            make_payment(1, datetime(2025, 5, 1, 9), "1.00"),
            make_payment(2, datetime(2025, 5, 1, 17), "1.00"),
            make_payment(3, datetime(2025, 5, 2, 12), "1.00"),
        ]

        [island] = compute_payment_islands(payments, tz="UTC")

        assert (island.start_day, island.end_day, island.day_count) == (date(2025, 5, 1), date(2025, 5, 2), 2)


class TestCatalogReports:
    """Tests for the catalog and customer reports"""

    def test_last_order_per_customer(self, seed_store):
        rows = last_order_per_customer(seed_store.customers, seed_store.orders)

        assert [(r.name, r.last_order_date) for r in rows] == [
            ("Alice", date(2025, 10, 12)),
            ("Bob", date(2025, 10, 14)),
            ("Caro", date(2025, 10, 20)),
            ("Dani", None),
        ]

    def test_average_price_by_category(self, seed_store):
        rows = average_price_by_category(seed_store.categories, seed_store.products)

        assert [(r.category, r.avg_price) for r in rows] == [
            ("Electronics", Decimal("999.000000")),
            ("Home", Decimal("199.000000")),
            ("Books", Decimal("39.000000")),
        ]

    def test_average_price_threshold(self, seed_store):
        rows = average_price_by_category(seed_store.categories, seed_store.products, min_avg=Decimal("200"))

        assert [r.category for r in rows] == ["Electronics"]

    def test_top_priced_products(self, seed_store):
        top = top_priced_products(seed_store.products)

        assert [p.name for p in top] == ["Laptop", "Vacuum", "SQL 101"]

    @pytest.mark.parametrize(
        "price,band",
        [
            (Decimal("1299"), PriceBand.HIGH),
            (Decimal("1000"), PriceBand.HIGH),
            (Decimal("699"), PriceBand.MID),
            (Decimal("200"), PriceBand.MID),
            (Decimal("199.99"), PriceBand.LOW),
        ],
    )
    def test_price_band(self, price, band):
        assert price_band(price) is band

    def test_label_price_bands(self, seed_store):
        labelled = label_price_bands(seed_store.products)

        assert [p.price_band for p in labelled] == [PriceBand.MID, PriceBand.HIGH, PriceBand.LOW, PriceBand.LOW]

    def test_products_by_category(self, seed_store):
        rows = products_by_category(seed_store.categories, seed_store.products)

        assert [(r.category, r.product) for r in rows] == [
            ("Books", "SQL 101"),
            ("Electronics", "Phone"),
            ("Electronics", "Laptop"),
            ("Home", "Vacuum"),
        ]

    def test_empty_category_is_listed(self, seed_store):
        categories = list(seed_store.categories) + [Category(id=9, name="Garden")]

        rows = products_by_category(categories, seed_store.products)

        assert ("Garden", None) in [(r.category, r.product) for r in rows]
        assert [r.category for r in rows][3] == "Garden"

    def test_products_above_average_price(self, seed_store):
        products = products_above_average_price(seed_store.products)

        assert [p.name for p in products] == ["Phone", "Laptop"]

    def test_products_above_average_price_empty(self):
        assert products_above_average_price([]) == []


class TestCustomerReports:
    """Tests for the customer and order reports"""

    def test_customers_per_city(self, seed_store):
        rows = customers_per_city(seed_store.customers)

        assert [(r.city, r.customers) for r in rows] == [("Dallas", 2), ("Seattle", 1), ("Miami", 1)]

    def test_customers_with_paid_order(self, seed_store):
        customers = customers_with_order_status(seed_store.customers, seed_store.orders)

        assert [c.name for c in customers] == ["Alice"]

    @pytest.mark.parametrize(
        "status,names",
        [(OrderStatus.NEW, ["Bob"]), (OrderStatus.CANCELLED, ["Caro"]), (OrderStatus.SHIPPED, [])],
    )
    def test_customers_with_other_statuses(self, seed_store, status, names):
        customers = customers_with_order_status(seed_store.customers, seed_store.orders, status)

        assert [c.name for c in customers] == names

    def test_orders_with_customer(self, seed_store):
        rows = orders_with_customer(seed_store.customers, seed_store.orders)

        assert [(r.order_id, r.customer_name, r.status) for r in rows] == [
            (1, "Alice", OrderStatus.PAID),
            (2, "Alice", OrderStatus.PAID),
            (3, "Bob", OrderStatus.NEW),
            (4, "Caro", OrderStatus.CANCELLED),
        ]

    def test_order_without_customer(self, seed_store):
        orders = list(seed_store.orders) + [Order(id=5, customer_id=42, order_date=date(2025, 11, 1))]

        assert len(orders_with_customer(seed_store.customers, orders)) == 4
        with pytest.raises(UnresolvedReferenceError):
            orders_with_customer(seed_store.customers, orders, strict=True)


class TestProductAttributes:
    """Tests for reads of the attrs document"""

    def test_brand_and_color(self, seed_store):
        rows = product_attributes(seed_store.products)

        assert [(r.name, r.brand, r.color) for r in rows] == [
            ("Phone", "Acme", "black"),
            ("Laptop", "Acme", None),
            ("Vacuum", "CleanCo", None),
            ("SQL 101", None, None),
        ]

    def test_numeric_attribute_filter(self, seed_store):
        products = products_with_attribute_at_least(seed_store.products, "ram_gb", 16)

        assert [p.name for p in products] == ["Laptop"]
        assert products_with_attribute_at_least(seed_store.products, "ram_gb", 32) == []

    def test_non_numeric_values_never_match(self):
        products = [
            Product(id=1, category_id=1, name="Tablet", price=Decimal("300"), attrs={"ram_gb": "32"}),
            Product(id=2, category_id=1, name="Watch", price=Decimal("200"), attrs={"ram_gb": True}),
            Product(id=3, category_id=1, name="Server", price=Decimal("900"), attrs={"ram_gb": 64.0}),
        ]

        matched = products_with_attribute_at_least(products, "ram_gb", Decimal("16"))

        assert [p.name for p in matched] == ["Server"]
