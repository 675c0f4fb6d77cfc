"""
Unit Tests - Report Service
"""
from decimal import Decimal

import polars as pl

from commerce_metrics.analytics.ranking import SortOrder
from commerce_metrics.config.settings import AnalyticsSettings
from commerce_metrics.data.models import OrderStatus
from commerce_metrics.serving.service import ReportService, to_frame


class TestReportService:
    """Tests for ReportService"""

    def test_ranked_spend(self, seed_store, test_settings):
        service = ReportService(seed_store, test_settings)

        ranked = service.ranked_spend()

        assert [r.record.name for r in ranked] == ["Alice", "Bob", "Caro", "Dani"]
        assert [r.dense_rank for r in ranked] == [1, 2, 3, 4]

    def test_ranked_spend_paid_only(self, seed_store, test_settings):
        ranked = ReportService(seed_store, test_settings).ranked_spend(statuses=[OrderStatus.PAID])

        assert [(r.record.name, r.dense_rank, r.row_number) for r in ranked] == [
            ("Alice", 1, 1),
            ("Bob", 2, 2),
            ("Caro", 2, 3),
            ("Dani", 2, 4),
        ]

    def test_unsorted_spend(self, seed_store, test_settings):
        records = ReportService(seed_store, test_settings).lifetime_spend(order=None)

        assert [r.name for r in records] == ["Alice", "Bob", "Caro", "Dani"]

    def test_daily_revenue_uses_configured_timezone(self, seed_store, test_settings):
        settings = test_settings.model_copy(
            update={"analytics": AnalyticsSettings(reporting_timezone="Pacific/Kiritimati")}
        )

        rows = ReportService(seed_store, settings).daily_revenue()

        assert [r.day.isoformat() for r in rows] == ["2025-10-02", "2025-10-12"]
        assert rows[-1].running_total == Decimal("2037.00")

    def test_payment_islands_use_configured_timezone(self, seed_store, test_settings):
        settings = test_settings.model_copy(
            update={"analytics": AnalyticsSettings(reporting_timezone="Pacific/Pago_Pago")}
        )

        islands = ReportService(seed_store, settings).payment_islands()

        assert [(i.start_day.isoformat(), i.end_day.isoformat()) for i in islands] == [
            ("2025-09-30", "2025-09-30"),
            ("2025-10-11", "2025-10-11"),
        ]

    def test_payment_islands(self, seed_store, test_settings):
        islands = ReportService(seed_store, test_settings).payment_islands()

        assert [i.day_count for i in islands] == [1, 1]


class TestToFrame:
    """Tests for report export"""

    def test_nested_records_are_flattened(self, seed_store, test_settings):
        ranked = ReportService(seed_store, test_settings).ranked_spend(order=SortOrder.ASCENDING)

        df = to_frame(ranked)

        assert isinstance(df, pl.DataFrame)
        assert df.columns == ["customer_id", "name", "total_spend", "dense_rank", "row_number"]
        assert df["name"].to_list() == ["Dani", "Caro", "Bob", "Alice"]


class TestCatalogService:
    """Tests for the catalog and customer reports of ReportService"""

    def test_customer_reports(self, seed_store, test_settings):
        service = ReportService(seed_store, test_settings)

        assert [r.city for r in service.customers_per_city()] == ["Dallas", "Seattle", "Miami"]
        assert [c.name for c in service.customers_with_status(OrderStatus.CANCELLED)] == ["Caro"]
        assert len(service.orders()) == 4

    def test_attribute_reports(self, seed_store, test_settings):
        service = ReportService(seed_store, test_settings)

        assert [p.name for p in service.products_with_attribute("ram_gb", Decimal("16"))] == ["Laptop"]
        assert [r.brand for r in service.product_attributes()] == ["Acme", "Acme", "CleanCo", None]
        assert [p.name for p in service.products_above_average()] == ["Phone", "Laptop"]
        assert len(service.category_products()) == 4
