"""
Report Service

Read-only reporting façade over a RecordStore. Every call recomputes its
report from the snapshot; nothing is cached between calls.
"""

from decimal import Decimal
from typing import Collection, List, Optional

import polars as pl
import structlog
from pydantic import BaseModel

from commerce_metrics.analytics import metrics
from commerce_metrics.analytics.ranking import SortOrder
from commerce_metrics.config import Settings, get_settings
from commerce_metrics.data.models import (
    CategoryPrice,
    CategoryProduct,
    CityCount,
    Customer,
    LastOrder,
    MethodRevenue,
    OrderStatus,
    OrderSummary,
    PaymentIsland,
    PricedProduct,
    Product,
    ProductAttributes,
    RankedSpend,
    RunningRevenue,
    SpendRecord,
)
from commerce_metrics.data.store import RecordStore

logger = structlog.get_logger(__name__)


def to_frame(records: List[BaseModel]) -> pl.DataFrame:
    """Flatten report records into a Polars DataFrame"""
    rows = []
    for record in records:
        row = {}
        for key, value in record.model_dump().items():
            if isinstance(value, dict):
                row.update(value)
            else:
                row[key] = value
        rows.append(row)
    return pl.DataFrame(rows, infer_schema_length=None)


class ReportService:
    """
    Reporting entry point for one store snapshot.

    Example:
        service = ReportService(load_seed_store())
        ranked = service.ranked_spend()
    """

    def __init__(self, store: RecordStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    @property
    def _places(self) -> int:
        return self.settings.analytics.money_places

    @property
    def _tz(self):
        return self.settings.analytics.tzinfo

    def lifetime_spend(
        self,
        order: Optional[SortOrder] = SortOrder.DESCENDING,
        statuses: Optional[Collection[OrderStatus]] = None,
    ) -> List[SpendRecord]:
        records = metrics.compute_lifetime_spend(
            self.store.customers,
            self.store.orders,
            self.store.order_items,
            order=order,
            statuses=statuses,
            places=self._places,
        )
        logger.info("Lifetime spend computed", customers=len(records), order=order.value if order else None)
        return records

    def ranked_spend(
        self,
        order: SortOrder = SortOrder.DESCENDING,
        statuses: Optional[Collection[OrderStatus]] = None,
    ) -> List[RankedSpend]:
        """Lifetime spend sorted in the given direction, with dense rank and row number"""
        ranked = metrics.rank_by_spend(self.lifetime_spend(order=order, statuses=statuses), order=order)
        logger.info("Spend ranking computed", rows=len(ranked), distinct_ranks=len({r.dense_rank for r in ranked}))
        return ranked

    def daily_revenue(self) -> List[RunningRevenue]:
        rows = metrics.compute_daily_revenue_with_running_total(
            self.store.payments, tz=self._tz, places=self._places
        )
        logger.info(
            "Daily revenue computed",
            days=len(rows),
            timezone=self.settings.analytics.reporting_timezone,
        )
        return rows

    def payment_islands(self) -> List[PaymentIsland]:
        islands = metrics.compute_payment_islands(self.store.payments, tz=self._tz)
        logger.info("Payment islands computed", islands=len(islands))
        return islands

    def revenue_by_method(self) -> List[MethodRevenue]:
        return metrics.daily_revenue_by_method(self.store.payments, tz=self._tz, places=self._places)

    def last_orders(self) -> List[LastOrder]:
        return metrics.last_order_per_customer(self.store.customers, self.store.orders)

    def customers_per_city(self) -> List[CityCount]:
        return metrics.customers_per_city(self.store.customers)

    def customers_with_status(self, status: OrderStatus = OrderStatus.PAID) -> List[Customer]:
        return metrics.customers_with_order_status(self.store.customers, self.store.orders, status=status)

    def orders(self) -> List[OrderSummary]:
        rows = metrics.orders_with_customer(self.store.customers, self.store.orders)
        if len(rows) != len(self.store.orders):
            logger.warning("Orders without a known customer dropped", dropped=len(self.store.orders) - len(rows))
        return rows

    def category_prices(self, min_avg: Optional[Decimal] = None) -> List[CategoryPrice]:
        return metrics.average_price_by_category(
            self.store.categories,
            self.store.products,
            min_avg=min_avg,
            places=self.settings.analytics.average_places,
        )

    def top_products(self) -> List[Product]:
        return metrics.top_priced_products(self.store.products)

    def price_bands(self) -> List[PricedProduct]:
        return metrics.label_price_bands(self.store.products)

    def category_products(self) -> List[CategoryProduct]:
        return metrics.products_by_category(self.store.categories, self.store.products)

    def products_above_average(self) -> List[Product]:
        return metrics.products_above_average_price(self.store.products)

    def product_attributes(self) -> List[ProductAttributes]:
        return metrics.product_attributes(self.store.products)

    def products_with_attribute(self, attribute: str, minimum: Decimal) -> List[Product]:
        products = metrics.products_with_attribute_at_least(self.store.products, attribute, minimum)
        logger.info("Attribute filter applied", attribute=attribute, minimum=str(minimum), matched=len(products))
        return products
