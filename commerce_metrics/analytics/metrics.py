"""
Analytics Metrics

Reports built from the relational operators, the ranking and running-total
modules and the island detector:
- Lifetime spend per customer, optionally sorted, with dense rank
- Daily revenue with running total
- Payment-date islands
- Daily revenue pivoted by payment method
- Customers per city, customers with an order in a given status,
  orders with customer names and last order per customer
- Average price per category, products per category, products above the
  average price, top priced products and price bands
- Product attributes read from the attrs JSON document

Timestamps without a time zone are taken as UTC; they are converted to the
reporting time zone before truncation to a calendar day.
"""

from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal
from operator import attrgetter
from typing import Any, Collection, Dict, List, Optional, Sequence, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from commerce_metrics.analytics.errors import ConfigurationError
from commerce_metrics.analytics.islands import detect_islands
from commerce_metrics.analytics.ranking import SortOrder, dense_rank, row_number
from commerce_metrics.analytics.relational import (
    AggregateSpec,
    group_by_with_aggregate,
    inner_join,
    left_join,
    lifetime_spend,
    quantize,
    to_decimal,
)
from commerce_metrics.analytics.running import running_total
from commerce_metrics.config import get_settings
from commerce_metrics.data.models import (
    Category,
    CategoryPrice,
    CategoryProduct,
    CityCount,
    Customer,
    DailyRevenue,
    LastOrder,
    MethodRevenue,
    Order,
    OrderItem,
    OrderStatus,
    OrderSummary,
    Payment,
    PaymentIsland,
    PaymentMethod,
    PriceBand,
    PricedProduct,
    Product,
    ProductAttributes,
    RankedSpend,
    RunningRevenue,
    SpendRecord,
)

TimeZoneLike = Union[str, tzinfo, None]

HIGH_PRICE = Decimal("1000")
MID_PRICE = Decimal("200")


def resolve_timezone(tz: TimeZoneLike = None) -> tzinfo:
    """Reporting time zone: explicit argument, else the configured one"""
    if tz is None:
        return get_settings().analytics.tzinfo
    if isinstance(tz, tzinfo):
        return tz
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown time zone: {tz!r}") from e


def payment_day(paid_at: datetime, tz: tzinfo) -> date:
    """Calendar day of a timestamp in the reporting time zone"""
    if paid_at.tzinfo is None:
        paid_at = paid_at.replace(tzinfo=timezone.utc)
    return paid_at.astimezone(tz).date()


# =============================================================================
# SPEND AND CUSTOMERS
# =============================================================================

def compute_lifetime_spend(
    customers: Sequence[Customer],
    orders: Sequence[Order],
    order_items: Sequence[OrderItem],
    order: Optional[SortOrder] = None,
    statuses: Optional[Collection[OrderStatus]] = None,
    places: int = 2,
) -> List[SpendRecord]:
    """
    Lifetime spend of every customer, zero for customers without items.

    Args:
        order: Sort by total spend in this direction; ties keep customer
            order. None keeps customer order.
        statuses: Restrict to orders in these statuses
    """
    records = lifetime_spend(customers, orders, order_items, statuses=statuses, places=places)
    if order is None:
        return records
    order = SortOrder(order)
    return sorted(
        records,
        key=lambda r: r.total_spend,
        reverse=order is SortOrder.DESCENDING,
    )


def rank_by_spend(
    spend_records: Sequence[SpendRecord],
    order: SortOrder = SortOrder.DESCENDING,
) -> List[RankedSpend]:
    """
    Dense rank and row number of spend records already sorted by spend.

    Raises:
        OrderViolationError: records are not sorted in the given direction
    """
    by_spend = attrgetter("total_spend")
    ranks = dense_rank(spend_records, key=by_spend, order=order)
    numbers = row_number(spend_records, key=by_spend, order=order)
    return [
        RankedSpend(record=record, dense_rank=rank, row_number=number)
        for (record, rank), (_, number) in zip(ranks, numbers)
    ]


def last_order_per_customer(
    customers: Sequence[Customer],
    orders: Sequence[Order],
) -> List[LastOrder]:
    """Most recent order date per customer; None for customers without orders"""
    grouped = group_by_with_aggregate(
        left_join(customers, orders, lambda c: c.id, lambda o: o.customer_id),
        lambda row: row[0],
        {"last_order_date": ("MAX", lambda row: row[1].order_date if row[1] is not None else None)},
    )
    return [
        LastOrder(customer_id=customer.id, name=customer.name, last_order_date=values["last_order_date"])
        for customer, values in grouped
    ]


def customers_per_city(customers: Sequence[Customer]) -> List[CityCount]:
    """Customer count per city, largest first; ties keep first-seen city order"""
    grouped = group_by_with_aggregate(customers, lambda c: c.city, {"customers": "COUNT"})
    return sorted(
        (CityCount(city=city, customers=values["customers"]) for city, values in grouped),
        key=lambda r: r.customers,
        reverse=True,
    )


def customers_with_order_status(
    customers: Sequence[Customer],
    orders: Sequence[Order],
    status: OrderStatus = OrderStatus.PAID,
) -> List[Customer]:
    """Customers with at least one order in the given status, each listed once, in customer order"""
    status = OrderStatus(status)
    matching = [o for o in orders if o.status is status]
    buyers = {customer.id for customer, _ in inner_join(customers, matching, lambda c: c.id, lambda o: o.customer_id)}
    return [c for c in customers if c.id in buyers]


def orders_with_customer(
    customers: Sequence[Customer],
    orders: Sequence[Order],
    strict: bool = False,
) -> List[OrderSummary]:
    """
    Every order with its customer's name, in input order.

    Orders whose customer is missing are dropped, or raise
    UnresolvedReferenceError when strict.
    """
    return [
        OrderSummary(
            order_id=o.id,
            customer_id=c.id,
            customer_name=c.name,
            status=o.status,
            order_date=o.order_date,
        )
        for o, c in inner_join(orders, customers, lambda o: o.customer_id, lambda c: c.id, strict=strict)
    ]


# =============================================================================
# REVENUE
# =============================================================================

def daily_revenue(
    payments: Sequence[Payment],
    tz: TimeZoneLike = None,
    places: int = 2,
) -> List[DailyRevenue]:
    """Payment amounts summed per calendar day, ascending by day"""
    zone = resolve_timezone(tz)
    grouped = group_by_with_aggregate(
        payments,
        lambda p: payment_day(p.paid_at, zone),
        {"daily_total": ("SUM", lambda p: p.amount)},
    )
    return sorted(
        (DailyRevenue(day=day, daily_total=quantize(values["daily_total"], places)) for day, values in grouped),
        key=lambda r: r.day,
    )


def compute_daily_revenue_with_running_total(
    payments: Sequence[Payment],
    tz: TimeZoneLike = None,
    places: int = 2,
) -> List[RunningRevenue]:
    """Daily revenue with the cumulative revenue up to and including each day"""
    days = daily_revenue(payments, tz=tz, places=places)
    return [
        RunningRevenue(day=day, daily_total=total, running_total=quantize(cumulative, places))
        for day, total, cumulative in running_total([(r.day, r.daily_total) for r in days])
    ]


def daily_revenue_by_method(
    payments: Sequence[Payment],
    tz: TimeZoneLike = None,
    places: int = 2,
) -> List[MethodRevenue]:
    """Daily payment amounts with one column per payment method"""
    zone = resolve_timezone(tz)

    def amount_for(method: PaymentMethod):
        return lambda p: p.amount if p.method is method else Decimal(0)

    grouped = group_by_with_aggregate(
        payments,
        lambda p: payment_day(p.paid_at, zone),
        {
            "card_amount": ("SUM", amount_for(PaymentMethod.CARD)),
            "ach_amount": ("SUM", amount_for(PaymentMethod.ACH)),
            "cash_amount": ("SUM", amount_for(PaymentMethod.CASH)),
        },
    )
    rows = [
        MethodRevenue(day=day, **{name: quantize(value, places) for name, value in values.items()})
        for day, values in grouped
    ]
    return sorted(rows, key=lambda r: r.day)


def compute_payment_islands(
    payments: Sequence[Payment],
    tz: TimeZoneLike = None,
) -> List[PaymentIsland]:
    """Maximal runs of consecutive days with at least one payment"""
    zone = resolve_timezone(tz)
    return detect_islands({payment_day(p.paid_at, zone) for p in payments})


# =============================================================================
# CATALOG
# =============================================================================

def average_price_by_category(
    categories: Sequence[Category],
    products: Sequence[Product],
    min_avg: Optional[Decimal] = None,
    places: int = 6,
) -> List[CategoryPrice]:
    """
    Average product price per category name.

    Categories without products are left out. With min_avg only categories
    whose average is strictly above it are kept.
    """
    grouped = group_by_with_aggregate(
        inner_join(categories, products, lambda c: c.id, lambda p: p.category_id),
        lambda row: row[0].name,
        {"avg_price": ("AVG", lambda row: row[1].price)},
    )
    rows = [CategoryPrice(category=name, avg_price=quantize(values["avg_price"], places)) for name, values in grouped]
    if min_avg is not None:
        threshold = Decimal(str(min_avg))
        rows = [r for r in rows if r.avg_price > threshold]
    return rows


def top_priced_products(products: Sequence[Product]) -> List[Product]:
    """Products priced at their category's maximum, ties included, in product order"""
    maxima: Dict[int, Decimal] = {
        category_id: values["max_price"]
        for category_id, values in group_by_with_aggregate(
            products,
            lambda p: p.category_id,
            {"max_price": ("MAX", lambda p: p.price)},
        )
    }
    return [p for p in products if p.price == maxima[p.category_id]]


def price_band(price: Decimal) -> PriceBand:
    """HIGH from 1000, MID from 200, LOW below"""
    if price >= HIGH_PRICE:
        return PriceBand.HIGH
    if price >= MID_PRICE:
        return PriceBand.MID
    return PriceBand.LOW


def label_price_bands(products: Sequence[Product]) -> List[PricedProduct]:
    """Every product with its price band"""
    return [
        PricedProduct(product_id=p.id, name=p.name, price=p.price, price_band=price_band(p.price))
        for p in products
    ]


def products_by_category(
    categories: Sequence[Category],
    products: Sequence[Product],
) -> List[CategoryProduct]:
    """
    Every category with each of its products, sorted by category name.

    A category without products appears once with product None.
    """
    rows = [
        CategoryProduct(category=category.name, product=product.name if product is not None else None)
        for category, product in left_join(categories, products, lambda c: c.id, lambda p: p.category_id)
    ]
    return sorted(rows, key=lambda r: r.category)


def products_above_average_price(products: Sequence[Product]) -> List[Product]:
    """Products priced strictly above the average price of all products"""
    average = AggregateSpec("AVG", attrgetter("price")).apply(products)
    if average is None:
        return []
    return [p for p in products if p.price > average]


# =============================================================================
# PRODUCT ATTRIBUTES
# =============================================================================

def _attribute_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def product_attributes(products: Sequence[Product]) -> List[ProductAttributes]:
    """brand and color of every product; None where the attrs document lacks them"""
    return [
        ProductAttributes(
            product_id=p.id,
            name=p.name,
            brand=_attribute_text(p.attrs.get("brand")),
            color=_attribute_text(p.attrs.get("color")),
        )
        for p in products
    ]


def products_with_attribute_at_least(
    products: Sequence[Product],
    attribute: str,
    minimum: Union[Decimal, int, float, str],
) -> List[Product]:
    """
    Products whose numeric attribute is at least minimum.

    Products without the attribute, or with a non-numeric value, never match.
    """
    threshold = to_decimal(minimum)
    matched = []
    for product in products:
        value = product.attrs.get(attribute)
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            continue
        if to_decimal(value) >= threshold:
            matched.append(product)
    return matched
