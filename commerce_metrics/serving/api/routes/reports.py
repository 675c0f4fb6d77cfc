"""
Reports API Endpoints

Read-only analytics over the loaded record store.
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
import structlog

from commerce_metrics.analytics.ranking import SortOrder
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
from commerce_metrics.serving.service import ReportService

router = APIRouter()
logger = structlog.get_logger(__name__)


def get_report_service(request: Request) -> ReportService:
    """Report service bound to the application's store snapshot"""
    return request.app.state.report_service


# =============================================================================
# SPEND
# =============================================================================

@router.get("/spend", response_model=List[SpendRecord])
async def get_lifetime_spend(
    order: Optional[SortOrder] = Query(SortOrder.DESCENDING),
    status: Optional[List[OrderStatus]] = Query(None),
    service: ReportService = Depends(get_report_service),
) -> List[SpendRecord]:
    """Lifetime spend per customer, zero for customers without items."""
    logger.info("get_lifetime_spend called", order=order.value if order else None, status=status)
    return service.lifetime_spend(order=order, statuses=status)


@router.get("/spend/ranked", response_model=List[RankedSpend])
async def get_ranked_spend(
    order: SortOrder = Query(SortOrder.DESCENDING),
    status: Optional[List[OrderStatus]] = Query(None),
    service: ReportService = Depends(get_report_service),
) -> List[RankedSpend]:
    """Lifetime spend with dense rank and row number."""
    logger.info("get_ranked_spend called", order=order.value, status=status)
    return service.ranked_spend(order=order, statuses=status)


@router.get("/customers/last-order", response_model=List[LastOrder])
async def get_last_orders(service: ReportService = Depends(get_report_service)) -> List[LastOrder]:
    return service.last_orders()


@router.get("/customers/by-city", response_model=List[CityCount])
async def get_customers_per_city(service: ReportService = Depends(get_report_service)) -> List[CityCount]:
    return service.customers_per_city()


@router.get("/customers/with-status", response_model=List[Customer])
async def get_customers_with_status(
    status: OrderStatus = Query(OrderStatus.PAID),
    service: ReportService = Depends(get_report_service),
) -> List[Customer]:
    """Customers with at least one order in the given status."""
    return service.customers_with_status(status=status)


@router.get("/orders", response_model=List[OrderSummary])
async def get_orders(service: ReportService = Depends(get_report_service)) -> List[OrderSummary]:
    return service.orders()


# =============================================================================
# REVENUE
# =============================================================================

@router.get("/revenue/daily", response_model=List[RunningRevenue])
async def get_daily_revenue(service: ReportService = Depends(get_report_service)) -> List[RunningRevenue]:
    """Daily revenue with running total, bucketed in the reporting time zone."""
    logger.info("get_daily_revenue called")
    return service.daily_revenue()


@router.get("/revenue/by-method", response_model=List[MethodRevenue])
async def get_revenue_by_method(service: ReportService = Depends(get_report_service)) -> List[MethodRevenue]:
    return service.revenue_by_method()


@router.get("/payments/islands", response_model=List[PaymentIsland])
async def get_payment_islands(service: ReportService = Depends(get_report_service)) -> List[PaymentIsland]:
    """Runs of consecutive days with at least one payment."""
    logger.info("get_payment_islands called")
    return service.payment_islands()


# =============================================================================
# CATALOG
# =============================================================================

@router.get("/categories/average-price", response_model=List[CategoryPrice])
async def get_category_prices(
    min_avg: Optional[Decimal] = Query(None, ge=0),
    service: ReportService = Depends(get_report_service),
) -> List[CategoryPrice]:
    return service.category_prices(min_avg=min_avg)


@router.get("/products/top-priced", response_model=List[Product])
async def get_top_priced_products(service: ReportService = Depends(get_report_service)) -> List[Product]:
    return service.top_products()


@router.get("/products/price-bands", response_model=List[PricedProduct])
async def get_price_bands(service: ReportService = Depends(get_report_service)) -> List[PricedProduct]:
    return service.price_bands()


@router.get("/categories/products", response_model=List[CategoryProduct])
async def get_category_products(service: ReportService = Depends(get_report_service)) -> List[CategoryProduct]:
    """Every category with its products; empty categories included."""
    return service.category_products()


@router.get("/products/above-average", response_model=List[Product])
async def get_products_above_average(service: ReportService = Depends(get_report_service)) -> List[Product]:
    return service.products_above_average()


@router.get("/products/attributes", response_model=List[ProductAttributes])
async def get_product_attributes(service: ReportService = Depends(get_report_service)) -> List[ProductAttributes]:
    return service.product_attributes()


@router.get("/products/by-attribute", response_model=List[Product])
async def get_products_by_attribute(
    attribute: str = Query(..., min_length=1),
    minimum: Decimal = Query(...),
    service: ReportService = Depends(get_report_service),
) -> List[Product]:
    """Products whose numeric attribute is at least minimum, e.g. ram_gb >= 16."""
    logger.info("get_products_by_attribute called", attribute=attribute, minimum=str(minimum))
    return service.products_with_attribute(attribute, minimum)
