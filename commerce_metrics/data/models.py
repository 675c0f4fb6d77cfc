"""
Domain Models

Typed rows for the e-commerce tables and the derived records computed by the
analytics engine. All models are frozen so a loaded snapshot can be shared
between concurrent reports.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderStatus(str, Enum):
    """Order lifecycle status"""
    NEW = "NEW"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    """Payment method"""
    CARD = "CARD"
    ACH = "ACH"
    CASH = "CASH"


class PriceBand(str, Enum):
    """Product price band"""
    HIGH = "HIGH"
    MID = "MID"
    LOW = "LOW"


class Record(BaseModel):
    """Base for all immutable rows"""

    model_config = ConfigDict(frozen=True, use_enum_values=False)


# =============================================================================
# ENTITY TABLES
# =============================================================================

class Customer(Record):
    """Customer row"""
    id: int
    name: str
    email: Optional[str] = None
    city: Optional[str] = None
    created_at: Optional[datetime] = None


class Category(Record):
    """Product category row"""
    id: int
    name: str


class Product(Record):
    """Product row with free-form attributes"""
    id: int
    category_id: int
    name: str
    price: Decimal = Field(decimal_places=2)
    stock: int = Field(default=0, ge=0)
    attrs: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("attrs", mode="before")
    @classmethod
    def parse_attrs(cls, v: Any) -> Any:
        """Accept attributes stored as a JSON document"""
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            return json.loads(v)
        return v


class Order(Record):
    """Order header row"""
    id: int
    customer_id: int
    order_date: date
    status: OrderStatus = OrderStatus.NEW


class OrderItem(Record):
    """Order line; unit_price is the price at time of sale"""
    id: int
    order_id: int
    product_id: int
    qty: int = Field(gt=0)
    unit_price: Decimal = Field(decimal_places=2)

    @property
    def line_total(self) -> Decimal:
        return self.qty * self.unit_price


class Payment(Record):
    """Payment row"""
    id: int
    order_id: int
    paid_at: datetime
    method: PaymentMethod
    amount: Decimal = Field(decimal_places=2)


# =============================================================================
# DERIVED RECORDS
# =============================================================================

class SpendRecord(Record):
    """Lifetime spend of one customer"""
    customer_id: int
    name: str
    total_spend: Decimal


class DailyRevenue(Record):
    """Payments summed over one calendar day"""
    day: date
    daily_total: Decimal


class RunningRevenue(Record):
    """Daily revenue with the cumulative total up to that day"""
    day: date
    daily_total: Decimal
    running_total: Decimal


class PaymentIsland(Record):
    """Maximal run of consecutive calendar days"""
    start_day: date
    end_day: date
    day_count: int


class RankedSpend(Record):
    """Spend record with its dense rank and row number"""
    record: SpendRecord
    dense_rank: int
    row_number: int


class MethodRevenue(Record):
    """Daily payment amounts pivoted by method"""
    day: date
    card_amount: Decimal
    ach_amount: Decimal
    cash_amount: Decimal


class LastOrder(Record):
    """Most recent order date of a customer"""
    customer_id: int
    name: str
    last_order_date: Optional[date] = None


class CategoryPrice(Record):
    """Average product price of a category"""
    category: str
    avg_price: Decimal


class PricedProduct(Record):
    """Product labelled with its price band"""
    product_id: int
    name: str
    price: Decimal
    price_band: PriceBand


class CityCount(Record):
    """Number of customers in a city"""
    city: Optional[str] = None
    customers: int


class OrderSummary(Record):
    """Order header joined with its customer's name"""
    order_id: int
    customer_id: int
    customer_name: str
    status: OrderStatus
    order_date: date


class CategoryProduct(Record):
    """Category paired with one of its products; product is None for empty categories"""
    category: str
    product: Optional[str] = None


class ProductAttributes(Record):
    """Attributes pulled out of a product's attrs document"""
    product_id: int
    name: str
    brand: Optional[str] = None
    color: Optional[str] = None
