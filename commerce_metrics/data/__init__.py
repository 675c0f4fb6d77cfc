"""
Data Module
"""
from .models import (
    Category,
    Customer,
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentMethod,
    Product,
)
from .store import RecordStore, RecordLoadError
from .seed import load_seed_store

__all__ = [
    "Category",
    "Customer",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Payment",
    "PaymentMethod",
    "Product",
    "RecordStore",
    "RecordLoadError",
    "load_seed_store",
]
