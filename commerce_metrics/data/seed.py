"""
Seed Dataset

The reference e-commerce dataset: four customers, three categories, four
products, four orders with five items and two payments. Payment timestamps
are UTC.
"""

from typing import Any, Dict, List

from commerce_metrics.data.store import RecordStore

SEED_TABLES: Dict[str, List[Dict[str, Any]]] = {
    "customers": [
        {"id": 1, "name": "Alice", "email": "alice@ex.com", "city": "Dallas"},
        {"id": 2, "name": "Bob", "email": "bob@ex.com", "city": "Seattle"},
        {"id": 3, "name": "Caro", "email": "caro@ex.com", "city": "Miami"},
        {"id": 4, "name": "Dani", "email": "dani@ex.com", "city": "Dallas"},
    ],
    "categories": [
        {"id": 1, "name": "Electronics"},
        {"id": 2, "name": "Home"},
        {"id": 3, "name": "Books"},
    ],
    "products": [
        {"id": 1, "category_id": 1, "name": "Phone", "price": "699.00", "stock": 10,
         "attrs": {"brand": "Acme", "color": "black"}},
        {"id": 2, "category_id": 1, "name": "Laptop", "price": "1299.00", "stock": 5,
         "attrs": {"brand": "Acme", "ram_gb": 16}},
        {"id": 3, "category_id": 2, "name": "Vacuum", "price": "199.00", "stock": 20,
         "attrs": {"brand": "CleanCo"}},
        {"id": 4, "category_id": 3, "name": "SQL 101", "price": "39.00", "stock": 100,
         "attrs": {"format": "paperback"}},
    ],
    "orders": [
        {"id": 1, "customer_id": 1, "order_date": "2025-10-01", "status": "PAID"},
        {"id": 2, "customer_id": 1, "order_date": "2025-10-12", "status": "PAID"},
        {"id": 3, "customer_id": 2, "order_date": "2025-10-14", "status": "NEW"},
        {"id": 4, "customer_id": 3, "order_date": "2025-10-20", "status": "CANCELLED"},
    ],
    "order_items": [
        {"id": 1, "order_id": 1, "product_id": 1, "qty": 1, "unit_price": "699.00"},
        {"id": 2, "order_id": 1, "product_id": 4, "qty": 1, "unit_price": "39.00"},
        {"id": 3, "order_id": 2, "product_id": 2, "qty": 1, "unit_price": "1299.00"},
        {"id": 4, "order_id": 3, "product_id": 3, "qty": 2, "unit_price": "199.00"},
        {"id": 5, "order_id": 4, "product_id": 4, "qty": 1, "unit_price": "39.00"},
    ],
    "payments": [
        {"id": 1, "order_id": 1, "paid_at": "2025-10-01T10:05:00", "method": "CARD", "amount": "738.00"},
        {"id": 2, "order_id": 2, "paid_at": "2025-10-12T09:30:00", "method": "ACH", "amount": "1299.00"},
    ],
}


def load_seed_store() -> RecordStore:
    """Record store holding the seed dataset"""
    return RecordStore.from_records(SEED_TABLES)
