"""
Record Store

Immutable in-memory snapshot of the e-commerce tables. Loaders accept plain
records, Polars DataFrames or a directory of CSV files; every row is
validated into its typed model on the way in. The analytics engine only
reads from a store.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Type, Union

import polars as pl
import structlog
from pydantic import ValidationError

from commerce_metrics.analytics.errors import UnresolvedReferenceError
from commerce_metrics.data.models import (
    Category,
    Customer,
    Order,
    OrderItem,
    Payment,
    Product,
    Record,
)

logger = structlog.get_logger(__name__)

TABLES: Dict[str, Type[Record]] = {
    "customers": Customer,
    "categories": Category,
    "products": Product,
    "orders": Order,
    "order_items": OrderItem,
    "payments": Payment,
}

# (table, column, referenced table)
FOREIGN_KEYS: List[Tuple[str, str, str]] = [
    ("products", "category_id", "categories"),
    ("orders", "customer_id", "customers"),
    ("order_items", "order_id", "orders"),
    ("order_items", "product_id", "products"),
    ("payments", "order_id", "orders"),
]


class RecordLoadError(ValueError):
    """A row could not be validated into its table model"""

    def __init__(self, table: str, row_index: int, error: ValidationError):
        super().__init__(f"Invalid row {row_index} in table '{table}': {error}")
        self.table = table
        self.row_index = row_index
        self.error = error


def _build_rows(table: str, rows: Iterable[Mapping[str, Any]]) -> Tuple[Record, ...]:
    model = TABLES[table]
    built = []
    for index, row in enumerate(rows):
        try:
            built.append(model.model_validate(dict(row)))
        except ValidationError as e:
            raise RecordLoadError(table, index, e) from e
    return tuple(built)


@dataclass(frozen=True)
class RecordStore:
    """
    Read-only snapshot of all entity tables.

    Tables are tuples of frozen models, so one store can be shared by any
    number of concurrent reports.

    Example:
        store = RecordStore.from_csv_dir("./data/seed")
        spend = compute_lifetime_spend(store.customers, store.orders, store.order_items)
    """
    customers: Tuple[Customer, ...] = ()
    categories: Tuple[Category, ...] = ()
    products: Tuple[Product, ...] = ()
    orders: Tuple[Order, ...] = ()
    order_items: Tuple[OrderItem, ...] = ()
    payments: Tuple[Payment, ...] = ()

    def __post_init__(self):
        for table in TABLES:
            object.__setattr__(self, table, tuple(getattr(self, table)))

    @classmethod
    def from_records(cls, tables: Mapping[str, Iterable[Mapping[str, Any]]]) -> "RecordStore":
        """Build a store from table name -> list of row dicts"""
        unknown = set(tables) - set(TABLES)
        if unknown:
            raise ValueError(f"Unknown tables: {sorted(unknown)}")

        loaded = {name: _build_rows(name, rows) for name, rows in tables.items()}
        store = cls(**loaded)
        logger.info("Record store loaded", **store.row_counts())
        return store

    @classmethod
    def from_frames(cls, frames: Mapping[str, pl.DataFrame]) -> "RecordStore":
        """Build a store from table name -> Polars DataFrame"""
        return cls.from_records({name: df.iter_rows(named=True) for name, df in frames.items()})

    @classmethod
    def from_csv_dir(cls, path: Union[str, Path]) -> "RecordStore":
        """
        Load every <table>.csv present in a directory.

        Missing files load as empty tables. Columns are read as strings and
        converted by the models, so decimals never pass through floats.
        """
        directory = Path(path)
        if not directory.is_dir():
            raise FileNotFoundError(f"Data directory not found: {directory}")

        frames = {}
        for table in TABLES:
            csv_path = directory / f"{table}.csv"
            if csv_path.exists():
                frames[table] = pl.read_csv(csv_path, infer_schema_length=0)
                logger.debug("Read table", table=table, path=str(csv_path), rows=len(frames[table]))

        records = {
            name: [{k: v for k, v in row.items() if v is not None} for row in df.iter_rows(named=True)]
            for name, df in frames.items()
        }
        return cls.from_records(records)

    def table(self, name: str) -> Tuple[Record, ...]:
        """Rows of a table by name"""
        if name not in TABLES:
            raise KeyError(f"Unknown table: {name}")
        return getattr(self, name)

    def to_frame(self, name: str) -> pl.DataFrame:
        """Export a table as a Polars DataFrame"""
        rows = [
            {k: json.dumps(v) if isinstance(v, dict) else v for k, v in row.model_dump(mode="json").items()}
            for row in self.table(name)
        ]
        if not rows:
            return pl.DataFrame(schema={column: pl.Utf8 for column in TABLES[name].model_fields})
        return pl.DataFrame(rows, infer_schema_length=None)

    def row_counts(self) -> Dict[str, int]:
        return {name: len(getattr(self, name)) for name in TABLES}

    def unresolved_references(self) -> Dict[Tuple[str, str], List[Any]]:
        """Foreign key values with no matching id, per (table, column)"""
        problems = {}
        for table, column, referenced in FOREIGN_KEYS:
            ids = {row.id for row in getattr(self, referenced)}
            missing = [getattr(row, column) for row in getattr(self, table) if getattr(row, column) not in ids]
            if missing:
                problems[(table, column)] = missing
        return problems

    def require_referential_integrity(self) -> "RecordStore":
        """
        Fail when any foreign key dangles.

        Raises:
            UnresolvedReferenceError: for the first dangling (table, column)
        """
        problems = self.unresolved_references()
        if problems:
            (table, column), missing = next(iter(problems.items()))
            logger.warning("Referential integrity violated", table=table, column=column, missing=missing[:10])
            raise UnresolvedReferenceError(
                f"{table}.{column} references missing rows: {missing[:10]}",
                table=table,
                column=column,
                missing=missing,
            )
        return self

    def validate(self):
        """Run the entity data quality checks over this store"""
        from commerce_metrics.quality.validators import validate_store
        return validate_store(self)
