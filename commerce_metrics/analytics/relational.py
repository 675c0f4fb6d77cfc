"""
Join/Group Engine

Generic relational operators over in-memory row sequences:
- Equi-join and left join with order-preserving output
- Group-by with null-safe SUM/COUNT/MAX/MIN/AVG aggregates
- Lifetime spend derived from customers, orders and order items

Monetary arithmetic goes through decimal.Decimal only.
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import (
    Any,
    Callable,
    Collection,
    Dict,
    Hashable,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from commerce_metrics.analytics.errors import ConfigurationError, UnresolvedReferenceError
from commerce_metrics.data.models import Customer, Order, OrderItem, OrderStatus, SpendRecord

L = TypeVar("L")
R = TypeVar("R")
T = TypeVar("T")

KeyFn = Callable[[Any], Optional[Hashable]]


class AggregateFunction(str, Enum):
    """Supported aggregate functions"""
    SUM = "SUM"
    COUNT = "COUNT"
    MAX = "MAX"
    MIN = "MIN"
    AVG = "AVG"


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Convert a numeric value to Decimal without binary float drift"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not numeric aggregate inputs")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize(value: Decimal, places: int = 2) -> Decimal:
    """Round half-up to a fixed number of fractional digits"""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class AggregateSpec:
    """
    One named aggregate of a group-by.

    Args:
        function: Aggregate function name (SUM, COUNT, MAX, MIN, AVG)
        value: Extracts the aggregated value from a row. None means COUNT(*)
    """
    function: Union[AggregateFunction, str]
    value: Optional[Callable[[Any], Any]] = None

    def __post_init__(self):
        function = self.function
        if not isinstance(function, AggregateFunction):
            if not isinstance(function, str):
                raise ConfigurationError(f"Aggregate function must be a name, got {function!r}")
            try:
                function = AggregateFunction(function.strip().upper())
            except ValueError:
                allowed = [f.value for f in AggregateFunction]
                raise ConfigurationError(
                    f"Unknown aggregate function {self.function!r}; expected one of {allowed}"
                ) from None
        if self.value is None and function is not AggregateFunction.COUNT:
            raise ConfigurationError(f"{function.value} needs a value extractor")
        if self.value is not None and not callable(self.value):
            raise ConfigurationError(f"Value extractor for {function.value} is not callable")
        object.__setattr__(self, "function", function)

    def apply(self, rows: Sequence[Any]) -> Any:
        """Reduce the rows of one group"""
        if self.value is None:
            return len(rows)

        present = [v for v in (self.value(row) for row in rows) if v is not None]

        if self.function is AggregateFunction.COUNT:
            return len(present)
        if self.function is AggregateFunction.SUM:
            return sum((to_decimal(v) for v in present), Decimal(0))
        if self.function is AggregateFunction.AVG:
            if not present:
                return None
            return sum((to_decimal(v) for v in present), Decimal(0)) / len(present)
        if not present:
            return None
        if self.function is AggregateFunction.MAX:
            return max(present)
        return min(present)


AggregateLike = Union[AggregateSpec, Tuple[str, Optional[Callable[[Any], Any]]], str]


def compile_aggregates(aggregates: Mapping[str, AggregateLike]) -> Dict[str, AggregateSpec]:
    """
    Validate aggregate definitions up front.

    Accepts AggregateSpec instances, (function, extractor) tuples or a bare
    "COUNT" string. Raises ConfigurationError on anything else.
    """
    compiled = {}
    for name, spec in aggregates.items():
        if isinstance(spec, AggregateSpec):
            compiled[name] = spec
        elif isinstance(spec, tuple) and len(spec) == 2:
            compiled[name] = AggregateSpec(spec[0], spec[1])
        elif isinstance(spec, (str, AggregateFunction)):
            compiled[name] = AggregateSpec(spec)
        else:
            raise ConfigurationError(f"Invalid aggregate definition for {name!r}: {spec!r}")
    return compiled


def _index(inner: Iterable[R], inner_key: KeyFn) -> Dict[Hashable, List[R]]:
    index: Dict[Hashable, List[R]] = defaultdict(list)
    for row in inner:
        key = inner_key(row)
        if key is not None:
            index[key].append(row)
    return index


def _unresolved(missing: List[Hashable]) -> UnresolvedReferenceError:
    return UnresolvedReferenceError(
        f"{len(missing)} join key(s) have no matching row: {missing[:10]}",
        missing=missing,
    )


def left_join(
    outer: Iterable[L],
    inner: Iterable[R],
    outer_key: KeyFn,
    inner_key: KeyFn,
    strict: bool = False,
) -> List[Tuple[L, Optional[R]]]:
    """
    Left outer equi-join.

    Each outer row yields one (outer, inner) pair per matching inner row, in
    the inner rows' original order, or a single (outer, None) pair when no
    inner row matches. A None key never matches.

    Args:
        outer: Preserved side of the join
        inner: Optional side of the join
        outer_key: Key extractor for outer rows
        inner_key: Key extractor for inner rows
        strict: Raise UnresolvedReferenceError when a non-null outer key
            finds no inner row
    """
    index = _index(inner, inner_key)
    joined: List[Tuple[L, Optional[R]]] = []
    missing = []

    for row in outer:
        key = outer_key(row)
        matches = index.get(key, []) if key is not None else []
        if matches:
            joined.extend((row, match) for match in matches)
        else:
            if key is not None:
                missing.append(key)
            joined.append((row, None))

    if strict and missing:
        raise _unresolved(missing)
    return joined


def inner_join(
    outer: Iterable[L],
    inner: Iterable[R],
    outer_key: KeyFn,
    inner_key: KeyFn,
    strict: bool = False,
) -> List[Tuple[L, R]]:
    """Inner equi-join; same ordering rules as left_join, unmatched rows dropped"""
    return [
        (left, right)
        for left, right in left_join(outer, inner, outer_key, inner_key, strict=strict)
        if right is not None
    ]


def group_by_with_aggregate(
    rows: Iterable[T],
    key_fn: Callable[[T], Hashable],
    aggregates: Mapping[str, AggregateLike],
) -> List[Tuple[Hashable, Dict[str, Any]]]:
    """
    Partition rows by key and reduce each partition.

    Groups come out in first-seen key order. The aggregate definitions are
    validated before any row is read.

    Returns:
        List of (key, {aggregate name: value}) pairs
    """
    compiled = compile_aggregates(aggregates)

    groups: Dict[Hashable, List[T]] = {}
    for row in rows:
        groups.setdefault(key_fn(row), []).append(row)

    return [
        (key, {name: spec.apply(members) for name, spec in compiled.items()})
        for key, members in groups.items()
    ]


def lifetime_spend(
    customers: Sequence[Customer],
    orders: Sequence[Order],
    order_items: Sequence[OrderItem],
    statuses: Optional[Collection[OrderStatus]] = None,
    places: int = 2,
) -> List[SpendRecord]:
    """
    Sum of qty * unit_price over every order item of each customer.

    Customers without orders or items get 0. Output follows customer order.

    Args:
        statuses: Only count orders in these statuses (all orders when None)
        places: Fractional digits of the returned totals
    """
    if statuses is not None:
        allowed = {OrderStatus(s) for s in statuses}
        orders = [o for o in orders if o.status in allowed]

    with_orders = left_join(customers, orders, lambda c: c.id, lambda o: o.customer_id)
    with_items = left_join(
        with_orders,
        order_items,
        lambda pair: pair[1].id if pair[1] is not None else None,
        lambda item: item.order_id,
    )

    grouped = group_by_with_aggregate(
        with_items,
        lambda row: row[0][0].id,
        {
            "total_spend": ("SUM", lambda row: row[1].line_total if row[1] is not None else None),
        },
    )

    names = {c.id: c.name for c in customers}
    return [
        SpendRecord(
            customer_id=customer_id,
            name=names[customer_id],
            total_spend=quantize(values["total_spend"], places),
        )
        for customer_id, values in grouped
    ]
