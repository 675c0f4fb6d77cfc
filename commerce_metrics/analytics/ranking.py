"""
Ranking Module

Dense rank and row number over sequences the caller has already sorted.
Nothing here re-sorts: the claimed order is checked and a mismatch raises
OrderViolationError.
"""

from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

from commerce_metrics.analytics.errors import OrderViolationError

T = TypeVar("T")


class SortOrder(str, Enum):
    """Direction of a ranking key"""
    ASCENDING = "asc"
    DESCENDING = "desc"


def _out_of_order(previous: Any, current: Any, order: SortOrder) -> bool:
    if order is SortOrder.DESCENDING:
        return current > previous
    return current < previous


def check_order(items: Sequence[T], key: Callable[[T], Any], order: SortOrder) -> None:
    """
    Validate that items are monotonic in the given direction.

    Raises:
        OrderViolationError: naming the first position that breaks the order
    """
    order = SortOrder(order)
    for position in range(1, len(items)):
        previous, current = key(items[position - 1]), key(items[position])
        if _out_of_order(previous, current, order):
            raise OrderViolationError(
                f"Input is not sorted {order.name.lower()}: "
                f"{current!r} at position {position} follows {previous!r}",
                position=position,
            )


def dense_rank(
    items: Sequence[T],
    key: Callable[[T], Any],
    order: SortOrder = SortOrder.DESCENDING,
) -> List[Tuple[T, int]]:
    """
    Assign dense ranks to pre-sorted items.

    Equal keys share a rank and the next distinct key gets the previous
    rank + 1, so ranks have no gaps.

    Args:
        items: Items sorted by key in the given direction
        key: Ranking key extractor
        order: Direction the items are sorted in

    Returns:
        (item, rank) pairs in input order
    """
    check_order(items, key, order)

    ranked: List[Tuple[T, int]] = []
    rank = 0
    previous: Any = None
    for index, item in enumerate(items):
        current = key(item)
        if index == 0 or current != previous:
            rank += 1
        ranked.append((item, rank))
        previous = current
    return ranked


def row_number(
    items: Sequence[T],
    key: Optional[Callable[[T], Any]] = None,
    order: SortOrder = SortOrder.DESCENDING,
) -> List[Tuple[T, int]]:
    """
    Number items 1..N in input order, ties included.

    When a key is given the input order is validated against it first.
    """
    if key is not None:
        check_order(items, key, order)
    return [(item, position) for position, item in enumerate(items, start=1)]
