"""
Running-Aggregate Module

Prefix sums over key-ordered (key, value) sequences, computed as a fold with
exact Decimal arithmetic.
"""

from collections import Counter
from decimal import Decimal
from itertools import accumulate
from typing import Any, Hashable, List, Sequence, Tuple, Union

from commerce_metrics.analytics.errors import DuplicateKeyError, OrderViolationError
from commerce_metrics.analytics.relational import to_decimal

Number = Union[Decimal, int, float, str]


def running_total(pairs: Sequence[Tuple[Hashable, Number]]) -> List[Tuple[Any, Decimal, Decimal]]:
    """
    Cumulative sum of values, in input order.

    Args:
        pairs: (key, value) pairs sorted ascending by key; keys must be unique

    Returns:
        (key, value, running total) triples

    Raises:
        DuplicateKeyError: a key appears more than once
        OrderViolationError: keys are not ascending
    """
    keys = [key for key, _ in pairs]

    duplicates = [key for key, count in Counter(keys).items() if count > 1]
    if duplicates:
        raise DuplicateKeyError(
            f"Running total keys must be unique; duplicated: {duplicates[:10]}",
            key=duplicates[0],
        )

    for position in range(1, len(keys)):
        if keys[position] < keys[position - 1]:
            raise OrderViolationError(
                f"Running total keys are not ascending: {keys[position]!r} at "
                f"position {position} follows {keys[position - 1]!r}",
                position=position,
            )

    values = [to_decimal(value) for _, value in pairs]
    totals = accumulate(values)

    return [(key, value, total) for key, value, total in zip(keys, values, totals)]
