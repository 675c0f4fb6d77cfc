"""
Island Detector

Partitions a set of distinct calendar dates into maximal runs of consecutive
days (gaps and islands). Each date is anchored at date - position days; dates
of one run share an anchor because both advance by one together, and any gap
shifts the anchor of every later date.
"""

from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List

from commerce_metrics.analytics.errors import DuplicateDateError
from commerce_metrics.data.models import PaymentIsland


def detect_islands(dates: Iterable[date]) -> List[PaymentIsland]:
    """
    Group distinct dates into runs of consecutive days.

    Args:
        dates: Distinct dates in any order

    Returns:
        One PaymentIsland per run, ordered by start day

    Raises:
        DuplicateDateError: a date appears more than once
    """
    ordered = sorted(dates)

    duplicates = [d for d, count in Counter(ordered).items() if count > 1]
    if duplicates:
        raise DuplicateDateError(
            f"Island detection needs distinct dates; duplicated: {[d.isoformat() for d in duplicates[:10]]}",
            key=duplicates[0],
        )

    islands: Dict[date, List[date]] = {}
    for position, day in enumerate(ordered, start=1):
        islands.setdefault(day - timedelta(days=position), []).append(day)

    # anchors increase with start day, so insertion order is already sorted
    return [
        PaymentIsland(start_day=members[0], end_day=members[-1], day_count=len(members))
        for members in islands.values()
    ]
