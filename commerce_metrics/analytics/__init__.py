"""
Analytics Module
"""
from .errors import (
    AnalyticsError,
    ConfigurationError,
    DuplicateDateError,
    DuplicateKeyError,
    OrderViolationError,
    UnresolvedReferenceError,
)
from .islands import detect_islands
from .metrics import (
    compute_daily_revenue_with_running_total,
    compute_lifetime_spend,
    compute_payment_islands,
    rank_by_spend,
)
from .ranking import SortOrder, dense_rank, row_number
from .relational import AggregateSpec, group_by_with_aggregate, inner_join, left_join
from .running import running_total

__all__ = [
    "AnalyticsError",
    "ConfigurationError",
    "DuplicateDateError",
    "DuplicateKeyError",
    "OrderViolationError",
    "UnresolvedReferenceError",
    "detect_islands",
    "compute_daily_revenue_with_running_total",
    "compute_lifetime_spend",
    "compute_payment_islands",
    "rank_by_spend",
    "SortOrder",
    "dense_rank",
    "row_number",
    "AggregateSpec",
    "group_by_with_aggregate",
    "inner_join",
    "left_join",
    "running_total",
]
