"""
Analytics Errors

Every error is local to a single call. None of them is retried: the engine is
pure, so running it again on the same input reproduces the failure.
"""

from typing import Any, Optional


class AnalyticsError(Exception):
    """Base class for analytics engine errors"""


class ConfigurationError(AnalyticsError):
    """Malformed aggregate or report setup, raised before any row is read"""


class OrderViolationError(AnalyticsError):
    """Input is not sorted the way the caller claimed"""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class DuplicateKeyError(AnalyticsError):
    """A key that must be unique appears more than once"""

    def __init__(self, message: str, key: Any = None):
        super().__init__(message)
        self.key = key


class DuplicateDateError(DuplicateKeyError):
    """A date appears more than once in an island detection input"""


class UnresolvedReferenceError(AnalyticsError):
    """A foreign key points at a row missing from the referenced table"""

    def __init__(self, message: str, table: str = "", column: str = "", missing: Optional[list] = None):
        super().__init__(message)
        self.table = table
        self.column = column
        self.missing = missing or []
