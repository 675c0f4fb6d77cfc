"""
Unit Tests - Running Totals
"""
from datetime import date
from decimal import Decimal

import pytest

from commerce_metrics.analytics.errors import DuplicateKeyError, OrderViolationError
from commerce_metrics.analytics.running import running_total


class TestRunningTotal:
    """Tests for running_total"""

    def test_daily_revenue_running_total(self):
        pairs = [
            (date(2025, 10, 1), Decimal("738.00")),
            (date(2025, 10, 12), Decimal("1299.00")),
        ]

        result = running_total(pairs)

        assert [total for _, _, total in result] == [Decimal("738.00"), Decimal("2037.00")]

    def test_single_element(self):
        assert running_total([(1, Decimal("5.50"))]) == [(1, Decimal("5.50"), Decimal("5.50"))]

    def test_empty(self):
        assert running_total([]) == []

    def test_last_total_is_sum_of_values(self):
        pairs = [(i, Decimal("0.10")) for i in range(10)]

        result = running_total(pairs)

        assert result[-1][2] == Decimal("1.00")

    def test_sorting_sorted_input_changes_nothing(self):
        pairs = [(1, 3), (4, 2), (9, 7)]

        assert running_total(sorted(pairs)) == running_total(pairs)

    def test_float_values_do_not_drift(self):
        result = running_total([(1, 0.1), (2, 0.2)])

        assert result[-1][2] == Decimal("0.3")

    def test_duplicate_keys_are_rejected(self):
        with pytest.raises(DuplicateKeyError) as exc_info:
            running_total([(1, 1), (2, 1), (2, 5)])

        assert exc_info.value.key == 2

    def test_descending_keys_are_rejected(self):
        with pytest.raises(OrderViolationError):
            running_total([(2, 1), (1, 1)])
