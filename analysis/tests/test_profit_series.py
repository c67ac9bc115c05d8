"""
Tests for profit series calculation utilities.
Tiny record fixtures on a fixed reference day for hand verification.
"""

import pytest
from datetime import datetime

from analysis.calculations.profit_series import (
    cumulative_profit_series,
    fixed_grid_daily_returns,
)
from analysis.calculations.timeline import ChartDataError, grid_days, window_start
from tests.factories import AS_OF, NOW, days_ago, make_profit


class TestCumulativeProfitSeries:
    """Tests for cumulative_profit_series function."""

    def test_groups_same_day_and_accumulates(self):
        """Two credits on one day are summed before the running total."""
        profits = [
            make_profit(days_ago(2), 10.0),
            make_profit(days_ago(2), 5.0),
            make_profit(days_ago(1), 20.0),
        ]

        result = cumulative_profit_series(profits, 7, as_of=AS_OF)

        assert [p['value'] for p in result] == [15.0, 35.0]
        assert [p['label'] for p in result] == ['2025-08-05', '2025-08-06']
        assert [p['date'] for p in result] == ['Aug 05', 'Aug 06']

    def test_unordered_input_is_sorted(self):
        """Output follows ascending dates regardless of input order."""
        profits = [
            make_profit(days_ago(1), 3.0),
            make_profit(days_ago(5), 1.0),
            make_profit(days_ago(3), 2.0),
        ]

        result = cumulative_profit_series(profits, 30, as_of=AS_OF)

        assert [p['label'] for p in result] == ['2025-08-02', '2025-08-04', '2025-08-06']
        assert [p['value'] for p in result] == [1.0, 3.0, 6.0]

    def test_no_zero_fill_for_missing_days(self):
        """Days without profit produce no point."""
        profits = [make_profit(days_ago(10), 4.0), make_profit(days_ago(0), 6.0)]

        result = cumulative_profit_series(profits, 30, as_of=AS_OF)

        assert len(result) == 2

    def test_window_boundary_is_inclusive(self):
        """A record exactly window_days old is included, one day older is not."""
        profits = [
            make_profit(days_ago(8), 100.0),
            make_profit(days_ago(7), 1.0),
            make_profit(days_ago(0), 2.0),
        ]

        result = cumulative_profit_series(profits, 7, as_of=AS_OF)

        assert [p['label'] for p in result] == ['2025-07-31', '2025-08-07']
        assert result[-1]['value'] == 3.0

    def test_empty_input(self):
        """Empty input gives an empty series."""
        assert cumulative_profit_series([], 30, as_of=AS_OF) == []

    def test_all_records_outside_window(self):
        """Old records only gives an empty series."""
        profits = [make_profit(days_ago(40), 10.0)]

        assert cumulative_profit_series(profits, 30, as_of=AS_OF) == []

    def test_values_non_decreasing(self):
        """Non-negative amounts give a non-decreasing curve."""
        profits = [make_profit(days_ago(i % 20), float(i % 7)) for i in range(60)]

        values = [p['value'] for p in cumulative_profit_series(profits, 30, as_of=AS_OF)]

        assert all(b >= a for a, b in zip(values, values[1:]))
        assert values[-1] == pytest.approx(sum(float(i % 7) for i in range(60)))

    def test_datetime_reference_uses_calendar_day(self):
        """A datetime as_of behaves like its date."""
        profits = [make_profit(days_ago(7), 1.0), make_profit(days_ago(3), 2.0)]

        assert (
            cumulative_profit_series(profits, 7, as_of=NOW)
            == cumulative_profit_series(profits, 7, as_of=AS_OF)
        )

    def test_idempotent(self):
        """Same input and reference day gives identical output."""
        profits = [make_profit(days_ago(2), 10.0), make_profit(days_ago(1), 20.0)]

        first = cumulative_profit_series(profits, 7, as_of=AS_OF)
        second = cumulative_profit_series(profits, 7, as_of=AS_OF)

        assert first == second

    @pytest.mark.parametrize('window_days', [0, -3, 2.5, True])
    def test_invalid_window(self, window_days):
        """Non-positive or non-integer windows are rejected."""
        with pytest.raises(ChartDataError):
            cumulative_profit_series([], window_days, as_of=AS_OF)


class TestFixedGridDailyReturns:
    """Tests for fixed_grid_daily_returns function."""

    def test_empty_input_fills_grid_with_zeros(self):
        """Exactly window_days zero points with no data."""
        result = fixed_grid_daily_returns([], 7, as_of=AS_OF)

        assert len(result) == 7
        assert all(p['value'] == 0.0 for p in result)

    def test_grid_days_and_labels(self):
        """Grid runs from as_of - window_days + 1 to as_of."""
        result = fixed_grid_daily_returns([], 7, as_of=AS_OF)

        assert result[0]['label'] == '2025-08-01'
        assert result[-1]['label'] == '2025-08-07'
        assert [p['date'] for p in result] == ['Fri', 'Sat', 'Sun', 'Mon', 'Tue', 'Wed', 'Thu']

    def test_daily_sums_not_cumulative(self):
        """Each bar is the total of its own day only."""
        profits = [
            make_profit(days_ago(0), 4.0),
            make_profit(days_ago(0), 1.0),
            make_profit(days_ago(2), 3.0),
        ]

        result = fixed_grid_daily_returns(profits, 7, as_of=AS_OF)
        values = [p['value'] for p in result]

        assert values == [0.0, 0.0, 0.0, 0.0, 3.0, 0.0, 5.0]

    def test_records_outside_grid_ignored(self):
        """Records before the grid or after as_of do not appear."""
        profits = [
            make_profit(days_ago(7), 50.0),
            make_profit(days_ago(-1), 60.0),
            make_profit(days_ago(6), 1.0),
        ]

        result = fixed_grid_daily_returns(profits, 7, as_of=AS_OF)

        assert [p['value'] for p in result] == [1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0]

    def test_idempotent(self):
        """Same input and reference day gives identical output."""
        profits = [make_profit(days_ago(0), 4.0), make_profit(days_ago(3), 1.5)]

        first = fixed_grid_daily_returns(profits, 7, as_of=AS_OF)
        second = fixed_grid_daily_returns(profits, 7, as_of=AS_OF)

        assert first == second

    @pytest.mark.parametrize('window_days', [1, 7, 30, 90])
    def test_length_matches_window(self, window_days):
        """Length is independent of the data."""
        profits = [make_profit(days_ago(i), 1.0) for i in range(100)]

        result = fixed_grid_daily_returns(profits, window_days, as_of=AS_OF)

        assert len(result) == window_days
        assert all(p['value'] == 1.0 for p in result)


class TestTimeline:
    """Tests for window and grid helpers."""

    def test_window_start(self):
        assert window_start(AS_OF, 30) == days_ago(30)

    def test_grid_days_consecutive(self):
        grid = grid_days(datetime(2025, 3, 1, 8, 0), 3)

        assert [d.isoformat() for d in grid] == ['2025-02-27', '2025-02-28', '2025-03-01']
