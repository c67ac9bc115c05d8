"""
Profit series calculation utilities.
Pure functions for the cumulative profit curve and the daily returns bars.
"""

from datetime import date, datetime
from typing import List, Dict, Union, Sequence

from analysis.calculations.timeline import window_start, grid_days, daily_totals
from ingestion.records import ProfitRecord
from reports.formatters import format_axis_date, format_weekday


def _profits_since(profits: Sequence[ProfitRecord], start: date):
    return ((p.date, p.amount) for p in profits if p.date >= start)


def cumulative_profit_series(
    profits: Sequence[ProfitRecord],
    window_days: int = 30,
    *,
    as_of: Union[date, datetime]
) -> List[Dict[str, Union[str, float]]]:
    """
    Running total of profits over a trailing window.

    Records dated on or after as_of - window_days are grouped by day and
    accumulated left to right. Days without profit produce no point, so the
    line only connects real credits.

    Args:
        profits: Profit records for one scope, any order
        window_days: Window length in days
        as_of: Reference day (the "now" of the chart)

    Returns:
        List of {'date': 'Oct 05', 'value': cumulative, 'label': '2025-10-05'}

    Example:
        profits on day-2 (10, 5) and day-1 (20) -> values [15.0, 35.0]
    """
    start = window_start(as_of, window_days)
    cumulative = daily_totals(_profits_since(profits, start)).cumsum()

    return [
        {
            'date': format_axis_date(day),
            'value': float(value),
            'label': day.isoformat(),
        }
        for day, value in cumulative.items()
    ]


def fixed_grid_daily_returns(
    profits: Sequence[ProfitRecord],
    window_days: int = 7,
    *,
    as_of: Union[date, datetime]
) -> List[Dict[str, Union[str, float]]]:
    """
    Per-day profit totals on a fixed grid of window_days days ending at as_of.

    Always returns exactly window_days points; days with no profit are 0.0.
    Values are not cumulative.

    Returns:
        List of {'date': 'Mon', 'value': day_total, 'label': '2025-10-06'}
    """
    grid = grid_days(as_of, window_days)
    totals = daily_totals(_profits_since(profits, grid[0])).reindex(grid, fill_value=0.0)

    return [
        {
            'date': format_weekday(day),
            'value': float(value),
            'label': day.isoformat(),
        }
        for day, value in zip(grid, totals.tolist())
    ]
