"""
Calendar window and grid helpers shared by the chart calculations.
Pure functions - the reference day is always passed in.
"""

import pandas as pd
from datetime import date, datetime, timedelta
from typing import Iterable, List, Tuple, Union


class ChartDataError(ValueError):
    """Raised when a chart calculation is called with invalid arguments."""
    pass


def as_calendar_day(as_of: Union[date, datetime]) -> date:
    """Reduce a date or datetime reference to its calendar day."""
    if isinstance(as_of, datetime):
        return as_of.date()
    if isinstance(as_of, date):
        return as_of
    raise ChartDataError(f"as_of must be date or datetime, got {type(as_of)}")


def check_window(window_days: int) -> None:
    """
    Raises:
        ChartDataError: If window_days is not a positive integer
    """
    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
        raise ChartDataError(f"window_days must be positive integer, got {window_days!r}")


def window_start(as_of: Union[date, datetime], window_days: int) -> date:
    """
    First day of a trailing window.

    A record dated exactly window_days before as_of is inside the window,
    so the window spans window_days + 1 calendar days.
    """
    check_window(window_days)
    return as_calendar_day(as_of) - timedelta(days=window_days)


def grid_days(as_of: Union[date, datetime], window_days: int) -> List[date]:
    """
    Consecutive calendar days ending at as_of, oldest first.

    Example:
        as_of=2025-08-07, window_days=3 -> [2025-08-05, 2025-08-06, 2025-08-07]
    """
    check_window(window_days)
    end = as_calendar_day(as_of)
    return [end - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]


def daily_totals(entries: Iterable[Tuple[date, float]]) -> pd.Series:
    """
    Sum amounts per calendar day.

    Args:
        entries: (day, amount) pairs in any order

    Returns:
        Float Series indexed by day, sorted ascending (empty if no entries)
    """
    entries = list(entries)
    if not entries:
        return pd.Series(dtype=float)

    days = [day for day, _ in entries]
    amounts = [float(amount) for _, amount in entries]

    series = pd.Series(amounts, index=pd.Index(days, dtype=object, name='day'), dtype=float)
    return series.groupby(level=0).sum().sort_index()
