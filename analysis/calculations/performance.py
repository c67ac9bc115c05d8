"""
Multi-metric performance calculation utilities.
Cumulative deposits, investments and profits on a fixed daily grid.
"""

import pandas as pd
from datetime import date, datetime
from typing import List, Dict, Union, Sequence

from analysis.calculations.timeline import grid_days
from ingestion.records import (
    ProfitRecord,
    TransactionRecord,
    TransactionStatus,
    TransactionType,
)
from reports.formatters import format_axis_date

METRICS = ('deposits', 'investments', 'profits')

# Transaction kinds that feed a metric; withdrawals and profit credits do not
TRANSACTION_METRICS = {
    TransactionType.DEPOSIT.value: 'deposits',
    TransactionType.SUBSCRIPTION.value: 'investments',
}


def daily_contributions(
    transactions: Sequence[TransactionRecord],
    profits: Sequence[ProfitRecord],
    grid: List[date]
) -> pd.DataFrame:
    """
    Per-day, per-metric contributions on the grid (not cumulative).

    Only approved transactions count, bucketed by the calendar day of
    created_at. Profit records count regardless of status.

    Returns:
        DataFrame indexed by grid day with one float column per metric
    """
    grid_set = set(grid)
    buckets = {metric: {} for metric in METRICS}

    for txn in transactions:
        if txn.status != TransactionStatus.APPROVED:
            continue
        metric = TRANSACTION_METRICS.get(getattr(txn.type, 'value', txn.type))
        day = txn.created_at.date()
        if metric is None or day not in grid_set:
            continue
        buckets[metric][day] = buckets[metric].get(day, 0.0) + float(txn.amount)

    for profit in profits:
        if profit.date not in grid_set:
            continue
        buckets['profits'][profit.date] = buckets['profits'].get(profit.date, 0.0) + float(profit.amount)

    frame = pd.DataFrame(
        {metric: pd.Series(buckets[metric], dtype=float) for metric in METRICS},
        columns=list(METRICS)
    )
    return frame.reindex(grid).fillna(0.0).astype(float)


def multi_metric_performance(
    transactions: Sequence[TransactionRecord],
    profits: Sequence[ProfitRecord],
    window_days: int = 30,
    *,
    as_of: Union[date, datetime]
) -> List[Dict[str, Union[str, float]]]:
    """
    Three cumulative running totals advanced together over a fixed grid.

    Args:
        transactions: Transactions for one scope (any status, any order)
        profits: Profit records for the same scope
        window_days: Grid length in days
        as_of: Reference day, last day of the grid

    Returns:
        Exactly window_days entries, oldest first:
        {'date', 'label', 'deposits', 'investments', 'profits'}

    Example:
        one approved deposit of 100 today, window_days=7 ->
        last entry deposits=100.0, all earlier entries deposits=0.0
    """
    grid = grid_days(as_of, window_days)
    cumulative = daily_contributions(transactions, profits, grid).cumsum()

    points = []
    for day, row in zip(grid, cumulative.itertuples(index=False)):
        points.append({
            'date': format_axis_date(day),
            'label': day.isoformat(),
            'deposits': float(row.deposits),
            'investments': float(row.investments),
            'profits': float(row.profits),
        })

    return points
