"""
Platform statistics utilities.
Pure functions behind the admin overview and the dashboard reference lines.
"""

import numpy as np
from typing import Dict, List, Sequence, Union

from ingestion.records import (
    ProfileRecord,
    SubscriptionRecord,
    SubscriptionStatus,
    TransactionRecord,
    TransactionStatus,
    TransactionType,
)


def calculate_average(values: Sequence[float]) -> float:
    """
    Arithmetic mean of values; 0.0 for an empty sequence.
    """
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def summarize_transactions(
    transactions: Sequence[TransactionRecord]
) -> Dict[str, Union[int, float]]:
    """
    Count pending requests and total approved money movements.

    Args:
        transactions: Transactions across the platform

    Returns:
        Dictionary with pending_transactions, total_deposits, total_withdrawals
    """
    pending = 0
    total_deposits = 0.0
    total_withdrawals = 0.0

    for txn in transactions:
        if txn.status == TransactionStatus.PENDING:
            pending += 1
        elif txn.status == TransactionStatus.APPROVED:
            if txn.type == TransactionType.DEPOSIT:
                total_deposits += float(txn.amount)
            elif txn.type == TransactionType.WITHDRAWAL:
                total_withdrawals += float(txn.amount)

    return {
        'pending_transactions': pending,
        'total_deposits': total_deposits,
        'total_withdrawals': total_withdrawals,
    }


def count_active_subscriptions(subscriptions: Sequence[SubscriptionRecord]) -> int:
    """Number of subscriptions still earning (status active)."""
    return sum(1 for s in subscriptions if s.status == SubscriptionStatus.ACTIVE)


def recent_transactions(
    transactions: Sequence[TransactionRecord],
    limit: int = 5
) -> List[TransactionRecord]:
    """
    Newest transactions first, at most limit of them.
    Equal timestamps keep their input order.
    """
    if limit <= 0:
        return []
    ordered = sorted(transactions, key=lambda t: t.created_at, reverse=True)
    return ordered[:limit]


def transactions_by_status(
    transactions: Sequence[TransactionRecord]
) -> Dict[str, List[TransactionRecord]]:
    """
    Split transactions into pending, approved and rejected lists, each
    newest first. Every status key is present, empty lists included.
    """
    grouped: Dict[str, List[TransactionRecord]] = {status.value: [] for status in TransactionStatus}
    for txn in recent_transactions(transactions, limit=len(transactions)):
        grouped[getattr(txn.status, 'value', txn.status)].append(txn)
    return grouped


def newest_profiles(profiles: Sequence[ProfileRecord]) -> List[ProfileRecord]:
    """
    Profiles by signup time, newest first; profiles without created_at last.
    """
    dated = [p for p in profiles if p.created_at is not None]
    undated = [p for p in profiles if p.created_at is None]
    return sorted(dated, key=lambda p: p.created_at, reverse=True) + undated
