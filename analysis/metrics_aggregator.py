"""
Metrics aggregator - composes all chart calculations into DashboardJSON.
Pure functions: the reference time is passed in, nothing is read or written.
"""

from datetime import datetime
from typing import Dict, Any, Optional, Sequence

from analysis.calculations.profit_series import cumulative_profit_series, fixed_grid_daily_returns
from analysis.calculations.performance import multi_metric_performance
from analysis.calculations.distribution import portfolio_distribution
from analysis.calculations.platform_stats import (
    calculate_average,
    summarize_transactions,
    count_active_subscriptions,
    recent_transactions,
    transactions_by_status,
    newest_profiles,
)
from analysis.dashboard_config import DashboardConfig
from ingestion.records import (
    ProfileRecord,
    ProfitRecord,
    SubscriptionRecord,
    SubscriptionStatus,
    TransactionRecord,
)
from reports.formatters import format_currency, format_percentage

CALCULATION_VERSION = '1.0.0'


class MetricsAggregatorError(Exception):
    """Raised when metrics aggregation fails."""
    pass


def compose_client_dashboard(
    user_id: str,
    profile: Optional[ProfileRecord],
    profits: Sequence[ProfitRecord],
    transactions: Sequence[TransactionRecord],
    subscriptions: Sequence[SubscriptionRecord],
    now: datetime,
    config: Optional[DashboardConfig] = None
) -> Dict[str, Any]:
    """
    Compose every client dashboard chart into one JSON-ready dictionary.

    Args:
        user_id: Owner of the records
        profile: Balance figures (None renders zeros)
        profits: The user's daily profit records
        transactions: All of the user's transactions
        subscriptions: All of the user's subscriptions; charts use active ones
        now: Reference time for every window
        config: Window sizes (defaults when omitted)

    Returns:
        Complete DashboardJSON dictionary

    Raises:
        MetricsAggregatorError: If records belong to another user
    """
    if config is None:
        config = DashboardConfig()

    _check_scope(user_id, profits, transactions, subscriptions)

    active = [s for s in subscriptions if s.status == SubscriptionStatus.ACTIVE]

    return {
        'user_id': user_id,
        'as_of_date': now.date().isoformat(),
        'summary': _summary(profile),
        'profit_history': _profit_history(profits, now, config.profit_history_days),
        'daily_returns': _daily_returns(profits, now, config.daily_returns_days),
        'portfolio_distribution': _distribution(active),
        'performance': _performance(transactions, profits, now, config.performance_days),
        'active_subscriptions': [_subscription_entry(s) for s in active],
        'recent_transactions': [
            _transaction_entry(t)
            for t in recent_transactions(transactions, config.recent_transactions_limit)
        ],
        'metadata': {
            'calculated_at': now.isoformat(),
            'calculation_version': CALCULATION_VERSION,
        },
    }


def compose_admin_stats(
    total_users: int,
    profiles: Sequence[ProfileRecord],
    transactions: Sequence[TransactionRecord],
    subscriptions: Sequence[SubscriptionRecord],
    now: datetime
) -> Dict[str, Any]:
    """
    Compose the admin overview: user count, pending requests, approved
    deposit and withdrawal totals, and active subscription count, plus the
    user list (newest signup first) and transactions grouped by status with
    each row's owner attached.
    """
    stats = summarize_transactions(transactions)
    owners = {p.id: p for p in profiles}

    return {
        'as_of_date': now.date().isoformat(),
        'total_users': int(total_users),
        'pending_transactions': stats['pending_transactions'],
        'total_deposits': stats['total_deposits'],
        'total_deposits_display': format_currency(stats['total_deposits']),
        'total_withdrawals': stats['total_withdrawals'],
        'total_withdrawals_display': format_currency(stats['total_withdrawals']),
        'active_subscriptions': count_active_subscriptions(subscriptions),
        'users': [_user_entry(p) for p in newest_profiles(profiles)],
        'transactions_by_status': {
            status: {
                'count': len(group),
                'transactions': [_admin_transaction_entry(t, owners.get(t.user_id)) for t in group],
            }
            for status, group in transactions_by_status(transactions).items()
        },
        'metadata': {
            'calculated_at': now.isoformat(),
            'calculation_version': CALCULATION_VERSION,
        },
    }


def _check_scope(user_id, profits, transactions, subscriptions) -> None:
    for kind, records in (('profit', profits), ('transaction', transactions),
                          ('subscription', subscriptions)):
        foreign = {r.user_id for r in records if r.user_id != user_id}
        if foreign:
            raise MetricsAggregatorError(
                f"{kind} records for other users passed to dashboard of {user_id}: {sorted(foreign)}"
            )


def _summary(profile: Optional[ProfileRecord]) -> Dict[str, Any]:
    balance = profile.balance if profile else 0.0
    total_invested = profile.total_invested if profile else 0.0
    total_profit = profile.total_profit if profile else 0.0

    return {
        'balance': balance,
        'balance_display': format_currency(balance),
        'total_invested': total_invested,
        'total_invested_display': format_currency(total_invested),
        'total_profit': total_profit,
        'total_profit_display': format_currency(total_profit),
    }


def _profit_history(profits, now, window_days) -> Dict[str, Any]:
    points = cumulative_profit_series(profits, window_days, as_of=now)
    return {
        'window_days': window_days,
        'points': points,
        'is_empty': len(points) == 0,
    }


def _daily_returns(profits, now, window_days) -> Dict[str, Any]:
    points = fixed_grid_daily_returns(profits, window_days, as_of=now)
    average = calculate_average([p['value'] for p in points])
    return {
        'window_days': window_days,
        'points': points,
        'average': average,
        'average_display': format_currency(average),
        'is_empty': all(p['value'] == 0 for p in points),
    }


def _distribution(active_subscriptions) -> Dict[str, Any]:
    slices = portfolio_distribution(active_subscriptions)
    for entry in slices:
        entry['display'] = f"{format_currency(entry['value'])} ({format_percentage(entry['share'])})"

    return {
        'slices': slices,
        'total_invested': sum(entry['value'] for entry in slices),
        'is_empty': len(slices) == 0,
    }


def _performance(transactions, profits, now, window_days) -> Dict[str, Any]:
    points = multi_metric_performance(transactions, profits, window_days, as_of=now)
    has_data = any(
        p['deposits'] > 0 or p['investments'] > 0 or p['profits'] > 0
        for p in points
    )
    return {
        'window_days': window_days,
        'points': points,
        'is_empty': not has_data,
    }


def _subscription_entry(subscription: SubscriptionRecord) -> Dict[str, Any]:
    plan = subscription.plan
    return {
        'id': subscription.id,
        'plan_name': plan.name if plan else 'Unknown Plan',
        'tier': plan.tier if plan else None,
        'amount': subscription.amount,
        'amount_display': format_currency(subscription.amount),
        'total_earned': subscription.total_earned,
        'total_earned_display': format_currency(subscription.total_earned),
        'start_date': subscription.start_date.isoformat(),
        'end_date': subscription.end_date.isoformat(),
    }


def _transaction_entry(transaction: TransactionRecord) -> Dict[str, Any]:
    return {
        'id': transaction.id,
        'type': getattr(transaction.type, 'value', transaction.type),
        'status': getattr(transaction.status, 'value', transaction.status),
        'amount': transaction.amount,
        'amount_display': format_currency(transaction.amount),
        'created_at': transaction.created_at.isoformat(),
    }


def _user_entry(profile: ProfileRecord) -> Dict[str, Any]:
    return {
        'id': profile.id,
        'full_name': profile.full_name or 'Unnamed User',
        'email': profile.email,
        'balance': profile.balance,
        'balance_display': format_currency(profile.balance),
        'total_invested': profile.total_invested,
        'total_invested_display': format_currency(profile.total_invested),
        'total_profit': profile.total_profit,
        'total_profit_display': format_currency(profile.total_profit),
        'created_at': profile.created_at.isoformat() if profile.created_at else None,
    }


def _admin_transaction_entry(
    transaction: TransactionRecord,
    owner: Optional[ProfileRecord]
) -> Dict[str, Any]:
    entry = _transaction_entry(transaction)
    entry.update({
        'user_id': transaction.user_id,
        'full_name': (owner.full_name if owner else None) or 'Unknown',
        'email': owner.email if owner else None,
        'payment_method': transaction.payment_method,
        'notes': transaction.notes,
        'admin_notes': transaction.admin_notes,
        'processed_at': transaction.processed_at.isoformat() if transaction.processed_at else None,
    })
    return entry
