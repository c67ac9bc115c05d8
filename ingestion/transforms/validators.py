"""
Core validators for canonical backend rows.
Pure functions - no IO, network, or side effects.
"""

import math
from datetime import date, datetime
from typing import Dict, Any, Iterable

from ingestion.records import TransactionType, TransactionStatus, SubscriptionStatus


class ValidationError(ValueError):
    """Raised when data validation fails."""
    pass


def _check_required(row: Dict[str, Any], required_keys: Iterable[str]) -> None:
    missing = set(required_keys) - set(row.keys())
    if missing:
        raise ValidationError(f"Missing required keys: {sorted(missing)}")


def _check_string(row: Dict[str, Any], field: str) -> None:
    if not isinstance(row[field], str) or not row[field]:
        raise ValidationError(f"{field} must be non-empty string, got {row[field]!r}")


def _check_amount(row: Dict[str, Any], field: str) -> None:
    value = row[field]
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be numeric, got {type(value)}")

    if not math.isfinite(value):
        raise ValidationError(f"{field} must be finite, got {value}")

    if value < 0:
        raise ValidationError(f"{field} must be non-negative, got {value}")


def _check_calendar_date(row: Dict[str, Any], field: str) -> None:
    value = row[field]
    if isinstance(value, datetime) or not isinstance(value, date):
        raise ValidationError(f"{field} must be date, got {type(value)}")


def _check_timestamp(row: Dict[str, Any], field: str, optional: bool = False) -> None:
    value = row.get(field)
    if value is None and optional:
        return
    if not isinstance(value, datetime):
        raise ValidationError(f"{field} must be datetime, got {type(value)}")


def _check_choice(row: Dict[str, Any], field: str, enum_cls) -> None:
    allowed = {member.value for member in enum_cls}
    if row[field] not in allowed:
        raise ValidationError(f"{field} must be one of {sorted(allowed)}, got {row[field]!r}")


def validate_profit_row(row: Dict[str, Any]) -> None:
    """
    Validate a canonical daily profit row.

    Args:
        row: Dictionary containing profit data

    Raises:
        ValidationError: If validation fails
    """
    _check_required(row, ('id', 'user_id', 'subscription_id', 'date', 'amount', 'percentage'))

    for field in ('id', 'user_id', 'subscription_id'):
        _check_string(row, field)

    _check_calendar_date(row, 'date')
    _check_amount(row, 'amount')

    # Percentage is a rate and may legitimately be negative on a losing day
    percentage = row['percentage']
    if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
        raise ValidationError(f"percentage must be numeric, got {type(percentage)}")
    if not math.isfinite(percentage):
        raise ValidationError(f"percentage must be finite, got {percentage}")

    _check_timestamp(row, 'created_at', optional=True)


def validate_transaction_row(row: Dict[str, Any]) -> None:
    """
    Validate a canonical transaction row.

    Args:
        row: Dictionary containing transaction data

    Raises:
        ValidationError: If validation fails
    """
    _check_required(row, ('id', 'user_id', 'type', 'amount', 'status', 'created_at'))

    for field in ('id', 'user_id'):
        _check_string(row, field)

    _check_choice(row, 'type', TransactionType)
    _check_choice(row, 'status', TransactionStatus)
    _check_amount(row, 'amount')
    _check_timestamp(row, 'created_at')
    _check_timestamp(row, 'processed_at', optional=True)

    if row['status'] == TransactionStatus.PENDING and row.get('processed_at') is not None:
        raise ValidationError("pending transaction must not have processed_at")


def validate_subscription_row(row: Dict[str, Any]) -> None:
    """
    Validate a canonical subscription row.

    Args:
        row: Dictionary containing subscription data

    Raises:
        ValidationError: If validation fails
    """
    _check_required(row, (
        'id', 'user_id', 'plan_id', 'amount', 'total_earned',
        'status', 'start_date', 'end_date'
    ))

    for field in ('id', 'user_id', 'plan_id'):
        _check_string(row, field)

    _check_amount(row, 'amount')
    _check_amount(row, 'total_earned')
    _check_choice(row, 'status', SubscriptionStatus)
    _check_calendar_date(row, 'start_date')
    _check_calendar_date(row, 'end_date')

    if row['end_date'] < row['start_date']:
        raise ValidationError(
            f"end_date ({row['end_date']}) must be >= start_date ({row['start_date']})"
        )

    plan = row.get('plan')
    if plan is not None:
        if not isinstance(plan, dict):
            raise ValidationError(f"plan must be dict, got {type(plan)}")
        if not plan.get('name'):
            raise ValidationError("plan name must be non-empty")


def validate_profile_row(row: Dict[str, Any]) -> None:
    """
    Validate a canonical profile row.

    Raises:
        ValidationError: If validation fails
    """
    _check_required(row, ('id', 'balance', 'total_invested', 'total_profit'))
    _check_string(row, 'id')

    # Balance can go negative after an unguarded withdrawal approval
    for field in ('balance', 'total_invested', 'total_profit'):
        value = row[field]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{field} must be numeric, got {type(value)}")
        if not math.isfinite(value):
            raise ValidationError(f"{field} must be finite, got {value}")

    _check_timestamp(row, 'created_at', optional=True)
