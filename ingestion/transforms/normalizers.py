"""
Normalizers for transforming backend rows to typed records.
Pure functions - no IO, network, or side effects.
Minimal normalization - only when necessary.
"""

import logging
from datetime import date, datetime
from typing import Dict, Any, List, Optional, Callable, TypeVar

from dateutil import parser as date_parser
from dateutil import tz

from ingestion.records import (
    ProfitRecord,
    TransactionRecord,
    SubscriptionRecord,
    PlanSummary,
    ProfileRecord,
    TransactionType,
    TransactionStatus,
    SubscriptionStatus,
)
from ingestion.transforms.validators import (
    ValidationError,
    validate_profit_row,
    validate_transaction_row,
    validate_subscription_row,
    validate_profile_row,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _as_utc(value: datetime) -> datetime:
    # Naive backend timestamps are UTC; mixing naive and aware values breaks ordering
    if value.tzinfo is None:
        return value.replace(tzinfo=tz.UTC)
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a backend timestamp into a timezone-aware datetime.

    The backend returns ISO strings such as "2025-08-01T10:15:00.123456+00:00";
    values without an offset (and plain dates, as midnight) are taken as UTC.
    Unparseable input is returned unchanged so validation can report it.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=tz.UTC)
    if isinstance(value, str):
        try:
            return _as_utc(date_parser.isoparse(value))
        except ValueError:
            return value
    return value


def parse_day(value: Any) -> Any:
    """
    Parse a backend calendar day ("YYYY-MM-DD" or a full timestamp) into a date.
    Unparseable input is returned unchanged so validation can report it.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        if 'T' in value or ' ' in value.strip():
            parsed = parse_timestamp(value)
            return parsed.date() if isinstance(parsed, datetime) else value
        try:
            return date.fromisoformat(value)
        except ValueError:
            return value
    return value


def _to_number(value: Any) -> Any:
    # Numeric columns arrive as strings when the backend column is NUMERIC
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return value
    return value


def _normalize_rows(
    raw_rows: List[Dict[str, Any]],
    canonicalize: Callable[[Dict[str, Any]], Dict[str, Any]],
    validate: Callable[[Dict[str, Any]], None],
    build: Callable[[Dict[str, Any]], T],
    kind: str,
    strict: bool
) -> List[T]:
    if not raw_rows:
        return []

    records: List[T] = []
    skipped = 0

    for raw in raw_rows:
        canonical = canonicalize(raw)
        try:
            validate(canonical)
        except ValidationError as e:
            if strict:
                raise
            skipped += 1
            logger.warning(f"Skipping invalid {kind} row {raw.get('id')!r}: {e}")
            continue
        records.append(build(canonical))

    if skipped:
        logger.info(f"Normalized {len(records)} {kind} rows, skipped {skipped}")

    return records


def _canonical_profit(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'id': raw.get('id'),
        'user_id': raw.get('user_id'),
        'subscription_id': raw.get('subscription_id'),
        'date': parse_day(raw.get('date')),
        'amount': _to_number(raw.get('amount')),
        'percentage': _to_number(raw.get('percentage', 0.0)),
        'created_at': parse_timestamp(raw.get('created_at')),
    }


def _canonical_transaction(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'id': raw.get('id'),
        'user_id': raw.get('user_id'),
        'type': raw.get('type'),
        'amount': _to_number(raw.get('amount')),
        'status': raw.get('status', TransactionStatus.PENDING.value),
        'created_at': parse_timestamp(raw.get('created_at')),
        'processed_at': parse_timestamp(raw.get('processed_at')),
        'payment_method': raw.get('payment_method'),
        'notes': raw.get('notes'),
        'admin_notes': raw.get('admin_notes'),
    }


def _canonical_subscription(raw: Dict[str, Any]) -> Dict[str, Any]:
    # The backend embeds the joined plan under the table name
    plan = raw.get('trading_plans') or raw.get('plan')
    return {
        'id': raw.get('id'),
        'user_id': raw.get('user_id'),
        'plan_id': raw.get('plan_id'),
        'amount': _to_number(raw.get('amount')),
        'total_earned': _to_number(raw.get('total_earned', 0.0)),
        'status': raw.get('status', SubscriptionStatus.ACTIVE.value),
        'start_date': parse_day(raw.get('start_date')),
        'end_date': parse_day(raw.get('end_date')),
        'plan': plan,
    }


def _canonical_profile(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'id': raw.get('id'),
        'full_name': raw.get('full_name'),
        'email': raw.get('email'),
        'balance': _to_number(raw.get('balance', 0.0)),
        'total_invested': _to_number(raw.get('total_invested', 0.0)),
        'total_profit': _to_number(raw.get('total_profit', 0.0)),
        'created_at': parse_timestamp(raw.get('created_at')),
    }


def _build_subscription(row: Dict[str, Any]) -> SubscriptionRecord:
    plan = row['plan']
    summary = None
    if plan is not None:
        summary = PlanSummary(
            id=str(plan.get('id') or row['plan_id']),
            name=plan['name'],
            tier=str(plan.get('tier') or 'bronze'),
        )
    return SubscriptionRecord(
        id=row['id'],
        user_id=row['user_id'],
        plan_id=row['plan_id'],
        amount=row['amount'],
        total_earned=row['total_earned'],
        status=SubscriptionStatus(row['status']),
        start_date=row['start_date'],
        end_date=row['end_date'],
        plan=summary,
    )


def _build_transaction(row: Dict[str, Any]) -> TransactionRecord:
    return TransactionRecord(
        **{
            **row,
            'type': TransactionType(row['type']),
            'status': TransactionStatus(row['status']),
        }
    )


def normalize_profits(raw_rows: List[Dict[str, Any]], *, strict: bool = False) -> List[ProfitRecord]:
    """
    Transform backend daily_profits rows into ProfitRecord objects.

    Args:
        raw_rows: Rows as returned by the backend query
        strict: Raise on the first invalid row instead of skipping it

    Returns:
        List of ProfitRecord in input order
    """
    return _normalize_rows(
        raw_rows, _canonical_profit, validate_profit_row,
        lambda row: ProfitRecord(**row), 'profit', strict
    )


def normalize_transactions(
    raw_rows: List[Dict[str, Any]],
    *,
    strict: bool = False
) -> List[TransactionRecord]:
    """
    Transform backend transactions rows into TransactionRecord objects.

    Args:
        raw_rows: Rows as returned by the backend query
        strict: Raise on the first invalid row instead of skipping it

    Returns:
        List of TransactionRecord in input order
    """
    return _normalize_rows(
        raw_rows, _canonical_transaction, validate_transaction_row,
        _build_transaction, 'transaction', strict
    )


def normalize_subscriptions(
    raw_rows: List[Dict[str, Any]],
    *,
    strict: bool = False
) -> List[SubscriptionRecord]:
    """
    Transform backend subscriptions rows (optionally with an embedded
    trading_plans object) into SubscriptionRecord objects.
    """
    return _normalize_rows(
        raw_rows, _canonical_subscription, validate_subscription_row,
        _build_subscription, 'subscription', strict
    )


def normalize_profile(raw: Optional[Dict[str, Any]]) -> Optional[ProfileRecord]:
    """
    Transform a backend profiles row into a ProfileRecord.

    Raises:
        ValidationError: If the row is malformed
    """
    if raw is None:
        return None

    canonical = _canonical_profile(raw)
    validate_profile_row(canonical)
    return ProfileRecord(**canonical)


def normalize_profiles(raw_rows: List[Dict[str, Any]], *, strict: bool = False) -> List[ProfileRecord]:
    """
    Transform backend profiles rows into ProfileRecord objects, skipping
    invalid rows unless strict.
    """
    return _normalize_rows(
        raw_rows, _canonical_profile, validate_profile_row,
        lambda row: ProfileRecord(**row), 'profile', strict
    )
