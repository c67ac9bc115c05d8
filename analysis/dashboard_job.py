"""
Orchestrated dashboard job - SQLite snapshot to DashboardJSON pipeline.
Queries the store, normalizes records, calls pure functions, persists JSON.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional, List

from analysis.dashboard_config import DashboardConfig
from analysis.metrics_aggregator import (
    compose_client_dashboard,
    compose_admin_stats,
    MetricsAggregatorError,
)
from analysis.calculations.timeline import ChartDataError
from ingestion.transforms.normalizers import (
    normalize_profits,
    normalize_transactions,
    normalize_subscriptions,
    normalize_profile,
    normalize_profiles,
)
from ingestion.transforms.validators import ValidationError
from reports.atomic_writer import write_json_atomic
from storage.loaders import (
    StorageError,
    TABLE_COLUMNS,
    count_rows,
    fetch_one,
    fetch_rows,
    fetch_subscriptions_with_plans,
    upsert_rows,
)

logger = logging.getLogger(__name__)

# Parents before children so plan lookups resolve
IMPORT_ORDER = ('profiles', 'trading_plans', 'subscriptions', 'transactions', 'daily_profits')

JOB_ERRORS = (
    StorageError,
    ValidationError,
    MetricsAggregatorError,
    ChartDataError,
    sqlite3.Error,
    OSError,
)


class DashboardJobError(Exception):
    """Raised when a dashboard job cannot run."""
    pass


def build_client_dashboard(
    conn: sqlite3.Connection,
    user_id: str,
    output_path: Path,
    now: Optional[datetime] = None,
    config: Optional[DashboardConfig] = None
) -> Dict[str, Any]:
    """
    Build the client dashboard for one user and save it to JSON.

    Args:
        conn: SQLite connection to the platform snapshot
        user_id: Profile id
        output_path: Path to save DashboardJSON
        now: Reference time (defaults to current time)
        config: Window settings (defaults when omitted)

    Returns:
        Dictionary with job results ('status' is 'completed' or 'failed')
    """
    if now is None:
        now = datetime.now()
    if config is None:
        config = DashboardConfig()

    start_time = datetime.now()

    try:
        profile_row = fetch_one(conn, 'profiles', user_id)
        if profile_row is None:
            return _failed({'user_id': user_id}, f'No profile found for user {user_id}', start_time)

        profile = normalize_profile(profile_row)
        profits = normalize_profits(
            fetch_rows(conn, 'daily_profits', {'user_id': user_id}, order_by='date')
        )
        transactions = normalize_transactions(
            fetch_rows(conn, 'transactions', {'user_id': user_id}, order_by='created_at', descending=True)
        )
        subscriptions = normalize_subscriptions(fetch_subscriptions_with_plans(conn, user_id=user_id))

        dashboard = compose_client_dashboard(
            user_id=user_id,
            profile=profile,
            profits=profits,
            transactions=transactions,
            subscriptions=subscriptions,
            now=now,
            config=config,
        )

        write_result = write_json_atomic(dashboard, Path(output_path))
        if write_result['status'] != 'completed':
            return _failed({'user_id': user_id}, write_result['error'], start_time)

        logger.info(f"Dashboard for {user_id} written to {output_path}")

        return {
            'user_id': user_id,
            'status': 'completed',
            'output_path': str(output_path),
            'profit_records': len(profits),
            'transaction_records': len(transactions),
            'subscription_records': len(subscriptions),
            'duration_seconds': (datetime.now() - start_time).total_seconds()
        }

    except JOB_ERRORS as e:
        logger.error(f"Dashboard build failed for {user_id}: {e}")
        return _failed({'user_id': user_id}, str(e), start_time)


def build_admin_stats(
    conn: sqlite3.Connection,
    output_path: Path,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Build platform-wide admin statistics and save them to JSON.

    Returns:
        Dictionary with job results and the computed stats under 'stats'
    """
    if now is None:
        now = datetime.now()

    start_time = datetime.now()

    try:
        total_users = count_rows(conn, 'profiles')
        profiles = normalize_profiles(
            fetch_rows(conn, 'profiles', order_by='created_at', descending=True)
        )
        transactions = normalize_transactions(
            fetch_rows(conn, 'transactions', order_by='created_at', descending=True)
        )
        subscriptions = normalize_subscriptions(fetch_subscriptions_with_plans(conn))

        stats = compose_admin_stats(total_users, profiles, transactions, subscriptions, now)

        write_result = write_json_atomic(stats, Path(output_path))
        if write_result['status'] != 'completed':
            return _failed({}, write_result['error'], start_time)

        logger.info(f"Admin stats written to {output_path}")

        return {
            'status': 'completed',
            'output_path': str(output_path),
            'stats': stats,
            'duration_seconds': (datetime.now() - start_time).total_seconds()
        }

    except JOB_ERRORS as e:
        logger.error(f"Admin stats build failed: {e}")
        return _failed({}, str(e), start_time)


def batch_build_client_dashboards(
    conn: sqlite3.Connection,
    output_dir: Path,
    now: Optional[datetime] = None,
    config: Optional[DashboardConfig] = None
) -> Dict[str, Any]:
    """
    Build dashboards for every profile in the store.

    Returns:
        Summary of batch results
    """
    if now is None:
        now = datetime.now()

    output_dir = Path(output_dir)
    start_time = datetime.now()

    user_ids = [row['id'] for row in fetch_rows(conn, 'profiles', order_by='id')]
    results = [
        build_client_dashboard(conn, user_id, output_dir / f'{user_id}.json', now=now, config=config)
        for user_id in user_ids
    ]

    completed = [r for r in results if r['status'] == 'completed']
    failed = [r for r in results if r['status'] == 'failed']

    return {
        'total_users': len(user_ids),
        'completed': len(completed),
        'failed': len(failed),
        'duration_seconds': (datetime.now() - start_time).total_seconds(),
        'results': results
    }


def import_snapshot(conn: sqlite3.Connection, snapshot_path: Path) -> Dict[str, Dict[str, int]]:
    """
    Load a backend export ({table: [rows]}) into the store.

    Args:
        conn: SQLite connection (tables must exist)
        snapshot_path: JSON file exported from the hosted backend

    Returns:
        Per-table {'inserted': n, 'updated': n}

    Raises:
        DashboardJobError: If the file is unreadable or not a table mapping
        StorageError: If a row cannot be stored
    """
    snapshot_path = Path(snapshot_path)
    try:
        with open(snapshot_path, 'r', encoding='utf-8') as f:
            snapshot = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DashboardJobError(f"Cannot read snapshot {snapshot_path}: {e}")

    if not isinstance(snapshot, dict):
        raise DashboardJobError("Snapshot must be an object mapping table names to rows")

    unknown = sorted(set(snapshot) - set(TABLE_COLUMNS))
    if unknown:
        logger.warning(f"Ignoring unknown tables in snapshot: {unknown}")

    summary: Dict[str, Dict[str, int]] = {}
    for table in IMPORT_ORDER:
        rows: List[Dict[str, Any]] = snapshot.get(table) or []
        if not isinstance(rows, list):
            raise DashboardJobError(f"Snapshot table {table} must be a list of rows")
        inserted, updated = upsert_rows(conn, table, rows)
        summary[table] = {'inserted': inserted, 'updated': updated}

    return summary


def _failed(base: Dict[str, Any], message: str, start_time: datetime) -> Dict[str, Any]:
    return {
        **base,
        'status': 'failed',
        'error_message': message,
        'output_path': None,
        'duration_seconds': (datetime.now() - start_time).total_seconds()
    }
