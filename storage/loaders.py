"""
Database loaders - local SQLite snapshot of the hosted platform backend.
Thin IO layer exposing the generic query interface: fetch-by-filter,
idempotent upsert, and update-by-id.
"""

import json
import logging
import sqlite3
from typing import Dict, Any, List, Tuple, Optional

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a storage operation is invalid or fails."""
    pass


# Column whitelist per table; every query is checked against it
TABLE_COLUMNS: Dict[str, Tuple[str, ...]] = {
    'profiles': (
        'id', 'full_name', 'email', 'phone', 'balance', 'total_invested',
        'total_profit', 'created_at', 'updated_at'
    ),
    'trading_plans': (
        'id', 'name', 'tier', 'amount', 'daily_return_min', 'daily_return_max',
        'duration_days', 'is_active', 'created_at', 'updated_at'
    ),
    'subscriptions': (
        'id', 'user_id', 'plan_id', 'amount', 'total_earned', 'status',
        'start_date', 'end_date', 'created_at'
    ),
    'transactions': (
        'id', 'user_id', 'type', 'amount', 'status', 'payment_method',
        'payment_details', 'notes', 'admin_notes', 'processed_at',
        'processed_by', 'created_at'
    ),
    'daily_profits': (
        'id', 'user_id', 'subscription_id', 'date', 'amount', 'percentage',
        'created_at'
    ),
}

# Columns holding JSON documents, stored as TEXT
JSON_COLUMNS = {'payment_details'}


def init_database(conn: sqlite3.Connection) -> None:
    """
    Initialize database with required tables.
    Idempotent - safe to call multiple times.

    Args:
        conn: SQLite connection
    """
    conn.execute("PRAGMA foreign_keys = ON")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            id TEXT PRIMARY KEY,
            full_name TEXT,
            email TEXT,
            phone TEXT,
            balance REAL NOT NULL DEFAULT 0,
            total_invested REAL NOT NULL DEFAULT 0,
            total_profit REAL NOT NULL DEFAULT 0,
            created_at TEXT,
            updated_at TEXT
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS trading_plans (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            tier TEXT NOT NULL,
            amount REAL,
            daily_return_min REAL,
            daily_return_max REAL,
            duration_days INTEGER,
            is_active INTEGER DEFAULT 1,
            created_at TEXT,
            updated_at TEXT
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS subscriptions (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            plan_id TEXT NOT NULL,
            amount REAL NOT NULL,
            total_earned REAL NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'active'
                CHECK(status IN ('active', 'completed', 'cancelled')),
            start_date TEXT,
            end_date TEXT,
            created_at TEXT
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            type TEXT NOT NULL,
            amount REAL NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK(status IN ('pending', 'approved', 'rejected')),
            payment_method TEXT,
            payment_details TEXT,
            notes TEXT,
            admin_notes TEXT,
            processed_at TEXT,
            processed_by TEXT,
            created_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS daily_profits (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            subscription_id TEXT NOT NULL,
            date TEXT NOT NULL,
            amount REAL NOT NULL,
            percentage REAL NOT NULL DEFAULT 0,
            created_at TEXT
        )
    """)

    conn.execute("CREATE INDEX IF NOT EXISTS idx_subscriptions_user ON subscriptions(user_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_transactions_user ON transactions(user_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_transactions_status ON transactions(status)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_profits_user ON daily_profits(user_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_profits_date ON daily_profits(date)")

    conn.commit()


def get_connection(db_path: str = './data/platform.db') -> sqlite3.Connection:
    """
    Get SQLite connection with proper configuration.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Configured SQLite connection returning sqlite3.Row rows
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


def _check_table(table: str) -> Tuple[str, ...]:
    if table not in TABLE_COLUMNS:
        raise StorageError(f"Unknown table: {table}")
    return TABLE_COLUMNS[table]


def _check_columns(table: str, columns) -> None:
    allowed = _check_table(table)
    unknown = [c for c in columns if c not in allowed]
    if unknown:
        raise StorageError(f"Unknown columns for {table}: {unknown}")


def _encode(column: str, value: Any) -> Any:
    if column in JSON_COLUMNS and value is not None and not isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, bool):
        return int(value)
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return value


def _decode_row(row) -> Dict[str, Any]:
    record = dict(row)
    for column in JSON_COLUMNS:
        if record.get(column):
            record[column] = json.loads(record[column])
    return record


def upsert_rows(conn: sqlite3.Connection, table: str, rows: List[Dict[str, Any]]) -> Tuple[int, int]:
    """
    Upsert rows into a table keyed by id.
    Idempotent - can be called multiple times with same data.

    Args:
        conn: SQLite connection
        table: Target table name
        rows: Backend-shaped row dictionaries (unknown keys are ignored)

    Returns:
        Tuple of (inserted_count, updated_count)

    Raises:
        StorageError: If the table is unknown, a row is not a mapping with an
            id, or SQLite rejects a row (nothing from the call is kept)
    """
    allowed = _check_table(table)
    if not rows:
        return (0, 0)

    inserted = 0
    updated = 0

    try:
        for row in rows:
            if not isinstance(row, dict):
                raise StorageError(f"Row for {table} must be an object, got {type(row).__name__}")
            if not row.get('id'):
                raise StorageError(f"Row for {table} is missing id")

            values = {c: _encode(c, row[c]) for c in allowed if c in row}
            cursor = conn.execute(f"SELECT COUNT(*) FROM {table} WHERE id = ?", (values['id'],))
            exists = cursor.fetchone()[0] > 0

            if exists:
                assignments = ', '.join(f"{c} = ?" for c in values if c != 'id')
                if assignments:
                    params = [v for c, v in values.items() if c != 'id'] + [values['id']]
                    conn.execute(f"UPDATE {table} SET {assignments} WHERE id = ?", params)
                updated += 1
            else:
                columns = ', '.join(values)
                placeholders = ', '.join('?' for _ in values)
                conn.execute(
                    f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                    list(values.values())
                )
                inserted += 1
    except StorageError:
        conn.rollback()
        raise
    except sqlite3.Error as e:
        conn.rollback()
        raise StorageError(f"Cannot store {table} row {row.get('id')!r}: {e}") from e

    conn.commit()
    logger.info(f"Upserted {table}: {inserted} inserted, {updated} updated")
    return (inserted, updated)


def fetch_rows(
    conn: sqlite3.Connection,
    table: str,
    filters: Optional[Dict[str, Any]] = None,
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Fetch rows matching equality filters.

    Args:
        conn: SQLite connection
        table: Table name
        filters: Column -> value equality filters, combined with AND
        order_by: Optional column to sort by
        descending: Sort direction
        limit: Optional maximum number of rows

    Returns:
        List of row dictionaries (JSON columns decoded)
    """
    filters = filters or {}
    _check_columns(table, filters.keys())
    if order_by is not None:
        _check_columns(table, [order_by])

    query = f"SELECT * FROM {table}"
    params: List[Any] = []

    if filters:
        query += " WHERE " + " AND ".join(f"{c} = ?" for c in filters)
        params.extend(_encode(c, v) for c, v in filters.items())

    if order_by is not None:
        query += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"

    if limit is not None:
        query += " LIMIT ?"
        params.append(int(limit))

    conn.row_factory = sqlite3.Row
    cursor = conn.execute(query, params)
    return [_decode_row(row) for row in cursor.fetchall()]


def fetch_one(conn: sqlite3.Connection, table: str, row_id: str) -> Optional[Dict[str, Any]]:
    """Fetch a single row by id, or None."""
    rows = fetch_rows(conn, table, {'id': row_id}, limit=1)
    return rows[0] if rows else None


def update_by_id(
    conn: sqlite3.Connection,
    table: str,
    row_id: str,
    values: Dict[str, Any]
) -> bool:
    """
    Update columns of one row.

    Returns:
        True if a row was updated, False if no row has that id
    """
    if not values:
        raise StorageError("No values to update")
    if 'id' in values:
        raise StorageError("id cannot be updated")
    _check_columns(table, values.keys())

    assignments = ', '.join(f"{c} = ?" for c in values)
    params = [_encode(c, v) for c, v in values.items()] + [row_id]
    cursor = conn.execute(f"UPDATE {table} SET {assignments} WHERE id = ?", params)
    conn.commit()
    return cursor.rowcount > 0


def count_rows(conn: sqlite3.Connection, table: str, filters: Optional[Dict[str, Any]] = None) -> int:
    """Count rows matching equality filters."""
    filters = filters or {}
    _check_columns(table, filters.keys())

    query = f"SELECT COUNT(*) FROM {table}"
    if filters:
        query += " WHERE " + " AND ".join(f"{c} = ?" for c in filters)

    cursor = conn.execute(query, [_encode(c, v) for c, v in filters.items()])
    return cursor.fetchone()[0]


def fetch_subscriptions_with_plans(
    conn: sqlite3.Connection,
    user_id: Optional[str] = None,
    status: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Fetch subscriptions with their plan embedded under 'trading_plans',
    newest first.

    Args:
        conn: SQLite connection
        user_id: Restrict to one user
        status: Restrict to one subscription status

    Returns:
        List of subscription dictionaries; 'trading_plans' is None when the
        plan row is missing
    """
    filters: Dict[str, Any] = {}
    if user_id is not None:
        filters['user_id'] = user_id
    if status is not None:
        filters['status'] = status

    subscriptions = fetch_rows(conn, 'subscriptions', filters, order_by='created_at', descending=True)

    plan_ids = sorted({s['plan_id'] for s in subscriptions})
    plans: Dict[str, Dict[str, Any]] = {}
    for plan_id in plan_ids:
        plan = fetch_one(conn, 'trading_plans', plan_id)
        if plan is not None:
            plans[plan_id] = plan

    for subscription in subscriptions:
        subscription['trading_plans'] = plans.get(subscription['plan_id'])

    return subscriptions
