#!/usr/bin/env python3
"""
Main CLI for the investment dashboard chart engine.
Usage:
    python cli.py import SNAPSHOT.json
    python cli.py client USER_ID
    python cli.py admin
"""

import sys
import sqlite3
import logging
import argparse
from datetime import date, datetime, time
from pathlib import Path
from typing import Optional

from analysis.dashboard_config import load_dashboard_config, ConfigError, DashboardConfig
from analysis.dashboard_job import (
    build_client_dashboard,
    build_admin_stats,
    batch_build_client_dashboards,
    import_snapshot,
    DashboardJobError,
)
from reports.formatters import format_currency, format_date_display
from storage.loaders import get_connection, init_database, StorageError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Build chart-ready dashboard JSON from platform records',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py import ./exports/backend.json
  python cli.py client 7f9c2e4a --as-of 2025-08-07
  python cli.py client --all
  python cli.py admin --output ./data/processed/admin.json
        """
    )
    parser.add_argument('--config', help='Path to dashboard YAML config')
    parser.add_argument('--db-path', help='Path to SQLite snapshot (overrides config)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log progress details')
    parser.add_argument('--quiet', '-q', action='store_true', help='Minimal output (just success/failure)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    import_parser = subparsers.add_parser('import', help='Load a backend JSON export into the snapshot')
    import_parser.add_argument('snapshot', type=Path, help='JSON file mapping table names to rows')

    client_parser = subparsers.add_parser('client', help='Build a client dashboard')
    client_parser.add_argument('user_id', nargs='?', help='Profile id')
    client_parser.add_argument('--all', action='store_true', help='Build dashboards for every profile')
    client_parser.add_argument('--as-of', type=date.fromisoformat,
                               help='Reference day (YYYY-MM-DD, default: now)')
    client_parser.add_argument('--output', type=Path,
                               help='Output JSON path (default: {output_dir}/{USER_ID}.json)')

    admin_parser = subparsers.add_parser('admin', help='Build platform statistics')
    admin_parser.add_argument('--output', type=Path,
                              help='Output JSON path (default: {output_dir}/admin.json)')

    return parser


def _reference_time(as_of: Optional[date]) -> datetime:
    # End of the requested day so every record dated that day is inside the windows
    if as_of is None:
        return datetime.now()
    return datetime.combine(as_of, time(23, 59, 59))


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    try:
        config = load_dashboard_config(args.config)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    db_path = args.db_path or config.db_path

    if args.command == 'import':
        return _run_import(args, db_path)

    if not Path(db_path).exists():
        print(f"ERROR: Database not found: {db_path}", file=sys.stderr)
        print("Import a backend export first: python cli.py import SNAPSHOT.json", file=sys.stderr)
        return 1

    if args.command == 'client':
        return _run_client(args, db_path, config)

    return _run_admin(args, db_path, config)


def _run_import(args, db_path: str) -> int:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    try:
        init_database(conn)
        summary = import_snapshot(conn, args.snapshot)
    except (DashboardJobError, StorageError, sqlite3.Error) as e:
        print(f"ERROR: Import failed: {e}", file=sys.stderr)
        return 1
    finally:
        conn.close()

    if not args.quiet:
        print(f"Imported {args.snapshot} into {db_path}")
        for table, counts in summary.items():
            print(f"   {table}: {counts['inserted']} inserted, {counts['updated']} updated")
    return 0


def _run_client(args, db_path: str, config: DashboardConfig) -> int:
    if not args.all and not args.user_id:
        print("ERROR: Provide a USER_ID or --all", file=sys.stderr)
        return 1

    now = _reference_time(args.as_of)
    conn = get_connection(db_path)
    try:
        if args.all:
            output_dir = args.output or config.output_path
            batch = batch_build_client_dashboards(conn, output_dir, now=now, config=config)
            if not args.quiet:
                print(f"Built {batch['completed']}/{batch['total_users']} dashboards in {output_dir}")
            for result in batch['results']:
                if result['status'] == 'failed':
                    print(f"ERROR: {result['user_id']}: {result['error_message']}", file=sys.stderr)
            return 0 if batch['failed'] == 0 else 1

        output_path = args.output or config.output_path / f'{args.user_id}.json'
        result = build_client_dashboard(conn, args.user_id, output_path, now=now, config=config)
    finally:
        conn.close()

    if result['status'] != 'completed':
        print(f"ERROR: Dashboard failed for {args.user_id}: {result['error_message']}", file=sys.stderr)
        return 1

    if args.quiet:
        print(f"{args.user_id} dashboard complete: {result['output_path']}")
    else:
        print(f"Dashboard for {args.user_id} as of {format_date_display(now)}")
        print(f"   Profit records: {result['profit_records']}")
        print(f"   Transactions: {result['transaction_records']}")
        print(f"   Subscriptions: {result['subscription_records']}")
        print(f"   Saved to: {result['output_path']}")
    return 0


def _run_admin(args, db_path: str, config: DashboardConfig) -> int:
    output_path = args.output or config.output_path / 'admin.json'
    conn = get_connection(db_path)
    try:
        result = build_admin_stats(conn, output_path)
    finally:
        conn.close()

    if result['status'] != 'completed':
        print(f"ERROR: Admin stats failed: {result['error_message']}", file=sys.stderr)
        return 1

    if not args.quiet:
        stats = result['stats']
        print("Platform statistics")
        print(f"   Users: {stats['total_users']}")
        print(f"   Pending transactions: {stats['pending_transactions']}")
        print(f"   Approved deposits: {format_currency(stats['total_deposits'])}")
        print(f"   Approved withdrawals: {format_currency(stats['total_withdrawals'])}")
        print(f"   Active subscriptions: {stats['active_subscriptions']}")
        by_status = stats['transactions_by_status']
        print("   Transactions: " + ', '.join(
            f"{status} {group['count']}" for status, group in by_status.items()
        ))
        print("Newest users:")
        for user in stats['users'][:5]:
            print(f"   {user['full_name']} <{user['email']}>: balance {user['balance_display']}")
    print(f"Saved to: {result['output_path']}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
