"""
Tests for CLI entry points - main() calls in a temp workspace.
Tests actual command execution against an imported snapshot DB.
"""

import json
import subprocess
import sys
from pathlib import Path

import pytest
import yaml

from cli import main, build_parser, _reference_time
from tests.factories import SNAPSHOT_PATH, load_snapshot

REPO_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Temp workspace with a config file pointing into it."""
    for name in ('DASHBOARD_CONFIG', 'DASHBOARD_DB_PATH', 'DASHBOARD_OUTPUT_DIR'):
        monkeypatch.delenv(name, raising=False)

    config_path = tmp_path / 'dashboard.yml'
    config_path.write_text(yaml.dump({
        'db_path': str(tmp_path / 'platform.db'),
        'output_dir': str(tmp_path / 'dashboards'),
    }))
    return tmp_path


def run(workspace: Path, *args: str) -> int:
    return main(['--config', str(workspace / 'dashboard.yml'), *args])


@pytest.fixture
def imported(workspace):
    assert run(workspace, '--quiet', 'import', str(SNAPSHOT_PATH)) == 0
    return workspace


class TestImportCommand:
    """Tests for the import subcommand."""

    def test_import_creates_database(self, workspace, capsys):
        exit_code = run(workspace, 'import', str(SNAPSHOT_PATH))

        assert exit_code == 0
        assert (workspace / 'platform.db').exists()
        out = capsys.readouterr().out
        assert 'profiles: 2 inserted, 0 updated' in out

    def test_import_missing_file(self, workspace, capsys):
        exit_code = run(workspace, 'import', str(workspace / 'missing.json'))

        assert exit_code == 1
        assert 'Import failed' in capsys.readouterr().err

    def test_import_constraint_violation(self, workspace, capsys):
        """A row the schema rejects ends the import with exit code 1."""
        snapshot = load_snapshot()
        snapshot['transactions'][0]['status'] = 'completed'
        snapshot_path = workspace / 'snapshot.json'
        snapshot_path.write_text(json.dumps(snapshot))

        exit_code = run(workspace, 'import', str(snapshot_path))

        assert exit_code == 1
        err = capsys.readouterr().err
        assert 'Import failed' in err
        assert 'txn-1' in err

    def test_import_non_object_row(self, workspace, capsys):
        snapshot_path = workspace / 'snapshot.json'
        snapshot_path.write_text(json.dumps({'profiles': ['user-1']}))

        exit_code = run(workspace, 'import', str(snapshot_path))

        assert exit_code == 1
        assert 'must be an object' in capsys.readouterr().err


class TestClientCommand:
    """Tests for the client subcommand."""

    def test_single_user(self, imported, capsys):
        exit_code = run(imported, 'client', 'user-1', '--as-of', '2025-08-07')

        assert exit_code == 0
        output_path = imported / 'dashboards' / 'user-1.json'
        with open(output_path) as f:
            dashboard = json.load(f)
        assert dashboard['as_of_date'] == '2025-08-07'
        assert [p['value'] for p in dashboard['profit_history']['points']] == [15.0, 35.0]

        out = capsys.readouterr().out
        assert 'August 07, 2025' in out
        assert 'Profit records: 3' in out

    def test_explicit_output(self, imported):
        output_path = imported / 'custom' / 'out.json'

        exit_code = run(imported, 'client', 'user-1', '--as-of', '2025-08-07', '--output', str(output_path))

        assert exit_code == 0
        assert output_path.exists()

    def test_all_users(self, imported, capsys):
        exit_code = run(imported, 'client', '--all', '--as-of', '2025-08-07')

        assert exit_code == 0
        assert (imported / 'dashboards' / 'user-1.json').exists()
        assert (imported / 'dashboards' / 'user-2.json').exists()
        assert 'Built 2/2 dashboards' in capsys.readouterr().out

    def test_unknown_user(self, imported, capsys):
        exit_code = run(imported, 'client', 'ghost')

        assert exit_code == 1
        assert 'ghost' in capsys.readouterr().err

    def test_requires_user_or_all(self, imported, capsys):
        exit_code = run(imported, 'client')

        assert exit_code == 1
        assert 'USER_ID or --all' in capsys.readouterr().err

    def test_missing_database(self, workspace, capsys):
        exit_code = run(workspace, 'client', 'user-1')

        assert exit_code == 1
        assert 'Database not found' in capsys.readouterr().err

    def test_db_path_flag_overrides_config(self, imported, capsys):
        exit_code = run(imported, '--db-path', str(imported / 'other.db'), 'client', 'user-1')

        assert exit_code == 1
        assert 'other.db' in capsys.readouterr().err


class TestAdminCommand:
    """Tests for the admin subcommand."""

    def test_admin_stats(self, imported, capsys):
        exit_code = run(imported, 'admin')

        assert exit_code == 0
        with open(imported / 'dashboards' / 'admin.json') as f:
            stats = json.load(f)
        assert stats['total_users'] == 2

        out = capsys.readouterr().out
        assert 'Approved deposits: $1,000.00' in out
        assert 'Pending transactions: 1' in out
        assert 'Transactions: pending 1, approved 1, rejected 1' in out
        assert 'Ben Client <ben@example.com>' in out


class TestParser:
    """Tests for argument parsing helpers."""

    def test_invalid_as_of(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['client', 'user-1', '--as-of', '08/07/2025'])

    def test_reference_time_end_of_day(self):
        from datetime import date, datetime

        assert _reference_time(date(2025, 8, 7)) == datetime(2025, 8, 7, 23, 59, 59)

    def test_bad_config(self, tmp_path, capsys):
        exit_code = main(['--config', str(tmp_path / 'missing.yml'), 'admin'])

        assert exit_code == 1
        assert 'not found' in capsys.readouterr().err

    def test_help_subprocess(self):
        """Script runs as a standalone entry point."""
        result = subprocess.run(
            [sys.executable, 'cli.py', '--help'],
            cwd=REPO_ROOT,
            capture_output=True,
            text=True,
        )

        assert result.returncode == 0
        assert 'client' in result.stdout
