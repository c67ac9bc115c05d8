"""
Dashboard configuration - YAML settings with environment overrides.
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = './config/dashboard.yml'


class ConfigError(Exception):
    """Raised when dashboard configuration is invalid or missing."""
    pass


@dataclass
class DashboardConfig:
    """Configuration for dashboard generation."""
    db_path: str = './data/platform.db'
    output_dir: str = './data/processed/dashboards'
    profit_history_days: int = 30
    daily_returns_days: int = 7
    performance_days: int = 30
    recent_transactions_limit: int = 5

    def __post_init__(self):
        """Validate window sizes."""
        for field_name in ('profit_history_days', 'daily_returns_days', 'performance_days'):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{field_name} must be positive integer, got {value!r}")

        limit = self.recent_transactions_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ConfigError(f"recent_transactions_limit must be non-negative integer, got {limit!r}")

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load dashboard config {config_file}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Dashboard config {config_file} must be a mapping")

    return data


def load_dashboard_config(config_path: Optional[str] = None) -> DashboardConfig:
    """
    Load dashboard configuration.

    Resolution order: built-in defaults, then the YAML file, then the
    DASHBOARD_DB_PATH / DASHBOARD_OUTPUT_DIR environment variables.

    Args:
        config_path: Path to YAML config. Defaults to $DASHBOARD_CONFIG or
            ./config/dashboard.yml; only an explicitly requested file must exist.

    Returns:
        DashboardConfig

    Raises:
        ConfigError: If the file is unreadable or values are invalid
    """
    explicit = config_path is not None or os.getenv('DASHBOARD_CONFIG') is not None
    if config_path is None:
        config_path = os.getenv('DASHBOARD_CONFIG', DEFAULT_CONFIG_PATH)

    config_file = Path(config_path)
    data: Dict[str, Any] = {}

    if config_file.exists():
        data = _read_yaml(config_file)
    elif explicit:
        raise ConfigError(f"Dashboard config file not found: {config_path}")
    else:
        logger.info(f"No dashboard config at {config_path}, using defaults")

    windows = data.get('windows') or {}
    if not isinstance(windows, dict):
        raise ConfigError("'windows' section must be a mapping")

    settings: Dict[str, Any] = {}
    for key in ('db_path', 'output_dir', 'recent_transactions_limit'):
        if key in data:
            settings[key] = data[key]
    for key in ('profit_history_days', 'daily_returns_days', 'performance_days'):
        if key in windows:
            settings[key] = windows[key]

    db_path = os.getenv('DASHBOARD_DB_PATH')
    if db_path:
        settings['db_path'] = db_path

    output_dir = os.getenv('DASHBOARD_OUTPUT_DIR')
    if output_dir:
        settings['output_dir'] = output_dir

    return DashboardConfig(**settings)
