"""
Configuration management and loading.

Handles history database settings read from YAML.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import yaml

from rtk_gain.storage.paths import default_config_path


@dataclass(frozen=True)
class TrackingConfig:
    """Settings for the history database."""
    db_path: Optional[Path] = None
    busy_timeout_ms: int = 5000
    max_retries: int = 5
    retry_initial_delay: float = 0.05
    retry_max_delay: float = 1.0

    def __post_init__(self):
        """Validate numeric settings."""
        if self.busy_timeout_ms <= 0:
            raise ValueError("busy_timeout_ms must be > 0")
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if self.retry_initial_delay <= 0:
            raise ValueError("retry_initial_delay must be > 0")
        if self.retry_max_delay < self.retry_initial_delay:
            raise ValueError("retry_max_delay must be >= retry_initial_delay")


def load_tracking_config(path: Union[str, Path]) -> TrackingConfig:
    """Load and validate tracking configuration from YAML file.

    Unknown keys are rejected so a typo never silently falls back to
    a default.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated TrackingConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Tracking config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'database'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    database_data = raw_config.get('database', {})
    if not isinstance(database_data, dict):
        raise ValueError("'database' must be a dictionary")

    return _parse_database_config(database_data)


def resolve_config(path: Optional[Union[str, Path]] = None) -> TrackingConfig:
    """Load the given config file, else the default one if present, else defaults."""
    if path is not None:
        return load_tracking_config(path)
    default_path = default_config_path()
    if default_path.exists():
        return load_tracking_config(default_path)
    return TrackingConfig()


def _parse_database_config(data: Dict) -> TrackingConfig:
    """Parse and validate the 'database' section.

    Args:
        data: Database configuration data

    Returns:
        Validated TrackingConfig

    Raises:
        ValueError: If configuration is invalid
    """
    allowed_keys = {
        'path', 'busy_timeout_ms', 'max_retries',
        'retry_initial_delay', 'retry_max_delay',
    }
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in database: {unknown_keys}")

    defaults = TrackingConfig()

    db_path = data.get('path')
    if db_path is not None:
        if not isinstance(db_path, str) or not db_path.strip():
            raise ValueError("'path' in database must be a non-empty string")
        db_path = Path(db_path).expanduser()

    busy_timeout_ms = _require_int(data, 'busy_timeout_ms', defaults.busy_timeout_ms)
    max_retries = _require_int(data, 'max_retries', defaults.max_retries)
    initial_delay = _require_number(data, 'retry_initial_delay', defaults.retry_initial_delay)
    max_delay = _require_number(data, 'retry_max_delay', defaults.retry_max_delay)

    return TrackingConfig(
        db_path=db_path,
        busy_timeout_ms=busy_timeout_ms,
        max_retries=max_retries,
        retry_initial_delay=initial_delay,
        retry_max_delay=max_delay,
    )


def _require_int(data: Dict, key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{key}' in database must be an integer")
    return value


def _require_number(data: Dict, key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}' in database must be a number")
    return float(value)
