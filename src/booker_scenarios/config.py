"""Suite configuration management.

Handles configuration stored in ~/.booker/config.yaml (or an explicit path).
Supports environment variable overrides and CLI flag precedence.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .client import DEFAULT_BASE_URL
from .policy import DEFAULT_TOLERATED_STATUSES
from .retry import DEFAULT_RETRY_COUNT, DEFAULT_RETRY_DELAY
from .shared.auth import DEFAULT_PASSWORD, DEFAULT_USERNAME

# Default values
DEFAULT_TIMEOUT = 30.0

CONFIG_KEYS = [
    "base_url",
    "timeout",
    "username",
    "password",
    "retry_count",
    "retry_delay",
    "tolerated_statuses",
]

# Environment variable mappings
ENV_VARS = {
    "base_url": "BOOKER_BASE_URL",
    "timeout": "BOOKER_TIMEOUT",
    "username": "BOOKER_USERNAME",
    "password": "BOOKER_PASSWORD",
    "retry_count": "BOOKER_RETRY_COUNT",
    "retry_delay": "BOOKER_RETRY_DELAY",
    "tolerated_statuses": "BOOKER_TOLERATED_STATUSES",
}


@dataclass
class SuiteConfig:
    """Scenario run configuration."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    username: str = DEFAULT_USERNAME
    password: str = DEFAULT_PASSWORD
    retry_count: int = DEFAULT_RETRY_COUNT
    retry_delay: float = DEFAULT_RETRY_DELAY
    tolerated_statuses: tuple[int, ...] = DEFAULT_TOLERATED_STATUSES

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")

    def override(self, source: str = "command line", **values: Any) -> None:
        """Apply explicit values (None means not given)."""
        for key, value in values.items():
            if value is None or key not in CONFIG_KEYS:
                continue
            setattr(self, key, _coerce(key, value))
            self._sources[key] = source

    def to_dict(self, mask_password: bool = True) -> dict[str, Any]:
        data = {key: getattr(self, key) for key in CONFIG_KEYS}
        data["tolerated_statuses"] = list(self.tolerated_statuses)
        if mask_password:
            data["password"] = "********"
        return data


def parse_statuses(value: Any) -> tuple[int, ...]:
    """Parse a status list from YAML list, comma-separated string or ints."""
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        items = [value]
    return tuple(int(item) for item in items)


def _coerce(key: str, value: Any) -> Any:
    if key == "timeout" or key == "retry_delay":
        return float(value)
    if key == "retry_count":
        return int(value)
    if key == "tolerated_statuses":
        return parse_statuses(value)
    return str(value)


def get_config_path() -> Path:
    """Get the default config file path.

    Returns:
        Path to ~/.booker/config.yaml
    """
    return Path.home() / ".booker" / "config.yaml"


def load_config(config_path: str | Path | None = None) -> SuiteConfig:
    """Load suite configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (explicit path or ~/.booker/config.yaml)
    3. Defaults

    CLI flags are applied afterwards with SuiteConfig.override().

    Args:
        config_path: Optional explicit config file

    Returns:
        SuiteConfig with values and sources
    """
    config = SuiteConfig()
    sources: dict[str, str] = {key: "default" for key in CONFIG_KEYS}

    # Load from config file
    path = Path(config_path) if config_path else get_config_path()
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
            if not isinstance(file_config, dict):
                file_config = {}
        except (OSError, yaml.YAMLError):
            file_config = {}  # Unreadable config file, use defaults

        for key in CONFIG_KEYS:
            if key not in file_config:
                continue
            try:
                setattr(config, key, _coerce(key, file_config[key]))
                sources[key] = "config file"
            except (TypeError, ValueError):
                pass

    # Override with environment variables
    for key, env_var in ENV_VARS.items():
        raw = os.environ.get(env_var)
        if not raw:
            continue
        try:
            setattr(config, key, _coerce(key, raw))
            sources[key] = "environment"
        except ValueError:
            pass

    config._sources = sources
    return config
