"""
Configuration file system for lodlabel.

Supports loading configuration from multiple locations, merged with precedence:
1. /etc/lodlabel/config.yaml or config.json (lowest priority)
2. ~/.config/lodlabel/config.yaml or config.json
3. ./config.yaml, ./config.json, ./lodlabel.yaml or ./lodlabel.json (highest priority)

All found config files are merged, with later files overriding earlier ones.
YAML is checked before JSON at each location. Environment variables
(LODLABEL_*) have the highest priority.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .fetch import DEFAULT_CONNECT_TIMEOUT, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, MAX_REDIRECTS, Fetcher

# Config filenames for current working directory (project-local config)
CONFIG_FILENAMES = ["config.yaml", "config.json", "lodlabel.yaml", "lodlabel.json"]
# Config filenames for system/user config directories
CONFIG_USER_FILENAMES = ["config.yaml", "config.json"]

ENV_PREFIX = "LODLABEL_"

DEFAULTS: dict[str, Any] = {
    "lang": None,  # Preferred label language; None means any
    "log_level": "WARNING",
    "http": {
        "timeout": DEFAULT_TIMEOUT,
        "connect_timeout": DEFAULT_CONNECT_TIMEOUT,
        "max_redirects": MAX_REDIRECTS,
        "user_agent": DEFAULT_USER_AGENT,
    },
    "api": {"host": "127.0.0.1", "port": 8766},
}


def _get_config_dirs() -> list[Path]:
    """Get list of config directories to search, in merge order (lowest priority first)."""
    return [
        Path("/etc/lodlabel"),
        Path.home() / ".config" / "lodlabel",
        Path.cwd(),
    ]


def find_config_files() -> list[Path]:
    """Find all existing config files, in merge order (lowest priority first).

    At each location, only the first found file (YAML before JSON) is
    included.
    """
    found_files = []
    for dir_path in _get_config_dirs():
        filenames = CONFIG_FILENAMES if dir_path == Path.cwd() else CONFIG_USER_FILENAMES
        for filename in filenames:
            path = dir_path / filename
            if path.exists():
                found_files.append(path)
                break  # Only use first found file at each location
    return found_files


def find_config_file() -> Path | None:
    """Find the highest-priority existing config file, or None."""
    files = find_config_files()
    return files[-1] if files else None


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base dict, modifying base in place."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _deep_copy(d: dict) -> dict:
    result = {}
    for key, value in d.items():
        result[key] = _deep_copy(value) if isinstance(value, dict) else value
    return result


def _load_config_file(path: Path) -> dict[str, Any]:
    """Load a single config file and return its contents.

    Raises:
        ImportError: If YAML config is found but PyYAML is not installed.
        json.JSONDecodeError: If JSON config file is malformed.
    """
    if path.suffix in (".yaml", ".yml"):
        try:
            import yaml
        except ImportError as e:
            raise ImportError(
                "PyYAML required for .yaml config files. Install with: pip install lodlabel[yaml]"
            ) from e
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load config from file(s), merging with defaults.

    If path is provided, only that file is loaded (plus defaults and
    environment variables). Otherwise all standard locations are merged.
    """
    config = _deep_copy(DEFAULTS)

    if path is not None:
        if path.exists():
            _deep_merge(config, _load_config_file(path))
    else:
        for config_path in find_config_files():
            _deep_merge(config, _load_config_file(config_path))

    _apply_env_overrides(config)
    return config


def _apply_env_overrides(config: dict[str, Any]) -> None:
    """Apply LODLABEL_<KEY> environment variables, e.g. LODLABEL_HTTP__TIMEOUT=5."""
    for key, value in os.environ.items():
        if key.startswith(ENV_PREFIX):
            _set_nested_value(config, key[len(ENV_PREFIX):].lower(), value)


def _set_nested_value(config: dict, key: str, value: str) -> None:
    """Set a nested config value using double-underscore notation."""
    parts = key.split("__")
    target = config
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    target[parts[-1]] = _convert_value(value)


def _convert_value(value: str) -> Any:
    """Convert string value to appropriate type."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value


def get_config_value(config: dict[str, Any], key: str, default: Any = None) -> Any:
    """Get a config value using dot notation, e.g. "http.timeout"."""
    target = config
    for part in key.split("."):
        if isinstance(target, dict) and part in target:
            target = target[part]
        else:
            return default
    return target


class Config:
    """Configuration holder with convenient access methods."""

    def __init__(self, path: Path | None = None):
        """Initialize config, loading from file(s).

        Args:
            path: Optional explicit path to config file. If provided, only
                  this file is loaded. Otherwise, all standard locations
                  are searched and merged.
        """
        if path is not None:
            self._paths = [path] if path.exists() else []
        else:
            self._paths = find_config_files()
        self._data = load_config(path)

    @property
    def path(self) -> Path | None:
        """Return the highest-priority loaded config file, or None."""
        return self._paths[-1] if self._paths else None

    @property
    def paths(self) -> list[Path]:
        return self._paths.copy()

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return get_config_value(self._data, key, default)

    @property
    def lang(self) -> str | None:
        """Return the preferred label language, or None for any."""
        value = self.get("lang")
        # YAML 1.1 reads the bare tag 'no' (Norwegian) as boolean False
        if value is False:
            return "no"
        return str(value) if value else None

    @property
    def log_level(self) -> str:
        return str(self.get("log_level", "WARNING")).upper()

    @property
    def http_timeout(self) -> float:
        return float(self.get("http.timeout", DEFAULT_TIMEOUT))

    @property
    def http_connect_timeout(self) -> float:
        return float(self.get("http.connect_timeout", DEFAULT_CONNECT_TIMEOUT))

    @property
    def http_max_redirects(self) -> int:
        return int(self.get("http.max_redirects", MAX_REDIRECTS))

    @property
    def http_user_agent(self) -> str:
        return self.get("http.user_agent", DEFAULT_USER_AGENT)

    @property
    def api_host(self) -> str:
        return self.get("api.host", "127.0.0.1")

    @property
    def api_port(self) -> int:
        return int(self.get("api.port", 8766))

    def fetcher(self) -> Fetcher:
        """Build a fetcher from the http.* settings."""
        return Fetcher(
            timeout=self.http_timeout,
            connect_timeout=self.http_connect_timeout,
            max_redirects=self.http_max_redirects,
            user_agent=self.http_user_agent,
        )
