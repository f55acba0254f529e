"""Configuration management for ipfsdag.

Configuration is loaded hierarchically: defaults → TOML config file →
``IPFSDAG_*`` environment variables → explicit overrides (CLI).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import toml

from ipfsdag.exceptions import ConfigurationError
from ipfsdag.models import Config
from ipfsdag.utils.logging_config import setup_logging

CONFIG_FILENAME = "ipfsdag.toml"

ENV_MAPPINGS: dict[str, str] = {
    "IPFSDAG_BACKEND": "ipfs.backend",
    "IPFSDAG_API_URL": "ipfs.api_url",
    "IPFSDAG_API_USERNAME": "ipfs.api_username",
    "IPFSDAG_API_PASSWORD": "ipfs.api_password",
    "IPFSDAG_DAEMON_MULTIADDR": "ipfs.daemon_multiaddr",
    "IPFSDAG_REQUEST_TIMEOUT": "ipfs.request_timeout",
    "IPFSDAG_CONNECTION_TIMEOUT": "ipfs.connection_timeout",
    "IPFSDAG_CONNECTION_LIMIT": "ipfs.connection_limit",
    "IPFSDAG_BLOCK_PUT_FORMAT": "ipfs.block_put_format",
    "IPFSDAG_LOG_LEVEL": "observability.log_level",
    "IPFSDAG_LOG_FILE": "observability.log_file",
    "IPFSDAG_STRUCTURED_LOGGING": "observability.structured_logging",
    "IPFSDAG_LOG_CORRELATION_ID": "observability.log_correlation_id",
}

# Global configuration instance
_config_manager: ConfigManager | None = None


def _parse_env_value(raw: str) -> bool | int | float | str:
    low = raw.lower()
    if low in {"true", "yes", "on"}:
        return True
    if low in {"false", "no", "off"}:
        return False
    try:
        if "." in raw:
            return float(raw)
        return int(raw)
    except ValueError:
        return raw


def _set_nested(d: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    cur = d
    for p in parts[:-1]:
        cur = cur.setdefault(p, {})
    cur[parts[-1]] = value


class ConfigManager:
    """Loads, validates and applies configuration."""

    def __init__(
        self,
        config_file: str | Path | None = None,
        overrides: dict[str, Any] | None = None,
    ):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file. If None, searches for ipfsdag.toml
            overrides: Nested values applied last, e.g. from CLI options

        """
        self.config_file = self._find_config_file(config_file)
        self.overrides = overrides or {}
        self.config = self._load_config()
        self._setup_logging()

    def _find_config_file(self, config_file: str | Path | None) -> Path | None:
        """Find configuration file in standard locations."""
        if config_file:
            path = Path(config_file)
            if not path.exists():
                msg = f"Configuration file not found: {path}"
                raise ConfigurationError(msg)
            return path

        search_paths = [
            Path.cwd() / CONFIG_FILENAME,
            Path.home() / ".config" / "ipfsdag" / CONFIG_FILENAME,
            Path.home() / f".{CONFIG_FILENAME}",
        ]
        for path in search_paths:
            if path.exists():
                return path
        return None

    def _load_config(self) -> Config:
        """Load configuration from file, environment and overrides."""
        config_data: dict[str, Any] = {}

        if self.config_file:
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    config_data = toml.load(f)
            except (OSError, toml.TomlDecodeError) as e:
                msg = f"Cannot read configuration file {self.config_file}: {e}"
                raise ConfigurationError(msg) from e

        config_data = self._merge_config(config_data, self._get_env_config())
        config_data = self._merge_config(config_data, self.overrides)

        try:
            return Config(**config_data)
        except Exception as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigurationError(msg) from e

    def _get_env_config(self) -> dict[str, Any]:
        """Get configuration from environment variables."""
        env_config: dict[str, Any] = {}
        for env_name, cfg_path in ENV_MAPPINGS.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            if cfg_path.endswith(("_url", "_username", "_password", "_multiaddr", "log_file", "put_format")):
                value: Any = raw
            else:
                value = _parse_env_value(raw)
            _set_nested(env_config, cfg_path, value)
        return env_config

    def _merge_config(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _setup_logging(self) -> None:
        """Set up logging configuration."""
        setup_logging(self.config.observability)

    def export(self) -> str:
        """Export current configuration as TOML (passwords masked)."""
        data = self.config.model_dump(mode="json", exclude_none=True)
        if data.get("ipfs", {}).get("api_password"):
            data["ipfs"]["api_password"] = "***"
        return toml.dumps(data)


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager.config


def init_config(
    config_file: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ConfigManager:
    """Initialize the global configuration manager."""
    global _config_manager
    _config_manager = ConfigManager(config_file, overrides)
    return _config_manager


def reset_config() -> None:
    """Forget the global configuration (next ``get_config`` reloads)."""
    global _config_manager
    _config_manager = None
