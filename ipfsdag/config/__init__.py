"""Configuration management."""

from __future__ import annotations

from ipfsdag.config.config import (
    Config,
    ConfigManager,
    get_config,
    init_config,
    reset_config,
)

__all__ = [
    "Config",
    "ConfigManager",
    "get_config",
    "init_config",
    "reset_config",
]
