"""Shared logging infrastructure."""

from __future__ import annotations

from ipfsdag.utils.logging_config import (
    correlation_scope,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)

__all__ = [
    "correlation_scope",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
    "setup_logging",
]
