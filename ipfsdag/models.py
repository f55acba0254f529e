"""Configuration models for ipfsdag."""

from __future__ import annotations

from enum import Enum
from typing import Literal

import multiaddr
from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class IPFSConfig(BaseModel):
    """Block store configuration."""

    backend: Literal["http", "daemon", "memory"] = Field(
        default="http",
        description="Block store used to fetch and upload blocks",
    )
    api_url: str = Field(
        default="https://ipfs.infura.io:5001/api/v0",
        description="IPFS HTTP RPC base URL (http backend)",
    )
    api_username: str | None = Field(
        default=None,
        description="Basic-auth user for the RPC endpoint",
    )
    api_password: str | None = Field(
        default=None,
        description="Basic-auth password for the RPC endpoint",
    )
    daemon_multiaddr: str = Field(
        default="/ip4/127.0.0.1/tcp/5001/http",
        description="IPFS daemon API multiaddr (daemon backend)",
    )
    request_timeout: float = Field(
        default=120.0,
        gt=0,
        le=3600,
        description="Request timeout in seconds",
    )
    connection_timeout: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Connection timeout in seconds",
    )
    connection_limit: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Maximum simultaneous HTTP connections",
    )
    block_put_format: str = Field(
        default="v0",
        description="Block format requested from block/put",
    )

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Require an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            msg = f"api_url must be an http(s) URL, got {v!r}"
            raise ValueError(msg)
        return v.rstrip("/")

    @field_validator("daemon_multiaddr")
    @classmethod
    def validate_daemon_multiaddr(cls, v: str) -> str:
        """Require a parseable multiaddr."""
        try:
            multiaddr.Multiaddr(v)
        except (LookupError, ValueError) as e:
            msg = f"invalid daemon multiaddr {v!r}: {e}"
            raise ValueError(msg) from e
        return v


class ObservabilityConfig(BaseModel):
    """Logging configuration."""

    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")
    log_file: str | None = Field(None, description="Log file path")
    structured_logging: bool = Field(
        default=False,
        description="Write JSON log records to the log file",
    )
    log_correlation_id: bool = Field(
        default=True,
        description="Include correlation IDs",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept level names in any case."""
        if isinstance(v, str):
            return v.upper()
        return v


class Config(BaseModel):
    """Main configuration model."""

    ipfs: IPFSConfig = Field(
        default_factory=IPFSConfig,
        description="Block store configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Logging configuration",
    )
