"""Pytest configuration and shared fixtures for ipfsdag tests."""

from __future__ import annotations

import logging
from typing import Callable

import pytest

from ipfsdag.config.config import ENV_MAPPINGS, reset_config
from ipfsdag.core.dag import PBLINK_SCHEMA, PBNODE_SCHEMA
from ipfsdag.core.multihash import multihash_for_block
from ipfsdag.core.resolver import DagResolver
from ipfsdag.core.unixfs import UNIXFS_SCHEMA, UnixFsType
from ipfsdag.core.wire import WireEncoder
from ipfsdag.storage.block_store import MemoryBlockStore
from ipfsdag.utils.logging_config import correlation_id


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("unit", "marks tests as unit tests"),
        ("core", "marks tests as core functionality tests"),
        ("storage", "marks tests as block store tests"),
        ("config", "marks tests as configuration tests"),
        ("cli", "marks tests as CLI tests"),
        ("property", "marks tests as property-based tests"),
        ("compatibility", "marks tests as compatibility/live tests (run in CI only)"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Drop handlers installed by setup_logging so each test starts clean."""
    yield
    package_logger = logging.getLogger("ipfsdag")
    for handler in package_logger.handlers[:]:
        handler.close()
        package_logger.removeHandler(handler)
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
    correlation_id.set(None)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep the environment and working directory from leaking config into tests."""
    for env_name in ENV_MAPPINGS:
        monkeypatch.delenv(env_name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    reset_config()
    yield
    reset_config()


@pytest.fixture
def memory_store() -> MemoryBlockStore:
    """Empty in-memory block store."""
    return MemoryBlockStore()


@pytest.fixture
def resolver(memory_store: MemoryBlockStore) -> DagResolver:
    """Resolver over the in-memory store."""
    return DagResolver(memory_store)


@pytest.fixture
def encode_link() -> Callable[..., bytes]:
    """Build an encoded link record pointing at ``block``."""
    encoder = WireEncoder(PBLINK_SCHEMA)

    def _encode(block: bytes, name: bytes = b"", tsize: int | None = None) -> bytes:
        return encoder.encode(
            [
                ("hash", multihash_for_block(block)),
                ("name", name),
                ("tsize", len(block) if tsize is None else tsize),
            ]
        )

    return _encode


@pytest.fixture
def encode_links_node(encode_link) -> Callable[..., bytes]:
    """Build a links node over ``children``, optionally with a File header."""
    encoder = WireEncoder(PBNODE_SCHEMA)
    header_encoder = WireEncoder(UNIXFS_SCHEMA)

    def _encode(children: list[bytes], file_type: int | None = UnixFsType.FILE.value) -> bytes:
        fields: list[tuple[str, bytes]] = []
        if file_type is not None:
            fields.append(("data", header_encoder.encode([("type", file_type)])))
        fields.extend(("links", encode_link(child)) for child in children)
        return encoder.encode(fields)

    return _encode
