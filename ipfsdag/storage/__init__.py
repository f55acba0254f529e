"""Block store collaborators."""

from __future__ import annotations

from ipfsdag.storage.block_store import (
    BlockStore,
    DaemonBlockStore,
    HttpBlockStore,
    MemoryBlockStore,
    UploadResult,
    create_block_store,
)

__all__ = [
    "BlockStore",
    "DaemonBlockStore",
    "HttpBlockStore",
    "MemoryBlockStore",
    "UploadResult",
    "create_block_store",
]
