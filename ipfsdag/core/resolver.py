"""Top-level read and write operations over a block store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ipfsdag.core.dag import DagNode, DagNodeCodec
from ipfsdag.core.multihash import IntegrityVerifier, identifier_for_block
from ipfsdag.utils.logging_config import correlation_scope

if TYPE_CHECKING:
    from ipfsdag.storage.block_store import BlockStore


class DagResolver:
    """Reconstructs files from verified dag-pb blocks.

    Every block, at every level of the DAG, is fetched from the store and
    checked against its identifier before it is decoded. Nothing is cached:
    resolving the same identifier twice repeats the full chain.
    """

    def __init__(
        self,
        block_store: BlockStore,
        verifier: IntegrityVerifier | None = None,
    ):
        """Initialize resolver.

        Args:
            block_store: Collaborator that fetches and uploads raw blocks
            verifier: Integrity checker, a default one if omitted
        """
        self.block_store = block_store
        self.verifier = verifier or IntegrityVerifier()
        self.logger = logging.getLogger(__name__)

    async def resolve(self, identifier: str) -> bytes:
        """Return the file content addressed by ``identifier``.

        Each call logs under its own correlation ID, shared by every block
        fetched for it.

        Raises:
            IpfsDagError: Any fetch, integrity or decode failure in the DAG
        """
        with correlation_scope():
            content = await self._resolve(identifier)
            self.logger.debug("Resolved %s to %d bytes", identifier, len(content))
        return content

    async def inspect(self, identifier: str) -> DagNode:
        """Fetch, verify and decode the node at ``identifier`` without following links."""
        raw = await self._fetch_verified(identifier)
        return DagNodeCodec.parse(raw)

    async def store(self, data: bytes) -> str:
        """Store ``data`` as a single UnixFS File node and return its identifier."""
        block = DagNodeCodec.encode(data)
        result = await self.block_store.upload_block(block)
        expected = identifier_for_block(block)
        if result.identifier != expected:
            self.logger.warning(
                "Store assigned %s to block, expected %s",
                result.identifier,
                expected,
            )
        self.logger.info("Stored %d bytes as %s", len(data), result.identifier)
        return result.identifier

    async def _resolve(self, identifier: str) -> bytes:
        raw = await self._fetch_verified(identifier)
        return await DagNodeCodec.decode(raw, self._resolve)

    async def _fetch_verified(self, identifier: str) -> bytes:
        raw = await self.block_store.fetch_block(identifier)
        self.verifier.check(raw, identifier)
        return raw
