"""Block store collaborators.

A block store moves raw, already-encoded blocks: it never decodes or
verifies them. Three implementations are provided:

- :class:`HttpBlockStore` talks to an IPFS HTTP RPC endpoint with aiohttp
- :class:`DaemonBlockStore` drives a local daemon through ipfshttpclient
- :class:`MemoryBlockStore` keeps blocks in a dict
"""

from __future__ import annotations

import asyncio
import io
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import aiohttp
import ipfshttpclient

from ipfsdag.core.multihash import identifier_for_block
from ipfsdag.exceptions import (
    BlockFetchError,
    BlockNotFoundError,
    BlockUploadError,
    ConfigurationError,
)

if TYPE_CHECKING:
    from ipfsdag.models import IPFSConfig


@dataclass(frozen=True)
class UploadResult:
    """Identifier assigned to an uploaded block."""

    identifier: str
    size: int


class BlockStore(ABC):
    """Fetches and uploads raw blocks by identifier."""

    async def start(self) -> None:
        """Open any underlying resources."""

    async def stop(self) -> None:
        """Release any underlying resources."""

    async def __aenter__(self) -> BlockStore:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    @abstractmethod
    async def fetch_block(self, identifier: str) -> bytes:
        """Return the raw bytes of the block addressed by ``identifier``."""

    @abstractmethod
    async def upload_block(self, data: bytes) -> UploadResult:
        """Store an encoded block and return the identifier it was given."""


class HttpBlockStore(BlockStore):
    """Block store backed by the ``/block/get`` and ``/block/put`` RPC calls."""

    def __init__(
        self,
        api_url: str,
        *,
        username: str | None = None,
        password: str | None = None,
        request_timeout: float = 30.0,
        connection_timeout: float = 10.0,
        connection_limit: int = 100,
        put_format: str = "v0",
    ):
        """Initialize HTTP block store.

        Args:
            api_url: RPC base URL, e.g. ``http://127.0.0.1:5001/api/v0``
            username: Optional basic-auth user (project id on hosted gateways)
            password: Optional basic-auth password
            request_timeout: Total timeout per request in seconds
            connection_timeout: Connect timeout in seconds
            connection_limit: Maximum simultaneous connections
            put_format: Block format requested on upload

        """
        self.api_url = api_url.rstrip("/")
        self.auth = (
            aiohttp.BasicAuth(username, password or "") if username else None
        )
        self.timeout = aiohttp.ClientTimeout(
            total=request_timeout, connect=connection_timeout
        )
        self.connection_limit = connection_limit
        self.put_format = put_format
        self.session: aiohttp.ClientSession | None = None
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: IPFSConfig) -> HttpBlockStore:
        """Create a store from the ``ipfs`` configuration section."""
        return cls(
            config.api_url,
            username=config.api_username,
            password=config.api_password,
            request_timeout=config.request_timeout,
            connection_timeout=config.connection_timeout,
            connection_limit=config.connection_limit,
            put_format=config.block_put_format,
        )

    async def start(self) -> None:
        """Create the HTTP session."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=self.timeout,
                auth=self.auth,
                connector=aiohttp.TCPConnector(limit=self.connection_limit),
            )

    async def stop(self) -> None:
        """Close the HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def fetch_block(self, identifier: str) -> bytes:
        """Fetch a block with ``POST /block/get``.

        Raises:
            BlockFetchError: Transport failure or non-200 response
        """
        if self.session is None:
            await self.start()
        assert self.session is not None

        url = f"{self.api_url}/block/get"
        try:
            async with self.session.post(url, params={"arg": identifier}) as response:
                body = await response.read()
                if response.status != 200:
                    msg = f"block get failed for {identifier}"
                    raise BlockFetchError(
                        msg,
                        {
                            "status": response.status,
                            "body": body[:200].decode("utf-8", errors="replace"),
                        },
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            msg = f"block get failed for {identifier}: {e}"
            raise BlockFetchError(msg) from e

        self.logger.debug("Fetched block %s (%d bytes)", identifier, len(body))
        return body

    async def upload_block(self, data: bytes) -> UploadResult:
        """Upload a block with a multipart ``POST /block/put``.

        Raises:
            BlockUploadError: Transport failure, non-200 response or a reply
                without a key
        """
        if self.session is None:
            await self.start()
        assert self.session is not None

        form = aiohttp.FormData()
        form.add_field(
            "file",
            data,
            filename="block",
            content_type="application/octet-stream",
        )
        url = f"{self.api_url}/block/put"
        try:
            async with self.session.post(
                url, params={"format": self.put_format}, data=form
            ) as response:
                body = await response.read()
                if response.status != 200:
                    msg = "block put failed"
                    raise BlockUploadError(
                        msg,
                        {
                            "status": response.status,
                            "body": body[:200].decode("utf-8", errors="replace"),
                        },
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            msg = f"block put failed: {e}"
            raise BlockUploadError(msg) from e

        return _upload_result(body, len(data))


class DaemonBlockStore(BlockStore):
    """Block store backed by a local daemon through ipfshttpclient."""

    def __init__(self, multiaddr: str, *, timeout: float = 30.0):
        """Initialize daemon block store.

        Args:
            multiaddr: Daemon API address, e.g. ``/ip4/127.0.0.1/tcp/5001/http``
            timeout: Request timeout in seconds

        """
        self.multiaddr = multiaddr
        self.timeout = timeout
        self._client: ipfshttpclient.Client | None = None
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: IPFSConfig) -> DaemonBlockStore:
        """Create a store from the ``ipfs`` configuration section."""
        return cls(config.daemon_multiaddr, timeout=config.request_timeout)

    async def start(self) -> None:
        """Connect to the daemon."""
        if self._client is not None:
            return
        try:
            self._client = await asyncio.to_thread(
                ipfshttpclient.connect, self.multiaddr, timeout=self.timeout
            )
        except ipfshttpclient.exceptions.Error as e:
            msg = f"cannot connect to IPFS daemon at {self.multiaddr}: {e}"
            raise BlockFetchError(msg) from e
        self.logger.info("Connected to IPFS daemon at %s", self.multiaddr)

    async def stop(self) -> None:
        """Close the daemon client."""
        if self._client is not None:
            await asyncio.to_thread(self._client.close)
            self._client = None

    async def _ensure_client(self) -> ipfshttpclient.Client:
        if self._client is None:
            await self.start()
        assert self._client is not None
        return self._client

    async def fetch_block(self, identifier: str) -> bytes:
        """Fetch a block with ``client.block.get``."""
        client = await self._ensure_client()
        try:
            return await asyncio.to_thread(client.block.get, identifier)
        except ipfshttpclient.exceptions.Error as e:
            msg = f"block get failed for {identifier}: {e}"
            raise BlockFetchError(msg) from e

    async def upload_block(self, data: bytes) -> UploadResult:
        """Upload a block with ``client.block.put``."""
        client = await self._ensure_client()
        try:
            reply = await asyncio.to_thread(client.block.put, io.BytesIO(data))
        except ipfshttpclient.exceptions.Error as e:
            msg = f"block put failed: {e}"
            raise BlockUploadError(msg) from e
        return _upload_result(reply, len(data))


class MemoryBlockStore(BlockStore):
    """In-process block store keyed by computed identifier."""

    def __init__(self, blocks: dict[str, bytes] | None = None):
        """Initialize with optional pre-populated ``identifier -> block`` map."""
        self.blocks: dict[str, bytes] = dict(blocks or {})

    def add(self, block: bytes) -> str:
        """Store ``block`` synchronously and return its identifier."""
        identifier = identifier_for_block(block)
        self.blocks[identifier] = block
        return identifier

    async def fetch_block(self, identifier: str) -> bytes:
        """Return a stored block.

        Raises:
            BlockNotFoundError: Identifier is not in the store
        """
        try:
            return self.blocks[identifier]
        except KeyError:
            msg = f"block not found: {identifier}"
            raise BlockNotFoundError(msg) from None

    async def upload_block(self, data: bytes) -> UploadResult:
        """Store a block under its computed identifier."""
        return UploadResult(identifier=self.add(data), size=len(data))


def _upload_result(reply: bytes | Mapping[str, Any], size: int) -> UploadResult:
    if isinstance(reply, (bytes, bytearray)):
        try:
            reply = json.loads(reply.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            msg = "block put returned an unreadable reply"
            raise BlockUploadError(msg) from e
    if not isinstance(reply, Mapping) or not reply.get("Key"):
        msg = "block put reply has no key"
        raise BlockUploadError(msg, {"reply": reply})
    return UploadResult(identifier=str(reply["Key"]), size=int(reply.get("Size", size)))


def create_block_store(config: IPFSConfig) -> BlockStore:
    """Build the block store selected by ``config.backend``.

    Raises:
        ConfigurationError: Unknown backend name
    """
    if config.backend == "http":
        return HttpBlockStore.from_config(config)
    if config.backend == "daemon":
        return DaemonBlockStore.from_config(config)
    if config.backend == "memory":
        return MemoryBlockStore()
    msg = f"Unknown block store backend: {config.backend}"
    raise ConfigurationError(msg)
