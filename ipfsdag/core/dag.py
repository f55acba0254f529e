"""dag-pb nodes and links.

Container schema::

    1 data   bytes            UnixFS payload (or file header on link nodes)
    2 links  repeated bytes   encoded links

Link schema::

    1 hash   bytes            34-byte multihash
    2 name   bytes
    3 tsize  varint
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from ipfsdag.core.multihash import check_multihash, identifier_from_multihash
from ipfsdag.core.unixfs import UnixFsCodec
from ipfsdag.core.wire import FieldSchema, WireDecoder, WireEncoder, WireType
from ipfsdag.exceptions import MalformedNodeError

logger = logging.getLogger(__name__)

PBNODE_SCHEMA = FieldSchema(
    "pbnode",
    [
        ("data", WireType.LENGTH_DELIMITED),
        ("links", WireType.LENGTH_DELIMITED, True),
    ],
)

PBLINK_SCHEMA = FieldSchema(
    "pblink",
    [
        ("hash", WireType.LENGTH_DELIMITED),
        ("name", WireType.LENGTH_DELIMITED),
        ("tsize", WireType.VARINT),
    ],
)

# Resolves an identifier to file bytes (fetch, verify, decode).
BlockResolver = Callable[[str], Awaitable[bytes]]


@dataclass(frozen=True)
class DagLink:
    """Reference from a node to a child block."""

    hash: bytes
    name: str = ""
    tsize: int = 0

    def __post_init__(self) -> None:
        check_multihash(self.hash)

    @property
    def cid(self) -> str:
        """Base58 identifier of the linked block."""
        return identifier_from_multihash(self.hash)


@dataclass(frozen=True)
class LinksNode:
    """Node whose content is the concatenation of its children."""

    links: tuple[DagLink, ...]
    header: bytes | None = None

    def __post_init__(self) -> None:
        if not self.links:
            msg = "links node without links"
            raise MalformedNodeError(msg)


@dataclass(frozen=True)
class DataNode:
    """Node carrying an inline UnixFS payload."""

    data: bytes


DagNode = Union[LinksNode, DataNode]


class DagLinkCodec:
    """Decode link records."""

    _decoder = WireDecoder(PBLINK_SCHEMA)

    @classmethod
    def parse(cls, data: bytes) -> DagLink:
        """Decode a link record.

        Raises:
            UnsupportedHashError: Hash is not a 34-byte SHA-256 multihash
        """
        record = cls._decoder.decode(data)
        link_hash = record.get_bytes("hash") or b""
        name = record.get_bytes("name") or b""
        return DagLink(
            hash=link_hash,
            name=name.decode("utf-8", errors="replace"),
            tsize=record.get_int("tsize") or 0,
        )

    @classmethod
    async def decode(cls, data: bytes, resolve: BlockResolver) -> bytes:
        """Decode a link record and resolve the block it points to."""
        return await cls.resolve_link(cls.parse(data), resolve)

    @classmethod
    async def resolve_link(cls, link: DagLink, resolve: BlockResolver) -> bytes:
        """Resolve the block an already parsed link points to."""
        return await resolve(link.cid)


class DagNodeCodec:
    """Decode and encode dag-pb container nodes."""

    _decoder = WireDecoder(PBNODE_SCHEMA)
    _encoder = WireEncoder(PBNODE_SCHEMA)

    @classmethod
    def parse(cls, data: bytes) -> DagNode:
        """Decode a node into a :class:`LinksNode` or :class:`DataNode`.

        A node with links is a links node even if it also has a data field;
        in that case the data is the UnixFS header of the file, not content.

        Raises:
            MalformedNodeError: Node has neither links nor data
        """
        record = cls._decoder.decode(data)
        raw_links = record.get_bytes_list("links")
        payload = record.get_bytes("data")
        if raw_links:
            return LinksNode(
                links=tuple(DagLinkCodec.parse(raw) for raw in raw_links),
                header=payload,
            )
        if payload is not None:
            return DataNode(data=payload)
        msg = "missing links or data"
        raise MalformedNodeError(msg, {"length": len(data)})

    @classmethod
    async def decode(cls, data: bytes, resolve: BlockResolver) -> bytes:
        """Return the file bytes represented by a node.

        Links are resolved concurrently; the result is concatenated in link
        order. The first failing link aborts the whole decode.
        """
        node = cls.parse(data)
        if isinstance(node, DataNode):
            return UnixFsCodec.decode(node.data)

        if node.header is not None:
            UnixFsCodec.check_file(UnixFsCodec.parse(node.header))
        logger.debug("Resolving %d links", len(node.links))
        blocks = await asyncio.gather(
            *(DagLinkCodec.resolve_link(link, resolve) for link in node.links)
        )
        return b"".join(blocks)

    @classmethod
    def encode(cls, payload: bytes | None = None) -> bytes:
        """Encode a data node wrapping ``payload`` as a UnixFS File.

        Without a payload the empty node is returned.
        """
        if payload is None:
            return cls._encoder.encode([])
        return cls._encoder.encode([("data", UnixFsCodec.encode(payload))])
