"""Tests for dag-pb node and link codecs."""

from __future__ import annotations

import gc
import warnings
from unittest.mock import AsyncMock, patch

import pytest

from ipfsdag.core.dag import (
    PBLINK_SCHEMA,
    PBNODE_SCHEMA,
    DagLink,
    DagLinkCodec,
    DagNodeCodec,
    DataNode,
    LinksNode,
)
from ipfsdag.core.multihash import identifier_for_block, multihash_for_block
from ipfsdag.core.unixfs import UnixFsType
from ipfsdag.core.wire import WireEncoder
from ipfsdag.exceptions import (
    MalformedNodeError,
    UnknownFieldError,
    UnsupportedHashError,
    UnsupportedPayloadTypeError,
)

pytestmark = [pytest.mark.unit, pytest.mark.core]

# go-ipfs encoding of a single-block file containing "Hello\n"
HELLO_BLOCK = b"\x0a\x0c\x08\x02\x12\x06Hello\n\x18\x06"


async def _unreachable(identifier: str) -> bytes:
    msg = f"unexpected resolve of {identifier}"
    raise AssertionError(msg)


class TestDagLink:
    def test_hash_must_be_34_bytes(self):
        with pytest.raises(UnsupportedHashError):
            DagLink(hash=b"\x12\x20" + b"\x00" * 31)

    def test_cid(self):
        link = DagLink(hash=multihash_for_block(HELLO_BLOCK), name="hello", tsize=14)
        assert link.cid == "QmY9cxiHqTFoWamkQVkpmmqzBrY3hCBEL2XNu3NtX74Fuu"


class TestDagLinkCodec:
    def test_parse(self, encode_link):
        link = DagLinkCodec.parse(encode_link(HELLO_BLOCK, name=b"hello.txt"))
        assert link.hash == multihash_for_block(HELLO_BLOCK)
        assert link.name == "hello.txt"
        assert link.tsize == len(HELLO_BLOCK)

    def test_parse_hash_only(self):
        link = DagLinkCodec.parse(b"\x0a\x22" + multihash_for_block(b""))
        assert link.name == ""
        assert link.tsize == 0

    def test_missing_hash(self):
        with pytest.raises(UnsupportedHashError):
            DagLinkCodec.parse(b"\x12\x01a")

    def test_short_hash(self):
        with pytest.raises(UnsupportedHashError):
            DagLinkCodec.parse(b"\x0a\x03\x12\x20\x00")

    def test_unknown_field(self):
        with pytest.raises(UnknownFieldError):
            DagLinkCodec.parse(b"\x20\x01")

    @pytest.mark.asyncio
    async def test_decode_resolves_target(self, encode_link):
        seen = []

        async def resolve(identifier: str) -> bytes:
            seen.append(identifier)
            return b"content"

        assert await DagLinkCodec.decode(encode_link(HELLO_BLOCK), resolve) == b"content"
        assert seen == [identifier_for_block(HELLO_BLOCK)]


class TestDagNodeParse:
    def test_data_node(self):
        node = DagNodeCodec.parse(HELLO_BLOCK)
        assert node == DataNode(data=b"\x08\x02\x12\x06Hello\n\x18\x06")

    def test_links_node_with_header(self, encode_links_node):
        children = [DagNodeCodec.encode(b"a"), DagNodeCodec.encode(b"b")]
        node = DagNodeCodec.parse(encode_links_node(children))
        assert isinstance(node, LinksNode)
        assert [link.cid for link in node.links] == [identifier_for_block(c) for c in children]
        assert node.header == b"\x08\x02"

    def test_links_node_without_header(self, encode_links_node):
        node = DagNodeCodec.parse(encode_links_node([HELLO_BLOCK], file_type=None))
        assert isinstance(node, LinksNode)
        assert node.header is None

    def test_empty_node(self):
        with pytest.raises(MalformedNodeError, match="missing links or data"):
            DagNodeCodec.parse(b"")

    def test_links_node_requires_links(self):
        with pytest.raises(MalformedNodeError):
            LinksNode(links=())

    def test_unknown_field(self):
        with pytest.raises(UnknownFieldError):
            DagNodeCodec.parse(b"\x1a\x00")


class TestDagNodeDecode:
    @pytest.mark.asyncio
    async def test_data_node_does_not_resolve(self):
        assert await DagNodeCodec.decode(HELLO_BLOCK, _unreachable) == b"Hello\n"

    @pytest.mark.asyncio
    async def test_empty_file_node(self):
        assert await DagNodeCodec.decode(b"\x0a\x04\x08\x02\x18\x00", _unreachable) == b""

    @pytest.mark.asyncio
    async def test_links_concatenate_in_order(self, encode_links_node):
        children = {
            identifier_for_block(DagNodeCodec.encode(part)): part
            for part in (b"one-", b"two-", b"three")
        }
        node = encode_links_node([DagNodeCodec.encode(part) for part in children.values()])

        async def resolve(identifier: str) -> bytes:
            return children[identifier]

        assert await DagNodeCodec.decode(node, resolve) == b"one-two-three"

    @pytest.mark.asyncio
    async def test_directory_header_rejected_before_resolving(self, encode_links_node):
        node = encode_links_node([HELLO_BLOCK], file_type=UnixFsType.DIRECTORY.value)
        with pytest.raises(UnsupportedPayloadTypeError):
            await DagNodeCodec.decode(node, _unreachable)

    @pytest.mark.asyncio
    async def test_directory_data_node_rejected(self):
        with pytest.raises(UnsupportedPayloadTypeError):
            await DagNodeCodec.decode(b"\x0a\x02\x08\x01", _unreachable)

    @pytest.mark.asyncio
    async def test_link_failure_propagates(self, encode_links_node):
        node = encode_links_node([DagNodeCodec.encode(b"a"), DagNodeCodec.encode(b"b")])

        async def resolve(identifier: str) -> bytes:
            raise UnsupportedPayloadTypeError("unsupported type - DIRECTORY")

        with pytest.raises(UnsupportedPayloadTypeError):
            await DagNodeCodec.decode(node, resolve)


class TestDagNodeEncode:
    def test_matches_go_ipfs_single_block(self):
        assert DagNodeCodec.encode(b"Hello\n") == HELLO_BLOCK

    def test_encode_none_is_empty_node(self):
        assert DagNodeCodec.encode() == b""
        assert DagNodeCodec.encode(None) == b""

    @pytest.mark.asyncio
    async def test_encoded_node_decodes(self):
        data = bytes(range(256)) * 3
        assert await DagNodeCodec.decode(DagNodeCodec.encode(data), _unreachable) == data


class TestLinkHashValidation:
    def test_wrong_hash_function_rejected_at_construction(self):
        with pytest.raises(UnsupportedHashError):
            DagLink(hash=b"\x13\x20" + b"\x00" * 32)

    @pytest.mark.asyncio
    async def test_bad_second_link_fails_before_any_fetch(self, encode_link):
        bad_link = WireEncoder(PBLINK_SCHEMA).encode([("hash", b"\x13\x20" + b"\x00" * 32)])
        node = WireEncoder(PBNODE_SCHEMA).encode(
            [("links", encode_link(HELLO_BLOCK)), ("links", bad_link)]
        )
        seen = []

        async def resolve(identifier: str) -> bytes:
            seen.append(identifier)
            return b""

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            with pytest.raises(UnsupportedHashError):
                await DagNodeCodec.decode(node, resolve)
            gc.collect()

        assert seen == []
        assert not [w for w in caught if "never awaited" in str(w.message)]


class TestLinkRouting:
    @pytest.mark.asyncio
    async def test_node_links_resolve_through_link_codec(self, encode_links_node):
        node = encode_links_node([DagNodeCodec.encode(b"a"), DagNodeCodec.encode(b"b")])

        with patch.object(
            DagLinkCodec, "resolve_link", new_callable=AsyncMock, return_value=b"x"
        ) as mock_resolve_link:
            assert await DagNodeCodec.decode(node, _unreachable) == b"xx"

        assert mock_resolve_link.await_count == 2
        cids = [call.args[0].cid for call in mock_resolve_link.await_args_list]
        assert cids == [identifier_for_block(DagNodeCodec.encode(part)) for part in (b"a", b"b")]
