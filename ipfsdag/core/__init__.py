"""Wire codec, dag-pb/UnixFS schemas and the DAG resolver.

This package contains the format components, leaves first:
- Varints and the tagged-field wire codec
- UnixFS payloads
- dag-pb nodes and links
- Multihash identifiers and integrity checks
- The resolver tying them to a block store
"""

from __future__ import annotations

from ipfsdag.core.dag import (
    DagLink,
    DagLinkCodec,
    DagNode,
    DagNodeCodec,
    DataNode,
    LinksNode,
)
from ipfsdag.core.multihash import (
    IntegrityVerifier,
    identifier_for_block,
    identifier_from_multihash,
    multihash_from_identifier,
)
from ipfsdag.core.resolver import DagResolver
from ipfsdag.core.unixfs import UnixFsCodec, UnixFsPayload, UnixFsType
from ipfsdag.core.wire import (
    FieldSchema,
    FieldSpec,
    WireDecoder,
    WireEncoder,
    WireRecord,
    WireType,
)

__all__ = [
    # dag-pb
    "DagLink",
    "DagLinkCodec",
    "DagNode",
    "DagNodeCodec",
    "DataNode",
    "LinksNode",
    # Resolver
    "DagResolver",
    # Wire
    "FieldSchema",
    "FieldSpec",
    "WireDecoder",
    "WireEncoder",
    "WireRecord",
    "WireType",
    # Multihash
    "IntegrityVerifier",
    "identifier_for_block",
    "identifier_from_multihash",
    "multihash_from_identifier",
    # UnixFS
    "UnixFsCodec",
    "UnixFsPayload",
    "UnixFsType",
]
