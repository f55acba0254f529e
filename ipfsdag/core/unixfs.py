"""UnixFS payload codec.

Schema (field number order)::

    1 type       varint
    2 data       bytes
    3 filesize   varint
    4 blocksize  varint
    5 hashtype   varint
    6 fanout     varint
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ipfsdag.core.wire import FieldSchema, WireDecoder, WireEncoder, WireType
from ipfsdag.exceptions import UnsupportedPayloadTypeError

UNIXFS_SCHEMA = FieldSchema(
    "unixfs",
    [
        ("type", WireType.VARINT),
        ("data", WireType.LENGTH_DELIMITED),
        ("filesize", WireType.VARINT),
        ("blocksize", WireType.VARINT),
        ("hashtype", WireType.VARINT),
        ("fanout", WireType.VARINT),
    ],
)


class UnixFsType(int, Enum):
    """UnixFS data types."""

    RAW = 0
    DIRECTORY = 1
    FILE = 2
    METADATA = 3
    SYMLINK = 4
    HAMT_SHARD = 5


_KNOWN_TYPES = {member.value for member in UnixFsType}


@dataclass(frozen=True)
class UnixFsPayload:
    """Decoded UnixFS message."""

    type: UnixFsType | int | None
    data: bytes | None = None
    filesize: int | None = None
    blocksize: int | None = None
    hash_type: int | None = None
    fanout: int | None = None

    @property
    def is_file(self) -> bool:
        return self.type == UnixFsType.FILE


class UnixFsCodec:
    """Encode and decode UnixFS File payloads."""

    _decoder = WireDecoder(UNIXFS_SCHEMA)
    _encoder = WireEncoder(UNIXFS_SCHEMA)

    @classmethod
    def parse(cls, data: bytes) -> UnixFsPayload:
        """Decode a UnixFS message without checking its type."""
        record = cls._decoder.decode(data)
        raw_type = record.get_int("type")
        payload_type: UnixFsType | int | None = raw_type
        if raw_type is not None and raw_type in _KNOWN_TYPES:
            payload_type = UnixFsType(raw_type)
        return UnixFsPayload(
            type=payload_type,
            data=record.get_bytes("data"),
            filesize=record.get_int("filesize"),
            blocksize=record.get_int("blocksize"),
            hash_type=record.get_int("hashtype"),
            fanout=record.get_int("fanout"),
        )

    @classmethod
    def check_file(cls, payload: UnixFsPayload) -> UnixFsPayload:
        """Return ``payload`` if it is a File, raise otherwise."""
        if not payload.is_file:
            name = payload.type.name if isinstance(payload.type, UnixFsType) else payload.type
            msg = f"unsupported type - {name}"
            raise UnsupportedPayloadTypeError(msg, {"type": payload.type})
        return payload

    @classmethod
    def decode(cls, data: bytes) -> bytes:
        """Return the file bytes carried by a UnixFS File payload.

        A File without a data field is an empty file.

        Raises:
            UnsupportedPayloadTypeError: Payload is not a File
            MalformedPayloadError: A field has the wrong shape
        """
        payload = cls.check_file(cls.parse(data))
        if payload.data is None:
            return b""
        return payload.data

    @classmethod
    def encode(cls, data: bytes) -> bytes:
        """Encode ``data`` as a UnixFS File payload."""
        return cls._encoder.encode(
            [
                ("type", UnixFsType.FILE.value),
                ("data", data),
                ("filesize", len(data)),
            ]
        )
