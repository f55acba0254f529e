"""Unsigned base-128 varints as used by the protobuf wire format."""

from __future__ import annotations

from ipfsdag.exceptions import BufferOverrunError

CONTINUATION_BIT = 0x80
PAYLOAD_MASK = 0x7F


def encode(value: int) -> bytes:
    """Encode a non-negative integer as a varint.

    Groups of 7 bits are written least significant first, with the high bit
    of every byte but the last set.

    Args:
        value: Integer to encode, of any size

    Returns:
        Encoded bytes (at least one byte)

    Raises:
        ValueError: If value is negative
    """
    if value < 0:
        msg = f"Varint value must be non-negative, got {value}"
        raise ValueError(msg)

    out = bytearray()
    while value > PAYLOAD_MASK:
        out.append((value & PAYLOAD_MASK) | CONTINUATION_BIT)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a varint starting at ``offset``.

    Args:
        data: Buffer holding the varint
        offset: Position of the first varint byte

    Returns:
        Tuple of (value, number of bytes consumed)

    Raises:
        BufferOverrunError: If the buffer ends before the varint does
    """
    value = 0
    shift = 0
    pos = offset
    end = len(data)
    while True:
        if pos >= end:
            msg = "buffer overrun while reading varint"
            raise BufferOverrunError(
                msg, {"offset": offset, "length": end}
            )
        byte = data[pos]
        value |= (byte & PAYLOAD_MASK) << shift
        pos += 1
        if not byte & CONTINUATION_BIT:
            return value, pos - offset
        shift += 7
