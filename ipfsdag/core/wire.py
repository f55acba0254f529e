"""Tagged-field wire codec for fixed, positional schemas.

Only the two wire types needed by dag-pb and UnixFS are understood:
varints and length-delimited byte strings. Field numbers come from the
position of a field in its schema, so schemas are closed; any tag outside
the schema is rejected rather than skipped.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Union

from ipfsdag.core import varint
from ipfsdag.exceptions import (
    BufferOverrunError,
    MalformedPayloadError,
    UnknownFieldError,
    UnsupportedWireTypeError,
)

WireValue = Union[int, bytes]


class WireType(int, Enum):
    """Protobuf wire types."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2


@dataclass(frozen=True)
class FieldSpec:
    """One schema entry."""

    number: int
    name: str
    wire_type: WireType
    repeated: bool = False

    @property
    def tag(self) -> int:
        """Tag word written before every value of this field."""
        return (self.number << 3) | self.wire_type


class FieldSchema:
    """Ordered, closed set of fields; position ``i`` is field number ``i + 1``."""

    def __init__(self, name: str, fields: Iterable[tuple[str, WireType] | tuple[str, WireType, bool]]):
        """Initialize schema.

        Args:
            name: Message name, used in error details
            fields: ``(name, wire_type[, repeated])`` in field-number order
        """
        self.name = name
        specs = []
        for index, entry in enumerate(fields):
            field_name, wire_type = entry[0], entry[1]
            repeated = bool(entry[2]) if len(entry) > 2 else False
            specs.append(FieldSpec(index + 1, field_name, WireType(wire_type), repeated))
        self.fields: tuple[FieldSpec, ...] = tuple(specs)
        self._by_name = {spec.name: spec for spec in self.fields}

    def __len__(self) -> int:
        return len(self.fields)

    def __repr__(self) -> str:
        return f"FieldSchema({self.name!r}, {[spec.name for spec in self.fields]!r})"

    def by_number(self, number: int) -> FieldSpec | None:
        """Return the field with the given number, if any."""
        if 1 <= number <= len(self.fields):
            return self.fields[number - 1]
        return None

    def by_name(self, name: str) -> FieldSpec:
        """Return the field with the given name.

        Raises:
            UnknownFieldError: If the schema has no such field
        """
        try:
            return self._by_name[name]
        except KeyError:
            msg = f"unknown field - {name}"
            raise UnknownFieldError(msg, {"schema": self.name}) from None


class WireRecord(Mapping):
    """Decoded message: field name to value, or to a list for repeated fields.

    Values are ``int`` for varints and ``bytes`` for length-delimited
    fields. The typed getters check that shape so callers never have to.
    """

    def __init__(self, schema: FieldSchema, values: dict[str, WireValue | list[WireValue]]):
        self.schema = schema
        self._values = values

    def __getitem__(self, key: str) -> WireValue | list[WireValue]:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"WireRecord({self.schema.name}, {self._values!r})"

    def get_int(self, name: str) -> int | None:
        """Return a varint field, ``None`` when absent."""
        value = self._values.get(name)
        if value is None:
            return None
        if not isinstance(value, int):
            msg = f"bad {name}: expected integer"
            raise MalformedPayloadError(msg, {"schema": self.schema.name})
        return value

    def get_bytes(self, name: str) -> bytes | None:
        """Return a length-delimited field, ``None`` when absent."""
        value = self._values.get(name)
        if value is None:
            return None
        if not isinstance(value, bytes):
            msg = f"bad {name}: expected byte sequence"
            raise MalformedPayloadError(msg, {"schema": self.schema.name})
        return value

    def get_bytes_list(self, name: str) -> list[bytes]:
        """Return a repeated length-delimited field (empty when absent)."""
        values = self._values.get(name, [])
        if not isinstance(values, list):
            values = [values]
        for value in values:
            if not isinstance(value, bytes):
                msg = f"bad {name}: expected byte sequence"
                raise MalformedPayloadError(msg, {"schema": self.schema.name})
        return list(values)


class WireDecoder:
    """Decodes a flat buffer against a :class:`FieldSchema`."""

    def __init__(self, schema: FieldSchema):
        """Initialize decoder for ``schema``."""
        self.schema = schema

    def decode(self, data: bytes) -> WireRecord:
        """Decode ``data`` into a :class:`WireRecord`.

        Raises:
            UnknownFieldError: Tag maps to a field outside the schema
            UnsupportedWireTypeError: Wire type is neither varint nor
                length-delimited
            BufferOverrunError: Input is truncated
        """
        collected: dict[str, list[WireValue]] = {}
        offset = 0
        end = len(data)

        while offset < end:
            tag, consumed = varint.decode(data, offset)
            offset += consumed

            spec = self.schema.by_number(tag >> 3)
            if spec is None:
                msg = f"unknown field - {tag}"
                raise UnknownFieldError(
                    msg, {"schema": self.schema.name, "field": tag >> 3}
                )

            values = collected.setdefault(spec.name, [])
            wire_type = tag & 7

            if wire_type == WireType.VARINT:
                value, consumed = varint.decode(data, offset)
                values.append(value)
                offset += consumed
            elif wire_type == WireType.LENGTH_DELIMITED:
                length, consumed = varint.decode(data, offset)
                offset += consumed
                if offset + length > end:
                    msg = "buffer overrun"
                    raise BufferOverrunError(
                        msg,
                        {"field": spec.name, "length": length, "available": end - offset},
                    )
                values.append(bytes(data[offset : offset + length]))
                offset += length
            else:
                msg = f"unsupported wire type - {wire_type}"
                raise UnsupportedWireTypeError(
                    msg, {"schema": self.schema.name, "field": spec.name}
                )

        result: dict[str, WireValue | list[WireValue]] = {}
        for name, values in collected.items():
            spec = self.schema.by_name(name)
            result[name] = values if spec.repeated else values[0]
        return WireRecord(self.schema, result)


class WireEncoder:
    """Writes fields of a :class:`FieldSchema` in caller-supplied order."""

    def __init__(self, schema: FieldSchema):
        """Initialize encoder for ``schema``."""
        self.schema = schema

    def encode(self, fields: Iterable[tuple[str, WireValue]]) -> bytes:
        """Encode ``(name, value)`` pairs.

        Raises:
            UnknownFieldError: Name is not in the schema
            UnsupportedWireTypeError: Field uses a wire type we cannot write
            TypeError: Value shape does not match the field's wire type
        """
        out = bytearray()
        for name, value in fields:
            spec = self.schema.by_name(name)
            out += varint.encode(spec.tag)
            if spec.wire_type == WireType.VARINT:
                if isinstance(value, (bytes, bytearray)):
                    msg = f"{name} expects an integer, got {type(value).__name__}"
                    raise TypeError(msg)
                out += varint.encode(value)
            elif spec.wire_type == WireType.LENGTH_DELIMITED:
                if not isinstance(value, (bytes, bytearray)):
                    msg = f"{name} expects bytes, got {type(value).__name__}"
                    raise TypeError(msg)
                out += varint.encode(len(value))
                out += value
            else:
                msg = f"unsupported wire type - {spec.wire_type}"
                raise UnsupportedWireTypeError(msg, {"schema": self.schema.name})
        return bytes(out)
