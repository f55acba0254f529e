"""Exception hierarchy for ipfsdag.

Every failure raised while decoding, verifying, fetching or storing blocks
derives from :class:`IpfsDagError`, so callers can treat a resolve or store
call as all-or-nothing with a single ``except`` clause.
"""

from __future__ import annotations

from typing import Any


class IpfsDagError(Exception):
    """Base exception for all ipfsdag errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize ipfsdag error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class DecodeError(IpfsDagError):
    """Wire format and schema decoding errors."""


class BufferOverrunError(DecodeError):
    """Input ended before a varint or length-delimited field was complete."""


class UnknownFieldError(DecodeError):
    """Field number is not part of the schema."""


class UnsupportedWireTypeError(DecodeError):
    """Wire type other than varint or length-delimited."""


class UnsupportedPayloadTypeError(DecodeError):
    """UnixFS payload type other than File."""


class MalformedPayloadError(DecodeError):
    """Decoded field value has the wrong shape."""


class MalformedNodeError(DecodeError):
    """DAG node carries neither links nor data."""


class UnsupportedHashError(DecodeError):
    """Multihash is not a 34-byte SHA-256 multihash."""


class ValidationError(IpfsDagError):
    """Data validation errors."""


class HashMismatchError(ValidationError):
    """Block content does not match the digest of its identifier."""


class ConfigurationError(ValidationError):
    """Configuration validation errors."""


class NetworkError(IpfsDagError):
    """Block store transport errors."""


class BlockFetchError(NetworkError):
    """Block could not be fetched."""


class BlockNotFoundError(BlockFetchError):
    """Block store does not hold the requested block."""


class BlockUploadError(NetworkError):
    """Block could not be uploaded."""
