"""Multihash identifiers and block integrity checks.

Identifiers are CIDv0 strings: the base58btc encoding of a 34-byte
multihash ``0x12 0x20 <sha2-256 digest>``. That is the only hash shape
supported.
"""

from __future__ import annotations

import hashlib
import logging

from multiformats import CID

from ipfsdag.exceptions import HashMismatchError, UnsupportedHashError

logger = logging.getLogger(__name__)

SHA2_256_CODE = 0x12
SHA2_256_SIZE = 32
MULTIHASH_LENGTH = 2 + SHA2_256_SIZE


def check_multihash(multihash: bytes) -> bytes:
    """Validate a SHA-256 multihash and return its raw digest.

    Raises:
        UnsupportedHashError: Wrong length, hash function or declared size
    """
    if len(multihash) != MULTIHASH_LENGTH:
        msg = f"unsupported hash {multihash.hex()}"
        raise UnsupportedHashError(msg, {"length": len(multihash)})
    if multihash[0] != SHA2_256_CODE or multihash[1] != SHA2_256_SIZE:
        msg = f"unsupported hash {multihash.hex()}"
        raise UnsupportedHashError(
            msg, {"function": multihash[0], "size": multihash[1]}
        )
    return multihash[2:]


def identifier_from_multihash(multihash: bytes) -> str:
    """Return the base58 identifier of a 34-byte multihash."""
    check_multihash(multihash)
    return str(CID("base58btc", 0, "dag-pb", bytes(multihash)))


def multihash_from_identifier(identifier: str) -> bytes:
    """Return the multihash bytes behind a base58 identifier.

    Raises:
        UnsupportedHashError: Identifier is not a CIDv0 SHA-256 multihash
    """
    try:
        cid = CID.decode(identifier)
    except (LookupError, TypeError, ValueError) as e:
        msg = f"invalid identifier {identifier!r}"
        raise UnsupportedHashError(msg) from e
    if cid.version != 0:
        msg = f"unsupported identifier version {cid.version}"
        raise UnsupportedHashError(msg, {"identifier": identifier})
    multihash = bytes(cid.digest)
    check_multihash(multihash)
    return multihash


def multihash_for_block(block: bytes) -> bytes:
    """Return the SHA-256 multihash of ``block``."""
    return bytes([SHA2_256_CODE, SHA2_256_SIZE]) + hashlib.sha256(block).digest()


def identifier_for_block(block: bytes) -> str:
    """Return the identifier that addresses ``block``."""
    return identifier_from_multihash(multihash_for_block(block))


class IntegrityVerifier:
    """Checks fetched blocks against the digest embedded in their identifier."""

    def check(self, block: bytes, identifier: str) -> None:
        """Verify that ``block`` hashes to ``identifier``.

        Must be called before ``block`` is decoded.

        Raises:
            HashMismatchError: Digests differ
            UnsupportedHashError: Identifier is not a SHA-256 CIDv0
        """
        expected = check_multihash(multihash_from_identifier(identifier))
        actual = hashlib.sha256(block).digest()
        if actual != expected:
            msg = "hash mismatch"
            raise HashMismatchError(
                msg,
                {
                    "identifier": identifier,
                    "expected": expected.hex(),
                    "actual": actual.hex(),
                },
            )
        logger.debug("Verified block %s (%d bytes)", identifier, len(block))
