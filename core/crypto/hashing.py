"""
Hashing Utilities

Digest primitives shared by the commitment scheme, the ledger and the oracle.

This module provides:
- SHA-256 over raw bytes (the single hash function of the protocol)
- Canonical hashing for structured data (engagement snapshots, manifests)
- Hex encoding/decoding with 0x prefix for digests on the wire

Determinism Notes:
- Raw bytes are hashed exactly as given
- Structured data goes through dumps_canonical first
"""
from __future__ import annotations

import hashlib
import string
from typing import Any

from core.schemas.canonical import dumps_canonical


# Width of every digest in the protocol (roots, leaves, proof siblings)
DIGEST_SIZE: int = 32

# Sentinel stored in a campaign until results are published
ZERO_DIGEST: bytes = b"\x00" * DIGEST_SIZE


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def hash_canonical(obj: Any) -> bytes:
    """
    Hash an object using canonical JSON serialization.

    Rule: digest = sha256(dumps_canonical(obj).encode("utf-8"))

    Used to fingerprint an engagement snapshot so that an auditor can
    confirm a published root was computed from the data they hold.

    Raises:
        CanonicalizationException: If the object cannot be serialized
    """
    canonical_json = dumps_canonical(obj)
    return sha256(canonical_json.encode("utf-8"))


def hash_concat(left: bytes, right: bytes) -> bytes:
    """Hash the concatenation of two byte sequences: sha256(left + right)."""
    return sha256(left + right)


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not isinstance(hex_string, str) or not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {str(hex_string)[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    if not all(c in string.hexdigits for c in hex_content):
        raise ValueError(f"Invalid hex characters in string: {hex_string[:10]!r}...")

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def digest_from_hex(hex_string: str) -> bytes:
    """
    Decode a 0x-prefixed digest and check it is exactly DIGEST_SIZE bytes.

    Raises:
        ValueError: On malformed hex or wrong length
    """
    data = from_hex(hex_string)
    if len(data) != DIGEST_SIZE:
        raise ValueError(
            f"Digest must be {DIGEST_SIZE} bytes, got {len(data)}"
        )
    return data


__all__ = [
    "DIGEST_SIZE",
    "ZERO_DIGEST",
    "sha256",
    "hash_canonical",
    "hash_concat",
    "to_hex",
    "from_hex",
    "digest_from_hex",
]
