"""
Principal Identities

Brands, recipients, the owner, the oracle and token contracts are all
identified by 20-byte addresses written as 0x-prefixed hex. Addresses are
compared case-insensitively; the canonical form is lowercase.
"""
from __future__ import annotations

import re

ADDRESS_SIZE: int = 20

ZERO_ADDRESS: str = "0x" + "00" * ADDRESS_SIZE

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")


def is_address(value: object) -> bool:
    """Check whether value is a well-formed 0x-prefixed 20-byte address."""
    return isinstance(value, str) and _ADDRESS_RE.fullmatch(value) is not None


def normalize_address(value: str) -> str:
    """
    Return the canonical lowercase form of an address.

    Raises:
        ValueError: If value is not a 0x-prefixed 40 hex character string
    """
    if not is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return value.lower()


def is_zero_address(value: str) -> bool:
    return normalize_address(value) == ZERO_ADDRESS


def address_to_bytes(value: str) -> bytes:
    """Fixed-width 20-byte encoding used in leaf hashing."""
    return bytes.fromhex(normalize_address(value)[2:])


__all__ = [
    "ADDRESS_SIZE",
    "ZERO_ADDRESS",
    "is_address",
    "normalize_address",
    "is_zero_address",
    "address_to_bytes",
]
