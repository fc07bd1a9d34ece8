"""
Core cryptographic utilities.

Hashing primitives and the address format used for every principal.
"""
from .hashing import (
    DIGEST_SIZE,
    ZERO_DIGEST,
    sha256,
    hash_canonical,
    hash_concat,
    to_hex,
    from_hex,
    digest_from_hex,
)
from .addresses import (
    ADDRESS_SIZE,
    ZERO_ADDRESS,
    is_address,
    normalize_address,
    is_zero_address,
    address_to_bytes,
)

__all__ = [
    "DIGEST_SIZE",
    "ZERO_DIGEST",
    "sha256",
    "hash_canonical",
    "hash_concat",
    "to_hex",
    "from_hex",
    "digest_from_hex",
    "ADDRESS_SIZE",
    "ZERO_ADDRESS",
    "is_address",
    "normalize_address",
    "is_zero_address",
    "address_to_bytes",
]
