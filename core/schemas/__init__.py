"""
Schemas & Canonicalization

Error taxonomy and canonical serialization. Campaign and event models live
in core.schemas.campaign and core.schemas.events; they are not re-exported
here because they depend on core.crypto, which itself imports this package.
"""

from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
)

from .errors import (
    AuthorizationError,
    CanonicalizationException,
    ErrorCodes,
    NotFoundError,
    ProofError,
    SettlementError,
    SettlementException,
    StateError,
    SubmissionError,
    TransferError,
    ValidationError,
)


__all__ = [
    # Canonical serialization
    "CANONICAL_JSON_SEPARATORS",
    "canonicalize_value",
    "dumps_canonical",
    "ensure_utc",
    "format_datetime_canonical",
    # Errors
    "ErrorCodes",
    "SettlementError",
    "SettlementException",
    "AuthorizationError",
    "NotFoundError",
    "ValidationError",
    "ProofError",
    "StateError",
    "TransferError",
    "CanonicalizationException",
    "SubmissionError",
]
