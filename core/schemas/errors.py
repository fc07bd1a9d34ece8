"""
Error Taxonomy

Standard error taxonomy for the settlement protocol.
Defines Python exceptions for control flow and a Pydantic model for
structured error communication (API responses, CLI JSON output).

Every ledger error aborts the enclosing operation with no partial state
change and is surfaced verbatim to the caller.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Caller lacks the owner/brand/oracle capability
    UNAUTHORIZED = "UNAUTHORIZED"

    # Unknown campaign id
    CAMPAIGN_NOT_FOUND = "CAMPAIGN_NOT_FOUND"

    # Malformed or out-of-range input
    VALIDATION_FAILED = "VALIDATION_FAILED"
    MERKLE_PROOF_INVALID = "MERKLE_PROOF_INVALID"

    # Operation invalid for the lifecycle state
    INVALID_STATE = "INVALID_STATE"

    # Escrow/payout asset movement failed
    TRANSFER_FAILED = "TRANSFER_FAILED"

    # Serialization
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"

    # Oracle submission
    SUBMISSION_FAILED = "SUBMISSION_FAILED"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class SettlementError(BaseModel):
    """
    Serializable form of a settlement exception.

    Used in API error bodies and CLI JSON output; can be turned back into
    the matching exception class with to_exception().
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.INVALID_STATE],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "SettlementException":
        """Rebuild the most specific exception class for this code."""
        exc_cls = _EXCEPTIONS_BY_CODE.get(self.code, SettlementException)
        exc = exc_cls.__new__(exc_cls)
        SettlementException.__init__(
            exc,
            message=self.message,
            code=self.code,
            details=self.details,
            retryable=self.retryable,
        )
        return exc


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class SettlementException(Exception):
    """
    Base exception for all settlement protocol errors.

    Carries a stable code and structured details so callers can tell the
    specific reason apart without parsing the message.
    """

    default_code: str = "SETTLEMENT_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> SettlementError:
        """Convert this exception to a SettlementError model."""
        return SettlementError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class AuthorizationError(SettlementException):
    """Caller lacks the required principal role (owner, brand or oracle)."""

    default_code = ErrorCodes.UNAUTHORIZED

    def __init__(
        self,
        message: str,
        caller: str | None = None,
        required: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if caller:
            full_details["caller"] = caller
        if required:
            full_details["required"] = required
        super().__init__(message=message, details=full_details)


class NotFoundError(SettlementException):
    """Reference to an unknown campaign id."""

    default_code = ErrorCodes.CAMPAIGN_NOT_FOUND

    def __init__(
        self,
        message: str = "Campaign does not exist",
        campaign_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if campaign_id is not None:
            full_details["campaign_id"] = campaign_id
        super().__init__(message=message, details=full_details)


class ValidationError(SettlementException):
    """Malformed or out-of-range input."""

    default_code = ErrorCodes.VALIDATION_FAILED

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(message=message, details=full_details)


class ProofError(ValidationError):
    """Supplied membership proof does not verify against the stored root."""

    default_code = ErrorCodes.MERKLE_PROOF_INVALID

    def __init__(
        self,
        message: str = "Invalid Merkle proof",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, details=details)


class StateError(SettlementException):
    """Operation invalid for the campaign's current lifecycle state."""

    default_code = ErrorCodes.INVALID_STATE

    def __init__(
        self,
        message: str,
        campaign_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if campaign_id is not None:
            full_details["campaign_id"] = campaign_id
        super().__init__(message=message, details=full_details)


class TransferError(SettlementException):
    """Underlying escrow or payout token movement failed."""

    default_code = ErrorCodes.TRANSFER_FAILED

    def __init__(
        self,
        message: str,
        token: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if token:
            full_details["token"] = token
        super().__init__(message=message, details=full_details)


class CanonicalizationException(SettlementException):
    """Raised when canonical serialization fails."""

    default_code = ErrorCodes.CANONICALIZATION_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, details=details)


class SubmissionError(SettlementException):
    """
    Raised by the oracle when results could not be submitted.

    retryable=True marks transient failures (network, congestion,
    server errors); anything else is permanent and needs an operator.
    """

    default_code = ErrorCodes.SUBMISSION_FAILED

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, details=details, retryable=retryable)


_EXCEPTIONS_BY_CODE: dict[str, type[SettlementException]] = {
    ErrorCodes.UNAUTHORIZED: AuthorizationError,
    ErrorCodes.CAMPAIGN_NOT_FOUND: NotFoundError,
    ErrorCodes.VALIDATION_FAILED: ValidationError,
    ErrorCodes.MERKLE_PROOF_INVALID: ProofError,
    ErrorCodes.INVALID_STATE: StateError,
    ErrorCodes.TRANSFER_FAILED: TransferError,
    ErrorCodes.CANONICALIZATION_ERROR: CanonicalizationException,
    ErrorCodes.SUBMISSION_FAILED: SubmissionError,
}
