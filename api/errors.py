"""
API Error Handling

Maps the settlement error taxonomy onto HTTP status codes with a single
error envelope: {"ok": false, "error": {code, message, details}}.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.models.responses import ErrorDetail, ErrorResponse
from core.schemas.errors import (
    AuthorizationError,
    CanonicalizationException,
    ErrorCodes,
    NotFoundError,
    SettlementException,
    StateError,
    SubmissionError,
    TransferError,
    ValidationError,
)


logger = logging.getLogger(__name__)


# Checked in order; the first matching class wins
_STATUS_BY_EXCEPTION: list[tuple[type[SettlementException], int]] = [
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ValidationError, 422),
    (CanonicalizationException, 422),
    (StateError, 409),
    (TransferError, 402),
    (SubmissionError, 503),
]


def status_for(exc: SettlementException) -> int:
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return 400


def _envelope(code: str, message: str, details: dict) -> dict:
    return ErrorResponse(
        ok=False,
        error=ErrorDetail(code=code, message=message, details=details),
    ).model_dump()


async def settlement_error_handler(request: Request, exc: SettlementException) -> JSONResponse:
    """Handle domain exceptions raised by the ledger."""
    status_code = status_for(exc)
    logger.debug(f"{request.method} {request.url.path} rejected ({status_code}): {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=_envelope(exc.code, exc.message, exc.details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies use the same envelope as domain validation errors."""
    errors = [
        {"loc": [str(part) for part in e.get("loc", ())], "msg": e.get("msg", "")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=_envelope(ErrorCodes.VALIDATION_FAILED, "Invalid request", {"errors": errors}),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
    return JSONResponse(
        status_code=500,
        content=_envelope(
            "INTERNAL_ERROR",
            "An unexpected error occurred",
            {"type": type(exc).__name__},
        ),
    )
