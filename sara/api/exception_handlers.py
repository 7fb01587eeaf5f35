"""Global exception handlers that map domain exceptions to HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from sara.errors import (
    ALREADY_SIGNED,
    DUPLICATE_RESOURCE,
    FORBIDDEN,
    INVALID_STATE,
    NOT_FOUND,
    OUT_OF_ORDER,
    TRANSACTION_CONFLICT,
    UNAUTHORIZED,
    VALIDATION_ERROR,
    AlreadySignedError,
    DomainValidationError,
    DuplicateResourceError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    OutOfOrderError,
    TransactionConflictError,
    UnauthorizedError,
)
from sara.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(
    status_code: int, detail: str, code: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    """Return a standardized error response with the message and machine-readable code."""
    body = ErrorResponse(error=detail, detail=detail, code=code)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


def domain_validation_error_handler(
    _request: Request, exc: DomainValidationError
) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        str(exc),
        VALIDATION_ERROR,
    )


def duplicate_resource_error_handler(
    _request: Request, exc: DuplicateResourceError
) -> JSONResponse:
    return _error_response(
        status.HTTP_409_CONFLICT,
        str(exc),
        DUPLICATE_RESOURCE,
    )


def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(
        status.HTTP_404_NOT_FOUND,
        str(exc),
        NOT_FOUND,
    )


def forbidden_error_handler(_request: Request, exc: ForbiddenError) -> JSONResponse:
    return _error_response(
        status.HTTP_403_FORBIDDEN,
        str(exc),
        FORBIDDEN,
    )


def unauthorized_error_handler(_request: Request, exc: UnauthorizedError) -> JSONResponse:
    return _error_response(
        status.HTTP_401_UNAUTHORIZED,
        str(exc),
        UNAUTHORIZED,
        headers={"WWW-Authenticate": "Bearer"},
    )


def invalid_state_error_handler(_request: Request, exc: InvalidStateError) -> JSONResponse:
    return _error_response(
        status.HTTP_409_CONFLICT,
        str(exc),
        INVALID_STATE,
    )


def out_of_order_error_handler(_request: Request, exc: OutOfOrderError) -> JSONResponse:
    return _error_response(
        status.HTTP_409_CONFLICT,
        str(exc),
        OUT_OF_ORDER,
    )


def already_signed_error_handler(_request: Request, exc: AlreadySignedError) -> JSONResponse:
    return _error_response(
        status.HTTP_409_CONFLICT,
        str(exc),
        ALREADY_SIGNED,
    )


def transaction_conflict_error_handler(
    _request: Request, exc: TransactionConflictError
) -> JSONResponse:
    logger.error("Transaction conflict: %s", exc)
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        str(exc),
        TRANSACTION_CONFLICT,
    )


def register_exception_handlers(app):
    """Register domain exception handlers on the FastAPI app."""
    app.add_exception_handler(DomainValidationError, domain_validation_error_handler)
    app.add_exception_handler(DuplicateResourceError, duplicate_resource_error_handler)
    app.add_exception_handler(ForbiddenError, forbidden_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_error_handler)
    app.add_exception_handler(InvalidStateError, invalid_state_error_handler)
    app.add_exception_handler(OutOfOrderError, out_of_order_error_handler)
    app.add_exception_handler(AlreadySignedError, already_signed_error_handler)
    app.add_exception_handler(TransactionConflictError, transaction_conflict_error_handler)
