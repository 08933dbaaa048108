"""Custom exception handlers for consistent error responses.

Provides standardized error formatting, security-safe error messages,
and proper logging for debugging.

Ledger operations return LedgerResult values; routers turn a failed
result into a LedgerRejection via `ensure_ok()`, and the handler below
renders it with the ledger's numeric code in `details.ledger_code`.
"""

import logging
import traceback
from typing import TypeVar, Union

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.ledger.results import LedgerError, LedgerResult
from app.ledger.service import LedgerNotInitialisedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChemTraceException(Exception):
    """Base exception for ChemTrace application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


# ── Ledger rejections ────────────────────────────────────────

LEDGER_HTTP_STATUS: dict[LedgerError, int] = {
    LedgerError.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    LedgerError.INVALID_BATCH: status.HTTP_404_NOT_FOUND,
    LedgerError.INVALID_STAGE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    LedgerError.PAUSED: status.HTTP_503_SERVICE_UNAVAILABLE,
    LedgerError.ZERO_ADDRESS: status.HTTP_422_UNPROCESSABLE_ENTITY,
    LedgerError.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
}


class LedgerRejection(ChemTraceException):
    """A ledger operation returned an error result."""

    def __init__(self, error: LedgerError):
        self.ledger_error = error
        super().__init__(
            message=error.message,
            status_code=LEDGER_HTTP_STATUS[error],
            error_code=error.name,
            details={"ledger_code": int(error), "retryable": error.retryable},
        )


def ensure_ok(result: LedgerResult[T]) -> T:
    """Return the success value, or raise LedgerRejection for the error."""
    if result.is_error:
        raise LedgerRejection(result.error)
    return result.value


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: Union[dict, list, None] = None,
) -> JSONResponse:
    """Create standardized error response.

    Format:
    {
        "error": {
            "code": "ERROR_CODE",
            "message": "Human-readable error message",
            "details": {...}  // Optional additional details
        }
    }
    """
    content = {
        "error": {
            "code": error_code,
            "message": message,
        }
    }

    if details:
        content["error"]["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content,
    )


async def chemtrace_exception_handler(
    request: Request,
    exc: ChemTraceException,
) -> JSONResponse:
    """Handle custom ChemTrace exceptions (including ledger rejections)."""
    logger.warning(
        f"ChemTrace exception: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
    )


async def ledger_not_initialised_handler(
    request: Request,
    exc: LedgerNotInitialisedError,
) -> JSONResponse:
    """The ledger_state row is missing — the service was never brought up."""
    logger.error(
        f"Ledger not initialised on {request.url.path}",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    return create_error_response(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        message="Ledger has not been initialised. Run `python -m app.cli init-ledger`.",
        error_code="LEDGER_NOT_INITIALISED",
    )


async def http_exception_handler(
    request: Request,
    exc: Union[HTTPException, StarletteHTTPException],
) -> JSONResponse:
    """Handle FastAPI HTTP exceptions."""
    # Log non-4xx errors
    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code}: {exc.detail}",
            extra={
                "path": request.url.path,
                "method": request.method,
            },
        )

    response = create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=f"HTTP_{exc.status_code}",
    )
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError],
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    logger.warning(
        f"Validation error on {request.url.path}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": exc.errors(),
        },
    )

    # Format validation errors for better readability
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Validation error",
        error_code="VALIDATION_ERROR",
        details={"errors": errors},
    )


async def database_exception_handler(
    request: Request,
    exc: IntegrityError,
) -> JSONResponse:
    """Handle database integrity errors (duplicate history index, constraint checks)."""
    logger.error(
        f"Database integrity error on {request.url.path}: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    # Extract meaningful error message
    error_msg = str(exc.orig) if hasattr(exc, "orig") else str(exc)

    # Check for common integrity violations
    if "unique" in error_msg.lower() or "primary key" in error_msg.lower():
        message = "A record with this key already exists"
        error_code = "DUPLICATE_RECORD"
    elif "foreign key" in error_msg.lower():
        message = "Referenced record does not exist"
        error_code = "FOREIGN_KEY_VIOLATION"
    elif "check" in error_msg.lower():
        message = "Value violates a ledger constraint"
        error_code = "CHECK_VIOLATION"
    else:
        message = "Database constraint violation"
        error_code = "INTEGRITY_ERROR"

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message=message,
        error_code=error_code,
    )


async def operational_exception_handler(
    request: Request,
    exc: OperationalError,
) -> JSONResponse:
    """Handle database operational errors (connection issues, etc.)."""
    logger.error(
        f"Database operational error on {request.url.path}: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    return create_error_response(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        message="Database temporarily unavailable. Please try again.",
        error_code="DATABASE_UNAVAILABLE",
    )


async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    # Log full traceback for debugging
    logger.error(
        f"Unhandled exception on {request.url.path}: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "traceback": traceback.format_exc(),
        },
        exc_info=True,
    )

    # Return generic error to client (don't expose internal details)
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred. Please try again later.",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app):
    """Register all custom exception handlers with FastAPI app."""
    app.add_exception_handler(ChemTraceException, chemtrace_exception_handler)
    app.add_exception_handler(LedgerNotInitialisedError, ledger_not_initialised_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, database_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
