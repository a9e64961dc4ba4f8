"""Global error handling.

Every error leaves the API in the same JSON shape:

    {"error_code", "message", "user_message", "suggestion", "retry_allowed"}

Rejected rule conditions add ``errors``, the path-tagged validator messages,
so the editor can highlight the offending node.
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from txnrules.config import settings
from txnrules.core.errors import get_error
from txnrules.core.exceptions import InvalidConditionsError, RuleServiceError

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    error_code: str,
    message: str,
    user_message: str,
    suggestion: str,
    retry_allowed: bool,
    **extra: Any,
) -> JSONResponse:
    """Build the standard error body."""
    content = {
        "error_code": error_code,
        "message": message,
        "user_message": user_message,
        "suggestion": suggestion,
        "retry_allowed": retry_allowed,
        **extra,
    }
    return JSONResponse(status_code=status_code, content=content)


def _request_context(request: Request) -> dict[str, Any]:
    return {"path": request.url.path, "method": request.method}


async def handle_rule_service_error(
    request: Request, exc: RuleServiceError
) -> JSONResponse:
    """Render a rule service exception from the error catalog.

    Args:
        request: The incoming request
        exc: The rule service exception

    Returns:
        JSONResponse with the exception's HTTP status
    """
    error_info = get_error(exc.error_code)

    extra = {"error_code": exc.error_code, **_request_context(request)}
    if settings.debug:
        extra["details"] = exc.details
    logger.warning(f"Rule service error: {exc.error_code}", extra=extra)

    body_extra = {"errors": exc.errors} if isinstance(exc, InvalidConditionsError) else {}
    return error_response(
        exc.http_status,
        exc.error_code,
        error_info.get("message", str(exc)),
        error_info.get("user_message", "An error occurred"),
        error_info.get("suggestion", "Please try again later"),
        error_info.get("retry_allowed", False),
        **body_extra,
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic request validation errors (malformed request bodies).

    Condition trees that parse but fail rule validation go through
    ``handle_rule_service_error`` instead.
    """
    problems = [
        f"{'.'.join(str(part) for part in error.get('loc', []))}: {error.get('msg', 'Invalid value')}"
        for error in exc.errors()
    ]
    logger.warning(f"Validation error on {request.url.path}", extra=_request_context(request))

    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "VAL_001",
        " | ".join(problems),
        "Invalid input data",
        "Please check your input and try again",
        True,
    )


async def handle_integrity_error(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """Handle database integrity errors.

    Unique violations (e.g. two concurrent saves of the same rule name) become
    409; anything else is a 500.
    """
    # str(exc) includes SQL and bound parameters; never log it.
    logger.error(f"Database integrity error on {request.url.path}", extra=_request_context(request))

    error_msg = str(exc).lower()
    if "unique" in error_msg or "duplicate" in error_msg:
        return error_response(
            status.HTTP_409_CONFLICT,
            "DB_002",
            "Resource already exists",
            "This record already exists",
            "Please check if the record was already created",
            False,
        )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "DB_001",
        "Database operation failed",
        "A database error occurred",
        "Please try again later",
        True,
    )


async def handle_generic_error(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing their text."""
    extra = {"error_type": type(exc).__name__, **_request_context(request)}
    # Outside debug the traceback is dropped; it can contain merchant data.
    if settings.debug:
        logger.exception(f"Unexpected error on {request.url.path}", extra=extra)
    else:
        logger.error(f"Unexpected error on {request.url.path}", extra=extra)

    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "SYS_001",
        "Internal server error",
        "An unexpected error occurred",
        "Please try again later or contact support",
        True,
    )
