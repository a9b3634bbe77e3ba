"""
Error handling with security-compliant error sanitization.

``setup_error_handlers`` registers the single boundary that turns typed
``ApiError`` exceptions, request validation failures, database errors and
anything unexpected into the JSON error envelope::

    {"error": "TOKEN_EXPIRED", "message": "...", "details": [...],
     "path": "/api/v1/...", "method": "GET", "timestamp": "..."}
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import ApiError

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    # Must run before the token and authorization patterns
    re.compile(r'bearer\s+[A-Za-z0-9\-_.~+/]+=*', re.IGNORECASE),
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+(?:bearer\s+)?[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+(?:bearer\s+)?[^"\s,}]+', re.IGNORECASE),
]

# Request body fields whose rejected value is never echoed back
SENSITIVE_FIELDS = {"password", "new_password", "current_password", "token"}

HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    path: str,
    method: str,
    details: Optional[list[dict[str, Any]]] = None,
) -> JSONResponse:
    """
    Render the error envelope.

    Shared by the exception handlers and the authentication middleware, which
    answers before routing happens.
    """
    content: dict[str, Any] = {
        "error": error_code,
        "message": message,
        "path": path,
        "method": method,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        content["details"] = details

    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _principal_id(request: Request) -> Optional[int]:
    principal = request.scope.get("principal")
    return principal.id if principal is not None else None


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """
    Format validation errors as field/message/value entries.

    Args:
        exc: The validation exception

    Returns:
        List of formatted validation errors
    """
    errors = []
    for error in exc.errors():
        # Drop the "body"/"query" location prefix
        loc = [str(part) for part in error["loc"]]
        if len(loc) > 1 and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        field = ".".join(loc)

        value = error.get("input")
        if error.get("type") == "missing":
            value = None
        elif loc and loc[-1] in SENSITIVE_FIELDS:
            value = "[REDACTED]"
        elif not isinstance(value, (str, int, float, bool, type(None))):
            value = None

        errors.append(
            {
                "field": field,
                "message": sanitize_error_message(error["msg"]),
                "value": value,
            }
        )
    return errors


def setup_error_handlers(app: FastAPI) -> None:
    """
    Set up exception handlers for FastAPI application.

    4xx responses are logged at WARNING and 5xx at ERROR, with the acting
    principal id when the request was authenticated.

    Args:
        app: FastAPI application instance
    """

    def is_production() -> bool:
        settings = getattr(app.state, "settings", None)
        return bool(settings and settings.is_production)

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        """Handle typed API errors."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"{exc.error_code}: {request.method} {request.url.path} - "
            f"{sanitize_error_message(exc.message)}",
            extra={"principal_id": _principal_id(request), "status_code": exc.status_code},
        )
        return build_error_response(
            status_code=exc.status_code,
            error_code=exc.error_code,
            message=exc.message,
            path=request.url.path,
            method=request.method,
            details=exc.details,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        details = format_validation_errors(exc)
        logger.warning(
            f"Validation error: {request.method} {request.url.path} - "
            f"{len(details)} invalid field(s)",
            extra={"principal_id": _principal_id(request), "status_code": 400},
        )
        return build_error_response(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="VALIDATION_ERROR",
            message="Request validation failed",
            path=request.url.path,
            method=request.method,
            details=details,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions (unknown routes, wrong methods)."""
        logger.warning(
            f"HTTP exception: {request.method} {request.url.path} - Status: {exc.status_code}",
            extra={"principal_id": _principal_id(request), "status_code": exc.status_code},
        )
        return build_error_response(
            status_code=exc.status_code,
            error_code=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            message=sanitize_error_message(exc.detail),
            path=request.url.path,
            method=request.method,
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        """Handle constraint violations that no service translated."""
        logger.warning(
            f"Database integrity error: {request.method} {request.url.path}",
            extra={"principal_id": _principal_id(request), "status_code": 409},
        )
        return build_error_response(
            status_code=status.HTTP_409_CONFLICT,
            error_code="CONFLICT",
            message="Database integrity constraint violated",
            path=request.url.path,
            method=request.method,
        )

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError):
        """Handle an unreachable or failing database."""
        logger.error(
            f"Database operational error: {request.method} {request.url.path}",
            exc_info=exc,
            extra={"principal_id": _principal_id(request), "status_code": 503},
        )
        return build_error_response(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="DATABASE_UNAVAILABLE",
            message="Database service temporarily unavailable",
            path=request.url.path,
            method=request.method,
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        """Handle other database errors."""
        logger.error(
            f"SQLAlchemy error: {request.method} {request.url.path}",
            exc_info=exc,
            extra={"principal_id": _principal_id(request), "status_code": 500},
        )
        message = "A database error occurred"
        if not is_production():
            message = f"{message}: {sanitize_error_message(str(exc))}"
        return build_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="DATABASE_ERROR",
            message=message,
            path=request.url.path,
            method=request.method,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=exc,
            extra={"principal_id": _principal_id(request), "status_code": 500},
        )
        message = "An unexpected error occurred"
        if not is_production():
            message = f"{type(exc).__name__}: {sanitize_error_message(str(exc))}"
        return build_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_SERVER_ERROR",
            message=message,
            path=request.url.path,
            method=request.method,
        )
