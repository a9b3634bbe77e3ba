"""
Typed API errors.

Every failure that can reach a client is raised as an ``ApiError`` subclass
and rendered by the boundary handlers in ``core.middleware.error_handling``.
"""

from typing import Any, Optional

from fastapi import status


class ApiError(Exception):
    """Base class for errors mapped to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[list[dict[str, Any]]] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


# ==================== Authentication (401) ==================== #

class AuthenticationError(ApiError):
    """Base exception for authentication errors."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_FAILED"
    default_message = "Authentication failed"


class MissingTokenError(AuthenticationError):
    """Raised when no bearer token accompanies the request."""

    error_code = "TOKEN_MISSING"
    default_message = "No authentication token provided"


class TokenInvalidError(AuthenticationError):
    """Raised when JWT token is malformed or its signature does not verify."""

    error_code = "TOKEN_INVALID"
    default_message = "Invalid authentication token"


class TokenExpiredError(AuthenticationError):
    """Raised when JWT token has expired."""

    error_code = "TOKEN_EXPIRED"
    default_message = "Authentication token has expired"


class UnknownOrInactiveSubjectError(AuthenticationError):
    """Raised when the token subject no longer exists or is deactivated."""

    error_code = "SUBJECT_UNAVAILABLE"
    default_message = "User account not found or inactive"


class InvalidCredentialsError(AuthenticationError):
    """Raised when an email/password pair does not match an active user."""

    error_code = "INVALID_CREDENTIALS"
    default_message = "Incorrect email or password"


# ==================== Authorization (403) ==================== #

class AuthorizationError(ApiError):
    """Raised when user doesn't have required permissions."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "ACCESS_DENIED"
    default_message = "Access denied"


class InsufficientRoleError(AuthorizationError):
    error_code = "INSUFFICIENT_ROLE"
    default_message = "Your role is not allowed to perform this action"


class InsufficientPermissionsError(AuthorizationError):
    error_code = "INSUFFICIENT_PERMISSIONS"
    default_message = "Insufficient permissions"


class OwnershipDeniedError(AuthorizationError):
    error_code = "OWNERSHIP_DENIED"
    default_message = "You can only access your own resources"


# ==================== Request errors ==================== #

class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_message = "Resource conflict"


class ValidationFailedError(ApiError):
    """Raised for rejected input or an illegal state change."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    default_message = "Validation failed"
