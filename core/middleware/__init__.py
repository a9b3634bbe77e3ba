"""
Core middleware package.

- Error handling boundary with sensitive data sanitization
- Structured logging with PII masking
- Bearer token authentication
- Role, permission and ownership authorization
"""

from core.middleware.error_handling import (
    build_error_response,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
    get_logger,
)

from core.middleware.authentication import (
    AuthenticationMiddleware,
    get_current_principal,
    get_optional_principal,
)

from core.middleware.authorization import (
    OwnedResource,
    Permission,
    check_ownership,
    require_permission,
    require_permissions,
    require_role,
    require_roles,
)

__all__ = [
    # Error handling
    "build_error_response",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    "get_logger",
    # Authentication
    "AuthenticationMiddleware",
    "get_current_principal",
    "get_optional_principal",
    # Authorization
    "OwnedResource",
    "Permission",
    "check_ownership",
    "require_permission",
    "require_permissions",
    "require_role",
    "require_roles",
]
