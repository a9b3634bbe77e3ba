"""
Authentication middleware for verifying user identity.

This middleware:
1. Extracts the bearer token from the Authorization header
2. Resolves it to a ``Principal`` through the application's credential
   service, which re-reads the user and role from the database every time
3. Stores the principal in the request scope for route dependencies
4. Answers 401 itself, in the shared error envelope, when a protected
   endpoint is called without a valid token
"""

import logging
from typing import Callable, Optional

from fastapi import Request

from core.exceptions import AuthenticationError, MissingTokenError
from core.middleware.error_handling import build_error_response
from core.principal import Principal

logger = logging.getLogger(__name__)

# Endpoints that never require authentication
PUBLIC_ENDPOINTS = [
    "/",
    "/health",
    "/ready",
    "/docs",
    "/docs/oauth2-redirect",
    "/redoc",
    "/openapi.json",
]
# Same, relative to the API prefix
PUBLIC_API_ENDPOINTS = [
    "/auth/login",
    "/auth/signup",
]

# (method, path prefix) pairs that work with or without a token
OPTIONAL_AUTH_API_ENDPOINTS = [
    ("GET", "/jobs"),
]


class AuthenticationMiddleware:
    """
    Authentication middleware that validates bearer tokens.

    The credential service is looked up on ``app.state.credential_service``
    so the middleware shares the application's database.
    """

    def __init__(self, app: Callable, api_prefix: str = "/api/v1"):
        """
        Initialize authentication middleware.

        Args:
            app: ASGI application
            api_prefix: Prefix under which the versioned API is mounted
        """
        self.app = app
        self.api_prefix = api_prefix.rstrip("/")

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        path = request.url.path
        method = request.method

        if method == "OPTIONS" or self._is_public_endpoint(path):
            await self.app(scope, receive, send)
            return

        credential_service = scope["app"].state.credential_service
        token = self._extract_token(request)

        if self._is_optional_endpoint(method, path):
            scope["principal"] = await credential_service.optional_resolve_principal(token)
            await self.app(scope, receive, send)
            return

        try:
            scope["principal"] = await credential_service.resolve_principal(token)
        except AuthenticationError as exc:
            logger.warning(f"Authentication failed: {method} {path} - {exc.error_code}")
            response = build_error_response(
                status_code=exc.status_code,
                error_code=exc.error_code,
                message=exc.message,
                path=path,
                method=method,
            )
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)

    def _is_public_endpoint(self, path: str) -> bool:
        """
        Check if endpoint is public (no auth required).

        Args:
            path: Request path

        Returns:
            True if endpoint is public
        """
        path = path.rstrip("/") or "/"
        if path in PUBLIC_ENDPOINTS:
            return True
        return any(path == f"{self.api_prefix}{endpoint}" for endpoint in PUBLIC_API_ENDPOINTS)

    def _is_optional_endpoint(self, method: str, path: str) -> bool:
        for allowed_method, prefix in OPTIONAL_AUTH_API_ENDPOINTS:
            full_prefix = f"{self.api_prefix}{prefix}"
            if method == allowed_method and (
                path == full_prefix or path.startswith(f"{full_prefix}/")
            ):
                return True
        return False

    def _extract_token(self, request: Request) -> Optional[str]:
        """
        Extract JWT token from Authorization header.

        Args:
            request: FastAPI request

        Returns:
            JWT token or None
        """
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return None

        scheme, _, credentials = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not credentials.strip():
            return None
        return credentials.strip()


def get_current_principal(request: Request) -> Principal:
    """
    Get the authenticated principal from the request scope.

    Args:
        request: FastAPI request

    Returns:
        Authenticated principal

    Raises:
        MissingTokenError: If the request was not authenticated
    """
    principal = request.scope.get("principal")
    if principal is None:
        raise MissingTokenError("Authentication required")
    return principal


def get_optional_principal(request: Request) -> Optional[Principal]:
    """Get the principal if the request carried a valid token, else ``None``."""
    return request.scope.get("principal")
