"""
FastAPI application initialization and configuration.

Run with ``uvicorn api.main:create_app --factory``.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health
from api.routes.v1 import applications, auth, companies, jobs, users
from api.services.auth import CredentialService
from core.config import Settings, get_settings
from core.middleware import (
    AuthenticationMiddleware,
    StructuredLoggingMiddleware,
    setup_error_handlers,
    setup_logging,
)
from database.engine import Database

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (defaults to the environment)
        database: Database to use (defaults to one built from settings)
        configure_logging: Install the root log handler
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    database = database or Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan events."""
        logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
        yield
        logger.info(f"Shutting down {settings.app_name}")
        await database.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Role-aware HR portal: jobs, applications and their status history",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.credential_service = CredentialService(database, settings)

    setup_error_handlers(app)

    # Middleware executes in reverse order of addition
    # 1. Authentication (innermost - resolves the principal before routing)
    app.add_middleware(AuthenticationMiddleware, api_prefix=settings.api_v1_prefix)

    # 2. Structured logging (logs all requests/responses with the principal id)
    app.add_middleware(
        StructuredLoggingMiddleware,
        log_request_body=settings.log_request_body,
        max_body_size=settings.log_max_body_size,
    )

    # 3. CORS (outermost - answers preflight requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])

    for router in (
        auth.router,
        applications.router,
        jobs.router,
        companies.router,
        users.router,
    ):
        app.include_router(router, prefix=settings.api_v1_prefix)

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
