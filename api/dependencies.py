"""FastAPI dependencies for dependency injection."""

from fastapi import Query, Request

from api.schemas.common import PaginationParams
from api.services.applications import ApplicationService
from api.services.auth import CredentialService
from api.services.companies import CompanyService
from api.services.jobs import JobService
from core.config import Settings
from database.engine import Database


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credential_service


def get_application_service(request: Request) -> ApplicationService:
    return ApplicationService(get_database(request))


def get_job_service(request: Request) -> JobService:
    return JobService(get_database(request))


def get_company_service(request: Request) -> CompanyService:
    return CompanyService(get_database(request))


def get_pagination_params(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
) -> PaginationParams:
    """
    Get pagination parameters.

    Out-of-range values are rejected by query validation (400).
    """
    return PaginationParams(page=page, page_size=page_size)
