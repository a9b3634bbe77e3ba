"""
Application workflow endpoints.

Candidates apply to jobs and may withdraw; hr staff of the job's company and
admins move applications through the status pipeline. Every status change is
recorded in the application's history.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_application_service, get_pagination_params
from api.schemas.applications import (
    ApplicationCreate,
    ApplicationResponse,
    StatusHistoryResponse,
    StatusUpdate,
)
from api.schemas.common import PaginatedResponse, PaginationParams, SuccessResponse
from api.services.applications import ApplicationService
from core.exceptions import NotFoundError, OwnershipDeniedError, ValidationFailedError
from core.middleware.authentication import get_current_principal
from core.middleware.authorization import (
    OwnedResource,
    Permission,
    check_ownership,
    require_permissions,
    require_roles,
)
from core.principal import Principal
from database.models.applications import Application, ApplicationStatus
from database.models.users import UserRole

router = APIRouter(prefix="/applications", tags=["applications"])


def application_resource(application: Optional[Application]) -> Optional[OwnedResource]:
    """Ownership facts: the applicant owns it, the job's company staff may manage it."""
    if application is None:
        return None
    return OwnedResource(owner_id=application.candidate_id, company_id=application.job.company_id)


async def load_authorized_application(
    application_id: int,
    principal: Principal,
    service: ApplicationService,
) -> Application:
    application = await service.get_application(application_id)
    if application is None:
        raise NotFoundError("Application not found")
    check_ownership(principal, application_resource(application), "Application")
    return application


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessResponse[ApplicationResponse],
    summary="Apply to a job",
    dependencies=[
        Depends(require_roles(UserRole.CANDIDATE, UserRole.ADMIN)),
        Depends(require_permissions(Permission.APPLICATION_CREATE)),
    ],
)
async def create_application(
    data: ApplicationCreate,
    principal: Principal = Depends(get_current_principal),
    service: ApplicationService = Depends(get_application_service),
):
    """Candidates apply for themselves; admins may apply on behalf of a candidate."""
    candidate_id = data.candidate_id
    if principal.is_admin:
        if candidate_id is None:
            raise ValidationFailedError(
                "candidate_id is required",
                details=[{"field": "candidate_id", "message": "Field required", "value": None}],
            )
    elif candidate_id is None:
        candidate_id = principal.id
    elif candidate_id != principal.id:
        raise OwnershipDeniedError("You can only apply on your own behalf")

    application = await service.create_application(
        job_id=data.job_id,
        candidate_id=candidate_id,
        details=data.model_dump(exclude={"job_id", "candidate_id"}, exclude_none=True),
    )
    return SuccessResponse(
        data=ApplicationResponse.from_application(application),
        message="Application submitted successfully",
    )


@router.get(
    "",
    response_model=SuccessResponse[PaginatedResponse[ApplicationResponse]],
    summary="List applications",
    dependencies=[Depends(require_permissions(Permission.APPLICATION_READ))],
)
async def list_applications(
    job_id: Optional[int] = Query(None, ge=1, description="Filter by job"),
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status", description="Filter by status"),
    pagination: PaginationParams = Depends(get_pagination_params),
    principal: Principal = Depends(get_current_principal),
    service: ApplicationService = Depends(get_application_service),
):
    """
    Candidates see their own applications, hr staff see applications to
    their company's jobs, admins see everything.
    """
    scope: dict = {}
    if principal.role == UserRole.CANDIDATE:
        scope["candidate_id"] = principal.id
    elif principal.role == UserRole.HR:
        if principal.company_id is None:
            return SuccessResponse(data=PaginatedResponse.create([], 0, pagination))
        scope["company_id"] = principal.company_id

    applications, total = await service.list_applications(
        job_id=job_id,
        status=status_filter,
        limit=pagination.page_size,
        offset=pagination.offset,
        **scope,
    )
    items = [ApplicationResponse.from_application(a) for a in applications]
    return SuccessResponse(data=PaginatedResponse.create(items, total, pagination))


@router.get(
    "/{application_id}",
    response_model=SuccessResponse[ApplicationResponse],
    summary="Get application details",
    dependencies=[Depends(require_permissions(Permission.APPLICATION_READ))],
)
async def get_application(
    application_id: int = Path(..., ge=1, description="Application ID"),
    principal: Principal = Depends(get_current_principal),
    service: ApplicationService = Depends(get_application_service),
):
    application = await load_authorized_application(application_id, principal, service)
    return SuccessResponse(data=ApplicationResponse.from_application(application))


@router.patch(
    "/{application_id}/status",
    response_model=SuccessResponse[ApplicationResponse],
    summary="Change application status",
    dependencies=[
        Depends(require_roles(UserRole.HR, UserRole.ADMIN)),
        Depends(require_permissions(Permission.APPLICATION_UPDATE)),
    ],
)
async def update_application_status(
    data: StatusUpdate,
    application_id: int = Path(..., ge=1, description="Application ID"),
    principal: Principal = Depends(get_current_principal),
    service: ApplicationService = Depends(get_application_service),
):
    """Move an application to a new status. Hr staff are limited to their company's jobs."""
    application = await service.get_application(application_id)
    if application is None:
        raise NotFoundError("Application not found")
    # Staff manage by company, never as the applicant
    check_ownership(principal, OwnedResource(company_id=application.job.company_id), "Application")

    updated = await service.transition_status(
        application_id=application_id,
        new_status=data.status,
        notes=data.notes,
        acting_principal_id=principal.id,
    )
    return SuccessResponse(
        data=ApplicationResponse.from_application(updated),
        message="Application status updated successfully",
    )


@router.post(
    "/{application_id}/withdraw",
    response_model=SuccessResponse[ApplicationResponse],
    summary="Withdraw an application",
    dependencies=[Depends(require_roles(UserRole.CANDIDATE))],
)
async def withdraw_application(
    application_id: int = Path(..., ge=1, description="Application ID"),
    principal: Principal = Depends(get_current_principal),
    service: ApplicationService = Depends(get_application_service),
):
    application = await service.withdraw(application_id, principal.id)
    return SuccessResponse(
        data=ApplicationResponse.from_application(application),
        message="Application withdrawn successfully",
    )


@router.get(
    "/{application_id}/history",
    response_model=SuccessResponse[list[StatusHistoryResponse]],
    summary="Get application status history",
    dependencies=[Depends(require_permissions(Permission.APPLICATION_READ))],
)
async def get_application_history(
    application_id: int = Path(..., ge=1, description="Application ID"),
    principal: Principal = Depends(get_current_principal),
    service: ApplicationService = Depends(get_application_service),
):
    """Status history, newest first."""
    await load_authorized_application(application_id, principal, service)
    history = await service.get_history(application_id)
    return SuccessResponse(
        data=[StatusHistoryResponse.model_validate(entry) for entry in history]
    )
