"""
Job posting endpoints.

Listing and reading jobs works with or without a token; hr staff and admins
create jobs, edit them and change their status.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_job_service, get_pagination_params
from api.schemas.common import PaginatedResponse, PaginationParams, SuccessResponse
from api.schemas.jobs import JobCreate, JobResponse, JobStatusUpdate, JobUpdate
from api.services.jobs import JobService
from core.exceptions import NotFoundError, ValidationFailedError
from core.middleware.authentication import get_current_principal, get_optional_principal
from core.middleware.authorization import (
    OwnedResource,
    Permission,
    check_ownership,
    require_permissions,
    require_roles,
)
from core.principal import Principal
from database.models.jobs import Job
from database.models.users import UserRole

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get(
    "",
    response_model=SuccessResponse[PaginatedResponse[JobResponse]],
    summary="List jobs",
)
async def list_jobs(
    company_id: Optional[int] = Query(None, ge=1, description="Filter by company"),
    pagination: PaginationParams = Depends(get_pagination_params),
    viewer: Optional[Principal] = Depends(get_optional_principal),
    service: JobService = Depends(get_job_service),
):
    """Published jobs, plus unpublished ones of the viewer's own company (all for admins)."""
    jobs, total = await service.list_jobs(
        viewer=viewer,
        company_id=company_id,
        limit=pagination.page_size,
        offset=pagination.offset,
    )
    items = [JobResponse.model_validate(job) for job in jobs]
    return SuccessResponse(data=PaginatedResponse.create(items, total, pagination))


@router.get(
    "/{job_id}",
    response_model=SuccessResponse[JobResponse],
    summary="Get job details",
)
async def get_job(
    job_id: int = Path(..., ge=1, description="Job ID"),
    viewer: Optional[Principal] = Depends(get_optional_principal),
    service: JobService = Depends(get_job_service),
):
    job = await service.get_job(job_id, viewer)
    return SuccessResponse(data=JobResponse.model_validate(job))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessResponse[JobResponse],
    summary="Create a job",
    dependencies=[
        Depends(require_roles(UserRole.HR, UserRole.ADMIN)),
        Depends(require_permissions(Permission.JOB_CREATE)),
    ],
)
async def create_job(
    data: JobCreate,
    principal: Principal = Depends(get_current_principal),
    service: JobService = Depends(get_job_service),
):
    """Hr staff post for their own company; admins name the company."""
    company_id = data.company_id if data.company_id is not None else principal.company_id
    if company_id is None:
        raise ValidationFailedError(
            "company_id is required",
            details=[{"field": "company_id", "message": "Field required", "value": None}],
        )
    check_ownership(principal, OwnedResource(company_id=company_id), "Company")

    job = await service.create_job(
        company_id=company_id,
        posted_by=principal.id,
        data=data.model_dump(exclude={"company_id"}),
    )
    return SuccessResponse(data=JobResponse.model_validate(job), message="Job created successfully")


async def load_managed_job(job_id: int, principal: Principal, service: JobService) -> Job:
    """Load a job the principal may edit: admins, or staff of the job's company."""
    job = await service.find_job(job_id)
    if job is None:
        raise NotFoundError("Job not found")
    # Company scope only; posting a job grants no lasting rights to it
    check_ownership(principal, OwnedResource(company_id=job.company_id), "Job")
    return job


@router.patch(
    "/{job_id}",
    response_model=SuccessResponse[JobResponse],
    summary="Update job details",
    dependencies=[
        Depends(require_roles(UserRole.HR, UserRole.ADMIN)),
        Depends(require_permissions(Permission.JOB_UPDATE)),
    ],
)
async def update_job(
    data: JobUpdate,
    job_id: int = Path(..., ge=1, description="Job ID"),
    principal: Principal = Depends(get_current_principal),
    service: JobService = Depends(get_job_service),
):
    await load_managed_job(job_id, principal, service)

    job = await service.update_job(job_id, data.model_dump(exclude_unset=True))
    return SuccessResponse(data=JobResponse.model_validate(job), message="Job updated")


@router.patch(
    "/{job_id}/status",
    response_model=SuccessResponse[JobResponse],
    summary="Change job status",
    dependencies=[
        Depends(require_roles(UserRole.HR, UserRole.ADMIN)),
        Depends(require_permissions(Permission.JOB_UPDATE)),
    ],
)
async def update_job_status(
    data: JobStatusUpdate,
    job_id: int = Path(..., ge=1, description="Job ID"),
    principal: Principal = Depends(get_current_principal),
    service: JobService = Depends(get_job_service),
):
    await load_managed_job(job_id, principal, service)

    job = await service.update_status(job_id, data.status)
    return SuccessResponse(data=JobResponse.model_validate(job), message="Job status updated")
