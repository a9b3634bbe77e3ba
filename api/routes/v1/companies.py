"""Company endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_company_service, get_pagination_params
from api.schemas.common import PaginatedResponse, PaginationParams, SuccessResponse
from api.schemas.jobs import CompanyCreate, CompanyResponse, CompanyUpdate
from api.services.companies import CompanyService
from core.middleware.authentication import get_current_principal
from core.middleware.authorization import (
    OwnedResource,
    Permission,
    check_ownership,
    require_permissions,
    require_roles,
)
from core.principal import Principal
from database.models.users import UserRole

router = APIRouter(prefix="/companies", tags=["companies"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessResponse[CompanyResponse],
    summary="Create a company",
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def create_company(
    data: CompanyCreate,
    principal: Principal = Depends(get_current_principal),
    service: CompanyService = Depends(get_company_service),
):
    company = await service.create_company(data.model_dump(), created_by=principal.id)
    return SuccessResponse(
        data=CompanyResponse.model_validate(company), message="Company created successfully"
    )


@router.get(
    "",
    response_model=SuccessResponse[PaginatedResponse[CompanyResponse]],
    summary="List companies",
)
async def list_companies(
    industry: Optional[str] = Query(None, max_length=100, description="Filter by industry"),
    pagination: PaginationParams = Depends(get_pagination_params),
    principal: Principal = Depends(get_current_principal),
    service: CompanyService = Depends(get_company_service),
):
    companies, total = await service.list_companies(
        industry=industry, limit=pagination.page_size, offset=pagination.offset
    )
    items = [CompanyResponse.model_validate(company) for company in companies]
    return SuccessResponse(data=PaginatedResponse.create(items, total, pagination))


@router.get(
    "/{company_id}",
    response_model=SuccessResponse[CompanyResponse],
    summary="Get company details",
)
async def get_company(
    company_id: int = Path(..., ge=1, description="Company ID"),
    principal: Principal = Depends(get_current_principal),
    service: CompanyService = Depends(get_company_service),
):
    company = await service.get_company(company_id)
    return SuccessResponse(data=CompanyResponse.model_validate(company))


@router.patch(
    "/{company_id}",
    response_model=SuccessResponse[CompanyResponse],
    summary="Update company details",
    dependencies=[
        Depends(require_roles(UserRole.HR, UserRole.ADMIN)),
        Depends(require_permissions(Permission.COMPANY_UPDATE)),
    ],
)
async def update_company(
    data: CompanyUpdate,
    company_id: int = Path(..., ge=1, description="Company ID"),
    principal: Principal = Depends(get_current_principal),
    service: CompanyService = Depends(get_company_service),
):
    """Hr staff may update their own company only."""
    await service.get_company(company_id)
    check_ownership(principal, OwnedResource(company_id=company_id), "Company")

    company = await service.update_company(company_id, data.model_dump(exclude_unset=True))
    return SuccessResponse(
        data=CompanyResponse.model_validate(company), message="Company updated successfully"
    )
