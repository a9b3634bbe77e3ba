"""
User administration endpoints (admin only).

Admins create staff accounts and activate or deactivate users. Deactivation
takes effect on the user's very next request.
"""

from fastapi import APIRouter, Depends, Path, status

from api.dependencies import get_company_service, get_credential_service
from api.schemas.auth import UserActiveUpdate, UserCreateRequest, UserResponse
from api.schemas.common import SuccessResponse
from api.services.auth import CredentialService
from api.services.companies import CompanyService
from core.exceptions import ValidationFailedError
from core.middleware.authentication import get_current_principal
from core.middleware.authorization import require_roles
from core.principal import Principal
from database.models.users import UserRole

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessResponse[UserResponse],
    summary="Create a user account",
)
async def create_user(
    data: UserCreateRequest,
    credentials: CredentialService = Depends(get_credential_service),
    companies: CompanyService = Depends(get_company_service),
):
    """Create an account with any role; hr accounts must belong to a company."""
    if data.role == UserRole.HR and data.company_id is None:
        raise ValidationFailedError(
            "company_id is required for hr users",
            details=[{"field": "company_id", "message": "Field required", "value": None}],
        )
    if data.company_id is not None:
        await companies.get_company(data.company_id)

    user = await credentials.create_user(
        data.model_dump(exclude={"role", "company_id"}),
        role=data.role,
        company_id=data.company_id,
    )
    return SuccessResponse(data=UserResponse.from_user(user), message="User created")


@router.patch(
    "/{user_id}/active",
    response_model=SuccessResponse[UserResponse],
    summary="Activate or deactivate a user",
)
async def set_user_active(
    data: UserActiveUpdate,
    user_id: int = Path(..., ge=1, description="User ID"),
    principal: Principal = Depends(get_current_principal),
    credentials: CredentialService = Depends(get_credential_service),
):
    if user_id == principal.id and not data.is_active:
        raise ValidationFailedError("You cannot deactivate your own account")

    user = await credentials.set_active(user_id, data.is_active)
    return SuccessResponse(
        data=UserResponse.from_user(user),
        message="User activated" if data.is_active else "User deactivated",
    )
