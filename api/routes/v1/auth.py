"""
Authentication endpoints.

Provides:
- Candidate signup
- Email/password login
- The current principal
- Password change
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from api.dependencies import get_credential_service
from api.schemas.auth import (
    LoginRequest,
    PasswordChangeRequest,
    PrincipalResponse,
    SignupRequest,
    TokenResponse,
    UserResponse,
)
from api.schemas.common import SuccessResponse
from api.services.auth import CredentialService
from core.middleware.authentication import get_current_principal
from core.principal import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessResponse[UserResponse],
    summary="Register a candidate account",
)
async def signup(
    data: SignupRequest,
    credentials: CredentialService = Depends(get_credential_service),
):
    user = await credentials.signup(data.model_dump())
    return SuccessResponse(data=UserResponse.from_user(user), message="Account created")


@router.post(
    "/login",
    response_model=SuccessResponse[TokenResponse],
    summary="Log in with email and password",
)
async def login(
    data: LoginRequest,
    request: Request,
    credentials: CredentialService = Depends(get_credential_service),
):
    user, token, expires_at = await credentials.login(
        data.email,
        data.password,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return SuccessResponse(
        data=TokenResponse(
            access_token=token,
            expires_at=expires_at,
            user=UserResponse.from_user(user),
        ),
        message="Login successful",
    )


@router.get(
    "/me",
    response_model=SuccessResponse[PrincipalResponse],
    summary="Current principal",
)
async def me(principal: Principal = Depends(get_current_principal)):
    """Return the identity, role and permissions resolved for this request."""
    return SuccessResponse(data=PrincipalResponse.from_principal(principal))


@router.patch(
    "/password",
    response_model=SuccessResponse[None],
    summary="Change the current user's password",
)
async def change_password(
    data: PasswordChangeRequest,
    principal: Principal = Depends(get_current_principal),
    credentials: CredentialService = Depends(get_credential_service),
):
    """The current password must be supplied again."""
    await credentials.change_password(principal.id, data.current_password, data.new_password)
    return SuccessResponse(message="Password updated successfully")
