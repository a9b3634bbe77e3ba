"""
Authorization checks for role, permission and ownership.

Checks run in the order authentication -> role -> permission/ownership. Role
and permissions always come from the ``Principal`` resolved from the database
for the current request, never from token claims.

Usage in a route::

    @router.patch(
        "/{application_id}/status",
        dependencies=[
            Depends(require_roles(UserRole.HR, UserRole.ADMIN)),
            Depends(require_permissions(Permission.APPLICATION_UPDATE)),
        ],
    )
    async def update_status(principal: Principal = Depends(get_current_principal)): ...
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Union

from fastapi import Depends

from core.exceptions import (
    InsufficientPermissionsError,
    InsufficientRoleError,
    NotFoundError,
    OwnershipDeniedError,
)
from core.middleware.authentication import get_current_principal
from core.principal import Principal
from database.models.users import UserRole

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    """Capability strings granted through role permission mappings."""

    JOB_CREATE = "jobs:create"
    JOB_READ = "jobs:read"
    JOB_UPDATE = "jobs:update"
    JOB_DELETE = "jobs:delete"

    APPLICATION_CREATE = "applications:create"
    APPLICATION_READ = "applications:read"
    APPLICATION_UPDATE = "applications:update"

    COMPANY_READ = "companies:read"
    COMPANY_UPDATE = "companies:update"


@dataclass(frozen=True)
class OwnedResource:
    """
    Ownership facts about a resource.

    Attributes:
        owner_id: User who owns the resource (candidate of an application,
            creator of a job)
        company_id: Company the resource belongs to, for company-scoped
            resources
    """

    owner_id: Optional[int] = None
    company_id: Optional[int] = None


def _values(items: Iterable[Union[str, Enum]]) -> set[str]:
    return {item.value if isinstance(item, Enum) else item for item in items}


def require_role(principal: Principal, allowed_roles: Iterable[UserRole]) -> None:
    """
    Allow only principals whose role is in ``allowed_roles``.

    Raises:
        InsufficientRoleError: If the role is not allowed
    """
    allowed = set(allowed_roles)
    if principal.role in allowed:
        return

    required = ", ".join(sorted(_values(allowed)))
    logger.warning(
        f"User {principal.id} with role {principal.role.value} attempted action "
        f"requiring roles: {required}"
    )
    raise InsufficientRoleError(
        f"Role {principal.role.value} not authorized. Required: {required}"
    )


def require_permission(
    principal: Principal, required_permissions: Iterable[Union[str, Permission]]
) -> None:
    """
    Allow only principals holding every required permission.

    Admins pass unconditionally.

    Raises:
        InsufficientPermissionsError: If any required permission is missing
    """
    required = _values(required_permissions)
    if principal.has_permissions(required):
        return

    missing = ", ".join(sorted(required - principal.permissions))
    logger.warning(
        f"User {principal.id} with role {principal.role.value} lacks permission(s): {missing}"
    )
    raise InsufficientPermissionsError(f"Missing permission(s): {missing}")


def check_ownership(
    principal: Principal, resource: Optional[OwnedResource], resource_name: str = "Resource"
) -> None:
    """
    Allow admins, the resource owner, and staff of the owning company.

    Args:
        principal: Acting principal
        resource: Ownership facts, or ``None`` if the resource does not exist
        resource_name: Used in the not-found message

    Raises:
        NotFoundError: If the resource does not exist
        OwnershipDeniedError: If the principal neither owns the resource nor
            belongs to its company
    """
    if principal.is_admin:
        return

    if resource is None:
        raise NotFoundError(f"{resource_name} not found")

    if resource.owner_id is not None and resource.owner_id == principal.id:
        return

    if (
        resource.company_id is not None
        and principal.company_id is not None
        and resource.company_id == principal.company_id
    ):
        return

    logger.warning(
        f"User {principal.id} with role {principal.role.value} denied access to "
        f"{resource_name.lower()} owned by {resource.owner_id} "
        f"(company {resource.company_id})"
    )
    raise OwnershipDeniedError()


def require_roles(*allowed_roles: UserRole) -> Callable:
    """
    Dependency to require one of the given roles.

    Returns:
        FastAPI dependency returning the principal
    """

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        require_role(principal, allowed_roles)
        return principal

    return dependency


def require_permissions(*required_permissions: Union[str, Permission]) -> Callable:
    """
    Dependency to require all of the given permissions.

    Returns:
        FastAPI dependency returning the principal
    """

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        require_permission(principal, required_permissions)
        return principal

    return dependency
