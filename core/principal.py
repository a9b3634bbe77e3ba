"""Principal value object representing the authenticated identity of a request.

Built fresh from the ``users`` and ``roles`` rows on every request, never from
token claims, so role changes and deactivation apply immediately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from database.models.users import User, UserRole


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated user performing a request.

    Attributes:
        id: User ID.
        email: User email.
        role: Closed role variant.
        permissions: Capability strings such as ``applications:update``.
        company_id: Company scope for hr users, ``None`` otherwise.
        is_active: Account is enabled.
        email_verified: Email address has been confirmed.
    """

    id: int
    email: str
    role: UserRole
    permissions: frozenset[str] = field(default_factory=frozenset)
    company_id: int | None = None
    is_active: bool = True
    email_verified: bool = False

    @classmethod
    def from_user(cls, user: User, permissions: Iterable[str]) -> Principal:
        return cls(
            id=user.id,
            email=user.email,
            role=user.role.name,
            permissions=frozenset(permissions),
            company_id=user.company_id,
            is_active=user.is_active,
            email_verified=user.email_verified,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def has_permissions(self, required: Iterable[str]) -> bool:
        """True when every required capability is held (admin holds all)."""
        if self.is_admin:
            return True
        return set(required).issubset(self.permissions)
