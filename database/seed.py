"""
Default role rows.

Run once against a fresh database (``python -m database.seed``) or call
``seed_roles`` from a test fixture.
"""

import asyncio
import json
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.users import Role, UserRole

logger = logging.getLogger(__name__)


DEFAULT_ROLES: dict[UserRole, dict] = {
    UserRole.ADMIN: {
        "description": "System administrator with full access",
        "permissions": {"all": True},
    },
    UserRole.HR: {
        "description": "HR personnel who manage jobs and applications",
        "permissions": {
            "jobs": ["create", "read", "update", "delete"],
            "applications": ["read", "update"],
            "companies": ["read", "update"],
        },
    },
    UserRole.CANDIDATE: {
        "description": "Job seekers who apply for positions",
        "permissions": {
            "jobs": ["read"],
            "applications": ["create", "read"],
        },
    },
}


async def seed_roles(session: AsyncSession) -> dict[UserRole, Role]:
    """
    Insert any missing default roles. Existing rows are left untouched.

    Args:
        session: Session inside an open transaction

    Returns:
        Mapping of role name to Role row
    """
    result = await session.execute(select(Role))
    roles = {role.name: role for role in result.scalars().all()}

    for name, definition in DEFAULT_ROLES.items():
        if name in roles:
            continue
        role = Role(
            name=name,
            description=definition["description"],
            permissions=json.dumps(definition["permissions"]),
        )
        session.add(role)
        roles[name] = role
        logger.info(f"Seeded role: {name.value}")

    await session.flush()
    return roles


async def main() -> None:
    from core.config import get_settings
    from database.engine import Database

    database = Database.from_settings(get_settings())
    try:
        await database.create_all()
        async with database.session() as session:
            async with session.begin():
                await seed_roles(session)
    finally:
        await database.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
