"""
Data access layer.

Each repository wraps an ``AsyncSession`` supplied by the caller; the caller
owns the transaction. Services receive repositories instead of reaching for a
global engine.
"""

import json
import logging
from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.applications import (
    Application,
    ApplicationStatus,
    ApplicationStatusHistory,
)
from database.models.companies import Company
from database.models.jobs import Job, JobStatus
from database.models.users import Role, User, UserRole, UserSession

logger = logging.getLogger(__name__)


def parse_permissions(raw: Any) -> frozenset[str]:
    """
    Flatten a stored capability mapping into capability strings.

    ``{"jobs": ["create", "read"], "all": true}`` becomes
    ``{"jobs:create", "jobs:read", "all"}``. A JSON list of strings is taken
    as-is.

    Args:
        raw: JSON text, an already decoded mapping/list, or ``None``

    Returns:
        Frozen set of capability strings

    Raises:
        ValueError: If the value is not valid JSON or has an unexpected shape
    """
    if raw is None or raw == "":
        return frozenset()

    data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw

    if isinstance(data, list):
        if not all(isinstance(item, str) for item in data):
            raise ValueError("Permission list must contain only strings")
        return frozenset(data)

    if not isinstance(data, dict):
        raise ValueError(f"Unsupported permissions type: {type(data).__name__}")

    capabilities: set[str] = set()
    for resource, actions in data.items():
        if actions is True:
            capabilities.add(resource)
        elif actions is False or actions is None:
            continue
        elif isinstance(actions, list) and all(isinstance(a, str) for a in actions):
            capabilities.update(f"{resource}:{action}" for action in actions)
        else:
            raise ValueError(f"Invalid actions for resource '{resource}'")
    return frozenset(capabilities)


class UserRepository:
    """Users, roles and session audit records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        # Exact match on the stored value
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_role(self, name: UserRole) -> Optional[Role]:
        result = await self.session.execute(select(Role).where(Role.name == name))
        return result.scalar_one_or_none()

    def get_permissions(self, user: User) -> frozenset[str]:
        """
        Capabilities granted by the user's role.

        A malformed mapping is logged and treated as no permissions.
        """
        try:
            return parse_permissions(user.role.permissions)
        except (ValueError, TypeError) as e:
            logger.warning(
                f"Failed to parse permissions for user {user.id} "
                f"(role {user.role.name.value}): {e}"
            )
            return frozenset()

    async def add(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        return user

    async def add_session(self, user_session: UserSession) -> UserSession:
        self.session.add(user_session)
        await self.session.flush()
        return user_session


class CompanyRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, company_id: int) -> Optional[Company]:
        return await self.session.get(Company, company_id)

    async def get_by_name(self, name: str) -> Optional[Company]:
        result = await self.session.execute(select(Company).where(Company.name == name))
        return result.scalars().first()

    async def list_page(
        self,
        industry: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Company], int]:
        """Companies ordered by name, optionally filtered by industry."""
        query = select(Company)
        if industry is not None:
            query = query.where(Company.industry == industry)

        total = await self.session.scalar(
            select(func.count()).select_from(query.subquery())
        )
        result = await self.session.execute(
            query.order_by(Company.name, Company.id).limit(limit).offset(offset)
        )
        return list(result.scalars().all()), total or 0

    async def add(self, company: Company) -> Company:
        self.session.add(company)
        await self.session.flush()
        return company


class JobRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, job_id: int) -> Optional[Job]:
        result = await self.session.execute(select(Job).where(Job.id == job_id))
        return result.scalar_one_or_none()

    async def list_page(
        self,
        statuses: Optional[Sequence[JobStatus]] = None,
        company_id: Optional[int] = None,
        visible_company_id: Optional[int] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Job], int]:
        """
        List jobs.

        Args:
            statuses: Only jobs in these statuses
            company_id: Only jobs of this company
            visible_company_id: Jobs of this company are returned regardless
                of ``statuses``
            limit: Page size
            offset: Pagination offset

        Returns:
            Tuple of (jobs, total count)
        """
        query = select(Job)
        if statuses:
            condition = Job.status.in_(list(statuses))
            if visible_company_id is not None:
                condition = condition | (Job.company_id == visible_company_id)
            query = query.where(condition)
        if company_id is not None:
            query = query.where(Job.company_id == company_id)

        total = await self.session.scalar(
            select(func.count()).select_from(query.subquery())
        )
        result = await self.session.execute(
            query.order_by(Job.created_at.desc(), Job.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total or 0

    async def add(self, job: Job) -> Job:
        self.session.add(job)
        await self.session.flush()
        return job


class ApplicationRepository:
    """Applications and their append-only status history."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, application_id: int, for_update: bool = False) -> Optional[Application]:
        """
        Load an application with its job and candidate.

        Args:
            application_id: The application ID
            for_update: Take a row lock on the application until the
                surrounding transaction ends
        """
        query = select(Application).where(Application.id == application_id)
        if for_update:
            query = query.with_for_update(of=Application).execution_options(
                populate_existing=True
            )
        result = await self.session.execute(query)
        return result.unique().scalar_one_or_none()

    async def find_by_job_and_candidate(
        self, job_id: int, candidate_id: int
    ) -> Optional[Application]:
        result = await self.session.execute(
            select(Application).where(
                Application.job_id == job_id,
                Application.candidate_id == candidate_id,
            )
        )
        return result.unique().scalar_one_or_none()

    async def list_page(
        self,
        job_id: Optional[int] = None,
        candidate_id: Optional[int] = None,
        company_id: Optional[int] = None,
        status: Optional[ApplicationStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Application], int]:
        query = select(Application)
        if company_id is not None:
            query = query.join(Job, Application.job_id == Job.id).where(
                Job.company_id == company_id
            )
        if job_id is not None:
            query = query.where(Application.job_id == job_id)
        if candidate_id is not None:
            query = query.where(Application.candidate_id == candidate_id)
        if status is not None:
            query = query.where(Application.status == status)

        total = await self.session.scalar(
            select(func.count()).select_from(query.subquery())
        )
        result = await self.session.execute(
            query.order_by(Application.applied_at.desc(), Application.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.unique().scalars().all()), total or 0

    async def add(self, application: Application) -> Application:
        self.session.add(application)
        await self.session.flush()
        return application

    async def append_history(
        self,
        application_id: int,
        status: ApplicationStatus,
        notes: Optional[str],
        updated_by: int,
    ) -> ApplicationStatusHistory:
        entry = ApplicationStatusHistory(
            application_id=application_id,
            status=status,
            notes=notes,
            updated_by=updated_by,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def history(self, application_id: int) -> list[ApplicationStatusHistory]:
        """Status history, newest first."""
        result = await self.session.execute(
            select(ApplicationStatusHistory)
            .where(ApplicationStatusHistory.application_id == application_id)
            .order_by(
                ApplicationStatusHistory.created_at.desc(),
                ApplicationStatusHistory.id.desc(),
            )
        )
        return list(result.scalars().all())
