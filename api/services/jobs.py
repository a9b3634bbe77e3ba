"""
Job posting service.

Jobs belong to a company. Only published jobs are visible to the public and
take applications; drafts and other statuses are visible to the owning
company's staff and admins.
"""

import logging
from typing import Any, Optional

from core.exceptions import NotFoundError, ValidationFailedError
from core.principal import Principal
from database.engine import Database
from database.models.jobs import ACCEPTING_JOB_STATUSES, Job, JobStatus
from database.repositories import CompanyRepository, JobRepository

logger = logging.getLogger(__name__)

JOB_FIELDS = (
    "title",
    "description",
    "requirements",
    "location",
    "status",
    "application_deadline",
)
REQUIRED_JOB_FIELDS = ("title", "description")


def can_view_job(job: Job, principal: Optional[Principal]) -> bool:
    if job.status in ACCEPTING_JOB_STATUSES:
        return True
    if principal is None:
        return False
    return principal.is_admin or (
        principal.company_id is not None and principal.company_id == job.company_id
    )


class JobService:
    def __init__(self, database: Database):
        self.database = database

    async def get_job(self, job_id: int, viewer: Optional[Principal] = None) -> Job:
        """
        Get a job the viewer is allowed to see.

        Raises:
            NotFoundError: If the job does not exist or is hidden from the viewer
        """
        async with self.database.session() as session:
            job = await JobRepository(session).get(job_id)
        if job is None or not can_view_job(job, viewer):
            raise NotFoundError("Job not found")
        return job

    async def list_jobs(
        self,
        viewer: Optional[Principal] = None,
        company_id: Optional[int] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Job], int]:
        """
        List jobs visible to the viewer, newest first.

        Returns:
            Tuple of (jobs, total count)
        """
        statuses = None if viewer is not None and viewer.is_admin else list(ACCEPTING_JOB_STATUSES)
        visible_company_id = viewer.company_id if viewer is not None else None

        async with self.database.session() as session:
            return await JobRepository(session).list_page(
                statuses=statuses,
                company_id=company_id,
                visible_company_id=visible_company_id,
                limit=limit,
                offset=offset,
            )

    async def create_job(self, company_id: int, posted_by: int, data: dict[str, Any]) -> Job:
        """
        Create a job for a company.

        Raises:
            NotFoundError: If the company does not exist
        """
        fields = {key: value for key, value in data.items() if key in JOB_FIELDS and value is not None}

        async with self.database.session() as session:
            async with session.begin():
                company = await CompanyRepository(session).get(company_id)
                if company is None:
                    raise NotFoundError("Company not found")

                job = Job(company=company, posted_by=posted_by, **fields)
                await JobRepository(session).add(job)

        logger.info(
            f"Job {job.id} created for company {company_id}",
            extra={"event": "job_created", "job_id": job.id, "company_id": company_id},
        )
        return job

    async def find_job(self, job_id: int) -> Optional[Job]:
        """Load a job regardless of visibility (for ownership checks)."""
        async with self.database.session() as session:
            return await JobRepository(session).get(job_id)

    async def update_job(self, job_id: int, data: dict[str, Any]) -> Job:
        """
        Update a job's details. Status changes go through ``update_status``.

        Args:
            job_id: The job ID
            data: Fields to change; absent keys are left unchanged

        Raises:
            NotFoundError: If the job does not exist
        """
        fields = {
            key: value
            for key, value in data.items()
            if key in JOB_FIELDS and key != "status"
            and not (key in REQUIRED_JOB_FIELDS and value is None)
        }

        async with self.database.session() as session:
            async with session.begin():
                job = await JobRepository(session).get(job_id)
                if job is None:
                    raise NotFoundError("Job not found")
                for key, value in fields.items():
                    setattr(job, key, value)

        logger.info(
            f"Job {job_id} updated",
            extra={"event": "job_updated", "job_id": job_id, "fields": sorted(fields)},
        )
        return job

    async def update_status(self, job_id: int, status: JobStatus) -> Job:
        """
        Change a job's status (publish, pause, close, ...).

        Raises:
            NotFoundError: If the job does not exist
            ValidationFailedError: If the job already has this status
        """
        async with self.database.session() as session:
            async with session.begin():
                job = await JobRepository(session).get(job_id)
                if job is None:
                    raise NotFoundError("Job not found")
                if job.status == status:
                    raise ValidationFailedError(f"Job is already {status.value}")

                previous = job.status
                job.status = status

        logger.info(
            f"Job {job_id} status changed: {previous.value} -> {status.value}",
            extra={"event": "job_status_changed", "job_id": job_id},
        )
        return job
