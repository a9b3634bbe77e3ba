"""
Application lifecycle service.

Creates applications and moves them through the status state machine. Every
mutating operation runs in a single transaction so an application and its
status history are committed together; status changes lock the application
row for the duration of the transaction.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.application_status import is_terminal, parse_status, validate_transition
from core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from database.engine import Database
from database.models.applications import (
    Application,
    ApplicationStatus,
    ApplicationStatusHistory,
)
from database.models.users import UserRole
from database.repositories import ApplicationRepository, JobRepository, UserRepository
from database.types import utcnow

logger = logging.getLogger(__name__)

SUBMITTED_NOTE = "Application submitted"
WITHDRAWN_NOTE = "Application withdrawn by candidate"

# Optional fields a candidate may supply when applying
APPLICATION_DETAIL_FIELDS = (
    "cover_letter",
    "resume_url",
    "portfolio_url",
    "expected_salary",
    "availability_date",
    "additional_info",
)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class ApplicationService:
    """Application creation, status transitions and history."""

    def __init__(self, database: Database, today: Callable[[], date] = utc_today):
        """
        Args:
            database: Database to open sessions on
            today: Returns the current date for deadline checks
        """
        self.database = database
        self.today = today

    async def get_application(self, application_id: int) -> Optional[Application]:
        async with self.database.session() as session:
            return await ApplicationRepository(session).get(application_id)

    async def list_applications(
        self,
        candidate_id: Optional[int] = None,
        company_id: Optional[int] = None,
        job_id: Optional[int] = None,
        status: Optional[ApplicationStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Application], int]:
        """
        List applications, newest first.

        Args:
            candidate_id: Only this candidate's applications
            company_id: Only applications to this company's jobs
            job_id: Only applications to this job
            status: Only applications in this status
            limit: Page size
            offset: Pagination offset

        Returns:
            Tuple of (applications, total count)
        """
        async with self.database.session() as session:
            return await ApplicationRepository(session).list_page(
                job_id=job_id,
                candidate_id=candidate_id,
                company_id=company_id,
                status=status,
                limit=limit,
                offset=offset,
            )

    async def create_application(
        self,
        job_id: int,
        candidate_id: int,
        details: Optional[dict[str, Any]] = None,
    ) -> Application:
        """
        Submit an application to a job.

        The application is stored as ``pending`` together with its first
        history entry, or not at all.

        Args:
            job_id: Job applied to
            candidate_id: Applying candidate
            details: Optional fields (cover letter, resume URL, ...)

        Returns:
            The new application

        Raises:
            ConflictError: If the candidate already applied to this job
            NotFoundError: If the job does not exist or is not published,
                or the candidate does not exist
            ValidationFailedError: If the application deadline has passed or
                the applicant is not a candidate account
        """
        fields = {
            key: value
            for key, value in (details or {}).items()
            if key in APPLICATION_DETAIL_FIELDS
        }

        try:
            async with self.database.session() as session:
                async with session.begin():
                    applications = ApplicationRepository(session)

                    if await applications.find_by_job_and_candidate(job_id, candidate_id):
                        raise ConflictError("You have already applied for this job")

                    job = await JobRepository(session).get(job_id)
                    if job is None or not job.is_accepting_applications:
                        raise NotFoundError("Job not found or no longer accepting applications")

                    if job.deadline_passed(self.today()):
                        raise ValidationFailedError("Application deadline has passed")

                    candidate = await UserRepository(session).get_by_id(candidate_id)
                    if candidate is None:
                        raise NotFoundError("Candidate not found")
                    if candidate.role.name != UserRole.CANDIDATE:
                        raise ValidationFailedError(
                            "Applications can only be submitted for candidate accounts"
                        )

                    application = Application(
                        job=job,
                        candidate=candidate,
                        status=ApplicationStatus.PENDING,
                        **fields,
                    )
                    await applications.add(application)
                    await applications.append_history(
                        application.id,
                        ApplicationStatus.PENDING,
                        SUBMITTED_NOTE,
                        candidate_id,
                    )
        except IntegrityError as e:
            # Lost the race against a concurrent submission
            logger.warning(
                f"Duplicate application for job {job_id} by candidate {candidate_id}: {e.orig}"
            )
            raise ConflictError("You have already applied for this job") from e

        logger.info(
            f"Application {application.id} created for job {job_id}",
            extra={
                "event": "application_created",
                "application_id": application.id,
                "job_id": job_id,
                "candidate_id": candidate_id,
            },
        )
        return application

    async def transition_status(
        self,
        application_id: int,
        new_status: str | ApplicationStatus,
        notes: Optional[str],
        acting_principal_id: int,
    ) -> Application:
        """
        Move an application to a new status.

        Any non-terminal status may move to any other status; terminal
        statuses (hired, rejected, withdrawn) and same-status moves are
        refused.

        Args:
            application_id: Application to update
            new_status: Target status value
            notes: Free-form note stored in the history entry
            acting_principal_id: User performing the change

        Returns:
            The updated application

        Raises:
            NotFoundError: If the application does not exist
            ValidationFailedError: If the status is unknown or the transition
                is not allowed
        """
        target = parse_status(new_status)
        if target is None:
            raise ValidationFailedError(
                "Invalid application status",
                details=[
                    {
                        "field": "status",
                        "message": f"Must be one of: {', '.join(s.value for s in ApplicationStatus)}",
                        "value": str(new_status),
                    }
                ],
            )

        async with self.database.session() as session:
            async with session.begin():
                applications = ApplicationRepository(session)
                application = await applications.get(application_id, for_update=True)
                if application is None:
                    raise NotFoundError("Application not found")

                await self._apply_transition(
                    applications, application, target, notes, acting_principal_id
                )

        return application

    async def withdraw(self, application_id: int, candidate_id: int) -> Application:
        """
        Withdraw an application on behalf of its candidate.

        Raises:
            NotFoundError: If the application does not exist
            ValidationFailedError: If the caller is not the applicant or the
                application is already in a terminal status
        """
        async with self.database.session() as session:
            async with session.begin():
                applications = ApplicationRepository(session)
                application = await applications.get(application_id, for_update=True)
                if application is None:
                    raise NotFoundError("Application not found")

                if application.candidate_id != candidate_id:
                    raise ValidationFailedError("You can only withdraw your own applications")

                if is_terminal(application.status):
                    raise ValidationFailedError("Cannot withdraw application in current status")

                await self._apply_transition(
                    applications,
                    application,
                    ApplicationStatus.WITHDRAWN,
                    WITHDRAWN_NOTE,
                    candidate_id,
                )

        return application

    async def get_history(self, application_id: int) -> list[ApplicationStatusHistory]:
        """
        Status history of an application, newest first.

        Raises:
            NotFoundError: If the application does not exist
        """
        async with self.database.session() as session:
            applications = ApplicationRepository(session)
            if await applications.get(application_id) is None:
                raise NotFoundError("Application not found")
            return await applications.history(application_id)

    async def _apply_transition(
        self,
        applications: ApplicationRepository,
        application: Application,
        target: ApplicationStatus,
        notes: Optional[str],
        acting_principal_id: int,
    ) -> None:
        is_valid, error = validate_transition(application.status, target)
        if not is_valid:
            raise ValidationFailedError(error)

        previous = application.status
        application.status = target
        application.updated_at = utcnow()
        await applications.session.flush()

        # The status change stands even if its history entry cannot be written
        try:
            async with applications.session.begin_nested():
                await applications.append_history(
                    application.id, target, notes, acting_principal_id
                )
        except SQLAlchemyError:
            logger.error(
                f"Failed to record status history for application {application.id}",
                exc_info=True,
                extra={"application_id": application.id, "status": target.value},
            )

        logger.info(
            f"Application {application.id} status changed: {previous.value} -> {target.value}",
            extra={
                "event": "application_status_changed",
                "application_id": application.id,
                "old_status": previous.value,
                "new_status": target.value,
                "updated_by": acting_principal_id,
            },
        )
