"""SQLAlchemy models."""

from database.models.users import Role, User, UserRole, UserSession
from database.models.companies import Company
from database.models.jobs import ACCEPTING_JOB_STATUSES, Job, JobStatus
from database.models.applications import (
    Application,
    ApplicationStatus,
    ApplicationStatusHistory,
)

__all__ = [
    "Role",
    "User",
    "UserRole",
    "UserSession",
    "Company",
    "ACCEPTING_JOB_STATUSES",
    "Job",
    "JobStatus",
    "Application",
    "ApplicationStatus",
    "ApplicationStatusHistory",
]
