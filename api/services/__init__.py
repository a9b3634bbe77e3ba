"""
API Services Layer.

Database-backed operations behind the API endpoints. Each service opens its
own short transaction per operation.
"""

from api.services.applications import ApplicationService
from api.services.auth import CredentialService
from api.services.companies import CompanyService
from api.services.jobs import JobService, can_view_job

__all__ = [
    "ApplicationService",
    "CredentialService",
    "CompanyService",
    "JobService",
    "can_view_job",
]
