"""Shared fixtures and utilities for tests."""

import os
from datetime import date, timedelta
from typing import AsyncIterator, Optional

import pytest
from httpx import ASGITransport, AsyncClient

# Settings read the environment; make sure the required values exist before
# anything builds them.
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from api.main import create_app  # noqa: E402
from api.services.applications import ApplicationService  # noqa: E402
from api.services.auth import CredentialService  # noqa: E402
from api.services.companies import CompanyService  # noqa: E402
from api.services.jobs import JobService  # noqa: E402
from core.config import Settings  # noqa: E402
from database.engine import Database  # noqa: E402
from database.models.jobs import Job, JobStatus  # noqa: E402
from database.models.companies import Company  # noqa: E402
from database.models.users import User, UserRole  # noqa: E402
from database.seed import seed_roles  # noqa: E402


TEST_SECRET = "test-jwt-secret-key-min-32-chars-long-for-security"
TEST_PASSWORD = "SecurePass123"


@pytest.fixture
def settings() -> Settings:
    """Settings for an isolated in-memory database with cheap bcrypt."""
    return Settings(
        app_env="test",
        debug=True,
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key=TEST_SECRET,
        bcrypt_rounds=4,
        access_token_expire_minutes=60,
        json_logs=False,
    )


@pytest.fixture
async def database(settings: Settings) -> AsyncIterator[Database]:
    """Fresh schema with the default roles seeded."""
    db = Database.from_settings(settings)
    await db.create_all()
    async with db.session() as session:
        async with session.begin():
            await seed_roles(session)
    yield db
    await db.dispose()


@pytest.fixture
def credential_service(database: Database, settings: Settings) -> CredentialService:
    return CredentialService(database, settings)


@pytest.fixture
def application_service(database: Database) -> ApplicationService:
    return ApplicationService(database)


@pytest.fixture
def job_service(database: Database) -> JobService:
    return JobService(database)


@pytest.fixture
def company_service(database: Database) -> CompanyService:
    return CompanyService(database)


@pytest.fixture
def app(settings: Settings, database: Database):
    return create_app(settings=settings, database=database, configure_logging=False)


@pytest.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    """HTTP client talking to the app in-process on the test's event loop."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def make_user(
    credential_service: CredentialService,
    role: UserRole = UserRole.CANDIDATE,
    email: Optional[str] = None,
    company_id: Optional[int] = None,
    password: str = TEST_PASSWORD,
) -> User:
    """Create a user through the credential service."""
    return await credential_service.create_user(
        {
            "email": email or f"{role.value}-{os.urandom(4).hex()}@example.com",
            "password": password,
            "first_name": role.value.capitalize(),
            "last_name": "Tester",
        },
        role=role,
        company_id=company_id,
    )


def auth_headers(credential_service: CredentialService, user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {credential_service.issue_token(user.id)}"}


@pytest.fixture
async def admin(credential_service: CredentialService) -> User:
    return await make_user(credential_service, UserRole.ADMIN, email="admin@example.com")


@pytest.fixture
async def company(company_service: CompanyService, admin: User) -> Company:
    return await company_service.create_company({"name": "Acme Corp"}, created_by=admin.id)


@pytest.fixture
async def other_company(company_service: CompanyService, admin: User) -> Company:
    return await company_service.create_company({"name": "Globex"}, created_by=admin.id)


@pytest.fixture
async def hr_user(credential_service: CredentialService, company: Company) -> User:
    return await make_user(
        credential_service, UserRole.HR, email="hr@example.com", company_id=company.id
    )


@pytest.fixture
async def other_hr_user(credential_service: CredentialService, other_company: Company) -> User:
    return await make_user(
        credential_service, UserRole.HR, email="hr@globex.example.com", company_id=other_company.id
    )


@pytest.fixture
async def candidate(credential_service: CredentialService) -> User:
    return await make_user(credential_service, UserRole.CANDIDATE, email="candidate@example.com")


@pytest.fixture
async def other_candidate(credential_service: CredentialService) -> User:
    return await make_user(credential_service, UserRole.CANDIDATE, email="second@example.com")


@pytest.fixture
async def published_job(job_service: JobService, company: Company, hr_user: User) -> Job:
    return await job_service.create_job(
        company.id,
        posted_by=hr_user.id,
        data={
            "title": "Backend Engineer",
            "description": "Build APIs",
            "status": JobStatus.PUBLISHED,
            "application_deadline": date.today() + timedelta(days=30),
        },
    )


@pytest.fixture
async def draft_job(job_service: JobService, company: Company, hr_user: User) -> Job:
    return await job_service.create_job(
        company.id,
        posted_by=hr_user.id,
        data={"title": "Data Analyst", "description": "Crunch numbers"},
    )
