"""
Application Models

A candidate's submission to a job, and the append-only history of its status
changes. History rows are only ever inserted.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    ForeignKey,
    BigInteger,
    Date,
    DateTime,
    Numeric,
    func,
    Text,
    Enum as SQLEnum,
    UniqueConstraint,
)
from database.engine import Base
from database.types import BigIntPK, enum_values, utcnow
from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.jobs import Job
    from database.models.users import User


# ==================== Application Enums ===================== #
class ApplicationStatus(str, PyEnum):
    """Canonical statuses for a job application."""

    PENDING = "pending"
    REVIEWING = "reviewing"
    SHORTLISTED = "shortlisted"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEWED = "interviewed"
    OFFERED = "offered"
    HIRED = "hired"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Application(Base):
    """One candidate's application to one job."""

    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("job_id", "candidate_id", name="uq_application_job_candidate"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    candidate_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus, native_enum=False, length=50, values_callable=enum_values),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True,
    )

    cover_letter: Mapped[str | None] = mapped_column(Text)
    resume_url: Mapped[str | None] = mapped_column(String(500))
    portfolio_url: Mapped[str | None] = mapped_column(String(500))
    expected_salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    availability_date: Mapped[date | None] = mapped_column(Date)
    additional_info: Mapped[str | None] = mapped_column(Text)

    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    job: Mapped["Job"] = relationship("Job", lazy="joined", innerjoin=True)
    candidate: Mapped["User"] = relationship("User", lazy="joined", innerjoin=True)

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, job_id={self.job_id}, status={self.status})>"


class ApplicationStatusHistory(Base):
    """
    History of status changes for applications.
    """

    __tablename__ = "application_status_history"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus, native_enum=False, length=50, values_callable=enum_values),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    updated_by: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<ApplicationStatusHistory(application_id={self.application_id}, "
            f"status={self.status})>"
        )
