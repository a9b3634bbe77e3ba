"""
Jobs Module

Job postings owned by a company. Only published postings accept applications.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    ForeignKey,
    BigInteger,
    Date,
    DateTime,
    func,
    Text,
    Enum as SQLEnum,
)
from database.engine import Base
from database.types import BigIntPK, enum_values, utcnow
from datetime import date, datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.companies import Company


# ==================== Job Enums ===================== #
class JobStatus(str, PyEnum):
    """Job posting status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    PAUSED = "paused"
    CLOSED = "closed"


# Statuses in which a job takes new applications
ACCEPTING_JOB_STATUSES = frozenset({JobStatus.PUBLISHED})


class Job(Base):
    """Job posting."""

    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    company_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Basic info
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    requirements: Mapped[str | None] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(String(255))

    status: Mapped[JobStatus] = mapped_column(
        SQLEnum(JobStatus, native_enum=False, length=50, values_callable=enum_values),
        nullable=False,
        default=JobStatus.DRAFT,
        index=True,
    )
    # Last day on which applications are taken (inclusive)
    application_deadline: Mapped[date | None] = mapped_column(Date)

    posted_by: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    company: Mapped["Company"] = relationship("Company", lazy="joined", innerjoin=True)

    @property
    def is_accepting_applications(self) -> bool:
        return self.status in ACCEPTING_JOB_STATUSES

    def deadline_passed(self, today: date) -> bool:
        return self.application_deadline is not None and today > self.application_deadline

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, title={self.title}, status={self.status})>"
