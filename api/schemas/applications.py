"""Schemas for job applications and their status history."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from database.models.applications import Application, ApplicationStatus


class ApplicationCreate(BaseModel):
    job_id: int = Field(..., ge=1)
    candidate_id: Optional[int] = Field(
        None, ge=1, description="Defaults to the authenticated candidate"
    )
    cover_letter: Optional[str] = Field(None, max_length=10000)
    resume_url: Optional[str] = Field(None, max_length=500)
    portfolio_url: Optional[str] = Field(None, max_length=500)
    expected_salary: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    availability_date: Optional[date] = None
    additional_info: Optional[str] = Field(None, max_length=10000)


class StatusUpdate(BaseModel):
    # Plain string so an unknown value is reported by the state machine
    status: str = Field(..., min_length=1, max_length=50)
    notes: Optional[str] = Field(None, max_length=2000)


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    candidate_id: int
    status: ApplicationStatus
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    expected_salary: Optional[Decimal] = None
    availability_date: Optional[date] = None
    additional_info: Optional[str] = None
    applied_at: datetime
    updated_at: datetime
    job_title: Optional[str] = None
    company_id: Optional[int] = None
    candidate_name: Optional[str] = None

    @classmethod
    def from_application(cls, application: Application) -> "ApplicationResponse":
        response = cls.model_validate(application)
        response.job_title = application.job.title
        response.company_id = application.job.company_id
        response.candidate_name = application.candidate.full_name
        return response


class StatusHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    status: ApplicationStatus
    notes: Optional[str] = None
    updated_by: int
    created_at: datetime
