"""Schemas for job postings and companies."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from database.models.jobs import JobStatus


class JobCreate(BaseModel):
    company_id: Optional[int] = Field(
        None, ge=1, description="Required for admins; hr users post for their own company"
    )
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    requirements: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    status: JobStatus = JobStatus.DRAFT
    application_deadline: Optional[date] = None


class JobUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    requirements: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    application_deadline: Optional[date] = None


class JobStatusUpdate(BaseModel):
    status: JobStatus


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    title: str
    description: str
    requirements: Optional[str] = None
    location: Optional[str] = None
    status: JobStatus
    application_deadline: Optional[date] = None
    posted_by: int
    created_at: datetime
    updated_at: datetime


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    website: Optional[str] = Field(None, max_length=255)
    industry: Optional[str] = Field(None, max_length=100)


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    website: Optional[str] = Field(None, max_length=255)
    industry: Optional[str] = Field(None, max_length=100)


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
