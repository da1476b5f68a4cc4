"""
Job and application models

An application links a candidate to an employer's job posting
"""
from typing import Optional, List
from enum import Enum
from sqlmodel import Field, Column, JSON, UniqueConstraint

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class JobStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"


class WorkSetting(str, Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"


class EmploymentType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"


class ApplicationStatus(str, Enum):
    SUBMITTED = "submitted"
    SCREENING = "screening"
    INTERVIEWING = "interviewing"
    OFFERED = "offered"
    REJECTED = "rejected"


# ==================== Base fields ====================

class JobBase(SQLModelBase):
    title: str = Field(..., min_length=1, max_length=255, index=True, description="Job title")
    location: Optional[str] = Field(None, max_length=255)
    salary_min: Optional[int] = Field(None, ge=0, description="Monthly salary min (SAR)")
    salary_max: Optional[int] = Field(None, ge=0, description="Monthly salary max (SAR)")
    description: Optional[str] = Field(None, description="Job description")
    required_skills: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Required skills")


# ==================== Table models ====================

class Job(JobBase, TimestampMixin, IDMixin, table=True):
    __tablename__ = "jobs"

    employer_id: str = Field(foreign_key="employers.id", index=True, description="Employer ID")
    work_setting: str = Field(WorkSetting.ONSITE.value, description="Work setting")
    employment_type: str = Field(EmploymentType.FULL_TIME.value, description="Employment type")
    status: str = Field(JobStatus.DRAFT.value, index=True, description="Job status")
    view_count: int = Field(0, ge=0)
    application_count: int = Field(0, ge=0)

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, title={self.title})>"


class Application(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("candidate_id", "job_id", name="uq_application_candidate_job"),
    )

    candidate_id: str = Field(foreign_key="candidates.id", index=True, description="Candidate ID")
    job_id: str = Field(foreign_key="jobs.id", index=True, description="Job ID")
    employer_id: str = Field(foreign_key="employers.id", index=True, description="Employer ID")
    cover_letter: Optional[str] = None
    status: str = Field(ApplicationStatus.SUBMITTED.value, index=True, description="Application status")
    match_score: Optional[int] = Field(None, ge=0, le=100, description="Skill match score")
    notes: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, status={self.status})>"


# ==================== Request schemas ====================

class JobCreate(JobBase):
    employer_id: str = Field(..., description="Employer ID")
    work_setting: WorkSetting = WorkSetting.ONSITE
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    status: JobStatus = JobStatus.DRAFT


class JobUpdate(SQLModelBase):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    work_setting: Optional[WorkSetting] = None
    employment_type: Optional[EmploymentType] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    required_skills: Optional[List[str]] = None
    status: Optional[JobStatus] = None


class ApplicationCreate(SQLModelBase):
    candidate_id: str = Field(..., description="Candidate ID")
    job_id: str = Field(..., description="Job ID")
    cover_letter: Optional[str] = None


class ApplicationUpdate(SQLModelBase):
    status: Optional[ApplicationStatus] = None
    notes: Optional[str] = None


# ==================== Response schemas ====================

class JobResponse(TimestampResponse):
    employer_id: str
    title: str
    location: Optional[str]
    work_setting: str
    employment_type: str
    salary_min: Optional[int]
    salary_max: Optional[int]
    description: Optional[str]
    required_skills: List[str]
    status: str
    view_count: int
    application_count: int


class JobListResponse(TimestampResponse):
    employer_id: str
    title: str
    location: Optional[str]
    status: str
    application_count: int


class ApplicationResponse(TimestampResponse):
    candidate_id: str
    job_id: str
    employer_id: str
    cover_letter: Optional[str]
    status: str
    match_score: Optional[int]
    notes: Optional[str]
