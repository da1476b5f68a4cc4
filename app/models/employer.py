"""
Employer and candidate models
"""
from typing import Optional, List
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class AccountStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class ProfileStatus(str, Enum):
    INCOMPLETE = "incomplete"
    ACTIVE = "active"
    INACTIVE = "inactive"


# ==================== Base fields ====================

class EmployerBase(SQLModelBase):
    company_name: str = Field(..., min_length=1, max_length=255, index=True, description="Company name")
    industry: Optional[str] = Field(None, max_length=100, description="Activity sector")
    company_size: Optional[str] = Field(None, max_length=20, description="Size bucket e.g. 51-200")
    contact_email: Optional[str] = Field(None, max_length=320, description="Contact email")
    contact_phone: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None


class CandidateBase(SQLModelBase):
    full_name: str = Field(..., min_length=1, max_length=255, index=True, description="Full name")
    email: str = Field(..., max_length=320, index=True, description="Email")
    phone: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    headline: Optional[str] = Field(None, max_length=255, description="Profile headline")
    summary: Optional[str] = None
    years_of_experience: int = Field(0, ge=0, description="Years of experience")
    technical_skills: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Skills")
    is_available: bool = Field(True, description="Open to offers")


# ==================== Table models ====================

class Employer(EmployerBase, TimestampMixin, IDMixin, table=True):
    __tablename__ = "employers"

    account_status: str = Field(AccountStatus.ACTIVE.value, index=True, description="Account status")

    def __repr__(self) -> str:
        return f"<Employer(id={self.id}, company_name={self.company_name})>"


class Candidate(CandidateBase, TimestampMixin, IDMixin, table=True):
    __tablename__ = "candidates"

    profile_status: str = Field(ProfileStatus.ACTIVE.value, index=True, description="Profile status")
    profile_views: int = Field(0, ge=0, description="Profile view count")

    def __repr__(self) -> str:
        return f"<Candidate(id={self.id}, full_name={self.full_name})>"


# ==================== Request schemas ====================

class EmployerCreate(EmployerBase):
    pass


class EmployerUpdate(SQLModelBase):
    company_name: Optional[str] = Field(None, min_length=1, max_length=255)
    industry: Optional[str] = Field(None, max_length=100)
    company_size: Optional[str] = Field(None, max_length=20)
    contact_email: Optional[str] = Field(None, max_length=320)
    contact_phone: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    account_status: Optional[AccountStatus] = None


class CandidateCreate(CandidateBase):
    pass


class CandidateUpdate(SQLModelBase):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=320)
    phone: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    headline: Optional[str] = Field(None, max_length=255)
    summary: Optional[str] = None
    years_of_experience: Optional[int] = Field(None, ge=0)
    technical_skills: Optional[List[str]] = None
    is_available: Optional[bool] = None
    profile_status: Optional[ProfileStatus] = None


# ==================== Response schemas ====================

class EmployerResponse(TimestampResponse):
    company_name: str
    industry: Optional[str]
    company_size: Optional[str]
    contact_email: Optional[str]
    contact_phone: Optional[str]
    website: Optional[str]
    description: Optional[str]
    account_status: str


class CandidateResponse(TimestampResponse):
    full_name: str
    email: str
    phone: Optional[str]
    location: Optional[str]
    headline: Optional[str]
    summary: Optional[str]
    years_of_experience: int
    technical_skills: List[str]
    is_available: bool
    profile_status: str
    profile_views: int


class CandidateListResponse(TimestampResponse):
    full_name: str
    email: str
    headline: Optional[str]
    location: Optional[str]
    is_available: bool
