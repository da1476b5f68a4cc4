"""
Beta program models
"""
import re
from datetime import datetime
from typing import Optional
from enum import Enum
from pydantic import field_validator
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class SignupStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"


class FeedbackCategory(str, Enum):
    BUG = "bug"
    FEATURE_REQUEST = "feature_request"
    USABILITY = "usability"
    PERFORMANCE = "performance"
    GENERAL = "general"


class FeedbackPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FeedbackStatus(str, Enum):
    NEW = "new"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    WONT_FIX = "wont_fix"


# ==================== Table models ====================

class BetaSignup(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "beta_signups"

    company_name: str = Field(..., max_length=255)
    contact_name: str = Field(..., max_length=255)
    contact_email: str = Field(..., max_length=320, unique=True, index=True)
    contact_phone: Optional[str] = Field(None, max_length=50)
    industry: Optional[str] = Field(None, max_length=100)
    company_size: Optional[str] = Field(None, max_length=20)
    current_hiring_volume: Optional[str] = Field(None, max_length=50)
    pain_points: Optional[str] = None
    expected_hires: Optional[int] = Field(None, ge=0)
    status: str = Field(SignupStatus.PENDING.value, index=True)
    approved_at: Optional[datetime] = None
    notes: Optional[str] = None


class BetaFeedback(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "beta_feedback"

    signup_id: str = Field(foreign_key="beta_signups.id", index=True)
    category: str = Field(FeedbackCategory.GENERAL.value, index=True)
    title: str = Field(..., max_length=255)
    description: str
    priority: str = FeedbackPriority.MEDIUM.value
    status: str = Field(FeedbackStatus.NEW.value, index=True)
    rating: Optional[int] = Field(None, ge=1, le=5)
    admin_response: Optional[str] = None
    responded_at: Optional[datetime] = None


# ==================== Request schemas ====================

class BetaSignupCreate(SQLModelBase):
    company_name: str = Field(..., min_length=1, max_length=255)
    contact_name: str = Field(..., min_length=1, max_length=255)
    contact_email: str = Field(..., min_length=3, max_length=320)
    contact_phone: Optional[str] = Field(None, max_length=50)
    industry: Optional[str] = Field(None, max_length=100)
    company_size: Optional[str] = Field(None, max_length=20)
    current_hiring_volume: Optional[str] = Field(None, max_length=50)
    pain_points: Optional[str] = None
    expected_hires: Optional[int] = Field(None, ge=0)

    @field_validator("contact_email")
    @classmethod
    def check_email(cls, v: str) -> str:
        if not EMAIL_PATTERN.match(v):
            raise ValueError("not a valid email address")
        return v.lower()


class SignupDecision(SQLModelBase):
    notes: Optional[str] = None


class BetaFeedbackCreate(SQLModelBase):
    signup_id: str
    category: FeedbackCategory = FeedbackCategory.GENERAL
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    priority: FeedbackPriority = FeedbackPriority.MEDIUM
    rating: Optional[int] = Field(None, ge=1, le=5)


class FeedbackRespond(SQLModelBase):
    admin_response: str = Field(..., min_length=1)
    status: FeedbackStatus = FeedbackStatus.ACKNOWLEDGED


# ==================== Response schemas ====================

class BetaSignupResponse(TimestampResponse):
    company_name: str
    contact_name: str
    contact_email: str
    contact_phone: Optional[str]
    industry: Optional[str]
    company_size: Optional[str]
    current_hiring_volume: Optional[str]
    pain_points: Optional[str]
    expected_hires: Optional[int]
    status: str
    approved_at: Optional[datetime]
    notes: Optional[str]


class BetaFeedbackResponse(TimestampResponse):
    signup_id: str
    category: str
    title: str
    description: str
    priority: str
    status: str
    rating: Optional[int]
    admin_response: Optional[str]
    responded_at: Optional[datetime]
