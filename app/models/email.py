"""
Email analytics and template models
"""
from datetime import datetime
from typing import Optional, List
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class EmailType(str, Enum):
    INTERVIEW_INVITE = "interview_invite"
    INTERVIEW_REMINDER = "interview_reminder"
    APPLICATION_RECEIVED = "application_received"
    APPLICATION_UPDATE = "application_update"
    JOB_MATCH = "job_match"
    REJECTION = "rejection"
    OFFER = "offer"
    CAMPAIGN = "campaign"
    CUSTOM = "custom"


# ==================== Table models ====================

class EmailAnalytics(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """One row per delivered email, keyed by its tracking id"""
    __tablename__ = "email_analytics"

    employer_id: str = Field(foreign_key="employers.id", index=True)
    candidate_id: Optional[str] = Field(None, foreign_key="candidates.id", index=True)
    campaign_id: Optional[str] = Field(None, index=True, description="Source campaign")
    ab_test_variant_id: Optional[str] = Field(None, index=True, description="Source A/B variant")
    email_type: str = Field(EmailType.CUSTOM.value, index=True)
    recipient_email: str = Field(..., max_length=320)
    subject: str = Field(..., max_length=500)
    tracking_id: str = Field(..., max_length=64, unique=True, index=True)
    sending_domain: Optional[str] = Field(None, max_length=255)

    sent_at: datetime = Field(..., description="Sent at")
    opened_at: Optional[datetime] = None
    clicked_at: Optional[datetime] = None
    replied_at: Optional[datetime] = None
    open_count: int = Field(0, ge=0)
    click_count: int = Field(0, ge=0)


class EmailTemplate(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "email_templates"

    employer_id: str = Field(foreign_key="employers.id", index=True)
    name: str = Field(..., max_length=255)
    type: str = Field(EmailType.CUSTOM.value, index=True)
    subject: str = Field(..., max_length=500)
    body_html: str = Field(..., description="HTML body with {{variable}} merge fields")
    body_text: Optional[str] = None
    variables: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    is_default: bool = False
    is_active: bool = True
    usage_count: int = Field(0, ge=0)

    def __repr__(self) -> str:
        return f"<EmailTemplate(id={self.id}, name={self.name})>"


# ==================== Request schemas ====================

class EmailTemplateCreate(SQLModelBase):
    employer_id: str
    name: str = Field(..., min_length=1, max_length=255)
    type: EmailType = EmailType.CUSTOM
    subject: str = Field(..., min_length=1, max_length=500)
    body_html: str = Field(..., min_length=1)
    body_text: Optional[str] = None
    is_default: bool = False


class EmailTemplateUpdate(SQLModelBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[EmailType] = None
    subject: Optional[str] = Field(None, min_length=1, max_length=500)
    body_html: Optional[str] = Field(None, min_length=1)
    body_text: Optional[str] = None
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None


class TemplateRenderRequest(SQLModelBase):
    data: dict = Field(default_factory=dict, description="Merge field values")


class TemplatePreviewRequest(SQLModelBase):
    subject: str
    body_html: str
    data: dict = Field(default_factory=dict)


class ContentOptimizeRequest(SQLModelBase):
    employer_id: str
    subject: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    email_type: EmailType = EmailType.CUSTOM
    target_audience: Optional[str] = None


class SendEmailRequest(SQLModelBase):
    employer_id: str
    candidate_id: str
    template_id: Optional[str] = None
    subject: Optional[str] = None
    body_html: Optional[str] = None
    data: dict = Field(default_factory=dict)
    email_type: EmailType = EmailType.CUSTOM
    sending_domain: Optional[str] = None


# ==================== Response schemas ====================

class EmailTemplateResponse(TimestampResponse):
    employer_id: str
    name: str
    type: str
    subject: str
    body_html: str
    body_text: Optional[str]
    variables: List[str]
    is_default: bool
    is_active: bool
    usage_count: int


class EmailAnalyticsResponse(TimestampResponse):
    employer_id: str
    candidate_id: Optional[str]
    campaign_id: Optional[str]
    ab_test_variant_id: Optional[str]
    email_type: str
    recipient_email: str
    subject: str
    tracking_id: str
    sending_domain: Optional[str]
    sent_at: datetime
    opened_at: Optional[datetime]
    clicked_at: Optional[datetime]
    replied_at: Optional[datetime]
    open_count: int
    click_count: int
