"""
Candidate engagement models

One engagement row per (candidate, employer), updated in place on every
email interaction, plus an append-only score history
"""
from datetime import datetime
from typing import Optional
from enum import Enum
from sqlmodel import Field, UniqueConstraint

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utcnow


class EngagementLevel(str, Enum):
    VERY_HIGH = "very_high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    VERY_LOW = "very_low"


class InteractionType(str, Enum):
    EMAIL_SENT = "email_sent"
    EMAIL_OPENED = "email_opened"
    LINK_CLICKED = "link_clicked"
    RESPONDED = "responded"


# ==================== Table models ====================

class CandidateEngagement(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "candidate_engagement"
    __table_args__ = (
        UniqueConstraint("candidate_id", "employer_id", name="uq_engagement_candidate_employer"),
    )

    candidate_id: str = Field(foreign_key="candidates.id", index=True)
    employer_id: str = Field(foreign_key="employers.id", index=True)

    total_emails_sent: int = Field(0, ge=0)
    total_emails_opened: int = Field(0, ge=0)
    total_links_clicked: int = Field(0, ge=0)
    total_responses: int = Field(0, ge=0)

    # percentages, 0 when nothing was sent
    open_rate: int = Field(0, ge=0, le=100)
    click_rate: int = Field(0, ge=0, le=100)
    response_rate: int = Field(0, ge=0, le=100)

    engagement_score: int = Field(0, ge=0, le=100, index=True)
    engagement_level: str = Field(EngagementLevel.VERY_LOW.value, index=True)

    first_engagement_at: Optional[datetime] = None
    last_engagement_at: Optional[datetime] = Field(None, index=True)

    def __repr__(self) -> str:
        return f"<CandidateEngagement(candidate={self.candidate_id}, score={self.engagement_score})>"


class EngagementScoreHistory(IDMixin, SQLModelBase, table=True):
    __tablename__ = "engagement_score_history"

    candidate_id: str = Field(foreign_key="candidates.id", index=True)
    employer_id: str = Field(foreign_key="employers.id", index=True)
    score: int = Field(0, ge=0, le=100)
    engagement_level: str
    trigger: Optional[str] = Field(None, description="Interaction that caused the change")
    recorded_at: datetime = Field(default_factory=utcnow, index=True)


# ==================== Request schemas ====================

class InteractionRecord(SQLModelBase):
    """Interaction event for one candidate/employer pair"""
    candidate_id: str
    employer_id: str
    interaction: InteractionType


class ScoreCalculateRequest(SQLModelBase):
    emails_sent: int = Field(0, ge=0)
    emails_opened: int = Field(0, ge=0)
    links_clicked: int = Field(0, ge=0)
    responses: int = Field(0, ge=0)


class CandidateScoreRequest(SQLModelBase):
    """Channel counts for the candidate-level composite score"""
    emails_sent: int = Field(0, ge=0)
    emails_opened: int = Field(0, ge=0)
    emails_clicked: int = Field(0, ge=0)
    profile_views: int = Field(0, ge=0)
    applications: int = Field(0, ge=0)
    interview_responses: int = Field(0, ge=0)


# ==================== Response schemas ====================

class EngagementResponse(TimestampResponse):
    candidate_id: str
    employer_id: str
    total_emails_sent: int
    total_emails_opened: int
    total_links_clicked: int
    total_responses: int
    open_rate: int
    click_rate: int
    response_rate: int
    engagement_score: int
    engagement_level: str
    first_engagement_at: Optional[datetime]
    last_engagement_at: Optional[datetime]


class ScoreHistoryResponse(SQLModelBase):
    score: int
    engagement_level: str
    trigger: Optional[str]
    recorded_at: datetime
