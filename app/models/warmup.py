"""
Email warmup model

A warmup schedule ramps a sending domain's daily cap over `total_days`
"""
from datetime import datetime
from typing import Optional, List
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class WarmupStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


# ==================== Table models ====================

class EmailWarmup(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "email_warmup"

    employer_id: str = Field(foreign_key="employers.id", index=True)
    domain: str = Field(..., max_length=255, index=True)
    status: str = Field(WarmupStatus.ACTIVE.value, index=True)
    start_date: datetime
    current_day: int = Field(1, ge=1)
    total_days: int = Field(30, ge=1)
    daily_limit: int = Field(10, ge=0, description="Today's cap")
    target_volume: int = Field(1000, ge=1)
    sent_today: int = Field(0, ge=0)
    total_sent: int = Field(0, ge=0)
    # [{"day": 1, "limit": 10, "sent": 0}, ...]
    schedule: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    last_sent_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __repr__(self) -> str:
        return f"<EmailWarmup(domain={self.domain}, day={self.current_day}/{self.total_days})>"


# ==================== Request schemas ====================

class WarmupCreate(SQLModelBase):
    employer_id: str
    domain: str = Field(..., min_length=3, max_length=255)
    target_volume: Optional[int] = Field(None, ge=1, le=1000000)
    total_days: Optional[int] = Field(None, ge=1, le=365)


class WarmupSendRecord(SQLModelBase):
    employer_id: str
    domain: str
    count: int = Field(1, ge=1)


class ScheduleEntry(SQLModelBase):
    day: int
    limit: int
    sent: int = 0


# ==================== Response schemas ====================

class WarmupResponse(TimestampResponse):
    employer_id: str
    domain: str
    status: str
    start_date: datetime
    current_day: int
    total_days: int
    daily_limit: int
    target_volume: int
    sent_today: int
    total_sent: int
    schedule: List[ScheduleEntry]
    last_sent_at: Optional[datetime]
    completed_at: Optional[datetime]
