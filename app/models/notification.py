"""
In-app notification model
"""
from datetime import datetime
from typing import Optional
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class NotificationType(str, Enum):
    INTERVIEW_INVITE = "interview_invite"
    INTERVIEW_REMINDER = "interview_reminder"
    JOB_MATCH = "job_match"
    APPLICATION_UPDATE = "application_update"
    NEW_APPLICATION = "new_application"
    ENGAGEMENT_ALERT = "engagement_alert"
    AB_TEST_RESULT = "ab_test_result"
    COMPLIANCE_ALERT = "compliance_alert"
    SYSTEM = "system"


class NotificationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Notification(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "notifications"

    user_id: str = Field(..., index=True, description="Employer or candidate id")
    type: str = Field(NotificationType.SYSTEM.value, index=True)
    title: str = Field(..., max_length=255)
    message: str
    priority: str = NotificationPriority.NORMAL.value
    action_url: Optional[str] = Field(None, max_length=500)
    data: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    is_read: bool = Field(False, index=True)
    read_at: Optional[datetime] = None


class NotificationCreate(SQLModelBase):
    user_id: str
    type: NotificationType = NotificationType.SYSTEM
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    priority: NotificationPriority = NotificationPriority.NORMAL
    action_url: Optional[str] = Field(None, max_length=500)
    data: Optional[dict] = None


class NotificationResponse(TimestampResponse):
    user_id: str
    type: str
    title: str
    message: str
    priority: str
    action_url: Optional[str]
    data: Optional[dict]
    is_read: bool
    read_at: Optional[datetime]
