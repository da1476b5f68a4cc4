"""
SQLModel models

Table models and their request/response schemas live side by side
"""
from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse
from .employer import (
    Employer, EmployerCreate, EmployerUpdate, EmployerResponse,
    Candidate, CandidateCreate, CandidateUpdate, CandidateResponse, CandidateListResponse,
)
from .job import (
    Job, JobCreate, JobUpdate, JobResponse, JobListResponse, JobStatus,
    Application, ApplicationCreate, ApplicationUpdate, ApplicationResponse, ApplicationStatus,
)
from .email import (
    EmailAnalytics, EmailAnalyticsResponse, EmailType,
    EmailTemplate, EmailTemplateCreate, EmailTemplateUpdate, EmailTemplateResponse,
)
from .engagement import (
    CandidateEngagement, EngagementScoreHistory, EngagementLevel, InteractionType,
    EngagementResponse,
)
from .ab_test import (
    ABTest, ABTestVariant, ABTestResult, ABTestStatus, ABTestCreate,
    ABTestResponse, ABTestListResponse, ABTestVariantResponse, ABTestResultResponse,
)
from .warmup import EmailWarmup, WarmupStatus, WarmupCreate, WarmupResponse
from .compliance import (
    NitaqatTracking, WorkforceHistory, ComplianceAlert, ComplianceReport,
    NitaqatBand, ReportStatus, AlertStatus,
)
from .campaign import EmailCampaign, CampaignExecution, CampaignStatus, ExecutionStatus, Workflow
from .notification import Notification, NotificationCreate, NotificationResponse, NotificationType
from .beta import BetaSignup, BetaFeedback, SignupStatus, FeedbackStatus

__all__ = [
    # Base
    "SQLModelBase",
    "TimestampMixin",
    "IDMixin",
    "TimestampResponse",
    # Employer / Candidate
    "Employer",
    "EmployerCreate",
    "EmployerUpdate",
    "EmployerResponse",
    "Candidate",
    "CandidateCreate",
    "CandidateUpdate",
    "CandidateResponse",
    "CandidateListResponse",
    # Job / Application
    "Job",
    "JobCreate",
    "JobUpdate",
    "JobResponse",
    "JobListResponse",
    "JobStatus",
    "Application",
    "ApplicationCreate",
    "ApplicationUpdate",
    "ApplicationResponse",
    "ApplicationStatus",
    # Email
    "EmailAnalytics",
    "EmailAnalyticsResponse",
    "EmailType",
    "EmailTemplate",
    "EmailTemplateCreate",
    "EmailTemplateUpdate",
    "EmailTemplateResponse",
    # Engagement
    "CandidateEngagement",
    "EngagementScoreHistory",
    "EngagementLevel",
    "InteractionType",
    "EngagementResponse",
    # A/B testing
    "ABTest",
    "ABTestVariant",
    "ABTestResult",
    "ABTestStatus",
    "ABTestCreate",
    "ABTestResponse",
    "ABTestListResponse",
    "ABTestVariantResponse",
    "ABTestResultResponse",
    # Warmup
    "EmailWarmup",
    "WarmupStatus",
    "WarmupCreate",
    "WarmupResponse",
    # Compliance
    "NitaqatTracking",
    "WorkforceHistory",
    "ComplianceAlert",
    "ComplianceReport",
    "NitaqatBand",
    "ReportStatus",
    "AlertStatus",
    # Campaigns
    "EmailCampaign",
    "CampaignExecution",
    "CampaignStatus",
    "ExecutionStatus",
    "Workflow",
    # Notifications
    "Notification",
    "NotificationCreate",
    "NotificationResponse",
    "NotificationType",
    # Beta
    "BetaSignup",
    "BetaFeedback",
    "SignupStatus",
    "FeedbackStatus",
]
