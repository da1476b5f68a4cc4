"""
CRUD operations
"""
from .employer import employer_crud, candidate_crud
from .job import job_crud, application_crud
from .engagement import engagement_crud
from .ab_test import ab_test_crud
from .warmup import warmup_crud
from .compliance import nitaqat_crud, alert_crud, report_crud
from .notification import notification_crud
from .email import email_analytics_crud, template_crud
from .campaign import campaign_crud, execution_crud
from .beta import signup_crud, feedback_crud

__all__ = [
    "employer_crud",
    "candidate_crud",
    "job_crud",
    "application_crud",
    "engagement_crud",
    "ab_test_crud",
    "warmup_crud",
    "nitaqat_crud",
    "alert_crud",
    "report_crud",
    "notification_crud",
    "email_analytics_crud",
    "template_crud",
    "campaign_crud",
    "execution_crud",
    "signup_crud",
    "feedback_crud",
]
