"""
API routers
"""
from fastapi import APIRouter

from app.core.response import ERROR_RESPONSES

from .v1 import (
    employers,
    candidates,
    jobs,
    applications,
    engagement,
    ab_tests,
    warmup,
    compliance,
    templates,
    campaigns,
    analytics,
    notifications,
    beta,
    realtime,
)

# mounted under /api/v1
api_router = APIRouter(responses=ERROR_RESPONSES)

api_router.include_router(employers.router, prefix="/employers", tags=["Employers"])
api_router.include_router(candidates.router, prefix="/candidates", tags=["Candidates"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["Jobs"])
api_router.include_router(applications.router, prefix="/applications", tags=["Applications"])
api_router.include_router(engagement.router, prefix="/engagement", tags=["Engagement"])
api_router.include_router(ab_tests.router, prefix="/ab-tests", tags=["A/B Testing"])
api_router.include_router(warmup.router, prefix="/warmup", tags=["Email Warmup"])
api_router.include_router(compliance.router, prefix="/compliance", tags=["Compliance"])
api_router.include_router(templates.router, prefix="/templates", tags=["Email Templates"])
api_router.include_router(campaigns.router, prefix="/campaigns", tags=["Campaigns"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(beta.router, prefix="/beta", tags=["Beta Program"])

# mounted at the application root
ws_router = realtime.router
