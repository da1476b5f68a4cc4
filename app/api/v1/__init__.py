"""
API v1 routers
"""
from . import (
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

__all__ = [
    "employers",
    "candidates",
    "jobs",
    "applications",
    "engagement",
    "ab_tests",
    "warmup",
    "compliance",
    "templates",
    "campaigns",
    "analytics",
    "notifications",
    "beta",
    "realtime",
]
