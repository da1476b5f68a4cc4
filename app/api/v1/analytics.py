"""
Analytics API: dashboards, email tracking and background job status
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db, get_session_factory
from app.core.response import success_response, ResponseModel, DictResponse
from app.core.exceptions import NotFoundException
from app.crud import (
    employer_crud,
    job_crud,
    application_crud,
    engagement_crud,
    email_analytics_crud,
    ab_test_crud,
    nitaqat_crud,
)
from app.models.ab_test import ABTest, ABTestStatus
from app.models.email import SendEmailRequest, EmailAnalyticsResponse
from app.models.job import ApplicationStatus
from app.services.email.delivery import send_email
from app.services.email import tracking
from app.services.jobs import scheduler

router = APIRouter()


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


# ==================== Dashboards ====================

@router.get("/employers/{employer_id}/dashboard", summary="Employer dashboard", response_model=DictResponse)
async def get_dashboard(employer_id: str, db: AsyncSession = Depends(get_db)):
    """
    One-call overview for the employer home page

    Jobs and applications by status, match scores, engagement distribution,
    email performance, running A/B tests and the Nitaqat position.
    """
    if not await employer_crud.get(db, employer_id):
        raise NotFoundException(f"Employer not found: {employer_id}")

    jobs = await job_crud.count_by_status(db, employer_id)
    applications = await application_crud.count_by_status(db, employer_id=employer_id)
    engagement = await engagement_crud.statistics(db, employer_id)
    email = await email_analytics_crud.stats(db, employer_id)
    running_tests = await ab_test_crud.count(db, filters=[
        ABTest.employer_id == employer_id,
        ABTest.status == ABTestStatus.RUNNING.value,
    ])
    tracking_row = await nitaqat_crud.get_by_employer(db, employer_id)

    return success_response(data={
        "jobs": {"total": sum(jobs.values()), "by_status": jobs},
        "applications": {
            "total": sum(applications.values()),
            "by_status": applications,
            "average_match_score": await application_crud.average_match_score(db, employer_id),
        },
        "engagement": engagement,
        "email": email,
        "active_ab_tests": running_tests,
        "nitaqat": {
            "band": tracking_row.nitaqat_band,
            "saudization_percentage": tracking_row.saudization_percentage,
            "required_percentage": tracking_row.required_percentage,
            "is_compliant": tracking_row.is_compliant,
            "compliance_gap": tracking_row.compliance_gap,
            "risk_level": tracking_row.risk_level,
        } if tracking_row else None,
    })


@router.get("/jobs/status", summary="Background job status", response_model=DictResponse)
async def get_jobs_status(limit: int = Query(20, ge=1, le=100, description="Log entries")):
    return success_response(data={
        **scheduler.get_status(),
        "logs": scheduler.get_logs(limit),
    })


@router.post("/jobs/{job_name}/run", summary="Run a background job now", response_model=DictResponse)
async def run_job(
    job_name: str,
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    if job_name not in {task["name"] for task in scheduler.get_status()["tasks"]}:
        raise NotFoundException(f"Unknown job: {job_name}")
    entry = await scheduler.run_task(job_name, session_factory)
    return success_response(data=entry, message=f"Job {entry['status']}")


@router.get("/jobs/{job_id}/funnel", summary="Job application funnel", response_model=DictResponse)
async def get_job_funnel(job_id: str, db: AsyncSession = Depends(get_db)):
    job = await job_crud.get(db, job_id)
    if not job:
        raise NotFoundException(f"Job not found: {job_id}")

    by_status = await application_crud.count_by_status(db, job_id=job_id)
    total = sum(by_status.values())
    progressed = total - by_status.get(ApplicationStatus.SUBMITTED.value, 0) - by_status.get(
        ApplicationStatus.REJECTED.value, 0
    )
    return success_response(data={
        "job_id": job.id,
        "title": job.title,
        "views": job.view_count,
        "applications": total,
        "by_status": by_status,
        "conversion": {
            "view_to_application": _rate(total, job.view_count),
            "application_to_screening": _rate(progressed, total),
            "application_to_interview": _rate(
                by_status.get(ApplicationStatus.INTERVIEWING.value, 0)
                + by_status.get(ApplicationStatus.OFFERED.value, 0),
                total,
            ),
            "application_to_offer": _rate(by_status.get(ApplicationStatus.OFFERED.value, 0), total),
        },
    })


# ==================== Email ====================

@router.post("/emails/send", summary="Send email to a candidate", response_model=ResponseModel[EmailAnalyticsResponse])
async def send(data: SendEmailRequest, db: AsyncSession = Depends(get_db)):
    email = await send_email(
        db,
        employer_id=data.employer_id,
        candidate_id=data.candidate_id,
        template_id=data.template_id,
        subject=data.subject,
        body_html=data.body_html,
        data=data.data,
        email_type=data.email_type.value,
        sending_domain=data.sending_domain,
    )
    return success_response(data=EmailAnalyticsResponse.model_validate(email).model_dump(), message="Email sent")


@router.get("/employers/{employer_id}/emails", summary="Email statistics", response_model=DictResponse)
async def get_email_stats(employer_id: str, db: AsyncSession = Depends(get_db)):
    return success_response(data=await email_analytics_crud.stats(db, employer_id))


@router.get("/track/open/{tracking_id}", summary="Track email open", response_model=DictResponse)
async def track_open(tracking_id: str, db: AsyncSession = Depends(get_db)):
    email = await tracking.track_open(db, tracking_id)
    return success_response(data={"tracking_id": tracking_id, "open_count": email.open_count})


@router.get("/track/click/{tracking_id}", summary="Track link click", response_model=DictResponse)
async def track_click(
    tracking_id: str,
    url: Optional[str] = Query(None, description="Redirect target"),
    db: AsyncSession = Depends(get_db),
):
    email = await tracking.track_click(db, tracking_id)
    return success_response(data={
        "tracking_id": tracking_id,
        "click_count": email.click_count,
        "redirect_url": url,
    })


@router.post("/track/reply/{tracking_id}", summary="Track reply", response_model=DictResponse)
async def track_reply(tracking_id: str, db: AsyncSession = Depends(get_db)):
    email = await tracking.track_reply(db, tracking_id)
    return success_response(data={"tracking_id": tracking_id, "replied_at": email.replied_at})
