"""
Application API

New applications notify the employer; status changes notify the candidate.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.response import (
    success_response,
    paged_response,
    page_offset,
    ResponseModel,
    PagedResponseModel,
    MessageResponse,
)
from app.core.exceptions import NotFoundException, ConflictException, BadRequestException
from app.crud import application_crud, job_crud, candidate_crud
from app.models.job import (
    Application,
    ApplicationStatus,
    ApplicationCreate,
    ApplicationUpdate,
    ApplicationResponse,
    JobStatus,
)
from app.models.notification import NotificationType, NotificationPriority
from app.services.notifications import notify

router = APIRouter()


@router.get("", summary="List applications", response_model=PagedResponseModel[ApplicationResponse])
async def get_applications(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    job_id: Optional[str] = Query(None, description="Job ID"),
    candidate_id: Optional[str] = Query(None, description="Candidate ID"),
    employer_id: Optional[str] = Query(None, description="Employer ID"),
    status: Optional[ApplicationStatus] = Query(None, description="Application status"),
    db: AsyncSession = Depends(get_db),
):
    skip = page_offset(page, page_size)
    filters = []
    if job_id:
        filters.append(Application.job_id == job_id)
    if candidate_id:
        filters.append(Application.candidate_id == candidate_id)
    if employer_id:
        filters.append(Application.employer_id == employer_id)
    if status:
        filters.append(Application.status == status.value)

    applications = await application_crud.get_multi(db, skip=skip, limit=page_size, filters=filters)
    total = await application_crud.count(db, filters=filters)
    items = [ApplicationResponse.model_validate(a).model_dump() for a in applications]
    return paged_response(items, total, page, page_size)


@router.post("", summary="Apply to a job", response_model=ResponseModel[ApplicationResponse])
async def create_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
):
    job = await job_crud.get(db, data.job_id)
    if not job:
        raise NotFoundException(f"Job not found: {data.job_id}")
    candidate = await candidate_crud.get(db, data.candidate_id)
    if not candidate:
        raise NotFoundException(f"Candidate not found: {data.candidate_id}")
    if job.status == JobStatus.CLOSED.value:
        raise BadRequestException("This job is closed to new applications")
    if await application_crud.get_by_candidate_and_job(db, data.candidate_id, data.job_id):
        raise ConflictException("Candidate has already applied to this job")

    application = await application_crud.create_for_job(
        db, job=job, candidate=candidate, cover_letter=data.cover_letter
    )
    await notify(
        db,
        user_id=job.employer_id,
        type=NotificationType.NEW_APPLICATION,
        title=f"New application for {job.title}",
        message=f"{candidate.full_name} applied for {job.title}",
        priority=NotificationPriority.NORMAL,
        action_url=f"/applications/{application.id}",
        data={"application_id": application.id, "job_id": job.id, "candidate_id": candidate.id},
    )
    return success_response(
        data=ApplicationResponse.model_validate(application).model_dump(),
        message="Application submitted"
    )


@router.get("/{application_id}", summary="Get application", response_model=ResponseModel[ApplicationResponse])
async def get_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
):
    application = await application_crud.get(db, application_id)
    if not application:
        raise NotFoundException(f"Application not found: {application_id}")
    return success_response(data=ApplicationResponse.model_validate(application).model_dump())


@router.patch("/{application_id}", summary="Update application", response_model=ResponseModel[ApplicationResponse])
async def update_application(
    application_id: str,
    data: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
):
    application = await application_crud.get(db, application_id)
    if not application:
        raise NotFoundException(f"Application not found: {application_id}")

    previous_status = application.status
    application = await application_crud.update(db, db_obj=application, obj_in=data)

    if data.status and data.status.value != previous_status:
        job = await job_crud.get(db, application.job_id)
        title = job.title if job else "your application"
        await notify(
            db,
            user_id=application.candidate_id,
            type=NotificationType.APPLICATION_UPDATE,
            title=f"Application update: {title}",
            message=f"Your application status changed to {data.status.value}",
            priority=NotificationPriority.HIGH if data.status == ApplicationStatus.OFFERED else NotificationPriority.NORMAL,
            action_url=f"/applications/{application.id}",
            data={"application_id": application.id, "status": data.status.value, "previous_status": previous_status},
        )
    return success_response(
        data=ApplicationResponse.model_validate(application).model_dump(),
        message="Application updated"
    )


@router.delete("/{application_id}", summary="Withdraw application", response_model=MessageResponse)
async def delete_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
):
    application = await application_crud.get(db, application_id)
    if not application:
        raise NotFoundException(f"Application not found: {application_id}")

    job = await job_crud.get(db, application.job_id)
    if job and job.application_count > 0:
        job.application_count -= 1
    await application_crud.delete(db, id=application_id)
    return success_response(message="Application withdrawn")
