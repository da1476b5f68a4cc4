"""
Job posting API
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
from app.core.exceptions import NotFoundException, BadRequestException
from app.crud import job_crud, employer_crud
from app.models.job import Job, JobStatus, JobCreate, JobUpdate, JobResponse, JobListResponse

router = APIRouter()


@router.get("", summary="List jobs", response_model=PagedResponseModel[JobListResponse])
async def get_jobs(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    employer_id: Optional[str] = Query(None, description="Employer ID"),
    status: Optional[JobStatus] = Query(None, description="Job status"),
    db: AsyncSession = Depends(get_db),
):
    skip = page_offset(page, page_size)
    filters = []
    if employer_id:
        filters.append(Job.employer_id == employer_id)
    if status:
        filters.append(Job.status == status.value)

    jobs = await job_crud.get_multi(db, skip=skip, limit=page_size, filters=filters)
    total = await job_crud.count(db, filters=filters)
    items = [JobListResponse.model_validate(j).model_dump() for j in jobs]
    return paged_response(items, total, page, page_size)


@router.post("", summary="Create job", response_model=ResponseModel[JobResponse])
async def create_job(
    data: JobCreate,
    db: AsyncSession = Depends(get_db),
):
    if not await employer_crud.get(db, data.employer_id):
        raise NotFoundException(f"Employer not found: {data.employer_id}")
    if data.salary_min is not None and data.salary_max is not None and data.salary_min > data.salary_max:
        raise BadRequestException("salary_min cannot exceed salary_max")

    job = await job_crud.create(db, obj_in=data)
    return success_response(
        data=JobResponse.model_validate(job).model_dump(),
        message="Job created"
    )


@router.get("/{job_id}", summary="Get job", response_model=ResponseModel[JobResponse])
async def get_job(
    job_id: str,
    count_view: bool = Query(False, description="Count this read as a job view"),
    db: AsyncSession = Depends(get_db),
):
    job = await job_crud.get(db, job_id)
    if not job:
        raise NotFoundException(f"Job not found: {job_id}")
    if count_view:
        job = await job_crud.increment_views(db, job)
    return success_response(data=JobResponse.model_validate(job).model_dump())


@router.patch("/{job_id}", summary="Update job", response_model=ResponseModel[JobResponse])
async def update_job(
    job_id: str,
    data: JobUpdate,
    db: AsyncSession = Depends(get_db),
):
    job = await job_crud.get(db, job_id)
    if not job:
        raise NotFoundException(f"Job not found: {job_id}")

    salary_min = data.salary_min if data.salary_min is not None else job.salary_min
    salary_max = data.salary_max if data.salary_max is not None else job.salary_max
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise BadRequestException("salary_min cannot exceed salary_max")

    job = await job_crud.update(db, db_obj=job, obj_in=data)
    return success_response(
        data=JobResponse.model_validate(job).model_dump(),
        message="Job updated"
    )


@router.delete("/{job_id}", summary="Delete job", response_model=MessageResponse)
async def delete_job(
    job_id: str,
    db: AsyncSession = Depends(get_db),
):
    if not await job_crud.delete(db, id=job_id):
        raise NotFoundException(f"Job not found: {job_id}")
    return success_response(message="Job deleted")
