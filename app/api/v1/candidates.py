"""
Candidate API
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
    DictResponse,
    MessageResponse,
)
from app.core.exceptions import NotFoundException, ConflictException
from app.crud import candidate_crud, application_crud, engagement_crud
from app.models.employer import (
    Candidate,
    CandidateCreate,
    CandidateUpdate,
    CandidateResponse,
    CandidateListResponse,
)
from app.models.job import Application, ApplicationStatus
from app.services.scoring import candidate_overall_score

router = APIRouter()

# statuses that mean the candidate answered an interview invitation
_INTERVIEW_RESPONDED = (
    ApplicationStatus.INTERVIEWING.value,
    ApplicationStatus.OFFERED.value,
)


@router.get("", summary="List candidates", response_model=PagedResponseModel[CandidateListResponse])
async def get_candidates(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    is_available: Optional[bool] = Query(None, description="Open to offers"),
    db: AsyncSession = Depends(get_db),
):
    skip = page_offset(page, page_size)
    filters = []
    if is_available is not None:
        filters.append(Candidate.is_available == is_available)

    candidates = await candidate_crud.get_multi(db, skip=skip, limit=page_size, filters=filters)
    total = await candidate_crud.count(db, filters=filters)
    items = [CandidateListResponse.model_validate(c).model_dump() for c in candidates]
    return paged_response(items, total, page, page_size)


@router.post("", summary="Create candidate", response_model=ResponseModel[CandidateResponse])
async def create_candidate(
    data: CandidateCreate,
    db: AsyncSession = Depends(get_db),
):
    if await candidate_crud.get_by_email(db, data.email):
        raise ConflictException(f"Candidate with email '{data.email}' already exists")

    candidate = await candidate_crud.create(db, obj_in=data)
    return success_response(
        data=CandidateResponse.model_validate(candidate).model_dump(),
        message="Candidate created"
    )


@router.get("/{candidate_id}", summary="Get candidate", response_model=ResponseModel[CandidateResponse])
async def get_candidate(
    candidate_id: str,
    db: AsyncSession = Depends(get_db),
):
    candidate = await candidate_crud.get(db, candidate_id)
    if not candidate:
        raise NotFoundException(f"Candidate not found: {candidate_id}")
    return success_response(data=CandidateResponse.model_validate(candidate).model_dump())


@router.post("/{candidate_id}/views", summary="Record profile view", response_model=ResponseModel[CandidateResponse])
async def record_profile_view(
    candidate_id: str,
    db: AsyncSession = Depends(get_db),
):
    candidate = await candidate_crud.get(db, candidate_id)
    if not candidate:
        raise NotFoundException(f"Candidate not found: {candidate_id}")
    candidate = await candidate_crud.increment_views(db, candidate)
    return success_response(data=CandidateResponse.model_validate(candidate).model_dump())


@router.get("/{candidate_id}/engagement-score", summary="Candidate engagement score", response_model=DictResponse)
async def get_candidate_engagement_score(
    candidate_id: str,
    employer_id: str = Query(..., description="Employer ID"),
    db: AsyncSession = Depends(get_db),
):
    """
    Composite score across email, application and interview activity
    for one employer
    """
    candidate = await candidate_crud.get(db, candidate_id)
    if not candidate:
        raise NotFoundException(f"Candidate not found: {candidate_id}")

    engagement = await engagement_crud.get_pair(db, candidate_id, employer_id)
    scoped = [Application.candidate_id == candidate_id, Application.employer_id == employer_id]
    applications = await application_crud.count(db, filters=scoped)
    responded = await application_crud.count(
        db, filters=scoped + [Application.status.in_(_INTERVIEW_RESPONDED)]
    )

    score = candidate_overall_score(
        emails_sent=engagement.total_emails_sent if engagement else 0,
        emails_opened=engagement.total_emails_opened if engagement else 0,
        emails_clicked=engagement.total_links_clicked if engagement else 0,
        profile_views=candidate.profile_views,
        applications=applications,
        interview_responses=responded,
    )
    return success_response(data={"candidate_id": candidate_id, "employer_id": employer_id, **score})


@router.patch("/{candidate_id}", summary="Update candidate", response_model=ResponseModel[CandidateResponse])
async def update_candidate(
    candidate_id: str,
    data: CandidateUpdate,
    db: AsyncSession = Depends(get_db),
):
    candidate = await candidate_crud.get(db, candidate_id)
    if not candidate:
        raise NotFoundException(f"Candidate not found: {candidate_id}")

    if data.email and data.email != candidate.email:
        if await candidate_crud.get_by_email(db, data.email):
            raise ConflictException(f"Candidate with email '{data.email}' already exists")

    candidate = await candidate_crud.update(db, db_obj=candidate, obj_in=data)
    return success_response(
        data=CandidateResponse.model_validate(candidate).model_dump(),
        message="Candidate updated"
    )


@router.delete("/{candidate_id}", summary="Delete candidate", response_model=MessageResponse)
async def delete_candidate(
    candidate_id: str,
    db: AsyncSession = Depends(get_db),
):
    if not await candidate_crud.delete(db, id=candidate_id):
        raise NotFoundException(f"Candidate not found: {candidate_id}")
    return success_response(message="Candidate deleted")
