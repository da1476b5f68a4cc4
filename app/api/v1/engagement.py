"""
Candidate engagement API
"""
from typing import Optional, List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.response import success_response, ResponseModel, DictResponse
from app.core.exceptions import NotFoundException
from app.crud import engagement_crud, candidate_crud, employer_crud
from app.models.engagement import (
    EngagementLevel,
    InteractionRecord,
    ScoreCalculateRequest,
    CandidateScoreRequest,
    EngagementResponse,
    ScoreHistoryResponse,
)
from app.services.scoring import score_counters, candidate_overall_score

router = APIRouter()


@router.post("/interactions", summary="Record interaction", response_model=ResponseModel[EngagementResponse])
async def record_interaction(
    data: InteractionRecord,
    db: AsyncSession = Depends(get_db),
):
    """
    Count one email sent / opened / clicked / responded event and rescore
    the candidate for this employer
    """
    if not await candidate_crud.get(db, data.candidate_id):
        raise NotFoundException(f"Candidate not found: {data.candidate_id}")
    if not await employer_crud.get(db, data.employer_id):
        raise NotFoundException(f"Employer not found: {data.employer_id}")

    row = await engagement_crud.record_interaction(
        db,
        candidate_id=data.candidate_id,
        employer_id=data.employer_id,
        interaction=data.interaction,
    )
    return success_response(data=EngagementResponse.model_validate(row).model_dump())


@router.post("/score", summary="Calculate score", response_model=DictResponse)
async def calculate_score(data: ScoreCalculateRequest):
    """Stateless calculator over raw counters"""
    return success_response(data=score_counters(
        data.emails_sent, data.emails_opened, data.links_clicked, data.responses
    ))


@router.post("/candidate-score", summary="Calculate candidate composite score", response_model=DictResponse)
async def calculate_candidate_score(data: CandidateScoreRequest):
    return success_response(data=candidate_overall_score(**data.model_dump()))


@router.post("/recalculate", summary="Recalculate scores", response_model=DictResponse)
async def recalculate_scores(
    employer_id: Optional[str] = Query(None, description="Limit to one employer"),
    db: AsyncSession = Depends(get_db),
):
    changed = await engagement_crud.recalculate_all(db, employer_id)
    return success_response(data={"updated": changed}, message="Scores recalculated")


@router.get("/{employer_id}/candidates/{candidate_id}", summary="Get engagement", response_model=ResponseModel[EngagementResponse])
async def get_engagement(
    employer_id: str,
    candidate_id: str,
    db: AsyncSession = Depends(get_db),
):
    row = await engagement_crud.get_pair(db, candidate_id, employer_id)
    if not row:
        raise NotFoundException("No engagement recorded for this candidate")
    return success_response(data=EngagementResponse.model_validate(row).model_dump())


@router.get(
    "/{employer_id}/candidates/{candidate_id}/trend",
    summary="Score trend",
    response_model=ResponseModel[List[ScoreHistoryResponse]],
)
async def get_engagement_trend(
    employer_id: str,
    candidate_id: str,
    days: int = Query(30, ge=1, le=365, description="Window in days"),
    db: AsyncSession = Depends(get_db),
):
    points = await engagement_crud.trend(db, candidate_id, employer_id, days=days)
    return success_response(data=[ScoreHistoryResponse.model_validate(p).model_dump() for p in points])


@router.get("/{employer_id}/top", summary="Top engaged candidates", response_model=ResponseModel[List[EngagementResponse]])
async def get_top_engaged(
    employer_id: str,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    rows = await engagement_crud.top_engaged(db, employer_id, limit=limit)
    return success_response(data=[EngagementResponse.model_validate(r).model_dump() for r in rows])


@router.get(
    "/{employer_id}/levels/{level}",
    summary="Candidates by engagement level",
    response_model=ResponseModel[List[EngagementResponse]],
)
async def get_by_level(
    employer_id: str,
    level: EngagementLevel,
    db: AsyncSession = Depends(get_db),
):
    rows = await engagement_crud.by_level(db, employer_id, level)
    return success_response(data=[EngagementResponse.model_validate(r).model_dump() for r in rows])


@router.get("/{employer_id}/statistics", summary="Engagement statistics", response_model=DictResponse)
async def get_statistics(
    employer_id: str,
    db: AsyncSession = Depends(get_db),
):
    return success_response(data=await engagement_crud.statistics(db, employer_id))
