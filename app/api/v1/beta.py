"""
Beta program API
"""
from datetime import datetime, timezone
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
)
from app.core.exceptions import NotFoundException, BadRequestException, ConflictException
from app.crud import signup_crud, feedback_crud
from app.models.beta import (
    BetaSignup,
    BetaFeedback,
    SignupStatus,
    FeedbackCategory,
    FeedbackStatus,
    BetaSignupCreate,
    SignupDecision,
    BetaFeedbackCreate,
    FeedbackRespond,
    BetaSignupResponse,
    BetaFeedbackResponse,
)

router = APIRouter()

_FEEDBACK_ALLOWED = (SignupStatus.APPROVED.value, SignupStatus.ACTIVE.value)


async def _get_signup(db: AsyncSession, signup_id: str) -> BetaSignup:
    signup = await signup_crud.get(db, signup_id)
    if not signup:
        raise NotFoundException(f"Beta signup not found: {signup_id}")
    return signup


# ==================== Signups ====================

@router.post("/signups", summary="Apply for the beta", response_model=ResponseModel[BetaSignupResponse])
async def create_signup(data: BetaSignupCreate, db: AsyncSession = Depends(get_db)):
    if await signup_crud.get_by_email(db, data.contact_email):
        raise ConflictException(f"A signup already exists for {data.contact_email}")
    values = data.model_dump()
    values["contact_email"] = data.contact_email.lower()
    signup = await signup_crud.create(db, obj_in=values)
    return success_response(
        data=BetaSignupResponse.model_validate(signup).model_dump(),
        message="Signup received"
    )


@router.get("/signups", summary="List signups", response_model=PagedResponseModel[BetaSignupResponse])
async def get_signups(
    status: Optional[SignupStatus] = Query(None, description="Signup status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    db: AsyncSession = Depends(get_db),
):
    filters = [BetaSignup.status == status.value] if status else []
    signups = await signup_crud.get_multi(db, skip=page_offset(page, page_size), limit=page_size, filters=filters)
    total = await signup_crud.count(db, filters=filters)
    items = [BetaSignupResponse.model_validate(s).model_dump() for s in signups]
    return paged_response(items, total, page, page_size)


@router.get("/signups/{signup_id}", summary="Get signup", response_model=ResponseModel[BetaSignupResponse])
async def get_signup(signup_id: str, db: AsyncSession = Depends(get_db)):
    signup = await _get_signup(db, signup_id)
    return success_response(data=BetaSignupResponse.model_validate(signup).model_dump())


async def _decide(db: AsyncSession, signup_id: str, status: SignupStatus, notes: Optional[str]) -> BetaSignup:
    signup = await _get_signup(db, signup_id)
    if signup.status != SignupStatus.PENDING.value:
        raise BadRequestException(f"Signup is {signup.status}, only pending signups can be decided")
    changes = {"status": status, "notes": notes}
    if status == SignupStatus.APPROVED:
        changes["approved_at"] = datetime.now(timezone.utc)
    return await signup_crud.update(db, db_obj=signup, obj_in=changes)


@router.post("/signups/{signup_id}/approve", summary="Approve signup", response_model=ResponseModel[BetaSignupResponse])
async def approve_signup(
    signup_id: str,
    data: Optional[SignupDecision] = None,
    db: AsyncSession = Depends(get_db),
):
    signup = await _decide(db, signup_id, SignupStatus.APPROVED, data.notes if data else None)
    return success_response(data=BetaSignupResponse.model_validate(signup).model_dump(), message="Signup approved")


@router.post("/signups/{signup_id}/reject", summary="Reject signup", response_model=ResponseModel[BetaSignupResponse])
async def reject_signup(
    signup_id: str,
    data: Optional[SignupDecision] = None,
    db: AsyncSession = Depends(get_db),
):
    signup = await _decide(db, signup_id, SignupStatus.REJECTED, data.notes if data else None)
    return success_response(data=BetaSignupResponse.model_validate(signup).model_dump(), message="Signup rejected")


# ==================== Feedback ====================

@router.post("/feedback", summary="Submit feedback", response_model=ResponseModel[BetaFeedbackResponse])
async def create_feedback(data: BetaFeedbackCreate, db: AsyncSession = Depends(get_db)):
    signup = await _get_signup(db, data.signup_id)
    if signup.status not in _FEEDBACK_ALLOWED:
        raise BadRequestException(f"Signup is {signup.status}, feedback is open to approved participants only")
    feedback = await feedback_crud.create(db, obj_in=data)
    return success_response(
        data=BetaFeedbackResponse.model_validate(feedback).model_dump(),
        message="Thanks for the feedback"
    )


@router.get("/feedback", summary="List feedback", response_model=PagedResponseModel[BetaFeedbackResponse])
async def get_feedback(
    signup_id: Optional[str] = Query(None, description="Signup ID"),
    category: Optional[FeedbackCategory] = Query(None, description="Category"),
    status: Optional[FeedbackStatus] = Query(None, description="Feedback status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    db: AsyncSession = Depends(get_db),
):
    filters = []
    if signup_id:
        filters.append(BetaFeedback.signup_id == signup_id)
    if category:
        filters.append(BetaFeedback.category == category.value)
    if status:
        filters.append(BetaFeedback.status == status.value)
    rows = await feedback_crud.get_multi(db, skip=page_offset(page, page_size), limit=page_size, filters=filters)
    total = await feedback_crud.count(db, filters=filters)
    items = [BetaFeedbackResponse.model_validate(f).model_dump() for f in rows]
    return paged_response(items, total, page, page_size)


@router.post(
    "/feedback/{feedback_id}/respond",
    summary="Respond to feedback",
    response_model=ResponseModel[BetaFeedbackResponse],
)
async def respond_to_feedback(
    feedback_id: str,
    data: FeedbackRespond,
    db: AsyncSession = Depends(get_db),
):
    feedback = await feedback_crud.get(db, feedback_id)
    if not feedback:
        raise NotFoundException(f"Feedback not found: {feedback_id}")
    feedback = await feedback_crud.update(db, db_obj=feedback, obj_in={
        "admin_response": data.admin_response,
        "status": data.status,
        "responded_at": datetime.now(timezone.utc),
    })
    return success_response(data=BetaFeedbackResponse.model_validate(feedback).model_dump())


@router.get("/stats", summary="Beta program statistics", response_model=DictResponse)
async def get_stats(db: AsyncSession = Depends(get_db)):
    signups = await signup_crud.count_by_status(db)
    return success_response(data={
        "total_signups": sum(signups.values()),
        "signups_by_status": signups,
        **await feedback_crud.stats(db),
    })
