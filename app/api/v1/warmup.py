"""
Email domain warmup API
"""
from typing import Optional, List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.response import success_response, ResponseModel, DictResponse, MessageResponse
from app.core.exceptions import NotFoundException, BadRequestException, ConflictException, ForbiddenException
from app.crud import warmup_crud, employer_crud
from app.models.warmup import EmailWarmup, WarmupStatus, WarmupCreate, WarmupSendRecord, WarmupResponse
from app.services.scoring import generate_warmup_schedule

router = APIRouter()


async def _get_owned(db: AsyncSession, warmup_id: str, employer_id: str) -> EmailWarmup:
    warmup = await warmup_crud.get(db, warmup_id)
    if not warmup:
        raise NotFoundException(f"Warmup schedule not found: {warmup_id}")
    if warmup.employer_id != employer_id:
        raise ForbiddenException("Warmup schedule belongs to another employer")
    return warmup


@router.get("/preview", summary="Preview warmup curve", response_model=ResponseModel[List[dict]])
async def preview_schedule(
    target_volume: int = Query(1000, ge=1, le=1000000),
    total_days: int = Query(30, ge=1, le=365),
):
    return success_response(data=generate_warmup_schedule(target_volume, total_days))


@router.post("", summary="Create warmup schedule", response_model=ResponseModel[WarmupResponse])
async def create_warmup(
    data: WarmupCreate,
    db: AsyncSession = Depends(get_db),
):
    if not await employer_crud.get(db, data.employer_id):
        raise NotFoundException(f"Employer not found: {data.employer_id}")
    if await warmup_crud.get_active(db, data.employer_id, data.domain):
        raise ConflictException(f"An active warmup already exists for {data.domain}")

    warmup = await warmup_crud.create_schedule(
        db,
        employer_id=data.employer_id,
        domain=data.domain,
        target_volume=data.target_volume,
        total_days=data.total_days,
    )
    return success_response(
        data=WarmupResponse.model_validate(warmup).model_dump(),
        message="Warmup schedule created"
    )


@router.get("", summary="List warmup schedules", response_model=ResponseModel[List[WarmupResponse]])
async def get_warmups(
    employer_id: str = Query(..., description="Employer ID"),
    domain: Optional[str] = Query(None, description="Sending domain"),
    db: AsyncSession = Depends(get_db),
):
    warmups = await warmup_crud.get_by_employer(db, employer_id, domain)
    return success_response(data=[WarmupResponse.model_validate(w).model_dump() for w in warmups])


@router.get("/can-send", summary="Check sending allowance", response_model=DictResponse)
async def can_send(
    employer_id: str = Query(..., description="Employer ID"),
    domain: str = Query(..., description="Sending domain"),
    count: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return success_response(data=await warmup_crud.can_send(db, employer_id, domain, count))


@router.post("/sends", summary="Record sends", response_model=DictResponse)
async def record_sends(
    data: WarmupSendRecord,
    db: AsyncSession = Depends(get_db),
):
    gate = await warmup_crud.can_send(db, data.employer_id, data.domain, data.count)
    if not gate["allowed"]:
        raise BadRequestException(gate["reason"], data={"remaining": gate["remaining"]})
    warmup = await warmup_crud.record_send(db, data.employer_id, data.domain, data.count)
    return success_response(data={
        "tracked": warmup is not None,
        "sent_today": warmup.sent_today if warmup else None,
        "remaining": gate["remaining"],
    })


@router.post("/advance", summary="Advance all active schedules one day", response_model=DictResponse)
async def advance_all(db: AsyncSession = Depends(get_db)):
    advanced = await warmup_crud.advance_all(db)
    return success_response(data={"advanced": advanced})


@router.get("/{warmup_id}", summary="Get warmup schedule", response_model=ResponseModel[WarmupResponse])
async def get_warmup(
    warmup_id: str,
    employer_id: str = Query(..., description="Employer ID"),
    db: AsyncSession = Depends(get_db),
):
    warmup = await _get_owned(db, warmup_id, employer_id)
    return success_response(data=WarmupResponse.model_validate(warmup).model_dump())


@router.get("/{warmup_id}/progress", summary="Warmup progress", response_model=DictResponse)
async def get_progress(
    warmup_id: str,
    employer_id: str = Query(..., description="Employer ID"),
    db: AsyncSession = Depends(get_db),
):
    warmup = await _get_owned(db, warmup_id, employer_id)
    return success_response(data=warmup_crud.progress(warmup))


@router.post("/{warmup_id}/pause", summary="Pause warmup", response_model=ResponseModel[WarmupResponse])
async def pause_warmup(
    warmup_id: str,
    employer_id: str = Query(..., description="Employer ID"),
    db: AsyncSession = Depends(get_db),
):
    warmup = await _get_owned(db, warmup_id, employer_id)
    if warmup.status != WarmupStatus.ACTIVE.value:
        raise BadRequestException(f"Warmup is {warmup.status}, only active schedules can be paused")
    warmup = await warmup_crud.set_status(db, warmup, WarmupStatus.PAUSED)
    return success_response(data=WarmupResponse.model_validate(warmup).model_dump(), message="Warmup paused")


@router.post("/{warmup_id}/resume", summary="Resume warmup", response_model=ResponseModel[WarmupResponse])
async def resume_warmup(
    warmup_id: str,
    employer_id: str = Query(..., description="Employer ID"),
    db: AsyncSession = Depends(get_db),
):
    warmup = await _get_owned(db, warmup_id, employer_id)
    if warmup.status != WarmupStatus.PAUSED.value:
        raise BadRequestException(f"Warmup is {warmup.status}, only paused schedules can be resumed")
    active = await warmup_crud.get_active(db, employer_id, warmup.domain)
    if active is not None and active.id != warmup.id:
        raise ConflictException(f"Another warmup is already active for {warmup.domain}")
    warmup = await warmup_crud.set_status(db, warmup, WarmupStatus.ACTIVE)
    return success_response(data=WarmupResponse.model_validate(warmup).model_dump(), message="Warmup resumed")


@router.delete("/{warmup_id}", summary="Delete warmup", response_model=MessageResponse)
async def delete_warmup(
    warmup_id: str,
    employer_id: str = Query(..., description="Employer ID"),
    db: AsyncSession = Depends(get_db),
):
    await _get_owned(db, warmup_id, employer_id)
    await warmup_crud.delete(db, id=warmup_id)
    return success_response(message="Warmup deleted")
