"""
A/B testing API
"""
from datetime import datetime, timezone
from typing import Optional, List
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
from app.core.exceptions import NotFoundException, BadRequestException
from app.crud import ab_test_crud, employer_crud
from app.models.ab_test import (
    ABTest,
    ABTestStatus,
    ABTestCreate,
    VariantEventRecord,
    ABTestResponse,
    ABTestListResponse,
    ABTestVariantResponse,
    ABTestResultResponse,
)
from app.services import ab_tests as ab_service

router = APIRouter()


async def _get_test(db: AsyncSession, test_id: str) -> ABTest:
    test = await ab_test_crud.get(db, test_id)
    if not test:
        raise NotFoundException(f"A/B test not found: {test_id}")
    return test


def _dump(test: ABTest) -> dict:
    return ABTestResponse.model_validate(test).model_dump()


@router.get("", summary="List A/B tests", response_model=PagedResponseModel[ABTestListResponse])
async def get_ab_tests(
    employer_id: str = Query(..., description="Employer ID"),
    status: Optional[ABTestStatus] = Query(None, description="Test status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    db: AsyncSession = Depends(get_db),
):
    filters = [ABTest.employer_id == employer_id]
    if status:
        filters.append(ABTest.status == status.value)
    tests = await ab_test_crud.get_multi(db, skip=page_offset(page, page_size), limit=page_size, filters=filters)
    total = await ab_test_crud.count(db, filters=filters)
    items = [ABTestListResponse.model_validate(t).model_dump() for t in tests]
    return paged_response(items, total, page, page_size)


@router.post("", summary="Create A/B test", response_model=ResponseModel[ABTestResponse])
async def create_ab_test(
    data: ABTestCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a draft test; variant allocations must sum to 100"""
    if not await employer_crud.get(db, data.employer_id):
        raise NotFoundException(f"Employer not found: {data.employer_id}")
    test = await ab_test_crud.create_with_variants(db, obj_in=data)
    return success_response(data=_dump(test), message="A/B test created")


@router.get("/{test_id}", summary="Get A/B test", response_model=ResponseModel[ABTestResponse])
async def get_ab_test(
    test_id: str,
    db: AsyncSession = Depends(get_db),
):
    return success_response(data=_dump(await _get_test(db, test_id)))


@router.post("/{test_id}/start", summary="Start A/B test", response_model=ResponseModel[ABTestResponse])
async def start_ab_test(
    test_id: str,
    db: AsyncSession = Depends(get_db),
):
    test = await _get_test(db, test_id)
    if test.status != ABTestStatus.DRAFT.value:
        raise BadRequestException(f"Only draft tests can be started, this one is {test.status}")
    test = await ab_test_crud.update(db, db_obj=test, obj_in={
        "status": ABTestStatus.RUNNING,
        "started_at": datetime.now(timezone.utc),
    })
    return success_response(data=_dump(test), message="A/B test started")


@router.post("/{test_id}/cancel", summary="Cancel A/B test", response_model=ResponseModel[ABTestResponse])
async def cancel_ab_test(
    test_id: str,
    db: AsyncSession = Depends(get_db),
):
    test = await _get_test(db, test_id)
    if test.status not in (ABTestStatus.DRAFT.value, ABTestStatus.RUNNING.value):
        raise BadRequestException(f"A/B test is already {test.status}")
    test = await ab_test_crud.update(db, db_obj=test, obj_in={
        "status": ABTestStatus.CANCELLED,
        "completed_at": datetime.now(timezone.utc),
    })
    return success_response(data=_dump(test), message="A/B test cancelled")


@router.post(
    "/{test_id}/variants/{variant_id}/events",
    summary="Record variant event",
    response_model=ResponseModel[ABTestVariantResponse],
)
async def record_variant_event(
    test_id: str,
    variant_id: str,
    data: VariantEventRecord,
    db: AsyncSession = Depends(get_db),
):
    test = await _get_test(db, test_id)
    if test.status != ABTestStatus.RUNNING.value:
        raise BadRequestException(f"A/B test is {test.status}, not running")
    variant = await ab_test_crud.get_variant(db, test_id, variant_id)
    if not variant:
        raise NotFoundException(f"Variant not found: {variant_id}")

    variant = await ab_test_crud.record_event(db, variant=variant, event=data.event, count=data.count)
    return success_response(data=ABTestVariantResponse.model_validate(variant).model_dump())


@router.get("/{test_id}/select-variant", summary="Pick a variant for sending", response_model=ResponseModel[ABTestVariantResponse])
async def select_ab_variant(
    test_id: str,
    db: AsyncSession = Depends(get_db),
):
    test = await _get_test(db, test_id)
    variant = ab_service.pick_variant(test)
    return success_response(data=ABTestVariantResponse.model_validate(variant).model_dump())


@router.post("/{test_id}/analyze", summary="Analyze A/B test", response_model=ResponseModel[ABTestResultResponse])
async def analyze_ab_test(
    test_id: str,
    complete: bool = Query(True, description="Close the test and flag the winner"),
    db: AsyncSession = Depends(get_db),
):
    test = await _get_test(db, test_id)
    if test.status == ABTestStatus.CANCELLED.value:
        raise BadRequestException("Cancelled tests cannot be analyzed")
    result = await ab_service.analyze_test(db, test, complete=complete)
    return success_response(data=ABTestResultResponse.model_validate(result).model_dump())


@router.get("/{test_id}/funnel", summary="Conversion funnel", response_model=ResponseModel[List[dict]])
async def get_conversion_funnel(
    test_id: str,
    db: AsyncSession = Depends(get_db),
):
    test = await _get_test(db, test_id)
    return success_response(data=ab_service.conversion_funnel(test))


@router.post("/auto-analyze", summary="Auto-analyze running tests", response_model=DictResponse)
async def auto_analyze_tests(db: AsyncSession = Depends(get_db)):
    return success_response(data=await ab_service.auto_analyze(db))


@router.delete("/{test_id}", summary="Delete A/B test", response_model=MessageResponse)
async def delete_ab_test(
    test_id: str,
    db: AsyncSession = Depends(get_db),
):
    test = await _get_test(db, test_id)
    if test.status == ABTestStatus.RUNNING.value:
        raise BadRequestException("Cancel the test before deleting it")
    await ab_test_crud.delete(db, id=test_id)
    return success_response(message="A/B test deleted")
