"""
Email campaign API
"""
from typing import List
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
from app.crud import campaign_crud, execution_crud, employer_crud, candidate_crud
from app.models.campaign import (
    EmailCampaign,
    CampaignStatus,
    CampaignCreate,
    CampaignUpdate,
    CampaignExecuteRequest,
    CampaignResponse,
    CampaignExecutionResponse,
)
from app.services import campaigns as campaign_service

router = APIRouter()


async def _get_campaign(db: AsyncSession, campaign_id: str) -> EmailCampaign:
    campaign = await campaign_crud.get(db, campaign_id)
    if not campaign:
        raise NotFoundException(f"Campaign not found: {campaign_id}")
    return campaign


def _dump(campaign: EmailCampaign) -> dict:
    return CampaignResponse.model_validate(campaign).model_dump()


def _dump_execution(execution) -> dict:
    return CampaignExecutionResponse.model_validate(execution).model_dump()


@router.get("", summary="List campaigns", response_model=PagedResponseModel[CampaignResponse])
async def get_campaigns(
    employer_id: str = Query(..., description="Employer ID"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    db: AsyncSession = Depends(get_db),
):
    campaigns = await campaign_crud.get_by_employer(db, employer_id, skip=page_offset(page, page_size), limit=page_size)
    total = await campaign_crud.count_by_employer(db, employer_id)
    return paged_response([_dump(c) for c in campaigns], total, page, page_size)


@router.post("", summary="Create campaign", response_model=ResponseModel[CampaignResponse])
async def create_campaign(
    data: CampaignCreate,
    db: AsyncSession = Depends(get_db),
):
    if not await employer_crud.get(db, data.employer_id):
        raise NotFoundException(f"Employer not found: {data.employer_id}")
    campaign = await campaign_crud.create(db, obj_in={
        "employer_id": data.employer_id,
        "name": data.name,
        "description": data.description,
        "workflow": data.workflow.model_dump(mode="json"),
    })
    return success_response(data=_dump(campaign), message="Campaign created")


@router.get("/{campaign_id}", summary="Get campaign", response_model=ResponseModel[CampaignResponse])
async def get_campaign(campaign_id: str, db: AsyncSession = Depends(get_db)):
    campaign = await _get_campaign(db, campaign_id)
    return success_response(data=_dump(campaign))


@router.patch("/{campaign_id}", summary="Update campaign", response_model=ResponseModel[CampaignResponse])
async def update_campaign(
    campaign_id: str,
    data: CampaignUpdate,
    db: AsyncSession = Depends(get_db),
):
    campaign = await _get_campaign(db, campaign_id)
    if campaign.status == CampaignStatus.ACTIVE.value and data.workflow is not None:
        raise BadRequestException("Pause the campaign before changing its workflow")

    changes = data.model_dump(exclude_unset=True, exclude={"workflow"})
    if data.workflow is not None:
        changes["workflow"] = data.workflow.model_dump(mode="json")
    campaign = await campaign_crud.update(db, db_obj=campaign, obj_in=changes)
    return success_response(data=_dump(campaign), message="Campaign updated")


@router.delete("/{campaign_id}", summary="Delete campaign", response_model=MessageResponse)
async def delete_campaign(campaign_id: str, db: AsyncSession = Depends(get_db)):
    campaign = await _get_campaign(db, campaign_id)
    if campaign.status == CampaignStatus.ACTIVE.value:
        raise BadRequestException("Pause the campaign before deleting it")
    for execution in await execution_crud.get_by_campaign(db, campaign_id, limit=10000):
        await db.delete(execution)
    await campaign_crud.delete(db, id=campaign_id)
    return success_response(message="Campaign deleted")


@router.post("/{campaign_id}/activate", summary="Activate campaign", response_model=ResponseModel[CampaignResponse])
async def activate_campaign(campaign_id: str, db: AsyncSession = Depends(get_db)):
    campaign = await _get_campaign(db, campaign_id)
    if campaign.status not in (CampaignStatus.DRAFT.value, CampaignStatus.PAUSED.value):
        raise BadRequestException(f"Campaign is {campaign.status} and cannot be activated")
    campaign = await campaign_crud.update(db, db_obj=campaign, obj_in={"status": CampaignStatus.ACTIVE})
    return success_response(data=_dump(campaign), message="Campaign activated")


@router.post("/{campaign_id}/pause", summary="Pause campaign", response_model=ResponseModel[CampaignResponse])
async def pause_campaign(campaign_id: str, db: AsyncSession = Depends(get_db)):
    campaign = await _get_campaign(db, campaign_id)
    if campaign.status != CampaignStatus.ACTIVE.value:
        raise BadRequestException(f"Campaign is {campaign.status}, only active campaigns can be paused")
    campaign = await campaign_crud.update(db, db_obj=campaign, obj_in={"status": CampaignStatus.PAUSED})
    return success_response(data=_dump(campaign), message="Campaign paused")


@router.post(
    "/{campaign_id}/execute",
    summary="Run campaign for a candidate",
    response_model=ResponseModel[CampaignExecutionResponse],
)
async def execute_campaign(
    campaign_id: str,
    data: CampaignExecuteRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Walk the workflow for one candidate

    Runs until the end node, a failure, or a delay node. A delayed
    execution comes back as `waiting`.
    """
    campaign = await _get_campaign(db, campaign_id)
    if not await candidate_crud.get(db, data.candidate_id):
        raise NotFoundException(f"Candidate not found: {data.candidate_id}")
    execution = await campaign_service.execute_campaign(db, campaign, data.candidate_id, data.data)
    return success_response(data=_dump_execution(execution), message=f"Execution {execution.status}")


@router.get(
    "/{campaign_id}/executions",
    summary="List executions",
    response_model=ResponseModel[List[CampaignExecutionResponse]],
)
async def get_executions(
    campaign_id: str,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=200, description="Page size"),
    db: AsyncSession = Depends(get_db),
):
    await _get_campaign(db, campaign_id)
    executions = await execution_crud.get_by_campaign(
        db, campaign_id, skip=page_offset(page, page_size), limit=page_size
    )
    return success_response(data=[_dump_execution(e) for e in executions])


@router.post(
    "/{campaign_id}/executions/{execution_id}/resume",
    summary="Resume a waiting execution",
    response_model=ResponseModel[CampaignExecutionResponse],
)
async def resume_execution(
    campaign_id: str,
    execution_id: str,
    db: AsyncSession = Depends(get_db),
):
    campaign = await _get_campaign(db, campaign_id)
    execution = await execution_crud.get(db, execution_id)
    if not execution or execution.campaign_id != campaign_id:
        raise NotFoundException(f"Execution not found: {execution_id}")
    if campaign.status != CampaignStatus.ACTIVE.value:
        raise BadRequestException(f"Campaign is {campaign.status}, activate it first")
    execution = await campaign_service.resume_execution(db, campaign, execution)
    return success_response(data=_dump_execution(execution), message=f"Execution {execution.status}")


@router.get("/{campaign_id}/analytics", summary="Campaign analytics", response_model=DictResponse)
async def get_campaign_analytics(campaign_id: str, db: AsyncSession = Depends(get_db)):
    campaign = await _get_campaign(db, campaign_id)
    return success_response(data=await campaign_service.campaign_analytics(db, campaign))
