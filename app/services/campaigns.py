"""
Campaign workflow runner

Walks a campaign's node graph for one candidate. A delay node parks the
execution as `waiting` with a `resume_at`; `resume_execution` continues
from the parked node once that time has passed.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified
from loguru import logger

from app.core.exceptions import AppException, BadRequestException
from app.crud.campaign import execution_crud
from app.crud.email import email_analytics_crud
from app.models.base import ensure_utc
from app.models.campaign import (
    EmailCampaign,
    CampaignExecution,
    CampaignStatus,
    ExecutionStatus,
    NodeType,
)
from app.models.email import EmailAnalytics, EmailType
from app.services.email.delivery import send_email

MAX_ITERATIONS = 100


class WorkflowError(Exception):
    """A node could not be executed"""


def _find_node(workflow: dict, node_id: str) -> Optional[dict]:
    for node in workflow.get("nodes", []):
        if node.get("id") == node_id:
            return node
    return None


def _first_connection(node: dict) -> Optional[str]:
    connections = node.get("connections") or []
    return connections[0] if connections else None


async def _run_action(
    db: AsyncSession,
    campaign: EmailCampaign,
    execution: CampaignExecution,
    node: dict,
    data: Dict[str, Any],
) -> None:
    config = node.get("config") or {}
    action = config.get("action_type", "send_email")
    if action != "send_email":
        raise WorkflowError(f"Unsupported action '{action}' on node {node['id']}")

    email = await send_email(
        db,
        employer_id=campaign.employer_id,
        candidate_id=execution.candidate_id,
        template_id=config.get("template_id"),
        subject=config.get("subject"),
        body_html=config.get("body_html"),
        data={**data.get("merge_data", {}), **(config.get("data") or {})},
        email_type=EmailType.CAMPAIGN.value,
        sending_domain=config.get("sending_domain"),
        campaign_id=campaign.id,
    )
    data["last_tracking_id"] = email.tracking_id
    data["last_email_sent_at"] = email.sent_at.isoformat()
    data["emails_sent"] = data.get("emails_sent", 0) + 1


async def _evaluate_condition(
    db: AsyncSession,
    execution: CampaignExecution,
    node: dict,
    data: Dict[str, Any],
) -> bool:
    config = node.get("config") or {}
    condition = config.get("condition_type")

    if condition in ("email_opened", "email_clicked"):
        tracking_id = data.get("last_tracking_id")
        email = await email_analytics_crud.get_by_tracking_id(db, tracking_id) if tracking_id else None
        if email is None:
            email = await email_analytics_crud.latest_for_candidate(
                db, execution.candidate_id, campaign_id=execution.campaign_id
            )
        if email is None:
            return False
        if condition == "email_opened":
            return email.opened_at is not None
        return email.clicked_at is not None

    if condition == "time_elapsed":
        sent_at = data.get("last_email_sent_at")
        if not sent_at:
            return False
        elapsed = datetime.now(timezone.utc) - ensure_utc(datetime.fromisoformat(sent_at))
        return elapsed >= timedelta(minutes=float(config.get("minutes", 0)))

    raise WorkflowError(f"Unknown condition '{condition}' on node {node['id']}")


def _finish(execution: CampaignExecution, status: ExecutionStatus, error: Optional[str] = None) -> None:
    now = datetime.now(timezone.utc)
    execution.status = status.value
    execution.error_message = error
    if status in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED):
        execution.completed_at = now
        execution.resume_at = None
    execution.updated_at = now


async def _walk(
    db: AsyncSession,
    campaign: EmailCampaign,
    execution: CampaignExecution,
    start_node_id: Optional[str],
) -> CampaignExecution:
    workflow = campaign.workflow or {}
    data = dict(execution.execution_data or {})
    steps = list(execution.steps_executed or [])
    node_id = start_node_id
    iterations = 0

    try:
        while node_id is not None:
            iterations += 1
            if iterations > MAX_ITERATIONS:
                raise WorkflowError("Maximum iterations exceeded")

            node = _find_node(workflow, node_id)
            if node is None:
                raise WorkflowError(f"Node {node_id} not found")

            execution.current_step = node_id
            steps.append(node_id)
            node_type = node.get("type")
            next_id = _first_connection(node)

            if node_type == NodeType.ACTION.value:
                await _run_action(db, campaign, execution, node, data)
            elif node_type == NodeType.CONDITION.value:
                met = await _evaluate_condition(db, execution, node, data)
                config = node.get("config") or {}
                next_id = config.get("true_node_id") if met else config.get("false_node_id")
            elif node_type == NodeType.DELAY.value:
                minutes = float((node.get("config") or {}).get("minutes", 0))
                execution.resume_at = datetime.now(timezone.utc) + timedelta(minutes=minutes)
                execution.current_step = next_id
                _finish(execution, ExecutionStatus.WAITING)
                break
            elif node_type == NodeType.END.value:
                next_id = None

            node_id = next_id
        else:
            _finish(execution, ExecutionStatus.COMPLETED)
    except (WorkflowError, AppException) as exc:
        logger.warning("Campaign {} execution {} failed: {}", campaign.id, execution.id, exc)
        _finish(execution, ExecutionStatus.FAILED, str(exc))
    except Exception as exc:
        logger.exception("Campaign {} execution {} crashed", campaign.id, execution.id)
        _finish(execution, ExecutionStatus.FAILED, str(exc))

    execution.execution_data = data
    execution.steps_executed = steps
    flag_modified(execution, "execution_data")
    flag_modified(execution, "steps_executed")
    await db.flush()
    await db.refresh(execution)
    return execution


async def execute_campaign(
    db: AsyncSession,
    campaign: EmailCampaign,
    candidate_id: str,
    merge_data: Optional[Dict[str, Any]] = None,
) -> CampaignExecution:
    """Start one execution of the campaign for a candidate"""
    if campaign.status != CampaignStatus.ACTIVE.value:
        raise BadRequestException(f"Campaign is {campaign.status}, activate it first")

    start = campaign.workflow.get("start_node_id")
    execution = await execution_crud.create(db, obj_in={
        "campaign_id": campaign.id,
        "candidate_id": candidate_id,
        "current_step": start,
        "status": ExecutionStatus.RUNNING,
        "execution_data": {"merge_data": merge_data or {}},
        "started_at": datetime.now(timezone.utc),
    })
    logger.info("Campaign {} started for candidate {}", campaign.id, candidate_id)
    return await _walk(db, campaign, execution, start)


async def resume_execution(
    db: AsyncSession,
    campaign: EmailCampaign,
    execution: CampaignExecution,
) -> CampaignExecution:
    if execution.status != ExecutionStatus.WAITING.value:
        raise BadRequestException(f"Execution is {execution.status}, not waiting")
    if execution.resume_at and ensure_utc(execution.resume_at) > datetime.now(timezone.utc):
        raise BadRequestException("Execution delay has not elapsed yet")

    execution.status = ExecutionStatus.RUNNING.value
    execution.resume_at = None
    return await _walk(db, campaign, execution, execution.current_step)


async def campaign_analytics(db: AsyncSession, campaign: EmailCampaign) -> Dict[str, Any]:
    """Email engagement and execution outcomes for one campaign"""
    sent = await email_analytics_crud.count(db, filters=[EmailAnalytics.campaign_id == campaign.id])
    opened = await email_analytics_crud.count(db, filters=[
        EmailAnalytics.campaign_id == campaign.id,
        EmailAnalytics.opened_at.is_not(None),
    ])
    clicked = await email_analytics_crud.count(db, filters=[
        EmailAnalytics.campaign_id == campaign.id,
        EmailAnalytics.clicked_at.is_not(None),
    ])

    executions = {s.value: 0 for s in ExecutionStatus}
    for status in executions:
        executions[status] = await execution_crud.count(db, filters=[
            CampaignExecution.campaign_id == campaign.id,
            CampaignExecution.status == status,
        ])

    return {
        "total_sent": sent,
        "total_opened": opened,
        "total_clicked": clicked,
        "open_rate": round(opened / sent * 100, 2) if sent else 0.0,
        "click_rate": round(clicked / sent * 100, 2) if sent else 0.0,
        "executions": {"total": sum(executions.values()), **executions},
    }
