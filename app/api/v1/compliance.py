"""
Saudization compliance API
"""
from typing import Optional, List
from fastapi import APIRouter, Depends, Query, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db, get_session_factory
from app.core.response import (
    success_response,
    paged_response,
    page_offset,
    ResponseModel,
    PagedResponseModel,
    DictResponse,
)
from app.core.exceptions import NotFoundException, BadRequestException, ForbiddenException
from app.crud import nitaqat_crud, alert_crud, report_crud, employer_crud
from app.models.compliance import (
    NitaqatTracking,
    ComplianceAlert,
    ComplianceReport,
    AlertStatus,
    NitaqatBand,
    ReportStatus,
    WorkforceUpdate,
    HiringSimulation,
    ReportCreate,
    NitaqatResponse,
    WorkforceHistoryResponse,
    ComplianceAlertResponse,
    ComplianceReportResponse,
)
from app.services.compliance import nitaqat
from app.services.compliance import service as compliance_service

router = APIRouter()


async def _get_tracking(db: AsyncSession, employer_id: str) -> NitaqatTracking:
    tracking = await nitaqat_crud.get_by_employer(db, employer_id)
    if not tracking:
        raise NotFoundException(f"No workforce data recorded for employer: {employer_id}")
    return tracking


async def _get_alert(db: AsyncSession, alert_id: str, employer_id: str) -> ComplianceAlert:
    alert = await alert_crud.get(db, alert_id)
    if not alert:
        raise NotFoundException(f"Alert not found: {alert_id}")
    if alert.employer_id != employer_id:
        raise ForbiddenException("Alert belongs to another employer")
    return alert


async def _get_report(db: AsyncSession, report_id: str) -> ComplianceReport:
    report = await report_crud.get(db, report_id)
    if not report:
        raise NotFoundException(f"Report not found: {report_id}")
    return report


# ==================== Workforce / Nitaqat ====================

@router.put("/{employer_id}/workforce", summary="Update workforce figures", response_model=DictResponse)
async def update_workforce(
    employer_id: str,
    data: WorkforceUpdate,
    db: AsyncSession = Depends(get_db),
):
    """
    Recalculate the Nitaqat position from new headcounts

    A workforce snapshot is stored and band alerts are raised or resolved.
    """
    tracking, alerts = await compliance_service.update_workforce(
        db,
        employer_id=employer_id,
        total_employees=data.total_employees,
        saudi_employees=data.saudi_employees,
        activity_sector=data.activity_sector,
    )
    return success_response(
        data={
            "tracking": NitaqatResponse.model_validate(tracking).model_dump(),
            "alerts": [ComplianceAlertResponse.model_validate(a).model_dump() for a in alerts],
        },
        message="Workforce updated"
    )


@router.get("/{employer_id}/nitaqat", summary="Current Nitaqat position", response_model=ResponseModel[NitaqatResponse])
async def get_nitaqat(
    employer_id: str,
    db: AsyncSession = Depends(get_db),
):
    tracking = await _get_tracking(db, employer_id)
    return success_response(data=NitaqatResponse.model_validate(tracking).model_dump())


@router.get(
    "/{employer_id}/history",
    summary="Workforce history",
    response_model=ResponseModel[List[WorkforceHistoryResponse]],
)
async def get_history(
    employer_id: str,
    limit: int = Query(12, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    history = await nitaqat_crud.get_history(db, employer_id, limit)
    return success_response(data=[WorkforceHistoryResponse.model_validate(h).model_dump() for h in history])


@router.post("/{employer_id}/simulate", summary="Simulate a hiring plan", response_model=DictResponse)
async def simulate_hiring(
    employer_id: str,
    plan: HiringSimulation,
    db: AsyncSession = Depends(get_db),
):
    tracking = await _get_tracking(db, employer_id)
    return success_response(data=compliance_service.simulate_hiring(tracking, plan))


@router.get("/{employer_id}/hires-needed", summary="Saudi hires needed for a band", response_model=DictResponse)
async def get_hires_needed(
    employer_id: str,
    target_band: NitaqatBand = Query(NitaqatBand.GREEN, description="Band to reach"),
    db: AsyncSession = Depends(get_db),
):
    tracking = await _get_tracking(db, employer_id)
    try:
        result = nitaqat.saudi_hires_needed(
            tracking.total_employees,
            tracking.saudi_employees,
            tracking.activity_sector,
            target_band,
        )
    except ValueError as exc:
        raise BadRequestException(str(exc))
    return success_response(data=result)


@router.get("/calculate", summary="Calculate a band without storing it", response_model=DictResponse)
async def calculate_band(
    total_employees: int = Query(..., ge=0),
    saudi_employees: int = Query(..., ge=0),
    activity_sector: Optional[str] = Query(None),
):
    if saudi_employees > total_employees:
        raise BadRequestException("saudi_employees cannot exceed total_employees")
    result = nitaqat.calculate_nitaqat_band(total_employees, saudi_employees, activity_sector)
    return success_response(data=result.to_dict())


# ==================== Alerts ====================

@router.get(
    "/{employer_id}/alerts",
    summary="List compliance alerts",
    response_model=ResponseModel[List[ComplianceAlertResponse]],
)
async def get_alerts(
    employer_id: str,
    status: Optional[AlertStatus] = Query(None, description="Alert status"),
    db: AsyncSession = Depends(get_db),
):
    alerts = await alert_crud.get_by_employer(db, employer_id, status)
    return success_response(data=[ComplianceAlertResponse.model_validate(a).model_dump() for a in alerts])


async def _transition_alert(
    db: AsyncSession,
    employer_id: str,
    alert_id: str,
    status: AlertStatus,
) -> dict:
    alert = await _get_alert(db, alert_id, employer_id)
    if alert.status in (AlertStatus.RESOLVED.value, AlertStatus.DISMISSED.value):
        raise BadRequestException(f"Alert is already {alert.status}")
    alert = await alert_crud.transition(db, alert, status)
    return ComplianceAlertResponse.model_validate(alert).model_dump()


@router.post(
    "/{employer_id}/alerts/{alert_id}/acknowledge",
    summary="Acknowledge alert",
    response_model=ResponseModel[ComplianceAlertResponse],
)
async def acknowledge_alert(employer_id: str, alert_id: str, db: AsyncSession = Depends(get_db)):
    alert = await _get_alert(db, alert_id, employer_id)
    if alert.status != AlertStatus.ACTIVE.value:
        raise BadRequestException(f"Alert is {alert.status}, only active alerts can be acknowledged")
    alert = await alert_crud.transition(db, alert, AlertStatus.ACKNOWLEDGED)
    return success_response(data=ComplianceAlertResponse.model_validate(alert).model_dump())


@router.post(
    "/{employer_id}/alerts/{alert_id}/resolve",
    summary="Resolve alert",
    response_model=ResponseModel[ComplianceAlertResponse],
)
async def resolve_alert(employer_id: str, alert_id: str, db: AsyncSession = Depends(get_db)):
    data = await _transition_alert(db, employer_id, alert_id, AlertStatus.RESOLVED)
    return success_response(data=data)


@router.post(
    "/{employer_id}/alerts/{alert_id}/dismiss",
    summary="Dismiss alert",
    response_model=ResponseModel[ComplianceAlertResponse],
)
async def dismiss_alert(employer_id: str, alert_id: str, db: AsyncSession = Depends(get_db)):
    data = await _transition_alert(db, employer_id, alert_id, AlertStatus.DISMISSED)
    return success_response(data=data)


@router.post("/checks/run", summary="Run compliance checks", response_model=DictResponse)
async def run_checks(
    employer_id: Optional[str] = Query(None, description="Limit to one employer"),
    db: AsyncSession = Depends(get_db),
):
    return success_response(data=await compliance_service.run_compliance_checks(db, employer_id))


# ==================== Reports ====================

@router.post("/reports", summary="Generate compliance report", response_model=ResponseModel[ComplianceReportResponse])
async def create_report(
    data: ReportCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Queue report generation

    The report is returned as `pending`; poll it until it is `completed`
    or `failed`.
    """
    if not await employer_crud.get(db, data.employer_id):
        raise NotFoundException(f"Employer not found: {data.employer_id}")
    await _get_tracking(db, data.employer_id)

    report = await report_crud.create(db, obj_in=data)
    await db.commit()

    background_tasks.add_task(compliance_service.run_report_generation, report.id, session_factory)
    return success_response(
        data=ComplianceReportResponse.model_validate(report).model_dump(),
        message="Report generation started"
    )


@router.get(
    "/{employer_id}/reports",
    summary="List compliance reports",
    response_model=PagedResponseModel[ComplianceReportResponse],
)
async def get_reports(
    employer_id: str,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    db: AsyncSession = Depends(get_db),
):
    reports = await report_crud.get_by_employer(db, employer_id, skip=page_offset(page, page_size), limit=page_size)
    total = await report_crud.count_by_employer(db, employer_id)
    items = [ComplianceReportResponse.model_validate(r).model_dump() for r in reports]
    return paged_response(items, total, page, page_size)


@router.get("/reports/{report_id}", summary="Get compliance report", response_model=ResponseModel[ComplianceReportResponse])
async def get_report(report_id: str, db: AsyncSession = Depends(get_db)):
    report = await _get_report(db, report_id)
    return success_response(data=ComplianceReportResponse.model_validate(report).model_dump())


@router.post(
    "/reports/{report_id}/submit",
    summary="Submit report to MHRSD",
    response_model=ResponseModel[ComplianceReportResponse],
)
async def submit_report(report_id: str, db: AsyncSession = Depends(get_db)):
    report = await _get_report(db, report_id)
    report = await compliance_service.submit_report(db, report)
    message = "Report submitted" if report.status == ReportStatus.SUBMITTED.value else "Report submission failed"
    return success_response(data=ComplianceReportResponse.model_validate(report).model_dump(), message=message)
