"""
Compliance workflows: workforce updates with alerting, hiring
simulations, report generation and government submission
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from loguru import logger

from app.core.exceptions import BadRequestException, NotFoundException
from app.crud.compliance import nitaqat_crud, alert_crud, report_crud, BAND_ALERT_SEVERITY
from app.crud.employer import employer_crud
from app.models.base import ensure_utc
from app.models.compliance import (
    NitaqatTracking,
    ComplianceAlert,
    ComplianceReport,
    AlertSeverity,
    AlertStatus,
    NitaqatBand,
    ReportStatus,
    HiringSimulation,
)
from app.models.notification import NotificationType, NotificationPriority
from app.services.notifications import notify
from . import nitaqat
from .mhrsd_client import MHRSDError, get_mhrsd_client

_BAND_ALERT_TYPES = ("red_band", "yellow_band")


async def _raise(
    db: AsyncSession,
    employer_id: str,
    alert_type: str,
    severity: AlertSeverity,
    title: str,
    message: str,
    action_required: str,
) -> Optional[ComplianceAlert]:
    alert = await alert_crud.raise_alert(
        db,
        employer_id=employer_id,
        alert_type=alert_type,
        severity=severity,
        title=title,
        message=message,
        action_required=action_required,
    )
    if alert is not None:
        await notify(
            db,
            user_id=employer_id,
            type=NotificationType.COMPLIANCE_ALERT,
            title=title,
            message=message,
            priority=NotificationPriority.URGENT if severity == AlertSeverity.CRITICAL else NotificationPriority.HIGH,
            action_url="/compliance/alerts",
            data={"alert_id": alert.id, "alert_type": alert_type},
        )
    return alert


async def _resolve_band_alerts(db: AsyncSession, employer_id: str) -> None:
    for alert in await alert_crud.get_by_employer(db, employer_id, status=AlertStatus.ACTIVE):
        if alert.alert_type in _BAND_ALERT_TYPES:
            await alert_crud.transition(db, alert, AlertStatus.RESOLVED)


async def evaluate_alerts(
    db: AsyncSession,
    tracking: NitaqatTracking,
    previous_band: Optional[str],
) -> List[ComplianceAlert]:
    """Alerts for a red/yellow position or a drop since the last calculation"""
    raised = []
    band = NitaqatBand(tracking.nitaqat_band)
    gap = tracking.compliance_gap

    if nitaqat.band_dropped(previous_band, band.value):
        alert = await _raise(
            db,
            tracking.employer_id,
            "band_change",
            BAND_ALERT_SEVERITY.get(band, AlertSeverity.WARNING),
            f"Nitaqat band dropped from {previous_band} to {band.value}",
            f"Saudization is now {tracking.saudization_percentage}% against a "
            f"required {tracking.required_percentage}%.",
            f"Hire {gap} Saudi employees to return to green." if gap else "Review workforce plan.",
        )
        if alert:
            raised.append(alert)

    if band == NitaqatBand.RED:
        alert = await _raise(
            db,
            tracking.employer_id,
            "red_band",
            AlertSeverity.CRITICAL,
            "Establishment is in the red Nitaqat band",
            f"Estimated penalty exposure is {tracking.estimated_penalty} SAR per month. "
            "Visa issuance and work permit renewals are blocked.",
            f"Hire {gap} Saudi employees to reach green.",
        )
        if alert:
            raised.append(alert)
    elif band == NitaqatBand.YELLOW:
        alert = await _raise(
            db,
            tracking.employer_id,
            "yellow_band",
            AlertSeverity.WARNING,
            "Establishment is in the yellow Nitaqat band",
            f"Saudization is {tracking.saudization_percentage}%, "
            f"{gap} Saudi hires short of green.",
            f"Hire {gap} Saudi employees to reach green.",
        )
        if alert:
            raised.append(alert)
    else:
        await _resolve_band_alerts(db, tracking.employer_id)

    return raised


async def update_workforce(
    db: AsyncSession,
    *,
    employer_id: str,
    total_employees: int,
    saudi_employees: int,
    activity_sector: str,
) -> Tuple[NitaqatTracking, List[ComplianceAlert]]:
    if not await employer_crud.get(db, employer_id):
        raise NotFoundException(f"Employer not found: {employer_id}")
    if saudi_employees > total_employees:
        raise BadRequestException("saudi_employees cannot exceed total_employees")

    previous = await nitaqat_crud.get_by_employer(db, employer_id)
    previous_band = previous.nitaqat_band if previous else None

    tracking = await nitaqat_crud.upsert(
        db,
        employer_id=employer_id,
        total_employees=total_employees,
        saudi_employees=saudi_employees,
        activity_sector=activity_sector,
    )
    alerts = await evaluate_alerts(db, tracking, previous_band)
    logger.info(
        "Nitaqat recalculated for {}: band={}, saudization={}%, alerts={}",
        employer_id,
        tracking.nitaqat_band,
        tracking.saudization_percentage,
        len(alerts),
    )
    return tracking, alerts


def simulate_hiring(tracking: NitaqatTracking, plan: HiringSimulation) -> Dict[str, Any]:
    """What-if band for a hiring/termination plan"""
    saudi = tracking.saudi_employees + plan.saudi_hires - plan.saudi_terminations
    expat = tracking.expat_employees + plan.expat_hires - plan.expat_terminations
    if saudi < 0 or expat < 0:
        raise BadRequestException("Terminations exceed current headcount")

    current = nitaqat.calculate_nitaqat_band(
        tracking.total_employees, tracking.saudi_employees, tracking.activity_sector
    )
    projected = nitaqat.calculate_nitaqat_band(saudi + expat, saudi, tracking.activity_sector)
    return {
        "current": current.to_dict(),
        "projected": projected.to_dict(),
        "band_change": projected.band != current.band,
        "improves": nitaqat.BAND_RANK[projected.band] > nitaqat.BAND_RANK[current.band],
        "projected_penalty": nitaqat.calculate_penalty(projected.band, projected.compliance_gap),
        "projected_risk_level": nitaqat.calculate_risk_level(projected.band, projected.compliance_gap).value,
    }


# ==================== Reports ====================

async def build_report(db: AsyncSession, report: ComplianceReport) -> Dict[str, Any]:
    employer = await employer_crud.get(db, report.employer_id)
    tracking = await nitaqat_crud.get_by_employer(db, report.employer_id)
    if tracking is None:
        raise ValueError("No workforce data recorded for this employer")

    start, end = ensure_utc(report.period_start), ensure_utc(report.period_end)
    history = [
        row for row in await nitaqat_crud.get_history(db, report.employer_id, limit=400)
        if start <= ensure_utc(row.snapshot_date) <= end
    ]
    alerts = await alert_crud.get_by_employer(db, report.employer_id)
    period_alerts = [a for a in alerts if start <= ensure_utc(a.created_at) <= end]

    return {
        "employer": {
            "id": report.employer_id,
            "company_name": employer.company_name if employer else None,
        },
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "report_type": report.report_type,
        "workforce": {
            "total_employees": tracking.total_employees,
            "saudi_employees": tracking.saudi_employees,
            "expat_employees": tracking.expat_employees,
            "saudization_percentage": tracking.saudization_percentage,
        },
        "nitaqat": {
            "band": tracking.nitaqat_band,
            "entity_size": tracking.entity_size,
            "activity_sector": tracking.activity_sector,
            "required_percentage": tracking.required_percentage,
            "is_compliant": tracking.is_compliant,
            "compliance_gap": tracking.compliance_gap,
            "risk_level": tracking.risk_level,
            "estimated_penalty": tracking.estimated_penalty,
        },
        "forecast": {
            "3_months": tracking.forecast_band_3_months,
            "6_months": tracking.forecast_band_6_months,
            "12_months": tracking.forecast_band_12_months,
        },
        "history": [
            {
                "date": ensure_utc(row.snapshot_date).date().isoformat(),
                "total_employees": row.total_employees,
                "saudi_employees": row.saudi_employees,
                "saudization_percentage": row.saudization_percentage,
                "band": row.nitaqat_band,
            }
            for row in reversed(history)
        ],
        "alerts": {
            "total": len(period_alerts),
            "critical": sum(1 for a in period_alerts if a.severity == AlertSeverity.CRITICAL.value),
            "active": sum(1 for a in period_alerts if a.status == AlertStatus.ACTIVE.value),
        },
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }


def render_report_markdown(data: Dict[str, Any]) -> str:
    workforce, band = data["workforce"], data["nitaqat"]
    lines = [
        f"# Saudization Compliance Report ({data['report_type']})",
        "",
        f"**Company:** {data['employer']['company_name'] or data['employer']['id']}",
        f"**Period:** {data['period']['start'][:10]} to {data['period']['end'][:10]}",
        f"**Generated:** {data['generated_at'][:19]} UTC",
        "",
        "## Workforce",
        "",
        "| Metric | Value |",
        "|---|---|",
        f"| Total employees | {workforce['total_employees']} |",
        f"| Saudi employees | {workforce['saudi_employees']} |",
        f"| Expat employees | {workforce['expat_employees']} |",
        f"| Saudization | {workforce['saudization_percentage']}% |",
        "",
        "## Nitaqat position",
        "",
        f"- Band: **{band['band'].upper()}** ({band['entity_size']} entity, {band['activity_sector']} sector)",
        f"- Required for green: {band['required_percentage']}%",
        f"- Compliant: {'yes' if band['is_compliant'] else 'no'}",
        f"- Saudi hires needed: {band['compliance_gap']}",
        f"- Risk level: {band['risk_level']}",
        f"- Estimated penalty: {band['estimated_penalty']} SAR/month",
        "",
        "## Forecast",
        "",
        f"- 3 months: {data['forecast']['3_months'] or 'n/a'}",
        f"- 6 months: {data['forecast']['6_months'] or 'n/a'}",
        f"- 12 months: {data['forecast']['12_months'] or 'n/a'}",
    ]
    if data["history"]:
        lines += ["", "## History", "", "| Date | Total | Saudi | Saudization | Band |", "|---|---|---|---|---|"]
        lines += [
            f"| {row['date']} | {row['total_employees']} | {row['saudi_employees']} "
            f"| {row['saudization_percentage']}% | {row['band']} |"
            for row in data["history"]
        ]
    lines += [
        "",
        "## Alerts",
        "",
        f"{data['alerts']['total']} alerts raised in the period, "
        f"{data['alerts']['critical']} critical, {data['alerts']['active']} still active.",
        "",
    ]
    return "\n".join(lines)


async def generate_report(db: AsyncSession, report: ComplianceReport) -> ComplianceReport:
    report.status = ReportStatus.GENERATING.value
    report.error_message = None
    await db.flush()

    data = await build_report(db, report)
    return await report_crud.update(db, db_obj=report, obj_in={
        "report_data": data,
        "report_content": render_report_markdown(data),
        "status": ReportStatus.COMPLETED,
    })


async def run_report_generation(report_id: str, session_factory: async_sessionmaker) -> None:
    """Background entry point; failures are stored on the report row"""
    async with session_factory() as db:
        report = await report_crud.get(db, report_id)
        if report is None:
            logger.warning("Report {} vanished before generation", report_id)
            return
        try:
            await generate_report(db, report)
            await db.commit()
            logger.info("Compliance report {} generated", report_id)
        except Exception as exc:
            logger.exception("Compliance report {} failed", report_id)
            await db.rollback()
            report = await report_crud.get(db, report_id)
            if report is not None:
                report.status = ReportStatus.FAILED.value
                report.error_message = str(exc)
                await db.commit()


async def submit_report(db: AsyncSession, report: ComplianceReport) -> ComplianceReport:
    if report.status == ReportStatus.SUBMITTED.value:
        raise BadRequestException(f"Report already submitted: {report.reference_number}")
    if report.status != ReportStatus.COMPLETED.value:
        raise BadRequestException(f"Report is {report.status}, only completed reports can be submitted")

    payload = {
        "report_type": report.report_type,
        "period_start": ensure_utc(report.period_start).isoformat(),
        "period_end": ensure_utc(report.period_end).isoformat(),
        "data": report.report_data,
    }
    try:
        receipt = await get_mhrsd_client().submit_report(report.employer_id, payload)
    except MHRSDError as exc:
        logger.error("Report {} submission failed: {}", report.id, exc)
        return await report_crud.update(db, db_obj=report, obj_in={
            "status": ReportStatus.FAILED,
            "error_message": str(exc),
        })

    return await report_crud.update(db, db_obj=report, obj_in={
        "status": ReportStatus.SUBMITTED,
        "reference_number": receipt["reference_number"],
        "submitted_at": datetime.now(timezone.utc),
        "error_message": None,
    })


async def run_compliance_checks(db: AsyncSession, employer_id: Optional[str] = None) -> Dict[str, int]:
    """Recalculate stored positions and raise any due alerts"""
    if employer_id:
        tracking = await nitaqat_crud.get_by_employer(db, employer_id)
        rows = [tracking] if tracking else []
    else:
        rows = await nitaqat_crud.get_multi(db, limit=10000)

    raised = 0
    for row in rows:
        _, alerts = await update_workforce(
            db,
            employer_id=row.employer_id,
            total_employees=row.total_employees,
            saudi_employees=row.saudi_employees,
            activity_sector=row.activity_sector,
        )
        raised += len(alerts)
    return {"checked": len(rows), "alerts_raised": raised}
