"""
Compliance CRUD: Nitaqat tracking, workforce history, alerts, reports
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.compliance import (
    NitaqatTracking,
    WorkforceHistory,
    ComplianceAlert,
    ComplianceReport,
    AlertStatus,
    AlertSeverity,
    NitaqatBand,
)
from app.services.compliance import nitaqat
from .base import CRUDBase


class CRUDNitaqat(CRUDBase[NitaqatTracking]):

    async def get_by_employer(self, db: AsyncSession, employer_id: str) -> Optional[NitaqatTracking]:
        return await self.get_by(db, self.model.employer_id == employer_id)

    async def get_history(
        self,
        db: AsyncSession,
        employer_id: str,
        limit: int = 12,
    ) -> List[WorkforceHistory]:
        """Snapshots, newest first"""
        result = await db.execute(
            select(WorkforceHistory)
            .where(WorkforceHistory.employer_id == employer_id)
            .order_by(WorkforceHistory.snapshot_date.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def upsert(
        self,
        db: AsyncSession,
        *,
        employer_id: str,
        total_employees: int,
        saudi_employees: int,
        activity_sector: str,
    ) -> NitaqatTracking:
        """
        Recalculate the employer's band, store a workforce snapshot

        Forecasts use the hiring trend of the previous snapshots.
        """
        now = datetime.now(timezone.utc)
        expat = total_employees - saudi_employees
        calc = nitaqat.calculate_nitaqat_band(total_employees, saudi_employees, activity_sector)
        penalty = nitaqat.calculate_penalty(calc.band, calc.compliance_gap)
        risk = nitaqat.calculate_risk_level(calc.band, calc.compliance_gap)

        history = await self.get_history(db, employer_id, limit=6)
        trend = nitaqat.monthly_trend(history)

        forecasts = {
            months: nitaqat.forecast_band(
                total_employees, saudi_employees, trend["saudi"], trend["expat"], months, activity_sector
            ).value
            for months in (3, 6, 12)
        }

        projected_date = None
        if not calc.is_compliant and trend["saudi"] > 0:
            months_needed = -(-calc.compliance_gap // trend["saudi"])
            projected_date = now + timedelta(days=30 * int(months_needed))

        values = {
            "total_employees": total_employees,
            "saudi_employees": saudi_employees,
            "expat_employees": expat,
            "saudization_percentage": calc.saudization_percentage,
            "entity_size": calc.entity_size,
            "activity_sector": activity_sector,
            "nitaqat_band": calc.band.value,
            "required_percentage": calc.required_percentage,
            "is_compliant": calc.is_compliant,
            "compliance_gap": calc.compliance_gap,
            "risk_level": risk.value,
            "estimated_penalty": penalty,
            "forecast_band_3_months": forecasts[3],
            "forecast_band_6_months": forecasts[6],
            "forecast_band_12_months": forecasts[12],
            "projected_compliance_date": projected_date,
            "last_calculated": now,
            "updated_at": now,
        }

        tracking = await self.get_by_employer(db, employer_id)
        if tracking is None:
            tracking = NitaqatTracking(employer_id=employer_id, **values)
            db.add(tracking)
        else:
            for field, value in values.items():
                setattr(tracking, field, value)

        db.add(WorkforceHistory(
            employer_id=employer_id,
            snapshot_date=now,
            total_employees=total_employees,
            saudi_employees=saudi_employees,
            expat_employees=expat,
            saudization_percentage=calc.saudization_percentage,
            nitaqat_band=calc.band.value,
        ))
        await db.flush()
        await db.refresh(tracking)
        return tracking


class CRUDComplianceAlert(CRUDBase[ComplianceAlert]):

    async def get_by_employer(
        self,
        db: AsyncSession,
        employer_id: str,
        status: Optional[AlertStatus] = None,
    ) -> List[ComplianceAlert]:
        filters = [self.model.employer_id == employer_id]
        if status:
            filters.append(self.model.status == AlertStatus(status).value)
        return await self.get_multi(db, filters=filters, limit=500)

    async def has_active(self, db: AsyncSession, employer_id: str, alert_type: str) -> bool:
        result = await db.execute(
            select(self.model.id).where(
                self.model.employer_id == employer_id,
                self.model.alert_type == alert_type,
                self.model.status == AlertStatus.ACTIVE.value,
            ).limit(1)
        )
        return result.first() is not None

    async def raise_alert(
        self,
        db: AsyncSession,
        *,
        employer_id: str,
        alert_type: str,
        severity: AlertSeverity,
        title: str,
        message: str,
        action_required: Optional[str] = None,
    ) -> Optional[ComplianceAlert]:
        """Create an alert unless one of the same type is still active"""
        if await self.has_active(db, employer_id, alert_type):
            return None
        return await self.create(db, obj_in={
            "employer_id": employer_id,
            "alert_type": alert_type,
            "severity": severity,
            "title": title,
            "message": message,
            "action_required": action_required,
        })

    async def transition(
        self,
        db: AsyncSession,
        alert: ComplianceAlert,
        status: AlertStatus,
    ) -> ComplianceAlert:
        now = datetime.now(timezone.utc)
        changes = {"status": status}
        if status == AlertStatus.ACKNOWLEDGED:
            changes["acknowledged_at"] = now
        elif status in (AlertStatus.RESOLVED, AlertStatus.DISMISSED):
            changes["resolved_at"] = now
        return await self.update(db, db_obj=alert, obj_in=changes)


class CRUDComplianceReport(CRUDBase[ComplianceReport]):

    async def get_by_employer(
        self,
        db: AsyncSession,
        employer_id: str,
        *,
        skip: int = 0,
        limit: int = 20,
    ) -> List[ComplianceReport]:
        return await self.get_multi(
            db, skip=skip, limit=limit, filters=[self.model.employer_id == employer_id]
        )

    async def count_by_employer(self, db: AsyncSession, employer_id: str) -> int:
        return await self.count(db, filters=[self.model.employer_id == employer_id])


BAND_ALERT_SEVERITY = {
    NitaqatBand.RED: AlertSeverity.CRITICAL,
    NitaqatBand.YELLOW: AlertSeverity.WARNING,
}

nitaqat_crud = CRUDNitaqat(NitaqatTracking)
alert_crud = CRUDComplianceAlert(ComplianceAlert)
report_crud = CRUDComplianceReport(ComplianceReport)
