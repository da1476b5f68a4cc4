"""
Email warmup CRUD
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from app.core.config import settings
from app.models.base import ensure_utc
from app.models.warmup import EmailWarmup, WarmupStatus
from app.services.scoring.warmup import generate_warmup_schedule
from .base import CRUDBase


class CRUDWarmup(CRUDBase[EmailWarmup]):

    async def create_schedule(
        self,
        db: AsyncSession,
        *,
        employer_id: str,
        domain: str,
        target_volume: Optional[int] = None,
        total_days: Optional[int] = None,
    ) -> EmailWarmup:
        target = target_volume or settings.warmup_default_target
        days = total_days or settings.warmup_default_days
        schedule = generate_warmup_schedule(target, days)
        return await self.create(db, obj_in={
            "employer_id": employer_id,
            "domain": domain.lower(),
            "status": WarmupStatus.ACTIVE.value,
            "start_date": datetime.now(timezone.utc),
            "current_day": 1,
            "total_days": days,
            "daily_limit": schedule[0]["limit"],
            "target_volume": target,
            "schedule": schedule,
        })

    async def get_by_employer(
        self,
        db: AsyncSession,
        employer_id: str,
        domain: Optional[str] = None,
    ) -> List[EmailWarmup]:
        query = select(self.model).where(self.model.employer_id == employer_id)
        if domain:
            query = query.where(self.model.domain == domain.lower())
        result = await db.execute(query.order_by(self.model.created_at.desc()))
        return list(result.scalars().all())

    async def get_active(
        self,
        db: AsyncSession,
        employer_id: str,
        domain: str,
    ) -> Optional[EmailWarmup]:
        return await self.get_by(
            db,
            self.model.employer_id == employer_id,
            self.model.domain == domain.lower(),
            self.model.status == WarmupStatus.ACTIVE.value,
        )

    async def get_all_active(self, db: AsyncSession) -> List[EmailWarmup]:
        result = await db.execute(
            select(self.model).where(self.model.status == WarmupStatus.ACTIVE.value)
        )
        return list(result.scalars().all())

    async def can_send(
        self,
        db: AsyncSession,
        employer_id: str,
        domain: str,
        count: int = 1,
    ) -> Dict[str, Any]:
        """
        Whether `count` more emails fit today's cap

        Domains without an active warmup are not throttled.
        """
        warmup = await self.get_active(db, employer_id, domain)
        if warmup is None:
            return {"allowed": True, "reason": None, "remaining": None}
        if warmup.current_day > warmup.total_days:
            return {"allowed": False, "reason": "Warmup schedule completed", "remaining": 0}
        remaining = max(0, warmup.daily_limit - warmup.sent_today)
        if count > remaining:
            return {"allowed": False, "reason": "Daily warmup limit reached", "remaining": remaining}
        return {"allowed": True, "reason": None, "remaining": remaining - count}

    async def record_send(
        self,
        db: AsyncSession,
        employer_id: str,
        domain: str,
        count: int = 1,
    ) -> Optional[EmailWarmup]:
        warmup = await self.get_active(db, employer_id, domain)
        if warmup is None:
            return None
        now = datetime.now(timezone.utc)
        warmup.sent_today += count
        warmup.total_sent += count
        warmup.last_sent_at = now
        warmup.updated_at = now
        await db.flush()
        return warmup

    async def advance_day(self, db: AsyncSession, warmup: EmailWarmup) -> EmailWarmup:
        """
        Close out today: store today's sent count in the schedule, move to
        the next day's limit, and complete after the last day
        """
        now = datetime.now(timezone.utc)
        schedule = [dict(entry) for entry in warmup.schedule]
        index = warmup.current_day - 1
        if 0 <= index < len(schedule):
            schedule[index]["sent"] = warmup.sent_today
        warmup.schedule = schedule
        flag_modified(warmup, "schedule")

        next_day = warmup.current_day + 1
        if next_day > warmup.total_days:
            warmup.status = WarmupStatus.COMPLETED.value
            warmup.completed_at = now
            warmup.daily_limit = warmup.target_volume
        else:
            warmup.current_day = next_day
            warmup.daily_limit = schedule[next_day - 1]["limit"]
        warmup.sent_today = 0
        warmup.updated_at = now
        await db.flush()
        await db.refresh(warmup)
        return warmup

    async def advance_all(self, db: AsyncSession) -> int:
        warmups = await self.get_all_active(db)
        for warmup in warmups:
            await self.advance_day(db, warmup)
        return len(warmups)

    async def set_status(self, db: AsyncSession, warmup: EmailWarmup, status: WarmupStatus) -> EmailWarmup:
        return await self.update(db, db_obj=warmup, obj_in={"status": status})

    def progress(self, warmup: EmailWarmup) -> Dict[str, Any]:
        if warmup.status == WarmupStatus.COMPLETED.value:
            days_done = warmup.total_days
        else:
            days_done = warmup.current_day - 1
        percent = round(days_done / warmup.total_days * 100, 2) if warmup.total_days else 100.0
        start = ensure_utc(warmup.start_date)
        estimated = start + timedelta(days=warmup.total_days)
        return {
            "id": warmup.id,
            "domain": warmup.domain,
            "status": warmup.status,
            "current_day": warmup.current_day,
            "total_days": warmup.total_days,
            "daily_limit": warmup.daily_limit,
            "sent_today": warmup.sent_today,
            "total_sent": warmup.total_sent,
            "target_volume": warmup.target_volume,
            "progress_percent": percent,
            "estimated_completion": estimated,
        }


warmup_crud = CRUDWarmup(EmailWarmup)
