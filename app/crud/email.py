"""
Email analytics and template CRUD
"""
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.email import EmailAnalytics, EmailTemplate
from .base import CRUDBase


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole > 0 else 0.0


class CRUDEmailAnalytics(CRUDBase[EmailAnalytics]):

    async def get_by_tracking_id(self, db: AsyncSession, tracking_id: str) -> Optional[EmailAnalytics]:
        return await self.get_by(db, self.model.tracking_id == tracking_id)

    async def latest_for_candidate(
        self,
        db: AsyncSession,
        candidate_id: str,
        *,
        campaign_id: Optional[str] = None,
    ) -> Optional[EmailAnalytics]:
        query = select(self.model).where(self.model.candidate_id == candidate_id)
        if campaign_id:
            query = query.where(self.model.campaign_id == campaign_id)
        result = await db.execute(query.order_by(self.model.sent_at.desc()).limit(1))
        return result.scalar_one_or_none()

    async def mark_opened(self, db: AsyncSession, email: EmailAnalytics) -> bool:
        """Count an open; True on the first one"""
        first = email.opened_at is None
        if first:
            email.opened_at = datetime.now(timezone.utc)
        email.open_count += 1
        await db.flush()
        return first

    async def mark_clicked(self, db: AsyncSession, email: EmailAnalytics) -> bool:
        first = email.clicked_at is None
        now = datetime.now(timezone.utc)
        if first:
            email.clicked_at = now
        # a click implies the email was opened
        if email.opened_at is None:
            email.opened_at = now
        email.click_count += 1
        await db.flush()
        return first

    async def mark_replied(self, db: AsyncSession, email: EmailAnalytics) -> bool:
        first = email.replied_at is None
        if first:
            email.replied_at = datetime.now(timezone.utc)
            await db.flush()
        return first

    async def stats(self, db: AsyncSession, employer_id: str) -> Dict[str, Any]:
        """Sent/opened/clicked/replied totals and rates, overall and per email type"""
        opened = func.sum(case((self.model.opened_at.is_not(None), 1), else_=0))
        clicked = func.sum(case((self.model.clicked_at.is_not(None), 1), else_=0))
        replied = func.sum(case((self.model.replied_at.is_not(None), 1), else_=0))
        result = await db.execute(
            select(self.model.email_type, func.count(), opened, clicked, replied)
            .where(self.model.employer_id == employer_id)
            .group_by(self.model.email_type)
        )

        by_type = {}
        totals = {"sent": 0, "opened": 0, "clicked": 0, "replied": 0}
        for email_type, sent, n_open, n_click, n_reply in result.all():
            row = {"sent": sent, "opened": n_open or 0, "clicked": n_click or 0, "replied": n_reply or 0}
            for key in totals:
                totals[key] += row[key]
            row.update({
                "open_rate": _rate(row["opened"], sent),
                "click_rate": _rate(row["clicked"], sent),
            })
            by_type[email_type] = row

        return {
            **totals,
            "open_rate": _rate(totals["opened"], totals["sent"]),
            "click_rate": _rate(totals["clicked"], totals["sent"]),
            "reply_rate": _rate(totals["replied"], totals["sent"]),
            "by_type": by_type,
        }


class CRUDEmailTemplate(CRUDBase[EmailTemplate]):

    async def get_by_employer(
        self,
        db: AsyncSession,
        employer_id: str,
        *,
        type: Optional[str] = None,
        active_only: bool = False,
    ) -> List[EmailTemplate]:
        filters = [self.model.employer_id == employer_id]
        if type:
            filters.append(self.model.type == type)
        if active_only:
            filters.append(self.model.is_active == True)
        return await self.get_multi(db, filters=filters, limit=500, order_by=self.model.name)

    async def get_by_name(self, db: AsyncSession, employer_id: str, name: str) -> Optional[EmailTemplate]:
        return await self.get_by(db, self.model.employer_id == employer_id, self.model.name == name)

    async def increment_usage(self, db: AsyncSession, template: EmailTemplate) -> None:
        template.usage_count += 1
        await db.flush()


email_analytics_crud = CRUDEmailAnalytics(EmailAnalytics)
template_crud = CRUDEmailTemplate(EmailTemplate)
