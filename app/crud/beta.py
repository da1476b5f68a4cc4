"""
Beta program CRUD
"""
from typing import Optional, Dict, Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.beta import BetaSignup, BetaFeedback, SignupStatus, FeedbackCategory
from .base import CRUDBase


class CRUDBetaSignup(CRUDBase[BetaSignup]):

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[BetaSignup]:
        return await self.get_by(db, func.lower(self.model.contact_email) == email.lower())

    async def count_by_status(self, db: AsyncSession) -> Dict[str, int]:
        result = await db.execute(
            select(self.model.status, func.count()).group_by(self.model.status)
        )
        counts = {s.value: 0 for s in SignupStatus}
        counts.update({status: total for status, total in result.all()})
        return counts


class CRUDBetaFeedback(CRUDBase[BetaFeedback]):

    async def stats(self, db: AsyncSession) -> Dict[str, Any]:
        categories = await db.execute(
            select(self.model.category, func.count()).group_by(self.model.category)
        )
        by_category = {c.value: 0 for c in FeedbackCategory}
        by_category.update({category: total for category, total in categories.all()})

        rating = await db.execute(select(func.avg(self.model.rating)))
        average = rating.scalar()
        return {
            "feedback_by_category": by_category,
            "average_rating": round(float(average), 2) if average is not None else None,
        }


signup_crud = CRUDBetaSignup(BetaSignup)
feedback_crud = CRUDBetaFeedback(BetaFeedback)
