"""
Candidate engagement CRUD

Each interaction is a read-modify-write of the single (candidate, employer)
row followed by a history append.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.engagement import (
    CandidateEngagement,
    EngagementScoreHistory,
    EngagementLevel,
    InteractionType,
)
from app.services.scoring.engagement import score_counters
from .base import CRUDBase

RECENT_WINDOW = timedelta(days=7)


class CRUDEngagement(CRUDBase[CandidateEngagement]):

    async def get_pair(
        self,
        db: AsyncSession,
        candidate_id: str,
        employer_id: str,
    ) -> Optional[CandidateEngagement]:
        return await self.get_by(
            db,
            self.model.candidate_id == candidate_id,
            self.model.employer_id == employer_id,
        )

    def _apply_score(self, row: CandidateEngagement) -> None:
        scored = score_counters(
            row.total_emails_sent,
            row.total_emails_opened,
            row.total_links_clicked,
            row.total_responses,
        )
        for field, value in scored.items():
            setattr(row, field, value)

    async def _append_history(
        self,
        db: AsyncSession,
        row: CandidateEngagement,
        trigger: Optional[str],
    ) -> None:
        db.add(EngagementScoreHistory(
            candidate_id=row.candidate_id,
            employer_id=row.employer_id,
            score=row.engagement_score,
            engagement_level=row.engagement_level,
            trigger=trigger,
        ))

    async def record_interaction(
        self,
        db: AsyncSession,
        *,
        candidate_id: str,
        employer_id: str,
        interaction: InteractionType,
        at: Optional[datetime] = None,
    ) -> CandidateEngagement:
        """
        Count one interaction and rescore the pair

        The row is created on first interaction. Opens, clicks and
        responses move `last_engagement_at`; plain sends do not.
        """
        now = at or datetime.now(timezone.utc)
        interaction = InteractionType(interaction)
        row = await self.get_pair(db, candidate_id, employer_id)
        if row is None:
            row = CandidateEngagement(candidate_id=candidate_id, employer_id=employer_id)
            db.add(row)

        if interaction == InteractionType.EMAIL_SENT:
            row.total_emails_sent += 1
        elif interaction == InteractionType.EMAIL_OPENED:
            row.total_emails_opened += 1
        elif interaction == InteractionType.LINK_CLICKED:
            row.total_links_clicked += 1
        elif interaction == InteractionType.RESPONDED:
            row.total_responses += 1

        if interaction != InteractionType.EMAIL_SENT:
            if row.first_engagement_at is None:
                row.first_engagement_at = now
            row.last_engagement_at = now

        self._apply_score(row)
        row.updated_at = now
        await self._append_history(db, row, interaction.value)
        await db.flush()
        await db.refresh(row)
        return row

    async def top_engaged(
        self,
        db: AsyncSession,
        employer_id: str,
        limit: int = 50,
    ) -> List[CandidateEngagement]:
        result = await db.execute(
            select(self.model)
            .where(self.model.employer_id == employer_id)
            .order_by(self.model.engagement_score.desc(), self.model.last_engagement_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def by_level(
        self,
        db: AsyncSession,
        employer_id: str,
        level: EngagementLevel,
    ) -> List[CandidateEngagement]:
        result = await db.execute(
            select(self.model)
            .where(
                self.model.employer_id == employer_id,
                self.model.engagement_level == EngagementLevel(level).value,
            )
            .order_by(self.model.engagement_score.desc())
        )
        return list(result.scalars().all())

    async def statistics(self, db: AsyncSession, employer_id: str) -> Dict[str, Any]:
        """Totals, average score and the five-level distribution"""
        totals = await db.execute(
            select(func.count(), func.avg(self.model.engagement_score))
            .where(self.model.employer_id == employer_id)
        )
        total, average = totals.one()

        levels = await db.execute(
            select(self.model.engagement_level, func.count())
            .where(self.model.employer_id == employer_id)
            .group_by(self.model.engagement_level)
        )
        distribution = {level.value: 0 for level in EngagementLevel}
        distribution.update({level: count for level, count in levels.all()})

        since = datetime.now(timezone.utc) - RECENT_WINDOW
        recent = await db.execute(
            select(func.count())
            .select_from(self.model)
            .where(
                self.model.employer_id == employer_id,
                self.model.last_engagement_at >= since,
            )
        )

        return {
            "total_candidates": total or 0,
            "average_score": round(float(average), 2) if average is not None else 0.0,
            "distribution": distribution,
            "recently_engaged": recent.scalar() or 0,
        }

    async def trend(
        self,
        db: AsyncSession,
        candidate_id: str,
        employer_id: str,
        days: int = 30,
    ) -> List[EngagementScoreHistory]:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        result = await db.execute(
            select(EngagementScoreHistory)
            .where(
                EngagementScoreHistory.candidate_id == candidate_id,
                EngagementScoreHistory.employer_id == employer_id,
                EngagementScoreHistory.recorded_at >= since,
            )
            .order_by(EngagementScoreHistory.recorded_at)
        )
        return list(result.scalars().all())

    async def recalculate_all(self, db: AsyncSession, employer_id: Optional[str] = None) -> int:
        """Rescore stored rows from their counters; returns rows whose score changed"""
        query = select(self.model)
        if employer_id:
            query = query.where(self.model.employer_id == employer_id)
        rows = (await db.execute(query)).scalars().all()

        changed = 0
        for row in rows:
            before = row.engagement_score
            self._apply_score(row)
            if row.engagement_score != before:
                changed += 1
                await self._append_history(db, row, "recalculation")
        await db.flush()
        return changed


engagement_crud = CRUDEngagement(CandidateEngagement)
