"""
A/B test CRUD
"""
from datetime import datetime, timezone
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.ab_test import (
    ABTest,
    ABTestVariant,
    ABTestResult,
    ABTestCreate,
    ABTestStatus,
    VariantEvent,
)
from app.services.scoring.ab_testing import AnalysisResult, VariantStats
from .base import CRUDBase

_EVENT_COUNTERS = {
    VariantEvent.SENT: "sent_count",
    VariantEvent.DELIVERED: "delivered_count",
    VariantEvent.OPENED: "opened_count",
    VariantEvent.CLICKED: "clicked_count",
    VariantEvent.CONVERTED: "conversion_count",
}


def _percent(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * 100, 2)


def variant_stats(variant: ABTestVariant) -> VariantStats:
    return VariantStats(
        id=variant.id,
        name=variant.variant_name,
        sent=variant.sent_count,
        conversions=variant.conversion_count,
        traffic_allocation=variant.traffic_allocation,
    )


class CRUDABTest(CRUDBase[ABTest]):

    async def create_with_variants(self, db: AsyncSession, *, obj_in: ABTestCreate) -> ABTest:
        test = await self.create(db, obj_in=obj_in.model_dump(exclude={"variants"}))
        for variant in obj_in.variants:
            db.add(ABTestVariant(test_id=test.id, **variant.model_dump()))
        await db.flush()
        await db.refresh(test)
        return test

    async def get_variant(self, db: AsyncSession, test_id: str, variant_id: str) -> Optional[ABTestVariant]:
        result = await db.execute(
            select(ABTestVariant).where(
                ABTestVariant.id == variant_id,
                ABTestVariant.test_id == test_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_variant_by_id(self, db: AsyncSession, variant_id: str) -> Optional[ABTestVariant]:
        result = await db.execute(select(ABTestVariant).where(ABTestVariant.id == variant_id))
        return result.scalar_one_or_none()

    async def get_running(self, db: AsyncSession) -> List[ABTest]:
        result = await db.execute(
            select(self.model).where(self.model.status == ABTestStatus.RUNNING.value)
        )
        return list(result.scalars().all())

    async def record_event(
        self,
        db: AsyncSession,
        *,
        variant: ABTestVariant,
        event: VariantEvent,
        count: int = 1,
    ) -> ABTestVariant:
        """Increment one counter and recompute the variant's rates"""
        field = _EVENT_COUNTERS[VariantEvent(event)]
        setattr(variant, field, getattr(variant, field) + count)
        variant.open_rate = _percent(variant.opened_count, variant.sent_count)
        variant.click_rate = _percent(variant.clicked_count, variant.sent_count)
        variant.conversion_rate = _percent(variant.conversion_count, variant.sent_count)
        variant.updated_at = datetime.now(timezone.utc)
        await db.flush()
        await db.refresh(variant)
        return variant

    async def save_result(
        self,
        db: AsyncSession,
        *,
        test: ABTest,
        analysis: AnalysisResult,
        complete: bool,
    ) -> ABTestResult:
        """
        Store the analysis, replacing any previous one

        With `complete` the winner is flagged and the test closed.
        """
        now = datetime.now(timezone.utc)
        existing = await db.execute(select(ABTestResult).where(ABTestResult.test_id == test.id))
        result = existing.scalar_one_or_none()
        if result is None:
            result = ABTestResult(test_id=test.id)
            db.add(result)

        result.winner_variant_id = analysis.winner.id
        result.runner_up_variant_id = analysis.runner_up.id
        result.is_significant = analysis.is_significant
        result.insufficient_data = analysis.insufficient_data
        result.z_score = round(analysis.z_score, 4) if analysis.z_score is not None else None
        result.p_value = round(analysis.p_value, 6) if analysis.p_value is not None else None
        result.confidence_level = test.confidence_level
        result.relative_improvement = analysis.relative_improvement
        result.absolute_improvement = analysis.absolute_improvement
        result.recommendation = analysis.recommendation
        result.analysis_completed_at = now
        result.updated_at = now

        if complete:
            for variant in test.variants:
                variant.is_winner = variant.id == analysis.winner.id
            test.status = ABTestStatus.COMPLETED.value
            test.completed_at = now
        test.updated_at = now

        await db.flush()
        await db.refresh(result)
        await db.refresh(test)
        return result


ab_test_crud = CRUDABTest(ABTest)
