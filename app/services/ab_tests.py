"""
A/B test analysis workflows
"""
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.config import settings
from app.core.exceptions import BadRequestException
from app.crud.ab_test import ab_test_crud, variant_stats
from app.models.ab_test import ABTest, ABTestResult, ABTestStatus, ABTestVariant
from app.models.notification import NotificationType, NotificationPriority
from app.services.notifications import notify
from app.services.scoring.ab_testing import analyze_variants, select_variant


async def analyze_test(db: AsyncSession, test: ABTest, *, complete: bool = True) -> ABTestResult:
    """
    Compare the test's variants and store the result

    With `complete` the test is closed and the winner flagged even when
    the difference is not significant.
    """
    try:
        analysis = analyze_variants([variant_stats(v) for v in test.variants])
    except ValueError as exc:
        raise BadRequestException(str(exc))

    result = await ab_test_crud.save_result(db, test=test, analysis=analysis, complete=complete)
    logger.info(
        "A/B test {} analysed: winner={}, significant={}, z={}",
        test.id,
        analysis.winner.name,
        analysis.is_significant,
        result.z_score,
    )
    return result


def pick_variant(test: ABTest, rand: Optional[float] = None) -> ABTestVariant:
    if test.status != ABTestStatus.RUNNING.value:
        raise BadRequestException(f"A/B test is {test.status}, not running")
    stats = [variant_stats(v) for v in test.variants]
    chosen = select_variant(stats, rand)
    return next(v for v in test.variants if v.id == chosen.id)


def conversion_funnel(test: ABTest) -> List[Dict[str, Any]]:
    """Per-variant counts at each stage with stage-to-stage rates"""
    stages = ("sent", "delivered", "opened", "clicked", "conversion")
    funnel = []
    for variant in test.variants:
        counts = [getattr(variant, f"{stage}_count") for stage in stages]
        steps = []
        for i, (stage, count) in enumerate(zip(stages, counts)):
            previous = counts[i - 1] if i else count
            steps.append({
                "stage": "converted" if stage == "conversion" else stage,
                "count": count,
                "rate_from_previous": round(count / previous * 100, 2) if previous else 0.0,
            })
        funnel.append({
            "variant_id": variant.id,
            "variant_name": variant.variant_name,
            "stages": steps,
        })
    return funnel


async def auto_analyze(db: AsyncSession) -> Dict[str, int]:
    """
    Analyse running tests whose variants all reached the minimum sends

    Only significant results close a test; the employer is notified.
    """
    analyzed = completed = 0
    for test in await ab_test_crud.get_running(db):
        if len(test.variants) < 2:
            continue
        if any(v.sent_count < settings.ab_test_auto_min_sends for v in test.variants):
            continue

        analysis = analyze_variants([variant_stats(v) for v in test.variants])
        await ab_test_crud.save_result(db, test=test, analysis=analysis, complete=analysis.is_significant)
        analyzed += 1
        if analysis.is_significant:
            completed += 1
            await notify(
                db,
                user_id=test.employer_id,
                type=NotificationType.AB_TEST_RESULT,
                title=f"A/B test '{test.name}' has a winner",
                message=analysis.recommendation,
                priority=NotificationPriority.HIGH,
                action_url=f"/ab-tests/{test.id}",
                data={"test_id": test.id, "winner_variant_id": analysis.winner.id},
            )
    if analyzed:
        logger.info("Auto-analysed {} A/B tests, {} completed", analyzed, completed)
    return {"analyzed": analyzed, "completed": completed}
