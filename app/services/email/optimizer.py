"""
Email content optimisation

Suggestions come from the LLM with the employer's sending history as
context. Without a configured model, or when the call fails, a
deterministic set built from the same history is returned.
"""
from collections import Counter
from typing import Any, Dict, List
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.crud.email import email_analytics_crud
from app.models.base import ensure_utc
from app.models.email import EmailAnalytics
from app.services.llm_client import get_llm_client

SYSTEM_PROMPT = (
    "You are an expert email marketing optimizer specializing in recruitment "
    "communications. Provide actionable, data-driven suggestions. Reply with a JSON "
    "object with keys: subject_line_variations (5 strings), content_improvements "
    "(3-5 strings), optimal_send_time ({day_of_week, hour, confidence}), "
    "ab_test_suggestions (list of {element, variants, rationale}), "
    "performance_prediction ({open_rate_estimate, click_rate_estimate, confidence})."
)

_REQUIRED_KEYS = (
    "subject_line_variations",
    "content_improvements",
    "optimal_send_time",
    "ab_test_suggestions",
    "performance_prediction",
)


async def historical_performance(db: AsyncSession, employer_id: str) -> Dict[str, Any]:
    """Average rates, best-opened subjects and best send slots"""
    stats = await email_analytics_crud.stats(db, employer_id)

    opened = func.sum(case((EmailAnalytics.opened_at.is_not(None), 1), else_=0))
    result = await db.execute(
        select(EmailAnalytics.subject, func.count(), opened)
        .where(EmailAnalytics.employer_id == employer_id)
        .group_by(EmailAnalytics.subject)
        .order_by(opened.desc())
        .limit(5)
    )
    top_subjects = [
        {"subject": subject, "sent": sent, "open_rate": round((n_open or 0) / sent * 100, 2)}
        for subject, sent, n_open in result.all()
        if n_open
    ]

    opened_rows = await email_analytics_crud.get_multi(
        db,
        limit=1000,
        filters=[
            EmailAnalytics.employer_id == employer_id,
            EmailAnalytics.opened_at.is_not(None),
        ],
    )
    slots = Counter()
    for row in opened_rows:
        sent_at = ensure_utc(row.sent_at)
        slots[(sent_at.strftime("%A"), sent_at.hour)] += 1
    best_send_times = [
        {"day_of_week": day, "hour": hour, "opens": opens}
        for (day, hour), opens in slots.most_common(3)
    ]

    return {
        "avg_open_rate": stats["open_rate"],
        "avg_click_rate": stats["click_rate"],
        "top_subjects": top_subjects,
        "best_send_times": best_send_times,
    }


def fallback_suggestions(subject: str, historical: Dict[str, Any]) -> Dict[str, Any]:
    best = historical["best_send_times"][0] if historical["best_send_times"] else None
    return {
        "subject_line_variations": [
            subject,
            f"{subject} - Limited Time",
            f"Quick Update: {subject}",
            f"{subject} | Important",
            f"Re: {subject}",
        ],
        "content_improvements": [
            "Add a clear call-to-action button",
            "Personalize with candidate name and details",
            "Keep paragraphs short (2-3 sentences max)",
            "Include social proof or testimonials",
            "Add urgency with deadline or limited availability",
        ],
        "optimal_send_time": {
            "day_of_week": best["day_of_week"] if best else "Tuesday",
            "hour": best["hour"] if best else 10,
            "confidence": 0.7,
        },
        "ab_test_suggestions": [
            {
                "element": "Subject Line",
                "variants": [subject, f"{subject} - Action Required"],
                "rationale": "Test urgency vs. neutral tone",
            },
        ],
        "performance_prediction": {
            "open_rate_estimate": historical["avg_open_rate"] or 25,
            "click_rate_estimate": historical["avg_click_rate"] or 5,
            "confidence": "medium",
        },
    }


def _build_prompt(subject: str, body: str, email_type: str, historical: Dict[str, Any]) -> str:
    top: List[str] = [
        f'{i}. "{s["subject"]}" (open: {s["open_rate"]}%)'
        for i, s in enumerate(historical["top_subjects"], start=1)
    ]
    times: List[str] = [
        f'{i}. {t["day_of_week"]} at {t["hour"]}:00 ({t["opens"]} opens)'
        for i, t in enumerate(historical["best_send_times"], start=1)
    ]
    return (
        "Historical performance:\n"
        f"- Average open rate: {historical['avg_open_rate']}%\n"
        f"- Average click rate: {historical['avg_click_rate']}%\n\n"
        "Top performing subject lines:\n" + ("\n".join(top) or "none yet") + "\n\n"
        "Best send times:\n" + ("\n".join(times) or "none yet") + "\n\n"
        "Current email:\n"
        f"Subject: {subject}\n"
        f"Content: {body[:500]}\n"
        f"Type: {email_type}\n"
    )


async def optimize_content(
    db: AsyncSession,
    *,
    employer_id: str,
    subject: str,
    body: str,
    email_type: str = "custom",
) -> Dict[str, Any]:
    historical = await historical_performance(db, employer_id)
    client = get_llm_client()

    if not client.is_configured():
        logger.info("LLM not configured, using fallback content suggestions")
        return {**fallback_suggestions(subject, historical), "source": "fallback"}

    try:
        suggestions = await client.complete_json(
            SYSTEM_PROMPT,
            _build_prompt(subject, body, email_type, historical),
        )
        missing = [key for key in _REQUIRED_KEYS if key not in suggestions]
        if missing:
            raise ValueError(f"LLM reply missing keys: {missing}")
        return {**suggestions, "source": "llm"}
    except Exception as exc:
        logger.warning("Content optimisation failed, using fallback: {}", exc)
        return {**fallback_suggestions(subject, historical), "source": "fallback"}
