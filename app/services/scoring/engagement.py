"""
Engagement scoring

Pure functions over aggregate email counters. Nothing here touches the
database; the CRUD layer feeds counters in and stores what comes out.
"""
import math
from typing import Dict, Tuple

from app.models.engagement import EngagementLevel

OPEN_WEIGHT = 0.3
CLICK_WEIGHT = 0.4
RESPONSE_WEIGHT = 0.3

# (lower bound, level), checked top-down
LEVEL_THRESHOLDS = (
    (80, EngagementLevel.VERY_HIGH),
    (60, EngagementLevel.HIGH),
    (40, EngagementLevel.MEDIUM),
    (20, EngagementLevel.LOW),
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's rounding)"""
    return int(math.floor(value + 0.5))


def calculate_rates(sent: int, opened: int, clicked: int, replied: int) -> Tuple[float, float, float]:
    """
    Open, click and response rates as percentages of emails sent

    A zero denominator yields zero for every rate.
    """
    if sent <= 0:
        return 0.0, 0.0, 0.0
    return (
        opened / sent * 100,
        clicked / sent * 100,
        replied / sent * 100,
    )


def engagement_score(open_rate: float, click_rate: float, response_rate: float) -> int:
    """Weighted composite of the three rates, clamped to [0, 100]"""
    raw = open_rate * OPEN_WEIGHT + click_rate * CLICK_WEIGHT + response_rate * RESPONSE_WEIGHT
    return max(0, round_half_up(min(100.0, raw)))


def engagement_level(score: int) -> EngagementLevel:
    for threshold, level in LEVEL_THRESHOLDS:
        if score >= threshold:
            return level
    return EngagementLevel.VERY_LOW


def score_counters(sent: int, opened: int, clicked: int, replied: int) -> Dict[str, object]:
    """Rates, score and level for one set of counters"""
    open_rate, click_rate, response_rate = calculate_rates(sent, opened, clicked, replied)
    score = engagement_score(open_rate, click_rate, response_rate)
    return {
        "open_rate": min(100, round_half_up(open_rate)),
        "click_rate": min(100, round_half_up(click_rate)),
        "response_rate": min(100, round_half_up(response_rate)),
        "engagement_score": score,
        "engagement_level": engagement_level(score).value,
    }


def _ratio_score(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        return 0
    return min(100, round_half_up(numerator / denominator * 100))


def candidate_overall_score(
    emails_sent: int,
    emails_opened: int,
    emails_clicked: int,
    profile_views: int,
    applications: int,
    interview_responses: int,
) -> Dict[str, int]:
    """
    Candidate-level composite across channels

    email = opens and clicks over sends (each weighted 0.5)
    application = applications over profile views
    interview = interview responses over applications
    overall = email 40% + application 30% + interview 30%
    """
    if emails_sent > 0:
        email = min(100, round_half_up((emails_opened * 0.5 + emails_clicked * 0.5) / emails_sent * 100))
    else:
        email = 0
    application = _ratio_score(applications, profile_views)
    interview = _ratio_score(interview_responses, applications)
    overall = round_half_up(email * 0.4 + application * 0.3 + interview * 0.3)
    return {
        "email_engagement_score": email,
        "application_engagement_score": application,
        "interview_engagement_score": interview,
        "overall_score": overall,
        "engagement_level": engagement_level(overall).value,
    }
