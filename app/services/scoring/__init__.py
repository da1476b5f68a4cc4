"""
Numeric scoring core: engagement score, A/B significance, warmup curve
"""
from .engagement import (
    calculate_rates,
    engagement_score,
    engagement_level,
    score_counters,
    candidate_overall_score,
)
from .ab_testing import (
    VariantStats,
    normal_cdf,
    two_proportion_z_test,
    analyze_variants,
    select_variant,
)
from .warmup import generate_warmup_schedule

__all__ = [
    "calculate_rates",
    "engagement_score",
    "engagement_level",
    "score_counters",
    "candidate_overall_score",
    "VariantStats",
    "normal_cdf",
    "two_proportion_z_test",
    "analyze_variants",
    "select_variant",
    "generate_warmup_schedule",
]
