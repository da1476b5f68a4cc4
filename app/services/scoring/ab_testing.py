"""
A/B test statistics

Two-proportion z-test with a polynomial normal-CDF approximation.
Variants with no sends are reported as insufficient data instead of
being compared against a fabricated denominator.
"""
import math
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

# two-tailed 95%
Z_CRITICAL = 1.96


@dataclass
class VariantStats:
    """Counters needed to compare one variant"""
    id: str
    name: str
    sent: int
    conversions: int
    traffic_allocation: int = 0

    @property
    def conversion_rate(self) -> float:
        if self.sent <= 0:
            return 0.0
        return self.conversions / self.sent


@dataclass
class ZTestResult:
    z_score: Optional[float]
    p_value: Optional[float]
    is_significant: bool
    insufficient_data: bool = False


@dataclass
class AnalysisResult:
    winner: VariantStats
    runner_up: VariantStats
    z_score: Optional[float]
    p_value: Optional[float]
    is_significant: bool
    insufficient_data: bool
    relative_improvement: float
    absolute_improvement: float
    recommendation: str
    ranking: List[VariantStats] = field(default_factory=list)


def normal_cdf(z: float) -> float:
    """Abramowitz-Stegun approximation of the standard normal CDF"""
    t = 1 / (1 + 0.2316419 * abs(z))
    d = 0.3989423 * math.exp(-z * z / 2)
    prob = d * t * (0.3193815 + t * (-0.3565638 + t * (1.781478 + t * (-1.821256 + t * 1.330274))))
    return 1 - prob if z > 0 else prob


def two_proportion_z_test(
    conversions_a: int,
    sent_a: int,
    conversions_b: int,
    sent_b: int,
) -> ZTestResult:
    """
    Pooled two-proportion z-test

    Returns |z| and the one-tailed p-value 1 - CDF(|z|). A comparison is
    significant when |z| exceeds 1.96.
    """
    if sent_a <= 0 or sent_b <= 0:
        return ZTestResult(z_score=None, p_value=None, is_significant=False, insufficient_data=True)

    rate_a = conversions_a / sent_a
    rate_b = conversions_b / sent_b
    pooled = (conversions_a + conversions_b) / (sent_a + sent_b)
    se = math.sqrt(pooled * (1 - pooled) * (1 / sent_a + 1 / sent_b))
    if se == 0:
        # both variants at 0% or both at 100%
        return ZTestResult(z_score=0.0, p_value=0.5, is_significant=False)

    z = abs(rate_a - rate_b) / se
    p_value = 1 - normal_cdf(z)
    return ZTestResult(z_score=z, p_value=p_value, is_significant=z > Z_CRITICAL)


def _recommendation(winner: VariantStats, relative: float, test: ZTestResult) -> str:
    if test.insufficient_data:
        return (
            "Not enough data to compare variants. Every variant needs at least one "
            "recorded send before the test can be analyzed."
        )
    if test.is_significant:
        return (
            f"Variant {winner.name} is the clear winner with {relative:.1f}% improvement. "
            "Recommend deploying this variant to all users."
        )
    return (
        "No statistically significant difference found. Consider running the test "
        "longer or with a larger sample size."
    )


def analyze_variants(variants: Sequence[VariantStats]) -> AnalysisResult:
    """
    Compare the best two variants by conversion rate

    Raises ValueError with fewer than two variants.
    """
    if len(variants) < 2:
        raise ValueError("At least 2 variants are required for analysis")

    ranking = sorted(variants, key=lambda v: v.conversion_rate, reverse=True)
    winner, runner_up = ranking[0], ranking[1]

    if any(v.sent <= 0 for v in variants):
        test = ZTestResult(z_score=None, p_value=None, is_significant=False, insufficient_data=True)
    else:
        test = two_proportion_z_test(
            winner.conversions, winner.sent, runner_up.conversions, runner_up.sent
        )

    w_rate = winner.conversion_rate
    r_rate = runner_up.conversion_rate
    relative = (w_rate - r_rate) / r_rate * 100 if r_rate > 0 else 0.0
    absolute = (w_rate - r_rate) * 100

    return AnalysisResult(
        winner=winner,
        runner_up=runner_up,
        z_score=test.z_score,
        p_value=test.p_value,
        is_significant=test.is_significant,
        insufficient_data=test.insufficient_data,
        relative_improvement=round(relative, 2),
        absolute_improvement=round(absolute, 2),
        recommendation=_recommendation(winner, relative, test),
        ranking=list(ranking),
    )


def select_variant(variants: Sequence[VariantStats], rand: Optional[float] = None) -> VariantStats:
    """
    Weighted random pick by traffic allocation

    `rand` in [0, 100) may be passed for deterministic selection.
    """
    if not variants:
        raise ValueError("No variants to select from")
    if rand is None:
        rand = random.random() * 100
    cumulative = 0
    for variant in variants:
        cumulative += variant.traffic_allocation
        if rand < cumulative:
            return variant
    return variants[0]

