"""
Nitaqat (Saudization) calculations

Band thresholds by entity size and activity sector, penalties, risk and
linear forecasts. Pure functions; persistence lives in the CRUD layer.
"""
import math
import re
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from app.models.compliance import NitaqatBand, RiskLevel

# percentage of Saudi employees needed per band
NITAQAT_THRESHOLDS: Dict[str, Dict[str, Dict[str, int]]] = {
    # 1-9 employees
    "small": {
        "manufacturing": {"platinum": 15, "green": 10, "yellow": 5},
        "retail": {"platinum": 20, "green": 12, "yellow": 6},
        "technology": {"platinum": 25, "green": 15, "yellow": 8},
        "hospitality": {"platinum": 18, "green": 10, "yellow": 5},
        "healthcare": {"platinum": 22, "green": 14, "yellow": 7},
        "construction": {"platinum": 12, "green": 8, "yellow": 4},
        "default": {"platinum": 18, "green": 10, "yellow": 5},
    },
    # 10-49
    "medium": {
        "manufacturing": {"platinum": 20, "green": 15, "yellow": 10},
        "retail": {"platinum": 25, "green": 18, "yellow": 12},
        "technology": {"platinum": 30, "green": 20, "yellow": 12},
        "hospitality": {"platinum": 22, "green": 15, "yellow": 10},
        "healthcare": {"platinum": 28, "green": 20, "yellow": 12},
        "construction": {"platinum": 15, "green": 10, "yellow": 7},
        "default": {"platinum": 22, "green": 15, "yellow": 10},
    },
    # 50-499
    "large": {
        "manufacturing": {"platinum": 25, "green": 20, "yellow": 15},
        "retail": {"platinum": 30, "green": 22, "yellow": 15},
        "technology": {"platinum": 35, "green": 25, "yellow": 15},
        "hospitality": {"platinum": 28, "green": 20, "yellow": 15},
        "healthcare": {"platinum": 32, "green": 25, "yellow": 18},
        "construction": {"platinum": 20, "green": 15, "yellow": 10},
        "default": {"platinum": 28, "green": 20, "yellow": 15},
    },
    # 500+
    "very_large": {
        "manufacturing": {"platinum": 30, "green": 25, "yellow": 20},
        "retail": {"platinum": 35, "green": 28, "yellow": 20},
        "technology": {"platinum": 40, "green": 30, "yellow": 20},
        "hospitality": {"platinum": 32, "green": 25, "yellow": 20},
        "healthcare": {"platinum": 38, "green": 30, "yellow": 22},
        "construction": {"platinum": 25, "green": 20, "yellow": 15},
        "default": {"platinum": 32, "green": 25, "yellow": 20},
    },
}

# SAR per month per missing Saudi employee; platinum is an incentive
PENALTY_ESTIMATES = {
    NitaqatBand.RED: 2000,
    NitaqatBand.YELLOW: 1000,
    NitaqatBand.GREEN: 0,
    NitaqatBand.PLATINUM: -500,
}

BAND_RANK = {
    NitaqatBand.RED: 1,
    NitaqatBand.YELLOW: 2,
    NitaqatBand.GREEN: 3,
    NitaqatBand.PLATINUM: 4,
}

_SECTOR_KEYWORDS = (
    ("manufacturing", ("manufact", "factory", "industrial")),
    ("retail", ("retail", "commerce", "wholesale")),
    ("hospitality", ("hospitality", "hotel", "tourism", "restaurant")),
    ("healthcare", ("health", "medical", "hospital", "clinic", "pharma")),
    ("construction", ("construct", "building", "contracting")),
    ("technology", ("tech", "fintech", "software", "digital", "telecom", "it")),
)

# keywords are word prefixes; "it" must be a whole word
_SECTOR_PATTERNS = tuple(
    (key, re.compile(r"\b(?:" + "|".join(w + (r"\b" if w == "it" else "") for w in keywords) + ")"))
    for key, keywords in _SECTOR_KEYWORDS
)


@dataclass
class BandCalculation:
    band: NitaqatBand
    saudization_percentage: float
    required_percentage: float
    compliance_gap: int
    is_compliant: bool
    entity_size: str
    sector: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["band"] = self.band.value
        return data


def determine_entity_size(total_employees: int) -> str:
    if total_employees < 10:
        return "small"
    if total_employees < 50:
        return "medium"
    if total_employees < 500:
        return "large"
    return "very_large"


def normalize_sector(sector: Optional[str]) -> str:
    """Map a free-text activity sector onto a threshold key"""
    text = (sector or "").lower().strip()
    for key, pattern in _SECTOR_PATTERNS:
        if pattern.search(text):
            return key
    return "default"


def get_thresholds(total_employees: int, sector: Optional[str]) -> Dict[str, int]:
    size = determine_entity_size(total_employees)
    return NITAQAT_THRESHOLDS[size][normalize_sector(sector)]


def calculate_nitaqat_band(total_employees: int, saudi_employees: int, sector: Optional[str]) -> BandCalculation:
    """
    Band for a workforce composition

    Below yellow the required percentage is the green threshold, since
    green is the lowest compliant band. The gap counts Saudi employees
    missing to reach green at the current headcount.
    """
    size = determine_entity_size(total_employees)
    normalized = normalize_sector(sector)
    thresholds = NITAQAT_THRESHOLDS[size][normalized]

    percentage = saudi_employees / total_employees * 100 if total_employees > 0 else 0.0

    if percentage >= thresholds["platinum"]:
        band, required = NitaqatBand.PLATINUM, thresholds["platinum"]
    elif percentage >= thresholds["green"]:
        band, required = NitaqatBand.GREEN, thresholds["green"]
    elif percentage >= thresholds["yellow"]:
        band, required = NitaqatBand.YELLOW, thresholds["yellow"]
    else:
        band, required = NitaqatBand.RED, thresholds["green"]

    target_saudi = math.ceil(thresholds["green"] / 100 * total_employees)
    gap = max(0, target_saudi - saudi_employees)

    return BandCalculation(
        band=band,
        saudization_percentage=round(percentage, 2),
        required_percentage=float(required),
        compliance_gap=gap,
        is_compliant=band in (NitaqatBand.GREEN, NitaqatBand.PLATINUM),
        entity_size=size,
        sector=normalized,
    )


def calculate_penalty(band: NitaqatBand, compliance_gap: int) -> int:
    """Estimated monthly penalty in SAR, never negative"""
    return max(0, PENALTY_ESTIMATES[NitaqatBand(band)] * compliance_gap)


def calculate_risk_level(band: NitaqatBand, compliance_gap: int) -> RiskLevel:
    band = NitaqatBand(band)
    if band in (NitaqatBand.PLATINUM, NitaqatBand.GREEN):
        return RiskLevel.LOW
    if band == NitaqatBand.YELLOW:
        return RiskLevel.MEDIUM if compliance_gap <= 5 else RiskLevel.HIGH
    return RiskLevel.CRITICAL


def forecast_band(
    total_employees: int,
    saudi_employees: int,
    monthly_saudi_trend: float,
    monthly_expat_trend: float,
    months_ahead: int,
    sector: Optional[str],
) -> NitaqatBand:
    """Band after `months_ahead` months of linear hiring"""
    projected_saudi = max(0, round(saudi_employees + monthly_saudi_trend * months_ahead))
    projected_total = max(
        projected_saudi,
        round(total_employees + (monthly_saudi_trend + monthly_expat_trend) * months_ahead),
    )
    return calculate_nitaqat_band(projected_total, projected_saudi, sector).band


def saudi_hires_needed(
    total_employees: int,
    saudi_employees: int,
    sector: Optional[str],
    target_band: NitaqatBand = NitaqatBand.GREEN,
) -> Dict[str, object]:
    """
    Smallest number of Saudi hires x with (saudi + x) / (total + x) >= target

    Thresholds are re-read at the projected headcount since hiring can move
    the entity into a larger size bracket.
    """
    target_band = NitaqatBand(target_band)
    if target_band == NitaqatBand.RED:
        raise ValueError("red is not a valid target band")

    hires = 0
    for _ in range(3):
        target = get_thresholds(total_employees + hires, sector)[target_band.value]
        if target >= 100:
            raise ValueError("target percentage must be below 100")
        needed = math.ceil((total_employees * target - saudi_employees * 100) / (100 - target))
        needed = max(0, needed)
        if needed == hires:
            break
        hires = needed

    projected_total = total_employees + hires
    projected_saudi = saudi_employees + hires
    projected_pct = projected_saudi / projected_total * 100 if projected_total else 0.0
    return {
        "target_band": target_band.value,
        "target_percentage": float(get_thresholds(projected_total, sector)[target_band.value]),
        "hires_needed": hires,
        "projected_total": projected_total,
        "projected_saudi": projected_saudi,
        "projected_percentage": round(projected_pct, 2),
    }


def band_dropped(previous: Optional[str], current: str) -> bool:
    if not previous:
        return False
    return BAND_RANK[NitaqatBand(current)] < BAND_RANK[NitaqatBand(previous)]


def monthly_trend(history: list) -> Dict[str, float]:
    """
    Average monthly change of Saudi and expat headcount

    `history` is newest-first workforce snapshots; the three most recent are
    compared against the three before them.
    """
    if len(history) < 2:
        return {"saudi": 0.0, "expat": 0.0}
    recent = history[:3]
    older = history[3:6] or history[-1:]

    def avg(rows, attr):
        return sum(getattr(row, attr) for row in rows) / len(rows)

    return {
        "saudi": round((avg(recent, "saudi_employees") - avg(older, "saudi_employees")) / 3, 2),
        "expat": round((avg(recent, "expat_employees") - avg(older, "expat_employees")) / 3, 2),
    }
