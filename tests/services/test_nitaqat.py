"""
Nitaqat band calculations
"""
import pytest

from app.models.compliance import NitaqatBand, RiskLevel
from app.services.compliance import nitaqat


@pytest.mark.parametrize("total,size", [
    (1, "small"),
    (9, "small"),
    (10, "medium"),
    (49, "medium"),
    (50, "large"),
    (499, "large"),
    (500, "very_large"),
])
def test_entity_size(total, size):
    assert nitaqat.determine_entity_size(total) == size


@pytest.mark.parametrize("text,sector", [
    ("Retail Trade", "retail"),
    ("Software development", "technology"),
    ("IT services", "technology"),
    ("Hospital and clinics", "healthcare"),
    ("General contracting", "construction"),
    ("Logistics", "default"),
    ("Security", "default"),
    ("Architecture and design", "default"),
    ("Credit bureau", "default"),
    ("Fintech payments", "technology"),
    ("Healthcare staffing", "healthcare"),
    (None, "default"),
])
def test_normalize_sector(text, sector):
    assert nitaqat.normalize_sector(text) == sector


@pytest.mark.parametrize("saudi,band", [
    (10, NitaqatBand.RED),
    (15, NitaqatBand.YELLOW),
    (22, NitaqatBand.GREEN),
    (30, NitaqatBand.PLATINUM),
])
def test_bands_for_large_retailer(saudi, band):
    result = nitaqat.calculate_nitaqat_band(100, saudi, "retail")
    assert result.band == band
    assert result.entity_size == "large"
    assert result.is_compliant is (band in (NitaqatBand.GREEN, NitaqatBand.PLATINUM))


def test_red_band_gap_and_required():
    result = nitaqat.calculate_nitaqat_band(100, 10, "retail")
    assert result.saudization_percentage == 10.0
    assert result.required_percentage == 22.0
    assert result.compliance_gap == 12


def test_no_employees():
    result = nitaqat.calculate_nitaqat_band(0, 0, None)
    assert result.band == NitaqatBand.RED
    assert result.saudization_percentage == 0.0
    assert result.compliance_gap == 0


def test_penalty_and_risk():
    assert nitaqat.calculate_penalty(NitaqatBand.RED, 12) == 24000
    assert nitaqat.calculate_penalty(NitaqatBand.YELLOW, 4) == 4000
    assert nitaqat.calculate_penalty(NitaqatBand.PLATINUM, 0) == 0
    assert nitaqat.calculate_risk_level(NitaqatBand.GREEN, 0) == RiskLevel.LOW
    assert nitaqat.calculate_risk_level(NitaqatBand.YELLOW, 5) == RiskLevel.MEDIUM
    assert nitaqat.calculate_risk_level(NitaqatBand.YELLOW, 6) == RiskLevel.HIGH
    assert nitaqat.calculate_risk_level(NitaqatBand.RED, 1) == RiskLevel.CRITICAL


def test_hires_needed_reaches_green():
    result = nitaqat.saudi_hires_needed(100, 10, "retail")
    assert result["hires_needed"] == 16
    assert result["projected_total"] == 116
    assert result["projected_saudi"] == 26
    assert nitaqat.calculate_nitaqat_band(116, 26, "retail").band == NitaqatBand.GREEN
    assert nitaqat.calculate_nitaqat_band(115, 25, "retail").band != NitaqatBand.GREEN


def test_hires_needed_when_already_compliant():
    assert nitaqat.saudi_hires_needed(100, 40, "retail")["hires_needed"] == 0


def test_hires_needed_rejects_red_target():
    with pytest.raises(ValueError):
        nitaqat.saudi_hires_needed(100, 10, "retail", NitaqatBand.RED)


def test_band_dropped():
    assert nitaqat.band_dropped("green", "yellow") is True
    assert nitaqat.band_dropped("yellow", "green") is False
    assert nitaqat.band_dropped(None, "red") is False


def test_forecast_with_saudi_hiring_trend():
    band = nitaqat.forecast_band(100, 18, 2.0, 0.0, 6, "retail")
    # 30 of 112 after six months
    assert band == NitaqatBand.GREEN
