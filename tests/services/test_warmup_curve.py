"""
Warmup schedule generation
"""
import pytest

from app.services.scoring import generate_warmup_schedule


def test_default_curve():
    schedule = generate_warmup_schedule(1000, 30)
    assert len(schedule) == 30
    assert 10 <= schedule[0]["limit"] <= 16
    assert schedule[-1]["limit"] == 1000
    assert [entry["day"] for entry in schedule] == list(range(1, 31))
    assert all(entry["sent"] == 0 for entry in schedule)


@pytest.mark.parametrize("target,days", [(1000, 30), (5000, 45), (300, 30), (30, 10), (1, 1)])
def test_curve_is_monotonic_and_capped(target, days):
    limits = [entry["limit"] for entry in generate_warmup_schedule(target, days)]
    assert limits == sorted(limits)
    assert max(limits) <= target
    assert limits[-1] == target


def test_phase_boundaries():
    limits = [entry["limit"] for entry in generate_warmup_schedule(1000, 30)]
    assert limits[6] == 46
    assert limits[13] == 150
    assert limits[20] == 395


def test_invalid_arguments():
    with pytest.raises(ValueError):
        generate_warmup_schedule(0, 30)
    with pytest.raises(ValueError):
        generate_warmup_schedule(100, 0)
