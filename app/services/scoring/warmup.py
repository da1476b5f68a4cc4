"""
Warmup curve

Four-phase ramp of the daily sending cap for a new domain.
"""
import math
from typing import Dict, List

# (last day of phase, start value, daily increment, phase cap)
_RAMP_PHASES = (
    (7, 10, 6, 50),
    (14, 50, 15, 150),
    (21, 150, 35, 400),
)


def daily_limit_for(day: int, target_volume: int, total_days: int = 30) -> int:
    """Raw cap for a 1-based day, before smoothing"""
    previous_end = 1
    for phase_end, start, step, cap in _RAMP_PHASES:
        if day <= phase_end:
            return min(start + (day - previous_end) * step, cap)
        previous_end = phase_end
    # phase four interpolates from 400 to the target over the remaining days
    remaining = max(total_days - 21, 1)
    increment = math.floor((target_volume - 400) / remaining)
    return min(400 + (day - 21) * increment, target_volume)


def generate_warmup_schedule(target_volume: int, total_days: int = 30) -> List[Dict[str, int]]:
    """
    Daily send caps for `total_days`

    Each entry is {"day", "limit", "sent"}. Limits never exceed the target,
    never decrease from one day to the next, and the last day reaches the
    target volume.
    """
    if target_volume < 1:
        raise ValueError("target_volume must be at least 1")
    if total_days < 1:
        raise ValueError("total_days must be at least 1")

    schedule = []
    running_max = 0
    for day in range(1, total_days + 1):
        limit = min(daily_limit_for(day, target_volume, total_days), target_volume)
        running_max = max(running_max, limit)
        schedule.append({"day": day, "limit": running_max, "sent": 0})
    schedule[-1]["limit"] = target_volume
    return schedule
