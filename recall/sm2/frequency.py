"""
Frequency Modulator

Scales a freshly computed SM-2 interval by the user's pace setting:
- intensive: half the interval (rounded half-up, at least 1 day)
- normal: unchanged
- relaxed: one and a half times the interval (rounded up)

Applied once per review, to the interval that step just computed. The base
SM-2 interval is stored unscaled, so a mode is never compounded across
reviews and changing mode only affects the next review.
"""

from __future__ import annotations

import math
from typing import Union

from recall.sm2.constants import INTENSIVE_FACTOR, RELAXED_FACTOR, FrequencyMode


def round_half_up(value: float) -> int:
    """0.5 rounds away from zero (Python's round() rounds half to even)."""
    return int(math.floor(value + 0.5))


def coerce_mode(mode: Union[FrequencyMode, str, None]) -> FrequencyMode:
    """Accept enum members, their string values, or None (normal)."""
    if mode is None:
        return FrequencyMode.NORMAL
    return FrequencyMode(mode)


def apply_frequency(interval: int, mode: Union[FrequencyMode, str, None]) -> int:
    """
    Scale an interval (days) by frequency mode.

    Args:
        interval: Base SM-2 interval in days
        mode: Frequency mode

    Returns:
        Scheduled interval in days
    """
    mode = coerce_mode(mode)

    if mode == FrequencyMode.INTENSIVE:
        return max(1, round_half_up(interval * INTENSIVE_FACTOR))
    if mode == FrequencyMode.RELAXED:
        return int(math.ceil(interval * RELAXED_FACTOR))
    return interval
