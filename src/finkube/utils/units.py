# src/finkube/utils/units.py
"""
Unit normalisation shared by the emitters and the query aggregator.

Gauges are sampled every `sample_period_seconds`. Summing an hourly gauge
over a window and multiplying by the sample period gives the hour-weighted
quantity over that window (cost in currency, or core-hours); dividing that
by the window length gives the average rate again.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Union

Number = Union[int, float, Decimal]

CORE_IN_MILLICORES = 1000
GIB_IN_BYTES = 1024**3
HOUR_IN_SECONDS = 3600
DEFAULT_SAMPLE_PERIOD_SECONDS = 15
# Smallest step a range query may use; one sample per step.
MIN_STEP_SECONDS = DEFAULT_SAMPLE_PERIOD_SECONDS
HOURS_PER_MONTH = 730


def millicores_to_cores(value: Number) -> float:
    return float(value) / CORE_IN_MILLICORES


def bytes_to_gib(value: Number) -> float:
    return float(value) / GIB_IN_BYTES


def samples_per_hour(sample_period_seconds: int = DEFAULT_SAMPLE_PERIOD_SECONDS) -> float:
    """Number of samples an hourly gauge produces in one hour (240 at 15s)."""
    if sample_period_seconds <= 0:
        raise ValueError("sample_period_seconds must be positive")
    return HOUR_IN_SECONDS / sample_period_seconds


def accumulated_to_hours(raw_sum: Number, sample_period_seconds: int = DEFAULT_SAMPLE_PERIOD_SECONDS) -> float:
    """
    Converts a `sum_over_time` of an hourly gauge into hour-weighted units.

    With the default 15s period this is the familiar `raw / 240`.
    """
    return float(raw_sum) / samples_per_hour(sample_period_seconds)


def to_hourly_rate(value: Number, step_seconds: int) -> float:
    """Converts an hour-weighted value accumulated over `step_seconds` into a per-hour rate."""
    if step_seconds <= 0:
        raise ValueError("step_seconds must be positive")
    return float(value) / step_seconds * HOUR_IN_SECONDS


def samples_to_seconds(sample_count: Number, sample_period_seconds: int = DEFAULT_SAMPLE_PERIOD_SECONDS) -> float:
    """Converts a `count_over_time` into the covered number of seconds."""
    return float(sample_count) * sample_period_seconds


def average_count(
    sample_count: Number, step_seconds: int, sample_period_seconds: int = DEFAULT_SAMPLE_PERIOD_SECONDS
) -> float:
    """Average number of series present during a step, given their summed sample count."""
    if step_seconds <= 0:
        raise ValueError("step_seconds must be positive")
    return samples_to_seconds(sample_count, sample_period_seconds) / step_seconds


def month_start(now: datetime = None) -> datetime:
    """First instant of the current UTC month."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).replace(day=1, hour=0, minute=0, second=0, microsecond=0)
