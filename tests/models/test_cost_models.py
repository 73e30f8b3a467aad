# tests/models/test_cost_models.py

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from finkube.models.cost import CostRecord, EntityKey, EntityKind, TimeWindow

START = datetime(2026, 5, 1, tzinfo=timezone.utc)


def test_time_window_rejects_step_below_sampling_floor():
    """A step shorter than the 15s sampling period is invalid."""
    with pytest.raises(ValidationError):
        TimeWindow(start=START, end=START + timedelta(hours=1), step_seconds=5)


def test_time_window_rejects_inverted_bounds():
    """The end of a window cannot precede its start."""
    with pytest.raises(ValidationError):
        TimeWindow(start=START, end=START - timedelta(seconds=1))


def test_validation_errors_are_value_errors():
    """Invalid windows surface as ValueError to callers that only know the standard types."""
    with pytest.raises(ValueError):
        TimeWindow(start=START, end=START, step_seconds=1)


def test_auto_step_caps_points_per_series():
    """The automatic step keeps a window under 10000 points and never below 15s."""
    month = TimeWindow.auto(START, START + timedelta(days=30))
    assert month.step_seconds == 260
    assert month.duration_seconds // month.step_seconds <= 10000

    short = TimeWindow.auto(START, START + timedelta(minutes=10))
    assert short.step_seconds == 15


def test_current_month_window():
    """The current month window runs from the first of the month to now."""
    now = datetime(2026, 5, 11, 8, 30, tzinfo=timezone.utc)
    window = TimeWindow.current_month(now, step_seconds=86400)
    assert window.start == START
    assert window.end == now
    assert window.step_seconds == 86400
    assert window.start_ts == int(START.timestamp())


def test_entity_keys_are_hashable_join_keys():
    """Equal keys hash equally so they can index the join."""
    a = EntityKey(kind=EntityKind.POD, cluster_id="c1", namespace="shop", name="web-1")
    b = EntityKey(kind=EntityKind.POD, cluster_id="c1", namespace="shop", name="web-1")
    rows = {(a, 10): 1}
    assert rows[(b, 10)] == 1
    with pytest.raises(ValidationError):
        a.name = "other"


def test_cost_record_fields_default_to_zero():
    """Fields without a matching series stay at zero."""
    record = CostRecord(key=EntityKey(kind=EntityKind.CLUSTER, cluster_id="c1"), timestamp=0)
    assert record.total_cost == 0.0
    assert record.pod_count == 0.0
