# src/finkube/models/prometheus.py
"""
Parsed results of the Prometheus HTTP query API.

`/api/v1/query` answers with a vector (one sample per series),
`/api/v1/query_range` with a matrix (a list of points per series). Sample
values arrive as strings; NaN values are dropped while parsing.
"""

import math
from typing import Dict, List, Tuple

from pydantic import BaseModel, Field


def _parse_point(raw) -> Tuple[int, float]:
    timestamp, value = raw
    return int(float(timestamp)), float(value)


class PromSample(BaseModel):
    """One sample of an instant vector."""

    labels: Dict[str, str] = Field(default_factory=dict)
    timestamp: int
    value: float

    def as_series(self) -> "PromSeries":
        return PromSeries(labels=self.labels, points=[(self.timestamp, self.value)])


class PromSeries(BaseModel):
    """One series of a range matrix."""

    labels: Dict[str, str] = Field(default_factory=dict)
    points: List[Tuple[int, float]] = Field(default_factory=list)


def parse_vector(result: list) -> List[PromSample]:
    """
    Parses `data.result` of a vector response.

    Raises:
        ValueError, TypeError: If an entry does not have the vector shape.
    """
    samples = []
    for entry in result:
        timestamp, value = _parse_point(entry["value"])
        if math.isnan(value):
            continue
        samples.append(PromSample(labels=entry.get("metric", {}), timestamp=timestamp, value=value))
    return samples


def parse_matrix(result: list) -> List[PromSeries]:
    """
    Parses `data.result` of a matrix response.

    Raises:
        ValueError, TypeError: If an entry does not have the matrix shape.
    """
    series = []
    for entry in result:
        points = [_parse_point(raw) for raw in entry["values"]]
        series.append(
            PromSeries(labels=entry.get("metric", {}), points=[(ts, v) for ts, v in points if not math.isnan(v)])
        )
    return series
