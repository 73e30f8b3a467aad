# src/finkube/metrics/sink.py
"""
Gauge sink backed by a prometheus_client registry.

Each emitter tick writes a complete snapshot of its metrics through a
`MetricsBatch`; committing the batch replaces every series of the declared
metrics, so pods and nodes that disappeared stop being exported.
"""

import logging
import threading
from typing import Dict, Iterable, Mapping, Optional, Tuple

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from .names import METRIC_SCHEMAS

logger = logging.getLogger(__name__)

LabelValues = Tuple[str, ...]


class MetricsSink:
    """Registers one labelled Gauge per known metric name."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._gauges: Dict[str, Gauge] = {}
        self._series: Dict[str, set] = {}
        self._lock = threading.Lock()
        for name, (documentation, labelnames) in METRIC_SCHEMAS.items():
            self._gauges[name] = Gauge(name, documentation, labelnames, registry=self.registry)
            self._series[name] = set()

    def _label_values(self, name: str, labels: Mapping[str, str]) -> LabelValues:
        if name not in self._gauges:
            raise KeyError(f"Unknown metric '{name}'")
        labelnames = METRIC_SCHEMAS[name][1]
        if set(labels) != set(labelnames):
            raise ValueError(f"Labels {sorted(labels)} do not match the schema of '{name}': {list(labelnames)}")
        return tuple(str(labels[key]) for key in labelnames)

    def replace(self, name: str, samples: Mapping[LabelValues, float]) -> None:
        """Sets `samples` and removes every other series of `name`."""
        with self._lock:
            gauge = self._gauges[name]
            for stale in self._series[name] - set(samples):
                gauge.remove(*stale)
            for values, value in samples.items():
                gauge.labels(*values).set(value)
            self._series[name] = set(samples)

    def batch(self, names: Iterable[str]) -> "MetricsBatch":
        return MetricsBatch(self, names)

    def get(self, name: str, labels: Mapping[str, str]) -> Optional[float]:
        """Current value of one series, None when it is not exported."""
        return self.registry.get_sample_value(name, dict(labels))

    def exposition(self) -> bytes:
        """Text exposition of every gauge, for the `/metrics` endpoint."""
        return generate_latest(self.registry)


class MetricsBatch:
    """Collects one tick's samples for a fixed set of metrics."""

    def __init__(self, sink: MetricsSink, names: Iterable[str]):
        self._sink = sink
        self._samples: Dict[str, Dict[LabelValues, float]] = {name: {} for name in names}

    def set(self, name: str, labels: Mapping[str, str], value: float) -> None:
        if name not in self._samples:
            raise KeyError(f"Metric '{name}' was not declared for this batch")
        self._samples[name][self._sink._label_values(name, labels)] = float(value)

    def add(self, name: str, labels: Mapping[str, str], value: float) -> None:
        """Accumulates into a series, for sums over several pods."""
        if name not in self._samples:
            raise KeyError(f"Metric '{name}' was not declared for this batch")
        key = self._sink._label_values(name, labels)
        self._samples[name][key] = self._samples[name].get(key, 0.0) + float(value)

    def commit(self) -> None:
        for name, samples in self._samples.items():
            self._sink.replace(name, samples)
