"""
In-process stats collection. Application code bumps counters and records
samples here; the accessor reads it as a provider.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Sequence

from snapdelta.distribution import DEFAULT_BOUNDS, Histogram
from snapdelta.provider.base import StatsProvider


class StatsCollection(StatsProvider):
    """Thread-safe counters, histograms, gauges and labels."""

    def __init__(self, bounds: Sequence[float] = DEFAULT_BOUNDS, source_name: str = "in-process"):
        self._bounds = tuple(float(b) for b in bounds)
        self._source_name = source_name
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {}
        self._metrics: Dict[str, Histogram] = {}
        self._labels: Dict[str, str] = {}
        self._gauges: Dict[str, float] = {}

    # -- Counters --

    def incr(self, name: str, by: int = 1) -> int:
        with self._lock:
            value = self._counters.get(name, 0) + by
            self._counters[name] = value
            return value

    def set_counter(self, name: str, value: int):
        """Overwrite a counter. Setting a lower value is how callers signal a reset."""
        with self._lock:
            self._counters[name] = value

    def remove_counter(self, name: str):
        with self._lock:
            self._counters.pop(name, None)

    # -- Metrics --

    def add_metric(self, name: str, value: float):
        with self._lock:
            hist = self._metrics.get(name)
            if hist is None:
                hist = Histogram.empty(self._bounds)
            # Histograms are immutable, so copies already handed out stay put
            self._metrics[name] = hist.with_sample(value)

    def remove_metric(self, name: str):
        with self._lock:
            self._metrics.pop(name, None)

    @contextmanager
    def time(self, name: str) -> Iterator[None]:
        """Record the wall time of the block, in milliseconds, as a sample."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.add_metric(name, (time.perf_counter() - start) * 1000)

    # -- Labels & gauges --

    def set_label(self, name: str, value: str):
        with self._lock:
            self._labels[name] = value

    def clear_label(self, name: str):
        with self._lock:
            self._labels.pop(name, None)

    def set_gauge(self, name: str, value: float):
        with self._lock:
            self._gauges[name] = value

    # -- Provider interface --

    def get_counters(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def get_metrics(self) -> Dict[str, Histogram]:
        with self._lock:
            return dict(self._metrics)

    def get_labels(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._labels)

    def get_gauges(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._gauges)

    def name(self) -> str:
        return self._source_name
