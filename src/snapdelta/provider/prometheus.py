"""
Provider for anything exposing Prometheus text at /metrics. Scrapes the
endpoint and maps families onto the provider interface:

    counter    -> counters (one per labelled series)
    histogram  -> Histogram distributions
    gauge      -> gauges
    *_info     -> labels, as "<family>.<label>"

A trigger reads counters, metrics, labels and gauges back to back; one
scrape is reused for max_age_seconds so they all come from the same page.

Counters are whole numbers here. Fractional counter families such as
process_cpu_seconds_total are truncated with int(), so a window that grows
one by less than 1 reports 0 for it.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Dict, Optional

import httpx

from snapdelta.distribution import Histogram
from snapdelta.provider.base import StatsProvider
from snapdelta.provider.prometheus_parser import (
    MetricFamily,
    flat_series,
    histogram_series,
    parse_prometheus_text,
)

log = logging.getLogger(__name__)


class PrometheusProvider(StatsProvider):

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        max_age_seconds: float = 1.0,
    ):
        self._metrics_url = base_url.rstrip("/")
        if not self._metrics_url.endswith("/metrics"):
            self._metrics_url += "/metrics"

        self._timeout = timeout_seconds
        self._max_age = max_age_seconds
        self._client = httpx.Client(timeout=self._timeout)
        self._lock = threading.Lock()
        self._families: Optional[Dict[str, MetricFamily]] = None
        self._scraped_at = 0.0

    def _scrape(self) -> Dict[str, MetricFamily]:
        """Fetch and parse /metrics, or reuse a page young enough.

        HTTP and transport errors propagate -- a failed read has to fail
        the trigger rather than look like every counter vanished.
        """
        with self._lock:
            now = time.monotonic()
            if self._families is not None and now - self._scraped_at < self._max_age:
                return self._families

            response = self._client.get(self._metrics_url)
            response.raise_for_status()

            self._families = parse_prometheus_text(response.text)
            self._scraped_at = now
            log.debug("Scraped %s: %d families", self._metrics_url, len(self._families))
            return self._families

    def get_counters(self) -> Dict[str, int]:
        counters: Dict[str, int] = {}
        for family in self._scrape().values():
            if family.metric_type != "counter":
                continue
            for key, value in flat_series(family).items():
                counters[key] = int(value)
        return counters

    def get_metrics(self) -> Dict[str, Histogram]:
        metrics: Dict[str, Histogram] = {}
        for family in self._scrape().values():
            if family.metric_type == "histogram":
                metrics.update(histogram_series(family))
        return metrics

    def get_labels(self) -> Dict[str, str]:
        labels: Dict[str, str] = {}
        for family in self._scrape().values():
            if family.metric_type != "info":
                continue
            for sample in family.samples:
                for key, value in sample.labels.items():
                    labels[f"{family.name}.{key}"] = value
        return labels

    def get_gauges(self) -> Dict[str, float]:
        gauges: Dict[str, float] = {}
        for family in self._scrape().values():
            if family.metric_type != "gauge":
                continue
            for key, value in flat_series(family).items():
                gauges[key] = value
        return gauges

    def name(self) -> str:
        return f"Prometheus ({self._metrics_url})"

    def close(self):
        self._client.close()
