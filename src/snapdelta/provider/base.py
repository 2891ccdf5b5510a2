"""
Base provider interface.

A provider is anything the accessor can read current stats from.
This keeps the delta engine decoupled from where the numbers actually
come from (in-process collection, simulated traffic, a Prometheus
endpoint, etc).
"""

from abc import ABC, abstractmethod
from typing import Dict

from snapdelta.distribution import Distribution
from snapdelta.summary import FullSummary


class StatsProvider(ABC):
    """Interface for all stats sources.

    Distributions returned by get_metrics() must be point-in-time values:
    recording more samples later must not change an instance that was
    already handed out, since the accessor keeps it as a baseline.
    """

    @abstractmethod
    def get_counters(self) -> Dict[str, int]:
        """Current absolute value of every counter."""
        ...

    @abstractmethod
    def get_metrics(self) -> Dict[str, Distribution]:
        """Current accumulated distribution for every metric."""
        ...

    @abstractmethod
    def get_labels(self) -> Dict[str, str]:
        ...

    def get_gauges(self) -> Dict[str, float]:
        return {}

    def get_summary(self) -> FullSummary:
        """Absolute view of everything this provider knows about."""
        return FullSummary(
            counters=self.get_counters(),
            distributions=self.get_metrics(),
            labels=self.get_labels(),
            gauges=self.get_gauges(),
        )

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...
