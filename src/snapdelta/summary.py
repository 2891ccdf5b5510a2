"""
Summary value types.

FullSummary is what a provider reports about itself right now (absolute
values). DeltaSummary is what the accessor reports after a snap: the change
over [window_start, window_end). They're separate types so nobody has to
guess which flavour a summary is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping

from snapdelta.distribution import Distribution


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class FullSummary:
    """Absolute provider state. No window."""

    counters: Mapping[str, int] = field(default_factory=dict)
    distributions: Mapping[str, Distribution] = field(default_factory=dict)
    labels: Mapping[str, str] = field(default_factory=dict)
    gauges: Mapping[str, float] = field(default_factory=dict)

    __hash__ = None  # read-only mappings can't be hashed

    def __post_init__(self):
        for name in ("counters", "distributions", "labels", "gauges"):
            object.__setattr__(self, name, _frozen(getattr(self, name)))

    def to_dict(self) -> dict:
        """Return a plain dict for display or JSON output."""
        return {
            "kind": "full",
            "counters": dict(self.counters),
            "distributions": {k: v.to_dict() for k, v in self.distributions.items()},
            "labels": dict(self.labels),
            "gauges": dict(self.gauges),
        }


@dataclass(frozen=True)
class DeltaSummary:
    """Change since the previous snap, covering [window_start, window_end)."""

    counters: Mapping[str, int]
    distributions: Mapping[str, Distribution]
    labels: Mapping[str, str]
    gauges: Mapping[str, float]
    window_start: datetime
    window_end: datetime

    __hash__ = None

    def __post_init__(self):
        for name in ("counters", "distributions", "labels", "gauges"):
            object.__setattr__(self, name, _frozen(getattr(self, name)))

    @property
    def window_seconds(self) -> float:
        return (self.window_end - self.window_start).total_seconds()

    def rate(self, counter: str) -> float:
        """Per-second rate for one counter over the window (0 if the window is empty)."""
        seconds = self.window_seconds
        if seconds <= 0:
            return 0.0
        return self.counters.get(counter, 0) / seconds

    def to_dict(self) -> dict:
        return {
            "kind": "delta",
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "window_seconds": round(self.window_seconds, 3),
            "counters": dict(self.counters),
            "distributions": {k: v.to_dict() for k, v in self.distributions.items()},
            "labels": dict(self.labels),
            "gauges": dict(self.gauges),
        }


def build_delta_summary(
    counters: Mapping[str, int],
    distributions: Mapping[str, Distribution],
    labels: Mapping[str, str],
    gauges: Mapping[str, float],
    window_start: datetime,
    window_end: datetime,
) -> DeltaSummary:
    return DeltaSummary(
        counters=counters,
        distributions=distributions,
        labels=labels,
        gauges=gauges,
        window_start=window_start,
        window_end=window_end,
    )


def empty_delta_summary(at: datetime) -> DeltaSummary:
    return build_delta_summary({}, {}, {}, {}, at, at)
