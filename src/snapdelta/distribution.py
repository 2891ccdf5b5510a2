"""
Distributions: accumulating sample sets that can be diffed.

The engine only ever asks a distribution for one thing -- the samples it
gained since an earlier reading of the same series. Everything else here
(percentiles, means) is for reporters.

Histogram is the bundled implementation. Buckets follow the Prometheus
layout: ascending upper bounds plus an implicit +Inf overflow bucket.
"""

from __future__ import annotations

import bisect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple


# Prometheus client defaults, in milliseconds instead of seconds
DEFAULT_BOUNDS: Tuple[float, ...] = (
    5.0, 10.0, 25.0, 50.0, 75.0, 100.0, 250.0, 500.0, 750.0, 1000.0, 2500.0, 5000.0, 10000.0,
)


class DistributionMismatchError(TypeError):
    """Raised when two distributions can't be diffed against each other."""


class Distribution(ABC):
    """Interface the delta engine relies on."""

    @abstractmethod
    def delta(self, previous: "Distribution") -> "Distribution":
        """Return the samples in self that are not already in previous.

        Must not modify either operand. Diffing against an empty
        distribution returns a value equal to self.
        """
        ...

    @property
    @abstractmethod
    def count(self) -> int:
        ...

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    @abstractmethod
    def to_dict(self) -> dict:
        ...


@dataclass(frozen=True)
class Histogram(Distribution):
    bounds: Tuple[float, ...]
    counts: Tuple[int, ...]   # per bucket, not cumulative; last slot is overflow
    total: float = 0.0        # sum of all samples
    sample_count: int = 0

    def __post_init__(self):
        if list(self.bounds) != sorted(self.bounds):
            raise ValueError("histogram bounds must be ascending")
        if len(self.counts) != len(self.bounds) + 1:
            raise ValueError(
                f"expected {len(self.bounds) + 1} bucket counts, got {len(self.counts)}"
            )

    @classmethod
    def empty(cls, bounds: Sequence[float] = DEFAULT_BOUNDS) -> Histogram:
        bounds = tuple(float(b) for b in bounds)
        return cls(bounds=bounds, counts=(0,) * (len(bounds) + 1))

    @classmethod
    def from_samples(
        cls,
        samples: Iterable[float],
        bounds: Sequence[float] = DEFAULT_BOUNDS,
    ) -> Histogram:
        hist = cls.empty(bounds)
        counts = list(hist.counts)
        total = 0.0
        n = 0
        for value in samples:
            counts[hist._bucket_index(value)] += 1
            total += value
            n += 1
        return cls(bounds=hist.bounds, counts=tuple(counts), total=total, sample_count=n)

    @classmethod
    def from_cumulative(
        cls,
        buckets: Sequence[Tuple[float, float]],
        total: float,
        count: float,
    ) -> Histogram:
        """Build from Prometheus-style cumulative (le, count) pairs.

        The +Inf bucket is not part of `buckets`; its value is `count`.
        """
        ordered = sorted(buckets, key=lambda b: b[0])
        bounds = tuple(float(le) for le, _ in ordered)
        counts: List[int] = []
        prev = 0
        for _, cumulative in ordered:
            cumulative = int(cumulative)
            counts.append(max(0, cumulative - prev))
            prev = cumulative
        counts.append(max(0, int(count) - prev))
        return cls(bounds=bounds, counts=tuple(counts), total=float(total), sample_count=int(count))

    def _bucket_index(self, value: float) -> int:
        # le semantics: a sample equal to a bound belongs to that bucket
        return bisect.bisect_left(self.bounds, value)

    def with_sample(self, value: float) -> Histogram:
        counts = list(self.counts)
        counts[self._bucket_index(value)] += 1
        return Histogram(
            bounds=self.bounds,
            counts=tuple(counts),
            total=self.total + value,
            sample_count=self.sample_count + 1,
        )

    @property
    def count(self) -> int:
        return self.sample_count

    def delta(self, previous: Distribution) -> Histogram:
        if not isinstance(previous, Histogram):
            raise DistributionMismatchError(
                f"can't diff Histogram against {type(previous).__name__}"
            )
        if previous.bounds != self.bounds:
            raise DistributionMismatchError(
                f"bucket layouts differ: {self.bounds} vs {previous.bounds}"
            )

        counts = [now - before for now, before in zip(self.counts, previous.counts)]

        # A bucket going backwards means the series restarted since previous
        # was taken, so everything in self is new.
        if any(c < 0 for c in counts) or self.sample_count < previous.sample_count:
            return self

        return Histogram(
            bounds=self.bounds,
            counts=tuple(counts),
            total=self.total - previous.total,
            sample_count=self.sample_count - previous.sample_count,
        )

    @property
    def mean(self) -> float:
        return self.total / self.sample_count if self.sample_count else 0.0

    def percentile(self, q: float) -> Optional[float]:
        """Estimate a percentile using linear interpolation within buckets.

        Same approach as Prometheus histogram_quantile(). Samples in the
        overflow bucket are reported as the highest finite bound.
        """
        if not 0 <= q <= 1:
            raise ValueError("percentile must be between 0 and 1")
        if self.sample_count == 0 or not self.bounds:
            return None

        target = q * self.sample_count
        prev_bound = 0.0
        cumulative = 0

        for bound, bucket_count in zip(self.bounds, self.counts):
            if cumulative + bucket_count >= target and bucket_count > 0:
                fraction = (target - cumulative) / bucket_count
                return prev_bound + fraction * (bound - prev_bound)
            cumulative += bucket_count
            prev_bound = bound

        return self.bounds[-1]

    def to_dict(self) -> dict:
        p50 = self.percentile(0.50)
        p95 = self.percentile(0.95)
        p99 = self.percentile(0.99)
        return {
            "count": self.sample_count,
            "sum": round(self.total, 3),
            "mean": round(self.mean, 3),
            "p50": round(p50, 3) if p50 is not None else None,
            "p95": round(p95, 3) if p95 is not None else None,
            "p99": round(p99, 3) if p99 is not None else None,
        }
