"""
Delta engine: turns "absolute now" + "absolute last time" into "what changed".

Work is split in two phases so a failed read or a bad distribution never
leaves the store half-updated. The compute_* functions are pure and return
both the deltas and the baseline that should replace the store's; only
SnapshotStore.commit() mutates anything.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Mapping, Tuple

from snapdelta.distribution import Distribution
from snapdelta.provider.base import StatsProvider

log = logging.getLogger(__name__)


class ResetPolicy(str, Enum):
    """What a counter delta is when the counter went down since the last snap."""

    # Treat the new value as counting up from zero: delta = current
    RESTART = "restart"
    # Let the drop through as a negative delta: delta = current - last
    NEGATIVE = "negative"


def counter_delta(last: int, current: int, policy: ResetPolicy = ResetPolicy.RESTART) -> int:
    if current >= last:
        return current - last
    if policy is ResetPolicy.NEGATIVE:
        return current - last
    return current


def compute_counter_deltas(
    last: Mapping[str, int],
    current: Mapping[str, int],
    policy: ResetPolicy = ResetPolicy.RESTART,
) -> Tuple[Dict[str, int], Dict[str, int]]:
    """Returns (deltas, new_baseline).

    Only names in `current` show up in either result, so counters that
    disappeared from the provider are dropped without a tombstone.
    """
    deltas: Dict[str, int] = {}
    baseline: Dict[str, int] = {}

    for name, value in current.items():
        previous = last.get(name, 0)
        if value < previous:
            log.debug("Counter %s reset (%d -> %d), policy=%s", name, previous, value, policy.value)
        deltas[name] = counter_delta(previous, value, policy)
        baseline[name] = value

    return deltas, baseline


def compute_distribution_deltas(
    last: Mapping[str, Distribution],
    current: Mapping[str, Distribution],
) -> Tuple[Dict[str, Distribution], Dict[str, Distribution]]:
    """Returns (deltas, new_baseline).

    A name seen for the first time reports its whole distribution. A
    DistributionMismatchError from delta() propagates untouched.
    """
    deltas: Dict[str, Distribution] = {}
    baseline: Dict[str, Distribution] = {}

    for name, dist in current.items():
        previous = last.get(name)
        deltas[name] = dist if previous is None else dist.delta(previous)
        baseline[name] = dist

    return deltas, baseline


class SnapshotStore:
    """Provider values as of the last snap.

    Not thread-safe on its own; the accessor holds its snap lock around
    every read-compute-commit cycle.
    """

    def __init__(self):
        self._counters: Dict[str, int] = {}
        self._distributions: Dict[str, Distribution] = {}

    @property
    def counters(self) -> Mapping[str, int]:
        return self._counters

    @property
    def distributions(self) -> Mapping[str, Distribution]:
        return self._distributions

    def seed(self, provider: StatsProvider):
        """Take the provider's current values as the baseline, no deltas."""
        counters = dict(provider.get_counters())
        distributions = dict(provider.get_metrics())
        self.commit(counters, distributions)
        log.info(
            "Seeded snapshot store from %s: %d counters, %d distributions",
            provider.name(), len(counters), len(distributions),
        )

    def commit(self, counters: Dict[str, int], distributions: Dict[str, Distribution]):
        self._counters = counters
        self._distributions = distributions
