"""
Stats accessor. Attaches to one provider and reports on its counters,
distributions, gauges and labels.

Every snap rolls the baseline forward, so counters are reported as deltas
and distributions only cover samples seen since the previous snap. Nothing
here schedules snaps; something outside (the CLI loop, a timer, a request
handler) calls trigger_snap().
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from snapdelta.engine.delta import (
    ResetPolicy,
    SnapshotStore,
    compute_counter_deltas,
    compute_distribution_deltas,
)
from snapdelta.engine.registry import ReporterFailure, ReporterRegistry
from snapdelta.provider.base import StatsProvider
from snapdelta.reporters.base import as_reporter
from snapdelta.summary import (
    DeltaSummary,
    FullSummary,
    build_delta_summary,
    empty_delta_summary,
)

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StatsAccessor:

    def __init__(
        self,
        provider: StatsProvider,
        start_clean: bool = True,
        reset_policy: ResetPolicy = ResetPolicy.RESTART,
        clock: Callable[[], datetime] = _utcnow,
        on_reporter_error: Optional[Callable[[ReporterFailure], None]] = None,
    ):
        self._provider = provider
        self._reset_policy = ResetPolicy(reset_policy)
        self._clock = clock
        self._on_reporter_error = on_reporter_error

        self._snap_lock = threading.Lock()
        self._store = SnapshotStore()
        self._registry = ReporterRegistry()
        self._last_failures: List[ReporterFailure] = []

        # With start_clean the first snap reports change since construction;
        # without it, the first snap reports the provider's absolute values.
        if start_clean:
            self._store.seed(provider)

        self._current_snap = clock()
        self._last_snap = self._current_snap
        self._delta_summary = empty_delta_summary(self._current_snap)

    @property
    def provider(self) -> StatsProvider:
        return self._provider

    @property
    def reset_policy(self) -> ResetPolicy:
        return self._reset_policy

    @property
    def last_snap(self) -> datetime:
        return self._last_snap

    @property
    def current_snap(self) -> datetime:
        return self._current_snap

    @property
    def last_failures(self) -> List[ReporterFailure]:
        """Reporter failures from the most recent trigger."""
        return list(self._last_failures)

    def get_full_summary(self) -> FullSummary:
        return self._provider.get_summary()

    def get_delta_summary(self) -> DeltaSummary:
        """The summary built by the last trigger_snap(). Doesn't take a new snap."""
        return self._delta_summary

    def trigger_snap(self) -> None:
        """Compute deltas since the last snap and hand them to every reporter.

        If reading the provider (or diffing a distribution) raises, the
        error propagates and nothing is committed: baseline, timestamps and
        the published summary stay as they were. Reporter errors don't
        propagate; see last_failures and on_reporter_error.
        """
        with self._snap_lock:
            counters = self._provider.get_counters()
            metrics = self._provider.get_metrics()
            labels = self._provider.get_labels()
            gauges = self._provider.get_gauges()

            counter_deltas, counter_baseline = compute_counter_deltas(
                self._store.counters, counters, self._reset_policy
            )
            metric_deltas, metric_baseline = compute_distribution_deltas(
                self._store.distributions, metrics
            )

            self._store.commit(counter_baseline, metric_baseline)
            self._last_snap = self._current_snap
            self._current_snap = self._clock()

            summary = build_delta_summary(
                counter_deltas,
                metric_deltas,
                labels,
                gauges,
                window_start=self._last_snap,
                window_end=self._current_snap,
            )
            self._delta_summary = summary
            log.debug(
                "Snap %s -> %s: %d counters, %d distributions",
                self._last_snap.isoformat(), self._current_snap.isoformat(),
                len(counter_deltas), len(metric_deltas),
            )

            failures = self._registry.notify(summary)
            self._last_failures = failures

        if failures and self._on_reporter_error is not None:
            for failure in failures:
                try:
                    self._on_reporter_error(failure)
                except Exception:
                    log.warning("on_reporter_error raised for %s", failure, exc_info=True)

    # A snap reporter is essentially a snap listener; it receives every
    # DeltaSummary this accessor produces.

    def add_snap_reporter(self, reporter):
        self._registry.add(as_reporter(reporter))

    def remove_snap_reporter(self, reporter):
        try:
            reporter = as_reporter(reporter)
        except TypeError:
            return  # can't have been registered
        self._registry.remove(reporter)
