"""
Reporter registry: the set of listeners a snap fans out to.

Registration changes and fan-out never see each other half done -- notify()
works off a tuple copied under the lock, so a reporter removed mid fan-out
still gets this round's summary once, and one added mid fan-out waits for
the next round.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Tuple

from snapdelta.reporters.base import Reporter
from snapdelta.summary import DeltaSummary

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReporterFailure:
    reporter: Reporter
    error: Exception

    def __str__(self) -> str:
        return f"{self.reporter.name()}: {type(self.error).__name__}: {self.error}"


class ReporterRegistry:

    def __init__(self):
        self._lock = threading.Lock()
        self._reporters: List[Reporter] = []

    def add(self, reporter: Reporter):
        """Register a reporter. Adding one that's already registered does nothing."""
        with self._lock:
            if reporter in self._reporters:
                log.debug("Reporter %s already registered", reporter.name())
                return
            self._reporters.append(reporter)

    def remove(self, reporter: Reporter):
        with self._lock:
            try:
                self._reporters.remove(reporter)
            except ValueError:
                pass  # not registered, nothing to do

    def snapshot(self) -> Tuple[Reporter, ...]:
        with self._lock:
            return tuple(self._reporters)

    def notify(self, summary: DeltaSummary) -> List[ReporterFailure]:
        """Deliver summary to every registered reporter, one at a time.

        A reporter that raises is logged and recorded, and the rest still
        get the summary. Nothing is retried.
        """
        failures: List[ReporterFailure] = []

        for reporter in self.snapshot():
            try:
                reporter.report(summary)
            except Exception as e:
                log.warning("Reporter %s failed: %s", reporter.name(), e, exc_info=True)
                failures.append(ReporterFailure(reporter=reporter, error=e))

        return failures

    def __len__(self) -> int:
        with self._lock:
            return len(self._reporters)

    def __contains__(self, reporter) -> bool:
        with self._lock:
            return reporter in self._reporters
