"""Reporter that writes one log line per snap."""

from __future__ import annotations

import logging
from typing import Optional

from snapdelta.reporters.base import Reporter
from snapdelta.summary import DeltaSummary


class LoggingReporter(Reporter):

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO):
        self._log = logger or logging.getLogger("snapdelta.report")
        self._level = level

    def report(self, summary: DeltaSummary) -> None:
        if not self._log.isEnabledFor(self._level):
            return

        counters = " ".join(f"{k}={v}" for k, v in sorted(summary.counters.items()))
        dists = " ".join(
            f"{k}[n={d.count}]" for k, d in sorted(summary.distributions.items())
        )
        self._log.log(
            self._level,
            "snap %.1fs: %s %s",
            summary.window_seconds,
            counters or "-",
            dists or "-",
        )
