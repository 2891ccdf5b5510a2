"""Tests for the bundled reporters and the terminal view."""

import io
import json
import logging
from collections import deque
from datetime import datetime, timedelta, timezone

from rich.console import Console
from rich.layout import Layout

from snapdelta.dashboard.terminal import _trend_arrow, build_display, run_loop
from snapdelta.distribution import Histogram
from snapdelta.engine.accessor import StatsAccessor
from snapdelta.provider.memory import StatsCollection
from snapdelta.reporters.jsonl import JsonlReporter
from snapdelta.reporters.logging_reporter import LoggingReporter
from snapdelta.summary import build_delta_summary


def _make_summary(**overrides):
    start = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    defaults = dict(
        counters={"requests": 120, "errors": 3},
        distributions={"latency_ms": Histogram.from_samples([12, 40, 80, 400])},
        labels={"service": "checkout-api"},
        gauges={"in_flight": 4.0},
        window_start=start,
        window_end=start + timedelta(seconds=10),
    )
    defaults.update(overrides)
    return build_delta_summary(**defaults)


def test_jsonl_writes_one_line_per_summary():
    out = io.StringIO()
    reporter = JsonlReporter(stream=out, source="unit-test")
    reporter.report(_make_summary())
    reporter.report(_make_summary(counters={"requests": 1}))

    lines = out.getvalue().splitlines()
    assert len(lines) == 2
    record = json.loads(lines[0])
    assert record["kind"] == "delta"
    assert record["source"] == "unit-test"
    assert record["counters"]["requests"] == 120
    assert record["window_seconds"] == 10.0
    assert record["distributions"]["latency_ms"]["count"] == 4
    assert json.loads(lines[1])["counters"] == {"requests": 1}


def test_logging_reporter(caplog):
    reporter = LoggingReporter(logger=logging.getLogger("snapdelta.test"))
    with caplog.at_level(logging.INFO, logger="snapdelta.test"):
        reporter.report(_make_summary())

    assert len(caplog.records) == 1
    message = caplog.records[0].getMessage()
    assert "requests=120" in message
    assert "latency_ms[n=4]" in message


def test_logging_reporter_respects_level(caplog):
    reporter = LoggingReporter(logger=logging.getLogger("snapdelta.quiet"), level=logging.DEBUG)
    with caplog.at_level(logging.WARNING, logger="snapdelta.quiet"):
        reporter.report(_make_summary())
    assert caplog.records == []


def test_rate_uses_window():
    summary = _make_summary()
    assert summary.rate("requests") == 12.0
    assert summary.rate("missing") == 0.0


def test_trend_arrow():
    assert _trend_arrow(110, 100) == "[cyan]^[/cyan]"
    assert _trend_arrow(90, 100) == "[magenta]v[/magenta]"
    assert "-" in _trend_arrow(101, 100)
    assert _trend_arrow(5, 0) == ""


def test_build_display_renders():
    history = deque([_make_summary(), _make_summary(counters={"requests": -5})])
    layout = build_display(history[-1], "unit-test", history)
    assert isinstance(layout, Layout)

    console = Console(file=io.StringIO(), width=160, height=30)
    console.print(layout)
    text = console.file.getvalue()
    assert "requests" in text
    assert "latency_ms" in text


def test_run_loop_stops_after_repeated_failures():
    class _DeadProvider(StatsCollection):
        broken = False

        def get_counters(self):
            if self.broken:
                raise ConnectionError("gone")
            return super().get_counters()

    provider = _DeadProvider()
    accessor = StatsAccessor(provider)
    provider.broken = True

    attempts = []
    snaps = run_loop(accessor, refresh_interval=0, on_error=lambda e, n: attempts.append(n))

    assert snaps == 0
    assert attempts == [1, 2, 3, 4, 5]


def test_run_loop_ticks_and_snaps():
    class _Ticking(StatsCollection):
        def tick(self):
            self.incr("ticks")

    provider = _Ticking()
    accessor = StatsAccessor(provider)
    seen = []
    accessor.add_snap_reporter(seen.append)

    assert run_loop(accessor, refresh_interval=0, max_snaps=3) == 3
    assert [s.counters["ticks"] for s in seen] == [1, 1, 1]
