"""Terminal views and snap loops. The Rich view is just another reporter."""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Optional

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from snapdelta import __version__
from snapdelta.engine.accessor import StatsAccessor
from snapdelta.reporters.base import Reporter
from snapdelta.reporters.jsonl import JsonlReporter
from snapdelta.reporters.logging_reporter import LoggingReporter
from snapdelta.summary import DeltaSummary

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = 2.0

# Give up after this many provider failures in a row
MAX_CONSECUTIVE_ERRORS = 5

# How many summaries to keep for trend arrows
HISTORY_SIZE = 30


def _trend_arrow(current: float, previous: float) -> str:
    """Returns a ^ or v arrow, or a dash when the change is noise."""
    if previous == 0:
        return ""

    pct_change = (current - previous) / abs(previous)
    if abs(pct_change) < 0.03:
        return "[dim]-[/dim]"
    return "[cyan]^[/cyan]" if pct_change > 0 else "[magenta]v[/magenta]"


def _color_for_latency(value: Optional[float], threshold: float) -> str:
    if value is None:
        return "dim"
    if value < threshold * 0.5:
        return "green"
    elif value < threshold:
        return "yellow"
    return "red"


def _fmt(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:,.1f}"


def build_display(
    summary: DeltaSummary,
    source_name: str,
    history: deque,
    latency_threshold: float = 250.0,
) -> Layout:
    layout = Layout()
    prev: Optional[DeltaSummary] = history[-2] if len(history) > 1 else None

    header = Text(f"  snapdelta v{__version__}  |  {source_name}", style="bold white on blue")
    header.append(
        f"\n  window {summary.window_start.strftime('%H:%M:%S')} -> "
        f"{summary.window_end.strftime('%H:%M:%S')}  ({summary.window_seconds:.1f}s)",
        style="dim",
    )

    # -- Counters panel --
    counter_table = Table(show_header=True, header_style="bold cyan", expand=True)
    counter_table.add_column("Counter", style="dim")
    counter_table.add_column("Delta", justify="right")
    counter_table.add_column("/sec", justify="right")
    counter_table.add_column("", width=2)

    for name in sorted(summary.counters):
        delta = summary.counters[name]
        trend = _trend_arrow(delta, prev.counters.get(name, 0)) if prev else ""
        style = "red" if delta < 0 else "bold"
        counter_table.add_row(name, f"[{style}]{delta:,}[/]", f"{summary.rate(name):,.1f}", trend)

    # -- Distributions panel --
    dist_table = Table(show_header=True, header_style="bold cyan", expand=True)
    dist_table.add_column("Distribution", style="dim")
    dist_table.add_column("n", justify="right")
    dist_table.add_column("mean", justify="right")
    dist_table.add_column("p50", justify="right")
    dist_table.add_column("p95", justify="right")
    dist_table.add_column("p99", justify="right")

    for name in sorted(summary.distributions):
        dist = summary.distributions[name]
        stats = dist.to_dict()
        row = [name, f"{dist.count:,}", _fmt(stats.get("mean"))]
        for key in ("p50", "p95", "p99"):
            value = stats.get(key)
            color = _color_for_latency(value, latency_threshold)
            row.append(f"[{color}]{_fmt(value)}[/]")
        dist_table.add_row(*row)

    # -- Labels & gauges panel --
    info_table = Table(show_header=False, expand=True)
    info_table.add_column("name", style="dim")
    info_table.add_column("value", justify="right")
    for name in sorted(summary.gauges):
        info_table.add_row(name, f"{summary.gauges[name]:,.2f}")
    for name in sorted(summary.labels):
        info_table.add_row(name, f"[cyan]{summary.labels[name]}[/cyan]")

    layout.split_column(
        Layout(Panel(header, border_style="blue"), size=4),
        Layout(name="body"),
        Layout(Panel(Text("  Press Ctrl+C to stop", style="dim"), border_style="dim"), size=3),
    )
    layout["body"].split_row(
        Layout(Panel(counter_table, title="Counters", border_style="cyan")),
        Layout(Panel(dist_table, title="Distributions", border_style="cyan"), ratio=2),
        Layout(Panel(info_table, title="Gauges & labels", border_style="cyan")),
    )
    return layout


class ConsoleReporter(Reporter):
    """Pushes every summary into a Rich Live view."""

    def __init__(self, live: Live, source_name: str):
        self._live = live
        self._source_name = source_name
        self.history: deque[DeltaSummary] = deque(maxlen=HISTORY_SIZE)

    def report(self, summary: DeltaSummary) -> None:
        self.history.append(summary)
        self._live.update(build_display(summary, self._source_name, self.history))


def run_loop(
    accessor: StatsAccessor,
    refresh_interval: float = DEFAULT_INTERVAL,
    on_error=None,
    max_snaps: Optional[int] = None,
) -> int:
    """Trigger a snap every refresh_interval seconds until interrupted.

    Provider failures are retried on the next tick; after
    MAX_CONSECUTIVE_ERRORS in a row the loop gives up. Returns the number
    of successful snaps.
    """
    provider = accessor.provider
    consecutive_errors = 0
    snaps = 0

    while max_snaps is None or snaps < max_snaps:
        time.sleep(refresh_interval)

        # Simulated sources only move when told to
        if hasattr(provider, "tick"):
            provider.tick()

        try:
            accessor.trigger_snap()
            consecutive_errors = 0
            snaps += 1
        except Exception as e:
            consecutive_errors += 1
            log.warning(
                "Snap failed (attempt %d/%d): %s",
                consecutive_errors, MAX_CONSECUTIVE_ERRORS, e,
            )
            if on_error is not None:
                on_error(e, consecutive_errors)
            if consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
                log.error("Giving up after %d failed snaps in a row", consecutive_errors)
                break

    return snaps


def run_dashboard(accessor: StatsAccessor, refresh_interval: float = DEFAULT_INTERVAL):
    console = Console()
    source_name = accessor.provider.name()

    log.info("Starting dashboard: source=%s, refresh=%.1fs", source_name, refresh_interval)
    console.print(f"\n[bold]Starting snapdelta v{__version__}...[/bold]")
    console.print(f"Source: {source_name}")
    console.print(f"Snap every {refresh_interval}s, reset policy: {accessor.reset_policy.value}")
    console.print()

    with Live(console=console, refresh_per_second=1, screen=True) as live:
        reporter = ConsoleReporter(live, source_name)
        accessor.add_snap_reporter(reporter)

        def show_error(e, attempt):
            error_text = Text(
                f"  Provider error (retry {attempt}/{MAX_CONSECUTIVE_ERRORS}): {e}",
                style="bold red",
            )
            live.update(Panel(error_text, border_style="red"))

        try:
            snaps = run_loop(accessor, refresh_interval, on_error=show_error)
        except KeyboardInterrupt:
            snaps = len(reporter.history)
        finally:
            accessor.remove_snap_reporter(reporter)

    console.print(f"\n[dim]Dashboard stopped after {snaps} snaps.[/dim]")


def run_jsonl(accessor: StatsAccessor, refresh_interval: float = DEFAULT_INTERVAL):
    """Non-interactive mode: one JSON line per snap on stdout."""
    source_name = accessor.provider.name()
    log.info("Starting JSONL output: source=%s, refresh=%.1fs", source_name, refresh_interval)

    accessor.add_snap_reporter(JsonlReporter(source=source_name))
    try:
        run_loop(accessor, refresh_interval)
    except KeyboardInterrupt:
        pass


def run_logging(accessor: StatsAccessor, refresh_interval: float = DEFAULT_INTERVAL):
    """Non-interactive mode: one log line per snap."""
    log.info("Starting log output: source=%s, refresh=%.1fs", accessor.provider.name(), refresh_interval)

    accessor.add_snap_reporter(LoggingReporter())
    try:
        run_loop(accessor, refresh_interval)
    except KeyboardInterrupt:
        pass
