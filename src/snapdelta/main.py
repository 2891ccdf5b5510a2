"""
snapdelta entry point.

Usage:
    snapdelta --mock                          Simulated traffic, Rich view
    snapdelta --url http://localhost:9100      Scrape a Prometheus endpoint
    snapdelta --mock --output jsonl            One JSON line per snap
    snapdelta --url ... full                   Print the absolute summary once
    snapdelta --url ... snap                   Take one delta snap and print it
"""

from __future__ import annotations

import json
import logging
import time

import click

from snapdelta import __version__
from snapdelta.dashboard.terminal import (
    DEFAULT_INTERVAL,
    run_dashboard,
    run_jsonl,
    run_logging,
)
from snapdelta.engine.accessor import StatsAccessor
from snapdelta.engine.delta import ResetPolicy
from snapdelta.provider.mock_provider import MockProvider
from snapdelta.provider.prometheus import PrometheusProvider


log = logging.getLogger("snapdelta")


def _make_provider(ctx):
    mock = ctx.obj["mock"]
    url = ctx.obj["url"]
    if not mock and not url:
        click.echo("Please specify a data source: --mock or --url <endpoint>")
        raise SystemExit(1)
    if url:
        return PrometheusProvider(base_url=url, timeout_seconds=ctx.obj["timeout"])
    return MockProvider(seed=ctx.obj["seed"])


def _close(provider):
    if hasattr(provider, "close"):
        provider.close()


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="snapdelta")
@click.option("--mock", is_flag=True, default=False, help="Use simulated traffic")
@click.option("--url", default=None, help="Prometheus endpoint (e.g. http://localhost:9100)")
@click.option("--interval", default=DEFAULT_INTERVAL, help="Seconds between snaps")
@click.option("--start-clean/--no-start-clean", default=True,
              help="Seed the baseline at startup so the first snap isn't absolute totals")
@click.option("--reset-policy", type=click.Choice([p.value for p in ResetPolicy]),
              default=ResetPolicy.RESTART.value,
              help="Counter went down: report the new value (restart) or the drop (negative)")
@click.option("--timeout", default=5.0, help="HTTP timeout for --url, in seconds")
@click.option("--seed", default=42, help="Random seed for --mock")
@click.option("--output", type=click.Choice(["tui", "jsonl", "log"]), default="tui",
              help="Output mode: tui (Rich view), jsonl (one JSON line per snap) or log")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, mock: bool, url: str, interval: float, start_clean: bool, reset_policy: str,
        timeout: float, seed: int, output: str, verbose: bool):
    """snapdelta - periodic delta snapshots of counters and distributions."""
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif output == "log":
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.ensure_object(dict)
    ctx.obj["mock"] = mock
    ctx.obj["url"] = url
    ctx.obj["interval"] = interval
    ctx.obj["start_clean"] = start_clean
    ctx.obj["reset_policy"] = ResetPolicy(reset_policy)
    ctx.obj["timeout"] = timeout
    ctx.obj["seed"] = seed

    if ctx.invoked_subcommand is not None:
        return

    provider = _make_provider(ctx)
    log.info("Source: %s, start_clean=%s, reset_policy=%s", provider.name(), start_clean, reset_policy)
    runner = {"jsonl": run_jsonl, "log": run_logging}.get(output, run_dashboard)

    try:
        accessor = StatsAccessor(
            provider,
            start_clean=start_clean,
            reset_policy=ctx.obj["reset_policy"],
        )
        runner(accessor, refresh_interval=interval)
    finally:
        _close(provider)


@cli.command()
@click.pass_context
def full(ctx):
    """Print the provider's absolute summary as JSON."""
    provider = _make_provider(ctx)
    try:
        if hasattr(provider, "tick"):
            provider.tick()
        summary = StatsAccessor(provider, start_clean=False).get_full_summary()
    finally:
        _close(provider)
    click.echo(json.dumps(summary.to_dict(), indent=2, sort_keys=True))


@cli.command()
@click.pass_context
def snap(ctx):
    """Seed, wait one interval, take a single delta snap and print it as JSON."""
    provider = _make_provider(ctx)
    try:
        accessor = StatsAccessor(
            provider,
            start_clean=ctx.obj["start_clean"],
            reset_policy=ctx.obj["reset_policy"],
        )
        time.sleep(ctx.obj["interval"])
        if hasattr(provider, "tick"):
            provider.tick()
        accessor.trigger_snap()
    finally:
        _close(provider)
    click.echo(json.dumps(accessor.get_delta_summary().to_dict(), indent=2, sort_keys=True))


if __name__ == "__main__":
    cli()
