"""Tests for the reporter registry."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from snapdelta.engine.registry import ReporterFailure, ReporterRegistry
from snapdelta.reporters.base import FunctionReporter, Reporter
from snapdelta.summary import empty_delta_summary


class _Recorder(Reporter):
    def __init__(self):
        self.received = []

    def report(self, summary):
        self.received.append(summary)


class _Broken(Reporter):
    def report(self, summary):
        raise RuntimeError("downstream is down")


def _summary():
    return empty_delta_summary(datetime(2026, 1, 1, tzinfo=timezone.utc))


def test_add_and_notify():
    registry = ReporterRegistry()
    a, b = _Recorder(), _Recorder()
    registry.add(a)
    registry.add(b)

    summary = _summary()
    failures = registry.notify(summary)

    assert failures == []
    assert a.received == [summary]
    assert b.received[0] is summary


def test_add_is_idempotent():
    registry = ReporterRegistry()
    r = _Recorder()
    registry.add(r)
    registry.add(r)
    assert len(registry) == 1

    registry.notify(_summary())
    assert len(r.received) == 1


def test_remove_missing_is_noop():
    registry = ReporterRegistry()
    registry.remove(_Recorder())  # should not raise
    assert len(registry) == 0


def test_remove_stops_delivery():
    registry = ReporterRegistry()
    r = _Recorder()
    registry.add(r)
    registry.remove(r)
    assert r not in registry

    registry.notify(_summary())
    assert r.received == []


def test_failing_reporter_is_isolated():
    registry = ReporterRegistry()
    broken = _Broken()
    good = _Recorder()
    registry.add(broken)
    registry.add(good)

    failures = registry.notify(_summary())

    assert len(good.received) == 1
    assert len(failures) == 1
    assert failures[0].reporter is broken
    assert isinstance(failures[0].error, RuntimeError)
    assert "downstream is down" in str(failures[0])


def test_snapshot_is_a_copy():
    registry = ReporterRegistry()
    r = _Recorder()
    registry.add(r)
    snap = registry.snapshot()
    registry.remove(r)
    assert snap == (r,)
    assert registry.snapshot() == ()


def test_removal_during_fanout_still_delivers_once():
    registry = ReporterRegistry()
    victim = _Recorder()

    class _Remover(Reporter):
        def report(self, summary):
            registry.remove(victim)

    registry.add(_Remover())
    registry.add(victim)

    registry.notify(_summary())
    assert len(victim.received) == 1

    registry.notify(_summary())
    assert len(victim.received) == 1


def test_function_reporters_compare_by_callable():
    def fn(summary):
        pass

    assert FunctionReporter(fn) == FunctionReporter(fn)
    registry = ReporterRegistry()
    registry.add(FunctionReporter(fn))
    registry.remove(FunctionReporter(fn))
    assert len(registry) == 0


def test_failure_record_is_frozen():
    failure = ReporterFailure(reporter=_Broken(), error=ValueError("x"))
    with pytest.raises(FrozenInstanceError):
        failure.error = None
