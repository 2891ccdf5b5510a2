"""Tests for counter/distribution delta computation and the snapshot store."""

import pytest

from snapdelta.distribution import DistributionMismatchError, Histogram
from snapdelta.engine.delta import (
    ResetPolicy,
    SnapshotStore,
    compute_counter_deltas,
    compute_distribution_deltas,
    counter_delta,
)
from snapdelta.provider.memory import StatsCollection


BOUNDS = (10.0, 100.0)


def test_counter_delta_increasing():
    assert counter_delta(10, 25) == 15
    assert counter_delta(7, 7) == 0


def test_counter_delta_reset_restart_policy():
    assert counter_delta(25, 5, ResetPolicy.RESTART) == 5


def test_counter_delta_reset_negative_policy():
    assert counter_delta(25, 5, ResetPolicy.NEGATIVE) == -20


def test_default_policy_is_restart():
    assert counter_delta(25, 5) == 5


def test_new_counter_reports_full_value():
    deltas, baseline = compute_counter_deltas({}, {"requests": 12})
    assert deltas == {"requests": 12}
    assert baseline == {"requests": 12}


def test_disappeared_counter_is_dropped():
    deltas, baseline = compute_counter_deltas({"old": 5, "kept": 1}, {"kept": 4})
    assert deltas == {"kept": 3}
    assert baseline == {"kept": 4}


def test_compute_counter_deltas_does_not_touch_inputs():
    last = {"a": 1}
    current = {"a": 3}
    compute_counter_deltas(last, current)
    assert last == {"a": 1}
    assert current == {"a": 3}


def test_sum_of_deltas_equals_total_growth():
    values = [3, 3, 10, 11, 40, 41, 41, 100]
    last = {"n": values[0]}
    total = 0
    for v in values[1:]:
        deltas, last = compute_counter_deltas(last, {"n": v})
        total += deltas["n"]
    assert total == values[-1] - values[0]


def test_first_seen_distribution_reports_everything():
    hist = Histogram.from_samples([1, 50, 500], bounds=BOUNDS)
    deltas, baseline = compute_distribution_deltas({}, {"latency": hist})
    assert deltas["latency"] == hist
    assert baseline["latency"] is hist


def test_distribution_delta_uses_previous():
    before = Histogram.from_samples([1, 50], bounds=BOUNDS)
    after = before.with_sample(500)
    deltas, _ = compute_distribution_deltas({"latency": before}, {"latency": after})
    assert deltas["latency"].count == 1
    assert deltas["latency"].counts == (0, 0, 1)


def test_disappeared_distribution_is_dropped():
    hist = Histogram.from_samples([1], bounds=BOUNDS)
    deltas, baseline = compute_distribution_deltas({"old": hist, "kept": hist}, {"kept": hist})
    assert set(deltas) == {"kept"}
    assert set(baseline) == {"kept"}


def test_distribution_mismatch_propagates():
    before = Histogram.from_samples([1], bounds=(1.0,))
    after = Histogram.from_samples([1], bounds=BOUNDS)
    with pytest.raises(DistributionMismatchError):
        compute_distribution_deltas({"latency": before}, {"latency": after})


def test_store_seed_copies_provider_state():
    stats = StatsCollection(bounds=BOUNDS)
    stats.incr("requests", 10)
    stats.add_metric("latency", 42)

    store = SnapshotStore()
    assert dict(store.counters) == {}
    store.seed(stats)

    assert dict(store.counters) == {"requests": 10}
    assert store.distributions["latency"].count == 1

    # seeding takes a copy, later recording doesn't leak in
    stats.incr("requests", 5)
    assert store.counters["requests"] == 10


def test_store_commit_replaces_both_baselines():
    store = SnapshotStore()
    store.commit({"a": 1}, {})
    store.commit({"b": 2}, {"h": Histogram.empty(BOUNDS)})
    assert dict(store.counters) == {"b": 2}
    assert list(store.distributions) == ["h"]
