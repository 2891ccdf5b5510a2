"""Tests for the Histogram distribution."""

import pytest

from snapdelta.distribution import DEFAULT_BOUNDS, DistributionMismatchError, Histogram


def _hist(*samples, bounds=(10.0, 50.0, 100.0)) -> Histogram:
    return Histogram.from_samples(samples, bounds=bounds)


def test_from_samples_buckets_values():
    h = _hist(5, 10, 20, 60, 500)
    # le semantics: 10 lands in the first bucket
    assert h.counts == (2, 1, 1, 1)
    assert h.count == 5
    assert h.total == 595


def test_empty_histogram():
    h = Histogram.empty()
    assert h.is_empty
    assert h.bounds == DEFAULT_BOUNDS
    assert h.percentile(0.5) is None
    assert h.mean == 0.0


def test_with_sample_leaves_original_untouched():
    before = _hist(5)
    after = before.with_sample(70)
    assert before.count == 1
    assert after.count == 2
    assert after.counts == (1, 0, 1, 0)


def test_delta_only_contains_new_samples():
    before = _hist(5, 20)
    after = before.with_sample(20).with_sample(200)
    delta = after.delta(before)

    assert delta.count == 2
    assert delta.counts == (0, 1, 0, 1)
    assert delta.total == 220


def test_delta_does_not_modify_operands():
    before = _hist(5)
    after = before.with_sample(20)
    after.delta(before)
    assert before.count == 1
    assert after.count == 2


def test_delta_against_empty_is_unchanged():
    h = _hist(1, 2, 30, 300)
    assert h.delta(Histogram.empty(h.bounds)) == h


def test_delta_with_no_new_samples_is_empty():
    h = _hist(1, 2, 30)
    assert h.delta(h).is_empty


def test_delta_after_restart_returns_current():
    before = _hist(5, 5, 5, 20)
    after = _hist(60)  # the series started over with one sample
    assert after.delta(before) == after


def test_delta_rejects_different_bounds():
    a = _hist(1, bounds=(10.0, 20.0))
    b = _hist(1, bounds=(10.0, 30.0))
    with pytest.raises(DistributionMismatchError):
        a.delta(b)


def test_delta_rejects_other_types():
    with pytest.raises(DistributionMismatchError):
        _hist(1).delta("not a histogram")


def test_mismatch_error_is_a_type_error():
    assert issubclass(DistributionMismatchError, TypeError)


def test_from_cumulative_matches_from_samples():
    direct = _hist(5, 10, 20, 60, 500)
    rebuilt = Histogram.from_cumulative(
        [(10.0, 2), (50.0, 3), (100.0, 4)], total=595, count=5
    )
    assert rebuilt == direct


def test_percentile_interpolates_within_bucket():
    h = Histogram(bounds=(10.0, 20.0), counts=(0, 10, 0), total=150, sample_count=10)
    p50 = h.percentile(0.5)
    assert 14.9 < p50 < 15.1


def test_percentile_in_overflow_reports_top_bound():
    h = _hist(1000, 2000)
    assert h.percentile(0.99) == 100.0


def test_percentile_range_checked():
    with pytest.raises(ValueError):
        _hist(1).percentile(1.5)


def test_bad_layout_rejected():
    with pytest.raises(ValueError):
        Histogram(bounds=(1.0, 2.0), counts=(0, 0))
    with pytest.raises(ValueError):
        Histogram(bounds=(2.0, 1.0), counts=(0, 0, 0))


def test_to_dict_has_expected_keys():
    d = _hist(5, 20, 60).to_dict()
    for key in ("count", "sum", "mean", "p50", "p95", "p99"):
        assert key in d, f"Missing key: {key}"
    assert d["count"] == 3
