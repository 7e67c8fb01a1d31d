"""Tests for candidate ranking."""

from conftest import make_candidate
from vaulted.core.models import Quality
from vaulted.services.ranking import rank


def test_cached_beats_quality_and_seeds():
    uncached = make_candidate("uhd", quality=Quality.UHD, seeds=1000)
    cached = make_candidate("sd", quality=Quality.SD, seeds=0, cached=True)
    assert [c.id for c in rank([uncached, cached])] == ["sd", "uhd"]


def test_quality_then_seeds():
    candidates = [
        make_candidate("720-50", quality=Quality.HD, seeds=50),
        make_candidate("1080-5", quality=Quality.FHD, seeds=5, cached=True),
        make_candidate("4k-200", quality=Quality.UHD, seeds=200),
    ]
    assert [c.id for c in rank(candidates)] == ["1080-5", "4k-200", "720-50"]


def test_missing_seeds_count_as_zero():
    candidates = [
        make_candidate("none", seeds=None),
        make_candidate("some", seeds=3),
        make_candidate("zero", seeds=0),
    ]
    assert [c.id for c in rank(candidates)] == ["some", "none", "zero"]


def test_stable_for_equal_keys():
    candidates = [make_candidate(f"c{i}", quality=Quality.FHD, seeds=7) for i in range(6)]
    assert [c.id for c in rank(candidates)] == [f"c{i}" for i in range(6)]


def test_unknown_quality_last():
    candidates = [
        make_candidate("unknown", quality=Quality.UNKNOWN, seeds=99),
        make_candidate("sd", quality=Quality.SD),
    ]
    assert [c.id for c in rank(candidates)] == ["sd", "unknown"]


def test_does_not_mutate_input():
    candidates = [make_candidate("a", quality=Quality.SD), make_candidate("b", quality=Quality.UHD)]
    rank(candidates)
    assert [c.id for c in candidates] == ["a", "b"]
