from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from core.config import AppSettings
from core.services.quality import (
    LazyQualityAssessor,
    QualityAssessorFactory,
    QuickQualityAssessor,
    assess_if_needed,
    get_quick_score,
    load_records,
    normalize_record,
    note_records,
    wrap_with_lazy_quality,
)

NOW_MS = 1_700_000_000_000.0

GOOD = {"symbol": "AAPL", "price": 10.0, "size": 5, "bid": 9.9, "ask": 10.1, "timestamp": NOW_MS - 500}
BAD = {"symbol": None, "price": -1, "size": "x", "bid": 10, "ask": 9, "timestamp": NOW_MS - 400_000}


@pytest.fixture(autouse=True)
def _fresh_factory():
    QualityAssessorFactory.reset()
    yield
    QualityAssessorFactory.reset()


def _clock() -> float:
    return NOW_MS


def test_five_dimensions_for_a_clean_record() -> None:
    quality = LazyQualityAssessor(clock=_clock).compute_quality(GOOD)

    assert quality.completeness == 1.0
    assert quality.accuracy == pytest.approx(0.8)
    assert quality.freshness == 1.0
    assert quality.consistency == pytest.approx(0.9)
    assert quality.validity == pytest.approx(0.9)
    assert quality.overall == pytest.approx(0.92)


def test_five_dimensions_for_a_broken_record() -> None:
    quality = LazyQualityAssessor(clock=_clock).compute_quality(BAD)

    assert quality.completeness == pytest.approx(2 / 3)
    assert quality.accuracy == pytest.approx(0.3)
    assert quality.freshness == pytest.approx(0.3)
    assert quality.consistency == pytest.approx(0.5)
    assert quality.validity == pytest.approx(0.6)


@pytest.mark.parametrize(
    ("age_ms", "expected"),
    [(0, 1.0), (2_000, 0.9), (10_000, 0.7), (60_000, 0.5), (600_000, 0.3)],
)
def test_freshness_bands(age_ms, expected) -> None:
    assessor = LazyQualityAssessor(clock=_clock)

    assert assessor.assess_freshness({"timestamp": NOW_MS - age_ms}) == expected
    assert assessor.assess_freshness({"timestamp": "soon"}) == 0.0


def test_non_mapping_input() -> None:
    quality = LazyQualityAssessor(clock=_clock).compute_quality(None)

    assert quality.completeness == 0.0
    assert quality.freshness == 0.0
    assert quality.validity == pytest.approx(0.9)


def test_lazy_result_defers_and_caches() -> None:
    assessor = LazyQualityAssessor(clock=_clock)

    first = assessor.assess_lazy(GOOD, "good")
    assert not first.is_assessed
    assert assessor.cache_stats().size == 0

    result = first.assess()
    assert first.assess() is result
    assert assessor.cache_stats().size == 1

    second = assessor.assess_lazy(GOOD, "good")
    assert second.is_assessed
    assert second.cached_result is result

    stats = assessor.cache_stats()
    assert (stats.hits, stats.misses, stats.hit_rate) == (1, 1, 0.5)

    assessor.clear_cache()
    assert assessor.cache_stats().model_dump() == {"size": 0, "max_size": 1000, "hits": 0, "misses": 0, "hit_rate": 0.0}


def test_uncached_results_do_not_fill_cache() -> None:
    assessor = LazyQualityAssessor(clock=_clock)

    assessor.assess_lazy(GOOD).assess()

    assert assessor.cache_stats().size == 0
    assert assessor.cache_stats().misses == 0


def test_cache_evicts_oldest_entry() -> None:
    assessor = LazyQualityAssessor(max_size=2, clock=_clock)

    for result in assessor.assess_batch_lazy([(GOOD, "a"), (BAD, "b"), (GOOD, "c")]):
        result.assess()

    assert assessor.cache_stats().size == 2
    assert not assessor.assess_lazy(GOOD, "a").is_assessed
    assert assessor.assess_lazy(GOOD, "c").is_assessed


def test_preload_uses_indexed_keys() -> None:
    assessor = LazyQualityAssessor(clock=_clock)

    assessor.preload_assessments([GOOD, BAD])

    assert assessor.assess_lazy(BAD, "preload_1").is_assessed
    with pytest.raises(ValueError):
        LazyQualityAssessor(max_size=0)


def test_quick_scores() -> None:
    quick = QuickQualityAssessor(clock=_clock)

    assert quick.assess_quick(GOOD) == pytest.approx(1.0)
    assert quick.assess_quick({}) == 0.5
    assert quick.assess_quick(None) == 0.0
    assert quick.assess_quick("") == 0.0
    assert quick.assess_quick({"price": 5}) == pytest.approx(0.7)
    assert quick.assess_batch_quick([GOOD, {}, None]) == [pytest.approx(1.0), 0.5, 0.0]
    assert quick.filter_by_quality([GOOD, {"price": 5}, BAD], 0.8) == [GOOD]


def test_factory_selects_by_volume(settings) -> None:
    assert QualityAssessorFactory.for_volume(10) is QualityAssessorFactory.lazy()
    assert QualityAssessorFactory.for_volume(2000) is QualityAssessorFactory.quick()
    assert QualityAssessorFactory.for_volume(20, threshold=10) is QualityAssessorFactory.quick()

    QualityAssessorFactory.configure(AppSettings(_env_file=None, vault_path=settings.vault_path, quality_cache_size=5))
    assert QualityAssessorFactory.lazy().max_size == 5


def test_module_helpers_share_the_singletons() -> None:
    wrap_with_lazy_quality(GOOD, "k").assess()

    assert QualityAssessorFactory.lazy().cache_stats().size == 1
    assert assess_if_needed(GOOD, lambda d: False) is None
    assert assess_if_needed(GOOD, lambda d: True).completeness == 1.0
    assert get_quick_score({}) == 0.5


def test_normalize_record_uses_updated() -> None:
    record = normalize_record({"title": "x", "updated": "2025-01-01T00:00:00Z"})

    assert record["timestamp"] == datetime(2025, 1, 1, tzinfo=timezone.utc).timestamp() * 1000
    assert normalize_record({"timestamp": 5, "updated": "2025-01-01"})["timestamp"] == 5


def test_load_records_from_jsonl(tmp_path) -> None:
    path = tmp_path / "ticks.jsonl"
    path.write_text(json.dumps(GOOD) + "\n\n[1, 2]\n" + json.dumps(BAD) + "\n", encoding="utf-8")

    records = load_records(path)

    assert [key for key, _ in records] == ["ticks.jsonl#0", "ticks.jsonl#2"]
    assert records[0][1]["symbol"] == "AAPL"


def test_load_records_from_json_object(tmp_path) -> None:
    path = tmp_path / "one.json"
    path.write_text(json.dumps(GOOD), encoding="utf-8")

    assert load_records(path) == [("one.json#0", GOOD)]


def test_note_records(settings, write_note) -> None:
    write_note("a.md", "---\ntitle: A\nupdated: 2025-01-01T00:00:00Z\n---\n# A\n")
    write_note("b.md", "# no frontmatter\n")

    records = note_records(settings)

    assert [key for key, _ in records] == ["a.md"]
    assert records[0][1]["timestamp"] == datetime(2025, 1, 1, tzinfo=timezone.utc).timestamp() * 1000


def test_numeric_string_price_is_accurate_but_not_valid() -> None:
    assessor = LazyQualityAssessor(clock=_clock)

    assert assessor.assess_accuracy({"price": "45000", "size": " 12 "}) == pytest.approx(0.8)
    assert assessor.assess_accuracy({"price": "-3"}) == pytest.approx(0.5)
    assert assessor.assess_accuracy({"price": "cheap", "size": "inf"}) == pytest.approx(0.3)
    assert assessor.assess_validity({"price": "45000"}) == pytest.approx(0.4)
