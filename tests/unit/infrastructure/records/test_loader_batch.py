"""Tests for RecordLoader.load_batch (ordering, duplicates, placeholders)."""

import json
import logging
import threading
import time

import pytest

from record_hub.infrastructure.records import (
    BackendFailureError,
    FallbackLoaderRegistry,
    RecordLoader,
    RecordLoaderConfig,
    ResolutionCancelledError,
    ResolutionContext,
    ResolutionTimeoutError,
)
from tests.fixtures.records import (
    FakeFallbackLoader,
    FakeSearchService,
    make_cache,
    make_record,
)


@pytest.mark.unit
def test_cache_backend_and_placeholder_in_requested_order():
    cache = make_cache(
        primary=["solr"], records=[make_record("1", source="solr", title="cached")]
    )
    search_service = FakeSearchService([make_record("2", source="solr")])
    loader = RecordLoader(search_service, record_cache=cache)

    records = loader.load_batch(["solr|1", "solr|2", "solr|3"])

    assert [r.unique_id() for r in records] == ["1", "2", "3"]
    assert records[0].get_field("title") == "cached"
    assert not records[1].is_missing
    assert records[2].is_missing
    assert search_service.requested_ids("solr") == ["2", "3"]


@pytest.mark.unit
def test_result_matches_input_length_and_order_across_sources(search_service, loader):
    for record_id in ("a", "b"):
        search_service.add(make_record(record_id, source="Solr"))
    search_service.add(make_record("x", source="Summon"))

    requests = ["Summon|x", "Solr|b", {"id": "nope", "source": "EDS"}, "Solr|a"]
    records = loader.load_batch(requests)

    assert len(records) == len(requests)
    assert [(r.source_identifier(), r.unique_id()) for r in records] == [
        ("Summon", "x"),
        ("Solr", "b"),
        ("EDS", "nope"),
        ("Solr", "a"),
    ]
    assert [r.is_missing for r in records] == [False, False, True, False]


@pytest.mark.unit
def test_empty_source_prefix_is_looked_up_under_default_source(search_service, loader):
    search_service.add(make_record("5", source="Solr"))

    records = loader.load_batch(["|5", {"id": "5", "source": ""}])

    assert [(r.source_identifier(), r.is_missing) for r in records] == [
        ("Solr", False),
        ("Solr", False),
    ]
    assert [source for source, _ in search_service.batch_calls] == ["Solr"]


@pytest.mark.unit
def test_placeholder_carries_extra_fields(loader):
    records = loader.load_batch(
        [{"id": "123", "source": "solr", "extra_fields": {"title": "X"}}]
    )

    placeholder = records[0]
    assert placeholder.is_missing
    assert placeholder.unique_id() == "123"
    assert placeholder.source_identifier() == "solr"
    assert placeholder.get_field("title") == "X"


@pytest.mark.unit
def test_duplicate_requests_get_independent_records(search_service, loader):
    search_service.add(make_record("1", title="Original"))

    records = loader.load_batch(["Solr|1", "Solr|2", "Solr|1"])

    assert records[0].unique_id() == records[2].unique_id() == "1"
    assert records[0] is not records[2]
    records[0].raw_data["title"] = "Changed"
    assert records[2].get_field("title") == "Original"
    assert search_service.requested_ids("Solr") == ["1", "2"]


@pytest.mark.unit
def test_duplicate_unresolved_requests_get_two_placeholders(loader):
    records = loader.load_batch(["Solr|9", "Solr|9"])

    assert all(r.is_missing for r in records)
    assert records[0] is not records[1]


@pytest.mark.unit
def test_fallback_rename_satisfies_original_position(search_service, fallback_registry):
    renamed = make_record("new-7", source="Summon", previous_id="old-7")
    fallback_registry.register("Summon", FakeFallbackLoader({"old-7": renamed}))
    loader = RecordLoader(search_service, fallback_loaders=fallback_registry)

    records = loader.load_batch(["Summon|old-7"])

    assert records[0] is renamed
    assert records[0].unique_id() == "new-7"


@pytest.mark.unit
def test_duplicate_copies_stay_within_the_claimed_request_key():
    cache = make_cache(
        fallback=["Solr"], records=[make_record("O", source="Solr", title="cached")]
    )
    search_service = FakeSearchService(
        [make_record("N", source="Solr", previous_id="O")]
    )
    loader = RecordLoader(search_service, record_cache=cache)

    result = loader.resolve_batch(["Solr|N", "Solr|O", "Solr|N"])

    assert [r.unique_id() for r in result.records] == ["N", "O", "N"]
    assert result.records[1].get_field("title") == "cached"
    assert result.statistics.duplicates_filled == 1
    assert result.statistics.dropped_records == 0


@pytest.mark.unit
def test_unclaimable_fallback_record_is_dropped_and_logged(caplog, search_service):
    caplog.set_level(logging.WARNING)
    stray = make_record("other", source="Summon", previous_id="elsewhere")

    class StrayLoader:
        def load(self, ids):
            return [stray]

    loader = RecordLoader(
        search_service, fallback_loaders=FallbackLoaderRegistry({"Summon": StrayLoader()})
    )

    result = loader.resolve_batch(["Summon|1"])

    assert result.records[0].is_missing
    assert result.statistics.dropped_records == 1
    events = [json.loads(r.message) for r in caplog.records]
    assert any(
        e["event"] == "record_loader.position_claim_failed" and e["record_id"] == "other"
        for e in events
    )


@pytest.mark.unit
def test_tolerant_batch_never_raises_on_backend_failure(search_service, loader):
    search_service.fail_for("Solr")
    search_service.add(make_record("s1", source="Summon"))

    result = loader.resolve_batch(
        ["Solr|1", "Summon|s1", "Solr|2"], tolerate_backend_exceptions=True
    )

    assert [r.is_missing for r in result.records] == [True, False, True]
    assert result.statistics.backend_failures == ["Solr"]
    assert result.statistics.placeholders == 2


@pytest.mark.unit
def test_intolerant_batch_aborts_on_backend_failure(search_service, loader):
    search_service.fail_for("Summon")

    with pytest.raises(BackendFailureError) as exc_info:
        loader.load_batch(["Summon|1", "Solr|2"], tolerate_backend_exceptions=False)

    assert exc_info.value.source == "Summon"
    # Sources after the failing one are never queried
    assert search_service.requested_ids("Solr") == []


@pytest.mark.unit
def test_tolerance_defaults_to_config(search_service):
    search_service.fail_for("Solr")
    loader = RecordLoader(
        search_service, config=RecordLoaderConfig(tolerate_backend_exceptions=True)
    )

    assert loader.load_batch(["Solr|1"])[0].is_missing


@pytest.mark.unit
def test_empty_ids_become_placeholders_without_lookup(search_service, loader):
    records = loader.load_batch([{"id": "", "source": "Solr", "extra_fields": {"t": 1}}])

    assert records[0].is_missing
    assert records[0].get_field("t") == 1
    assert search_service.batch_calls == []


@pytest.mark.unit
def test_empty_batch_returns_empty_list(loader):
    assert loader.load_batch([]) == []


@pytest.mark.unit
def test_statistics_count_hits_by_tier(search_service, fallback_registry):
    cache = make_cache(primary=["Solr"], records=[make_record("1")])
    search_service.add(make_record("2"))
    fallback_registry.register("Solr", FakeFallbackLoader({"3": make_record("3")}))
    loader = RecordLoader(
        search_service, record_cache=cache, fallback_loaders=fallback_registry
    )

    stats = loader.resolve_batch(["Solr|1", "Solr|2", "Solr|3", "Solr|4", "Solr|1"]).statistics

    assert stats.total_requested == 5
    assert stats.distinct_lookups == 4
    assert stats.hits_by_tier == {
        "cache_primary": 1,
        "backend": 1,
        "fallback": 1,
        "cache_fallback": 0,
    }
    assert stats.duplicates_filled == 1
    assert stats.placeholders == 1
    assert stats.resolved == 4
    assert stats.to_dict()["sources"] == ["Solr"]


@pytest.mark.unit
def test_batch_complete_is_logged(caplog, loader):
    caplog.set_level(logging.INFO)

    loader.load_batch(["Solr|1"])

    events = [json.loads(r.message) for r in caplog.records]
    complete = next(e for e in events if e["event"] == "record_loader.batch_complete")
    assert complete["total_requested"] == 1
    assert complete["placeholders"] == 1


class SlowSearchService(FakeSearchService):
    """Backend that sleeps before answering, to observe concurrent sources."""

    def __init__(self, records=(), delay: float = 0.0):
        super().__init__(records)
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._counter_lock = threading.Lock()

    def retrieve_batch(self, source, ids):
        with self._counter_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            return super().retrieve_batch(source, ids)
        finally:
            with self._counter_lock:
                self.active -= 1


@pytest.mark.unit
def test_concurrent_sources_keep_requested_order():
    search_service = SlowSearchService(
        [make_record("1", source="A"), make_record("2", source="B"), make_record("3", source="C")],
        delay=0.05,
    )
    loader = RecordLoader(search_service, config=RecordLoaderConfig(max_workers=3))

    records = loader.load_batch(["C|3", "A|1", "B|2", "A|missing"])

    assert [(r.source_identifier(), r.unique_id()) for r in records] == [
        ("C", "3"),
        ("A", "1"),
        ("B", "2"),
        ("A", "missing"),
    ]
    assert records[3].is_missing
    assert search_service.max_active > 1


@pytest.mark.unit
def test_concurrent_failure_propagates():
    search_service = SlowSearchService([make_record("1", source="A")])
    search_service.fail_for("B")
    loader = RecordLoader(search_service, config=RecordLoaderConfig(max_workers=2))

    with pytest.raises(BackendFailureError) as exc_info:
        loader.load_batch(["A|1", "B|2"])

    assert exc_info.value.source == "B"


@pytest.mark.unit
def test_concurrent_timeout_raises_with_pending_sources():
    search_service = SlowSearchService(delay=0.5)
    loader = RecordLoader(
        search_service, config=RecordLoaderConfig(max_workers=2, timeout_seconds=0.05)
    )

    with pytest.raises(ResolutionTimeoutError) as exc_info:
        loader.load_batch(["A|1", "B|2"])

    assert sorted(exc_info.value.pending_sources) == ["A", "B"]


@pytest.mark.unit
def test_sequential_deadline_is_checked_between_sources():
    search_service = SlowSearchService(delay=0.1)
    loader = RecordLoader(search_service)

    with pytest.raises(ResolutionTimeoutError):
        loader.load_batch(["A|1", "B|2"], context=ResolutionContext(timeout=0.05))

    assert [source for source, _ in search_service.batch_calls] == ["A"]


@pytest.mark.unit
def test_cancelled_context_aborts_batch(loader, search_service):
    context = ResolutionContext()
    context.cancel()

    with pytest.raises(ResolutionCancelledError):
        loader.load_batch(["Solr|1"], context=context)
    assert search_service.batch_calls == []
