"""Tests for RecordLoader.load (single record path)."""

import pytest

from record_hub.infrastructure.records import (
    BackendError,
    CachePolicy,
    RecordCache,
    RecordLoader,
    RecordLoaderConfig,
    RecordNotFoundError,
)
from record_hub.infrastructure.settings import CachePolicyConfig
from tests.fixtures.records import FakeSearchService, make_cache, make_record


@pytest.mark.unit
def test_load_returns_backend_record(loader, search_service):
    search_service.add(make_record("42", title="Answer"))

    record = loader.load("42", "Solr")

    assert record.unique_id() == "42"
    assert record.get_field("title") == "Answer"
    assert search_service.retrieve_calls == [("Solr", "42")]


@pytest.mark.unit
def test_load_missing_raises_record_not_found(loader):
    with pytest.raises(RecordNotFoundError) as exc_info:
        loader.load("42", "solr", tolerate_missing=False)

    assert exc_info.value.source == "solr"
    assert exc_info.value.record_id == "42"
    assert str(exc_info.value) == "Record solr:42 does not exist."


@pytest.mark.unit
def test_load_missing_tolerated_returns_placeholder(loader):
    record = loader.load("42", "Solr", tolerate_missing=True)

    assert record.is_missing
    assert record.unique_id() == "42"
    assert record.source_identifier() == "Solr"
    assert record.raw_data == {"id": "42"}


@pytest.mark.unit
@pytest.mark.parametrize("empty_id", ["", None])
def test_load_empty_id_skips_every_tier(search_service, empty_id):
    cache = make_cache(primary=["Solr"])
    loader = RecordLoader(search_service, record_cache=cache)

    record = loader.load(empty_id, "Solr", tolerate_missing=True)

    assert record.is_missing
    assert search_service.retrieve_calls == []
    with pytest.raises(RecordNotFoundError):
        loader.load(empty_id, "Solr")


@pytest.mark.unit
def test_load_cache_primary_hit_short_circuits_backend(search_service):
    search_service.add(make_record("1", title="backend"))
    cache = make_cache(primary=["Solr"], records=[make_record("1", title="cached")])
    loader = RecordLoader(search_service, record_cache=cache)

    record = loader.load("1", "Solr")

    assert record.get_field("title") == "cached"
    assert search_service.retrieve_calls == []


@pytest.mark.unit
def test_load_backend_wins_over_cache_fallback(search_service):
    search_service.add(make_record("1", title="backend"))
    cache = make_cache(fallback=["Solr"], records=[make_record("1", title="cached")])
    loader = RecordLoader(search_service, record_cache=cache)

    assert loader.load("1", "Solr").get_field("title") == "backend"


@pytest.mark.unit
def test_load_cache_fallback_used_when_backend_finds_nothing(search_service):
    cache = make_cache(fallback=["Solr"], records=[make_record("1", title="cached")])
    loader = RecordLoader(search_service, record_cache=cache)

    record = loader.load("1", "Solr")

    assert record.get_field("title") == "cached"
    assert search_service.retrieve_calls == [("Solr", "1")]


@pytest.mark.unit
def test_load_uncached_source_ignores_cache(search_service):
    cache = make_cache(primary=["Summon"], records=[make_record("1")])
    loader = RecordLoader(search_service, record_cache=cache)

    with pytest.raises(RecordNotFoundError):
        loader.load("1", "Solr")


@pytest.mark.unit
def test_load_backend_error_propagates_even_when_tolerating_missing(search_service):
    search_service.fail_for("Solr")
    loader = RecordLoader(search_service)

    with pytest.raises(BackendError):
        loader.load("1", "Solr", tolerate_missing=True)


@pytest.mark.unit
def test_load_uses_configured_default_source():
    search_service = FakeSearchService([make_record("1", source="Summon")])
    loader = RecordLoader(
        search_service, config=RecordLoaderConfig(default_source="Summon")
    )

    assert loader.load("1").source_identifier() == "Summon"


@pytest.mark.unit
def test_set_cache_context_forwards_to_cache(search_service):
    config = CachePolicyConfig(
        cachable_sources=["Solr"],
        contexts={
            "Default": {"operating_mode": "fallback"},
            "Favorite": {"operating_mode": "primary"},
        },
    )
    cache = RecordCache(CachePolicy(config))
    loader = RecordLoader(search_service, record_cache=cache)

    loader.set_cache_context("Favorite")

    assert cache.policy.context == "Favorite"
    assert cache.is_primary("Solr")


@pytest.mark.unit
def test_set_cache_context_without_cache_is_noop(loader):
    loader.set_cache_context("Favorite")
    assert loader.record_cache is None
