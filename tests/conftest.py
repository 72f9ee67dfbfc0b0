"""Pytest configuration and shared record loader fixtures.

.rh_env is loaded FIRST with override=True so test runs never pick up
deployment configuration from the system environment.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

_RH_ENV_FILE = Path(__file__).parent.parent / ".rh_env"
if _RH_ENV_FILE.exists():
    load_dotenv(_RH_ENV_FILE, override=True)

import pytest

from record_hub.config.settings import get_settings
from record_hub.infrastructure.records import (
    FallbackLoaderRegistry,
    RecordFactory,
    RecordLoader,
)
from tests.fixtures.records import FakeSearchService


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Every test starts from freshly loaded settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def search_service() -> FakeSearchService:
    return FakeSearchService()


@pytest.fixture
def fallback_registry() -> FallbackLoaderRegistry:
    return FallbackLoaderRegistry()


@pytest.fixture
def record_factory() -> RecordFactory:
    return RecordFactory()


@pytest.fixture
def loader(search_service, fallback_registry, record_factory) -> RecordLoader:
    """Loader without a record cache."""
    return RecordLoader(
        search_service,
        record_factory=record_factory,
        fallback_loaders=fallback_registry,
    )
