"""Pytest configuration and shared fixtures for the test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from kvindex.backends.in_memory import InMemoryBackend
from kvindex.config import StoreConfig
from kvindex.data_layer import SiteDataLayer
from kvindex.identifiers import IdentifierGenerator, to_epoch_ms
from kvindex.observability.logging import setup_logging
from kvindex.record_store import RecordStore

# Configure pytest-asyncio to use auto mode
pytest_plugins = ["pytest_asyncio"]


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> None:
    """Route structlog through stdlib logging so events stay off stdout."""
    setup_logging(log_level="WARNING", json_logs=True)


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def millis(self) -> int:
        return to_epoch_ms(self.now)


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at 2026-10-19 12:00 UTC until advanced."""
    return FakeClock(datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def backend() -> InMemoryBackend:
    """Fresh in-memory backend for each test."""
    return InMemoryBackend()


@pytest.fixture
def records(backend: InMemoryBackend, clock: FakeClock) -> RecordStore:
    """Record store whose identifiers follow the fake clock."""
    return RecordStore(backend, IdentifierGenerator(clock=clock.millis))


@pytest.fixture
def layer(backend: InMemoryBackend, clock: FakeClock) -> SiteDataLayer:
    """Site data layer with a small uptime window."""
    config = StoreConfig(backend="memory", uptime_capacity=3, page_list_limit=50)
    return SiteDataLayer(backend, config, clock=clock)
