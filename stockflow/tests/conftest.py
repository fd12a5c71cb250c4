from datetime import datetime, timedelta, timezone

import pytest

from stockflow.adapters.outbound.memory_store import InMemoryStore
from stockflow.adapters.outbound.redis_cache import InMemoryCacheAdapter
from stockflow.app import build_services
from stockflow.config import Settings


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def snapshots():
    return InMemoryCacheAdapter()


@pytest.fixture
def app(store, snapshots, clock):
    return build_services(Settings(), store, snapshots, clock=clock)


@pytest.fixture
def loose_app(clock):
    """Services over a store without transactions (writes are compensated)."""
    return build_services(Settings(), InMemoryStore(transactional=False, clock=clock),
                          InMemoryCacheAdapter(), clock=clock)
