"""Tests for domain port interfaces (ABC contracts).

Every port must be an ABC that cannot be instantiated directly.
"""

from __future__ import annotations

from abc import ABC

import pytest

from domain.ports import CachePort, StorePort


class TestStorePort:
    def test_is_abstract(self):
        assert issubclass(StorePort, ABC)

    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            StorePort()

    def test_abstract_methods(self):
        expected = {"select", "get", "insert", "update", "delete", "transaction"}
        assert StorePort.__abstractmethods__ == expected

    def test_not_transactional_by_default(self):
        assert StorePort.supports_transactions is False


class TestCachePort:
    def test_is_abstract(self):
        assert issubclass(CachePort, ABC)

    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            CachePort()

    def test_abstract_methods(self):
        assert CachePort.__abstractmethods__ == {"get", "set", "invalidate"}


class TestAdaptersImplementPorts:
    def test_memory_store(self):
        from stockflow.adapters.outbound.memory_store import InMemoryStore
        assert isinstance(InMemoryStore(), StorePort)

    def test_cache_adapters(self):
        from stockflow.adapters.outbound.redis_cache import InMemoryCacheAdapter, RedisCacheAdapter
        assert isinstance(RedisCacheAdapter(), CachePort)
        assert isinstance(InMemoryCacheAdapter(), CachePort)
