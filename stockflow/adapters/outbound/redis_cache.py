"""Redis cache adapter implementing CachePort.

Holds client-cache snapshots between sessions. Falls back to no-op when
Redis is unavailable; a failed call is logged and skipped.
"""

from __future__ import annotations

import json
import logging

import redis

from domain.ports import CachePort

logger = logging.getLogger(__name__)


class RedisCacheAdapter(CachePort):
    """CachePort implementation backed by Redis with JSON serialization.

    Decimals, dates and datetimes are written as strings; readers parse
    them back. When *redis_client* is ``None`` every operation is a
    silent no-op.
    """

    PREFIX = "stockflow:"

    def __init__(self, redis_client=None, default_ttl: int = 3600):
        self._redis = redis_client
        self._default_ttl = default_ttl

    @classmethod
    def connect(cls, url: str | None, default_ttl: int = 3600) -> "RedisCacheAdapter":
        """Connect to *url*; an unreachable server yields a no-op adapter."""
        if not url:
            return cls(None, default_ttl)
        try:
            client = redis.from_url(url)
            client.ping()
        except redis.RedisError as exc:
            logger.warning("Redis unavailable at %s, snapshots disabled: %s", url, exc)
            return cls(None, default_ttl)
        return cls(client, default_ttl)

    @property
    def available(self) -> bool:
        return self._redis is not None

    def _key(self, key: str) -> str:
        return f"{self.PREFIX}{key}"

    # ── CachePort interface ──────────────────────────────────────────────

    def get(self, key: str) -> object | None:
        if not self._redis:
            return None
        try:
            raw = self._redis.get(self._key(key))
        except redis.RedisError as exc:
            logger.warning("Redis read of %s failed: %s", key, exc)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: object, ttl: int | None = None) -> None:
        if not self._redis:
            return
        try:
            self._redis.setex(
                self._key(key), ttl or self._default_ttl, json.dumps(value, default=str)
            )
        except redis.RedisError as exc:
            logger.warning("Redis write of %s failed, snapshot not saved: %s", key, exc)

    def invalidate(self, prefix: str) -> None:
        if not self._redis:
            return
        try:
            for k in self._redis.scan_iter(f"{self._key(prefix)}*"):
                self._redis.delete(k)
        except redis.RedisError as exc:
            logger.warning("Redis invalidation of %s* failed: %s", prefix, exc)


class InMemoryCacheAdapter(CachePort):
    """CachePort implementation using a simple in-memory dict.

    Values are stored as given (no JSON round trip); TTL is ignored.
    """

    def __init__(self):
        self._store: dict[str, object] = {}

    def get(self, key: str) -> object | None:
        return self._store.get(key)

    def set(self, key: str, value: object, ttl: int | None = None) -> None:
        self._store[key] = value

    def invalidate(self, prefix: str) -> None:
        for k in [k for k in self._store if k.startswith(prefix)]:
            del self._store[k]
