"""Domain ports: abstract interfaces for persistence and infrastructure.

Only stdlib (abc, contextlib) imports allowed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager


# ── Persistence Port ──────────────────────────────────────────────────────


class StorePort(ABC):
    """Generic request/response interface to the remote persistent store.

    Records are plain dicts keyed by column name. ``insert`` returns the
    record with its server-assigned ``id``; ``select`` returns an ordered
    list. Deleting a record also deletes the children it owns.
    """

    supports_transactions: bool = False

    @abstractmethod
    def select(
        self,
        collection: str,
        filters: dict | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]: ...

    @abstractmethod
    def get(self, collection: str, record_id: str) -> dict | None: ...

    @abstractmethod
    def insert(self, collection: str, record: dict) -> dict: ...

    @abstractmethod
    def update(self, collection: str, record_id: str, changes: dict) -> dict: ...

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> None: ...

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Group writes so they commit together or not at all.

        Stores with ``supports_transactions = False`` return a context
        that only delimits the unit of work; callers must compensate.
        """


# ── Infrastructure Ports ──────────────────────────────────────────────────


class CachePort(ABC):
    """Port for key-value caching (Redis, in-memory, etc.)."""

    @abstractmethod
    def get(self, key: str) -> object | None: ...

    @abstractmethod
    def set(self, key: str, value: object, ttl: int = 3600) -> None: ...

    @abstractmethod
    def invalidate(self, prefix: str) -> None: ...
