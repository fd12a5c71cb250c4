"""Optimistic mutation pipeline.

A mutation applies its cache patch first, then performs the remote
write. If the write fails the inverse patch is dispatched, the touched
entity can be re-read from the store, and the caller gets a
``RemoteWriteError``.

Multi-step writes run inside ``store.transaction()`` when the store
supports it. Otherwise each step is recorded on a :class:`Saga` and
compensated in reverse order.
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from domain.errors import PartialWriteError, RemoteWriteError, ServiceError
from domain.ports import StorePort
from stockflow.data.client_cache import ClientCache
from stockflow.data.collections import OWNED_CHILDREN
from stockflow.data.patches import Patch

logger = logging.getLogger(__name__)

LOCAL_ID_PREFIX = "local-"


def local_id() -> str:
    """Provisional id for an entity the store has not assigned one yet."""
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}"


def is_local_id(entity_id) -> bool:
    return isinstance(entity_id, str) and entity_id.startswith(LOCAL_ID_PREFIX)


class MutationState(Enum):
    PENDING = "PENDING"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"


@dataclass
class Mutation:
    name: str
    state: MutationState = MutationState.PENDING
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error: BaseException | None = None
    failed_compensations: list[str] = field(default_factory=list)


class Saga:
    """Store writes recorded with the action that undoes each one."""

    def __init__(self, store: StorePort):
        self.store = store
        self._compensations: list[tuple[str, Callable[[], Any]]] = []

    def insert(self, collection: str, record: dict) -> dict:
        row = self.store.insert(collection, record)
        self._compensations.append(
            (f"delete {collection}/{row['id']}", lambda: self.store.delete(collection, row["id"]))
        )
        return row

    def insert_many(self, collection: str, records) -> list[dict]:
        return [self.insert(collection, record) for record in records]

    def update(self, collection: str, record_id, changes: dict) -> dict:
        before = self.store.get(collection, record_id) or {}
        restore = {column: before.get(column) for column in changes}
        row = self.store.update(collection, record_id, changes)
        self._compensations.append(
            (
                f"restore {collection}/{record_id}",
                lambda: self.store.update(collection, record_id, restore),
            )
        )
        return row

    def delete(self, collection: str, record_id) -> None:
        """Delete a record; the compensation re-inserts it with its owned children."""
        before = self.store.get(collection, record_id)
        owned = [
            (child, self.store.select(child, filters={fk: record_id}))
            for child, fk in OWNED_CHILDREN.get(collection, [])
        ]
        self.store.delete(collection, record_id)
        if before is None:
            return

        def reinsert():
            self.store.insert(collection, before)
            for child, rows in owned:
                for row in rows:
                    self.store.insert(child, row)

        self._compensations.append((f"reinsert {collection}/{record_id}", reinsert))

    @property
    def steps(self) -> int:
        return len(self._compensations)

    def compensate(self) -> list[str]:
        """Undo recorded steps newest first; return the ones that failed."""
        failed = []
        while self._compensations:
            label, action = self._compensations.pop()
            try:
                action()
            except Exception as exc:
                logger.error("Compensation %r failed: %s", label, exc)
                failed.append(label)
        return failed


class MutationPipeline:
    """Runs mutations against one cache and one store."""

    def __init__(self, cache: ClientCache, store: StorePort, history_size: int = 50):
        self.cache = cache
        self.store = store
        self.history: deque[Mutation] = deque(maxlen=history_size)

    def run(
        self,
        name: str,
        patch: Patch | None,
        remote: Callable[[Saga], Any],
        resync: Callable[[], Patch | None] | None = None,
        on_commit: Callable[[Any], Patch | None] | None = None,
    ):
        """Apply *patch*, then call ``remote(saga)``.

        *on_commit* turns the remote result into a follow-up patch (for
        instance swapping provisional ids for store ids). *resync* is
        called after a rollback and may return a patch that re-reads the
        touched entity from the store.
        """
        mutation = Mutation(name, started_at=self.cache.clock())
        self.history.append(mutation)
        inverse = self.cache.dispatch(patch) if patch is not None else None
        saga = Saga(self.store)

        try:
            if self.store.supports_transactions:
                with self.store.transaction():
                    result = remote(saga)
            else:
                result = remote(saga)
        except Exception as exc:
            if inverse is not None:
                self.cache.dispatch(inverse)
            failed = [] if self.store.supports_transactions else saga.compensate()
            self._resync(name, resync)
            mutation.state = MutationState.ROLLED_BACK
            mutation.error = exc
            mutation.failed_compensations = failed
            mutation.finished_at = self.cache.clock()
            logger.warning("Mutation %s rolled back: %s", name, exc)
            if failed:
                raise PartialWriteError(name, exc, failed) from exc
            raise RemoteWriteError(name, exc) from exc

        if on_commit is not None:
            follow_up = on_commit(result)
            if follow_up is not None:
                self.cache.dispatch(follow_up)
        mutation.state = MutationState.COMMITTED
        mutation.finished_at = self.cache.clock()
        logger.debug("Mutation %s committed (%d store steps)", name, saga.steps)
        return result

    def _resync(self, name: str, resync) -> None:
        if resync is None:
            return
        try:
            follow_up = resync()
        except ServiceError as exc:
            logger.warning("Resync after %s failed: %s", name, exc)
            return
        if follow_up is not None:
            self.cache.dispatch(follow_up)
