"""In-memory StorePort implementation.

Intended for tests and offline use. Records live in plain dicts; ids are
UUID strings assigned on insert. Failures can be injected per operation
and collection to exercise rollback paths.
"""

from __future__ import annotations

import copy
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone

from domain.errors import NotFoundError, StoreError
from domain.ports import StorePort
from stockflow.data.collections import OWNED_CHILDREN, REFRESH_READS


def _sort_key(value):
    return (value is None, value)


class InMemoryStore(StorePort):
    """Dict-backed store.

    With ``transactional=False`` :meth:`transaction` is only a marker and
    a failed unit of work leaves earlier writes in place, like a plain
    REST backend.
    """

    def __init__(self, transactional: bool = True, clock=None):
        self.supports_transactions = transactional
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._data: dict[str, dict[str, dict]] = {name: {} for name in REFRESH_READS}
        self._failures: list[dict] = []
        self._depth = 0
        self.calls: list[tuple[str, str]] = []

    # ── Failure injection ──────────────────────────────────────────────

    def fail_on(self, operation: str, collection: str | None = None,
                after: int = 0, message: str = "injected failure") -> None:
        """Make the (*after* + 1)-th matching call raise ``StoreError``."""
        self._failures.append(
            {"operation": operation, "collection": collection,
             "remaining": after, "message": message}
        )

    def _maybe_fail(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        for failure in self._failures:
            if failure["operation"] != operation:
                continue
            if failure["collection"] not in (None, collection):
                continue
            if failure["remaining"] > 0:
                failure["remaining"] -= 1
                continue
            self._failures.remove(failure)
            raise StoreError(failure["message"], collection, operation)

    # ── Queries ────────────────────────────────────────────────────────

    def select(self, collection, filters=None, order_by=None, descending=False, limit=None):
        self._maybe_fail("select", collection)
        rows = [
            row for row in self._table(collection).values()
            if all(self._matches(row.get(k), v) for k, v in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda r: _sort_key(r.get(order_by)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [dict(row) for row in rows]

    def get(self, collection, record_id):
        self._maybe_fail("get", collection)
        row = self._table(collection).get(record_id)
        return dict(row) if row is not None else None

    # ── Commands ───────────────────────────────────────────────────────

    def insert(self, collection, record):
        self._maybe_fail("insert", collection)
        table = self._table(collection)
        row = dict(record)
        row["id"] = row.get("id") or str(uuid.uuid4())
        if row["id"] in table:
            raise StoreError(f"Duplicate id {row['id']}", collection, "insert")
        row.setdefault("created_at", self._clock())
        table[row["id"]] = row
        return dict(row)

    def update(self, collection, record_id, changes):
        self._maybe_fail("update", collection)
        table = self._table(collection)
        if record_id not in table:
            raise NotFoundError(collection, record_id)
        table[record_id] = {**table[record_id], **changes, "id": record_id}
        return dict(table[record_id])

    def delete(self, collection, record_id):
        self._maybe_fail("delete", collection)
        table = self._table(collection)
        if table.pop(record_id, None) is None:
            return
        for child, fk in OWNED_CHILDREN.get(collection, []):
            child_table = self._table(child)
            for child_id in [cid for cid, row in child_table.items() if row.get(fk) == record_id]:
                del child_table[child_id]

    @contextmanager
    def transaction(self):
        if self._depth or not self.supports_transactions:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        snapshot = copy.deepcopy(self._data)
        self._depth = 1
        try:
            yield self
        except Exception:
            self._data = snapshot
            raise
        finally:
            self._depth = 0

    # ── Internal helpers ───────────────────────────────────────────────

    def _table(self, collection: str) -> dict:
        try:
            return self._data[collection]
        except KeyError:
            raise StoreError(f"Unknown collection: {collection}", collection) from None

    @staticmethod
    def _matches(actual, expected) -> bool:
        if isinstance(expected, (list, tuple, set)):
            return actual in expected
        return actual == expected
