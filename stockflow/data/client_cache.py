"""In-memory client cache over the persistent store.

Holds one normalized collection per entity kind and changes only
through :meth:`ClientCache.dispatch`, whether the change is a full
refresh or an optimistic patch.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from domain.errors import RefreshError, StoreError
from domain.ports import CachePort, StorePort
from stockflow.data.collections import (
    CACHE_KINDS,
    CUSTOMER_ACTIVITIES,
    CUSTOMERS,
    GOODS_RECEIPTS,
    INVENTORY_ITEMS,
    PRODUCTS,
    PROFORMA_INVOICES,
    PURCHASE_ORDERS,
    REFRESH_READS,
    SUPPLIERS,
    TRANSACTIONS,
)
from stockflow.data.mappers import dump_collections, load_collections
from stockflow.data.patches import CacheState, Patch, ReplaceAll

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClientCache:
    """Process-local view of every collection.

    *snapshot_cache* is optional; when given, each successful refresh
    writes the state to it and :meth:`restore_snapshot` can seed a cold
    start from it.
    """

    def __init__(
        self,
        store: StorePort,
        snapshot_cache: CachePort | None = None,
        clock: Callable[[], datetime] | None = None,
        snapshot_key: str = "snapshot",
        snapshot_ttl: int | None = None,
    ):
        self.store = store
        self._snapshot_cache = snapshot_cache
        self._snapshot_key = snapshot_key
        self._snapshot_ttl = snapshot_ttl
        self.clock = clock or _utcnow
        self._state = CacheState()
        self._loading = False
        self._subscribers: list[Callable[[CacheState], None]] = []
        self.last_refreshed: datetime | None = None

    # ── State access ───────────────────────────────────────────────────

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._loading

    def items(self, kind: str) -> list:
        return list(self._state.items(kind))

    def get(self, kind: str, entity_id):
        return self._state.find(kind, entity_id)

    @property
    def inventory_items(self) -> list:
        return self.items(INVENTORY_ITEMS)

    @property
    def suppliers(self) -> list:
        return self.items(SUPPLIERS)

    @property
    def purchase_orders(self) -> list:
        return self.items(PURCHASE_ORDERS)

    @property
    def goods_receipts(self) -> list:
        return self.items(GOODS_RECEIPTS)

    @property
    def proforma_invoices(self) -> list:
        return self.items(PROFORMA_INVOICES)

    @property
    def products(self) -> list:
        return self.items(PRODUCTS)

    @property
    def customers(self) -> list:
        return self.items(CUSTOMERS)

    @property
    def customer_activities(self) -> list:
        return self.items(CUSTOMER_ACTIVITIES)

    @property
    def transactions(self) -> list:
        return self.items(TRANSACTIONS)

    # ── Mutation ───────────────────────────────────────────────────────

    def dispatch(self, patch: Patch) -> Patch:
        """Apply *patch* and return its inverse."""
        self._state, inverse = patch.apply(self._state)
        for callback in list(self._subscribers):
            callback(self._state)
        return inverse

    def subscribe(self, callback: Callable[[CacheState], None]) -> Callable[[], None]:
        """Call *callback* with the new state after every dispatch."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ── Full reload ────────────────────────────────────────────────────

    def refresh(self) -> CacheState:
        """Reload every collection and replace the state in one step.

        A failed read raises ``RefreshError`` and leaves the previous
        contents untouched.
        """
        self._loading = True
        logger.info("Refreshing client cache (%d collections)", len(REFRESH_READS))
        try:
            rows: dict[str, list[dict]] = {}
            for collection in REFRESH_READS:
                try:
                    rows[collection] = self.store.select(
                        collection, order_by="created_at", descending=True
                    )
                except StoreError as exc:
                    logger.error("Refresh failed reading %s: %s", collection, exc)
                    raise RefreshError(collection, exc) from exc

            self.dispatch(ReplaceAll(load_collections(rows)))
            self.last_refreshed = self.clock()
        finally:
            self._loading = False

        logger.info(
            "Client cache refreshed: %s",
            ", ".join(f"{kind}={len(self._state.items(kind))}" for kind in CACHE_KINDS),
        )
        self.save_snapshot()
        return self._state

    # ── Snapshot persistence ───────────────────────────────────────────

    def save_snapshot(self) -> None:
        if self._snapshot_cache is None:
            return
        payload = {
            "saved_at": self.clock().isoformat(),
            "rows": dump_collections(
                {kind: self._state.items(kind) for kind in CACHE_KINDS}
            ),
        }
        self._snapshot_cache.set(self._snapshot_key, payload, self._snapshot_ttl)

    def restore_snapshot(self) -> bool:
        """Seed the state from the last saved snapshot, if there is one."""
        if self._snapshot_cache is None:
            return False
        payload = self._snapshot_cache.get(self._snapshot_key)
        if not payload or "rows" not in payload:
            return False
        self.dispatch(ReplaceAll(load_collections(payload["rows"])))
        logger.info("Client cache restored from snapshot saved at %s", payload.get("saved_at"))
        return True
