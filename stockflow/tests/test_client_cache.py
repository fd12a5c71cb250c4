"""Tests for the client cache: refresh, dispatch, snapshots."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import redis

from domain.errors import RefreshError
from domain.models import InventoryItem
from stockflow.adapters.outbound.memory_store import InMemoryStore
from stockflow.adapters.outbound.redis_cache import InMemoryCacheAdapter, RedisCacheAdapter
from stockflow.data.client_cache import ClientCache
from stockflow.data.collections import (
    GOODS_RECEIPT_ITEMS,
    GOODS_RECEIPTS,
    INVENTORY_ITEMS,
    SUPPLIERS,
    TRANSACTIONS,
)
from stockflow.data.patches import Put


@pytest.fixture
def seeded(store, clock):
    store.insert(SUPPLIERS, {"id": "s1", "name": "Steelworks", "created_at": clock()})
    store.insert(INVENTORY_ITEMS, {"id": "i1", "name": "Rod", "current_stock": Decimal("25"),
                                   "unit_price": Decimal("10"), "created_at": clock()})
    clock.advance(minutes=1)
    store.insert(INVENTORY_ITEMS, {"id": "i2", "name": "Sheet", "created_at": clock()})
    store.insert(GOODS_RECEIPTS, {"id": "g1", "gr_number": "GR-1", "supplier_id": "s1",
                                  "status": "ACCEPTED", "total": Decimal("300"),
                                  "created_at": clock()})
    store.insert(GOODS_RECEIPT_ITEMS, {"goods_receipt_id": "g1", "position": 0,
                                       "item_id": "i1", "item_name": "Rod",
                                       "quantity_received": Decimal("30"),
                                       "unit_price": Decimal("10")})
    return store


@pytest.fixture
def cache(seeded, clock):
    return ClientCache(seeded, snapshot_cache=InMemoryCacheAdapter(), clock=clock)


class TestRefresh:
    def test_loads_every_kind_newest_first(self, cache):
        cache.refresh()
        assert [i.id for i in cache.inventory_items] == ["i2", "i1"]
        assert [s.name for s in cache.suppliers] == ["Steelworks"]

    def test_embeds_supplier_and_items_on_documents(self, cache):
        cache.refresh()
        (receipt,) = cache.goods_receipts
        assert receipt.supplier.name == "Steelworks"
        assert receipt.lines[0].item.name == "Rod"
        assert receipt.lines[0].received_quantity == Decimal("30")

    def test_failure_keeps_previous_state(self, cache, seeded):
        cache.refresh()
        before = cache.state
        seeded.fail_on("select", TRANSACTIONS)
        with pytest.raises(RefreshError) as exc:
            cache.refresh()
        assert exc.value.collection == TRANSACTIONS
        assert cache.state is before
        assert cache.loading is False

    def test_records_refresh_time(self, cache, clock):
        assert cache.last_refreshed is None
        cache.refresh()
        assert cache.last_refreshed == clock()


class TestDispatch:
    def test_returns_inverse_and_notifies(self, cache):
        seen = []
        unsubscribe = cache.subscribe(seen.append)
        inverse = cache.dispatch(Put(INVENTORY_ITEMS, InventoryItem(id="x", name="X")))
        assert cache.get(INVENTORY_ITEMS, "x").name == "X"
        assert len(seen) == 1

        unsubscribe()
        cache.dispatch(inverse)
        assert cache.get(INVENTORY_ITEMS, "x") is None
        assert len(seen) == 1

    def test_accessors_return_copies(self, cache):
        cache.refresh()
        items = cache.inventory_items
        items.clear()
        assert len(cache.inventory_items) == 2


class TestSnapshots:
    def test_refresh_saves_and_cold_start_restores(self, seeded, clock):
        snapshots = InMemoryCacheAdapter()
        ClientCache(seeded, snapshot_cache=snapshots, clock=clock).refresh()

        cold = ClientCache(InMemoryStore(), snapshot_cache=snapshots, clock=clock)
        assert cold.restore_snapshot() is True
        assert [i.id for i in cold.inventory_items] == ["i2", "i1"]
        assert cold.goods_receipts[0].lines[0].item_id == "i1"

    def test_no_snapshot(self, seeded):
        assert ClientCache(seeded).restore_snapshot() is False
        assert ClientCache(seeded, snapshot_cache=InMemoryCacheAdapter()).restore_snapshot() is False

    def test_refresh_survives_unreachable_snapshot_cache(self, seeded, clock):
        client = MagicMock()
        client.setex.side_effect = redis.ConnectionError("reset by peer")
        cache = ClientCache(seeded, snapshot_cache=RedisCacheAdapter(client), clock=clock)
        cache.refresh()
        assert [i.id for i in cache.inventory_items] == ["i2", "i1"]
        assert cache.loading is False
        client.setex.assert_called_once()
