"""End-to-end tests for inventory items and manual stock movements."""

from decimal import Decimal

import pytest

from domain.errors import NotFoundError, RemoteWriteError, ValidationError
from domain.models import Direction
from stockflow.data.collections import INVENTORY_ITEMS, TRANSACTIONS
from stockflow.data.mutations import is_local_id

D = Decimal


@pytest.fixture
def rod(app):
    return app.inventory.add_item("Rod", unit="m", current_stock=25, min_stock=10,
                                  unit_price="1000", sku="7214")


class TestItems:
    def test_add_item_gets_store_id(self, app, rod):
        assert not is_local_id(rod.id)
        assert app.inventory.list() == [rod]
        assert app.store.get(INVENTORY_ITEMS, rod.id)["hsn_code"] == "7214"

    def test_validation_happens_before_any_write(self, app):
        with pytest.raises(ValidationError):
            app.inventory.add_item("   ")
        with pytest.raises(ValidationError):
            app.inventory.add_item("Rod", unit_price=-1)
        assert app.store.calls == []
        assert app.inventory.list() == []

    def test_update_item(self, app, rod):
        updated = app.inventory.update_item(rod.id, name="Rod 12mm", min_stock="20")
        assert updated.name == "Rod 12mm"
        assert updated.min_stock == D("20")
        assert app.store.get(INVENTORY_ITEMS, rod.id)["reorder_level"] == D("20")

    def test_update_unknown_field(self, app, rod):
        with pytest.raises(ValidationError):
            app.inventory.update_item(rod.id, colour="red")

    def test_update_failure_restores_cache(self, app, rod):
        app.store.fail_on("update", INVENTORY_ITEMS)
        with pytest.raises(RemoteWriteError):
            app.inventory.update_item(rod.id, name="Renamed")
        assert app.inventory.get(rod.id).name == "Rod"

    def test_missing_item(self, app):
        with pytest.raises(NotFoundError):
            app.inventory.update_item("nope", name="x")


class TestTransactItem:
    def test_out_clamps_at_zero(self, app, rod):
        entry = app.inventory.transact_item(rod.id, "out", 40, "Issued to production")
        assert app.inventory.get(rod.id).current_stock == D("0")
        assert app.store.get(INVENTORY_ITEMS, rod.id)["current_stock"] == D("0")
        assert entry.direction is Direction.OUT
        assert entry.quantity == D("40")
        assert not is_local_id(entry.id)
        assert app.cache.transactions == [entry]

    def test_in_uses_override_price(self, app, rod):
        entry = app.inventory.transact_item(rod.id, Direction.IN, 5, "Found in yard",
                                            unit_price="900")
        assert app.inventory.get(rod.id).current_stock == D("30")
        assert entry.total_value == D("4500")

    def test_quantity_must_be_positive(self, app, rod):
        with pytest.raises(ValidationError):
            app.inventory.transact_item(rod.id, "IN", 0, "nothing")

    def test_failure_rolls_back_stock_and_entry(self, app, rod):
        app.store.fail_on("insert", TRANSACTIONS)
        with pytest.raises(RemoteWriteError):
            app.inventory.transact_item(rod.id, "OUT", 5, "Issue")
        assert app.inventory.get(rod.id).current_stock == D("25")
        assert app.cache.transactions == []
        assert app.store.get(INVENTORY_ITEMS, rod.id)["current_stock"] == D("25")

    def test_failure_without_transactions_is_compensated(self, loose_app):
        rod = loose_app.inventory.add_item("Rod", current_stock=25)
        loose_app.store.fail_on("insert", TRANSACTIONS)
        with pytest.raises(RemoteWriteError):
            loose_app.inventory.transact_item(rod.id, "OUT", 5, "Issue")
        assert loose_app.store.get(INVENTORY_ITEMS, rod.id)["current_stock"] == D("25")
        assert loose_app.inventory.get(rod.id).current_stock == D("25")


def test_remove_item_drops_its_ledger(app, rod):
    app.inventory.transact_item(rod.id, "IN", 5, "Top up")
    app.inventory.remove_item(rod.id)
    assert app.inventory.list() == []
    assert app.cache.transactions == []
    assert app.store.select(TRANSACTIONS) == []
