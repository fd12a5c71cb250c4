"""End-to-end tests for goods receipts: stock projection and PO reconciliation."""

from decimal import Decimal

import pytest

from domain.errors import PartialWriteError, RemoteWriteError, ValidationError
from domain.models import (
    Direction,
    GoodsReceiptItem,
    GoodsReceiptStatus,
    LineItem,
    PurchaseOrderStatus,
)
from stockflow.data.collections import (
    GOODS_RECEIPT_ITEMS,
    GOODS_RECEIPTS,
    INVENTORY_ITEMS,
    PURCHASE_ORDERS,
    TRANSACTIONS,
)
from stockflow.data.mutations import is_local_id

D = Decimal


@pytest.fixture
def setup(app):
    supplier = app.suppliers.add_supplier("Steelworks")
    rod = app.inventory.add_item("Rod", current_stock=25, unit_price=1000)
    sheet = app.inventory.add_item("Sheet", current_stock=0, unit_price=50)
    order = app.purchase_orders.add_purchase_order(
        supplier.id,
        [
            LineItem(name="Rod", item_id=rod.id, quantity=D("40"), unit_price=D("1200")),
            LineItem(name="Sheet", item_id=sheet.id, quantity=D("5"), unit_price=D("50")),
        ],
        status=PurchaseOrderStatus.SENT,
    )
    return supplier, rod, sheet, order


def _rod_line(rod, qty="30"):
    return GoodsReceiptItem(name="Rod", item_id=rod.id, received_quantity=D(qty),
                            unit_price=D("1200"))


class TestStockProjection:
    def test_receipt_books_stock_and_ledger(self, app, setup):
        supplier, rod, _, _ = setup
        receipt = app.goods_receipts.add_goods_receipt(supplier.id, [_rod_line(rod)])
        assert receipt.number == "GR-20240501-0001"
        assert not is_local_id(receipt.id)
        assert app.inventory.get(rod.id).current_stock == D("55")
        assert app.store.get(INVENTORY_ITEMS, rod.id)["current_stock"] == D("55")

        (entry,) = app.cache.transactions
        assert not is_local_id(entry.id)
        assert entry.item_id == rod.id
        assert entry.direction is Direction.IN
        assert entry.quantity == D("30")
        assert entry.total_value == D("36000")
        assert entry.reference == receipt.number

    def test_unknown_item_line_is_kept_without_stock_effect(self, app, setup):
        supplier, rod, _, _ = setup
        ghost = GoodsReceiptItem(name="Old part", item_id="deleted-item",
                                 received_quantity=D("3"), unit_price=D("10"))
        free = GoodsReceiptItem(name="Loading", received_quantity=D("1"), unit_price=D("350"))
        receipt = app.goods_receipts.add_goods_receipt(supplier.id, [ghost, free])
        assert [line.name for line in receipt.lines] == ["Old part", "Loading"]
        assert receipt.subtotal == D("380.00")
        assert app.cache.transactions == []
        assert app.inventory.get(rod.id).current_stock == D("25")
        assert len(app.store.select(GOODS_RECEIPT_ITEMS)) == 2

    def test_stock_failure_rolls_everything_back(self, app, setup):
        supplier, rod, _, _ = setup
        app.store.fail_on("update", INVENTORY_ITEMS)
        with pytest.raises(RemoteWriteError):
            app.goods_receipts.add_goods_receipt(supplier.id, [_rod_line(rod)])
        assert app.goods_receipts.list() == []
        assert app.cache.transactions == []
        assert app.inventory.get(rod.id).current_stock == D("25")
        assert app.store.select(GOODS_RECEIPTS) == []
        assert app.store.get(INVENTORY_ITEMS, rod.id)["current_stock"] == D("25")

    def test_compensated_without_transactions(self, loose_app):
        supplier = loose_app.suppliers.add_supplier("Steelworks")
        rod = loose_app.inventory.add_item("Rod", current_stock=25)
        loose_app.store.fail_on("insert", TRANSACTIONS)
        with pytest.raises(RemoteWriteError) as exc:
            loose_app.goods_receipts.add_goods_receipt(supplier.id, [_rod_line(rod)])
        assert not isinstance(exc.value, PartialWriteError)
        assert loose_app.store.select(GOODS_RECEIPTS) == []
        assert loose_app.store.select(GOODS_RECEIPT_ITEMS) == []
        assert loose_app.store.get(INVENTORY_ITEMS, rod.id)["current_stock"] == D("25")

    def test_partial_write_reported(self, loose_app):
        supplier = loose_app.suppliers.add_supplier("Steelworks")
        rod = loose_app.inventory.add_item("Rod", current_stock=25)
        loose_app.store.fail_on("insert", TRANSACTIONS)
        loose_app.store.fail_on("delete", GOODS_RECEIPTS)
        with pytest.raises(PartialWriteError) as exc:
            loose_app.goods_receipts.add_goods_receipt(supplier.id, [_rod_line(rod)])
        assert any(step.startswith("delete goods_receipts/") for step in exc.value.failed_steps)
        assert loose_app.goods_receipts.list() == []
        assert loose_app.inventory.get(rod.id).current_stock == D("25")


class TestPurchaseOrderReconciliation:
    def test_partial_then_received(self, app, setup):
        supplier, rod, sheet, order = setup
        app.goods_receipts.add_goods_receipt(
            supplier.id, [_rod_line(rod, "30")], purchase_order_id=order.id,
            status=GoodsReceiptStatus.ACCEPTED,
        )
        assert app.purchase_orders.get(order.id).status is PurchaseOrderStatus.PARTIAL
        assert app.store.get(PURCHASE_ORDERS, order.id)["status"] == "PARTIAL"

        app.goods_receipts.add_goods_receipt(
            supplier.id,
            [
                _rod_line(rod, "10"),
                GoodsReceiptItem(name="Sheet", item_id=sheet.id, received_quantity=D("5"),
                                 unit_price=D("50")),
            ],
            purchase_order_id=order.id,
            status="accepted",
        )
        assert app.purchase_orders.get(order.id).status is PurchaseOrderStatus.RECEIVED

    def test_unaccepted_receipt_leaves_order_alone(self, app, setup):
        supplier, rod, _, order = setup
        receipt = app.goods_receipts.add_goods_receipt(
            supplier.id, [_rod_line(rod)], purchase_order_id=order.id,
        )
        assert app.purchase_orders.get(order.id).status is PurchaseOrderStatus.SENT

        app.goods_receipts.update_goods_receipt(receipt.id, status="ACCEPTED")
        assert app.goods_receipts.get(receipt.id).status is GoodsReceiptStatus.ACCEPTED
        assert app.purchase_orders.get(order.id).status is PurchaseOrderStatus.PARTIAL

    def test_other_orders_untouched(self, app, setup):
        supplier, rod, sheet, order = setup
        other = app.purchase_orders.add_purchase_order(
            supplier.id, [LineItem(name="Rod", item_id=rod.id, quantity=D("1"),
                                   unit_price=D("1"))],
            status=PurchaseOrderStatus.SENT,
        )
        app.goods_receipts.add_goods_receipt(
            supplier.id, [_rod_line(rod)], purchase_order_id=order.id,
            status=GoodsReceiptStatus.ACCEPTED,
        )
        assert app.purchase_orders.get(other.id).status is PurchaseOrderStatus.SENT


class TestEditAndDelete:
    def test_only_status_and_notes_editable(self, app, setup):
        supplier, rod, _, _ = setup
        receipt = app.goods_receipts.add_goods_receipt(supplier.id, [_rod_line(rod)])
        with pytest.raises(ValidationError) as exc:
            app.goods_receipts.update_goods_receipt(receipt.id, lines=[])
        assert exc.value.field == "lines"
        updated = app.goods_receipts.update_goods_receipt(receipt.id, notes="Two bars bent")
        assert updated.notes == "Two bars bent"
        assert app.inventory.get(rod.id).current_stock == D("55")

    def test_delete_reverses_stock_and_order(self, app, setup):
        supplier, rod, _, order = setup
        receipt = app.goods_receipts.add_goods_receipt(
            supplier.id, [_rod_line(rod)], purchase_order_id=order.id,
            status=GoodsReceiptStatus.ACCEPTED,
        )
        app.goods_receipts.remove_goods_receipt(receipt.id)

        assert app.goods_receipts.list() == []
        assert app.inventory.get(rod.id).current_stock == D("25")
        assert app.store.get(INVENTORY_ITEMS, rod.id)["current_stock"] == D("25")
        directions = sorted(e.direction.value for e in app.cache.transactions)
        assert directions == ["IN", "OUT"]
        assert all(not is_local_id(e.id) for e in app.cache.transactions)
        assert app.purchase_orders.get(order.id).status is PurchaseOrderStatus.SENT

    def test_delete_without_reversal(self, app, setup):
        supplier, rod, _, _ = setup
        receipt = app.goods_receipts.add_goods_receipt(supplier.id, [_rod_line(rod)])
        app.goods_receipts.remove_goods_receipt(receipt.id, reverse_stock=False)
        assert app.inventory.get(rod.id).current_stock == D("55")
        assert len(app.cache.transactions) == 1

    def test_refresh_after_receipt_matches_cache(self, app, setup):
        supplier, rod, _, _ = setup
        receipt = app.goods_receipts.add_goods_receipt(supplier.id, [_rod_line(rod)])
        before = app.goods_receipts.get(receipt.id)
        app.cache.refresh()
        after = app.goods_receipts.get(receipt.id)
        assert after.total == before.total
        assert [line.id for line in after.lines] == [line.id for line in before.lines]
        assert app.inventory.get(rod.id).current_stock == D("55")

    def test_refresh_keeps_ledger_in_line_order(self, app, setup):
        supplier, rod, sheet, _ = setup
        app.goods_receipts.add_goods_receipt(
            supplier.id,
            [
                _rod_line(rod, "10"),
                GoodsReceiptItem(name="Sheet", item_id=sheet.id, received_quantity=D("4"),
                                 unit_price=D("50")),
            ],
        )
        before = [(e.id, e.item_name) for e in app.cache.transactions]
        assert [name for _, name in before] == ["Rod", "Sheet"]
        app.cache.refresh()
        assert [(e.id, e.item_name) for e in app.cache.transactions] == before

    def test_refresh_keeps_reversal_in_line_order(self, app, setup, clock):
        supplier, rod, sheet, _ = setup
        receipt = app.goods_receipts.add_goods_receipt(
            supplier.id,
            [
                GoodsReceiptItem(name="Sheet", item_id=sheet.id, received_quantity=D("4"),
                                 unit_price=D("50")),
                _rod_line(rod, "10"),
            ],
        )
        clock.advance(minutes=5)
        app.goods_receipts.remove_goods_receipt(receipt.id)
        before = [(e.item_name, e.direction.value) for e in app.cache.transactions]
        assert before == [("Sheet", "OUT"), ("Rod", "OUT"), ("Sheet", "IN"), ("Rod", "IN")]
        app.cache.refresh()
        assert [(e.item_name, e.direction.value) for e in app.cache.transactions] == before
