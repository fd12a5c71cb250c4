"""Tests for cross-document reconciliation rules."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from domain.models import (
    BuyerInfo,
    Customer,
    CustomerSource,
    GoodsReceipt,
    GoodsReceiptItem,
    GoodsReceiptStatus,
    LineItem,
    ProformaInvoice,
    PurchaseOrder,
    PurchaseOrderStatus,
)
from domain.reconciliation import (
    derive_purchase_order_status,
    find_customer_by_email,
    reconcile_purchase_orders,
    sync_customer_from_proforma,
)

D = Decimal
NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


@pytest.fixture
def order():
    return PurchaseOrder(
        id="po1",
        number="PO-1",
        status=PurchaseOrderStatus.SENT,
        lines=[
            LineItem(name="A", item_id="a", quantity=D("10"), unit_price=D("1")),
            LineItem(name="B", item_id="b", quantity=D("5"), unit_price=D("1")),
        ],
    )


def _receipt(qty_a, qty_b="0", status=GoodsReceiptStatus.ACCEPTED, order_id="po1"):
    return GoodsReceipt(
        id=f"gr-{qty_a}-{qty_b}",
        number="GR",
        purchase_order_id=order_id,
        status=status,
        lines=[
            GoodsReceiptItem(name="A", item_id="a", received_quantity=D(qty_a), unit_price=D("1")),
            GoodsReceiptItem(name="B", item_id="b", received_quantity=D(qty_b), unit_price=D("1")),
        ],
    )


class TestDerivePurchaseOrderStatus:
    def test_fully_received(self, order):
        assert derive_purchase_order_status(order, [_receipt("10", "5")]) is PurchaseOrderStatus.RECEIVED

    def test_partial(self, order):
        assert derive_purchase_order_status(order, [_receipt("4")]) is PurchaseOrderStatus.PARTIAL

    def test_receipts_accumulate(self, order):
        receipts = [_receipt("10"), _receipt("0", "5")]
        assert derive_purchase_order_status(order, receipts) is PurchaseOrderStatus.RECEIVED

    def test_unaccepted_receipts_ignored(self, order):
        receipts = [_receipt("10", "5", status=GoodsReceiptStatus.QUALITY_CHECK)]
        assert derive_purchase_order_status(order, receipts) is None

    def test_other_orders_ignored(self, order):
        assert derive_purchase_order_status(order, [_receipt("10", "5", order_id="po2")]) is None

    def test_cancelled_stays_cancelled(self, order):
        order.status = PurchaseOrderStatus.CANCELLED
        assert derive_purchase_order_status(order, [_receipt("10", "5")]) is PurchaseOrderStatus.CANCELLED


class TestReconcilePurchaseOrders:
    def test_returns_only_changed_orders(self, order):
        (changed,) = reconcile_purchase_orders([order], [_receipt("4")])
        assert changed.status is PurchaseOrderStatus.PARTIAL
        assert order.status is PurchaseOrderStatus.SENT

    def test_unchanged_status_not_returned(self, order):
        order.status = PurchaseOrderStatus.PARTIAL
        assert reconcile_purchase_orders([order], [_receipt("4")]) == []

    def test_falls_back_to_sent_when_last_receipt_removed(self, order):
        order.status = PurchaseOrderStatus.RECEIVED
        (changed,) = reconcile_purchase_orders([order], [], affected_order_id="po1")
        assert changed.status is PurchaseOrderStatus.SENT

    def test_scoped_to_affected_order(self, order):
        other = PurchaseOrder(id="po2", number="PO-2", status=PurchaseOrderStatus.SENT,
                              lines=list(order.lines))
        changed = reconcile_purchase_orders([order, other], [_receipt("4")], "po2")
        assert changed == []


class TestCustomerSync:
    def _invoice(self, email="buyer@example.com", total="118"):
        return ProformaInvoice(
            number="PI-1",
            buyer=BuyerInfo(name="Buyer Co", email=email, phone="123"),
            total=D(total),
        )

    def test_find_by_email_case_insensitive(self):
        customer = Customer(id="c1", name="Buyer", email="Buyer@Example.com ")
        assert find_customer_by_email([customer], "buyer@example.com") is customer

    def test_find_by_blank_email(self):
        assert find_customer_by_email([Customer(id="c1", name="x")], "") is None

    def test_new_customer(self):
        customer = sync_customer_from_proforma([], self._invoice(), NOW)
        assert customer.id is None
        assert customer.source is CustomerSource.PROFORMA_INVOICE
        assert customer.total_proformas == 1
        assert customer.total_value == D("118")
        assert customer.last_contact == NOW

    def test_existing_customer_counters(self):
        existing = Customer(id="c1", name="Old name", email="buyer@example.com",
                            total_proformas=2, total_value=D("100"))
        customer = sync_customer_from_proforma([existing], self._invoice(), NOW)
        assert customer.id == "c1"
        assert customer.name == "Buyer Co"
        assert customer.total_proformas == 3
        assert customer.total_value == D("218")
        assert existing.total_proformas == 2
