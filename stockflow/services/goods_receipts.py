"""Goods receipts: the one document that moves stock.

Creating a receipt projects its lines into stock levels and IN ledger
entries exactly once. Editing is limited to status and notes. Deleting
a receipt books OUT entries reversing what it brought in, unless the
caller opts out.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

from domain.errors import ValidationError
from domain.ledger import project_receipt, project_reversal, receipt_reason
from domain.models import Direction, GoodsReceipt, GoodsReceiptStatus
from domain.reconciliation import reconcile_purchase_orders
from domain.validation import require, validate_receipt_lines
from stockflow.data import mappers
from stockflow.data.collections import (
    GOODS_RECEIPTS,
    INVENTORY_ITEMS,
    PURCHASE_ORDERS,
    TRANSACTIONS,
)
from stockflow.data.mutations import local_id
from stockflow.data.patches import Batch, Put, Remove, Swap
from stockflow.services.documents import DocumentService

logger = logging.getLogger(__name__)


class GoodsReceiptService(DocumentService):
    kind = GOODS_RECEIPTS
    resource = "GoodsReceipt"
    prefix = "GR"
    editable_fields = ("status", "notes")

    def header_row(self, document):
        return mappers.goods_receipt_to_row(document)

    def child_rows(self, document, parent_id):
        return mappers.receipt_line_rows(document.lines, parent_id)

    def from_rows(self, header, line_rows, charge_rows):
        return mappers.goods_receipt_from_row(
            header, line_rows, charge_rows, self._suppliers_by_id(), self._items_by_id()
        )

    def validate_lines(self, lines) -> None:
        validate_receipt_lines(lines)

    # ── Stock side effects ─────────────────────────────────────────────

    def _stock_patches(self, projection, now):
        """Item puts, ledger puts, and the store step applying both."""
        items = self._items_by_id()
        entries = [replace(e, id=local_id()) for e in projection.entries]
        patches = [
            Put(INVENTORY_ITEMS, replace(items[item_id], current_stock=level, updated_at=now))
            for item_id, level in projection.stock_levels.items()
        ]
        # entries keep source-line order at the head of the ledger
        patches += [Put(TRANSACTIONS, e, index) for index, e in enumerate(entries)]

        def write(saga) -> list[tuple[str, dict]]:
            for item_id, level in projection.stock_levels.items():
                saga.update(INVENTORY_ITEMS, item_id, {"current_stock": level, "updated_at": now})
            return [
                (e.id, saga.insert(TRANSACTIONS, mappers.entry_to_row(e))) for e in entries
            ]

        return patches, write

    def _order_patches(self, receipts, order_id):
        """Status change of the linked purchase order, and the store step for it."""
        changed = []
        if order_id:
            changed = reconcile_purchase_orders(self.cache.purchase_orders, receipts, order_id)
        for order in changed:
            logger.info("Purchase order %s -> %s", order.number, order.status.value)

        def write(saga) -> None:
            for order in changed:
                saga.update(PURCHASE_ORDERS, order.id, {"status": order.status.value})

        return [Put(PURCHASE_ORDERS, order) for order in changed], write

    @staticmethod
    def _entry_swaps(stored_entries):
        return [
            Swap(TRANSACTIONS, provisional, mappers.entry_from_row(row))
            for provisional, row in stored_entries
        ]

    # ── Operations ─────────────────────────────────────────────────────

    def add_goods_receipt(
        self,
        supplier_id: str,
        lines,
        charges=(),
        purchase_order_id: str | None = None,
        number: str | None = None,
        date: date | None = None,
        status: GoodsReceiptStatus = GoodsReceiptStatus.RECEIVED,
        notes: str | None = None,
        apply_tax: bool = True,
        custom_rate=None,
    ) -> GoodsReceipt:
        """Create a receipt and book what it received into stock."""
        require(supplier_id, "supplier_id", "Supplier")
        if isinstance(status, str):
            status = GoodsReceiptStatus(status.upper())
        now = self.now()
        receipt = self.new_document(
            GoodsReceipt(
                number=number or self.next_number(),
                supplier_id=supplier_id,
                supplier=self._suppliers_by_id().get(supplier_id),
                purchase_order_id=purchase_order_id,
                date=date or self.today(),
                lines=self.attach_items(lines),
                charges=self.prepare_charges(charges),
                status=status,
                notes=notes,
            ),
            self.tax_policy(apply_tax, custom_rate),
        )
        provisional = receipt.id

        projection = project_receipt(
            receipt.lines, self._items_by_id(), receipt.number, now
        )
        if projection.skipped:
            logger.info(
                "%s: lines %s do not touch stock (free text, unknown item or nothing received)",
                receipt.number, list(projection.skipped),
            )
        stock_patches, write_stock = self._stock_patches(projection, now)
        order_patches, write_orders = self._order_patches(
            [receipt, *self.cache.goods_receipts], purchase_order_id
        )

        def remote(saga):
            stored = self.write_new(saga, receipt)
            stored_entries = write_stock(saga)
            write_orders(saga)
            return stored, stored_entries

        stored, _ = self.pipeline.run(
            "add_goods_receipt",
            Batch(Put(GOODS_RECEIPTS, receipt), *stock_patches, *order_patches),
            remote,
            on_commit=lambda result: Batch(
                Swap(GOODS_RECEIPTS, provisional, result[0]),
                *self._entry_swaps(result[1]),
            ),
        )
        return self.get(stored.id)

    def update_goods_receipt(self, receipt_id: str, **edit) -> GoodsReceipt:
        """Change status or notes; purchase-order status is re-derived."""
        blocked = set(edit) - set(self.editable_fields)
        if blocked:
            raise ValidationError(
                f"Goods receipt fields cannot be edited after creation: {sorted(blocked)}",
                field=sorted(blocked)[0],
            )
        if isinstance(edit.get("status"), str):
            edit["status"] = GoodsReceiptStatus(edit["status"].upper())

        receipt = self.get_or_404(receipt_id)
        updated = replace(receipt, **edit)
        receipts = [updated if r.id == receipt_id else r for r in self.cache.goods_receipts]
        order_patches, write_orders = self._order_patches(receipts, updated.purchase_order_id)
        changes = {
            "status": updated.status.value,
            "notes": updated.notes,
        }

        def remote(saga):
            saga.update(GOODS_RECEIPTS, receipt_id, changes)
            write_orders(saga)

        self.pipeline.run(
            "update_goods_receipt",
            Batch(Put(GOODS_RECEIPTS, updated), *order_patches),
            remote,
            resync=self.resync(GOODS_RECEIPTS, receipt_id),
        )
        return self.get(receipt_id)

    def remove_goods_receipt(self, receipt_id: str, reverse_stock: bool = True) -> None:
        """Delete a receipt; by default its stock intake is booked back out."""
        receipt = self.get_or_404(receipt_id)
        now = self.now()

        stock_patches, write_stock = [], (lambda saga: [])
        if reverse_stock:
            intake = [
                e for e in self.cache.transactions
                if e.reference == receipt.number
                and e.direction is Direction.IN
                and e.reason == receipt_reason(receipt.number)
            ]
            intake.sort(key=lambda e: e.sequence)
            reversal = project_reversal(intake, self._items_by_id(), receipt.number, now)
            stock_patches, write_stock = self._stock_patches(reversal, now)

        remaining = [r for r in self.cache.goods_receipts if r.id != receipt_id]
        order_patches, write_orders = self._order_patches(remaining, receipt.purchase_order_id)

        def remote(saga):
            saga.delete(GOODS_RECEIPTS, receipt_id)
            stored_entries = write_stock(saga)
            write_orders(saga)
            return stored_entries

        self.pipeline.run(
            "remove_goods_receipt",
            Batch(Remove(GOODS_RECEIPTS, receipt_id), *stock_patches, *order_patches),
            remote,
            resync=self.resync(GOODS_RECEIPTS, receipt_id),
            on_commit=lambda stored_entries: Batch(*self._entry_swaps(stored_entries)),
        )
