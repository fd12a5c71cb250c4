"""Purchase orders."""

from __future__ import annotations

from datetime import date

from domain.models import PurchaseOrder, PurchaseOrderStatus
from domain.validation import require, validate_lines
from stockflow.data import mappers
from stockflow.data.collections import PURCHASE_ORDERS
from stockflow.data.patches import Put, Swap
from stockflow.services.documents import DocumentService


class PurchaseOrderService(DocumentService):
    kind = PURCHASE_ORDERS
    resource = "PurchaseOrder"
    prefix = "PO"
    editable_fields = (
        "number", "supplier_id", "supplier", "date", "expected_delivery", "status",
        "payment_terms", "notes",
    )

    def header_row(self, document):
        return mappers.purchase_order_to_row(document)

    def from_rows(self, header, line_rows, charge_rows):
        return mappers.purchase_order_from_row(
            header, line_rows, charge_rows, self._suppliers_by_id(), self._items_by_id()
        )

    def validate_lines(self, lines) -> None:
        validate_lines(lines)

    def add_purchase_order(
        self,
        supplier_id: str,
        lines,
        charges=(),
        number: str | None = None,
        date: date | None = None,
        expected_delivery: date | None = None,
        status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT,
        payment_terms: str | None = None,
        notes: str | None = None,
        apply_tax: bool = True,
        custom_rate=None,
    ) -> PurchaseOrder:
        require(supplier_id, "supplier_id", "Supplier")
        order = self.new_document(
            PurchaseOrder(
                number=number or self.next_number(),
                supplier_id=supplier_id,
                supplier=self._suppliers_by_id().get(supplier_id),
                date=date or self.today(),
                expected_delivery=expected_delivery,
                lines=self.attach_items(lines),
                charges=self.prepare_charges(charges),
                status=status,
                payment_terms=payment_terms,
                notes=notes,
            ),
            self.tax_policy(apply_tax, custom_rate),
        )
        provisional = order.id
        stored = self.pipeline.run(
            "add_purchase_order",
            Put(PURCHASE_ORDERS, order),
            lambda saga: self.write_new(saga, order),
            on_commit=lambda stored: Swap(PURCHASE_ORDERS, provisional, stored),
        )
        return self.get(stored.id)

    def update_purchase_order(self, order_id: str, **edit) -> PurchaseOrder:
        """Edit header fields, lines, charges or tax; totals follow wholesale."""
        if isinstance(edit.get("status"), str):
            edit["status"] = PurchaseOrderStatus(edit["status"].upper())
        if "supplier_id" in edit:
            edit["supplier"] = self._suppliers_by_id().get(edit["supplier_id"])
        return self.update_document("update_purchase_order", order_id, **edit)

    def remove_purchase_order(self, order_id: str) -> None:
        self._delete("remove_purchase_order", order_id)
