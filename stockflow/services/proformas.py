"""Proforma invoices, with customer records kept in step."""

from __future__ import annotations

from datetime import date

from domain.models import BuyerInfo, ProformaInvoice, ProformaStatus
from domain.validation import require, validate_lines
from stockflow.data import mappers
from stockflow.data.collections import CUSTOMERS, PROFORMA_INVOICES
from stockflow.data.patches import Batch, Put, Swap
from stockflow.services.customers import CustomerService
from stockflow.services.documents import DocumentService


class ProformaInvoiceService(DocumentService):
    kind = PROFORMA_INVOICES
    resource = "ProformaInvoice"
    prefix = "PI"
    editable_fields = (
        "number", "buyer", "date", "valid_until", "status", "payment_terms", "notes",
    )

    def __init__(self, cache, pipeline, tax_settings=None, clock=None,
                 customers: CustomerService | None = None):
        super().__init__(cache, pipeline, tax_settings, clock)
        self.customers = customers or CustomerService(cache, pipeline, tax_settings, clock)

    def header_row(self, document):
        return mappers.proforma_to_row(document)

    def from_rows(self, header, line_rows, charge_rows):
        return mappers.proforma_from_row(header, line_rows, charge_rows, self._items_by_id())

    def validate_lines(self, lines) -> None:
        validate_lines(lines)

    def add_proforma_invoice(
        self,
        buyer: BuyerInfo,
        lines,
        charges=(),
        number: str | None = None,
        date: date | None = None,
        valid_until: date | None = None,
        status: ProformaStatus = ProformaStatus.SENT,
        payment_terms: str | None = None,
        notes: str | None = None,
        apply_tax: bool = True,
        custom_rate=None,
        sync_customer: bool = True,
    ) -> ProformaInvoice:
        """Create an invoice; the buyer is booked against a customer record.

        A buyer with a known e-mail updates that customer, anyone else
        becomes a new customer sourced from the invoice.
        """
        require(buyer.name if buyer else None, "buyer.name", "Buyer name")
        invoice = self.new_document(
            ProformaInvoice(
                number=number or self.next_number(),
                buyer=buyer,
                date=date or self.today(),
                valid_until=valid_until,
                lines=self.attach_items(lines),
                charges=self.prepare_charges(charges),
                status=status,
                payment_terms=payment_terms,
                notes=notes,
            ),
            self.tax_policy(apply_tax, custom_rate),
        )
        provisional = invoice.id

        patches = [Put(PROFORMA_INVOICES, invoice)]
        customer, write_customer = None, None
        if sync_customer:
            customer, write_customer = self.customers.plan_proforma_sync(invoice)
            patches.append(Put(CUSTOMERS, customer))

        def remote(saga):
            stored = self.write_new(saga, invoice)
            customer_row = write_customer(saga) if write_customer else None
            return stored, customer_row

        def committed(result):
            stored, customer_row = result
            follow_up = [Swap(PROFORMA_INVOICES, provisional, stored)]
            if customer_row is not None:
                follow_up.append(
                    Swap(CUSTOMERS, customer.id, mappers.customer_from_row(customer_row))
                )
            return Batch(*follow_up)

        stored, _ = self.pipeline.run(
            "add_proforma_invoice", Batch(*patches), remote, on_commit=committed
        )
        return self.get(stored.id)

    def update_proforma_invoice(self, invoice_id: str, **edit) -> ProformaInvoice:
        if isinstance(edit.get("status"), str):
            edit["status"] = ProformaStatus(edit["status"].upper())
        if "buyer" in edit:
            require(edit["buyer"].name if edit["buyer"] else None, "buyer.name", "Buyer name")
        return self.update_document("update_proforma_invoice", invoice_id, **edit)

    def remove_proforma_invoice(self, invoice_id: str) -> None:
        self._delete("remove_proforma_invoice", invoice_id)
