"""Shared behaviour of financial documents (PO, GR, proforma invoice).

Totals are computed once when a document is created and recomputed
wholesale whenever its lines, charges or tax policy change. Lines and
charges are stored as child rows; an edit replaces them all.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from domain.errors import ValidationError
from domain.models import AdditionalCharge, TaxPolicy
from domain.numbering import next_document_number
from domain.totals import compute_totals, infer_tax_policy, resolve_tax_policy, with_totals
from domain.validation import validate_charges, validate_tax_policy
from stockflow.data import mappers
from stockflow.data.collections import DOCUMENT_CHILDREN
from stockflow.data.mutations import local_id
from stockflow.data.patches import Put
from stockflow.services.base import BaseService

logger = logging.getLogger(__name__)


class DocumentService(BaseService):
    """Base for services whose entities carry lines, charges and totals."""

    prefix: str = ""
    editable_fields: tuple[str, ...] = ()

    # Subclass hooks ------------------------------------------------------

    def header_row(self, document) -> dict:
        raise NotImplementedError

    def child_rows(self, document, parent_id: str) -> list[dict]:
        lines, _, fk = DOCUMENT_CHILDREN[self.kind]
        return mappers.line_rows(document.lines, fk, parent_id)

    def from_rows(self, header: dict, line_rows: list[dict], charge_rows: list[dict]):
        raise NotImplementedError

    def validate_lines(self, lines) -> None:
        raise NotImplementedError

    # Helpers -------------------------------------------------------------

    def next_number(self) -> str:
        return next_document_number(
            self.prefix, [d.number for d in self.list()], self.today()
        )

    def tax_policy(self, apply_tax: bool = True, custom_rate=None) -> TaxPolicy:
        policy = resolve_tax_policy(apply_tax, custom_rate, self.tax_settings)
        validate_tax_policy(policy)
        return policy

    def attach_items(self, lines) -> list:
        """Embed catalog items on lines that reference one; fill blank names."""
        items = self._items_by_id()
        attached = []
        for line in lines:
            item = items.get(line.item_id) if line.item_id else None
            if item is not None:
                line = replace(line, item=item, name=line.name or item.name)
            attached.append(line)
        return attached

    @staticmethod
    def prepare_charges(charges) -> list[AdditionalCharge]:
        charges = list(charges or ())
        validate_charges(charges)
        return charges

    def new_document(self, document, tax_policy: TaxPolicy):
        """Local id, creation time and computed totals for a new document."""
        self.validate_lines(document.lines)
        return with_totals(
            replace(document, id=local_id(), created_at=self.now()), tax_policy
        )

    def write_new(self, saga, document):
        """Insert header, lines and charges; return the document as stored."""
        lines, charges, fk = DOCUMENT_CHILDREN[self.kind]
        header = saga.insert(self.kind, self.header_row(document))
        line_rows = saga.insert_many(lines, self.child_rows(document, header["id"]))
        charge_rows = saga.insert_many(
            charges, mappers.charge_rows(document.charges, fk, header["id"])
        )
        return self.from_rows(header, line_rows, charge_rows)

    def write_update(self, saga, document, replace_children: bool):
        """Update the header; with *replace_children* rewrite lines and charges."""
        lines, charges, fk = DOCUMENT_CHILDREN[self.kind]
        header = saga.update(self.kind, document.id, self.header_row(document))
        if replace_children:
            for child in (lines, charges):
                for row in self.store.select(child, filters={fk: document.id}):
                    saga.delete(child, row["id"])
            fresh = replace(
                document,
                lines=[replace(line, id=None) for line in document.lines],
                charges=[replace(c, id=None) for c in document.charges],
            )
            line_rows = saga.insert_many(lines, self.child_rows(fresh, document.id))
            charge_rows = saga.insert_many(
                charges, mappers.charge_rows(fresh.charges, fk, document.id)
            )
        else:
            line_rows = self.store.select(lines, filters={fk: document.id})
            charge_rows = self.store.select(charges, filters={fk: document.id})
        return self.from_rows(header, line_rows, charge_rows)

    def revise(self, document, lines=None, charges=None, apply_tax=None,
               custom_rate=None, **fields):
        """Apply an edit to *document*; returns ``(updated, children_changed)``.

        Totals are recomputed whenever lines, charges or tax settings are
        part of the edit. Without explicit tax arguments the policy is
        recovered from the stored totals.
        """
        unknown = set(fields) - set(self.editable_fields)
        if unknown:
            raise ValidationError(f"Unknown {self.resource} fields: {sorted(unknown)}")

        updated = replace(document, **fields)
        children_changed = lines is not None or charges is not None
        if lines is not None:
            self.validate_lines(lines)
            updated = replace(updated, lines=self.attach_items(lines))
        if charges is not None:
            updated = replace(updated, charges=self.prepare_charges(charges))

        if children_changed or apply_tax is not None or custom_rate is not None:
            if apply_tax is None and custom_rate is None:
                policy = self.policy_of(document)
            else:
                policy = self.tax_policy(True if apply_tax is None else apply_tax, custom_rate)
            updated = with_totals(updated, policy)
        return updated, children_changed

    def policy_of(self, document) -> TaxPolicy:
        """Tax policy a stored document was most likely priced with.

        The configured default wins when it reproduces the stored totals;
        otherwise the rate is recovered from the stored amounts. Headers
        keep no tax mode, so a custom rate on a tiny base can come back
        as a nearby coarser rate; see :func:`infer_tax_policy`.
        """
        default = self.tax_policy()
        if compute_totals(document.lines, document.charges, default) == document.totals:
            return default
        return infer_tax_policy(document.totals)

    def update_document(self, mutation: str, document_id: str, **edit):
        """Optimistic edit of one document, persisted header and children."""
        document = self.get_or_404(document_id)
        updated, children_changed = self.revise(document, **edit)
        self.pipeline.run(
            mutation,
            Put(self.kind, updated),
            lambda saga: self.write_update(saga, updated, children_changed),
            resync=self.resync(self.kind, document_id),
            on_commit=lambda stored: Put(self.kind, stored),
        )
        return self.get(document_id)
