"""Shared plumbing for entity services.

Services validate input, build the optimistic cache patch, and hand
the remote write to the mutation pipeline. They never touch the cache
or the store directly except for reads.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable

from domain.errors import NotFoundError, ValidationError
from domain.models import TaxSettings
from stockflow.data import mappers
from stockflow.data.client_cache import ClientCache
from stockflow.data.collections import (
    CUSTOMER_ACTIVITIES,
    CUSTOMERS,
    DOCUMENT_CHILDREN,
    GOODS_RECEIPTS,
    INVENTORY_ITEMS,
    PRODUCTS,
    PROFORMA_INVOICES,
    PURCHASE_ORDERS,
    SUPPLIERS,
    TRANSACTIONS,
)
from stockflow.data.mutations import MutationPipeline
from stockflow.data.patches import Batch, Patch, Put, Remove, Swap

logger = logging.getLogger(__name__)

_FLAT_READERS = {
    INVENTORY_ITEMS: mappers.item_from_row,
    SUPPLIERS: mappers.supplier_from_row,
    PRODUCTS: mappers.product_from_row,
    CUSTOMERS: mappers.customer_from_row,
    CUSTOMER_ACTIVITIES: mappers.activity_from_row,
    TRANSACTIONS: mappers.entry_from_row,
}


class BaseService:
    """Common base: access to cache, store, pipeline, tax settings and clock."""

    kind: str = ""
    resource: str = ""

    def __init__(
        self,
        cache: ClientCache,
        pipeline: MutationPipeline,
        tax_settings: TaxSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.cache = cache
        self.pipeline = pipeline
        self.tax_settings = tax_settings or TaxSettings()
        self._clock = clock or cache.clock

    @property
    def store(self):
        return self.pipeline.store

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self.now().date()

    # ── Lookups ────────────────────────────────────────────────────────

    def list(self) -> list:
        return self.cache.items(self.kind)

    def get(self, entity_id):
        return self.cache.get(self.kind, entity_id)

    def get_or_404(self, entity_id):
        entity = self.get(entity_id)
        if entity is None:
            raise NotFoundError(self.resource or self.kind, entity_id)
        return entity

    def _items_by_id(self) -> dict:
        return {item.id: item for item in self.cache.inventory_items}

    def _suppliers_by_id(self) -> dict:
        return {supplier.id: supplier for supplier in self.cache.suppliers}

    # ── Re-reading from the store ──────────────────────────────────────

    def load(self, kind: str, entity_id):
        """Read one entity from the store, joins included; None if gone."""
        row = self.store.get(kind, entity_id)
        if row is None:
            return None
        if kind in _FLAT_READERS:
            return _FLAT_READERS[kind](row)

        lines, charges, fk = DOCUMENT_CHILDREN[kind]
        line_rows = self.store.select(lines, filters={fk: entity_id})
        charge_rows = self.store.select(charges, filters={fk: entity_id})
        items = self._items_by_id()
        if kind == PURCHASE_ORDERS:
            return mappers.purchase_order_from_row(
                row, line_rows, charge_rows, self._suppliers_by_id(), items
            )
        if kind == GOODS_RECEIPTS:
            return mappers.goods_receipt_from_row(
                row, line_rows, charge_rows, self._suppliers_by_id(), items
            )
        if kind == PROFORMA_INVOICES:
            return mappers.proforma_from_row(row, line_rows, charge_rows, items)
        raise ValueError(f"Unknown kind: {kind}")

    def resync(self, kind: str, entity_id) -> Callable[[], Patch]:
        """Build a resync hook that replaces the cached entity with the stored one."""

        def reload() -> Patch:
            entity = self.load(kind, entity_id)
            if entity is None:
                return Remove(kind, entity_id)
            return Put(kind, entity)

        return reload

    # ── Single-record mutations ────────────────────────────────────────

    def _insert(self, mutation: str, entity, to_row, from_row):
        """Optimistically add *entity* (carrying a local id), then persist it."""
        provisional = entity.id
        row = self.pipeline.run(
            mutation,
            Put(self.kind, entity),
            lambda saga: saga.insert(self.kind, to_row(entity)),
            on_commit=lambda row: Swap(self.kind, provisional, from_row(row)),
        )
        return self.get(row["id"])

    def _update(self, mutation: str, entity_id, changes: dict, columns: dict):
        entity = self.get_or_404(entity_id)
        unknown = set(changes) - set(columns)
        if unknown:
            raise ValidationError(f"Unknown {self.resource} fields: {sorted(unknown)}")
        self.pipeline.run(
            mutation,
            Put(self.kind, replace(entity, **changes)),
            lambda saga: saga.update(
                self.kind, entity_id, mappers.changes_to_row(changes, columns)
            ),
            resync=self.resync(self.kind, entity_id),
        )
        return self.get(entity_id)

    def _delete(self, mutation: str, entity_id, *cascade: Patch) -> None:
        """Remove one record; *cascade* removes dependants from the cache too."""
        self.get_or_404(entity_id)
        self.pipeline.run(
            mutation,
            Batch(Remove(self.kind, entity_id), *cascade),
            lambda saga: saga.delete(self.kind, entity_id),
            resync=self.resync(self.kind, entity_id),
        )
