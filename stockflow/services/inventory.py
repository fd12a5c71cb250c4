"""Inventory items and manual stock movements."""

from __future__ import annotations

import logging
from dataclasses import replace

from domain.ledger import apply_movement, build_entry
from domain.models import Direction, InventoryItem, TransactionLedgerEntry
from domain.validation import check_non_negative, check_positive, require
from stockflow.data import mappers
from stockflow.data.collections import INVENTORY_ITEMS, TRANSACTIONS
from stockflow.data.mutations import local_id
from stockflow.data.patches import Batch, Put, Remove, Swap
from stockflow.services.base import BaseService

logger = logging.getLogger(__name__)

_NUMERIC_FIELDS = ("current_stock", "min_stock", "max_stock", "unit_price")


class InventoryService(BaseService):
    kind = INVENTORY_ITEMS
    resource = "InventoryItem"

    def add_item(
        self,
        name: str,
        unit: str = "piece",
        current_stock=0,
        min_stock=0,
        max_stock=1000,
        unit_price=0,
        sku: str = "",
        description: str = "",
        category: str = "",
        supplier_id: str | None = None,
    ) -> InventoryItem:
        require(name, "name", "Item name")
        now = self.now()
        item = InventoryItem(
            id=local_id(),
            name=name.strip(),
            unit=unit or "piece",
            current_stock=check_non_negative(current_stock, "current_stock"),
            min_stock=check_non_negative(min_stock, "min_stock"),
            max_stock=check_non_negative(max_stock, "max_stock"),
            unit_price=check_non_negative(unit_price, "unit_price"),
            sku=sku,
            description=description,
            category=category,
            supplier_id=supplier_id,
            created_at=now,
            updated_at=now,
        )
        return self._insert("add_item", item, mappers.item_to_row, mappers.item_from_row)

    def update_item(self, item_id: str, **changes) -> InventoryItem:
        if "name" in changes:
            require(changes["name"], "name", "Item name")
        for field_name in _NUMERIC_FIELDS:
            if field_name in changes:
                changes[field_name] = check_non_negative(changes[field_name], field_name)
        changes["updated_at"] = self.now()
        return self._update("update_item", item_id, changes, mappers.ITEM_COLUMNS)

    def transact_item(
        self,
        item_id: str,
        direction: Direction | str,
        quantity,
        reason: str,
        reference: str | None = None,
        unit_price=None,
        notes: str | None = None,
    ) -> TransactionLedgerEntry:
        """Record a manual IN/OUT movement; OUT never drives stock below zero."""
        item = self.get_or_404(item_id)
        direction = Direction(direction.upper()) if isinstance(direction, str) else direction
        qty = check_positive(quantity, "quantity")
        require(reason, "reason", "Reason")
        if unit_price is not None:
            unit_price = check_non_negative(unit_price, "unit_price")

        now = self.now()
        new_stock = apply_movement(item.current_stock, direction, qty)
        entry = replace(
            build_entry(
                item, direction, qty, reason, now,
                reference=reference, unit_price=unit_price, notes=notes,
            ),
            id=local_id(),
        )
        provisional = entry.id
        stock_change = {"current_stock": new_stock, "updated_at": now}

        def remote(saga):
            saga.update(INVENTORY_ITEMS, item_id, stock_change)
            return saga.insert(TRANSACTIONS, mappers.entry_to_row(entry))

        row = self.pipeline.run(
            "transact_item",
            Batch(
                Put(INVENTORY_ITEMS, replace(item, **stock_change)),
                Put(TRANSACTIONS, entry),
            ),
            remote,
            resync=self.resync(INVENTORY_ITEMS, item_id),
            on_commit=lambda row: Swap(TRANSACTIONS, provisional, mappers.entry_from_row(row)),
        )
        logger.info(
            "%s %s x %s (%s): stock %s -> %s",
            direction.value, item.name, qty, reason, item.current_stock, new_stock,
        )
        return self.cache.get(TRANSACTIONS, row["id"])

    def remove_item(self, item_id: str) -> None:
        """Delete an item together with its ledger entries."""
        entries = [e for e in self.cache.transactions if e.item_id == item_id]
        self._delete("remove_item", item_id, *(Remove(TRANSACTIONS, e.id) for e in entries))
