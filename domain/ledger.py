"""Inventory ledger projection: pure functions, zero external dependencies.

Only stdlib and domain imports allowed.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from domain.models import (
    ZERO,
    Direction,
    GoodsReceiptItem,
    InventoryItem,
    ReceiptProjection,
    TransactionLedgerEntry,
)
from domain.money import non_negative, to_decimal


def apply_movement(current_stock: Decimal, direction: Direction, quantity: Decimal) -> Decimal:
    """Return the stock level after one movement.

    IN adds; OUT subtracts and floor-clamps at zero.
    """
    current = non_negative(current_stock)
    qty = non_negative(quantity)
    if direction is Direction.IN:
        return current + qty
    return max(ZERO, current - qty)


def build_entry(
    item: InventoryItem,
    direction: Direction,
    quantity,
    reason: str,
    timestamp: datetime,
    reference: str | None = None,
    unit_price=None,
    notes: str | None = None,
    sequence: int = 0,
) -> TransactionLedgerEntry:
    """Build one ledger entry; the item's own price is used unless overridden."""
    qty = to_decimal(quantity)
    price = to_decimal(unit_price) if unit_price is not None else to_decimal(item.unit_price)
    return TransactionLedgerEntry(
        item_id=item.id,
        item_name=item.name,
        direction=direction,
        quantity=qty,
        unit_price=price,
        total_value=qty * price,
        reason=reason,
        reference=reference,
        timestamp=timestamp,
        notes=notes,
        sequence=sequence,
    )


def receipt_reason(reference: str) -> str:
    return f"Goods Receipt: {reference}"


def project_receipt(
    lines: list[GoodsReceiptItem],
    inventory: dict[str, InventoryItem],
    reference: str,
    timestamp: datetime,
) -> ReceiptProjection:
    """Compute stock levels and IN entries for a newly created receipt.

    Lines without a catalog reference, lines pointing at an item missing
    from *inventory*, and lines with nothing received are skipped; they
    stay on the document but never touch stock. Entries come out in line
    order. Calling this twice for one receipt double-counts the stock.
    """
    levels: dict[str, Decimal] = {}
    entries: list[TransactionLedgerEntry] = []
    skipped: list[int] = []

    for index, line in enumerate(lines):
        received = to_decimal(line.received_quantity)
        item = inventory.get(line.item_id) if line.item_id else None
        if item is None or received <= 0:
            skipped.append(index)
            continue

        current = levels.get(item.id, item.current_stock)
        levels[item.id] = apply_movement(current, Direction.IN, received)
        entries.append(
            build_entry(
                item,
                Direction.IN,
                received,
                reason=receipt_reason(reference),
                reference=reference,
                unit_price=line.unit_price,
                timestamp=timestamp,
                sequence=index,
            )
        )

    return ReceiptProjection(
        stock_levels=levels,
        entries=tuple(entries),
        skipped=tuple(skipped),
    )


def project_reversal(
    entries: list[TransactionLedgerEntry],
    inventory: dict[str, InventoryItem],
    reference: str,
    timestamp: datetime,
) -> ReceiptProjection:
    """Compute OUT entries undoing the IN entries of a deleted receipt.

    Stock is clamped at zero, so goods already consumed are not driven
    negative. Items no longer in *inventory* are skipped.
    """
    levels: dict[str, Decimal] = {}
    out: list[TransactionLedgerEntry] = []
    skipped: list[int] = []

    for index, entry in enumerate(entries):
        item = inventory.get(entry.item_id)
        if item is None or entry.direction is not Direction.IN:
            skipped.append(index)
            continue
        current = levels.get(item.id, item.current_stock)
        levels[item.id] = apply_movement(current, Direction.OUT, entry.quantity)
        out.append(
            build_entry(
                item,
                Direction.OUT,
                entry.quantity,
                reason=f"Goods Receipt reversal: {reference}",
                reference=reference,
                unit_price=entry.unit_price,
                timestamp=timestamp,
                sequence=index,
            )
        )

    return ReceiptProjection(stock_levels=levels, entries=tuple(out), skipped=tuple(skipped))


def chronological(entries) -> list[TransactionLedgerEntry]:
    """Newest first; entries sharing a timestamp keep source-line order."""
    return sorted(entries, key=lambda e: (-e.timestamp.timestamp(), e.sequence))
