"""Domain inventory analytics: pure functions, zero external dependencies.

Only stdlib and domain.models imports allowed.
"""

from domain.models import ZERO, Direction, MovementSummary, StockAlert


def low_stock_alerts(items):
    """Items at or below their minimum stock, largest shortfall first."""
    alerts = [
        StockAlert(
            item_id=item.id,
            name=item.name,
            current_stock=item.current_stock,
            min_stock=item.min_stock,
            shortfall=item.min_stock - item.current_stock,
        )
        for item in items
        if item.current_stock <= item.min_stock
    ]
    alerts.sort(key=lambda a: a.shortfall, reverse=True)
    return alerts


def stock_value(items):
    """Total value of stock on hand at current unit prices."""
    return sum((item.current_stock * item.unit_price for item in items), ZERO)


def summarize_movements(entries):
    """Aggregate IN/OUT quantities and values per item, keyed by item id."""
    by_item = {}
    for entry in entries:
        data = by_item.setdefault(
            entry.item_id,
            {"qty_in": ZERO, "qty_out": ZERO, "val_in": ZERO, "val_out": ZERO},
        )
        if entry.direction is Direction.IN:
            data["qty_in"] += entry.quantity
            data["val_in"] += entry.total_value
        else:
            data["qty_out"] += entry.quantity
            data["val_out"] += entry.total_value
    return {
        item_id: MovementSummary(
            item_id=item_id,
            quantity_in=data["qty_in"],
            quantity_out=data["qty_out"],
            value_in=data["val_in"],
            value_out=data["val_out"],
        )
        for item_id, data in by_item.items()
    }
