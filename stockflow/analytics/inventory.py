"""Inventory reporting -- facade over domain/analytics/stock.py.

Returns pandas DataFrames built from the client cache contents.
Domain-pure equivalents: domain.analytics.stock (low_stock_alerts,
stock_value, summarize_movements).
"""

import pandas as pd

from domain.analytics.stock import low_stock_alerts, summarize_movements

STOCK_COLUMNS = [
    "id", "name", "sku", "category", "unit", "current_stock", "min_stock",
    "max_stock", "unit_price", "stock_value", "low_stock",
]

LEDGER_COLUMNS = [
    "id", "item_id", "item_name", "direction", "quantity", "unit_price",
    "total_value", "reason", "reference", "timestamp", "sequence",
]


def stock_frame(items) -> pd.DataFrame:
    """One row per inventory item with its valuation and low-stock flag."""
    rows = [
        (
            item.id, item.name, item.sku, item.category, item.unit,
            float(item.current_stock), float(item.min_stock), float(item.max_stock),
            float(item.unit_price), float(item.current_stock * item.unit_price),
            item.current_stock <= item.min_stock,
        )
        for item in items
    ]
    return pd.DataFrame(rows, columns=STOCK_COLUMNS)


def ledger_frame(entries) -> pd.DataFrame:
    """Ledger entries newest first, as given by the cache."""
    rows = [
        (
            e.id, e.item_id, e.item_name, e.direction.value, float(e.quantity),
            float(e.unit_price), float(e.total_value), e.reason, e.reference,
            e.timestamp, e.sequence,
        )
        for e in entries
    ]
    df = pd.DataFrame(rows, columns=LEDGER_COLUMNS)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return df


def low_stock_report(items) -> pd.DataFrame:
    alerts = low_stock_alerts(items)
    return pd.DataFrame(
        [
            (a.item_id, a.name, float(a.current_stock), float(a.min_stock), float(a.shortfall))
            for a in alerts
        ],
        columns=["item_id", "name", "current_stock", "min_stock", "shortfall"],
    )


def movement_summary(entries, items=()) -> pd.DataFrame:
    """IN/OUT totals per item, largest net intake first.

    Item names come from *items* when given, otherwise from the entries.
    """
    names = {item.id: item.name for item in items}
    for e in entries:
        names.setdefault(e.item_id, e.item_name)

    summaries = summarize_movements(entries)
    df = pd.DataFrame(
        [
            (
                s.item_id, names.get(s.item_id, ""), float(s.quantity_in),
                float(s.quantity_out), float(s.net_quantity), float(s.value_in),
                float(s.value_out),
            )
            for s in summaries.values()
        ],
        columns=["item_id", "name", "qty_in", "qty_out", "net", "value_in", "value_out"],
    )
    return df.sort_values("net", ascending=False).reset_index(drop=True)


def monthly_movements(entries) -> pd.DataFrame:
    """Quantities moved per calendar month and direction."""
    df = ledger_frame(entries)
    if df.empty:
        return pd.DataFrame(columns=["month", "IN", "OUT"])
    df["month"] = df["timestamp"].dt.tz_localize(None).dt.to_period("M").astype(str)
    result = (
        df.pivot_table(index="month", columns="direction", values="quantity",
                       aggfunc="sum", fill_value=0.0)
        .reindex(columns=["IN", "OUT"], fill_value=0.0)
        .reset_index()
    )
    result.columns.name = None
    return result


def supplier_receipts(receipts) -> pd.DataFrame:
    """Goods-receipt count and value per supplier, highest value first."""
    rows = [
        (r.supplier.name if r.supplier else (r.supplier_id or ""), float(r.total))
        for r in receipts
    ]
    df = pd.DataFrame(rows, columns=["supplier", "total"])
    if df.empty:
        return pd.DataFrame(columns=["supplier", "receipts", "total"])
    return (
        df.groupby("supplier")
        .agg(receipts=("total", "size"), total=("total", "sum"))
        .reset_index()
        .sort_values("total", ascending=False)
        .reset_index(drop=True)
    )
