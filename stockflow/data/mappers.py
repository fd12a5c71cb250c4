"""Translation between store rows (plain dicts) and domain objects.

Readers are tolerant: numeric fields go through ``to_decimal`` and dates
may arrive as ``date``/``datetime`` objects or ISO strings, so the same
functions load fresh store rows and JSON cache snapshots.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from domain.models import (
    AdditionalCharge,
    BuyerInfo,
    Customer,
    CustomerActivity,
    CustomerSource,
    CustomerStatus,
    Direction,
    GoodsReceipt,
    GoodsReceiptItem,
    GoodsReceiptStatus,
    InventoryItem,
    LineItem,
    Product,
    ProformaInvoice,
    ProformaStatus,
    PurchaseOrder,
    PurchaseOrderStatus,
    Supplier,
    TransactionLedgerEntry,
)
from domain.ledger import chronological
from domain.money import to_decimal
from stockflow.data.collections import (
    CUSTOMER_ACTIVITIES,
    CUSTOMERS,
    DOCUMENT_CHILDREN,
    GOODS_RECEIPTS,
    INVENTORY_ITEMS,
    PRODUCTS,
    PROFORMA_INVOICES,
    PURCHASE_ORDERS,
    REFRESH_READS,
    SUPPLIERS,
    TRANSACTIONS,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _parse_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _parse_datetime(value) -> datetime | None:
    """Timestamps come back timezone-aware; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _enum(enum_cls, value, default):
    try:
        return enum_cls(str(value).upper()) if value else default
    except ValueError:
        return default


def _optional_decimal(value):
    return None if value is None or value == "" else to_decimal(value)


def _stamped(row: dict, created_at) -> dict:
    """Add created_at only when known; otherwise the store default applies."""
    if created_at is not None:
        row["created_at"] = created_at
    if row.get("updated_at", True) is None:
        del row["updated_at"]
    return row


# ── Suppliers / items / ledger ────────────────────────────────────────────


def supplier_from_row(row: dict) -> Supplier:
    return Supplier(
        id=row["id"],
        name=row.get("name") or "",
        contact_person=row.get("contact_person") or "",
        email=row.get("email") or "",
        phone=row.get("phone") or "",
        address=row.get("address") or "",
        tax_number=row.get("gst_number") or "",
        created_at=_parse_datetime(row.get("created_at")),
    )


def supplier_to_row(supplier: Supplier) -> dict:
    return {
        "name": supplier.name,
        "contact_person": supplier.contact_person,
        "email": supplier.email,
        "phone": supplier.phone,
        "address": supplier.address,
        "gst_number": supplier.tax_number,
    }


def item_from_row(row: dict) -> InventoryItem:
    return InventoryItem(
        id=row["id"],
        name=row.get("name") or "",
        sku=row.get("hsn_code") or "",
        description=row.get("description") or "",
        category=row.get("category") or "",
        current_stock=to_decimal(row.get("current_stock")),
        min_stock=to_decimal(row.get("reorder_level")),
        max_stock=to_decimal(row.get("max_stock"), to_decimal(1000)),
        unit_price=to_decimal(row.get("unit_price")),
        unit=row.get("unit") or "piece",
        supplier_id=row.get("supplier_id") or None,
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


# Domain attribute -> column, for partial updates.
ITEM_COLUMNS = {
    "name": "name",
    "sku": "hsn_code",
    "description": "description",
    "category": "category",
    "current_stock": "current_stock",
    "min_stock": "reorder_level",
    "max_stock": "max_stock",
    "unit_price": "unit_price",
    "unit": "unit",
    "supplier_id": "supplier_id",
    "updated_at": "updated_at",
}

SUPPLIER_COLUMNS = {
    "name": "name",
    "contact_person": "contact_person",
    "email": "email",
    "phone": "phone",
    "address": "address",
    "tax_number": "gst_number",
}

CUSTOMER_COLUMNS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "address": "address",
    "contact_person": "contact_person",
    "tax_number": "gst_number",
    "status": "status",
    "total_proformas": "total_proformas",
    "total_value": "total_value",
    "last_contact": "last_contact",
    "updated_at": "updated_at",
}

PRODUCT_COLUMNS = {
    "name": "name",
    "price": "price",
    "unit": "unit",
    "description": "description",
}


def changes_to_row(changes: dict, columns: dict) -> dict:
    """Rename domain attributes to columns; enums are stored by value."""
    row = {}
    for attr, value in changes.items():
        if attr not in columns:
            continue
        row[columns[attr]] = value.value if isinstance(value, Enum) else value
    return row


def item_to_row(item: InventoryItem) -> dict:
    row = changes_to_row(
        {attr: getattr(item, attr) for attr in ITEM_COLUMNS}, ITEM_COLUMNS
    )
    return _stamped(row, item.created_at)


def entry_from_row(row: dict) -> TransactionLedgerEntry:
    quantity = to_decimal(row.get("quantity"))
    unit_price = to_decimal(row.get("unit_price"))
    total = row.get("total_value")
    return TransactionLedgerEntry(
        id=row["id"],
        item_id=row.get("item_id"),
        item_name=row.get("item_name") or "",
        direction=_enum(Direction, row.get("type"), Direction.IN),
        quantity=quantity,
        unit_price=unit_price,
        total_value=to_decimal(total) if total is not None else quantity * unit_price,
        reason=row.get("reason") or "",
        reference=row.get("reference") or None,
        notes=row.get("notes") or None,
        sequence=int(row.get("sequence") or 0),
        timestamp=_parse_datetime(row.get("created_at")) or EPOCH,
    )


def entry_to_row(entry: TransactionLedgerEntry) -> dict:
    return _stamped({
        "item_id": entry.item_id,
        "item_name": entry.item_name,
        "type": entry.direction.value,
        "quantity": entry.quantity,
        "unit_price": entry.unit_price,
        "total_value": entry.total_value,
        "reason": entry.reason,
        "reference": entry.reference,
        "notes": entry.notes,
        "sequence": entry.sequence,
    }, entry.timestamp)


# ── Catalog / CRM ─────────────────────────────────────────────────────────


def product_from_row(row: dict) -> Product:
    return Product(
        id=row["id"],
        name=row.get("name") or "",
        price=to_decimal(row.get("price")),
        unit=row.get("unit") or "piece",
        description=row.get("description") or None,
        created_at=_parse_datetime(row.get("created_at")),
    )


def product_to_row(product: Product) -> dict:
    row = changes_to_row({a: getattr(product, a) for a in PRODUCT_COLUMNS}, PRODUCT_COLUMNS)
    return _stamped(row, product.created_at)


def customer_from_row(row: dict) -> Customer:
    return Customer(
        id=row["id"],
        name=row.get("name") or "",
        email=row.get("email") or "",
        phone=row.get("phone") or "",
        address=row.get("address") or "",
        contact_person=row.get("contact_person") or "",
        tax_number=row.get("gst_number") or "",
        status=_enum(CustomerStatus, row.get("status"), CustomerStatus.ACTIVE),
        source=_enum(CustomerSource, row.get("source"), CustomerSource.MANUAL),
        total_proformas=int(row.get("total_proformas") or 0),
        total_value=to_decimal(row.get("total_value")),
        last_contact=_parse_datetime(row.get("last_contact")),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def customer_to_row(customer: Customer) -> dict:
    row = changes_to_row({a: getattr(customer, a) for a in CUSTOMER_COLUMNS}, CUSTOMER_COLUMNS)
    row["source"] = customer.source.value
    return _stamped(row, customer.created_at)


def activity_from_row(row: dict) -> CustomerActivity:
    return CustomerActivity(
        id=row["id"],
        customer_id=row.get("customer_id"),
        type=row.get("type") or "",
        description=row.get("description") or "",
        date=_parse_datetime(row.get("created_at")),
    )


def activity_to_row(activity: CustomerActivity) -> dict:
    return _stamped({
        "customer_id": activity.customer_id,
        "type": activity.type,
        "description": activity.description,
    }, activity.date)


# ── Document children ─────────────────────────────────────────────────────


def charge_from_row(row: dict) -> AdditionalCharge:
    return AdditionalCharge(
        id=row["id"], name=row.get("name") or "", amount=to_decimal(row.get("amount"))
    )


def _keyed(record_id, row: dict) -> dict:
    if record_id is not None:
        row["id"] = record_id
    return row


def charge_rows(charges, fk: str, parent_id: str) -> list[dict]:
    return [
        _keyed(c.id, {fk: parent_id, "position": position, "name": c.name, "amount": c.amount})
        for position, c in enumerate(charges)
    ]


def line_from_row(row: dict, items: dict[str, InventoryItem]) -> LineItem:
    """Document line; a known catalog item is embedded once, at load time."""
    item_id = row.get("item_id") or None
    return LineItem(
        id=row["id"],
        item_id=item_id,
        item=items.get(item_id) if item_id else None,
        name=row.get("item_name") or "Item",
        description=row.get("description") or None,
        quantity=to_decimal(row.get("quantity")),
        unit_price=to_decimal(row.get("rate")),
        unit=row.get("unit") or "piece",
    )


def line_rows(lines, fk: str, parent_id: str) -> list[dict]:
    return [
        _keyed(line.id, {
            fk: parent_id,
            "position": position,
            "item_id": line.item_id,
            "item_name": line.name or "Item",
            "description": line.description,
            "quantity": line.quantity,
            "rate": line.unit_price,
            "amount": line.quantity * line.unit_price,
            "unit": line.unit,
        })
        for position, line in enumerate(lines)
    ]


def receipt_line_from_row(row: dict, items: dict[str, InventoryItem]) -> GoodsReceiptItem:
    item_id = row.get("item_id") or None
    return GoodsReceiptItem(
        id=row["id"],
        item_id=item_id,
        item=items.get(item_id) if item_id else None,
        name=row.get("item_name") or "Item",
        unit=row.get("unit") or "piece",
        ordered_quantity=_optional_decimal(row.get("quantity_ordered")),
        received_quantity=to_decimal(row.get("quantity_received")),
        unit_price=to_decimal(row.get("unit_price")),
        notes=row.get("notes") or None,
    )


def receipt_line_rows(lines, parent_id: str) -> list[dict]:
    return [
        _keyed(line.id, {
            "goods_receipt_id": parent_id,
            "position": position,
            "item_id": line.item_id,
            "item_name": line.name or "Item",
            "unit": line.unit,
            "quantity_ordered": (
                line.ordered_quantity if line.ordered_quantity is not None
                else line.received_quantity
            ),
            "quantity_received": line.received_quantity,
            "unit_price": line.unit_price,
            "amount": line.received_quantity * line.unit_price,
            "notes": line.notes,
        })
        for position, line in enumerate(lines)
    ]


def _totals_fields(row: dict) -> dict:
    return {
        "subtotal": to_decimal(row.get("subtotal")),
        "tax_a": to_decimal(row.get("tax_a")),
        "tax_b": to_decimal(row.get("tax_b")),
        "total": to_decimal(row.get("total")),
    }


def _totals_row(document) -> dict:
    return {
        "subtotal": document.subtotal,
        "tax_a": document.tax_a,
        "tax_b": document.tax_b,
        "total": document.total,
    }


def _by_position(rows):
    return sorted(rows, key=lambda r: int(r.get("position") or 0))


# ── Documents ─────────────────────────────────────────────────────────────


def purchase_order_from_row(row, line_rows_, charge_rows_, suppliers, items) -> PurchaseOrder:
    supplier_id = row.get("supplier_id") or None
    return PurchaseOrder(
        id=row["id"],
        number=row.get("po_number") or "",
        supplier_id=supplier_id,
        supplier=suppliers.get(supplier_id) if supplier_id else None,
        date=_parse_date(row.get("date")),
        expected_delivery=_parse_date(row.get("expected_delivery")),
        lines=[line_from_row(r, items) for r in _by_position(line_rows_)],
        charges=[charge_from_row(r) for r in _by_position(charge_rows_)],
        status=_enum(PurchaseOrderStatus, row.get("status"), PurchaseOrderStatus.DRAFT),
        payment_terms=row.get("payment_terms") or None,
        notes=row.get("notes") or None,
        created_at=_parse_datetime(row.get("created_at")),
        **_totals_fields(row),
    )


def purchase_order_to_row(order: PurchaseOrder) -> dict:
    return _stamped({
        "po_number": order.number,
        "supplier_id": order.supplier_id,
        "supplier_name": order.supplier.name if order.supplier else None,
        "date": order.date,
        "expected_delivery": order.expected_delivery,
        "status": order.status.value,
        "payment_terms": order.payment_terms,
        "notes": order.notes,
        **_totals_row(order),
    }, order.created_at)


def goods_receipt_from_row(row, line_rows_, charge_rows_, suppliers, items) -> GoodsReceipt:
    supplier_id = row.get("supplier_id") or None
    return GoodsReceipt(
        id=row["id"],
        number=row.get("gr_number") or "",
        purchase_order_id=row.get("purchase_order_id") or None,
        supplier_id=supplier_id,
        supplier=suppliers.get(supplier_id) if supplier_id else None,
        date=_parse_date(row.get("receipt_date")),
        lines=[receipt_line_from_row(r, items) for r in _by_position(line_rows_)],
        charges=[charge_from_row(r) for r in _by_position(charge_rows_)],
        status=_enum(GoodsReceiptStatus, row.get("status"), GoodsReceiptStatus.RECEIVED),
        notes=row.get("notes") or None,
        created_at=_parse_datetime(row.get("created_at")),
        **_totals_fields(row),
    )


def goods_receipt_to_row(receipt: GoodsReceipt) -> dict:
    return _stamped({
        "gr_number": receipt.number,
        "purchase_order_id": receipt.purchase_order_id,
        "supplier_id": receipt.supplier_id,
        "supplier_name": receipt.supplier.name if receipt.supplier else None,
        "receipt_date": receipt.date,
        "status": receipt.status.value,
        "notes": receipt.notes,
        **_totals_row(receipt),
    }, receipt.created_at)


def proforma_from_row(row, line_rows_, charge_rows_, items) -> ProformaInvoice:
    return ProformaInvoice(
        id=row["id"],
        number=row.get("invoice_number") or "",
        buyer=BuyerInfo(
            name=row.get("customer_name") or "",
            email=row.get("customer_email") or "",
            phone=row.get("customer_phone") or "",
            address=row.get("customer_address") or "",
            contact_person=row.get("customer_contact") or "",
            tax_number=row.get("customer_gst") or "",
        ),
        date=_parse_date(row.get("date")),
        valid_until=_parse_date(row.get("valid_until")),
        lines=[line_from_row(r, items) for r in _by_position(line_rows_)],
        charges=[charge_from_row(r) for r in _by_position(charge_rows_)],
        status=_enum(ProformaStatus, row.get("status"), ProformaStatus.SENT),
        payment_terms=row.get("payment_terms") or None,
        notes=row.get("notes") or None,
        created_at=_parse_datetime(row.get("created_at")),
        **_totals_fields(row),
    )


def proforma_to_row(invoice: ProformaInvoice) -> dict:
    buyer = invoice.buyer or BuyerInfo(name="")
    return _stamped({
        "invoice_number": invoice.number,
        "customer_name": buyer.name,
        "customer_email": buyer.email,
        "customer_phone": buyer.phone,
        "customer_address": buyer.address,
        "customer_contact": buyer.contact_person,
        "customer_gst": buyer.tax_number,
        "date": invoice.date,
        "valid_until": invoice.valid_until,
        "status": invoice.status.value,
        "payment_terms": invoice.payment_terms,
        "notes": invoice.notes,
        **_totals_row(invoice),
    }, invoice.created_at)


# ── Whole-state mapping ───────────────────────────────────────────────────


def _group(rows, fk: str) -> dict[str, list[dict]]:
    grouped: dict[str, list[dict]] = {}
    for row in rows:
        grouped.setdefault(row.get(fk), []).append(row)
    return grouped


def load_collections(rows: dict[str, list[dict]]) -> dict[str, list]:
    """Map one full read of every collection into per-kind entity lists.

    Suppliers are embedded on documents and catalog items on document
    lines here, once; row order within each kind is preserved.
    """
    suppliers = {r["id"]: supplier_from_row(r) for r in rows.get(SUPPLIERS, [])}
    items = {r["id"]: item_from_row(r) for r in rows.get(INVENTORY_ITEMS, [])}

    def children(parent: str):
        lines, charges, fk = DOCUMENT_CHILDREN[parent]
        return _group(rows.get(lines, []), fk), _group(rows.get(charges, []), fk)

    po_lines, po_charges = children(PURCHASE_ORDERS)
    gr_lines, gr_charges = children(GOODS_RECEIPTS)
    pi_lines, pi_charges = children(PROFORMA_INVOICES)

    return {
        INVENTORY_ITEMS: list(items.values()),
        SUPPLIERS: list(suppliers.values()),
        PURCHASE_ORDERS: [
            purchase_order_from_row(
                r, po_lines.get(r["id"], []), po_charges.get(r["id"], []), suppliers, items
            )
            for r in rows.get(PURCHASE_ORDERS, [])
        ],
        GOODS_RECEIPTS: [
            goods_receipt_from_row(
                r, gr_lines.get(r["id"], []), gr_charges.get(r["id"], []), suppliers, items
            )
            for r in rows.get(GOODS_RECEIPTS, [])
        ],
        PROFORMA_INVOICES: [
            proforma_from_row(r, pi_lines.get(r["id"], []), pi_charges.get(r["id"], []), items)
            for r in rows.get(PROFORMA_INVOICES, [])
        ],
        PRODUCTS: [product_from_row(r) for r in rows.get(PRODUCTS, [])],
        CUSTOMERS: [customer_from_row(r) for r in rows.get(CUSTOMERS, [])],
        CUSTOMER_ACTIVITIES: [activity_from_row(r) for r in rows.get(CUSTOMER_ACTIVITIES, [])],
        TRANSACTIONS: chronological(entry_from_row(r) for r in rows.get(TRANSACTIONS, [])),
    }


def dump_collections(collections: dict[str, list]) -> dict[str, list[dict]]:
    """Inverse of :func:`load_collections`: entity lists back to rows."""
    rows: dict[str, list[dict]] = {name: [] for name in REFRESH_READS}
    flat = {
        INVENTORY_ITEMS: item_to_row,
        SUPPLIERS: supplier_to_row,
        PRODUCTS: product_to_row,
        CUSTOMERS: customer_to_row,
        CUSTOMER_ACTIVITIES: activity_to_row,
        TRANSACTIONS: entry_to_row,
    }
    for kind, to_row in flat.items():
        rows[kind] = [_keyed(e.id, to_row(e)) for e in collections.get(kind, [])]

    headers = {
        PURCHASE_ORDERS: purchase_order_to_row,
        GOODS_RECEIPTS: goods_receipt_to_row,
        PROFORMA_INVOICES: proforma_to_row,
    }
    for kind, to_row in headers.items():
        lines, charges, fk = DOCUMENT_CHILDREN[kind]
        for document in collections.get(kind, []):
            rows[kind].append(_keyed(document.id, to_row(document)))
            if kind == GOODS_RECEIPTS:
                rows[lines].extend(receipt_line_rows(document.lines, document.id))
            else:
                rows[lines].extend(line_rows(document.lines, fk, document.id))
            rows[charges].extend(charge_rows(document.charges, fk, document.id))
    return rows
