"""Cross-document reconciliation rules: pure functions, zero external dependencies.

Only stdlib and domain imports allowed.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from domain.models import (
    ZERO,
    Customer,
    CustomerSource,
    CustomerStatus,
    GoodsReceipt,
    GoodsReceiptStatus,
    ProformaInvoice,
    PurchaseOrder,
    PurchaseOrderStatus,
)
from domain.money import to_decimal


def derive_purchase_order_status(
    order: PurchaseOrder, receipts: list[GoodsReceipt]
) -> PurchaseOrderStatus | None:
    """Status implied by the accepted receipts linked to *order*.

    Returns None when the receipts say nothing (no accepted receipt, or
    nothing actually received), so the current status stands.
    """
    if order.status is PurchaseOrderStatus.CANCELLED:
        return PurchaseOrderStatus.CANCELLED

    accepted = [
        r for r in receipts
        if r.purchase_order_id == order.id and r.status is GoodsReceiptStatus.ACCEPTED
    ]
    if not accepted:
        return None

    ordered: dict[str | None, Decimal] = {}
    for line in order.lines:
        ordered[line.item_id] = ordered.get(line.item_id, ZERO) + to_decimal(line.quantity)

    received: dict[str | None, Decimal] = {}
    for receipt in accepted:
        for line in receipt.lines:
            received[line.item_id] = received.get(line.item_id, ZERO) + to_decimal(
                line.received_quantity
            )

    if not any(qty > 0 for qty in received.values()):
        return None

    fulfilled = all(received.get(item_id, ZERO) >= qty for item_id, qty in ordered.items())
    return PurchaseOrderStatus.RECEIVED if fulfilled else PurchaseOrderStatus.PARTIAL


def reconcile_purchase_orders(
    orders: list[PurchaseOrder],
    receipts: list[GoodsReceipt],
    affected_order_id: str | None = None,
) -> list[PurchaseOrder]:
    """Return the orders whose status changes given *receipts*.

    With *affected_order_id* (a receipt was deleted) only that order is
    reconsidered, and it falls back to SENT once no receipt links to it.
    """
    changed = []
    for order in orders:
        if order.status is PurchaseOrderStatus.CANCELLED:
            continue
        if affected_order_id is not None and order.id != affected_order_id:
            continue

        derived = derive_purchase_order_status(order, receipts)
        if derived is not None and derived is not order.status:
            changed.append(replace(order, status=derived))
            continue

        still_linked = any(r.purchase_order_id == order.id for r in receipts)
        if (
            derived is None
            and affected_order_id == order.id
            and not still_linked
            and order.status in (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.PARTIAL)
        ):
            changed.append(replace(order, status=PurchaseOrderStatus.SENT))
    return changed


def find_customer_by_email(customers: list[Customer], email: str) -> Customer | None:
    if not email:
        return None
    wanted = email.strip().lower()
    for customer in customers:
        if customer.email and customer.email.strip().lower() == wanted:
            return customer
    return None


def sync_customer_from_proforma(
    customers: list[Customer], invoice: ProformaInvoice, now: datetime
) -> Customer:
    """Return the customer record after booking *invoice* against it.

    The buyer is matched by e-mail; an existing customer gets refreshed
    contact data and updated counters, otherwise a new customer is built
    (without id) with ``source=PROFORMA_INVOICE``.
    """
    buyer = invoice.buyer
    existing = find_customer_by_email(customers, buyer.email) if buyer else None
    if existing is not None:
        return replace(
            existing,
            name=buyer.name,
            contact_person=buyer.contact_person,
            phone=buyer.phone,
            address=buyer.address,
            tax_number=buyer.tax_number,
            total_proformas=existing.total_proformas + 1,
            total_value=existing.total_value + invoice.total,
            last_contact=now,
            updated_at=now,
        )
    return Customer(
        name=buyer.name if buyer else "",
        email=buyer.email if buyer else "",
        phone=buyer.phone if buyer else "",
        address=buyer.address if buyer else "",
        contact_person=buyer.contact_person if buyer else "",
        tax_number=buyer.tax_number if buyer else "",
        status=CustomerStatus.ACTIVE,
        source=CustomerSource.PROFORMA_INVOICE,
        total_proformas=1,
        total_value=invoice.total,
        last_contact=now,
        created_at=now,
        updated_at=now,
    )
