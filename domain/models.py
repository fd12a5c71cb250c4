"""Domain models: pure Python, zero external dependencies.

Only stdlib imports allowed: dataclasses, datetime, decimal, enum.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Union

ZERO = Decimal("0")


class Direction(Enum):
    """Direction of an inventory ledger movement."""

    IN = "IN"
    OUT = "OUT"


class PurchaseOrderStatus(Enum):
    """Lifecycle status of a purchase order."""

    DRAFT = "DRAFT"
    SENT = "SENT"
    RECEIVED = "RECEIVED"
    PARTIAL = "PARTIAL"
    CANCELLED = "CANCELLED"


class GoodsReceiptStatus(Enum):
    """Inspection status of a goods receipt."""

    RECEIVED = "RECEIVED"
    QUALITY_CHECK = "QUALITY_CHECK"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class ProformaStatus(Enum):
    """Status of a proforma invoice."""

    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    CANCELLED = "CANCELLED"


class CustomerStatus(Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    LEAD = "LEAD"


class CustomerSource(Enum):
    MANUAL = "MANUAL"
    PROFORMA_INVOICE = "PROFORMA_INVOICE"


# ── Tax policy ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TaxDisabled:
    """No tax is applied; both components are zero."""


@dataclass(frozen=True)
class FixedDualRate:
    """Two independently configured rates (percent), e.g. 9% + 9%."""

    rate_a: Decimal
    rate_b: Decimal


@dataclass(frozen=True)
class CustomRate:
    """One headline rate (percent) split evenly into two components."""

    rate: Decimal


TaxPolicy = Union[TaxDisabled, FixedDualRate, CustomRate]


@dataclass(frozen=True)
class TaxSettings:
    """Business-wide default tax configuration."""

    enabled: bool = True
    rate_a: Decimal = Decimal("9")
    rate_b: Decimal = Decimal("9")


# ── Value Objects ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class LineItem:
    """A document line. ``line_total`` is always derived, never stored."""

    name: str
    quantity: Decimal
    unit_price: Decimal
    unit: str = "piece"
    item_id: str | None = None
    description: str | None = None
    id: str | None = None
    item: InventoryItem | None = field(default=None, compare=False, repr=False)

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class GoodsReceiptItem:
    """A received line; totals are driven by the received quantity."""

    name: str
    received_quantity: Decimal
    unit_price: Decimal
    ordered_quantity: Decimal | None = None
    unit: str = "piece"
    item_id: str | None = None
    notes: str | None = None
    id: str | None = None
    item: InventoryItem | None = field(default=None, compare=False, repr=False)

    @property
    def quantity(self) -> Decimal:
        return self.received_quantity

    @property
    def line_total(self) -> Decimal:
        return self.received_quantity * self.unit_price


@dataclass(frozen=True)
class AdditionalCharge:
    """A named charge (freight, packing, ...) added before tax."""

    name: str
    amount: Decimal
    id: str | None = None


@dataclass(frozen=True)
class Totals:
    """Derived financial totals of a document."""

    subtotal: Decimal = ZERO
    tax_a: Decimal = ZERO
    tax_b: Decimal = ZERO
    total: Decimal = ZERO

    @property
    def tax_amount(self) -> Decimal:
        return self.tax_a + self.tax_b


@dataclass(frozen=True)
class BuyerInfo:
    """Buyer block printed on a proforma invoice."""

    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    contact_person: str = ""
    tax_number: str = ""


# ── Entities ────────────────────────────────────────────────────────────


@dataclass
class Supplier:
    """A supplier / vendor."""

    name: str
    contact_person: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    tax_number: str = ""
    created_at: datetime | None = None
    id: str | None = None


@dataclass
class InventoryItem:
    """A stocked catalog item. ``current_stock`` never goes below zero."""

    name: str
    unit: str = "piece"
    current_stock: Decimal = ZERO
    min_stock: Decimal = ZERO
    max_stock: Decimal = Decimal("1000")
    unit_price: Decimal = ZERO
    sku: str = ""
    description: str = ""
    category: str = ""
    supplier_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    id: str | None = None


@dataclass(frozen=True)
class TransactionLedgerEntry:
    """Append-only stock movement record.

    ``sequence`` is the ordinal of the source line and breaks ties
    between entries sharing the same timestamp.
    """

    item_id: str
    direction: Direction
    quantity: Decimal
    unit_price: Decimal
    total_value: Decimal
    reason: str
    timestamp: datetime
    reference: str | None = None
    item_name: str = ""
    notes: str | None = None
    sequence: int = 0
    id: str | None = None


@dataclass
class Product:
    """A catalog product offered on proforma invoices."""

    name: str
    price: Decimal = ZERO
    unit: str = "piece"
    description: str | None = None
    created_at: datetime | None = None
    id: str | None = None


@dataclass
class Customer:
    """A customer record, fed manually or from proforma invoices."""

    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    contact_person: str = ""
    tax_number: str = ""
    status: CustomerStatus = CustomerStatus.ACTIVE
    source: CustomerSource = CustomerSource.MANUAL
    total_proformas: int = 0
    total_value: Decimal = ZERO
    last_contact: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    id: str | None = None


@dataclass
class CustomerActivity:
    """A CRM note attached to a customer (call, email, meeting, ...)."""

    customer_id: str
    type: str
    description: str
    date: datetime | None = None
    id: str | None = None


@dataclass
class FinancialDocument:
    """Fields shared by purchase orders, goods receipts and proformas.

    Invariant: ``total == subtotal + sum(charges) + tax_a + tax_b``, with
    the four figures always produced together by the totals calculator.
    """

    number: str
    date: date | None = None
    lines: list = field(default_factory=list)
    charges: list[AdditionalCharge] = field(default_factory=list)
    subtotal: Decimal = ZERO
    tax_a: Decimal = ZERO
    tax_b: Decimal = ZERO
    total: Decimal = ZERO
    notes: str | None = None
    created_at: datetime | None = None
    id: str | None = None

    @property
    def totals(self) -> Totals:
        return Totals(self.subtotal, self.tax_a, self.tax_b, self.total)

    @property
    def charges_total(self) -> Decimal:
        return sum((c.amount for c in self.charges), ZERO)


@dataclass
class PurchaseOrder(FinancialDocument):
    supplier_id: str | None = None
    supplier: Supplier | None = None
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    expected_delivery: date | None = None
    payment_terms: str | None = None


@dataclass
class GoodsReceipt(FinancialDocument):
    supplier_id: str | None = None
    supplier: Supplier | None = None
    purchase_order_id: str | None = None
    status: GoodsReceiptStatus = GoodsReceiptStatus.RECEIVED


@dataclass
class ProformaInvoice(FinancialDocument):
    buyer: BuyerInfo | None = None
    status: ProformaStatus = ProformaStatus.SENT
    payment_terms: str | None = None
    valid_until: date | None = None


# ── Result Value Objects ────────────────────────────────────────────────


@dataclass(frozen=True)
class ReceiptProjection:
    """Stock levels and ledger entries produced by one goods receipt.

    ``skipped`` holds the indexes of receipt lines that did not touch
    inventory (free-text lines, unknown items, zero quantities).
    """

    stock_levels: dict[str, Decimal] = field(default_factory=dict)
    entries: tuple[TransactionLedgerEntry, ...] = ()
    skipped: tuple[int, ...] = ()


@dataclass(frozen=True)
class StockAlert:
    """Read-only low-stock warning for one item."""

    item_id: str
    name: str
    current_stock: Decimal
    min_stock: Decimal
    shortfall: Decimal


@dataclass(frozen=True)
class MovementSummary:
    """Read-only aggregate of ledger movements for one item."""

    item_id: str
    quantity_in: Decimal
    quantity_out: Decimal
    value_in: Decimal
    value_out: Decimal

    @property
    def net_quantity(self) -> Decimal:
        return self.quantity_in - self.quantity_out
