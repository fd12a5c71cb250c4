import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


Money = Numeric(14, 2)
Quantity = Numeric(18, 4)


class Base(DeclarativeBase):
    pass


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    contact_person = Column(String)
    email = Column(String)
    phone = Column(String)
    address = Column(Text)
    gst_number = Column(String)
    created_at = Column(DateTime, default=_now)


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    hsn_code = Column(String)
    description = Column(Text)
    category = Column(String)
    current_stock = Column(Quantity, nullable=False, default=0)
    reorder_level = Column(Quantity, default=0)
    max_stock = Column(Quantity, default=1000)
    unit_price = Column(Quantity, default=0)
    unit = Column(String, default="piece")
    supplier_id = Column(String(36), ForeignKey("suppliers.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now)

    transactions = relationship(
        "InventoryTransaction", back_populates="item", cascade="all, delete-orphan"
    )


class InventoryTransaction(Base):
    __tablename__ = "inventory_transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    item_id = Column(String(36), ForeignKey("inventory_items.id", ondelete="CASCADE"))
    item_name = Column(String, nullable=False, default="")
    type = Column(String(3), nullable=False)
    quantity = Column(Quantity, nullable=False)
    unit_price = Column(Quantity)
    total_value = Column(Money)
    reason = Column(String, nullable=False)
    reference = Column(String)
    notes = Column(Text)
    sequence = Column(Integer, default=0)
    created_at = Column(DateTime, default=_now)

    item = relationship("InventoryItem", back_populates="transactions")

    __table_args__ = (
        Index("idx_transactions_item", "item_id"),
        Index("idx_transactions_reference", "reference"),
    )


class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    po_number = Column(String, nullable=False)
    supplier_id = Column(String(36), ForeignKey("suppliers.id", ondelete="SET NULL"))
    supplier_name = Column(String)
    date = Column(Date)
    expected_delivery = Column(Date)
    subtotal = Column(Money, default=0)
    tax_a = Column(Money, default=0)
    tax_b = Column(Money, default=0)
    total = Column(Money, default=0)
    status = Column(String, default="DRAFT")
    payment_terms = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=_now)

    items = relationship("PurchaseOrderItem", cascade="all, delete-orphan")
    charges = relationship("PurchaseOrderCharge", cascade="all, delete-orphan")

    __table_args__ = (Index("idx_purchase_orders_supplier", "supplier_id"),)


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    purchase_order_id = Column(
        String(36), ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, default=0)
    item_id = Column(String(36))
    item_name = Column(String, nullable=False, default="Item")
    description = Column(Text)
    quantity = Column(Quantity, nullable=False)
    rate = Column(Quantity, nullable=False)
    amount = Column(Money)
    unit = Column(String, default="piece")
    created_at = Column(DateTime, default=_now)


class PurchaseOrderCharge(Base):
    __tablename__ = "purchase_order_additional_charges"

    id = Column(String(36), primary_key=True, default=_uuid)
    purchase_order_id = Column(
        String(36), ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, default=0)
    name = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    created_at = Column(DateTime, default=_now)


class GoodsReceipt(Base):
    __tablename__ = "goods_receipts"

    id = Column(String(36), primary_key=True, default=_uuid)
    gr_number = Column(String, nullable=False)
    purchase_order_id = Column(String(36), ForeignKey("purchase_orders.id", ondelete="SET NULL"))
    supplier_id = Column(String(36), ForeignKey("suppliers.id", ondelete="SET NULL"))
    supplier_name = Column(String)
    receipt_date = Column(Date)
    subtotal = Column(Money, default=0)
    tax_a = Column(Money, default=0)
    tax_b = Column(Money, default=0)
    total = Column(Money, default=0)
    status = Column(String, default="RECEIVED")
    notes = Column(Text)
    created_at = Column(DateTime, default=_now)

    items = relationship("GoodsReceiptItem", cascade="all, delete-orphan")
    charges = relationship("GoodsReceiptCharge", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_goods_receipts_supplier", "supplier_id"),
        Index("idx_goods_receipts_po", "purchase_order_id"),
    )


class GoodsReceiptItem(Base):
    __tablename__ = "goods_receipt_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    goods_receipt_id = Column(
        String(36), ForeignKey("goods_receipts.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, default=0)
    item_id = Column(String(36))
    item_name = Column(String, nullable=False, default="Item")
    unit = Column(String, default="piece")
    quantity_ordered = Column(Quantity)
    quantity_received = Column(Quantity, nullable=False)
    unit_price = Column(Quantity, nullable=False)
    amount = Column(Money)
    notes = Column(Text)
    created_at = Column(DateTime, default=_now)


class GoodsReceiptCharge(Base):
    __tablename__ = "goods_receipt_additional_charges"

    id = Column(String(36), primary_key=True, default=_uuid)
    goods_receipt_id = Column(
        String(36), ForeignKey("goods_receipts.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, default=0)
    name = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    created_at = Column(DateTime, default=_now)


class ProformaInvoice(Base):
    __tablename__ = "proforma_invoices"

    id = Column(String(36), primary_key=True, default=_uuid)
    invoice_number = Column(String, nullable=False)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String)
    customer_phone = Column(String)
    customer_address = Column(Text)
    customer_contact = Column(String)
    customer_gst = Column(String)
    date = Column(Date)
    valid_until = Column(Date)
    subtotal = Column(Money, default=0)
    tax_a = Column(Money, default=0)
    tax_b = Column(Money, default=0)
    total = Column(Money, default=0)
    status = Column(String, default="SENT")
    payment_terms = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=_now)

    items = relationship("ProformaInvoiceItem", cascade="all, delete-orphan")
    charges = relationship("ProformaInvoiceCharge", cascade="all, delete-orphan")


class ProformaInvoiceItem(Base):
    __tablename__ = "proforma_invoice_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    proforma_invoice_id = Column(
        String(36), ForeignKey("proforma_invoices.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, default=0)
    item_id = Column(String(36))
    item_name = Column(String, nullable=False, default="Item")
    description = Column(Text)
    quantity = Column(Quantity, nullable=False)
    rate = Column(Quantity, nullable=False)
    amount = Column(Money)
    unit = Column(String, default="piece")
    created_at = Column(DateTime, default=_now)


class ProformaInvoiceCharge(Base):
    __tablename__ = "proforma_invoice_additional_charges"

    id = Column(String(36), primary_key=True, default=_uuid)
    proforma_invoice_id = Column(
        String(36), ForeignKey("proforma_invoices.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, default=0)
    name = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    created_at = Column(DateTime, default=_now)


class ProformaProduct(Base):
    __tablename__ = "proforma_products"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    description = Column(Text)
    price = Column(Quantity, default=0)
    unit = Column(String, default="piece")
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    email = Column(String)
    phone = Column(String)
    address = Column(Text)
    contact_person = Column(String)
    gst_number = Column(String)
    status = Column(String, default="ACTIVE")
    source = Column(String, default="MANUAL")
    total_proformas = Column(Integer, default=0)
    total_value = Column(Money, default=0)
    last_contact = Column(DateTime)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now)

    activities = relationship("CustomerActivity", cascade="all, delete-orphan")

    __table_args__ = (Index("idx_customers_email", "email"),)


class CustomerActivity(Base):
    __tablename__ = "customer_activities"

    id = Column(String(36), primary_key=True, default=_uuid)
    customer_id = Column(
        String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    type = Column(String, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, default=_now)
