#!/usr/bin/env python3
"""Load a small demo data set through the services.

Usage:
    PYTHONPATH=. python scripts/load_demo_data.py

Creates two suppliers, four stocked items, a purchase order, a goods
receipt fulfilling half of it, and one proforma invoice.
"""
import os
import sys
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from domain.models import (
    AdditionalCharge, BuyerInfo, GoodsReceiptItem, GoodsReceiptStatus, LineItem,
    PurchaseOrderStatus,
)
from stockflow.app import build_app


def main():
    app = build_app()

    steel = app.suppliers.add_supplier(
        "Steelworks Ltd", contact_person="R. Mehta", email="sales@steelworks.example",
        tax_number="27AAACS1234F1Z5",
    )
    fasteners = app.suppliers.add_supplier("Fastener Depot", email="orders@fasteners.example")

    rod = app.inventory.add_item(
        "Steel rod 12mm", unit="m", current_stock=40, min_stock=50, unit_price="82.50",
        sku="7214", category="Raw material", supplier_id=steel.id,
    )
    sheet = app.inventory.add_item(
        "MS sheet 2mm", unit="sheet", current_stock=12, min_stock=10, unit_price=1450,
        sku="7208", category="Raw material", supplier_id=steel.id,
    )
    bolt = app.inventory.add_item(
        "Hex bolt M10", unit="piece", current_stock=900, min_stock=500, unit_price="3.20",
        sku="7318", category="Consumables", supplier_id=fasteners.id,
    )
    app.inventory.add_item(
        "Washer M10", unit="piece", current_stock=120, min_stock=400, unit_price="0.45",
        sku="7318", category="Consumables", supplier_id=fasteners.id,
    )

    order = app.purchase_orders.add_purchase_order(
        steel.id,
        [
            LineItem(name=rod.name, item_id=rod.id, quantity=Decimal("200"),
                     unit_price=Decimal("82.50"), unit="m"),
            LineItem(name=sheet.name, item_id=sheet.id, quantity=Decimal("20"),
                     unit_price=Decimal("1450"), unit="sheet"),
        ],
        charges=[AdditionalCharge("Freight", Decimal("1200"))],
        status=PurchaseOrderStatus.SENT,
        payment_terms="30 days",
    )

    app.goods_receipts.add_goods_receipt(
        steel.id,
        [
            GoodsReceiptItem(name=rod.name, item_id=rod.id, ordered_quantity=Decimal("200"),
                             received_quantity=Decimal("100"), unit_price=Decimal("82.50"),
                             unit="m"),
            GoodsReceiptItem(name="Loading charges (not stocked)",
                             received_quantity=Decimal("1"), unit_price=Decimal("350")),
        ],
        purchase_order_id=order.id,
        status=GoodsReceiptStatus.ACCEPTED,
    )

    app.inventory.transact_item(bolt.id, "OUT", 250, "Issued to assembly line 2")

    app.proformas.add_proforma_invoice(
        BuyerInfo(name="Orion Fabricators", email="purchase@orion.example",
                  contact_person="A. Rao"),
        [LineItem(name="Fabricated bracket", quantity=Decimal("50"),
                  unit_price=Decimal("240"))],
        custom_rate=12,
    )

    print(f"Demo data loaded: {len(app.cache.inventory_items)} items, "
          f"{len(app.cache.transactions)} ledger entries, "
          f"PO {order.number} is {app.purchase_orders.get(order.id).status.value}")


if __name__ == "__main__":
    main()
