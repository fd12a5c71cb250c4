"""Names of the store collections and the cache kinds they feed."""

INVENTORY_ITEMS = "inventory_items"
SUPPLIERS = "suppliers"
PURCHASE_ORDERS = "purchase_orders"
PURCHASE_ORDER_ITEMS = "purchase_order_items"
PURCHASE_ORDER_CHARGES = "purchase_order_additional_charges"
GOODS_RECEIPTS = "goods_receipts"
GOODS_RECEIPT_ITEMS = "goods_receipt_items"
GOODS_RECEIPT_CHARGES = "goods_receipt_additional_charges"
PROFORMA_INVOICES = "proforma_invoices"
PROFORMA_INVOICE_ITEMS = "proforma_invoice_items"
PROFORMA_INVOICE_CHARGES = "proforma_invoice_additional_charges"
PRODUCTS = "proforma_products"
CUSTOMERS = "customers"
CUSTOMER_ACTIVITIES = "customer_activities"
TRANSACTIONS = "inventory_transactions"

# Cache kinds, in the order a full refresh reads them. Each kind is keyed
# by the collection holding its top-level records.
CACHE_KINDS = (
    INVENTORY_ITEMS,
    SUPPLIERS,
    PURCHASE_ORDERS,
    GOODS_RECEIPTS,
    PROFORMA_INVOICES,
    PRODUCTS,
    CUSTOMERS,
    CUSTOMER_ACTIVITIES,
    TRANSACTIONS,
)

# Document collection -> (line collection, charge collection, foreign key).
DOCUMENT_CHILDREN = {
    PURCHASE_ORDERS: (PURCHASE_ORDER_ITEMS, PURCHASE_ORDER_CHARGES, "purchase_order_id"),
    GOODS_RECEIPTS: (GOODS_RECEIPT_ITEMS, GOODS_RECEIPT_CHARGES, "goods_receipt_id"),
    PROFORMA_INVOICES: (PROFORMA_INVOICE_ITEMS, PROFORMA_INVOICE_CHARGES, "proforma_invoice_id"),
}

# Parent collection -> [(child collection, foreign key)] deleted with it.
OWNED_CHILDREN = {
    INVENTORY_ITEMS: [(TRANSACTIONS, "item_id")],
    CUSTOMERS: [(CUSTOMER_ACTIVITIES, "customer_id")],
    **{
        parent: [(lines, fk), (charges, fk)]
        for parent, (lines, charges, fk) in DOCUMENT_CHILDREN.items()
    },
}

# Every collection a full refresh reads, top-level kinds first.
REFRESH_READS = CACHE_KINDS + tuple(
    child for lines, charges, _ in DOCUMENT_CHILDREN.values() for child in (lines, charges)
)
