"""End-to-end tests for suppliers, products, customers and activities."""

from decimal import Decimal

import pytest

from domain.errors import NotFoundError, RemoteWriteError, ValidationError
from domain.models import CustomerStatus
from stockflow.data.collections import CUSTOMER_ACTIVITIES, CUSTOMERS, PRODUCTS, SUPPLIERS
from stockflow.data.mutations import is_local_id


class TestSuppliers:
    def test_crud(self, app):
        supplier = app.suppliers.add_supplier("Steelworks", tax_number="GST1")
        assert app.store.get(SUPPLIERS, supplier.id)["gst_number"] == "GST1"
        updated = app.suppliers.update_supplier(supplier.id, phone="555-0100")
        assert updated.phone == "555-0100"
        app.suppliers.remove_supplier(supplier.id)
        assert app.suppliers.list() == []
        assert app.store.get(SUPPLIERS, supplier.id) is None

    def test_failed_insert_leaves_no_trace(self, app):
        app.store.fail_on("insert", SUPPLIERS)
        with pytest.raises(RemoteWriteError):
            app.suppliers.add_supplier("Steelworks")
        assert app.suppliers.list() == []

    def test_remove_missing(self, app):
        with pytest.raises(NotFoundError):
            app.suppliers.remove_supplier("nope")


class TestProducts:
    def test_crud(self, app):
        product = app.products.add_product("Bracket", price="240.50")
        assert product.price == Decimal("240.50")
        assert app.products.update_product(product.id, price=250).price == Decimal("250")
        with pytest.raises(ValidationError):
            app.products.update_product(product.id, price=-1)
        app.products.remove_product(product.id)
        assert app.store.select(PRODUCTS) == []


class TestCustomers:
    def test_add_and_find(self, app):
        customer = app.customers.add_customer("Orion", email="buy@orion.example", status="lead")
        assert customer.status is CustomerStatus.LEAD
        assert not is_local_id(customer.id)
        assert app.customers.find_by_email("BUY@orion.example").id == customer.id

    def test_update_status(self, app):
        customer = app.customers.add_customer("Orion")
        updated = app.customers.update_customer(customer.id, status="inactive")
        assert updated.status is CustomerStatus.INACTIVE
        assert app.store.get(CUSTOMERS, customer.id)["status"] == "INACTIVE"

    def test_activity_moves_last_contact(self, app, clock):
        customer = app.customers.add_customer("Orion")
        clock.advance(days=2)
        activity = app.customers.add_activity(customer.id, "call", "Discussed Q3 order")
        assert not is_local_id(activity.id)
        assert app.customers.activities_for(customer.id) == [activity]
        assert app.customers.get(customer.id).last_contact == clock()

    def test_activity_failure_rolls_back_customer(self, app, clock):
        customer = app.customers.add_customer("Orion")
        app.store.fail_on("insert", CUSTOMER_ACTIVITIES)
        with pytest.raises(RemoteWriteError):
            app.customers.add_activity(customer.id, "call", "No answer")
        assert app.customers.activities_for(customer.id) == []
        assert app.customers.get(customer.id).last_contact is None

    def test_remove_cascades_activities(self, app):
        customer = app.customers.add_customer("Orion")
        app.customers.add_activity(customer.id, "email", "Sent catalogue")
        app.customers.remove_customer(customer.id)
        assert app.cache.customer_activities == []
        assert app.store.select(CUSTOMER_ACTIVITIES) == []
