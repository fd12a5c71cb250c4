"""Customers and their CRM activity log."""

from __future__ import annotations

import logging
from dataclasses import replace

from domain.models import Customer, CustomerActivity, CustomerSource, CustomerStatus, ProformaInvoice
from domain.reconciliation import find_customer_by_email, sync_customer_from_proforma
from domain.validation import require
from stockflow.data import mappers
from stockflow.data.collections import CUSTOMER_ACTIVITIES, CUSTOMERS
from stockflow.data.mutations import local_id
from stockflow.data.patches import Batch, Put, Remove, Swap
from stockflow.services.base import BaseService

logger = logging.getLogger(__name__)


class CustomerService(BaseService):
    kind = CUSTOMERS
    resource = "Customer"

    def add_customer(
        self,
        name: str,
        email: str = "",
        phone: str = "",
        address: str = "",
        contact_person: str = "",
        tax_number: str = "",
        status: CustomerStatus | str = CustomerStatus.ACTIVE,
    ) -> Customer:
        require(name, "name", "Customer name")
        if isinstance(status, str):
            status = CustomerStatus(status.upper())
        now = self.now()
        customer = Customer(
            id=local_id(),
            name=name.strip(),
            email=email,
            phone=phone,
            address=address,
            contact_person=contact_person,
            tax_number=tax_number,
            status=status,
            source=CustomerSource.MANUAL,
            created_at=now,
            updated_at=now,
        )
        return self._insert(
            "add_customer", customer, mappers.customer_to_row, mappers.customer_from_row
        )

    def update_customer(self, customer_id: str, **changes) -> Customer:
        if "name" in changes:
            require(changes["name"], "name", "Customer name")
        if isinstance(changes.get("status"), str):
            changes["status"] = CustomerStatus(changes["status"].upper())
        changes["updated_at"] = self.now()
        return self._update("update_customer", customer_id, changes, mappers.CUSTOMER_COLUMNS)

    def remove_customer(self, customer_id: str) -> None:
        activities = [a for a in self.cache.customer_activities if a.customer_id == customer_id]
        self._delete(
            "remove_customer",
            customer_id,
            *(Remove(CUSTOMER_ACTIVITIES, a.id) for a in activities),
        )

    def find_by_email(self, email: str) -> Customer | None:
        return find_customer_by_email(self.list(), email)

    # ── Activities ─────────────────────────────────────────────────────

    def activities_for(self, customer_id: str) -> list[CustomerActivity]:
        return [a for a in self.cache.customer_activities if a.customer_id == customer_id]

    def add_activity(self, customer_id: str, type: str, description: str) -> CustomerActivity:
        """Log a call, e-mail or meeting; the customer's last contact moves to now."""
        customer = self.get_or_404(customer_id)
        require(type, "type", "Activity type")
        require(description, "description", "Description")
        now = self.now()
        activity = CustomerActivity(
            id=local_id(),
            customer_id=customer_id,
            type=type,
            description=description,
            date=now,
        )
        provisional = activity.id
        contact = {"last_contact": now, "updated_at": now}

        def remote(saga):
            saga.update(CUSTOMERS, customer_id, contact)
            return saga.insert(CUSTOMER_ACTIVITIES, mappers.activity_to_row(activity))

        row = self.pipeline.run(
            "add_activity",
            Batch(
                Put(CUSTOMER_ACTIVITIES, activity),
                Put(CUSTOMERS, replace(customer, **contact)),
            ),
            remote,
            resync=self.resync(CUSTOMERS, customer_id),
            on_commit=lambda row: Swap(
                CUSTOMER_ACTIVITIES, provisional, mappers.activity_from_row(row)
            ),
        )
        return self.cache.get(CUSTOMER_ACTIVITIES, row["id"])

    # ── Proforma sync ──────────────────────────────────────────────────

    def plan_proforma_sync(self, invoice: ProformaInvoice):
        """Customer record after booking *invoice*, and the store step writing it.

        Returns ``(customer, write)`` where ``write(saga)`` persists the
        change and returns the stored row. New customers carry a local id.
        """
        synced = sync_customer_from_proforma(self.list(), invoice, self.now())
        if synced.id is None:
            synced = replace(synced, id=local_id())
            logger.info("New customer %r from proforma %s", synced.name, invoice.number)

            def write(saga):
                return saga.insert(CUSTOMERS, mappers.customer_to_row(synced))
        else:
            changes = mappers.changes_to_row(
                {attr: getattr(synced, attr) for attr in mappers.CUSTOMER_COLUMNS},
                mappers.CUSTOMER_COLUMNS,
            )

            def write(saga):
                return saga.update(CUSTOMERS, synced.id, changes)

        return synced, write
