"""Supplier records."""

from __future__ import annotations

from domain.models import Supplier
from domain.validation import require
from stockflow.data import mappers
from stockflow.data.collections import SUPPLIERS
from stockflow.data.mutations import local_id
from stockflow.services.base import BaseService


class SupplierService(BaseService):
    kind = SUPPLIERS
    resource = "Supplier"

    def add_supplier(
        self,
        name: str,
        contact_person: str = "",
        email: str = "",
        phone: str = "",
        address: str = "",
        tax_number: str = "",
    ) -> Supplier:
        require(name, "name", "Supplier name")
        supplier = Supplier(
            id=local_id(),
            name=name.strip(),
            contact_person=contact_person,
            email=email,
            phone=phone,
            address=address,
            tax_number=tax_number,
            created_at=self.now(),
        )
        return self._insert(
            "add_supplier", supplier, mappers.supplier_to_row, mappers.supplier_from_row
        )

    def update_supplier(self, supplier_id: str, **changes) -> Supplier:
        if "name" in changes:
            require(changes["name"], "name", "Supplier name")
        return self._update("update_supplier", supplier_id, changes, mappers.SUPPLIER_COLUMNS)

    def remove_supplier(self, supplier_id: str) -> None:
        # Referencing items and documents may keep the old supplier_id; it
        # resolves to no supplier on the next load.
        self._delete("remove_supplier", supplier_id)
