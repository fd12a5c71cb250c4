"""Catalog products offered on proforma invoices."""

from __future__ import annotations

from domain.models import Product
from domain.validation import check_non_negative, require
from stockflow.data import mappers
from stockflow.data.collections import PRODUCTS
from stockflow.data.mutations import local_id
from stockflow.services.base import BaseService


class ProductService(BaseService):
    kind = PRODUCTS
    resource = "Product"

    def add_product(
        self, name: str, price=0, unit: str = "piece", description: str | None = None
    ) -> Product:
        require(name, "name", "Product name")
        product = Product(
            id=local_id(),
            name=name.strip(),
            price=check_non_negative(price, "price"),
            unit=unit or "piece",
            description=description,
            created_at=self.now(),
        )
        return self._insert(
            "add_product", product, mappers.product_to_row, mappers.product_from_row
        )

    def update_product(self, product_id: str, **changes) -> Product:
        if "name" in changes:
            require(changes["name"], "name", "Product name")
        if "price" in changes:
            changes["price"] = check_non_negative(changes["price"], "price")
        return self._update("update_product", product_id, changes, mappers.PRODUCT_COLUMNS)

    def remove_product(self, product_id: str) -> None:
        self._delete("remove_product", product_id)
