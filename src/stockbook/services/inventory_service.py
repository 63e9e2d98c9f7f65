from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from stockbook.domain.dates import now_iso
from stockbook.domain.errors import ConflictError, NotFoundError, ValidationError
from stockbook.domain.models import Product, StockMovement
from stockbook.domain.validation import (
    as_number,
    as_quantity,
    optional_id,
    optional_text,
    parse_id,
    require_text,
)
from stockbook.repositories.contracts import ProductRepository
from stockbook.repositories.unit_of_work import RepositoryUnitOfWork, UnitOfWork

log = logging.getLogger("stockbook.ledger")

OPTIONAL_TEXT_FIELDS = ("description", "category", "image_url")


class InventoryService:
    def __init__(
        self,
        repo: ProductRepository,
        uow_factory: Callable[[], UnitOfWork] | None = None,
    ):
        self.repo = repo
        self.uow_factory = uow_factory or (lambda: RepositoryUnitOfWork(repo))

    def list_products(self, search: Optional[str] = None, category: Optional[str] = None) -> list[Product]:
        return self.repo.list_products(optional_text(search), optional_text(category))

    def get_product(self, product_id: Any) -> Product:
        p = self.repo.get_product_by_id(parse_id(product_id))
        if not p:
            raise NotFoundError("Product not found.")
        return p

    def get_product_by_sku(self, sku: str) -> Product:
        p = self.repo.get_product_by_sku((sku or "").strip())
        if not p:
            raise NotFoundError("Product not found.")
        return p

    def create_product(
        self,
        sku: str,
        name: str,
        quantity: Any = 0,
        price: Any = 0,
        description: Optional[str] = None,
        category: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Product:
        sku = require_text(sku, "SKU")
        name = require_text(name, "Name")
        quantity = as_quantity(quantity)
        price = as_number(price, "Price")
        if quantity < 0:
            raise ValidationError("Quantity must be >= 0.")
        if price < 0:
            raise ValidationError("Price must be >= 0.")
        if self.repo.sku_exists(sku):
            raise ConflictError(f"SKU already exists: {sku}")

        pid = self.repo.add_product(
            sku,
            name,
            quantity,
            price,
            optional_text(description),
            optional_text(category),
            optional_text(image_url),
            now_iso(),
        )
        log.info("product_created product_id=%s sku=%s quantity=%s", pid, sku, quantity)
        return self.get_product(pid)

    def update_product(self, product_id: Any, **changes: Any) -> Product:
        """Partial update. ``quantity`` is a manual stock correction and is journalled."""
        pid = parse_id(product_id)
        fields: dict[str, Any] = {}

        if "name" in changes:
            fields["name"] = require_text(changes["name"], "Name")
        if "sku" in changes:
            fields["sku"] = require_text(changes["sku"], "SKU")
            if self.repo.sku_exists(fields["sku"], exclude_id=pid):
                raise ConflictError(f"SKU already exists: {fields['sku']}")
        if "price" in changes:
            fields["price"] = as_number(changes["price"], "Price")
            if fields["price"] < 0:
                raise ValidationError("Price must be >= 0.")
        if "quantity" in changes:
            fields["quantity"] = as_quantity(changes["quantity"])
            if fields["quantity"] < 0:
                raise ValidationError("Quantity must be >= 0.")
            fields["notes"] = optional_text(changes.get("notes"))
        for column in OPTIONAL_TEXT_FIELDS:
            if column in changes:
                fields[column] = optional_text(changes[column])

        unknown = set(changes) - set(fields) - {"notes"}
        if unknown:
            raise ValidationError(f"Unknown product field(s): {', '.join(sorted(unknown))}")

        updated = self.repo.update_product(pid, fields, now_iso())
        if not updated:
            raise NotFoundError("Product not found.")
        if "quantity" in fields:
            log.info("stock_adjusted product_id=%s quantity=%s", pid, fields["quantity"])
        return self.get_product(pid)

    def remove_product(self, product_id: Any) -> None:
        pid = parse_id(product_id)
        with self.uow_factory() as uow:
            removed = uow.remove_product(pid)
        if not removed:
            raise NotFoundError("Product not found.")
        log.info("product_removed product_id=%s", pid)

    def recent_movements(self, limit: int = 100, product_id: Any = None) -> list[StockMovement]:
        limit = as_quantity(limit, "Limit")
        if limit <= 0:
            raise ValidationError("Limit must be >= 1.")
        return self.repo.recent_movements(limit, optional_id(product_id))
