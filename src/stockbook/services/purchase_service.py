from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from stockbook.domain.errors import ValidationError
from stockbook.domain.models import Purchase
from stockbook.domain.validation import (
    as_number,
    as_quantity,
    finite_amount,
    optional_entry_date,
    optional_text,
    parse_id,
    require_text,
)
from stockbook.repositories.unit_of_work import RepositoryUnitOfWork, UnitOfWork

log = logging.getLogger("stockbook.ledger")


class PurchaseService:
    def __init__(self, repo, uow_factory: Callable[[], UnitOfWork] | None = None):
        self.repo = repo
        self.uow_factory = uow_factory or (lambda: RepositoryUnitOfWork(repo))

    def create_purchase(
        self,
        product_id: Any,
        supplier_name: str,
        quantity: Any,
        price: Any,
        date: Any = None,
        invoice_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Purchase:
        """Record stock coming in and add it to the product in one transaction.

        total = quantity * price
        """
        pid = parse_id(product_id)
        supplier_name = require_text(supplier_name, "Supplier name")
        qty = as_quantity(quantity)
        unit_cost = as_number(price, "Price")
        if qty <= 0:
            raise ValidationError("Quantity must be >= 1.")
        if unit_cost < 0:
            raise ValidationError("Price must be >= 0.")
        date_iso = optional_entry_date(date)

        total = finite_amount(qty * unit_cost, "Total")

        with self.uow_factory() as uow:
            purchase = uow.create_purchase(
                product_id=pid,
                supplier_name=supplier_name,
                quantity=qty,
                price=unit_cost,
                total=total,
                date_iso=date_iso,
                invoice_number=optional_text(invoice_number),
                notes=optional_text(notes),
            )
        log.info(
            "purchase_created purchase_id=%s product_id=%s qty=%s total=%.2f",
            purchase.id, pid, qty, total,
        )
        return purchase
