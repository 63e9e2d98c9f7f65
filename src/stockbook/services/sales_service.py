from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from stockbook.domain.errors import ValidationError
from stockbook.domain.models import Sale
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


class SalesService:
    def __init__(self, repo, uow_factory: Callable[[], UnitOfWork] | None = None):
        self.repo = repo
        self.uow_factory = uow_factory or (lambda: RepositoryUnitOfWork(repo))

    def create_sale(
        self,
        product_id: Any,
        customer_name: str,
        quantity: Any,
        sale_price: Any,
        purchase_price: Any,
        due: Any = 0,
        date: Any = None,
        notes: Optional[str] = None,
    ) -> Sale:
        """
        purchase_price is the unit cost at the time of sale, supplied by the
        caller; it is never read back from the catalog price.

          total  = quantity * sale_price
          profit = quantity * (sale_price - purchase_price)
        """
        pid = parse_id(product_id)
        customer_name = require_text(customer_name, "Customer name")
        qty = as_quantity(quantity)
        unit_price = as_number(sale_price, "Sale price")
        unit_cost = as_number(purchase_price, "Purchase price")
        due_amount = as_number(0 if due is None else due, "Due")
        if qty <= 0:
            raise ValidationError("Quantity must be >= 1.")
        if unit_price < 0:
            raise ValidationError("Sale price must be >= 0.")
        if unit_cost < 0:
            raise ValidationError("Purchase price must be >= 0.")
        if due_amount < 0:
            raise ValidationError("Due must be >= 0.")
        date_iso = optional_entry_date(date)

        total = finite_amount(qty * unit_price, "Total")
        profit = finite_amount(qty * (unit_price - unit_cost), "Profit")

        with self.uow_factory() as uow:
            sale = uow.create_sale(
                product_id=pid,
                customer_name=customer_name,
                quantity=qty,
                sale_price=unit_price,
                purchase_price=unit_cost,
                total=total,
                profit=profit,
                due=due_amount,
                date_iso=date_iso,
                notes=optional_text(notes),
            )
        log.info(
            "sale_created sale_id=%s product_id=%s qty=%s total=%.2f profit=%.2f due=%.2f",
            sale.id, pid, qty, total, profit, due_amount,
        )
        return sale
