from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from stockbook.domain.dates import now_iso
from stockbook.domain.models import Purchase, Sale


class UnitOfWork(Protocol):
    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def create_purchase(
        self,
        product_id: int,
        supplier_name: str,
        quantity: int,
        price: float,
        total: float,
        date_iso: Optional[str],
        invoice_number: Optional[str],
        notes: Optional[str],
    ) -> Purchase: ...
    def create_sale(
        self,
        product_id: int,
        customer_name: str,
        quantity: int,
        sale_price: float,
        purchase_price: float,
        total: float,
        profit: float,
        due: float,
        date_iso: Optional[str],
        notes: Optional[str],
    ) -> Sale: ...
    def remove_product(self, product_id: int) -> bool: ...


@dataclass
class RepositoryUnitOfWork:
    """Unit of Work adapter for transactional write use-cases.

    Each repository write method runs its own SQL transaction (stock
    mutation, ledger insert and movement journal commit together or not
    at all). This class stamps the write clock so services stay
    persistence-agnostic.
    """

    repo: object

    def __enter__(self) -> "RepositoryUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def create_purchase(
        self,
        product_id: int,
        supplier_name: str,
        quantity: int,
        price: float,
        total: float,
        date_iso: Optional[str],
        invoice_number: Optional[str],
        notes: Optional[str],
    ) -> Purchase:
        now = now_iso()
        return self.repo.create_purchase(
            product_id=product_id,
            supplier_name=supplier_name,
            quantity=quantity,
            price=price,
            total=total,
            date_iso=date_iso or now,
            invoice_number=invoice_number,
            notes=notes,
            now_iso=now,
        )

    def create_sale(
        self,
        product_id: int,
        customer_name: str,
        quantity: int,
        sale_price: float,
        purchase_price: float,
        total: float,
        profit: float,
        due: float,
        date_iso: Optional[str],
        notes: Optional[str],
    ) -> Sale:
        now = now_iso()
        return self.repo.create_sale(
            product_id=product_id,
            customer_name=customer_name,
            quantity=quantity,
            sale_price=sale_price,
            purchase_price=purchase_price,
            total=total,
            profit=profit,
            due=due,
            date_iso=date_iso or now,
            notes=notes,
            now_iso=now,
        )

    def remove_product(self, product_id: int) -> bool:
        return bool(self.repo.deactivate_product_cascade(product_id, now_iso()))
