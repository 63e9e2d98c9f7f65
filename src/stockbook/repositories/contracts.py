from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from stockbook.domain.models import (
    Product,
    Purchase,
    PurchasesTotals,
    Sale,
    SalesTotals,
    StockMovement,
)
from stockbook.repositories.queries import LedgerQuery


class ProductRepository(Protocol):
    def add_product(
        self,
        sku: str,
        name: str,
        quantity: int,
        price: float,
        description: Optional[str],
        category: Optional[str],
        image_url: Optional[str],
        now_iso: str,
    ) -> int: ...
    def sku_exists(self, sku: str, exclude_id: Optional[int] = None) -> bool: ...
    def get_product_by_id(self, product_id: int) -> Optional[Product]: ...
    def get_product_by_sku(self, sku: str) -> Optional[Product]: ...
    def list_products(self, search: Optional[str] = None, category: Optional[str] = None) -> list[Product]: ...
    def update_product(self, product_id: int, fields: Mapping[str, Any], now_iso: str) -> bool: ...
    def recent_movements(self, limit: int = 100, product_id: Optional[int] = None) -> list[StockMovement]: ...


class LedgerRepository(Protocol):
    def create_purchase(
        self,
        product_id: int,
        supplier_name: str,
        quantity: int,
        price: float,
        total: float,
        date_iso: str,
        invoice_number: Optional[str],
        notes: Optional[str],
        now_iso: str,
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
        date_iso: str,
        notes: Optional[str],
        now_iso: str,
    ) -> Sale: ...
    def deactivate_product_cascade(self, product_id: int, now_iso: str) -> bool: ...
    def sales_totals(self, query: LedgerQuery) -> SalesTotals: ...
    def purchases_totals(self, query: LedgerQuery) -> PurchasesTotals: ...
    def daily_sale_quantities(self, query: LedgerQuery) -> dict[str, int]: ...
    def daily_purchase_quantities(self, query: LedgerQuery) -> dict[str, int]: ...
    def count_sales(self, query: LedgerQuery) -> int: ...
    def count_purchases(self, query: LedgerQuery) -> int: ...
    def list_sales(self, query: LedgerQuery, limit: Optional[int] = None, offset: int = 0) -> list[Sale]: ...
    def list_purchases(self, query: LedgerQuery, limit: Optional[int] = None, offset: int = 0) -> list[Purchase]: ...
