from __future__ import annotations
from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Product:
    id: int
    sku: str
    name: str
    quantity: int
    price: float
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    active: int = 1


@dataclass(frozen=True)
class Purchase:
    id: int
    product_id: int
    supplier_name: str
    quantity: int
    price: float
    total: float
    date: str
    invoice_number: Optional[str] = None
    notes: Optional[str] = None
    deleted: int = 0


@dataclass(frozen=True)
class Sale:
    id: int
    product_id: int
    customer_name: str
    quantity: int
    sale_price: float
    purchase_price: float
    total: float
    profit: float
    due: float
    date: str
    notes: Optional[str] = None
    deleted: int = 0


@dataclass(frozen=True)
class StockMovement:
    id: int
    date: str
    product_id: int
    movement_type: str
    qty_delta: int
    stock_after: int
    reference_type: str
    reference_id: int
    notes: Optional[str]


@dataclass(frozen=True)
class SalesTotals:
    total: float = 0.0
    profit: float = 0.0
    due: float = 0.0
    quantity: int = 0


@dataclass(frozen=True)
class PurchasesTotals:
    total: float = 0.0
    quantity: int = 0


@dataclass(frozen=True)
class Report:
    start: str
    end: str
    product_id: Optional[int]
    sales: SalesTotals
    purchases: PurchasesTotals
    dates: list[str] = field(default_factory=list)
    sales_data: list[int] = field(default_factory=list)
    purchases_data: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    totals: SalesTotals | PurchasesTotals
