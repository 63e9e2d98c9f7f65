from .models import Product, Purchase, Sale, StockMovement, SalesTotals, PurchasesTotals, Report, Page
from .errors import (
    AppError,
    ValidationError,
    NotFoundError,
    ConflictError,
    InsufficientStockError,
    InvalidDateRangeError,
)

__all__ = [
    "Product",
    "Purchase",
    "Sale",
    "StockMovement",
    "SalesTotals",
    "PurchasesTotals",
    "Report",
    "Page",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "InsufficientStockError",
    "InvalidDateRangeError",
]
