from .inventory_service import InventoryService
from .sales_service import SalesService
from .purchase_service import PurchaseService
from .reporting_service import ReportingService
from .query_service import LedgerQueryService
from .excel_service import ExcelService

__all__ = [
    "InventoryService",
    "SalesService",
    "PurchaseService",
    "ReportingService",
    "LedgerQueryService",
    "ExcelService",
]
