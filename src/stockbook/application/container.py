from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from stockbook.config import QueryDefaults
from stockbook.repositories.sqlite_repo import SqliteRepository
from stockbook.services.excel_service import ExcelService
from stockbook.services.inventory_service import InventoryService
from stockbook.services.purchase_service import PurchaseService
from stockbook.services.query_service import LedgerQueryService
from stockbook.services.reporting_service import ReportingService
from stockbook.services.sales_service import SalesService


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository
    inventory: InventoryService
    purchases: PurchaseService
    sales: SalesService
    reporting: ReportingService
    queries: LedgerQueryService
    excel: ExcelService


def build_container(db_path: Path | str, defaults: QueryDefaults | None = None) -> AppContainer:
    defaults = defaults or QueryDefaults()
    repo = SqliteRepository(db_path)
    repo.init_db()

    inventory = InventoryService(repo)
    purchases = PurchaseService(repo)
    sales = SalesService(repo)
    reporting = ReportingService(repo, defaults)
    queries = LedgerQueryService(repo, defaults)
    excel = ExcelService(repo, purchases)

    return AppContainer(
        repo=repo,
        inventory=inventory,
        purchases=purchases,
        sales=sales,
        reporting=reporting,
        queries=queries,
        excel=excel,
    )
