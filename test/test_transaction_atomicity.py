from pathlib import Path

import pytest

from stockbook.repositories.sqlite_repo import SqliteRepository
from stockbook.services.inventory_service import InventoryService
from stockbook.services.purchase_service import PurchaseService
from stockbook.services.query_service import LedgerQueryService
from stockbook.services.sales_service import SalesService


class FailingRepo(SqliteRepository):
    """Fails after the stock update and ledger insert, before commit."""

    def _append_movement(self, cur, **kwargs):
        raise RuntimeError("boom")


def _setup(tmp_path: Path):
    repo = FailingRepo(tmp_path / "t.db")
    repo.init_db()
    pid = InventoryService(repo).create_product("SKU-1", "Producto", quantity=10, price=4.0).id
    return repo, pid


def test_purchase_rolls_back_when_repository_fails(tmp_path: Path):
    repo, pid = _setup(tmp_path)

    with pytest.raises(RuntimeError):
        PurchaseService(repo).create_purchase(pid, "TEST", 5, 3.0, notes="rollback expected")

    assert repo.get_product_by_id(pid).quantity == 10
    assert LedgerQueryService(repo).list_purchases("2000-01-01", "2100-01-01").total_count == 0


def test_sale_rolls_back_when_repository_fails(tmp_path: Path):
    repo, pid = _setup(tmp_path)

    with pytest.raises(RuntimeError):
        SalesService(repo).create_sale(pid, "Customer", 4, 8.0, 4.0)

    assert repo.get_product_by_id(pid).quantity == 10
    assert LedgerQueryService(repo).list_sales("2000-01-01", "2100-01-01").total_count == 0


def test_sale_is_not_retried_after_failure(tmp_path: Path):
    calls = []

    class CountingRepo(FailingRepo):
        def create_sale(self, **kwargs):
            calls.append(kwargs)
            return super().create_sale(**kwargs)

    repo = CountingRepo(tmp_path / "retry.db")
    repo.init_db()
    pid = InventoryService(repo).create_product("SKU-R", "Retry", quantity=10, price=4.0).id

    with pytest.raises(RuntimeError):
        SalesService(repo).create_sale(pid, "Customer", 1, 8.0, 4.0)
    assert len(calls) == 1
