from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from stockbook.domain.errors import ValidationError


def test_export_report_writes_all_sheets(app, product, tmp_path: Path):
    app.purchases.create_purchase(product.id, "Supplier", 10, 2, date="2026-05-02T10:00:00", invoice_number="INV-1")
    app.sales.create_sale(product.id, "Customer", 4, 5, 2, due=3, date="2026-05-03T11:00:00")
    out = tmp_path / "report.xlsx"

    report = app.reporting.export_report_excel(str(out), "2026-05-01", "2026-05-07")

    wb = load_workbook(out)
    assert wb.sheetnames == ["Summary", "Daily", "Sales", "Purchases"]
    assert wb["Summary"]["B6"].value == pytest.approx(20)
    assert wb["Daily"].max_row == 1 + len(report.dates) == 8
    assert [c.value for c in wb["Daily"][3]] == ["2026-05-02", 0, 10]
    assert wb["Sales"]["C2"].value == "SKU-1"
    assert wb["Sales"]["J2"].value == 3
    assert wb["Purchases"]["H2"].value == "INV-1"


def test_import_purchases_records_restock(app, product, tmp_path: Path):
    wb = Workbook()
    ws = wb.active
    ws.append(["SKU", "supplier_name", "quantity", "price", "invoice_number"])
    ws.append(["SKU-1", "Global Coffee", 10, 2.5, "INV-9"])
    ws.append(["SKU-404", "Global Coffee", 1, 1, None])
    ws.append(["SKU-1", "Global Coffee", 0, 1, None])
    ws.append(["SKU-1", "", 3, 1, None])
    ws.append([None, None, None, None, None])
    path = tmp_path / "restock.xlsx"
    wb.save(path)

    ok, skipped = app.excel.import_purchases_excel(str(path))

    assert (ok, skipped) == (1, 3)
    assert app.inventory.get_product(product.id).quantity == 110
    page = app.queries.list_purchases("2000-01-01", "2100-01-01")
    assert page.total_count == 1
    assert page.items[0].invoice_number == "INV-9"
    assert page.items[0].total == pytest.approx(25)


def test_import_requires_headers(app, tmp_path: Path):
    wb = Workbook()
    wb.active.append(["sku", "quantity"])
    path = tmp_path / "bad.xlsx"
    wb.save(path)

    with pytest.raises(ValidationError, match="Missing column header"):
        app.excel.import_purchases_excel(str(path))
