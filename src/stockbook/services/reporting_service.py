from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from stockbook.config import QueryDefaults
from stockbook.domain.dates import DateInput, bound_to_store, day_range, resolve_window
from stockbook.domain.models import PurchasesTotals, Report, SalesTotals
from stockbook.domain.validation import optional_id, parse_id
from stockbook.repositories.queries import LedgerQuery

log = logging.getLogger(__name__)


class ReportingService:
    def __init__(self, repo, defaults: QueryDefaults | None = None):
        self.repo = repo
        self.defaults = defaults or QueryDefaults()

    def _query(
        self,
        start_date: Optional[DateInput],
        end_date: Optional[DateInput],
        product_id: Any,
        today: Optional[date],
    ):
        start, end = resolve_window(start_date, end_date, today)
        pid = optional_id(product_id)
        return start, end, LedgerQuery(bound_to_store(start), bound_to_store(end), product_id=pid)

    def generate_report(
        self,
        start_date: Optional[DateInput] = None,
        end_date: Optional[DateInput] = None,
        product_id: Any = None,
        today: Optional[date] = None,
    ) -> Report:
        """Summed totals plus a gap-free daily quantity series for the window.

        The grouped daily rows only contain days with activity; every day of
        the inclusive window is emitted once, ascending, with 0 for the gaps.
        """
        start, end, query = self._query(start_date, end_date, product_id, today)

        with ThreadPoolExecutor(max_workers=self.defaults.report_workers) as pool:
            sales_f = pool.submit(self.repo.sales_totals, query)
            purchases_f = pool.submit(self.repo.purchases_totals, query)
            daily_sales_f = pool.submit(self.repo.daily_sale_quantities, query)
            daily_purchases_f = pool.submit(self.repo.daily_purchase_quantities, query)
            sales = sales_f.result()
            purchases = purchases_f.result()
            daily_sales = daily_sales_f.result()
            daily_purchases = daily_purchases_f.result()

        dates = day_range(start, end)
        report = Report(
            start=start.date().isoformat(),
            end=end.date().isoformat(),
            product_id=query.product_id,
            sales=sales,
            purchases=purchases,
            dates=dates,
            sales_data=[int(daily_sales.get(d, 0)) for d in dates],
            purchases_data=[int(daily_purchases.get(d, 0)) for d in dates],
        )
        log.info(
            "report_generated start=%s end=%s product_id=%s days=%s",
            report.start, report.end, report.product_id, len(dates),
        )
        return report

    def product_summary(
        self,
        product_id: Any,
        start_date: Optional[DateInput] = None,
        end_date: Optional[DateInput] = None,
        today: Optional[date] = None,
    ) -> tuple[SalesTotals, PurchasesTotals]:
        parse_id(product_id)
        _start, _end, query = self._query(start_date, end_date, product_id, today)
        with ThreadPoolExecutor(max_workers=2) as pool:
            sales_f = pool.submit(self.repo.sales_totals, query)
            purchases_f = pool.submit(self.repo.purchases_totals, query)
            return sales_f.result(), purchases_f.result()

    def export_report_excel(
        self,
        path: str,
        start_date: Optional[DateInput] = None,
        end_date: Optional[DateInput] = None,
        product_id: Any = None,
        today: Optional[date] = None,
    ) -> Report:
        report = self.generate_report(start_date, end_date, product_id, today)
        _start, _end, query = self._query(report.start, report.end, report.product_id, today)
        skus = {p.id: p.sku for p in self.repo.list_products()}

        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, end_row: int, end_col: int):
            ref = f"A1:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Summary"
        ws["A1"].font = Font(bold=True, size=14)
        ws["A3"] = "Window"
        ws["B3"] = f"{report.start}  ->  {report.end}"
        ws["A4"] = "Product"
        ws["B4"] = skus.get(report.product_id, "") if report.product_id else "All products"

        rows = [
            ("Sales total", report.sales.total, "money"),
            ("Sales quantity", report.sales.quantity, "int"),
            ("Profit", report.sales.profit, "money"),
            ("Dues", report.sales.due, "money"),
            ("Purchases total", report.purchases.total, "money"),
            ("Purchases quantity", report.purchases.quantity, "int"),
        ]
        for i, (label, val, kind) in enumerate(rows):
            r = 6 + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])
        set_widths(ws, {"A": 22, "B": 30})

        # -------- 2) Daily --------
        ws2 = wb.create_sheet("Daily")
        ws2.append(["Date", "Sold qty", "Purchased qty"])
        bold_row(ws2, 1)
        for d, sold, bought in zip(report.dates, report.sales_data, report.purchases_data):
            ws2.append([d, sold, bought])
        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 14, "B": 12, "C": 16})
        add_table(ws2, "DailySeries", ws2.max_row, 3)

        # -------- 3) Sales --------
        ws3 = wb.create_sheet("Sales")
        ws3.append(["Sale ID", "Date", "SKU", "Customer", "Qty", "Sale price", "Purchase price", "Total", "Profit", "Due", "Notes"])
        bold_row(ws3, 1)
        for row, s in enumerate(self.repo.list_sales(query), start=2):
            ws3.append([
                s.id, s.date, skus.get(s.product_id, ""), s.customer_name, s.quantity,
                s.sale_price, s.purchase_price, s.total, s.profit, s.due, s.notes or "",
            ])
            for col in "FGHIJ":
                money(ws3[f"{col}{row}"])
        ws3.freeze_panes = "A2"
        set_widths(ws3, {"A": 9, "B": 20, "C": 14, "D": 24, "E": 6, "F": 12, "G": 14, "H": 12, "I": 12, "J": 10, "K": 28})
        if ws3.max_row >= 2:
            add_table(ws3, "SalesDetail", ws3.max_row, 11)

        # -------- 4) Purchases --------
        ws4 = wb.create_sheet("Purchases")
        ws4.append(["Purchase ID", "Date", "SKU", "Supplier", "Qty", "Unit cost", "Total", "Invoice", "Notes"])
        bold_row(ws4, 1)
        for row, p in enumerate(self.repo.list_purchases(query), start=2):
            ws4.append([
                p.id, p.date, skus.get(p.product_id, ""), p.supplier_name, p.quantity,
                p.price, p.total, p.invoice_number or "", p.notes or "",
            ])
            money(ws4[f"F{row}"])
            money(ws4[f"G{row}"])
        ws4.freeze_panes = "A2"
        set_widths(ws4, {"A": 12, "B": 20, "C": 14, "D": 24, "E": 6, "F": 12, "G": 12, "H": 16, "I": 28})
        if ws4.max_row >= 2:
            add_table(ws4, "PurchasesDetail", ws4.max_row, 9)

        wb.save(path)
        log.info("report_exported path=%s", path)
        return report
