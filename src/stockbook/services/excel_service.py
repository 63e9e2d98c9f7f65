from __future__ import annotations

import logging

from openpyxl import load_workbook

from stockbook.domain.errors import AppError, ValidationError

log = logging.getLogger(__name__)


class ExcelService:
    def __init__(self, repo, purchase_service):
        self.repo = repo
        self.purchases = purchase_service

    def import_purchases_excel(self, path: str) -> tuple[int, int]:
        """
        Each row is one restock purchase (quantity to add, not absolute stock).
        Headers:
          sku | supplier_name | quantity | price | invoice_number (optional)
        """
        wb = load_workbook(path, read_only=True, data_only=True)
        try:
            ws = wb.active
            rows = ws.iter_rows(values_only=True)
            header_row = next(rows, None) or ()

            headers = {}
            for idx, v in enumerate(header_row):
                if isinstance(v, str):
                    headers[v.strip().lower()] = idx

            required = ["sku", "supplier_name", "quantity", "price"]
            for r in required:
                if r not in headers:
                    raise ValidationError(f"Missing column header: {r}")

            def cell(values, key):
                idx = headers.get(key)
                if idx is None or idx >= len(values):
                    return None
                return values[idx]

            ok = 0
            skipped = 0
            for line, values in enumerate(rows, start=2):
                if not values or all(v is None for v in values):
                    continue
                sku = cell(values, "sku")
                product = self.repo.get_product_by_sku(str(sku).strip()) if sku else None
                if not product:
                    log.warning("Excel import skipped row %s: unknown SKU %r", line, sku)
                    skipped += 1
                    continue
                try:
                    self.purchases.create_purchase(
                        product_id=product.id,
                        supplier_name=cell(values, "supplier_name"),
                        quantity=cell(values, "quantity"),
                        price=cell(values, "price"),
                        invoice_number=cell(values, "invoice_number"),
                        notes=f"Excel restock for {product.sku}",
                    )
                except AppError as e:
                    log.warning("Excel import skipped row %s: %s", line, e)
                    skipped += 1
                    continue
                ok += 1
        finally:
            wb.close()

        log.info("excel_import_done ok=%s skipped=%s path=%s", ok, skipped, path)
        return ok, skipped
