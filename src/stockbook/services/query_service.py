from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Optional

from stockbook.config import QueryDefaults
from stockbook.domain.dates import DateInput, bound_to_store, resolve_window
from stockbook.domain.errors import ValidationError
from stockbook.domain.models import Page, Purchase, Sale
from stockbook.domain.validation import MAX_SQL_INT, as_quantity, optional_id, optional_text
from stockbook.repositories.contracts import LedgerRepository
from stockbook.repositories.queries import LedgerQuery


class LedgerQueryService:
    """Filtered, date-descending pages of sales, purchases and dues.

    Totals always cover the whole filtered set, not only the returned page.
    """

    def __init__(self, repo: LedgerRepository, defaults: QueryDefaults | None = None):
        self.repo = repo
        self.defaults = defaults or QueryDefaults()

    def _paging(self, page: Any, page_size: Any) -> tuple[int, int]:
        page_num = max(1, as_quantity(page or self.defaults.page, "Page"))
        limit = max(1, as_quantity(page_size or self.defaults.page_size, "Page size"))
        if (page_num - 1) * limit > MAX_SQL_INT:
            raise ValidationError("Page is out of range.")
        return page_num, limit

    def _build_query(self, start_date, end_date, product_id, counterpart, dues_only, today):
        start, end = resolve_window(start_date, end_date, today)
        return LedgerQuery(
            start_iso=bound_to_store(start),
            end_iso=bound_to_store(end),
            product_id=optional_id(product_id),
            counterpart=optional_text(counterpart),
            dues_only=dues_only,
        )

    def _sales_page(self, query, page: Any, page_size: Any) -> Page[Sale]:
        page_num, limit = self._paging(page, page_size)
        with ThreadPoolExecutor(max_workers=3) as pool:
            items_f = pool.submit(self.repo.list_sales, query, limit, (page_num - 1) * limit)
            count_f = pool.submit(self.repo.count_sales, query)
            totals_f = pool.submit(self.repo.sales_totals, query)
            items, count, totals = items_f.result(), count_f.result(), totals_f.result()
        return Page(
            items=items,
            total_count=count,
            page=page_num,
            page_size=limit,
            total_pages=math.ceil(count / limit),
            totals=totals,
        )

    def list_sales(
        self,
        start_date: Optional[DateInput] = None,
        end_date: Optional[DateInput] = None,
        product_id: Any = None,
        customer_name: Optional[str] = None,
        page: Any = None,
        page_size: Any = None,
        today: Optional[date] = None,
    ) -> Page[Sale]:
        query = self._build_query(start_date, end_date, product_id, customer_name, False, today)
        return self._sales_page(query, page, page_size)

    def list_dues(
        self,
        start_date: Optional[DateInput] = None,
        end_date: Optional[DateInput] = None,
        product_id: Any = None,
        customer_name: Optional[str] = None,
        page: Any = None,
        page_size: Any = None,
        today: Optional[date] = None,
    ) -> Page[Sale]:
        query = self._build_query(start_date, end_date, product_id, customer_name, True, today)
        return self._sales_page(query, page, page_size)

    def list_purchases(
        self,
        start_date: Optional[DateInput] = None,
        end_date: Optional[DateInput] = None,
        product_id: Any = None,
        supplier_name: Optional[str] = None,
        page: Any = None,
        page_size: Any = None,
        today: Optional[date] = None,
    ) -> Page[Purchase]:
        query = self._build_query(start_date, end_date, product_id, supplier_name, False, today)
        page_num, limit = self._paging(page, page_size)
        with ThreadPoolExecutor(max_workers=3) as pool:
            items_f = pool.submit(self.repo.list_purchases, query, limit, (page_num - 1) * limit)
            count_f = pool.submit(self.repo.count_purchases, query)
            totals_f = pool.submit(self.repo.purchases_totals, query)
            items, count, totals = items_f.result(), count_f.result(), totals_f.result()
        return Page(
            items=items,
            total_count=count,
            page=page_num,
            page_size=limit,
            total_pages=math.ceil(count / limit),
            totals=totals,
        )
