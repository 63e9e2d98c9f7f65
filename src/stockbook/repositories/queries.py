from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LedgerQuery:
    """Filter shared by every sub-query of a report or page.

    Built once per request so the page, the count and the totals
    always see the same predicate.
    """

    start_iso: str
    end_iso: str
    product_id: Optional[int] = None
    counterpart: Optional[str] = None
    dues_only: bool = False

    def where(self, counterpart_column: str) -> tuple[str, list]:
        clauses = ["deleted = 0", "date >= ?", "date <= ?"]
        params: list = [self.start_iso, self.end_iso]
        if self.product_id is not None:
            clauses.append("product_id = ?")
            params.append(int(self.product_id))
        if self.counterpart:
            clauses.append(f"instr(casefold({counterpart_column}), ?) > 0")
            params.append(self.counterpart.casefold())
        if self.dues_only:
            clauses.append("due > 0")
        return " AND ".join(clauses), params
