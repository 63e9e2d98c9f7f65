from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Mapping, Optional

from stockbook.domain.errors import ConflictError, InsufficientStockError, NotFoundError
from stockbook.domain.models import (
    Product,
    Purchase,
    PurchasesTotals,
    Sale,
    SalesTotals,
    StockMovement,
)
from stockbook.repositories.queries import LedgerQuery

PRODUCT_COLUMNS = "id, sku, name, quantity, price, description, category, image_url, created_at, updated_at, active"
PURCHASE_COLUMNS = "id, product_id, supplier_name, quantity, price, total, date, invoice_number, notes, deleted"
SALE_COLUMNS = (
    "id, product_id, customer_name, quantity, sale_price, purchase_price, total, profit, due, date, notes, deleted"
)

UPDATABLE_PRODUCT_FIELDS = ("sku", "name", "price", "description", "category", "image_url")


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


class SqliteRepository:
    def __init__(self, db_path: Path | str, timeout: float = 30.0):
        self.db_path = str(db_path)
        self.timeout = float(timeout)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn

    def init_db(self) -> None:
        conn = self._conn()
        try:
            conn.execute("PRAGMA journal_mode = WAL;")
        finally:
            conn.close()
        self.run_migrations()

    def run_migrations(self) -> None:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN IMMEDIATE")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_catalog_and_ledger),
                (2, self._migration_v2_stock_movements),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            raise RuntimeError("Database migration failed; changes were rolled back.") from exc
        finally:
            conn.close()

    def _migration_v1_catalog_and_ledger(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS products (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                sku TEXT UNIQUE NOT NULL,
                name TEXT NOT NULL,
                quantity INTEGER NOT NULL DEFAULT 0 CHECK(quantity >= 0),
                price REAL NOT NULL CHECK(price >= 0),
                description TEXT,
                category TEXT,
                image_url TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                active INTEGER NOT NULL DEFAULT 1 CHECK(active IN (0,1))
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS purchases (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                product_id INTEGER NOT NULL,
                supplier_name TEXT NOT NULL,
                quantity INTEGER NOT NULL CHECK(quantity > 0),
                price REAL NOT NULL CHECK(price >= 0),
                total REAL NOT NULL CHECK(total >= 0),
                date TEXT NOT NULL,
                invoice_number TEXT,
                notes TEXT,
                deleted INTEGER NOT NULL DEFAULT 0 CHECK(deleted IN (0,1)),
                created_at TEXT NOT NULL,
                FOREIGN KEY(product_id) REFERENCES products(id)
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS sales (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                product_id INTEGER NOT NULL,
                customer_name TEXT NOT NULL,
                quantity INTEGER NOT NULL CHECK(quantity > 0),
                sale_price REAL NOT NULL CHECK(sale_price >= 0),
                purchase_price REAL NOT NULL CHECK(purchase_price >= 0),
                total REAL NOT NULL CHECK(total >= 0),
                profit REAL NOT NULL,
                due REAL NOT NULL DEFAULT 0 CHECK(due >= 0),
                date TEXT NOT NULL,
                notes TEXT,
                deleted INTEGER NOT NULL DEFAULT 0 CHECK(deleted IN (0,1)),
                created_at TEXT NOT NULL,
                FOREIGN KEY(product_id) REFERENCES products(id)
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS ix_purchases_product ON purchases(product_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS ix_purchases_date ON purchases(date)")
        cur.execute("CREATE INDEX IF NOT EXISTS ix_sales_product ON sales(product_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS ix_sales_date ON sales(date)")

    def _migration_v2_stock_movements(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS stock_movements (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                datetime TEXT NOT NULL,
                product_id INTEGER NOT NULL,
                movement_type TEXT NOT NULL CHECK(movement_type IN ('sale','purchase','adjustment')),
                qty_delta INTEGER NOT NULL,
                stock_after INTEGER NOT NULL CHECK(stock_after >= 0),
                reference_type TEXT NOT NULL CHECK(reference_type IN ('sale','purchase','manual')),
                reference_id INTEGER NOT NULL,
                notes TEXT,
                FOREIGN KEY(product_id) REFERENCES products(id)
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS ix_stock_movements_product ON stock_movements(product_id)")

    # ---------- Products ----------
    @staticmethod
    def _product(r) -> Product:
        return Product(
            id=int(r[0]),
            sku=str(r[1]),
            name=str(r[2]),
            quantity=int(r[3]),
            price=float(r[4]),
            description=r[5],
            category=r[6],
            image_url=r[7],
            created_at=str(r[8]),
            updated_at=str(r[9]),
            active=int(r[10]),
        )

    def add_product(
        self,
        sku: str,
        name: str,
        quantity: int,
        price: float,
        description: Optional[str],
        category: Optional[str],
        image_url: Optional[str],
        now_iso: str,
    ) -> int:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO products (sku, name, quantity, price, description, category, image_url, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (sku, name, int(quantity), float(price), description, category, image_url, now_iso, now_iso),
            )
            pid = int(cur.lastrowid)
            conn.commit()
            return pid
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if "products.sku" in str(e):
                raise ConflictError(f"SKU already exists: {sku}") from e
            raise
        finally:
            conn.close()

    def sku_exists(self, sku: str, exclude_id: Optional[int] = None) -> bool:
        conn = self._conn()
        cur = conn.cursor()
        if exclude_id is None:
            cur.execute("SELECT 1 FROM products WHERE sku = ?", (sku,))
        else:
            cur.execute("SELECT 1 FROM products WHERE sku = ? AND id <> ?", (sku, int(exclude_id)))
        row = cur.fetchone()
        conn.close()
        return row is not None

    def get_product_by_id(self, product_id: int) -> Optional[Product]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(f"SELECT {PRODUCT_COLUMNS} FROM products WHERE active=1 AND id=?", (int(product_id),))
        r = cur.fetchone()
        conn.close()
        return self._product(r) if r else None

    def get_product_by_sku(self, sku: str) -> Optional[Product]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(f"SELECT {PRODUCT_COLUMNS} FROM products WHERE active=1 AND sku=?", (sku,))
        r = cur.fetchone()
        conn.close()
        return self._product(r) if r else None

    def list_products(self, search: Optional[str] = None, category: Optional[str] = None) -> list[Product]:
        clauses = ["active = 1"]
        params: list = []
        if search:
            clauses.append("(instr(casefold(name), ?) > 0 OR instr(casefold(sku), ?) > 0)")
            params.extend([search.casefold(), search.casefold()])
        if category:
            clauses.append("category = ?")
            params.append(category)

        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            f"SELECT {PRODUCT_COLUMNS} FROM products WHERE {' AND '.join(clauses)} ORDER BY name, id",
            params,
        )
        rows = cur.fetchall()
        conn.close()
        return [self._product(r) for r in rows]

    def update_product(self, product_id: int, fields: Mapping[str, Any], now_iso: str) -> bool:
        """Apply a partial update; a ``quantity`` key is journalled as an adjustment."""
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN IMMEDIATE")
            cur.execute("SELECT quantity FROM products WHERE id=? AND active=1", (int(product_id),))
            row = cur.fetchone()
            if not row:
                conn.rollback()
                return False

            assignments = ["updated_at = ?"]
            params: list = [now_iso]
            for column in UPDATABLE_PRODUCT_FIELDS:
                if column in fields:
                    assignments.append(f"{column} = ?")
                    params.append(fields[column])

            delta = 0
            if "quantity" in fields:
                new_quantity = int(fields["quantity"])
                delta = new_quantity - int(row[0])
                assignments.append("quantity = ?")
                params.append(new_quantity)

            params.append(int(product_id))
            cur.execute(f"UPDATE products SET {', '.join(assignments)} WHERE id = ?", params)

            if delta:
                self._append_movement(
                    cur,
                    datetime_iso=now_iso,
                    product_id=int(product_id),
                    movement_type="adjustment",
                    qty_delta=delta,
                    reference_type="manual",
                    reference_id=int(product_id),
                    notes=fields.get("notes"),
                )
            conn.commit()
            return True
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if "products.sku" in str(e):
                raise ConflictError(f"SKU already exists: {fields.get('sku')}") from e
            raise
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def deactivate_product_cascade(self, product_id: int, now_iso: str) -> bool:
        """Soft-delete a product and every sale/purchase that references it."""
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN IMMEDIATE")
            cur.execute(
                "UPDATE products SET active=0, updated_at=? WHERE id=? AND active=1",
                (now_iso, int(product_id)),
            )
            if cur.rowcount == 0:
                conn.rollback()
                return False
            cur.execute("UPDATE sales SET deleted=1 WHERE product_id=? AND deleted=0", (int(product_id),))
            cur.execute("UPDATE purchases SET deleted=1 WHERE product_id=? AND deleted=0", (int(product_id),))
            conn.commit()
            return True
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ---------- Stock movements ----------
    def _append_movement(
        self,
        cur: sqlite3.Cursor,
        datetime_iso: str,
        product_id: int,
        movement_type: str,
        qty_delta: int,
        reference_type: str,
        reference_id: int,
        notes: Optional[str],
    ) -> int:
        cur.execute("SELECT quantity FROM products WHERE id=?", (int(product_id),))
        stock_after = int(cur.fetchone()[0])
        cur.execute(
            """
            INSERT INTO stock_movements (
                datetime, product_id, movement_type, qty_delta, stock_after,
                reference_type, reference_id, notes
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (datetime_iso, int(product_id), movement_type, int(qty_delta), stock_after, reference_type, int(reference_id), notes),
        )
        return stock_after

    def recent_movements(self, limit: int = 100, product_id: Optional[int] = None) -> list[StockMovement]:
        conn = self._conn()
        cur = conn.cursor()
        sql = """
            SELECT id, datetime, product_id, movement_type, qty_delta, stock_after,
                   reference_type, reference_id, notes
            FROM stock_movements
        """
        params: list = []
        if product_id is not None:
            sql += " WHERE product_id = ?"
            params.append(int(product_id))
        sql += " ORDER BY datetime DESC, id DESC LIMIT ?"
        params.append(int(limit))
        cur.execute(sql, params)
        rows = cur.fetchall()
        conn.close()
        return [StockMovement(*r) for r in rows]

    # ---------- Purchases ----------
    def create_purchase(
        self,
        product_id: int,
        supplier_name: str,
        quantity: int,
        price: float,
        total: float,
        date_iso: str,
        invoice_number: Optional[str],
        notes: Optional[str],
        now_iso: str,
    ) -> Purchase:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN IMMEDIATE")
            cur.execute(
                "UPDATE products SET quantity = quantity + ?, updated_at = ? WHERE id = ? AND active = 1",
                (int(quantity), now_iso, int(product_id)),
            )
            if cur.rowcount == 0:
                raise NotFoundError("Product not found.")

            cur.execute(
                """
                INSERT INTO purchases (product_id, supplier_name, quantity, price, total, date, invoice_number, notes, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (int(product_id), supplier_name, int(quantity), float(price), float(total), date_iso, invoice_number, notes, now_iso),
            )
            purchase_id = int(cur.lastrowid)
            self._append_movement(
                cur,
                datetime_iso=date_iso,
                product_id=int(product_id),
                movement_type="purchase",
                qty_delta=int(quantity),
                reference_type="purchase",
                reference_id=purchase_id,
                notes=notes,
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        return Purchase(
            id=purchase_id,
            product_id=int(product_id),
            supplier_name=supplier_name,
            quantity=int(quantity),
            price=float(price),
            total=float(total),
            date=date_iso,
            invoice_number=invoice_number,
            notes=notes,
        )

    # ---------- Sales ----------
    def create_sale(
        self,
        product_id: int,
        customer_name: str,
        quantity: int,
        sale_price: float,
        purchase_price: float,
        total: float,
        profit: float,
        due: float,
        date_iso: str,
        notes: Optional[str],
        now_iso: str,
    ) -> Sale:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN IMMEDIATE")
            # check and decrement in one statement; no row means missing or short
            cur.execute(
                """
                UPDATE products
                SET quantity = quantity - ?, updated_at = ?
                WHERE id = ? AND active = 1 AND quantity >= ?
                """,
                (int(quantity), now_iso, int(product_id), int(quantity)),
            )
            if cur.rowcount == 0:
                cur.execute("SELECT sku, quantity FROM products WHERE id=? AND active=1", (int(product_id),))
                row = cur.fetchone()
                if not row:
                    raise NotFoundError("Product not found.")
                raise InsufficientStockError(f"Not enough stock for {row[0]}. Available: {row[1]}")

            cur.execute(
                """
                INSERT INTO sales (
                    product_id, customer_name, quantity, sale_price, purchase_price,
                    total, profit, due, date, notes, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    int(product_id),
                    customer_name,
                    int(quantity),
                    float(sale_price),
                    float(purchase_price),
                    float(total),
                    float(profit),
                    float(due),
                    date_iso,
                    notes,
                    now_iso,
                ),
            )
            sale_id = int(cur.lastrowid)
            self._append_movement(
                cur,
                datetime_iso=date_iso,
                product_id=int(product_id),
                movement_type="sale",
                qty_delta=-int(quantity),
                reference_type="sale",
                reference_id=sale_id,
                notes=notes,
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        return Sale(
            id=sale_id,
            product_id=int(product_id),
            customer_name=customer_name,
            quantity=int(quantity),
            sale_price=float(sale_price),
            purchase_price=float(purchase_price),
            total=float(total),
            profit=float(profit),
            due=float(due),
            date=date_iso,
            notes=notes,
        )

    # ---------- Ledger reads ----------
    @staticmethod
    def _sale(r) -> Sale:
        return Sale(
            id=int(r[0]),
            product_id=int(r[1]),
            customer_name=str(r[2]),
            quantity=int(r[3]),
            sale_price=float(r[4]),
            purchase_price=float(r[5]),
            total=float(r[6]),
            profit=float(r[7]),
            due=float(r[8]),
            date=str(r[9]),
            notes=r[10],
            deleted=int(r[11]),
        )

    @staticmethod
    def _purchase(r) -> Purchase:
        return Purchase(
            id=int(r[0]),
            product_id=int(r[1]),
            supplier_name=str(r[2]),
            quantity=int(r[3]),
            price=float(r[4]),
            total=float(r[5]),
            date=str(r[6]),
            invoice_number=r[7],
            notes=r[8],
            deleted=int(r[9]),
        )

    def _fetchone(self, sql: str, params: list) -> tuple:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute(sql, params)
            return cur.fetchone()
        finally:
            conn.close()

    def _fetchall(self, sql: str, params: list) -> list[tuple]:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute(sql, params)
            return cur.fetchall()
        finally:
            conn.close()

    def sales_totals(self, query: LedgerQuery) -> SalesTotals:
        where, params = query.where("customer_name")
        total, profit, due, quantity = self._fetchone(
            f"""
            SELECT COALESCE(SUM(total), 0),
                   COALESCE(SUM(profit), 0),
                   COALESCE(SUM(due), 0),
                   COALESCE(SUM(quantity), 0)
            FROM sales
            WHERE {where}
            """,
            params,
        )
        return SalesTotals(total=float(total), profit=float(profit), due=float(due), quantity=int(quantity))

    def purchases_totals(self, query: LedgerQuery) -> PurchasesTotals:
        where, params = query.where("supplier_name")
        total, quantity = self._fetchone(
            f"""
            SELECT COALESCE(SUM(total), 0),
                   COALESCE(SUM(quantity), 0)
            FROM purchases
            WHERE {where}
            """,
            params,
        )
        return PurchasesTotals(total=float(total), quantity=int(quantity))

    def _daily_quantities(self, table: str, counterpart_column: str, query: LedgerQuery) -> dict[str, int]:
        where, params = query.where(counterpart_column)
        rows = self._fetchall(
            f"""
            SELECT substr(date, 1, 10) AS d, COALESCE(SUM(quantity), 0)
            FROM {table}
            WHERE {where}
            GROUP BY d
            ORDER BY d
            """,
            params,
        )
        return {str(d): int(q) for d, q in rows}

    def daily_sale_quantities(self, query: LedgerQuery) -> dict[str, int]:
        return self._daily_quantities("sales", "customer_name", query)

    def daily_purchase_quantities(self, query: LedgerQuery) -> dict[str, int]:
        return self._daily_quantities("purchases", "supplier_name", query)

    def count_sales(self, query: LedgerQuery) -> int:
        where, params = query.where("customer_name")
        return int(self._fetchone(f"SELECT COUNT(*) FROM sales WHERE {where}", params)[0])

    def count_purchases(self, query: LedgerQuery) -> int:
        where, params = query.where("supplier_name")
        return int(self._fetchone(f"SELECT COUNT(*) FROM purchases WHERE {where}", params)[0])

    def list_sales(self, query: LedgerQuery, limit: Optional[int] = None, offset: int = 0) -> list[Sale]:
        where, params = query.where("customer_name")
        sql = f"SELECT {SALE_COLUMNS} FROM sales WHERE {where} ORDER BY date DESC, id DESC"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params = params + [int(limit), int(offset)]
        return [self._sale(r) for r in self._fetchall(sql, params)]

    def list_purchases(self, query: LedgerQuery, limit: Optional[int] = None, offset: int = 0) -> list[Purchase]:
        where, params = query.where("supplier_name")
        sql = f"SELECT {PURCHASE_COLUMNS} FROM purchases WHERE {where} ORDER BY date DESC, id DESC"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params = params + [int(limit), int(offset)]
        return [self._purchase(r) for r in self._fetchall(sql, params)]

    def get_sale(self, sale_id: int) -> Optional[Sale]:
        r = self._fetchone(f"SELECT {SALE_COLUMNS} FROM sales WHERE id = ?", [int(sale_id)])
        return self._sale(r) if r else None

    def get_purchase(self, purchase_id: int) -> Optional[Purchase]:
        r = self._fetchone(f"SELECT {PURCHASE_COLUMNS} FROM purchases WHERE id = ?", [int(purchase_id)])
        return self._purchase(r) if r else None
