# db.py

import json
import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from config import STATE_DB_PATH
from logger import get_logger
from models import KitchenTicket, Order, OrderItem, Product
from services.order_status import OrderStatus


log = get_logger("db")

DEFAULT_MENU = [
    # name, description, price, category
    ("Empanadas criollas", "Tres empanadas de carne cortada a cuchillo", "8.50", "entradas"),
    ("Ensalada César", "Lechuga, crutones, parmesano y aderezo César", "9.00", "entradas"),
    ("Hamburguesa clásica", "Carne, queso cheddar, lechuga y tomate", "15.50", "principales"),
    ("Pizza Margherita", "Tomate, mozzarella y albahaca", "14.00", "principales"),
    ("Milanesa napolitana", "Con papas fritas", "17.25", "principales"),
    ("Limonada", "Limonada con menta y jengibre", "4.50", "bebidas"),
    ("Agua mineral", "Botella 500 ml", "2.50", "bebidas"),
    ("Flan casero", "Con dulce de leche", "6.00", "postres"),
]


# ---------- Helpers ----------
def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None

def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None

def _table_columns(cur: sqlite3.Cursor, table: str) -> set[str]:
    cur.execute(f"PRAGMA table_info({table})")
    return {row[1] for row in cur.fetchall()}

def _ensure_column(cur: sqlite3.Cursor, table: str, column: str, col_type: str) -> None:
    cols = _table_columns(cur, table)
    if column not in cols:
        log.info(f"DB MIGRATION: adding column {table}.{column} {col_type}")
        cur.execute(f'ALTER TABLE {table} ADD COLUMN "{column}" {col_type}')


# ---------- Local State DB ----------
def state_conn(db_path: Optional[str] = None) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path or STATE_DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn

def init_state_db(db_path: Optional[str] = None) -> None:
    conn = state_conn(db_path)
    cur = conn.cursor()

    cur.execute("""
    CREATE TABLE IF NOT EXISTS products (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        price TEXT NOT NULL,
        category TEXT,
        is_active INTEGER NOT NULL DEFAULT 1
    )
    """)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS orders (
        id TEXT PRIMARY KEY,
        table_id INTEGER NOT NULL,
        status TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        deleted INTEGER NOT NULL DEFAULT 0,
        deleted_at TEXT
    )
    """)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS order_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        order_id TEXT NOT NULL REFERENCES orders(id),
        position INTEGER NOT NULL,
        product_id INTEGER NOT NULL,
        quantity INTEGER NOT NULL,
        note TEXT
    )
    """)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS kitchen_tickets (
        event_id TEXT PRIMARY KEY,
        order_id TEXT NOT NULL,
        table_id INTEGER NOT NULL,
        items TEXT NOT NULL,
        event_version INTEGER NOT NULL,
        received_at TEXT NOT NULL
    )
    """)

    # ---- MIGRATIONS / SAFE UPGRADES ----
    _ensure_column(cur, "orders", "deleted_at", "TEXT")

    conn.commit()
    conn.close()

    ensure_state_indexes(db_path)

def ensure_state_indexes(db_path: Optional[str] = None) -> None:
    conn = state_conn(db_path)
    conn.executescript("""
    CREATE INDEX IF NOT EXISTS idx_orders_deleted_status ON orders(deleted, status);
    CREATE INDEX IF NOT EXISTS idx_orders_created_at ON orders(created_at);
    CREATE INDEX IF NOT EXISTS idx_order_items_order_id ON order_items(order_id);
    CREATE INDEX IF NOT EXISTS idx_kitchen_tickets_order_id ON kitchen_tickets(order_id);
    """)
    conn.commit()
    conn.close()

def seed_menu_if_empty(db_path: Optional[str] = None) -> int:
    conn = state_conn(db_path)
    count = conn.execute("SELECT COUNT(*) AS cnt FROM products").fetchone()["cnt"]
    inserted = 0
    if count == 0:
        conn.executemany(
            "INSERT INTO products (name, description, price, category, is_active) VALUES (?, ?, ?, ?, 1)",
            DEFAULT_MENU,
        )
        conn.commit()
        inserted = len(DEFAULT_MENU)
        log.info(f"Seeded default menu with {inserted} products")
    conn.close()
    return inserted


# ---------- Products ----------
def _row_to_product(row: sqlite3.Row) -> Product:
    return Product(
        id=row["id"],
        name=row["name"],
        description=row["description"] or "",
        price=Decimal(row["price"]),
        category=row["category"] or "",
        is_active=bool(row["is_active"]),
    )


class ProductRepository:

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def find_by_id(self, product_id: int) -> Optional[Product]:
        conn = state_conn(self.db_path)
        row = conn.execute("SELECT * FROM products WHERE id=?", (product_id,)).fetchone()
        conn.close()
        return _row_to_product(row) if row else None

    def find_all_active(self) -> List[Product]:
        conn = state_conn(self.db_path)
        rows = conn.execute("SELECT * FROM products WHERE is_active=1 ORDER BY id").fetchall()
        conn.close()
        return [_row_to_product(r) for r in rows]

    def save(self, product: Product) -> Product:
        conn = state_conn(self.db_path)
        cur = conn.cursor()
        if product.id is None:
            cur.execute(
                "INSERT INTO products (name, description, price, category, is_active) VALUES (?, ?, ?, ?, ?)",
                (product.name, product.description, str(product.price), product.category, int(product.is_active)),
            )
            product.id = cur.lastrowid
        else:
            cur.execute("""
            INSERT INTO products (id, name, description, price, category, is_active)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                description=excluded.description,
                price=excluded.price,
                category=excluded.category,
                is_active=excluded.is_active
            """, (product.id, product.name, product.description, str(product.price),
                  product.category, int(product.is_active)))
        conn.commit()
        conn.close()
        return product


# ---------- Orders ----------
class OrderRepository:
    """
    Order store. Every find_active_* query excludes soft-deleted orders;
    find_by_id_including_deleted is for audit tooling only.
    Results come back in insertion order.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def save(self, order: Order) -> Order:
        conn = state_conn(self.db_path)
        cur = conn.cursor()
        cur.execute("""
        INSERT INTO orders (id, table_id, status, created_at, updated_at, deleted, deleted_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            table_id=excluded.table_id,
            status=excluded.status,
            updated_at=excluded.updated_at,
            deleted=excluded.deleted,
            deleted_at=excluded.deleted_at
        """, (
            order.id, order.table_id, order.status.value,
            _ts(order.created_at), _ts(order.updated_at),
            int(order.deleted), _ts(order.deleted_at),
        ))

        cur.execute("DELETE FROM order_items WHERE order_id=?", (order.id,))
        cur.executemany(
            "INSERT INTO order_items (order_id, position, product_id, quantity, note) VALUES (?, ?, ?, ?, ?)",
            [(order.id, pos, it.product_id, it.quantity, it.note) for pos, it in enumerate(order.items)],
        )
        conn.commit()
        conn.close()
        return order

    def find_active_by_id(self, order_id: str) -> Optional[Order]:
        rows = self._query("WHERE o.id=? AND o.deleted=0", (order_id,))
        return rows[0] if rows else None

    def find_all_active(self) -> List[Order]:
        return self._query("WHERE o.deleted=0")

    def find_active_by_status_in(self, statuses: Optional[Iterable[OrderStatus]]) -> List[Order]:
        wanted = [OrderStatus(s).value for s in (statuses or [])]
        if not wanted:
            # empty filter means "no filter", never "match nothing"
            return self.find_all_active()
        placeholders = ",".join("?" for _ in wanted)
        return self._query(f"WHERE o.deleted=0 AND o.status IN ({placeholders})", tuple(wanted))

    def find_by_id_including_deleted(self, order_id: str) -> Optional[Order]:
        rows = self._query("WHERE o.id=?", (order_id,))
        return rows[0] if rows else None

    def _query(self, where_sql: str, params: tuple = ()) -> List[Order]:
        conn = state_conn(self.db_path)
        order_rows = conn.execute(
            f"SELECT o.* FROM orders o {where_sql} ORDER BY o.rowid", params
        ).fetchall()

        items_by_order: Dict[str, List[OrderItem]] = {r["id"]: [] for r in order_rows}
        if items_by_order:
            placeholders = ",".join("?" for _ in items_by_order)
            for r in conn.execute(
                f"SELECT * FROM order_items WHERE order_id IN ({placeholders}) ORDER BY order_id, position",
                tuple(items_by_order),
            ).fetchall():
                items_by_order[r["order_id"]].append(OrderItem(r["product_id"], r["quantity"], r["note"]))
        conn.close()

        return [
            Order(
                id=r["id"],
                table_id=r["table_id"],
                status=OrderStatus(r["status"]),
                items=items_by_order[r["id"]],
                created_at=_parse_ts(r["created_at"]),
                updated_at=_parse_ts(r["updated_at"]),
                deleted=bool(r["deleted"]),
                deleted_at=_parse_ts(r["deleted_at"]),
            )
            for r in order_rows
        ]


# ---------- Reports ----------
def fetch_ready_order_lines(start_ts: str, end_ts: str, db_path: Optional[str] = None) -> List[Dict[str, Any]]:
    """Item lines of active READY orders created in [start_ts, end_ts)."""
    conn = state_conn(db_path)
    rows = conn.execute("""
        SELECT
            o.id AS order_id,
            oi.product_id,
            oi.quantity,
            p.name AS product_name,
            p.price
        FROM orders o
        JOIN order_items oi ON oi.order_id = o.id
        LEFT JOIN products p ON p.id = oi.product_id
        WHERE o.deleted = 0
          AND o.status = ?
          AND o.created_at >= ?
          AND o.created_at < ?
        ORDER BY o.rowid, oi.position
    """, (OrderStatus.READY.value, start_ts, end_ts)).fetchall()
    conn.close()
    return [dict(r) for r in rows]


# ---------- Kitchen tickets ----------
def insert_ticket_if_new(ticket: KitchenTicket, db_path: Optional[str] = None) -> bool:
    conn = state_conn(db_path)
    cur = conn.execute("""
    INSERT INTO kitchen_tickets (event_id, order_id, table_id, items, event_version, received_at)
    VALUES (?, ?, ?, ?, ?, ?)
    ON CONFLICT(event_id) DO NOTHING
    """, (
        ticket.event_id, ticket.order_id, ticket.table_id,
        json.dumps([{"productId": it.product_id, "quantity": it.quantity} for it in ticket.items]),
        ticket.event_version, _ts(ticket.received_at),
    ))
    created = cur.rowcount == 1
    conn.commit()
    conn.close()
    return created

def list_tickets(limit: int = 100, db_path: Optional[str] = None) -> List[KitchenTicket]:
    conn = state_conn(db_path)
    rows = conn.execute(
        "SELECT * FROM kitchen_tickets ORDER BY received_at DESC, rowid DESC LIMIT ?", (limit,)
    ).fetchall()
    conn.close()
    return [
        KitchenTicket(
            event_id=r["event_id"],
            order_id=r["order_id"],
            table_id=r["table_id"],
            items=[OrderItem(i["productId"], i["quantity"]) for i in json.loads(r["items"])],
            event_version=r["event_version"],
            received_at=_parse_ts(r["received_at"]),
        )
        for r in rows
    ]
