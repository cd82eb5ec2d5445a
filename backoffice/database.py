"""SQLite-backed persistence for user accounts and orders."""
from __future__ import annotations

import secrets
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .models import Number, Order, UserAccount

ORDER_ID_BYTES = 12


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def generate_order_id() -> str:
    return secrets.token_hex(ORDER_ID_BYTES)


class Database:
    """Simple wrapper around SQLite for persisting accounts and orders."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS orders (
                    id TEXT PRIMARY KEY,
                    customer_name TEXT,
                    product_name TEXT,
                    quantity NUMERIC,
                    price NUMERIC,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    # ------------------------------------------------------------------
    # User accounts
    # ------------------------------------------------------------------
    def create_user(self, email: str, password_hash: str) -> UserAccount:
        """Insert a new account; the email must not already be registered."""

        created_at = _current_timestamp()
        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO users (email, password_hash, created_at) VALUES (?, ?, ?)",
                    (email, password_hash, _serialize_datetime(created_at)),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError("A user with that email already exists") from exc
            user_id = cursor.lastrowid

        return UserAccount(id=int(user_id), email=email, created_at=created_at)

    def get_user_by_email(self, email: str) -> Optional[UserAccount]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------
    def create_order(
        self,
        *,
        customer_name: Optional[str],
        product_name: Optional[str],
        quantity: Optional[Number],
        price: Optional[Number],
    ) -> Order:
        order_id = generate_order_id()
        timestamp = _serialize_datetime(_current_timestamp())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO orders (
                    id, customer_name, product_name, quantity, price, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (order_id, customer_name, product_name, quantity, price, timestamp, timestamp),
            )

        order = self.get_order(order_id)
        if order is None:
            raise RuntimeError("Failed to load order after creation")
        return order

    def list_orders(self) -> List[Order]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM orders ORDER BY rowid").fetchall()
        return [self._row_to_order(row) for row in rows]

    def get_order(self, order_id: str) -> Optional[Order]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM orders WHERE id = ?", (order_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_order(row)

    def update_order(
        self,
        order_id: str,
        *,
        customer_name: Optional[str],
        product_name: Optional[str],
        quantity: Optional[Number],
        price: Optional[Number],
    ) -> Optional[Order]:
        """Overwrite all mutable fields of an order; ``None`` if it does not exist."""

        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE orders
                   SET customer_name = ?, product_name = ?, quantity = ?, price = ?, updated_at = ?
                 WHERE id = ?
                """,
                (
                    customer_name,
                    product_name,
                    quantity,
                    price,
                    _serialize_datetime(_current_timestamp()),
                    order_id,
                ),
            )
            if cursor.rowcount == 0:
                return None

        return self.get_order(order_id)

    def delete_order(self, order_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM orders WHERE id = ?", (order_id,))
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> UserAccount:
        return UserAccount(
            id=int(row["id"]),
            email=str(row["email"]),
            created_at=_parse_datetime(str(row["created_at"])),
        )

    def _row_to_order(self, row: sqlite3.Row) -> Order:
        return Order(
            id=str(row["id"]),
            customer_name=row["customer_name"],
            product_name=row["product_name"],
            quantity=row["quantity"],
            price=row["price"],
            created_at=_parse_datetime(str(row["created_at"])),
            updated_at=_parse_datetime(str(row["updated_at"])),
        )


__all__ = ["Database", "generate_order_id"]
