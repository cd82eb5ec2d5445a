"""Order lifecycle: create, list, partial update and delete."""
from __future__ import annotations

import logging
import re
import sqlite3
from dataclasses import dataclass
from typing import List, Optional

import anyio

from .database import Database
from .errors import InternalError, InvalidIdentifierError, NotFoundError
from .models import Number, Order

logger = logging.getLogger("backoffice.orders")

_ORDER_ID_PATTERN = re.compile(r"[0-9a-f]{24}", re.IGNORECASE)


@dataclass(frozen=True)
class OrderFields:
    """Mutable order attributes as supplied by a caller; any may be missing."""

    customer_name: Optional[str] = None
    product_name: Optional[str] = None
    quantity: Optional[Number] = None
    price: Optional[Number] = None


def validate_order_id(order_id: str) -> str:
    if not _ORDER_ID_PATTERN.fullmatch(order_id):
        raise InvalidIdentifierError(f"Invalid order id '{order_id}'")
    return order_id.lower()


def merge_order_fields(existing: Order, changes: OrderFields) -> OrderFields:
    """Apply ``changes`` on top of ``existing`` using falsy coalescing.

    Empty strings and zero count as "not supplied", so this cannot clear a
    name or zero out a quantity or price.
    """

    return OrderFields(
        customer_name=changes.customer_name or existing.customer_name,
        product_name=changes.product_name or existing.product_name,
        quantity=changes.quantity or existing.quantity,
        price=changes.price or existing.price,
    )


class OrderService:
    """Apply order operations against the database.

    Updates are last-write-wins: two concurrent partial updates of the same
    order are not serialized and may interleave field by field.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    async def create_order(self, fields: OrderFields) -> Order:
        try:
            order = await anyio.to_thread.run_sync(
                lambda: self._database.create_order(
                    customer_name=fields.customer_name,
                    product_name=fields.product_name,
                    quantity=fields.quantity,
                    price=fields.price,
                )
            )
        except (sqlite3.DatabaseError, OverflowError, RuntimeError) as exc:
            logger.exception("Failed to create order")
            raise InternalError("Failed to create order", field="error") from exc

        logger.info("Created order %s", order.id)
        return order

    async def list_orders(self) -> List[Order]:
        try:
            return await anyio.to_thread.run_sync(self._database.list_orders)
        except sqlite3.DatabaseError as exc:
            logger.exception("Failed to fetch orders")
            raise InternalError("Failed to fetch orders", field="error") from exc

    async def update_order(self, order_id: str, changes: OrderFields) -> Order:
        order_id = validate_order_id(order_id)
        try:
            existing = await anyio.to_thread.run_sync(self._database.get_order, order_id)
            if existing is None:
                raise NotFoundError()

            merged = merge_order_fields(existing, changes)
            updated = await anyio.to_thread.run_sync(
                lambda: self._database.update_order(
                    order_id,
                    customer_name=merged.customer_name,
                    product_name=merged.product_name,
                    quantity=merged.quantity,
                    price=merged.price,
                )
            )
        except (sqlite3.DatabaseError, OverflowError) as exc:
            logger.exception("Failed to update order %s", order_id)
            raise InternalError(str(exc)) from exc

        # Deleted between the read and the write.
        if updated is None:
            raise NotFoundError()

        logger.info("Updated order %s", order_id)
        return updated

    async def delete_order(self, order_id: str) -> None:
        order_id = validate_order_id(order_id)
        try:
            deleted = await anyio.to_thread.run_sync(self._database.delete_order, order_id)
        except sqlite3.DatabaseError as exc:
            logger.exception("Failed to delete order %s", order_id)
            raise InternalError(str(exc)) from exc

        if not deleted:
            raise NotFoundError()

        logger.info("Deleted order %s", order_id)


__all__ = ["OrderFields", "OrderService", "merge_order_fields", "validate_order_id"]
