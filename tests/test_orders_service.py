from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from unittest import mock

import anyio
import pytest

from backoffice.database import Database
from backoffice.errors import InternalError, InvalidIdentifierError, NotFoundError
from backoffice.models import Order
from backoffice.orders import OrderFields, OrderService, merge_order_fields, validate_order_id


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "backoffice.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def service(database: Database) -> OrderService:
    return OrderService(database)


def _existing_order() -> Order:
    now = datetime.now(timezone.utc)
    return Order(
        id="a" * 24,
        customer_name="Ada",
        product_name="Widget",
        quantity=3,
        price=4.5,
        created_at=now,
        updated_at=now,
    )


def test_merge_keeps_existing_values_for_falsy_changes() -> None:
    merged = merge_order_fields(
        _existing_order(),
        OrderFields(customer_name="", product_name=None, quantity=0, price=0.0),
    )
    assert merged == OrderFields(customer_name="Ada", product_name="Widget", quantity=3, price=4.5)


def test_merge_overwrites_truthy_changes() -> None:
    merged = merge_order_fields(_existing_order(), OrderFields(product_name="Gadget", price=12))
    assert merged == OrderFields(customer_name="Ada", product_name="Gadget", quantity=3, price=12)


def test_validate_order_id() -> None:
    assert validate_order_id("ABCDEF0123456789abcdef01") == "abcdef0123456789abcdef01"
    with pytest.raises(InvalidIdentifierError):
        validate_order_id("not-an-id")
    with pytest.raises(InvalidIdentifierError):
        validate_order_id("a" * 24 + "\n")
    with pytest.raises(InvalidIdentifierError):
        validate_order_id("a" * 25)


def test_round_trip_create_list_delete(service: OrderService) -> None:
    created = anyio.run(service.create_order, OrderFields("Ada", "Widget", 2, 9.99))

    orders = anyio.run(service.list_orders)
    assert len(orders) == 1
    assert orders[0].id == created.id
    assert (orders[0].customer_name, orders[0].product_name) == ("Ada", "Widget")
    assert (orders[0].quantity, orders[0].price) == (2, 9.99)

    anyio.run(service.delete_order, created.id)
    assert anyio.run(service.list_orders) == []


def test_list_orders_on_empty_store(service: OrderService) -> None:
    assert anyio.run(service.list_orders) == []


def test_create_order_accepts_missing_fields(service: OrderService) -> None:
    created = anyio.run(service.create_order, OrderFields())
    assert created.customer_name is None
    assert created.quantity is None


def test_update_with_zero_quantity_keeps_old_value(service: OrderService) -> None:
    created = anyio.run(service.create_order, OrderFields("Ada", "Widget", 2, 9.99))

    updated = anyio.run(service.update_order, created.id, OrderFields(quantity=0))

    assert updated.quantity == 2
    assert anyio.run(service.list_orders)[0].quantity == 2


def test_partial_update_changes_only_supplied_fields(service: OrderService) -> None:
    created = anyio.run(service.create_order, OrderFields("Ada", "Widget", 2, 9.99))

    updated = anyio.run(service.update_order, created.id, OrderFields(customer_name="Grace", price=19.5))

    assert updated.id == created.id
    assert updated.customer_name == "Grace"
    assert updated.product_name == "Widget"
    assert updated.quantity == 2
    assert updated.price == 19.5


def test_update_unknown_order(service: OrderService) -> None:
    with pytest.raises(NotFoundError):
        anyio.run(service.update_order, "0" * 24, OrderFields(quantity=1))


def test_delete_unknown_order_keeps_store_intact(service: OrderService) -> None:
    anyio.run(service.create_order, OrderFields("Ada", "Widget", 2, 9.99))

    with pytest.raises(NotFoundError):
        anyio.run(service.delete_order, "0" * 24)

    assert len(anyio.run(service.list_orders)) == 1


def test_malformed_id_is_rejected_before_store_access(service: OrderService) -> None:
    with pytest.raises(InvalidIdentifierError):
        anyio.run(service.delete_order, "42")
    with pytest.raises(InvalidIdentifierError):
        anyio.run(service.update_order, "42", OrderFields(quantity=1))


def test_store_failure_on_create_is_internal_error(service: OrderService) -> None:
    with mock.patch.object(
        Database, "create_order", side_effect=sqlite3.OperationalError("database is locked")
    ):
        with pytest.raises(InternalError) as excinfo:
            anyio.run(service.create_order, OrderFields("Ada", "Widget", 2, 9.99))

    assert excinfo.value.field == "error"
    assert excinfo.value.message == "Failed to create order"


def test_store_failure_on_list_is_internal_error(service: OrderService) -> None:
    with mock.patch.object(
        Database, "list_orders", side_effect=sqlite3.OperationalError("database is locked")
    ):
        with pytest.raises(InternalError):
            anyio.run(service.list_orders)


def test_concurrent_updates_are_last_write_wins(service: OrderService) -> None:
    created = anyio.run(service.create_order, OrderFields("Ada", "Widget", 2, 9.99))

    async def _update_both() -> None:
        async with anyio.create_task_group() as tg:
            tg.start_soon(partial(service.update_order, created.id, OrderFields(quantity=7)))
            tg.start_soon(partial(service.update_order, created.id, OrderFields(price=1.25)))

    anyio.run(_update_both)

    final = anyio.run(service.list_orders)[0]
    assert final.quantity in (2, 7)
    assert final.price in (9.99, 1.25)
    assert (final.quantity, final.price) != (2, 9.99)


def test_integer_too_large_for_store_is_internal_error(service: OrderService) -> None:
    with pytest.raises(InternalError) as excinfo:
        anyio.run(service.create_order, OrderFields(quantity=10**20))
    assert excinfo.value.field == "error"

    created = anyio.run(service.create_order, OrderFields("Ada", "Widget", 2, 9.99))
    with pytest.raises(InternalError) as excinfo:
        anyio.run(service.update_order, created.id, OrderFields(price=10**20))
    assert excinfo.value.field == "message"
    assert anyio.run(service.list_orders)[0].price == 9.99
