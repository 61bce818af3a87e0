"""
Shared fixtures for the order desk tests.
"""

import pytest

from delivery_orders.domain import AppSnapshot, Order, OrderStatus, Product, Store, StoreDefaultItem
from delivery_orders.remote import InMemoryRemote
from delivery_orders.services import OrderDeskService


def make_order(**overrides) -> Order:
    defaults = dict(
        date="2024-05-01",
        delivery_time="08:00",
        store_name="Riverside",
        item_name="noodle",
        quantity=5,
        status=OrderStatus.PENDING,
        is_local=False,
    )
    defaults.update(overrides)
    return Order(**defaults)


@pytest.fixture
def snapshot():
    return AppSnapshot(
        stores=(
            Store(
                store_name="Riverside",
                phone="02-1111",
                holiday_dates=frozenset({"2024-05-03"}),
                delivery_time="7:30",
                default_items=(StoreDefaultItem("noodle", 10), StoreDefaultItem("bun", 2)),
            ),
            Store(store_name="Harbour", phone="02-2222", delivery_time="09:00"),
        ),
        products=(Product("noodle", "jin"), Product("bun", "pack"), Product("wrapper", "pack")),
        orders=(
            make_order(id="r1", store_name="Harbour", item_name="bun", quantity=4),
            make_order(
                id="r2",
                date="2024-05-02",
                item_name="noodle",
                quantity=2,
                status=OrderStatus.COMPLETED,
            ),
        ),
    )


@pytest.fixture
def remote(snapshot):
    return InMemoryRemote(snapshot)


@pytest.fixture
def service(remote):
    desk = OrderDeskService(remote)
    desk.refresh()
    return desk
