"""Demonstration script for the delivery order desk."""

from __future__ import annotations

from datetime import date, timedelta
from pprint import pprint
from typing import Optional

from . import ConflictPending, InMemoryRemote, OrderDeskService
from .config import Settings, configure_logging
from .domain import AppSnapshot, Order, OrderStatus, Product, Store, StoreDefaultItem


def demo_snapshot(today: Optional[date] = None) -> AppSnapshot:
    """A small factory catalog with two client stores and some history."""

    today = today or date.today()
    tomorrow = (today + timedelta(days=1)).isoformat()
    return AppSnapshot(
        stores=(
            Store(
                store_name="Riverside Noodle Bar",
                phone="02-2345-6789",
                holiday_dates=frozenset({(today + timedelta(days=2)).isoformat()}),
                delivery_time="07:30",
                default_items=(
                    StoreDefaultItem("Yellow noodles", 12),
                    StoreDefaultItem("Wonton wrappers", 4),
                ),
            ),
            Store(
                store_name="Harbour Canteen",
                phone="02-8765-4321",
                delivery_time="9:15",
            ),
        ),
        products=(
            Product("Yellow noodles", "jin"),
            Product("Rice noodles", "jin"),
            Product("Wonton wrappers", "pack"),
        ),
        orders=(
            Order(
                date=tomorrow,
                delivery_time="09:15",
                store_name="Harbour Canteen",
                item_name="Rice noodles",
                quantity=6,
                id="seed-1",
            ),
            Order(
                date=today.isoformat(),
                delivery_time="09:15",
                store_name="Harbour Canteen",
                item_name="Yellow noodles",
                quantity=5,
                status=OrderStatus.COMPLETED,
                id="seed-2",
            ),
        ),
    )


def main() -> None:
    configure_logging(Settings.from_env().log_level)
    desk = OrderDeskService(InMemoryRemote(demo_snapshot()))
    desk.refresh()

    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    print("Stores open tomorrow:", [store.store_name for store in desk.eligible_stores(tomorrow)])

    defaults = desk.store_defaults("Riverside Noodle Bar")
    desk.place_order(tomorrow, defaults.store_name, defaults.delivery_time, defaults.lines)

    try:
        desk.place_order(tomorrow, "Harbour Canteen", "09:15", [("Rice noodles", 3)])
    except ConflictPending as exc:
        print("Duplicate detected:", exc.warning.item_names)
        desk.place_order(
            tomorrow, "Harbour Canteen", "09:15", [("Rice noodles", 3)], override=True
        )

    print("Staged orders:", len(desk.book.local_orders))
    pprint(desk.totals())

    desk.sync_orders()
    print("Staged orders after sync:", len(desk.book.local_orders))
    for day in desk.production_summary():
        print(day.date)
        for line in day.lines:
            print(f"  {line.item_name}: {line.quantity} {line.unit}")


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
