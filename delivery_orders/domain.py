"""Core data structures for the delivery order desk."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from .errors import ValidationError

DEFAULT_DELIVERY_TIME = "08:00"

_TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")


class OrderStatus(str, Enum):
    """Lifecycle stages for a delivery order."""

    PENDING = "pending"
    COMPLETED = "completed"


def normalize_time(value: Any, default: str = DEFAULT_DELIVERY_TIME) -> str:
    """Reduce a time-ish value to ``HH:MM``.

    Spreadsheet backends hand back anything from ``"8:30"`` to full
    timestamps, so the first ``H:MM`` group wins and the hour is padded.
    Values without such a group fall back to ``default``.
    """

    if not value:
        return default
    match = _TIME_PATTERN.search(str(value))
    if match is None:
        return default
    return f"{match.group(1).zfill(2)}:{match.group(2)}"


def normalize_date(value: Any) -> str:
    """Return the ``YYYY-MM-DD`` form of ``value`` or raise ValidationError."""

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value or "").strip()
    if not _DATE_PATTERN.match(text):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")
    text = text[:10]
    try:
        date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid date {value!r}") from exc
    return text


def coerce_quantity(value: Any) -> int:
    """Coerce ``value`` to a positive integer quantity."""

    if isinstance(value, bool):
        raise ValidationError(f"Invalid quantity {value!r}")
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, (float, str)):
        text = str(value).strip()
        try:
            number = float(text)
        except ValueError as exc:
            raise ValidationError(f"Invalid quantity {value!r}") from exc
        if not number.is_integer():
            raise ValidationError(f"Quantity must be a whole number, got {value!r}")
        quantity = int(number)
    else:
        raise ValidationError(f"Invalid quantity {value!r}")
    if quantity <= 0:
        raise ValidationError(f"Quantity must be positive, got {value!r}")
    return quantity


@dataclass(frozen=True, slots=True)
class Product:
    """Catalog entry; ``item_name`` is the natural key."""

    item_name: str
    unit: str = ""

    def __post_init__(self) -> None:
        if not self.item_name:
            raise ValidationError("A product needs an item name")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Product":
        return cls(
            item_name=str(payload.get("itemName", "")).strip(),
            unit=str(payload.get("unit") or ""),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {"itemName": self.item_name, "unit": self.unit}


@dataclass(frozen=True, slots=True)
class StoreDefaultItem:
    """A template line used to pre-populate new orders for a store."""

    item_name: str
    quantity: int

    def __post_init__(self) -> None:
        if not self.item_name:
            raise ValidationError("A default item needs an item name")
        object.__setattr__(self, "quantity", coerce_quantity(self.quantity))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "StoreDefaultItem":
        return cls(
            item_name=str(payload.get("itemName", "")).strip(),
            quantity=payload.get("quantity"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {"itemName": self.item_name, "quantity": self.quantity}


@dataclass(frozen=True, slots=True)
class Store:
    """Client store master data including its closing days."""

    store_name: str
    phone: str = ""
    holiday_dates: FrozenSet[str] = frozenset()
    delivery_time: str = DEFAULT_DELIVERY_TIME
    default_items: Tuple[StoreDefaultItem, ...] = tuple()

    def __post_init__(self) -> None:
        if not self.store_name:
            raise ValidationError("A store needs a store name")
        object.__setattr__(
            self,
            "holiday_dates",
            frozenset(normalize_date(day) for day in self.holiday_dates),
        )
        object.__setattr__(self, "delivery_time", normalize_time(self.delivery_time))
        object.__setattr__(self, "default_items", tuple(self.default_items))

    @property
    def sorted_holidays(self) -> List[str]:
        return sorted(self.holiday_dates)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Store":
        return cls(
            store_name=str(payload.get("storeName", "")).strip(),
            phone=str(payload.get("phone") or ""),
            holiday_dates=frozenset(
                day for day in payload.get("holidayDates") or () if day
            ),
            delivery_time=payload.get("deliveryTime") or DEFAULT_DELIVERY_TIME,
            default_items=tuple(
                StoreDefaultItem.from_payload(item)
                for item in payload.get("defaultItems") or ()
                if str(item.get("itemName") or "").strip()
            ),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "storeName": self.store_name,
            "phone": self.phone,
            "holidayDates": self.sorted_holidays,
            "deliveryTime": self.delivery_time,
            "defaultItems": [item.to_payload() for item in self.default_items],
        }


@dataclass(frozen=True, slots=True)
class OrderLine:
    """A candidate ``(item, quantity)`` row in the order entry flow."""

    item_name: str
    quantity: int


@dataclass(frozen=True, slots=True)
class Order:
    """A single delivery line for one store, item and date."""

    date: str
    delivery_time: str
    store_name: str
    item_name: str
    quantity: int
    status: OrderStatus = OrderStatus.PENDING
    is_local: bool = False
    created_at: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", OrderStatus(self.status))

    @property
    def key(self) -> Tuple[str, str, str]:
        """Natural identity used for duplicate detection."""
        return (self.date, self.store_name, self.item_name)

    @property
    def is_pending(self) -> bool:
        return self.status is OrderStatus.PENDING

    def with_status(self, status: OrderStatus) -> "Order":
        return replace(self, status=OrderStatus(status))

    def as_remote(self) -> "Order":
        return self if not self.is_local else replace(self, is_local=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Order":
        try:
            status = OrderStatus(payload.get("status") or OrderStatus.PENDING.value)
        except ValueError as exc:
            raise ValidationError(f"Unknown order status {payload.get('status')!r}") from exc
        created_at = payload.get("createdAt")
        order_id = payload.get("id")
        return cls(
            date=normalize_date(payload.get("date")),
            delivery_time=normalize_time(payload.get("deliveryTime")),
            store_name=str(payload.get("storeName", "")),
            item_name=str(payload.get("itemName", "")),
            quantity=coerce_quantity(payload.get("quantity")),
            status=status,
            is_local=bool(payload.get("isLocal", False)),
            created_at=str(created_at) if created_at else None,
            id=str(order_id) if order_id not in (None, "") else None,
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "date": self.date,
            "deliveryTime": self.delivery_time,
            "storeName": self.store_name,
            "itemName": self.item_name,
            "quantity": self.quantity,
            "status": self.status.value,
            "isLocal": self.is_local,
        }
        if self.created_at is not None:
            payload["createdAt"] = self.created_at
        if self.id is not None:
            payload["id"] = self.id
        return payload


@dataclass(frozen=True, slots=True)
class AppSnapshot:
    """The full object graph served by the remote backend."""

    stores: Tuple[Store, ...] = tuple()
    products: Tuple[Product, ...] = tuple()
    orders: Tuple[Order, ...] = tuple()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "AppSnapshot":
        return cls(
            stores=tuple(Store.from_payload(item) for item in payload.get("stores") or ()),
            products=tuple(
                Product.from_payload(item) for item in payload.get("products") or ()
            ),
            orders=tuple(
                Order.from_payload(item).as_remote()
                for item in payload.get("orders") or ()
            ),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "stores": [store.to_payload() for store in self.stores],
            "products": [product.to_payload() for product in self.products],
            "orders": [order.to_payload() for order in self.orders],
        }


__all__ = [
    "DEFAULT_DELIVERY_TIME",
    "OrderStatus",
    "Product",
    "StoreDefaultItem",
    "Store",
    "OrderLine",
    "Order",
    "AppSnapshot",
    "normalize_time",
    "normalize_date",
    "coerce_quantity",
]
