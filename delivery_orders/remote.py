"""Remote backends holding the authoritative stores, products and orders."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar
from uuid import uuid4

import requests

from .domain import AppSnapshot, Order, Product, Store
from .errors import RemoteError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RemoteBackend(Protocol):
    """What the order desk needs from the remote collaborator.

    Each call is atomic: it either fully succeeds or raises RemoteError.
    """

    def fetch(self) -> AppSnapshot: ...

    def save_orders(self, orders: Sequence[Order]) -> None: ...

    def save_stores(self, stores: Sequence[Store]) -> None: ...

    def save_products(self, products: Sequence[Product]) -> None: ...


def _parse_rows(kind: str, rows: Any, parse: Callable[[Mapping[str, Any]], T]) -> List[T]:
    """Parse each row on its own; rows that do not parse are logged and skipped."""

    if rows is None:
        return []
    if not isinstance(rows, list):
        raise RemoteError(f"Malformed remote data: {kind} is not a list")
    parsed: List[T] = []
    for index, row in enumerate(rows):
        try:
            if not isinstance(row, Mapping):
                raise TypeError(f"expected an object, got {type(row).__name__}")
            parsed.append(parse(row))
        except (ValidationError, AttributeError, TypeError) as exc:
            logger.warning("Skipping malformed %s row %d: %s", kind, index, exc)
    return parsed


def parse_snapshot(payload: Any) -> AppSnapshot:
    if not isinstance(payload, Mapping):
        raise RemoteError("Remote returned an unexpected payload")
    if payload.get("status") == "error":
        raise RemoteError(f"Remote error: {payload.get('message') or 'unknown'}")
    return AppSnapshot(
        stores=tuple(_parse_rows("store", payload.get("stores"), Store.from_payload)),
        products=tuple(
            _parse_rows("product", payload.get("products"), Product.from_payload)
        ),
        orders=tuple(
            order.as_remote()
            for order in _parse_rows("order", payload.get("orders"), Order.from_payload)
        ),
    )


class HttpRemote:
    """JSON-over-HTTP client for the spreadsheet web app endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not url:
            raise ValueError("A remote URL is required")
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()

    def fetch(self) -> AppSnapshot:
        # cache buster, the endpoint is served behind a CDN
        params = {"t": int(time.time() * 1000)}
        try:
            response = self._session.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RemoteError(f"Could not reach remote: {exc}") from exc
        snapshot = parse_snapshot(self._decode(response))
        logger.debug(
            "Fetched %d stores, %d products, %d orders",
            len(snapshot.stores),
            len(snapshot.products),
            len(snapshot.orders),
        )
        return snapshot

    def save_orders(self, orders: Sequence[Order]) -> None:
        self._post(
            {"action": "saveOrders", "orders": [order.to_payload() for order in orders]}
        )

    def save_stores(self, stores: Sequence[Store]) -> None:
        self._post(
            {"action": "saveStores", "stores": [store.to_payload() for store in stores]}
        )

    def save_products(self, products: Sequence[Product]) -> None:
        self._post(
            {
                "action": "saveProducts",
                "products": [product.to_payload() for product in products],
            }
        )

    def _post(self, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            # sent as a plain body, the endpoint reads the raw post data
            response = self._session.post(
                self.url,
                data=json.dumps(body),
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            raise RemoteError(f"Could not reach remote: {exc}") from exc
        result = self._decode(response)
        if not isinstance(result, dict):
            raise RemoteError("Remote returned an unexpected payload")
        if result.get("status") == "error":
            raise RemoteError(f"Remote error: {result.get('message') or 'unknown'}")
        logger.info("Remote accepted %s", body["action"])
        return result

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.ok:
            raise RemoteError(f"Remote responded with HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteError("Remote returned invalid JSON") from exc


class InMemoryRemote:
    """Process-local stand-in for the remote endpoint.

    Orders saved here are appended with a fresh id and timestamp, stores and
    products replace their collection, just like the spreadsheet backend.
    """

    def __init__(self, snapshot: Optional[AppSnapshot] = None) -> None:
        snapshot = snapshot or AppSnapshot()
        self._stores: List[Store] = list(snapshot.stores)
        self._products: List[Product] = list(snapshot.products)
        self._orders: List[Order] = [order.as_remote() for order in snapshot.orders]
        self._failures: List[Tuple[Optional[str], str]] = []
        self.calls: List[str] = []

    def fail_next(
        self,
        message: str = "simulated outage",
        times: int = 1,
        *,
        action: Optional[str] = None,
    ) -> None:
        """Make the next calls fail, optionally only calls of one ``action``."""
        self._failures.extend([(action, message)] * times)

    def _check(self, action: str) -> None:
        self.calls.append(action)
        for index, (only, message) in enumerate(self._failures):
            if only is None or only == action:
                del self._failures[index]
                raise RemoteError(message)

    def fetch(self) -> AppSnapshot:
        self._check("fetch")
        return AppSnapshot(
            stores=tuple(self._stores),
            products=tuple(self._products),
            orders=tuple(self._orders),
        )

    def save_orders(self, orders: Sequence[Order]) -> None:
        self._check("saveOrders")
        for order in orders:
            self._orders.append(
                Order(
                    date=order.date,
                    delivery_time=order.delivery_time,
                    store_name=order.store_name,
                    item_name=order.item_name,
                    quantity=order.quantity,
                    status=order.status,
                    is_local=False,
                    created_at=order.created_at or _utc_now_iso(),
                    id=order.id or uuid4().hex,
                )
            )

    def save_stores(self, stores: Sequence[Store]) -> None:
        self._check("saveStores")
        self._stores = list(stores)

    def save_products(self, products: Sequence[Product]) -> None:
        self._check("saveProducts")
        self._products = list(products)


__all__ = ["RemoteBackend", "HttpRemote", "InMemoryRemote", "parse_snapshot"]
