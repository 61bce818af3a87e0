"""Service layer that implements the order entry and sync use-cases."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .aggregation import DailyProduction, aggregate, production_summary, sorted_for_preview
from .book import DiscardTarget, OrderBook, StagedOrder
from .domain import (
    DEFAULT_DELIVERY_TIME,
    AppSnapshot,
    Order,
    OrderLine,
    OrderStatus,
    Product,
    Store,
    coerce_quantity,
    normalize_date,
    normalize_time,
)
from .duplicates import ConflictWarning, conflict_warning
from .eligibility import eligible_stores, is_open, toggle_holiday
from .errors import ConflictPending, RemoteError, SyncFailure, ValidationError
from .remote import RemoteBackend
from .repository import InMemoryRepository, product_repository, store_repository

logger = logging.getLogger(__name__)

RowInput = Union[OrderLine, Tuple[str, Any], Mapping[str, Any]]


@dataclass(slots=True)
class OrderDraft:
    """Validated order entry waiting for submission."""

    date: str
    store_name: str
    delivery_time: str
    lines: Tuple[OrderLine, ...]
    warning: Optional[ConflictWarning] = None

    @property
    def has_conflicts(self) -> bool:
        return self.warning is not None

    def to_orders(self) -> List[Order]:
        return [
            Order(
                date=self.date,
                delivery_time=self.delivery_time,
                store_name=self.store_name,
                item_name=line.item_name,
                quantity=line.quantity,
                status=OrderStatus.PENDING,
                is_local=True,
            )
            for line in self.lines
        ]


@dataclass(slots=True)
class StoreDefaults:
    """Delivery time and template rows used to pre-fill an order."""

    store_name: str
    delivery_time: str
    lines: List[OrderLine] = field(default_factory=list)


def _row_parts(row: RowInput) -> Tuple[str, Any]:
    if isinstance(row, OrderLine):
        return row.item_name, row.quantity
    if isinstance(row, Mapping):
        return row.get("itemName") or row.get("item_name") or "", row.get("quantity")
    item_name, quantity = row
    return item_name, quantity


def parse_rows(rows: Iterable[RowInput]) -> List[OrderLine]:
    """Turn raw entry rows into order lines.

    Rows without an item name are blank form rows and are skipped. A named
    row whose quantity is not a positive whole number rejects the entry.
    """

    lines: List[OrderLine] = []
    for row in rows:
        item_name, quantity = _row_parts(row)
        item_name = str(item_name or "").strip()
        if not item_name:
            continue
        if quantity is None or quantity == "":
            raise ValidationError(f"Enter a quantity for {item_name}")
        lines.append(OrderLine(item_name=item_name, quantity=coerce_quantity(quantity)))
    if not lines:
        raise ValidationError("Enter at least one item with a quantity")
    return lines


class OrderDeskService:
    """Facade that exposes order desk use-cases to clients."""

    def __init__(
        self,
        remote: RemoteBackend,
        store_repo: Optional[InMemoryRepository[Store]] = None,
        product_repo: Optional[InMemoryRepository[Product]] = None,
        *,
        default_delivery_time: str = DEFAULT_DELIVERY_TIME,
    ) -> None:
        self.remote = remote
        self.stores = store_repo or store_repository()
        self.products = product_repo or product_repository()
        self.book = OrderBook(remote)
        self.default_delivery_time = normalize_time(default_delivery_time)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def refresh(self) -> AppSnapshot:
        snapshot = self.book.refresh()
        self._apply_catalog(snapshot)
        return snapshot

    def _apply_catalog(self, snapshot: AppSnapshot) -> None:
        self.stores.replace_all(snapshot.stores, strict=False)
        self.products.replace_all(snapshot.products, strict=False)

    # ------------------------------------------------------------------
    # Order entry
    # ------------------------------------------------------------------
    def eligible_stores(self, day: Union[str, date]) -> List[Store]:
        return eligible_stores(self.stores.list(), day)

    def store_defaults(self, store_name: str) -> StoreDefaults:
        store = self.stores.get(store_name)
        return StoreDefaults(
            store_name=store.store_name,
            delivery_time=store.delivery_time or self.default_delivery_time,
            lines=[
                OrderLine(item_name=item.item_name, quantity=item.quantity)
                for item in store.default_items
            ],
        )

    def unit_for(self, item_name: str) -> str:
        if item_name in self.products:
            return self.products.get(item_name).unit
        return ""

    def prepare_order(
        self,
        day: Union[str, date],
        store_name: str,
        delivery_time: str,
        rows: Iterable[RowInput],
    ) -> OrderDraft:
        """Validate an entry and attach any duplicate warning."""

        store_name = (store_name or "").strip()
        if not day or not store_name or not delivery_time:
            raise ValidationError("Date, store and delivery time are required")
        order_date = normalize_date(day)
        if store_name in self.stores and not is_open(self.stores.get(store_name), order_date):
            raise ValidationError(f"{store_name} is closed on {order_date}")
        lines = parse_rows(rows)
        draft = OrderDraft(
            date=order_date,
            store_name=store_name,
            delivery_time=normalize_time(delivery_time, self.default_delivery_time),
            lines=tuple(lines),
        )
        draft.warning = conflict_warning(
            draft.lines, self.book.all_orders, draft.date, draft.store_name
        )
        return draft

    def submit_order(self, draft: OrderDraft, *, override: bool = False) -> List[StagedOrder]:
        """Stage every line of ``draft``.

        Duplicates are checked again against the current book. Without
        ``override`` they raise ConflictPending and nothing is staged; with it
        every line is staged unchanged next to the existing ones.
        """

        warning = conflict_warning(
            draft.lines, self.book.all_orders, draft.date, draft.store_name
        )
        draft.warning = warning
        if warning is not None:
            if not override:
                logger.warning(
                    "Duplicate items for %s on %s: %s",
                    warning.store_name,
                    warning.date,
                    ", ".join(warning.item_names),
                )
                raise ConflictPending(warning)
            logger.info(
                "Staging duplicate items for %s on %s by request",
                warning.store_name,
                warning.date,
            )
        return self.book.admit_batch(draft.to_orders())

    def place_order(
        self,
        day: Union[str, date],
        store_name: str,
        delivery_time: str,
        rows: Iterable[RowInput],
        *,
        override: bool = False,
    ) -> List[StagedOrder]:
        draft = self.prepare_order(day, store_name, delivery_time, rows)
        return self.submit_order(draft, override=override)

    def discard_order(self, target: DiscardTarget) -> StagedOrder:
        return self.book.discard_local(target)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------
    def sync_orders(self) -> AppSnapshot:
        snapshot = self.book.commit_sync()
        self._apply_catalog(snapshot)
        return snapshot

    def save_stores(self, stores: Optional[Sequence[Store]] = None) -> AppSnapshot:
        """Replace the store catalog (when given) and persist it remotely."""

        with self.book.exclusive():
            if stores is not None:
                self.stores.replace_all(stores)
            try:
                self.remote.save_stores(self.stores.list())
            except RemoteError as exc:
                logger.warning("Saving stores failed: %s", exc)
                raise SyncFailure(str(exc)) from exc
        return self.refresh()

    def save_products(self, products: Optional[Sequence[Product]] = None) -> AppSnapshot:
        """Replace the product catalog (when given) and persist it remotely."""

        with self.book.exclusive():
            if products is not None:
                self.products.replace_all(products)
            try:
                self.remote.save_products(self.products.list())
            except RemoteError as exc:
                logger.warning("Saving products failed: %s", exc)
                raise SyncFailure(str(exc)) from exc
        return self.refresh()

    def toggle_holiday(self, store_name: str, day: Union[str, date]) -> Store:
        """Open or close a store on ``day``; persisted by the next save_stores."""

        store = toggle_holiday(self.stores.get(store_name), day)
        self.stores.upsert(store)
        return store

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def orders_for_preview(self) -> List[Order]:
        return sorted_for_preview(self.book.all_orders)

    def totals(self) -> Dict[str, Dict[str, int]]:
        return aggregate(self.book.all_orders)

    def production_summary(self) -> List[DailyProduction]:
        return production_summary(self.book.all_orders, self.products.list())


__all__ = [
    "OrderDeskService",
    "OrderDraft",
    "StoreDefaults",
    "parse_rows",
]
