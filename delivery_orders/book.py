"""Reconciliation of remote and locally staged orders."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Sequence, Union
from uuid import uuid4

from .domain import (
    AppSnapshot,
    Order,
    OrderStatus,
    coerce_quantity,
    normalize_date,
    normalize_time,
)
from .errors import (
    LoadFailure,
    NothingToSyncError,
    NotStagedError,
    RemoteError,
    SyncFailure,
    SyncInProgressError,
    ValidationError,
)
from .remote import RemoteBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StagedOrder:
    """An order admitted in this session but not yet persisted remotely."""

    handle: str
    order: Order


DiscardTarget = Union[StagedOrder, Order, str]


def validate_order(order: Order) -> Order:
    """Return a staged, pending copy of ``order`` or raise ValidationError."""

    missing = [
        label
        for label, value in (
            ("date", order.date),
            ("store", order.store_name),
            ("delivery time", order.delivery_time),
            ("item", order.item_name),
        )
        if not value
    ]
    if missing:
        raise ValidationError(f"Missing order fields: {', '.join(missing)}")
    return replace(
        order,
        date=normalize_date(order.date),
        delivery_time=normalize_time(order.delivery_time),
        quantity=coerce_quantity(order.quantity),
        status=OrderStatus.PENDING,
        is_local=True,
        created_at=order.created_at or datetime.now(timezone.utc).isoformat(),
    )


class OrderBook:
    """Holds the authoritative remote orders next to locally staged ones.

    Only the methods of this class change order state. ``refresh`` and
    ``commit_sync`` talk to the remote; at most one of them runs at a time.
    """

    def __init__(self, remote: RemoteBackend) -> None:
        self._remote_backend = remote
        self._remote: List[Order] = []
        self._local: List[StagedOrder] = []
        self._in_flight = threading.Lock()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    @property
    def remote_orders(self) -> List[Order]:
        return list(self._remote)

    @property
    def local_orders(self) -> List[Order]:
        return [staged.order for staged in self._local]

    @property
    def staged(self) -> List[StagedOrder]:
        return list(self._local)

    @property
    def all_orders(self) -> List[Order]:
        return self._remote + [staged.order for staged in self._local]

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def load(self, snapshot: Union[AppSnapshot, Iterable[Order]]) -> None:
        """Replace the remote orders wholesale; staged orders are kept."""

        orders = snapshot.orders if isinstance(snapshot, AppSnapshot) else snapshot
        self._remote = [order.as_remote() for order in orders]
        logger.info(
            "Loaded %d remote orders, %d staged orders kept",
            len(self._remote),
            len(self._local),
        )

    def admit(self, order: Order) -> StagedOrder:
        return self.admit_batch([order])[0]

    def admit_batch(self, orders: Sequence[Order]) -> List[StagedOrder]:
        """Stage every order or none of them."""

        if not orders:
            raise ValidationError("At least one order line is required")
        staged = [
            StagedOrder(handle=uuid4().hex, order=validate_order(order))
            for order in orders
        ]
        self._local.extend(staged)
        logger.info("Staged %d order lines", len(staged))
        return staged

    def discard_local(self, target: DiscardTarget) -> StagedOrder:
        """Remove one staged order; persisted orders cannot be discarded here."""

        for index, staged in enumerate(self._local):
            if (
                staged is target
                or staged.handle == target
                or staged.order is target
            ):
                del self._local[index]
                logger.debug("Discarded staged order %s", staged.handle)
                return staged
        raise NotStagedError(
            "Only locally staged orders can be discarded; "
            "persisted orders must be removed in the remote backend"
        )

    # ------------------------------------------------------------------
    # Remote round trips
    # ------------------------------------------------------------------
    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the single remote round-trip slot or fail immediately."""
        if not self._in_flight.acquire(blocking=False):
            raise SyncInProgressError("Another sync or refresh is still running")
        try:
            yield
        finally:
            self._in_flight.release()

    def refresh(self) -> AppSnapshot:
        """Fetch the remote snapshot and load its orders."""

        with self.exclusive():
            return self._fetch_and_load()

    def _fetch_and_load(self) -> AppSnapshot:
        try:
            snapshot = self._remote_backend.fetch()
        except RemoteError as exc:
            logger.warning("Loading remote data failed: %s", exc)
            raise LoadFailure(str(exc)) from exc
        self.load(snapshot)
        return snapshot

    def commit_sync(self) -> AppSnapshot:
        """Persist all staged orders in one call, then reload.

        A failed write leaves the staged orders untouched. A retry after a
        write the remote applied but failed to confirm sends them again.
        """

        with self.exclusive():
            batch = list(self._local)
            if not batch:
                raise NothingToSyncError("There are no staged orders to upload")
            try:
                self._remote_backend.save_orders([staged.order for staged in batch])
            except RemoteError as exc:
                logger.warning("Uploading %d staged orders failed: %s", len(batch), exc)
                raise SyncFailure(str(exc)) from exc
            sent = {id(staged) for staged in batch}
            self._local = [staged for staged in self._local if id(staged) not in sent]
            # keep the uploaded lines visible until the reload replaces them
            self._remote.extend(staged.order.as_remote() for staged in batch)
            logger.info("Uploaded %d staged orders", len(batch))
            return self._fetch_and_load()


__all__ = ["OrderBook", "StagedOrder", "validate_order"]
