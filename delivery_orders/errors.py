"""Exceptions raised by the order desk engine and its remotes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .duplicates import ConflictWarning


class OrderDeskError(RuntimeError):
    """Base exception for order desk errors."""


class ValidationError(OrderDeskError, ValueError):
    """Raised when order input is incomplete or malformed."""


class ConflictPending(OrderDeskError):
    """Raised when a submission hits duplicates and no override was given."""

    def __init__(self, warning: "ConflictWarning") -> None:
        items = ", ".join(line.item_name for line in warning.lines)
        super().__init__(
            f"{warning.store_name} already ordered {items} for {warning.date}"
        )
        self.warning = warning


class NotStagedError(OrderDeskError):
    """Raised when discarding an order that is not locally staged."""


class RemoteError(OrderDeskError):
    """Transport or protocol failure reported by a remote backend."""


class SyncFailure(OrderDeskError):
    """Raised when staged orders or catalog data could not be persisted."""


class LoadFailure(OrderDeskError):
    """Raised when the remote snapshot could not be fetched."""


class SyncInProgressError(OrderDeskError):
    """Raised when a remote round trip is requested while one is running."""


class NothingToSyncError(OrderDeskError):
    """Raised when a sync is requested without any staged orders."""


__all__ = [
    "OrderDeskError",
    "ValidationError",
    "ConflictPending",
    "NotStagedError",
    "RemoteError",
    "SyncFailure",
    "LoadFailure",
    "SyncInProgressError",
    "NothingToSyncError",
]
