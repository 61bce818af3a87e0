"""Delivery order desk for a small noodle factory.

This package stages delivery orders for client stores, reconciles them with
an authoritative remote order sheet, flags duplicate entries before they are
admitted, filters stores by their closing days, and aggregates pending
orders into per-date production totals.
"""

from .aggregation import DailyProduction, aggregate, production_summary
from .book import OrderBook, StagedOrder
from .domain import (
    AppSnapshot,
    Order,
    OrderLine,
    OrderStatus,
    Product,
    Store,
    StoreDefaultItem,
)
from .duplicates import ConflictWarning, find_conflicts
from .eligibility import eligible_stores
from .errors import (
    ConflictPending,
    LoadFailure,
    NothingToSyncError,
    NotStagedError,
    OrderDeskError,
    SyncFailure,
    SyncInProgressError,
    ValidationError,
)
from .remote import HttpRemote, InMemoryRemote
from .services import OrderDeskService, OrderDraft

__all__ = [
    "AppSnapshot",
    "Order",
    "OrderLine",
    "OrderStatus",
    "Product",
    "Store",
    "StoreDefaultItem",
    "OrderBook",
    "StagedOrder",
    "ConflictWarning",
    "find_conflicts",
    "eligible_stores",
    "aggregate",
    "production_summary",
    "DailyProduction",
    "HttpRemote",
    "InMemoryRemote",
    "OrderDeskService",
    "OrderDraft",
    "OrderDeskError",
    "ValidationError",
    "ConflictPending",
    "NotStagedError",
    "SyncFailure",
    "LoadFailure",
    "SyncInProgressError",
    "NothingToSyncError",
]
