"""Duplicate detection for order entry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .domain import Order, OrderLine


@dataclass(frozen=True, slots=True)
class ConflictWarning:
    """Rows a store already ordered for a date.

    Not a failure: the caller either drops the submission or confirms it, in
    which case every row is admitted unchanged as a separate order line.
    """

    date: str
    store_name: str
    lines: Tuple[OrderLine, ...]

    @property
    def item_names(self) -> List[str]:
        return [line.item_name for line in self.lines]


def find_conflicts(
    candidate_rows: Iterable[OrderLine],
    existing_orders: Iterable[Order],
    date: str,
    store_name: str,
) -> List[OrderLine]:
    """Return the candidate rows whose ``(date, store, item)`` already exists.

    Quantity and staged/persisted status are ignored.
    """

    taken = {
        order.item_name
        for order in existing_orders
        if order.date == date and order.store_name == store_name
    }
    return [row for row in candidate_rows if row.item_name in taken]


def conflict_warning(
    candidate_rows: Sequence[OrderLine],
    existing_orders: Iterable[Order],
    date: str,
    store_name: str,
) -> Optional[ConflictWarning]:
    conflicts = find_conflicts(candidate_rows, existing_orders, date, store_name)
    if not conflicts:
        return None
    return ConflictWarning(date=date, store_name=store_name, lines=tuple(conflicts))


__all__ = ["ConflictWarning", "find_conflicts", "conflict_warning"]
