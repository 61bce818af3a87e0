"""Production totals derived from pending orders."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from .domain import Order, Product


@dataclass(slots=True)
class ProductionLine:
    item_name: str
    quantity: int
    unit: str = ""


@dataclass(slots=True)
class DailyProduction:
    """Totals to produce for one delivery date."""

    date: str
    lines: List[ProductionLine] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.lines)


def aggregate(orders: Iterable[Order]) -> Dict[str, Dict[str, int]]:
    """Sum pending quantities per date and item.

    Staged and persisted orders count alike; completed orders are left out.
    """

    totals: Dict[str, Dict[str, int]] = {}
    for order in orders:
        if not order.is_pending:
            continue
        per_item = totals.setdefault(order.date, {})
        per_item[order.item_name] = per_item.get(order.item_name, 0) + order.quantity
    return totals


def production_summary(
    orders: Iterable[Order], products: Sequence[Product]
) -> List[DailyProduction]:
    """Return aggregated totals ordered for display.

    Dates ascend; within a date items follow catalog order, and items the
    catalog does not know come last sorted by name.
    """

    totals = aggregate(orders)
    catalog_rank = {product.item_name: index for index, product in enumerate(products)}
    units = {product.item_name: product.unit for product in products}
    summary: List[DailyProduction] = []
    for day in sorted(totals):
        per_item = totals[day]
        ordered_items = sorted(
            per_item,
            key=lambda name: (catalog_rank.get(name, len(catalog_rank)), name),
        )
        summary.append(
            DailyProduction(
                date=day,
                lines=[
                    ProductionLine(
                        item_name=name,
                        quantity=per_item[name],
                        unit=units.get(name, ""),
                    )
                    for name in ordered_items
                ],
            )
        )
    return summary


def sorted_for_preview(orders: Iterable[Order]) -> List[Order]:
    """Order lines by delivery date, then delivery time."""

    return sorted(orders, key=lambda order: (order.date, order.delivery_time or ""))


__all__ = [
    "ProductionLine",
    "DailyProduction",
    "aggregate",
    "production_summary",
    "sorted_for_preview",
]
