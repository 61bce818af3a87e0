"""Calendar based store eligibility."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, List, Union

from .domain import Store, normalize_date
from .errors import ValidationError

DateLike = Union[str, date]


def _holiday_key(day: DateLike) -> str:
    # unparseable dates match no holiday
    try:
        return normalize_date(day)
    except ValidationError:
        return str(day)


def is_open(store: Store, day: DateLike) -> bool:
    """Return True when ``store`` accepts deliveries on ``day``."""

    return _holiday_key(day) not in store.holiday_dates


def eligible_stores(stores: Iterable[Store], day: DateLike) -> List[Store]:
    """Return the stores open on ``day`` in their original order."""

    key = _holiday_key(day)
    return [store for store in stores if key not in store.holiday_dates]


def toggle_holiday(store: Store, day: DateLike) -> Store:
    """Return a copy of ``store`` with ``day`` added to or removed from its holidays."""

    key = normalize_date(day)
    if key in store.holiday_dates:
        holidays = store.holiday_dates - {key}
    else:
        holidays = store.holiday_dates | {key}
    return replace(store, holiday_dates=holidays)


__all__ = ["is_open", "eligible_stores", "toggle_holiday"]
