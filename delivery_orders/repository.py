"""Simple in-memory catalog repositories used by the service layer."""

from __future__ import annotations

from typing import Callable, Dict, Generic, Iterable, Iterator, List, TypeVar

from .domain import Product, Store

T = TypeVar("T")


class RepositoryError(RuntimeError):
    """Base exception for repository errors."""


class DuplicateRecordError(RepositoryError):
    """Raised when attempting to insert a record that already exists."""


class RecordNotFoundError(RepositoryError):
    """Raised when a requested record is missing."""


class InMemoryRepository(Generic[T]):
    """Insertion-ordered repository keyed by a record's natural key."""

    def __init__(self, key: Callable[[T], str]) -> None:
        self._key = key
        self._items: Dict[str, T] = {}

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items.values())

    def add(self, item: T) -> None:
        item_id = self._key(item)
        if item_id in self._items:
            raise DuplicateRecordError(f"Record with id {item_id!r} already exists")
        self._items[item_id] = item

    def upsert(self, item: T) -> None:
        self._items[self._key(item)] = item

    def get(self, item_id: str) -> T:
        try:
            return self._items[item_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Record with id {item_id!r} not found") from exc

    def remove(self, item_id: str) -> None:
        if item_id not in self._items:
            raise RecordNotFoundError(f"Record with id {item_id!r} not found")
        del self._items[item_id]

    def replace_all(self, items: Iterable[T], *, strict: bool = True) -> None:
        """Swap the whole collection.

        With ``strict`` a repeated key is an error, otherwise the later
        record wins (remote sheets are edited by hand).
        """

        fresh: Dict[str, T] = {}
        for item in items:
            item_id = self._key(item)
            if strict and item_id in fresh:
                raise DuplicateRecordError(f"Record with id {item_id!r} is listed twice")
            fresh[item_id] = item
        self._items = fresh

    def list(self) -> List[T]:
        return list(self._items.values())


def store_repository() -> InMemoryRepository[Store]:
    return InMemoryRepository(key=lambda store: store.store_name)


def product_repository() -> InMemoryRepository[Product]:
    return InMemoryRepository(key=lambda product: product.item_name)


__all__ = [
    "InMemoryRepository",
    "RepositoryError",
    "DuplicateRecordError",
    "RecordNotFoundError",
    "store_repository",
    "product_repository",
]
