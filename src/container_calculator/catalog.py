"""Container and route catalogs: read-only lookups over a CatalogSource."""

from __future__ import annotations

import threading
from typing import Generic, Optional, TypeVar

from container_calculator.models import ContainerType, ShippingRoute
from container_calculator.storage.base import CatalogSource

R = TypeVar("R", ContainerType, ShippingRoute)


class Catalog(Generic[R]):
    """
    get_all() keeps the source's ordering; get_by_id() returns None for a missing id.

    With cache=True, rows found by id are kept for the life of the process.
    Misses are not cached so newly loaded rows become visible.
    """

    def __init__(self, source: CatalogSource[R], cache: bool = False) -> None:
        self._source = source
        self._cache_enabled = cache
        self._cache: dict[str, R] = {}
        self._lock = threading.Lock()

    def get_all(self) -> list[R]:
        rows = self._source.get_all()
        if self._cache_enabled:
            with self._lock:
                self._cache.update({row.id: row for row in rows})
        return rows

    def get_by_id(self, row_id: str) -> Optional[R]:
        if self._cache_enabled:
            with self._lock:
                cached = self._cache.get(row_id)
            if cached is not None:
                return cached

        row = self._source.get_by_id(row_id)
        if row is not None and self._cache_enabled:
            with self._lock:
                self._cache[row_id] = row
        return row

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()


class ContainerCatalog(Catalog[ContainerType]):
    """Container types, cheapest rental first."""


class RouteCatalog(Catalog[ShippingRoute]):
    """Shipping routes, shortest transit first."""
