"""In-process backend: catalog seed rows plus dict-backed record stores."""

from __future__ import annotations

import copy
import itertools
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

from container_calculator.containers import default_container_types, default_shipping_routes
from container_calculator.errors import PersistenceError
from container_calculator.models import (
    ContainerCalculation,
    ContainerType,
    CostComponent,
    LoadingPlan,
    ShippingRoute,
)

R = TypeVar("R", ContainerType, ShippingRoute)


class MemoryCatalogSource(Generic[R]):
    def __init__(self, rows: list[R], sort_key: Callable[[R], Any]) -> None:
        self._rows = {row.id: row for row in rows}
        self._sort_key = sort_key

    def get_all(self) -> list[R]:
        return sorted(self._rows.values(), key=lambda row: (self._sort_key(row), row.id))

    def get_by_id(self, row_id: str) -> Optional[R]:
        return self._rows.get(row_id)


class _Tables:
    def __init__(self) -> None:
        self.calculations: dict[str, ContainerCalculation] = {}
        self.sequence: dict[str, int] = {}
        self.cost_components: dict[str, list[CostComponent]] = {}
        self.loading_plans: dict[str, LoadingPlan] = {}


class MemoryCalculationStore:
    def __init__(self, backend: "MemoryBackend") -> None:
        self._backend = backend

    def save(self, calculation: ContainerCalculation) -> str:
        with self._backend.transaction():
            tables = self._backend.tables
            calculation_id = str(uuid.uuid4())
            tables.calculations[calculation_id] = calculation.model_copy(update={
                "id": calculation_id,
                "created_at": datetime.now(timezone.utc),
            })
            tables.sequence[calculation_id] = next(self._backend.counter)
            return calculation_id

    def get_history(self, limit: int = 20) -> list[ContainerCalculation]:
        with self._backend.lock:
            tables = self._backend.tables
            ordered = sorted(
                tables.calculations.values(),
                key=lambda c: (c.created_at, tables.sequence[c.id]),
                reverse=True,
            )
            return [c.model_copy() for c in ordered[:max(0, limit)]]

    def get_by_id(self, calculation_id: str) -> Optional[ContainerCalculation]:
        with self._backend.lock:
            found = self._backend.tables.calculations.get(calculation_id)
            return found.model_copy() if found else None

    def delete(self, calculation_id: str) -> None:
        with self._backend.transaction():
            tables = self._backend.tables
            tables.calculations.pop(calculation_id, None)
            tables.sequence.pop(calculation_id, None)
            # Children cascade, as the foreign keys do in Postgres
            tables.cost_components.pop(calculation_id, None)
            tables.loading_plans.pop(calculation_id, None)


class MemoryCostComponentStore:
    def __init__(self, backend: "MemoryBackend") -> None:
        self._backend = backend

    def save(self, components: list[CostComponent]) -> None:
        with self._backend.transaction():
            tables = self._backend.tables
            for component in components:
                if component.calculation_id not in tables.calculations:
                    raise PersistenceError(f"calculation '{component.calculation_id}' does not exist")
                tables.cost_components.setdefault(component.calculation_id, []).append(
                    component.model_copy(update={"id": str(uuid.uuid4())})
                )

    def get_by_calculation_id(self, calculation_id: str) -> list[CostComponent]:
        with self._backend.lock:
            rows = self._backend.tables.cost_components.get(calculation_id, [])
            return sorted((c.model_copy() for c in rows), key=lambda c: c.component_type.value)


class MemoryLoadingPlanStore:
    def __init__(self, backend: "MemoryBackend") -> None:
        self._backend = backend

    def save(self, plan: LoadingPlan) -> str:
        with self._backend.transaction():
            tables = self._backend.tables
            if plan.calculation_id not in tables.calculations:
                raise PersistenceError(f"calculation '{plan.calculation_id}' does not exist")
            plan_id = str(uuid.uuid4())
            tables.loading_plans[plan.calculation_id] = plan.model_copy(update={"id": plan_id})
            return plan_id

    def get_by_calculation_id(self, calculation_id: str) -> Optional[LoadingPlan]:
        with self._backend.lock:
            found = self._backend.tables.loading_plans.get(calculation_id)
            return found.model_copy() if found else None


class MemoryBackend:
    """
    Dict-backed backend for tests and local runs without Postgres.

    transaction() snapshots the record tables and restores them if the block raises,
    so a failed multi-store save leaves nothing behind.
    """

    def __init__(
        self,
        container_types: list[ContainerType] | None = None,
        shipping_routes: list[ShippingRoute] | None = None,
    ) -> None:
        self.lock = threading.RLock()
        self.tables = _Tables()
        self.counter = itertools.count()
        self._depth = 0

        self.containers = MemoryCatalogSource(
            container_types if container_types is not None else default_container_types(),
            sort_key=lambda row: row.rental_cost,
        )
        self.routes = MemoryCatalogSource(
            shipping_routes if shipping_routes is not None else default_shipping_routes(),
            sort_key=lambda row: row.transit_days,
        )
        self.calculations = MemoryCalculationStore(self)
        self.cost_components = MemoryCostComponentStore(self)
        self.loading_plans = MemoryLoadingPlanStore(self)

    @contextmanager
    def transaction(self) -> Iterator["MemoryBackend"]:
        with self.lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            snapshot = copy.deepcopy(self.tables)
            self._depth = 1
            try:
                yield self
            except BaseException:
                self.tables = snapshot
                raise
            finally:
                self._depth = 0
