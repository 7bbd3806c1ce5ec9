"""Store contracts shared by the Postgres and in-memory backends."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Optional, Protocol, TypeVar

from container_calculator.models import (
    ContainerCalculation,
    ContainerType,
    CostComponent,
    LoadingPlan,
    ShippingRoute,
)

T = TypeVar("T", covariant=True)


class CatalogSource(Protocol[T]):
    def get_all(self) -> list[T]: ...

    def get_by_id(self, row_id: str) -> Optional[T]: ...


class CalculationStore(Protocol):
    def save(self, calculation: ContainerCalculation) -> str: ...

    def get_history(self, limit: int = 20) -> list[ContainerCalculation]: ...

    def get_by_id(self, calculation_id: str) -> Optional[ContainerCalculation]: ...

    def delete(self, calculation_id: str) -> None: ...


class CostComponentStore(Protocol):
    def save(self, components: list[CostComponent]) -> None: ...

    def get_by_calculation_id(self, calculation_id: str) -> list[CostComponent]: ...


class LoadingPlanStore(Protocol):
    def save(self, plan: LoadingPlan) -> str: ...

    def get_by_calculation_id(self, calculation_id: str) -> Optional[LoadingPlan]: ...


class Backend(Protocol):
    """Everything the calculator needs from a backing store."""

    containers: CatalogSource[ContainerType]
    routes: CatalogSource[ShippingRoute]
    calculations: CalculationStore
    cost_components: CostComponentStore
    loading_plans: LoadingPlanStore

    def transaction(self) -> AbstractContextManager[object]:
        """Scope in which all store writes commit or roll back together."""
        ...
