"""Postgres backend (psycopg2). Tables are defined in schema.sql."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Generic, Optional, Type, TypeVar

from psycopg2.extras import Json

from container_calculator import db
from container_calculator.models import (
    ContainerCalculation,
    ContainerType,
    CostComponent,
    LoadingPlan,
    ShippingRoute,
)

R = TypeVar("R", ContainerType, ShippingRoute)


def _fetch_dicts(cur: Any) -> list[dict[str, Any]]:
    columns = [col[0] for col in cur.description]
    return [dict(zip(columns, row)) for row in cur.fetchall()]


def _fetch_dict(cur: Any) -> Optional[dict[str, Any]]:
    rows = _fetch_dicts(cur)
    return rows[0] if rows else None


def _stringify_ids(row: dict[str, Any], *keys: str) -> dict[str, Any]:
    for key in keys:
        if row.get(key) is not None:
            row[key] = str(row[key])
    return row


class PostgresCatalogSource(Generic[R]):
    """Read-through to a catalog table, ordered by `order_by` then id."""

    def __init__(self, table: str, model: Type[R], order_by: str) -> None:
        self._table = table
        self._model = model
        self._order_by = order_by

    def get_all(self) -> list[R]:
        with db.transaction() as cur:
            cur.execute(f"SELECT * FROM {self._table} ORDER BY {self._order_by} ASC, id ASC")
            return [self._model(**_stringify_ids(row, "id")) for row in _fetch_dicts(cur)]

    def get_by_id(self, row_id: str) -> Optional[R]:
        with db.transaction() as cur:
            cur.execute(f"SELECT * FROM {self._table} WHERE id::text = %s", (row_id,))
            row = _fetch_dict(cur)
        return self._model(**_stringify_ids(row, "id")) if row else None


_CALCULATION_COLUMNS = (
    "calculation_name",
    "container_type_id",
    "shipping_route_id",
    "cargo_length",
    "cargo_width",
    "cargo_height",
    "cargo_weight",
    "cargo_quantity",
    "dimension_unit",
    "weight_unit",
    "cargo_value",
    "max_boxes",
    "loading_efficiency",
    "total_weight",
    "total_cbm",
    "total_cost",
    "binding_constraint",
    "calculation_data",
)


def _calculation_from_row(row: dict[str, Any]) -> ContainerCalculation:
    row = _stringify_ids(row, "id", "container_type_id", "shipping_route_id")
    for key in ("cargo_length", "cargo_width", "cargo_height", "cargo_weight",
                "loading_efficiency", "total_weight", "total_cbm"):
        if row.get(key) is not None:
            row[key] = float(row[key])
    return ContainerCalculation(**row)


class PostgresCalculationStore:
    def save(self, calculation: ContainerCalculation) -> str:
        values = calculation.model_dump(mode="python", include=set(_CALCULATION_COLUMNS))
        values["binding_constraint"] = calculation.binding_constraint.value if calculation.binding_constraint else None
        values["calculation_data"] = Json(calculation.model_dump(mode="json")["calculation_data"])
        placeholders = ", ".join(["%s"] * len(_CALCULATION_COLUMNS))
        with db.transaction() as cur:
            cur.execute(
                f"INSERT INTO container_calculations ({', '.join(_CALCULATION_COLUMNS)}) "
                f"VALUES ({placeholders}) RETURNING id",
                tuple(values[col] for col in _CALCULATION_COLUMNS),
            )
            return str(cur.fetchone()[0])

    def get_history(self, limit: int = 20) -> list[ContainerCalculation]:
        with db.transaction() as cur:
            cur.execute(
                "SELECT * FROM container_calculations ORDER BY created_at DESC, id DESC LIMIT %s",
                (max(0, limit),),
            )
            return [_calculation_from_row(row) for row in _fetch_dicts(cur)]

    def get_by_id(self, calculation_id: str) -> Optional[ContainerCalculation]:
        with db.transaction() as cur:
            cur.execute("SELECT * FROM container_calculations WHERE id::text = %s", (calculation_id,))
            row = _fetch_dict(cur)
        return _calculation_from_row(row) if row else None

    def delete(self, calculation_id: str) -> None:
        # cost_components and loading_plans rows go with it (ON DELETE CASCADE)
        with db.transaction() as cur:
            cur.execute("DELETE FROM container_calculations WHERE id::text = %s", (calculation_id,))


class PostgresCostComponentStore:
    def save(self, components: list[CostComponent]) -> None:
        if not components:
            return
        with db.transaction() as cur:
            cur.executemany(
                "INSERT INTO cost_components (calculation_id, component_name, component_cost, component_type) "
                "VALUES (%s, %s, %s, %s)",
                [
                    (c.calculation_id, c.component_name, c.component_cost, c.component_type.value)
                    for c in components
                ],
            )

    def get_by_calculation_id(self, calculation_id: str) -> list[CostComponent]:
        with db.transaction() as cur:
            cur.execute(
                "SELECT id, calculation_id, component_name, component_cost, component_type "
                "FROM cost_components WHERE calculation_id::text = %s ORDER BY component_type ASC",
                (calculation_id,),
            )
            return [CostComponent(**_stringify_ids(row, "id", "calculation_id")) for row in _fetch_dicts(cur)]


_PLAN_COLUMNS = (
    "calculation_id",
    "plan_name",
    "arrangement_pattern",
    "length_count",
    "width_count",
    "height_count",
    "container_layout",
    "weight_distribution",
    "loading_instructions",
    "visualization_data",
)
_PLAN_JSON_COLUMNS = {"container_layout", "weight_distribution", "visualization_data"}


class PostgresLoadingPlanStore:
    def save(self, plan: LoadingPlan) -> str:
        dumped = plan.model_dump(mode="json")
        values = [
            Json(dumped[col]) if col in _PLAN_JSON_COLUMNS and dumped[col] is not None else dumped[col]
            for col in _PLAN_COLUMNS
        ]
        placeholders = ", ".join(["%s"] * len(_PLAN_COLUMNS))
        with db.transaction() as cur:
            cur.execute(
                f"INSERT INTO loading_plans ({', '.join(_PLAN_COLUMNS)}) VALUES ({placeholders}) RETURNING id",
                values,
            )
            return str(cur.fetchone()[0])

    def get_by_calculation_id(self, calculation_id: str) -> Optional[LoadingPlan]:
        with db.transaction() as cur:
            cur.execute("SELECT * FROM loading_plans WHERE calculation_id::text = %s", (calculation_id,))
            row = _fetch_dict(cur)
        if row is None:
            return None
        row.pop("created_at", None)
        return LoadingPlan(**_stringify_ids(row, "id", "calculation_id"))


class PostgresBackend:
    def __init__(self) -> None:
        self.containers = PostgresCatalogSource("container_types", ContainerType, order_by="rental_cost")
        self.routes = PostgresCatalogSource("shipping_routes", ShippingRoute, order_by="transit_days")
        self.calculations = PostgresCalculationStore()
        self.cost_components = PostgresCostComponentStore()
        self.loading_plans = PostgresLoadingPlanStore()

    def transaction(self) -> AbstractContextManager[Any]:
        return db.transaction()
