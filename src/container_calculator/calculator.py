"""Calculation orchestration: validate, look up catalogs, arrange, cost, persist."""

from __future__ import annotations

import logging
from typing import Optional

from container_calculator import config
from container_calculator.capacity import compute_arrangement, validate_cargo
from container_calculator.catalog import ContainerCatalog, RouteCatalog
from container_calculator.costs import compose_costs
from container_calculator.errors import NotFoundError
from container_calculator.geometry import MAX_RENDERED_PLACEMENTS, grid_placements, layer_distribution
from container_calculator.models import (
    ArrangementResult,
    CalculationDetail,
    CalculationDraft,
    CalculationRequest,
    ContainerCalculation,
    ContainerType,
    CostBreakdown,
    LoadingPlan,
)
from container_calculator.storage.base import Backend

logger = logging.getLogger(__name__)

GENERAL_LOADING_INSTRUCTIONS = [
    "Load the heaviest boxes on the floor layer first.",
    "Spread weight evenly across the container floor.",
    "Leave at least 10 cm of free space for airflow and handling access.",
    "Use dunnage or pallets to protect boxes from floor moisture and damage.",
    "Do not exceed the container's maximum payload.",
    "Secure the load with straps so it cannot shift in transit.",
    "Add moisture absorbers for humidity-sensitive cargo.",
    "Photograph the loading process for insurance claims.",
]


def loading_instructions(arrangement: ArrangementResult) -> str:
    L, W, H = arrangement.box_dims_cm
    specific = [
        f"Orient each box {L:g} x {W:g} x {H:g} cm (length x width x height).",
        f"Stack {arrangement.height_count} layer(s) of {arrangement.length_count} x {arrangement.width_count} boxes, "
        f"starting at the back wall.",
        f"Load {arrangement.effective_max_boxes} box(es) in total.",
    ]
    return "\n".join(specific + GENERAL_LOADING_INSTRUCTIONS)


def build_loading_plan(arrangement: ArrangementResult, container: ContainerType,
                       plan_name: Optional[str] = None) -> LoadingPlan:
    placements = grid_placements(arrangement)
    return LoadingPlan(
        plan_name=plan_name or f"{container.type_code} {arrangement.arrangement_pattern}",
        arrangement_pattern=arrangement.arrangement_pattern,
        length_count=arrangement.length_count,
        width_count=arrangement.width_count,
        height_count=arrangement.height_count,
        container_layout={
            "container_type": container.type_code,
            "container_cm": [
                round(container.internal_length * 100, 2),
                round(container.internal_width * 100, 2),
                round(container.internal_height * 100, 2),
            ],
            "box_cm": list(arrangement.box_dims_cm),
            "grid": {
                "length_count": arrangement.length_count,
                "width_count": arrangement.width_count,
                "height_count": arrangement.height_count,
            },
            "remaining_space_cm": [round(v, 2) for v in arrangement.remaining_space_cm],
        },
        weight_distribution=layer_distribution(arrangement),
        loading_instructions=loading_instructions(arrangement),
        visualization_data={
            "placements": [
                {"x": p.x, "y": p.y, "z": p.z, "dims": list(p.rotation)} for p in placements
            ],
            "placements_count": arrangement.effective_max_boxes,
            "truncated": arrangement.effective_max_boxes > MAX_RENDERED_PLACEMENTS,
        },
    )


def _calculation_data(arrangement: ArrangementResult, costs: CostBreakdown, allow_rotation: bool) -> dict:
    return {
        "arrangement": {
            "pattern": arrangement.arrangement_pattern,
            "geometric_max_boxes": arrangement.geometric_max_boxes,
            "payload_max_boxes": arrangement.payload_max_boxes,
            "box_cm": list(arrangement.box_dims_cm),
            "remaining_space_cm": [round(v, 2) for v in arrangement.remaining_space_cm],
            "allow_rotation": allow_rotation,
        },
        "costs": {
            c.component_type.value: str(c.component_cost) for c in costs.components
        },
    }


class ContainerCalculator:
    """
    Entry point used by the UI layer.

    calculate() has no side effects; save() persists the calculation together with
    its cost components and loading plan in one backend transaction.
    """

    def __init__(self, backend: Backend, cache_catalog: bool | None = None) -> None:
        cache = config.CATALOG_CACHE if cache_catalog is None else cache_catalog
        self.backend = backend
        self.containers = ContainerCatalog(backend.containers, cache=cache)
        self.routes = RouteCatalog(backend.routes, cache=cache)

    def calculate(self, request: CalculationRequest) -> CalculationDraft:
        cargo = request.cargo
        # Bad numbers and unit tokens fail before any backend call
        validate_cargo(cargo)

        container = self.containers.get_by_id(request.container_type_id)
        if container is None:
            raise NotFoundError("container type", request.container_type_id)

        route = None
        if request.shipping_route_id:
            route = self.routes.get_by_id(request.shipping_route_id)
            if route is None:
                raise NotFoundError("shipping route", request.shipping_route_id)

        arrangement = compute_arrangement(container, cargo, allow_rotation=request.allow_rotation)
        arrangement.raise_for_fit()

        costs = compose_costs(container, route, arrangement, cargo.value)
        calculation = ContainerCalculation(
            calculation_name=request.calculation_name,
            container_type_id=container.id,
            shipping_route_id=route.id if route else None,
            cargo_length=float(cargo.length),
            cargo_width=float(cargo.width),
            cargo_height=float(cargo.height),
            cargo_weight=float(cargo.weight),
            cargo_quantity=cargo.quantity,
            dimension_unit=cargo.dimension_unit,
            weight_unit=cargo.weight_unit,
            cargo_value=cargo.value,
            max_boxes=arrangement.effective_max_boxes,
            loading_efficiency=arrangement.loading_efficiency,
            total_weight=costs.total_weight,
            total_cbm=costs.total_cbm,
            total_cost=costs.total_cost,
            binding_constraint=arrangement.binding_constraint,
            calculation_data=_calculation_data(arrangement, costs, request.allow_rotation),
        )
        return CalculationDraft(
            calculation=calculation,
            arrangement=arrangement,
            costs=costs,
            loading_plan=build_loading_plan(arrangement, container, request.calculation_name),
            container=container,
            route=route,
        )

    def save(self, request: CalculationRequest) -> CalculationDetail:
        return self.save_draft(self.calculate(request))

    def save_draft(self, draft: CalculationDraft) -> CalculationDetail:
        backend = self.backend
        with backend.transaction():
            calculation_id = backend.calculations.save(draft.calculation)
            backend.cost_components.save([
                c.model_copy(update={"calculation_id": calculation_id}) for c in draft.costs.components
            ])
            backend.loading_plans.save(draft.loading_plan.model_copy(update={"calculation_id": calculation_id}))

        logger.info(
            f"saved calculation={calculation_id}, max_boxes={draft.calculation.max_boxes}, "
            f"binding={draft.arrangement.binding_constraint.value}, total_cost={draft.calculation.total_cost}"
        )
        detail = self.get(calculation_id)
        if detail is None:
            raise NotFoundError("calculation", calculation_id)
        return detail

    def history(self, limit: int | None = None) -> list[ContainerCalculation]:
        return self.backend.calculations.get_history(config.HISTORY_LIMIT if limit is None else limit)

    def get(self, calculation_id: str) -> Optional[CalculationDetail]:
        calculation = self.backend.calculations.get_by_id(calculation_id)
        if calculation is None:
            return None
        return CalculationDetail(
            calculation=calculation,
            cost_components=self.backend.cost_components.get_by_calculation_id(calculation_id),
            loading_plan=self.backend.loading_plans.get_by_calculation_id(calculation_id),
        )

    def delete(self, calculation_id: str) -> None:
        self.backend.calculations.delete(calculation_id)
        logger.info(f"deleted calculation={calculation_id}")


def create_backend() -> Backend:
    """Backend chosen by CALCULATOR_BACKEND."""
    if config.CALCULATOR_BACKEND == "postgres":
        from container_calculator.storage.postgres import PostgresBackend

        return PostgresBackend()
    if config.CALCULATOR_BACKEND == "memory":
        from container_calculator.storage.memory import MemoryBackend

        return MemoryBackend()
    raise ValueError(f"Unknown CALCULATOR_BACKEND '{config.CALCULATOR_BACKEND}'. Valid: ['memory', 'postgres']")
