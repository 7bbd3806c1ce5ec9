"""Cost composer: itemised shipping cost for one calculation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from container_calculator import units
from container_calculator.models import (
    ArrangementResult,
    ComponentType,
    ContainerType,
    CostBreakdown,
    CostComponent,
    ShippingRoute,
)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

WEIGHT_DECIMALS = 3

COMPONENT_NAMES: dict[ComponentType, str] = {
    ComponentType.RENTAL: "Container Rental",
    ComponentType.HANDLING: "Handling Charges",
    ComponentType.DOCUMENTATION: "Documentation Fee",
    ComponentType.INSURANCE: "Insurance",
}


def money(value: Decimal | float | int | str) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _component(component_type: ComponentType, amount: Decimal) -> CostComponent:
    return CostComponent(
        component_name=COMPONENT_NAMES[component_type],
        component_cost=money(amount),
        component_type=component_type,
    )


def cost_components(
    container: ContainerType,
    route: Optional[ShippingRoute],
    cargo_value: Optional[Decimal],
) -> list[CostComponent]:
    """
    Rental always; handling and documentation from the route (zero rows without one);
    insurance only when both a cargo value and a route are given.
    """
    components = [
        _component(ComponentType.RENTAL, container.rental_cost),
        _component(ComponentType.HANDLING, route.base_handling_cost if route else ZERO),
        _component(ComponentType.DOCUMENTATION, route.documentation_fee if route else ZERO),
    ]
    if route is not None and cargo_value is not None:
        components.append(_component(ComponentType.INSURANCE, Decimal(str(cargo_value)) * route.insurance_rate))
    return components


def compose_costs(
    container: ContainerType,
    route: Optional[ShippingRoute],
    arrangement: ArrangementResult,
    cargo_value: Optional[Decimal] = None,
) -> CostBreakdown:
    components = cost_components(container, route, cargo_value)
    total_cost = sum((c.component_cost for c in components), ZERO)

    boxes = arrangement.effective_max_boxes
    total_weight = round(boxes * arrangement.box_weight_kg, WEIGHT_DECIMALS)
    # Unrounded so small loads keep a non-zero volume
    total_cbm = units.cubic_cm_to_cbm(boxes * arrangement.box_volume_cm3)

    return CostBreakdown(
        components=components,
        total_cost=total_cost,
        total_weight=total_weight,
        total_cbm=total_cbm,
    )
