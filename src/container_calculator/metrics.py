"""Presentation-side metrics: user-unit totals, ratings, cost ratios, summary text."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from container_calculator import units
from container_calculator.costs import money
from container_calculator.models import (
    ArrangementResult,
    BindingConstraint,
    CalculationDraft,
    CostBreakdown,
)

FCL_EFFICIENCY_THRESHOLD = 60.0

CBM_DECIMALS = 4

LIMITING_REASONS: dict[BindingConstraint, str] = {
    BindingConstraint.GEOMETRY: "Container space is full; no further box fits the grid.",
    BindingConstraint.PAYLOAD: "Container payload limit reached before its space was full.",
    BindingConstraint.QUANTITY: "All requested boxes were loaded.",
    BindingConstraint.CARGO_TOO_LARGE: "The box is larger than the container on at least one axis.",
}


def efficiency_rating(efficiency: float) -> str:
    if efficiency >= 85:
        return "excellent"
    if efficiency >= 70:
        return "good"
    if efficiency >= 50:
        return "fair"
    return "poor"


def shipment_mode(efficiency: float) -> str:
    """Full container load pays off above the threshold; otherwise suggest LCL."""
    return "FCL" if efficiency > FCL_EFFICIENCY_THRESHOLD else "LCL"


def limiting_reason(arrangement: ArrangementResult) -> str:
    reason = LIMITING_REASONS[arrangement.binding_constraint]
    if arrangement.oversize_axes:
        reason = f"{reason} Oversize axes: {', '.join(arrangement.oversize_axes)}."
    return reason


def cost_ratios(costs: CostBreakdown, boxes: int, cargo_value: Optional[Decimal]) -> dict[str, Optional[Decimal]]:
    per_cbm = money(costs.total_cost / Decimal(str(costs.total_cbm))) if costs.total_cbm > 0 else None
    per_box = money(costs.total_cost / boxes) if boxes > 0 else None
    margin_pct = None
    if cargo_value is not None and costs.total_cost > 0:
        margin_pct = money((Decimal(str(cargo_value)) - costs.total_cost) / costs.total_cost * 100)
    return {"cost_per_cbm": per_cbm, "cost_per_box": per_box, "margin_pct": margin_pct}


def cargo_density(arrangement: ArrangementResult) -> float:
    """kg per CBM of a single box."""
    cbm = units.cubic_cm_to_cbm(arrangement.box_volume_cm3)
    return round(arrangement.box_weight_kg / cbm, 2) if cbm > 0 else 0.0


def user_unit_totals(arrangement: ArrangementResult, costs: CostBreakdown,
                     dimension_unit: str, weight_unit: str) -> dict[str, Any]:
    """Totals and remaining space converted back to the units the user entered."""
    return {
        "total_weight": round(units.from_canonical_mass(costs.total_weight, weight_unit), 3),
        "weight_unit": weight_unit,
        "remaining_space": [
            round(units.from_canonical_length(value, dimension_unit), 2)
            for value in arrangement.remaining_space_cm
        ],
        "dimension_unit": dimension_unit,
    }


def format_output(draft: CalculationDraft) -> dict[str, Any]:
    """
    Guaranteed-field response for one calculation, plus a human-readable summary.
    """
    arrangement = draft.arrangement
    calculation = draft.calculation
    costs = draft.costs
    efficiency = arrangement.loading_efficiency

    metrics = {
        "max_boxes": arrangement.effective_max_boxes,
        "geometric_max_boxes": arrangement.geometric_max_boxes,
        "payload_max_boxes": arrangement.payload_max_boxes,
        "arrangement_pattern": arrangement.arrangement_pattern,
        "loading_efficiency": efficiency,
        "efficiency_rating": efficiency_rating(efficiency),
        "shipment_mode": shipment_mode(efficiency),
        "binding_constraint": arrangement.binding_constraint.value,
        "limiting_reason": limiting_reason(arrangement),
        "total_weight_kg": costs.total_weight,
        "total_cbm": round(costs.total_cbm, CBM_DECIMALS),
        "total_cost": costs.total_cost,
        "cargo_density_kg_per_cbm": cargo_density(arrangement),
        **cost_ratios(costs, arrangement.effective_max_boxes, calculation.cargo_value),
        "display": user_unit_totals(arrangement, costs, calculation.dimension_unit, calculation.weight_unit),
    }

    summary_text = (
        f"🚢 {draft.container.name}: {arrangement.effective_max_boxes} boxes ({arrangement.arrangement_pattern})\n"
        f"📦 Loading Efficiency: {efficiency:.2f}% ({efficiency_rating(efficiency)}, {shipment_mode(efficiency)})\n"
        f"⚖️ Total Weight: {costs.total_weight:.1f} kg | Volume: {costs.total_cbm:.2f} CBM\n"
        f"💰 Total Cost: {costs.total_cost}\n"
        f"🔎 Limiting Factor: {arrangement.binding_constraint.value} - {limiting_reason(arrangement)}"
    )
    return {"metrics": metrics, "summary": summary_text}
