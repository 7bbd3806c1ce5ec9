from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from container_calculator.errors import CargoTooLargeError


class BindingConstraint(str, Enum):
    """Which limit decided the final box count."""

    GEOMETRY = "geometry"
    PAYLOAD = "payload"
    QUANTITY = "quantity"
    CARGO_TOO_LARGE = "cargo_too_large"


class ComponentType(str, Enum):
    RENTAL = "rental"
    HANDLING = "handling"
    DOCUMENTATION = "documentation"
    INSURANCE = "insurance"


class ContainerType(BaseModel):
    """Container catalog row. Internal dimensions in metres, weights in kg."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Catalog identifier")
    name: str = Field(description="Display name")
    type_code: str = Field(description="ISO-ish type code, e.g. 20GP, 40HC")
    internal_length: float = Field(gt=0, description="Internal length in metres")
    internal_width: float = Field(gt=0, description="Internal width in metres")
    internal_height: float = Field(gt=0, description="Internal height in metres")
    max_payload: float = Field(gt=0, description="Maximum payload in kg")
    tare_weight: float = Field(default=0.0, ge=0, description="Tare weight in kg")
    cubic_capacity: Optional[float] = Field(
        default=None,
        gt=0,
        description="Cubic capacity in m3; derived from the internal dimensions when absent")
    rental_cost: Decimal = Field(ge=0, description="Flat rental cost")

    @property
    def capacity_cbm(self) -> float:
        if self.cubic_capacity is not None:
            return float(self.cubic_capacity)
        return float(self.internal_length) * float(self.internal_width) * float(self.internal_height)


class ShippingRoute(BaseModel):
    """Route catalog row. insurance_rate is a fraction of the cargo value (0.005 = 0.5%)."""

    model_config = ConfigDict(frozen=True)

    id: str
    origin_port: str
    destination_port: str
    route_code: str
    transit_days: int = Field(ge=0)
    distance_km: float = Field(default=0.0, ge=0)
    base_handling_cost: Decimal = Field(default=Decimal("0"), ge=0)
    documentation_fee: Decimal = Field(default=Decimal("0"), ge=0)
    insurance_rate: Decimal = Field(default=Decimal("0"), ge=0)


class CargoSpec(BaseModel):
    """
    One cargo box type as entered by the user.

    Numbers are not range-checked here; capacity.validate_cargo raises the domain
    ValidationError so callers get one error type for bad cargo input.
    """

    model_config = ConfigDict(frozen=True)

    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    quantity: Optional[int] = Field(default=None, description="Boxes to ship; unlimited when omitted")
    dimension_unit: str = "cm"
    weight_unit: str = "kg"
    value: Optional[Decimal] = Field(default=None, description="Declared cargo value for insurance")


class CalculationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    cargo: CargoSpec
    container_type_id: str
    shipping_route_id: Optional[str] = None
    calculation_name: Optional[str] = None
    allow_rotation: bool = False


class Placement(BaseModel):
    """Placement of one box in the container grid (centimetres)."""

    box_id: str = Field(description="Identifier of the placed box")
    x: float = Field(ge=0)
    y: float = Field(ge=0)
    z: float = Field(ge=0)

    # Oriented dimensions (L, W, H) as placed
    rotation: Tuple[float, float, float] = Field(description="Oriented dimensions (L, W, H) of the placed box")


class ArrangementResult(BaseModel):
    """Output of the loading arrangement engine. Lengths in cm."""

    model_config = ConfigDict(frozen=True)

    length_count: int = Field(ge=0)
    width_count: int = Field(ge=0)
    height_count: int = Field(ge=0)
    geometric_max_boxes: int = Field(ge=0)
    payload_max_boxes: int = Field(ge=0)
    effective_max_boxes: int = Field(ge=0)
    loading_efficiency: float = Field(ge=0, description="Percent, 2 decimals")
    binding_constraint: BindingConstraint
    box_dims_cm: Tuple[float, float, float] = Field(description="Box dims (L, W, H) in the chosen orientation")
    box_volume_cm3: float
    box_weight_kg: float
    remaining_space_cm: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    oversize_axes: list[str] = Field(default_factory=list)

    @property
    def fits(self) -> bool:
        return not self.oversize_axes

    @property
    def arrangement_pattern(self) -> str:
        return f"{self.length_count} x {self.width_count} x {self.height_count}"

    def raise_for_fit(self) -> None:
        if self.oversize_axes:
            raise CargoTooLargeError(self.oversize_axes)


class CostComponent(BaseModel):
    id: Optional[str] = None
    calculation_id: Optional[str] = None
    component_name: str
    component_cost: Decimal
    component_type: ComponentType


class CostBreakdown(BaseModel):
    components: list[CostComponent] = Field(default_factory=list)
    total_cost: Decimal = Decimal("0.00")
    total_weight: float = 0.0
    total_cbm: float = 0.0

    def amount(self, component_type: ComponentType) -> Optional[Decimal]:
        for component in self.components:
            if component.component_type == component_type:
                return component.component_cost
        return None


class LoadingPlan(BaseModel):
    id: Optional[str] = None
    calculation_id: Optional[str] = None
    plan_name: Optional[str] = None
    arrangement_pattern: str
    length_count: int = Field(ge=0)
    width_count: int = Field(ge=0)
    height_count: int = Field(ge=0)
    container_layout: dict[str, Any] = Field(default_factory=dict)
    weight_distribution: Optional[dict[str, Any]] = None
    loading_instructions: Optional[str] = None
    visualization_data: Optional[dict[str, Any]] = None


class ContainerCalculation(BaseModel):
    """Persisted calculation row. Cargo inputs in user units; totals in kg / m3."""

    id: Optional[str] = None
    calculation_name: Optional[str] = None
    container_type_id: str
    shipping_route_id: Optional[str] = None
    cargo_length: float
    cargo_width: float
    cargo_height: float
    cargo_weight: float
    cargo_quantity: Optional[int] = None
    dimension_unit: str
    weight_unit: str
    cargo_value: Optional[Decimal] = None
    max_boxes: int = 0
    loading_efficiency: float = 0.0
    total_weight: float = 0.0
    total_cbm: float = 0.0
    total_cost: Decimal = Decimal("0.00")
    binding_constraint: Optional[BindingConstraint] = None
    calculation_data: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class CalculationDraft(BaseModel):
    """A computed, not yet persisted calculation with its children."""

    calculation: ContainerCalculation
    arrangement: ArrangementResult
    costs: CostBreakdown
    loading_plan: LoadingPlan
    container: ContainerType
    route: Optional[ShippingRoute] = None


class CalculationDetail(BaseModel):
    calculation: ContainerCalculation
    cost_components: list[CostComponent] = Field(default_factory=list)
    loading_plan: Optional[LoadingPlan] = None
