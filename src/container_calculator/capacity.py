"""Capacity analysis: how many boxes of one size fit a container, and why."""

from __future__ import annotations

import math
from typing import Optional

from container_calculator import units
from container_calculator.errors import ValidationError
from container_calculator.models import ArrangementResult, BindingConstraint, CargoSpec, ContainerType

AXES = ("length", "width", "height")

EFFICIENCY_DECIMALS = 2

# Relative slack for floor() so 2.35 / 0.5 style float noise does not drop a row
_FLOOR_TOLERANCE = 1e-9

# Largest count a float ratio still represents exactly; also fits BIGINT columns
MAX_COUNT = 2 ** 53


def validate_cargo(cargo: CargoSpec) -> None:
    """
    Reject missing or non-positive cargo numbers before any arithmetic.

    Unit tokens are checked too, so InvalidUnitError also surfaces here.
    """
    bad: list[str] = []
    for field in ("length", "width", "height", "weight"):
        value = getattr(cargo, field)
        if value is None or not math.isfinite(float(value)) or float(value) <= 0:
            bad.append(field)
    if cargo.quantity is not None and not 0 < int(cargo.quantity) <= MAX_COUNT:
        bad.append("quantity")
    if cargo.value is not None and cargo.value < 0:
        bad.append("value")
    if bad:
        raise ValidationError(f"Cargo fields must be positive numbers: {', '.join(bad)}", fields=bad)

    units.require_family(cargo.dimension_unit, units.LENGTH)
    units.require_family(cargo.weight_unit, units.MASS)


def axis_count(container_dim: float, box_dim: float) -> int:
    """floor(container_dim / box_dim), tolerant of float representation noise."""
    if box_dim <= 0:
        return 0
    ratio = container_dim / box_dim
    return max(0, math.floor(ratio + ratio * _FLOOR_TOLERANCE))


def container_dims_cm(container: ContainerType) -> tuple[float, float, float]:
    return (
        units.to_canonical_length(container.internal_length, "m"),
        units.to_canonical_length(container.internal_width, "m"),
        units.to_canonical_length(container.internal_height, "m"),
    )


def cargo_dims_cm(cargo: CargoSpec) -> tuple[float, float, float]:
    return (
        units.to_canonical_length(float(cargo.length), cargo.dimension_unit),
        units.to_canonical_length(float(cargo.width), cargo.dimension_unit),
        units.to_canonical_length(float(cargo.height), cargo.dimension_unit),
    )


def orientations(dims: tuple[float, float, float]) -> list[tuple[float, float, float]]:
    """The 6 axis-aligned orientations (L,W,H), duplicates removed, input order first."""
    L, W, H = dims
    out: list[tuple[float, float, float]] = []
    for candidate in [(L, W, H), (L, H, W), (W, L, H), (W, H, L), (H, L, W), (H, W, L)]:
        if candidate not in out:
            out.append(candidate)
    return out


def _grid(container_cm: tuple[float, float, float], box_cm: tuple[float, float, float]) -> tuple[int, int, int]:
    return (
        axis_count(container_cm[0], box_cm[0]),
        axis_count(container_cm[1], box_cm[1]),
        axis_count(container_cm[2], box_cm[2]),
    )


def _choose_orientation(
    container_cm: tuple[float, float, float],
    box_cm: tuple[float, float, float],
    allow_rotation: bool,
) -> tuple[tuple[float, float, float], tuple[int, int, int]]:
    if not allow_rotation:
        return box_cm, _grid(container_cm, box_cm)

    best_dims = box_cm
    best_grid = _grid(container_cm, box_cm)
    for dims in orientations(box_cm)[1:]:
        grid = _grid(container_cm, dims)
        if grid[0] * grid[1] * grid[2] > best_grid[0] * best_grid[1] * best_grid[2]:
            best_dims, best_grid = dims, grid
    return best_dims, best_grid


def _countable(limit: float, size: float) -> bool:
    if size <= 0:
        return False
    ratio = limit / size
    return math.isfinite(ratio) and ratio <= MAX_COUNT


def check_countable(
    container_cm: tuple[float, float, float],
    box_cm: tuple[float, float, float],
    box_weight_kg: float,
    max_payload: float,
) -> None:
    """
    Reject cargo so small that a box count would overflow or lose integer precision.

    The longest container side bounds every orientation, so one check per cargo axis suffices.
    """
    longest = max(container_cm)
    bad = [axis for axis, dim in zip(AXES, box_cm) if not _countable(longest, dim)]
    if not _countable(float(max_payload), box_weight_kg):
        bad.append("weight")
    if bad:
        raise ValidationError(f"Cargo fields too small to count boxes: {', '.join(bad)}", fields=bad)


def compute_arrangement(
    container: ContainerType,
    cargo: CargoSpec,
    allow_rotation: bool = False,
) -> ArrangementResult:
    """
    Grid arrangement of one box type in one container.

    Steps:
    1) Validate cargo and normalize everything to cm / kg
    2) Per-axis floor counts -> geometric max
    3) Clamp by requested quantity and by payload (floor(max_payload / box_weight))
    4) Record the binding constraint and the volume efficiency (percent, 2 dp)

    A box larger than the container on any axis yields effective_max_boxes = 0 with
    binding constraint CARGO_TOO_LARGE and the offending axes listed; callers decide
    whether to raise via ArrangementResult.raise_for_fit().
    """
    validate_cargo(cargo)

    container_cm = container_dims_cm(container)
    cargo_cm = cargo_dims_cm(cargo)
    box_weight_kg = units.to_canonical_mass(float(cargo.weight), cargo.weight_unit)
    check_countable(container_cm, cargo_cm, box_weight_kg, container.max_payload)

    box_cm, (nx, ny, nz) = _choose_orientation(container_cm, cargo_cm, allow_rotation)
    box_volume_cm3 = box_cm[0] * box_cm[1] * box_cm[2]

    geometric_max = nx * ny * nz
    payload_max = math.floor(float(container.max_payload) / box_weight_kg)
    quantity: Optional[int] = int(cargo.quantity) if cargo.quantity is not None else None

    oversize_axes = [axis for axis, count in zip(AXES, (nx, ny, nz)) if count == 0]
    if oversize_axes:
        return ArrangementResult(
            length_count=nx,
            width_count=ny,
            height_count=nz,
            geometric_max_boxes=0,
            payload_max_boxes=payload_max,
            effective_max_boxes=0,
            loading_efficiency=0.0,
            binding_constraint=BindingConstraint.CARGO_TOO_LARGE,
            box_dims_cm=box_cm,
            box_volume_cm3=box_volume_cm3,
            box_weight_kg=box_weight_kg,
            remaining_space_cm=container_cm,
            oversize_axes=oversize_axes,
        )

    limits = [geometric_max, payload_max]
    if quantity is not None:
        limits.append(quantity)
    effective = min(limits)

    if quantity is not None and effective == quantity:
        binding = BindingConstraint.QUANTITY
    elif effective == payload_max and payload_max < geometric_max:
        binding = BindingConstraint.PAYLOAD
    else:
        binding = BindingConstraint.GEOMETRY

    capacity_cm3 = container.capacity_cbm * units.CM3_PER_CBM
    efficiency = (effective * box_volume_cm3) / capacity_cm3 * 100.0 if capacity_cm3 > 0 else 0.0

    remaining = (
        container_cm[0] - nx * box_cm[0],
        container_cm[1] - ny * box_cm[1],
        container_cm[2] - nz * box_cm[2],
    )

    return ArrangementResult(
        length_count=nx,
        width_count=ny,
        height_count=nz,
        geometric_max_boxes=geometric_max,
        payload_max_boxes=payload_max,
        effective_max_boxes=effective,
        loading_efficiency=round(efficiency, EFFICIENCY_DECIMALS),
        binding_constraint=binding,
        box_dims_cm=box_cm,
        box_volume_cm3=box_volume_cm3,
        box_weight_kg=box_weight_kg,
        remaining_space_cm=tuple(max(0.0, r) for r in remaining),
    )
