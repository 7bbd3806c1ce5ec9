"""Capacity limits of the grid arrangement: geometry, payload, requested quantity."""

from __future__ import annotations

import random
from decimal import Decimal

import pytest

from container_calculator import units
from container_calculator.capacity import axis_count, compute_arrangement, validate_cargo
from container_calculator.errors import CargoTooLargeError, InvalidUnitError, ValidationError
from container_calculator.models import BindingConstraint, CargoSpec, ContainerType


def make_container(**overrides) -> ContainerType:
    # 590 x 235 x 239 cm internal, 28 t payload
    fields = dict(
        id="test-20",
        name="Test 20ft",
        type_code="T20",
        internal_length=5.90,
        internal_width=2.35,
        internal_height=2.39,
        max_payload=28000.0,
        rental_cost=Decimal("1500.00"),
    )
    fields.update(overrides)
    return ContainerType(**fields)


def make_cargo(**overrides) -> CargoSpec:
    fields = dict(length=100, width=50, height=50, weight=20, quantity=1000)
    fields.update(overrides)
    return CargoSpec(**fields)


def test_geometry_is_binding_for_standard_box() -> None:
    """
    590x235x239 cm container, 100x50x50 cm box, qty 1000, 20 kg:
    geometric 5*4*4 = 80, payload cap 1400, effective 80, geometry binds.
    """
    result = compute_arrangement(make_container(), make_cargo())

    assert (result.length_count, result.width_count, result.height_count) == (5, 4, 4)
    assert result.geometric_max_boxes == 80
    assert result.payload_max_boxes == 1400
    assert result.effective_max_boxes == 80
    assert result.binding_constraint == BindingConstraint.GEOMETRY
    assert result.loading_efficiency == pytest.approx(60.35, abs=0.01)
    assert result.fits


def test_cargo_longer_than_container_is_flagged_not_silent() -> None:
    result = compute_arrangement(make_container(), make_cargo(length=700))

    assert result.effective_max_boxes == 0
    assert result.binding_constraint == BindingConstraint.CARGO_TOO_LARGE
    assert result.oversize_axes == ["length"]
    assert not result.fits
    with pytest.raises(CargoTooLargeError) as excinfo:
        result.raise_for_fit()
    assert excinfo.value.axes == ["length"]


def test_payload_binds_for_heavy_boxes() -> None:
    result = compute_arrangement(make_container(), make_cargo(weight=500))

    assert result.geometric_max_boxes == 80
    assert result.payload_max_boxes == 56
    assert result.effective_max_boxes == 56
    assert result.binding_constraint == BindingConstraint.PAYLOAD


def test_requested_quantity_binds_when_everything_fits() -> None:
    result = compute_arrangement(make_container(), make_cargo(quantity=50))

    assert result.effective_max_boxes == 50
    assert result.binding_constraint == BindingConstraint.QUANTITY


def test_quantity_equal_to_geometry_reports_quantity() -> None:
    result = compute_arrangement(make_container(), make_cargo(quantity=80))

    assert result.effective_max_boxes == 80
    assert result.binding_constraint == BindingConstraint.QUANTITY


def test_no_quantity_means_container_capacity() -> None:
    result = compute_arrangement(make_container(), make_cargo(quantity=None))

    assert result.effective_max_boxes == 80
    assert result.binding_constraint == BindingConstraint.GEOMETRY


def test_box_heavier_than_payload_loads_nothing() -> None:
    result = compute_arrangement(make_container(max_payload=1000.0), make_cargo(weight=1500))

    assert result.effective_max_boxes == 0
    assert result.binding_constraint == BindingConstraint.PAYLOAD
    assert result.fits


def test_units_are_normalized_before_arrangement() -> None:
    # 1 m x 0.5 m x 0.5 m in metres and 44.0925 lb ~= 20 kg
    result = compute_arrangement(
        make_container(),
        make_cargo(length=1.0, width=0.5, height=0.5, dimension_unit="m", weight=44.0925, weight_unit="lb"),
    )

    assert result.effective_max_boxes == 80
    assert result.box_weight_kg == pytest.approx(20.0, abs=1e-3)


def test_rotation_is_opt_in() -> None:
    cargo = make_cargo(length=100, width=300, height=50, weight=10, quantity=None)

    fixed = compute_arrangement(make_container(), cargo)
    assert fixed.oversize_axes == ["width"]

    rotated = compute_arrangement(make_container(), cargo, allow_rotation=True)
    assert rotated.fits
    assert rotated.box_dims_cm == (300.0, 100.0, 50.0)
    assert rotated.effective_max_boxes == 8


def test_remaining_space_reported_per_axis() -> None:
    result = compute_arrangement(make_container(), make_cargo())

    remaining = result.remaining_space_cm
    assert remaining[0] == pytest.approx(90.0)
    assert remaining[1] == pytest.approx(35.0)
    assert remaining[2] == pytest.approx(39.0)


def test_stored_cubic_capacity_is_used_for_efficiency() -> None:
    result = compute_arrangement(make_container(cubic_capacity=40.0), make_cargo())

    # 80 boxes * 0.25 m3 / 40 m3
    assert result.loading_efficiency == 50.0


def test_axis_count_tolerates_float_noise() -> None:
    assert axis_count(0.3, 0.1) == 3
    assert axis_count(235.00000000000003, 50.0) == 4
    assert axis_count(50.0, 100.0) == 0


@pytest.mark.parametrize("field,value", [
    ("length", 0),
    ("width", -5),
    ("height", None),
    ("weight", 0),
    ("quantity", 0),
])
def test_non_positive_inputs_are_rejected(field: str, value) -> None:
    with pytest.raises(ValidationError) as excinfo:
        compute_arrangement(make_container(), make_cargo(**{field: value}))
    assert field in excinfo.value.fields


@pytest.mark.parametrize("field,value", [
    ("weight", 1e-320),
    ("length", 1e-310),
    ("height", 1e-300),
])
def test_vanishingly_small_cargo_is_a_validation_error(field: str, value: float) -> None:
    with pytest.raises(ValidationError) as excinfo:
        compute_arrangement(make_container(), make_cargo(**{field: value}))
    assert excinfo.value.fields == [field]


def test_tiny_cargo_with_rotation_is_a_validation_error() -> None:
    with pytest.raises(ValidationError):
        compute_arrangement(make_container(), make_cargo(width=1e-310), allow_rotation=True)


def test_quantity_beyond_countable_range_is_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        compute_arrangement(make_container(), make_cargo(quantity=2 ** 60))
    assert excinfo.value.fields == ["quantity"]


def test_millimetre_boxes_still_count() -> None:
    result = compute_arrangement(
        make_container(),
        make_cargo(length=1, width=1, height=1, dimension_unit="mm", weight=0.001, quantity=None),
    )

    # payload cap 28,000,000 is below the 5900 * 2350 * 2390 grid
    assert result.effective_max_boxes == 28_000_000
    assert result.binding_constraint == BindingConstraint.PAYLOAD


def test_invalid_units_are_rejected() -> None:
    with pytest.raises(InvalidUnitError):
        validate_cargo(make_cargo(dimension_unit="furlong"))
    with pytest.raises(InvalidUnitError):
        validate_cargo(make_cargo(weight_unit="cm"))


def test_arrangement_invariants_hold_for_varied_inputs() -> None:
    rng = random.Random(20240611)
    container = make_container()
    for _ in range(300):
        cargo = make_cargo(
            length=rng.uniform(5, 650),
            width=rng.uniform(5, 260),
            height=rng.uniform(5, 260),
            weight=rng.uniform(0.5, 2000),
            quantity=rng.choice([None, rng.randint(1, 5000)]),
        )
        result = compute_arrangement(container, cargo)

        # geometry is an upper bound
        assert result.length_count * result.width_count * result.height_count >= result.effective_max_boxes
        assert result.effective_max_boxes <= result.payload_max_boxes or not result.fits
        if cargo.quantity is not None:
            assert result.effective_max_boxes <= cargo.quantity

        fits_every_axis = cargo.length <= 590 and cargo.width <= 235 and cargo.height <= 239
        if fits_every_axis and cargo.weight <= container.max_payload:
            assert result.effective_max_boxes >= 1


def test_total_cbm_matches_box_volume_times_boxes() -> None:
    from container_calculator.costs import compose_costs

    cargo = make_cargo(length=40, width=30, height=25, dimension_unit="in", quantity=None)
    container = make_container()
    result = compute_arrangement(container, cargo)
    costs = compose_costs(container, None, result)

    box_cbm = units.cubic_cm_to_cbm(
        units.to_canonical_length(40, "in") * units.to_canonical_length(30, "in") * units.to_canonical_length(25, "in")
    )
    assert costs.total_cbm == pytest.approx(box_cbm * result.effective_max_boxes, rel=1e-12)
