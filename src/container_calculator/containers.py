# src/container_calculator/containers.py
from __future__ import annotations

from decimal import Decimal

from container_calculator.models import ContainerType, ShippingRoute

# Internal usable dims (meters), payload/tare in kg. Seed data for the in-memory
# catalog and for schema.sql; production rows live in the container_types table.
CONTAINER_PRESETS_M: dict[str, dict[str, float]] = {
    "20GP": {"length": 5.900,  "width": 2.352, "height": 2.393, "max_payload": 28200.0, "tare_weight": 2300.0, "cubic_capacity": 33.2},
    "40GP": {"length": 12.032, "width": 2.352, "height": 2.393, "max_payload": 26700.0, "tare_weight": 3750.0, "cubic_capacity": 67.7},
    "40HC": {"length": 12.032, "width": 2.352, "height": 2.698, "max_payload": 26460.0, "tare_weight": 3940.0, "cubic_capacity": 76.4},
    "45HC": {"length": 13.556, "width": 2.352, "height": 2.698, "max_payload": 25600.0, "tare_weight": 4800.0, "cubic_capacity": 86.0},
}

CONTAINER_NAMES: dict[str, str] = {
    "20GP": "20ft General Purpose",
    "40GP": "40ft General Purpose",
    "40HC": "40ft High Cube",
    "45HC": "45ft High Cube",
}

CONTAINER_RENTAL_COST: dict[str, Decimal] = {
    "20GP": Decimal("1500.00"),
    "40GP": Decimal("2500.00"),
    "40HC": Decimal("2800.00"),
    "45HC": Decimal("3300.00"),
}

# insurance_rate is a fraction of cargo value
ROUTE_PRESETS: list[dict[str, object]] = [
    {"route_code": "IDJKT-SGSIN", "origin_port": "IDJKT", "destination_port": "SGSIN", "transit_days": 2,
     "distance_km": 890.0, "base_handling_cost": "350.00", "documentation_fee": "75.00", "insurance_rate": "0.0030"},
    {"route_code": "IDJKT-CNSHA", "origin_port": "IDJKT", "destination_port": "CNSHA", "transit_days": 9,
     "distance_km": 4540.0, "base_handling_cost": "500.00", "documentation_fee": "100.00", "insurance_rate": "0.0050"},
    {"route_code": "IDSUB-NLRTM", "origin_port": "IDSUB", "destination_port": "NLRTM", "transit_days": 28,
     "distance_km": 16200.0, "base_handling_cost": "850.00", "documentation_fee": "150.00", "insurance_rate": "0.0075"},
]


def default_container_types() -> list[ContainerType]:
    rows = []
    for code, dims in CONTAINER_PRESETS_M.items():
        rows.append(ContainerType(
            id=code.lower(),
            name=CONTAINER_NAMES[code],
            type_code=code,
            internal_length=dims["length"],
            internal_width=dims["width"],
            internal_height=dims["height"],
            max_payload=dims["max_payload"],
            tare_weight=dims["tare_weight"],
            cubic_capacity=dims["cubic_capacity"],
            rental_cost=CONTAINER_RENTAL_COST[code],
        ))
    return rows


def default_shipping_routes() -> list[ShippingRoute]:
    return [
        ShippingRoute(id=str(preset["route_code"]).lower(), **preset)
        for preset in ROUTE_PRESETS
    ]
