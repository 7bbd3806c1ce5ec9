"""Tests for API output formatting and input validation."""

from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from container_calculator.api import app, get_calculator
from container_calculator.calculator import ContainerCalculator
from container_calculator.metrics import efficiency_rating, format_output, shipment_mode
from container_calculator.models import CalculationRequest, CargoSpec
from container_calculator.storage.memory import MemoryBackend

REQUEST = {
    "cargo": {
        "length": 100, "width": 50, "height": 50, "weight": 20, "quantity": 1000,
        "dimension_unit": "cm", "weight_unit": "kg", "value": "100000000",
    },
    "container_type_id": "20gp",
    "shipping_route_id": "idjkt-cnsha",
    "calculation_name": "Jakarta to Shanghai",
}


@pytest.fixture
def client():
    calculator = ContainerCalculator(MemoryBackend(), cache_catalog=False)
    app.dependency_overrides[get_calculator] = lambda: calculator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_catalog_endpoints(client: TestClient) -> None:
    containers = client.get("/container-types").json()
    assert [c["type_code"] for c in containers][:2] == ["20GP", "40GP"]
    assert containers[0]["rental_cost"] == "1500.00"

    assert client.get("/shipping-routes/idjkt-sgsin").json()["transit_days"] == 2
    missing = client.get("/container-types/99xx")
    assert missing.status_code == 404
    assert missing.json()["detail"]["error"] == "NOT_FOUND"


def test_preview_response_has_guaranteed_fields(client: TestClient) -> None:
    response = client.post("/calculations/preview", json=REQUEST)

    assert response.status_code == 200
    data = response.json()
    metrics = data["metrics"]
    assert metrics["max_boxes"] == 80
    assert metrics["arrangement_pattern"] == "5 x 4 x 4"
    assert metrics["binding_constraint"] == "geometry"
    assert metrics["total_cost"] == "502100.00"
    assert isinstance(metrics["limiting_reason"], str) and metrics["limiting_reason"]
    assert "🚢 20ft General Purpose: 80 boxes" in data["summary"]
    assert data["calculation"]["id"] is None
    assert len(data["loading_plan"]["visualization_data"]["placements"]) == 80
    assert {"x", "y", "z", "dims"} == set(data["loading_plan"]["visualization_data"]["placements"][0])

    # preview does not persist
    assert client.get("/calculations").json() == []


def test_create_get_and_delete_calculation(client: TestClient) -> None:
    created = client.post("/calculations", json=REQUEST)

    assert created.status_code == 201
    body = created.json()
    calculation_id = body["calculation"]["id"]
    assert body["metrics"]["max_boxes"] == 80
    insurance = [c for c in body["cost_components"] if c["component_type"] == "insurance"]
    assert insurance[0]["component_cost"] == "500000.00"

    history = client.get("/calculations", params={"limit": 5}).json()
    assert [c["id"] for c in history] == [calculation_id]

    fetched = client.get(f"/calculations/{calculation_id}").json()
    assert fetched["calculation"]["total_cost"] == "502100.00"
    assert fetched["loading_plan"]["calculation_id"] == calculation_id

    assert client.delete(f"/calculations/{calculation_id}").status_code == 204
    assert client.get(f"/calculations/{calculation_id}").status_code == 404


def test_non_positive_cargo_returns_validation_error(client: TestClient) -> None:
    request = {**REQUEST, "cargo": {**REQUEST["cargo"], "length": 0}}

    response = client.post("/calculations/preview", json=request)

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"] == "VALIDATION_ERROR"
    assert detail["details"] == ["length"]


def test_vanishing_weight_returns_validation_error(client: TestClient) -> None:
    request = {**REQUEST, "cargo": {**REQUEST["cargo"], "weight": 1e-320}}

    response = client.post("/calculations/preview", json=request)

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"] == "VALIDATION_ERROR"
    assert detail["details"] == ["weight"]


def test_oversize_cargo_returns_cargo_too_large(client: TestClient) -> None:
    request = {**REQUEST, "cargo": {**REQUEST["cargo"], "length": 700}}

    response = client.post("/calculations", json=request)

    assert response.status_code == 422
    assert response.json()["detail"] == {
        "error": "CARGO_TOO_LARGE",
        "summary": "Cargo does not fit the container along: length",
        "details": ["length"],
    }
    assert client.get("/calculations").json() == []


def test_missing_input_returns_friendly_422(client: TestClient) -> None:
    response = client.post("/calculations/preview", json={"container_type_id": "20gp"})

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"] == "MISSING_INFORMATION"
    assert "cargo" in detail["details"]
    assert detail["summary"]


def test_unknown_unit_and_route(client: TestClient) -> None:
    bad_unit = {**REQUEST, "cargo": {**REQUEST["cargo"], "dimension_unit": "furlong"}}
    assert client.post("/calculations/preview", json=bad_unit).json()["detail"]["error"] == "INVALID_UNIT"

    bad_route = {**REQUEST, "shipping_route_id": "nowhere"}
    assert client.post("/calculations/preview", json=bad_route).status_code == 404


def test_convert_endpoint(client: TestClient) -> None:
    response = client.get("/convert", params={"value": 100, "from_unit": "in", "to_unit": "cm"})

    assert response.json()["result"] == 254.0
    assert client.get("/convert", params={"value": 1, "from_unit": "cm", "to_unit": "kg"}).status_code == 422
    assert "lb" in client.get("/units").json()["mass"]


def test_format_output_guaranteed_fields() -> None:
    calculator = ContainerCalculator(MemoryBackend(), cache_catalog=False)
    draft = calculator.calculate(CalculationRequest(
        cargo=CargoSpec(length=100, width=50, height=50, weight=500, quantity=1000, value=Decimal("50000")),
        container_type_id="20gp",
    ))

    output = format_output(draft)
    metrics = output["metrics"]

    assert metrics["binding_constraint"] == "payload"
    assert metrics["max_boxes"] == 56
    assert metrics["cost_per_box"] == Decimal("26.79")
    assert metrics["display"]["weight_unit"] == "kg"
    assert "🔎 Limiting Factor: payload" in output["summary"]


def test_ratings_and_shipment_mode() -> None:
    assert efficiency_rating(90) == "excellent"
    assert efficiency_rating(75) == "good"
    assert efficiency_rating(55) == "fair"
    assert efficiency_rating(10) == "poor"
    assert shipment_mode(60.35) == "FCL"
    assert shipment_mode(60.0) == "LCL"
