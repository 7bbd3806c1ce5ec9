"""FastAPI endpoints for the container calculator."""

from __future__ import annotations

import logging
from decimal import Decimal
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from container_calculator import config, units
from container_calculator.calculator import ContainerCalculator, create_backend
from container_calculator.errors import (
    CalculatorError,
    CargoTooLargeError,
    InvalidUnitError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from container_calculator.metrics import format_output
from container_calculator.models import CalculationDraft, CalculationRequest

config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Container Calculator API",
    description="Container loading capacity and shipping cost calculator",
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=config.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

ERROR_STATUS: dict[type[CalculatorError], int] = {
    ValidationError: 422,
    InvalidUnitError: 422,
    CargoTooLargeError: 422,
    NotFoundError: 404,
    PersistenceError: 503,
}


@lru_cache()
def get_calculator() -> ContainerCalculator:
    """One calculator per process, on the backend chosen by CALCULATOR_BACKEND."""
    return ContainerCalculator(create_backend())


def encode(obj: Any) -> Any:
    """JSON-ready structure; money stays exact as decimal strings."""
    return jsonable_encoder(obj, custom_encoder={Decimal: str})


def error_body(exc: CalculatorError) -> dict[str, Any]:
    details: list[str] = []
    if isinstance(exc, ValidationError):
        details = exc.fields
    elif isinstance(exc, CargoTooLargeError):
        details = exc.axes
    return {"error": exc.code, "summary": str(exc), "details": details}


@app.exception_handler(CalculatorError)
async def calculator_error_handler(request: Request, exc: CalculatorError) -> JSONResponse:
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500)
    if status >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc!r}")
    return JSONResponse(status_code=status, content={"detail": error_body(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or incomplete request bodies get the same friendly error shape."""
    missing = [".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]) for err in exc.errors()]
    return JSONResponse(
        status_code=422,
        content={"detail": {
            "error": "MISSING_INFORMATION",
            "summary": "Missing information. Please enter the missing details to run the calculation.",
            "details": missing,
        }},
    )


def draft_response(draft: CalculationDraft) -> dict[str, Any]:
    return {
        **format_output(draft),
        "calculation": draft.calculation,
        "cost_components": draft.costs.components,
        "loading_plan": draft.loading_plan,
    }


@app.get("/health")
async def health() -> dict[str, Any]:
    """Health check endpoint."""
    return {"ok": True, "backend": config.CALCULATOR_BACKEND}


@app.get("/health/db")
def health_db() -> dict[str, Any]:
    """Check DB connectivity via connection pool (SELECT 1)."""
    if config.CALCULATOR_BACKEND != "postgres":
        return {"db": config.CALCULATOR_BACKEND}
    from container_calculator import db

    try:
        db.ping()
        return {"db": "ok"}
    except PersistenceError as e:
        logger.warning(f"Health DB check failed: {e}")
        raise HTTPException(status_code=503, detail="Database unavailable")


@app.get("/container-types")
def list_container_types(calculator: ContainerCalculator = Depends(get_calculator)) -> Any:
    return encode(calculator.containers.get_all())


@app.get("/container-types/{container_type_id}")
def get_container_type(container_type_id: str, calculator: ContainerCalculator = Depends(get_calculator)) -> Any:
    container = calculator.containers.get_by_id(container_type_id)
    if container is None:
        raise NotFoundError("container type", container_type_id)
    return encode(container)


@app.get("/shipping-routes")
def list_shipping_routes(calculator: ContainerCalculator = Depends(get_calculator)) -> Any:
    return encode(calculator.routes.get_all())


@app.get("/shipping-routes/{route_id}")
def get_shipping_route(route_id: str, calculator: ContainerCalculator = Depends(get_calculator)) -> Any:
    route = calculator.routes.get_by_id(route_id)
    if route is None:
        raise NotFoundError("shipping route", route_id)
    return encode(route)


@app.post("/calculations/preview")
def preview_calculation(request: CalculationRequest,
                        calculator: ContainerCalculator = Depends(get_calculator)) -> Any:
    """
    Compute a calculation without saving it.

    Input (request body):
        {
            "cargo": {"length": 100, "width": 50, "height": 50, "weight": 20, "quantity": 1000,
                      "dimension_unit": "cm", "weight_unit": "kg", "value": 50000},
            "container_type_id": "20gp",
            "shipping_route_id": "idjkt-sgsin"
        }
    """
    return encode(draft_response(calculator.calculate(request)))


@app.post("/calculations", status_code=201)
def create_calculation(request: CalculationRequest,
                       calculator: ContainerCalculator = Depends(get_calculator)) -> Any:
    draft = calculator.calculate(request)
    detail = calculator.save_draft(draft)
    return encode({**format_output(draft), **detail.model_dump()})


@app.get("/calculations")
def calculation_history(
    limit: int = Query(config.HISTORY_LIMIT, ge=1, le=500, description="Newest first"),
    calculator: ContainerCalculator = Depends(get_calculator),
) -> Any:
    return encode(calculator.history(limit))


@app.get("/calculations/{calculation_id}")
def get_calculation(calculation_id: str, calculator: ContainerCalculator = Depends(get_calculator)) -> Any:
    detail = calculator.get(calculation_id)
    if detail is None:
        raise NotFoundError("calculation", calculation_id)
    return encode(detail)


@app.delete("/calculations/{calculation_id}", status_code=204)
def delete_calculation(calculation_id: str, calculator: ContainerCalculator = Depends(get_calculator)) -> Response:
    calculator.delete(calculation_id)
    return Response(status_code=204)


@app.get("/units")
def list_units() -> dict[str, list[str]]:
    return units.supported_units()


@app.get("/convert")
def convert_units(
    value: float = Query(..., description="Value to convert"),
    from_unit: str = Query(...),
    to_unit: str = Query(...),
) -> dict[str, Any]:
    return {
        "value": value,
        "from_unit": from_unit,
        "to_unit": to_unit,
        "result": units.convert(value, from_unit, to_unit),
        "family": units.unit_family(from_unit),
    }
