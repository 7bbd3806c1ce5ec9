"""Error taxonomy for the container calculator."""

from __future__ import annotations


class CalculatorError(Exception):
    """Base class for every error raised by the calculator core."""

    code = "CALCULATOR_ERROR"


class ValidationError(CalculatorError):
    """Missing or non-positive numeric cargo input."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class InvalidUnitError(CalculatorError):
    """Unknown unit token, or a conversion across unit families."""

    code = "INVALID_UNIT"


class NotFoundError(CalculatorError):
    """A referenced catalog row or calculation does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} '{entity_id}' not found")
        self.entity = entity
        self.entity_id = entity_id


class CargoTooLargeError(CalculatorError):
    """Cargo box exceeds the container on at least one axis."""

    code = "CARGO_TOO_LARGE"

    def __init__(self, axes: list[str], message: str | None = None) -> None:
        self.axes = list(axes)
        super().__init__(message or f"Cargo does not fit the container along: {', '.join(self.axes)}")


class PersistenceError(CalculatorError):
    """Backing store read/write failure. Never retried by the core."""

    code = "PERSISTENCE_ERROR"
