"""Unit & dimension normalizer.

All computation runs in centimetres and kilograms. Values are converted back to
the user's units only when presenting results.
"""

from __future__ import annotations

from container_calculator.errors import InvalidUnitError

LENGTH = "length"
MASS = "mass"

CANONICAL_LENGTH_UNIT = "cm"
CANONICAL_MASS_UNIT = "kg"

# Factors to the canonical unit of each family.
_LENGTH_TO_CM: dict[str, float] = {
    "mm": 0.1,
    "cm": 1.0,
    "m": 100.0,
    "in": 2.54,
    "ft": 30.48,
}

_MASS_TO_KG: dict[str, float] = {
    "g": 0.001,
    "kg": 1.0,
    "lb": 0.45359237,
    "t": 1000.0,
}

_ALIASES: dict[str, str] = {
    "millimeter": "mm",
    "millimeters": "mm",
    "centimeter": "cm",
    "centimeters": "cm",
    "meter": "m",
    "meters": "m",
    "metre": "m",
    "metres": "m",
    "inch": "in",
    "inches": "in",
    "foot": "ft",
    "feet": "ft",
    "gram": "g",
    "grams": "g",
    "kgs": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
    "lbs": "lb",
    "pound": "lb",
    "pounds": "lb",
    "ton": "t",
    "tons": "t",
    "tonne": "t",
    "tonnes": "t",
}

CM3_PER_CBM = 1_000_000.0


def normalize_unit(unit: str) -> str:
    """Map a unit token (any case, aliases allowed) to its short symbol."""
    if not isinstance(unit, str) or not unit.strip():
        raise InvalidUnitError(f"Unit must be a non-empty string, got {unit!r}")
    key = unit.strip().lower()
    key = _ALIASES.get(key, key)
    if key not in _LENGTH_TO_CM and key not in _MASS_TO_KG:
        raise InvalidUnitError(f"Unknown unit '{unit}'")
    return key


def unit_family(unit: str) -> str:
    key = normalize_unit(unit)
    return LENGTH if key in _LENGTH_TO_CM else MASS


def _factor(key: str) -> float:
    return _LENGTH_TO_CM[key] if key in _LENGTH_TO_CM else _MASS_TO_KG[key]


def convert(value: float, from_unit: str, to_unit: str) -> float:
    """
    Convert value between two units of the same family.

    Raises InvalidUnitError for unknown tokens or length<->mass requests.
    """
    src = normalize_unit(from_unit)
    dst = normalize_unit(to_unit)
    if unit_family(src) != unit_family(dst):
        raise InvalidUnitError(
            f"Cannot convert {unit_family(src)} unit '{from_unit}' to {unit_family(dst)} unit '{to_unit}'"
        )
    if src == dst:
        return float(value)
    return float(value) * _factor(src) / _factor(dst)


def require_family(unit: str, family: str) -> str:
    key = normalize_unit(unit)
    if unit_family(key) != family:
        raise InvalidUnitError(f"'{unit}' is not a {family} unit")
    return key


def to_canonical_length(value: float, unit: str) -> float:
    return convert(value, require_family(unit, LENGTH), CANONICAL_LENGTH_UNIT)


def to_canonical_mass(value: float, unit: str) -> float:
    return convert(value, require_family(unit, MASS), CANONICAL_MASS_UNIT)


def from_canonical_length(value: float, unit: str) -> float:
    return convert(value, CANONICAL_LENGTH_UNIT, require_family(unit, LENGTH))


def from_canonical_mass(value: float, unit: str) -> float:
    return convert(value, CANONICAL_MASS_UNIT, require_family(unit, MASS))


def cubic_cm_to_cbm(volume_cm3: float) -> float:
    return volume_cm3 / CM3_PER_CBM


def supported_units() -> dict[str, list[str]]:
    return {LENGTH: sorted(_LENGTH_TO_CM), MASS: sorted(_MASS_TO_KG)}
