"""Shipping weight and fee calculation.

Weights are normalised to pounds. A product without weight metadata is
assumed to weigh ``DEFAULT_UNIT_WEIGHT_LBS`` per unit.
"""

from warehouse.catalogue import ProductWeight

DEFAULT_UNIT_WEIGHT_LBS = 1.0

_TO_POUNDS = {
    "lb": 1.0,
    "lbs": 1.0,
    "pound": 1.0,
    "pounds": 1.0,
    "kg": 2.20462,
    "kgs": 2.20462,
    "kilogram": 2.20462,
    "kilograms": 2.20462,
    "g": 0.00220462,
    "gram": 0.00220462,
    "grams": 0.00220462,
    "oz": 0.0625,
    "ounce": 0.0625,
    "ounces": 0.0625,
}

# (upper bound in lbs, fee); the last bracket applies to anything heavier
FEE_BRACKETS = (
    (5.0, 2.50),
    (10.0, 5.00),
    (20.0, 8.50),
    (50.0, 15.00),
)
HEAVY_FEE = 25.00


def to_pounds(value: float, unit: str | None) -> float:
    factor = _TO_POUNDS.get((unit or "lb").strip().lower())
    if factor is None:
        raise ValueError(f"Unknown weight unit: {unit}")
    return value * factor


def unit_weight_lbs(weight: ProductWeight | None) -> float:
    """Per-unit weight in pounds, falling back to the default for missing or unusable metadata."""
    if weight is None or weight.value is None or weight.value <= 0:
        return DEFAULT_UNIT_WEIGHT_LBS
    try:
        return round(to_pounds(float(weight.value), weight.unit), 4)
    except ValueError:
        return DEFAULT_UNIT_WEIGHT_LBS


def shipping_fee(total_weight_lbs: float) -> float:
    for upper_bound, fee in FEE_BRACKETS:
        if total_weight_lbs <= upper_bound:
            return fee
    return HEAVY_FEE
