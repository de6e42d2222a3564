"""Monthly fulfillment pricing.

Each billed order is charged a base rate for its first unit plus a per-unit
rate for every further unit. Only parcels within the weight ceiling are
billed on the monthly invoice; heavier or unweighed orders are reported as
excluded.
"""

BASE_RATE = 2.50
PER_UNIT_RATE = 1.25
WEIGHT_CEILING_LBS = 5.0

EXCLUDED_NO_UNITS = "No units"
EXCLUDED_INVALID_WEIGHT = "Invalid weight"
EXCLUDED_OVERWEIGHT = f"Weight > {WEIGHT_CEILING_LBS:g} lbs"


def fulfillment_charge(units: int) -> float:
    if units <= 0:
        return 0.0
    return round(BASE_RATE + max(0, units - 1) * PER_UNIT_RATE, 2)


def exclusion_reason(total_weight: float | None, units: int) -> str | None:
    """Why an order is left off the monthly invoice, or None when it is billable."""
    if units <= 0:
        return EXCLUDED_NO_UNITS
    if isinstance(total_weight, bool) or not isinstance(total_weight, int | float) or total_weight <= 0:
        return EXCLUDED_INVALID_WEIGHT
    if total_weight > WEIGHT_CEILING_LBS:
        return EXCLUDED_OVERWEIGHT
    return None


def billing_line(order_id: str, order_number: str, units: int) -> dict:
    """Invoice line for one order; the charge is shown split evenly per unit."""
    charge = fulfillment_charge(units)
    return {
        "order_id": order_id,
        "description": f"Order Fulfillment - Order #{order_number}",
        "quantity": units,
        "unit_price": round(charge / units, 2),
        "amount": charge,
    }
