"""Invoice state derivation.

``balance_due`` and ``status`` are derived fields: they are always recomputed
from ``(total_amount, paid_amount)`` with the functions below and never set
independently.
"""

from warehouse.shared.errors import InvalidInvoiceStateError

# One cent
TOLERANCE = 0.01

SENT = "sent"
PARTIAL = "partial"
PAID = "paid"


def to_cents(amount: float) -> float:
    return round(float(amount or 0.0), 2)


def compute_balance_due(total: float, paid: float) -> float:
    return to_cents(max(0.0, to_cents(total) - to_cents(paid)))


def derive_status(total: float, paid: float) -> str:
    total, paid = to_cents(total), to_cents(paid)
    if paid <= 0:
        return SENT
    if paid < total:
        return PARTIAL
    return PAID


def invoice_state_violations(total: float, paid: float, balance_due: float, status: str) -> list[str]:
    """Every guardrail the given invoice state breaks; empty when consistent."""
    total, paid, balance_due = to_cents(total), to_cents(paid), to_cents(balance_due)
    violations = []

    if paid > total + TOLERANCE:
        violations.append(f"paid amount {paid:.2f} exceeds total {total:.2f}")
    if balance_due < 0:
        violations.append(f"balance due {balance_due:.2f} is negative")
    if status == PAID and abs(balance_due) > TOLERANCE:
        violations.append(f"status is paid but balance due is {balance_due:.2f}")
    if status == SENT and abs(paid) > TOLERANCE:
        violations.append(f"status is sent but {paid:.2f} has been paid")
    if abs(balance_due - (total - paid)) > TOLERANCE:
        violations.append(f"balance due {balance_due:.2f} does not equal total {total:.2f} minus paid {paid:.2f}")

    return violations


def validate_invoice_state(total: float, paid: float, balance_due: float, status: str) -> None:
    """Refuse an invoice state that breaks any guardrail. Never corrects in place."""
    violations = invoice_state_violations(total, paid, balance_due, status)
    if violations:
        raise InvalidInvoiceStateError(
            violations,
            data={"totalAmount": total, "paidAmount": paid, "balanceDue": balance_due, "status": status},
        )
