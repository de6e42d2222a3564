"""Typed error hierarchy for the warehouse domain.

Every error carries a machine-readable ``code``, the HTTP ``status_code`` the
API maps it to, a human ``message`` and a ``data`` payload with whatever the
caller needs to self-correct (allowed transitions, maximum payment, invoice
reference).
"""

from sqlalchemy.exc import IntegrityError


class WarehouseError(Exception):
    code = "WAREHOUSE_ERROR"
    status_code = 400

    def __init__(self, message: str, data: dict | None = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_dict(self) -> dict:
        body = {"success": False, "code": self.code, "message": self.message}
        if self.data:
            body["data"] = self.data
        return body


# ---------------------------------------------------------------------------
# State errors
# ---------------------------------------------------------------------------
class InsufficientStockError(WarehouseError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, available: int, requested: int, counter: str = "available"):
        super().__init__(
            f"Insufficient {counter} stock for product {product_id}: {available} {counter}, {requested} requested",
            data={
                "productId": product_id,
                "available": available,
                "requested": requested,
                "counter": counter,
            },
        )


class InvalidStatusTransitionError(WarehouseError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current_status: str, attempted_status: str, allowed_statuses: list[str]):
        allowed = ", ".join(allowed_statuses) if allowed_statuses else "none"
        super().__init__(
            f"Cannot change order status from '{current_status}' to '{attempted_status}'. Allowed: {allowed}",
            data={
                "currentStatus": current_status,
                "attemptedStatus": attempted_status,
                "allowedStatuses": allowed_statuses,
            },
        )


class OrderLockedByInvoiceError(WarehouseError):
    code = "ORDER_LOCKED_BY_INVOICE"
    status_code = 403

    SOLUTION = "Create a credit note for returns, refunds, or adjustments"

    def __init__(
        self,
        invoice_number: str,
        invoice_status: str,
        current_status: str,
        attempted_status: str | None = None,
    ):
        super().__init__(
            f"Order is locked by invoice {invoice_number} ({invoice_status}) and can no longer be modified",
            data={
                "invoiceNumber": invoice_number,
                "invoiceStatus": invoice_status,
                "currentStatus": current_status,
                "attemptedStatus": attempted_status,
                "solution": self.SOLUTION,
            },
        )


class PaymentExceedsTotalError(WarehouseError):
    code = "PAYMENT_EXCEEDS_TOTAL"

    def __init__(self, total_amount: float, already_paid: float, attempted_payment: float):
        max_payment = round(max(0.0, total_amount - already_paid), 2)
        super().__init__(
            f"Payment of {attempted_payment:.2f} exceeds the remaining balance of {max_payment:.2f}",
            data={
                "totalAmount": total_amount,
                "alreadyPaid": already_paid,
                "maxPayment": max_payment,
                "attemptedPayment": attempted_payment,
            },
        )


class InvalidInvoiceStateError(WarehouseError):
    code = "INVALID_INVOICE_STATE"

    def __init__(self, violations: list[str], data: dict | None = None):
        super().__init__(
            "Invalid invoice state: " + "; ".join(violations),
            data={"violations": violations, **(data or {})},
        )
        self.violations = violations


class InventoryNotEmptyError(WarehouseError):
    code = "INVENTORY_NOT_EMPTY"

    def __init__(self, product_id: str, client_id: str, counters: dict):
        super().__init__(
            f"Inventory record for product {product_id} still holds stock and cannot be removed",
            data={"productId": product_id, "clientId": client_id, **counters},
        )


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class NotFoundError(WarehouseError):
    code = "NOT_FOUND"
    status_code = 404


class InventoryNotFoundError(NotFoundError):
    def __init__(self, product_id: str, client_id: str):
        super().__init__(
            f"No inventory record for product {product_id} and client {client_id}",
            data={"productId": product_id, "clientId": client_id},
        )


# ---------------------------------------------------------------------------
# Integrity / storage
# ---------------------------------------------------------------------------
class IntegrityViolationError(WarehouseError):
    code = "INTEGRITY_VIOLATION"
    status_code = 500


class DuplicateValueError(WarehouseError):
    code = "DUPLICATE_VALUE"
    status_code = 409


class ForeignKeyViolationError(WarehouseError):
    code = "FOREIGN_KEY_VIOLATION"


class NotNullViolationError(WarehouseError):
    code = "NOT_NULL_VIOLATION"


class ConcurrentModificationError(WarehouseError):
    code = "CONCURRENT_MODIFICATION"
    status_code = 409


_SQLSTATE_ERRORS = {
    "23505": (DuplicateValueError, "A record with the same unique value already exists"),
    "23503": (ForeignKeyViolationError, "Referenced record does not exist"),
    "23502": (NotNullViolationError, "A required value is missing"),
    "23514": (IntegrityViolationError, "A stored value violates a consistency constraint"),
}


def sqlstate_of(exc: IntegrityError) -> str | None:
    """Extract the SQLSTATE code reported by the database driver."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code is None:
        diag = getattr(orig, "diag", None)
        code = getattr(diag, "sqlstate", None)
    return code


def translate_integrity_error(exc: IntegrityError) -> WarehouseError:
    """Map a storage integrity failure to a domain error without leaking driver text."""
    sqlstate = sqlstate_of(exc)
    error_cls, message = _SQLSTATE_ERRORS.get(
        sqlstate, (IntegrityViolationError, "The operation violates a storage constraint")
    )
    data = {"sqlstate": sqlstate} if sqlstate else None
    return error_cls(message, data=data)
