"""Invoice lock guard.

An order attached to an invoice that has left draft is frozen: its status and
items can no longer change, and corrections go through a credit note instead.
Draft invoices do not lock their orders.
"""

from protean.exceptions import ObjectNotFoundError

from warehouse.domain import logger
from warehouse.invoice.invoice import Invoice, InvoiceStatus
from warehouse.order.order import Order
from warehouse.shared.errors import OrderLockedByInvoiceError


def is_locked(invoice: Invoice | None) -> bool:
    return invoice is not None and invoice.status != InvoiceStatus.DRAFT.value


class InvoiceLockGuard:
    """Enforcement point consulted before any order mutation."""

    def __init__(self, invoice_repository):
        self._invoices = invoice_repository

    def linked_invoice(self, order: Order) -> Invoice | None:
        if not order.invoice_id:
            return None
        try:
            return self._invoices.get(str(order.invoice_id))
        except ObjectNotFoundError:
            logger.warning(
                "Order references a missing invoice",
                order_id=str(order.id),
                invoice_id=str(order.invoice_id),
            )
            return None

    def is_locked(self, order: Order) -> bool:
        return is_locked(self.linked_invoice(order))

    def assert_mutable(self, order: Order, attempted_status: str | None = None) -> None:
        invoice = self.linked_invoice(order)
        if is_locked(invoice):
            logger.info(
                "Order mutation blocked by invoice",
                order_id=str(order.id),
                invoice_number=invoice.invoice_number,
                invoice_status=invoice.status,
                attempted_status=attempted_status,
            )
            raise OrderLockedByInvoiceError(
                invoice_number=invoice.invoice_number,
                invoice_status=invoice.status,
                current_status=order.status,
                attempted_status=attempted_status,
            )
