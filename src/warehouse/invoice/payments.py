"""Payment recording and correction — commands and handler.

The payment row and the re-derived invoice totals belong to one aggregate
and are persisted in a single write: either both land or neither does.
"""

from protean import handle
from protean.fields import Date, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from warehouse.domain import logger, warehouse
from warehouse.invoice.invoice import Invoice


@warehouse.command(part_of="Invoice")
class RecordPayment:
    """Book money received against an invoice."""

    invoice_id = Identifier(required=True)
    amount = Float(required=True)
    payment_date = Date()  # Defaults to today
    payment_method = String(max_length=50)
    reference_number = String(max_length=100)
    notes = Text()
    created_by = String(max_length=255)


@warehouse.command(part_of="Invoice")
class DeletePayment:
    """Remove a mistaken payment from an invoice."""

    invoice_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    deleted_by = String(max_length=255)


@warehouse.command_handler(part_of=Invoice)
class InvoicePaymentHandler:
    @handle(RecordPayment)
    def record_payment(self, command):
        repo = current_domain.repository_for(Invoice)
        invoice = repo.get(command.invoice_id)
        payment = invoice.record_payment(
            amount=command.amount,
            payment_date=command.payment_date,
            payment_method=command.payment_method,
            reference_number=command.reference_number,
            notes=command.notes,
            created_by=command.created_by,
        )
        repo.add(invoice)

        logger.info(
            "Payment recorded",
            invoice_id=str(invoice.id),
            invoice_number=invoice.invoice_number,
            amount=payment.amount,
            status=invoice.status,
            balance_due=invoice.balance_due,
        )
        return str(payment.id)

    @handle(DeletePayment)
    def delete_payment(self, command):
        repo = current_domain.repository_for(Invoice)
        invoice = repo.get(command.invoice_id)
        payment = invoice.delete_payment(command.payment_id)
        repo.add(invoice)

        logger.info(
            "Payment deleted",
            invoice_id=str(invoice.id),
            invoice_number=invoice.invoice_number,
            payment_id=str(payment.id),
            amount=payment.amount,
            status=invoice.status,
            deleted_by=command.deleted_by,
        )
        return str(payment.id)
