"""Domain events for the Invoice aggregate."""

from protean.fields import Date, DateTime, Float, Identifier, Integer, String

from warehouse.domain import warehouse


@warehouse.event(part_of="Invoice")
class InvoiceGenerated:
    """A new invoice was created for a client."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    invoice_number = String(required=True)
    client_id = Identifier(required=True)
    invoice_type = String(required=True)
    status = String(required=True)
    total_amount = Float(required=True)
    order_count = Integer(default=0)
    billing_period_month = Integer()
    billing_period_year = Integer()
    due_date = Date()
    generated_at = DateTime(required=True)


@warehouse.event(part_of="Invoice")
class InvoiceIssued:
    """A draft invoice was sent to the client; its orders are now locked."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    invoice_number = String(required=True)
    client_id = Identifier(required=True)
    issued_at = DateTime(required=True)


@warehouse.event(part_of="Invoice")
class PaymentRecorded:
    """A payment was booked against an invoice."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    amount = Float(required=True)
    payment_date = Date(required=True)
    payment_method = String()
    paid_amount = Float(required=True)
    balance_due = Float(required=True)
    status = String(required=True)
    recorded_at = DateTime(required=True)


@warehouse.event(part_of="Invoice")
class PaymentDeleted:
    """A payment was removed to correct a booking error."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    amount = Float(required=True)
    paid_amount = Float(required=True)
    balance_due = Float(required=True)
    status = String(required=True)
    deleted_at = DateTime(required=True)


@warehouse.event(part_of="Invoice")
class InvoicePaid:
    """The invoice was paid in full."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    invoice_number = String(required=True)
    client_id = Identifier(required=True)
    paid_date = Date(required=True)
