"""Invoice aggregate (CQRS) — client billing and the payment ledger.

The Invoice owns its line items and its payments. ``paid_amount`` is the
source of truth together with ``total_amount``; ``balance_due`` and
``status`` are re-derived with the functions in ``warehouse.invoice.deriver``
on every payment mutation, inside one atomic change so the payment row and
the invoice totals are always written together.

Statuses:
    DRAFT    — generated, not yet sent; does not lock its orders
    SENT     — issued, nothing paid
    PARTIAL  — 0 < paid < total
    PAID     — paid in full
    OVERDUE  — past due (set by collections, outside this service)
    VOID     — cancelled (set by credit-note workflow, outside this service)
"""

from datetime import UTC, date, datetime, timedelta
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Float, HasMany, Identifier, Integer, String, Text

from warehouse.domain import warehouse
from warehouse.invoice.deriver import (
    TOLERANCE,
    compute_balance_due,
    derive_status,
    to_cents,
    validate_invoice_state,
)
from warehouse.invoice.events import (
    InvoiceGenerated,
    InvoiceIssued,
    InvoicePaid,
    PaymentDeleted,
    PaymentRecorded,
)
from warehouse.shared.errors import InvalidInvoiceStateError, NotFoundError, PaymentExceedsTotalError

PAYMENT_TERMS_DAYS = 30


class InvoiceStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    VOID = "void"


class InvoiceType(Enum):
    SINGLE = "single"
    MONTHLY = "monthly"


_DERIVED_STATUSES = {InvoiceStatus.SENT.value, InvoiceStatus.PARTIAL.value, InvoiceStatus.PAID.value}


def monthly_invoice_number(client_id: str, year: int, month: int) -> str:
    return f"INV-{year:04d}{month:02d}-{str(client_id)[-6:].upper()}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@warehouse.entity(part_of="Invoice", schema_name="invoice_line_items")
class InvoiceLineItem:
    """One billed order on an invoice."""

    order_id = Identifier()
    description = String(required=True, max_length=500)
    quantity = Integer(required=True, min_value=0)
    unit_price = Float(required=True)
    amount = Float(required=True)


@warehouse.entity(part_of="Invoice", schema_name="invoice_payments")
class Payment:
    """An append-only ledger entry for money received against an invoice."""

    amount = Float(required=True)
    payment_date = Date(required=True)
    payment_method = String(max_length=50)
    reference_number = String(max_length=100)
    notes = Text()
    created_by = String(max_length=255)
    created_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@warehouse.aggregate(schema_name="invoices")
class Invoice:
    invoice_number = String(required=True, max_length=50)
    client_id = Identifier(required=True)
    order_id = Identifier()
    invoice_type = String(
        max_length=20,
        choices=InvoiceType,
        default=InvoiceType.SINGLE.value,
    )
    billing_period_month = Integer(min_value=1, max_value=12)
    billing_period_year = Integer()
    billing_period_start = Date()
    billing_period_end = Date()
    order_count = Integer(default=0)
    line_items = HasMany(InvoiceLineItem)
    payments = HasMany(Payment)
    total_amount = Float(default=0.0, min_value=0.0)
    paid_amount = Float(default=0.0, min_value=0.0)
    balance_due = Float(default=0.0)
    status = String(
        max_length=20,
        choices=InvoiceStatus,
        default=InvoiceStatus.DRAFT.value,
    )
    issue_date = Date()
    due_date = Date()
    paid_date = Date()
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def derived_fields_must_match_amounts(self):
        try:
            validate_invoice_state(self.total_amount, self.paid_amount, self.balance_due, self.status)
            violations = []
        except InvalidInvoiceStateError as exc:
            violations = list(exc.violations)
        if self.status in _DERIVED_STATUSES and self.status != derive_status(self.total_amount, self.paid_amount):
            violations.append(
                f"status {self.status} does not match paid {self.paid_amount:.2f} of {self.total_amount:.2f}"
            )
        if self.status == InvoiceStatus.DRAFT.value and to_cents(self.paid_amount) > 0:
            violations.append("draft invoices cannot carry payments")
        if violations:
            raise ValidationError({"status": violations})

    # -------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        client_id: str,
        total_amount: float,
        order_id: str | None = None,
        invoice_number: str | None = None,
        due_date: date | None = None,
        notes: str | None = None,
        issue: bool = False,
    ):
        """Create a single invoice outside the monthly run."""
        today = datetime.now(UTC).date()
        return cls._new(
            invoice_number=invoice_number or f"INV-{uuid4().hex[:8].upper()}",
            client_id=client_id,
            order_id=order_id,
            invoice_type=InvoiceType.SINGLE.value,
            total_amount=total_amount,
            due_date=due_date or today + timedelta(days=PAYMENT_TERMS_DAYS),
            notes=notes,
            issue=issue,
        )

    @classmethod
    def create_monthly(
        cls,
        client_id: str,
        month: int,
        year: int,
        period_start: date,
        period_end: date,
        lines: list[dict],
        issue: bool = False,
        notes: str | None = None,
    ):
        """Create a client's invoice for one billing month.

        ``lines`` is a list of ``{order_id, description, quantity, unit_price,
        amount}`` dicts, one per billed order.
        """
        total = to_cents(sum(line["amount"] for line in lines))
        return cls._new(
            invoice_number=monthly_invoice_number(client_id, year, month),
            client_id=client_id,
            invoice_type=InvoiceType.MONTHLY.value,
            total_amount=total,
            due_date=period_end + timedelta(days=PAYMENT_TERMS_DAYS),
            notes=notes,
            issue=issue,
            lines=lines,
            billing_period_month=month,
            billing_period_year=year,
            billing_period_start=period_start,
            billing_period_end=period_end,
            order_count=len(lines),
        )

    @classmethod
    def _new(cls, invoice_number, client_id, invoice_type, total_amount, due_date, notes, issue, lines=(), **extra):
        now = datetime.now(UTC)
        total = to_cents(total_amount)
        status = derive_status(total, 0.0) if issue else InvoiceStatus.DRAFT.value

        invoice = cls(
            invoice_number=invoice_number,
            client_id=client_id,
            invoice_type=invoice_type,
            total_amount=total,
            paid_amount=0.0,
            balance_due=compute_balance_due(total, 0.0),
            status=status,
            issue_date=now.date() if issue else None,
            due_date=due_date,
            notes=notes,
            created_at=now,
            updated_at=now,
            **extra,
        )
        for line in lines:
            invoice.add_line_items(
                InvoiceLineItem(
                    order_id=line.get("order_id"),
                    description=line["description"],
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    amount=line["amount"],
                )
            )

        invoice.raise_(
            InvoiceGenerated(
                invoice_id=str(invoice.id),
                invoice_number=invoice_number,
                client_id=client_id,
                invoice_type=invoice_type,
                status=status,
                total_amount=total,
                order_count=invoice.order_count or 0,
                billing_period_month=invoice.billing_period_month,
                billing_period_year=invoice.billing_period_year,
                due_date=due_date,
                generated_at=now,
            )
        )
        return invoice

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def is_fully_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID.value

    def summary(self) -> dict:
        return {
            "totalAmount": self.total_amount,
            "paidAmount": self.paid_amount,
            "balanceDue": self.balance_due,
            "status": self.status,
            "fullyPaid": self.is_fully_paid,
        }

    def _assert_accepts_payments(self) -> None:
        if self.status == InvoiceStatus.VOID.value:
            raise InvalidInvoiceStateError(
                ["payments cannot be changed on a void invoice"],
                data={"invoiceNumber": self.invoice_number, "status": self.status},
            )

    def _apply_paid_amount(self, paid: float, paid_on: date | None = None) -> None:
        """Re-derive balance and status from a new paid amount. Caller holds an atomic change."""
        was_paid = self.status == InvoiceStatus.PAID.value
        self.paid_amount = to_cents(paid)
        self.balance_due = compute_balance_due(self.total_amount, self.paid_amount)
        self.status = derive_status(self.total_amount, self.paid_amount)
        if self.status == InvoiceStatus.PAID.value:
            if not was_paid:
                self.paid_date = paid_on or datetime.now(UTC).date()
        else:
            self.paid_date = None
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def issue(self) -> None:
        """Send a draft invoice to the client."""
        if self.status != InvoiceStatus.DRAFT.value:
            raise InvalidInvoiceStateError(
                [f"only draft invoices can be issued, this one is {self.status}"],
                data={"invoiceNumber": self.invoice_number, "status": self.status},
            )
        now = datetime.now(UTC)
        self.status = derive_status(self.total_amount, self.paid_amount)
        self.issue_date = now.date()
        self.updated_at = now
        self.raise_(
            InvoiceIssued(
                invoice_id=str(self.id),
                invoice_number=self.invoice_number,
                client_id=str(self.client_id),
                issued_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment ledger
    # -------------------------------------------------------------------
    def record_payment(
        self,
        amount: float,
        payment_date: date | None = None,
        payment_method: str | None = None,
        reference_number: str | None = None,
        notes: str | None = None,
        created_by: str | None = None,
    ) -> Payment:
        """Book a payment and re-derive the invoice's balance and status."""
        if amount is None or to_cents(amount) <= 0:
            raise ValidationError({"amount": ["Payment amount must be greater than zero"]})
        self._assert_accepts_payments()

        amount = to_cents(amount)
        already_paid = to_cents(self.paid_amount)
        new_paid = to_cents(already_paid + amount)
        if new_paid > to_cents(self.total_amount) + TOLERANCE / 2:
            raise PaymentExceedsTotalError(to_cents(self.total_amount), already_paid, amount)

        now = datetime.now(UTC)
        payment_date = payment_date or now.date()
        payment = Payment(
            amount=amount,
            payment_date=payment_date,
            payment_method=payment_method,
            reference_number=reference_number,
            notes=notes,
            created_by=created_by,
            created_at=now,
        )

        was_paid = self.is_fully_paid
        with atomic_change(self):
            self.add_payments(payment)
            self._apply_paid_amount(new_paid, paid_on=payment_date)

        self.raise_(
            PaymentRecorded(
                invoice_id=str(self.id),
                payment_id=str(payment.id),
                amount=amount,
                payment_date=payment_date,
                payment_method=payment_method,
                paid_amount=self.paid_amount,
                balance_due=self.balance_due,
                status=self.status,
                recorded_at=now,
            )
        )
        if self.is_fully_paid and not was_paid:
            self.raise_(
                InvoicePaid(
                    invoice_id=str(self.id),
                    invoice_number=self.invoice_number,
                    client_id=str(self.client_id),
                    paid_date=self.paid_date,
                )
            )
        return payment

    def delete_payment(self, payment_id: str) -> Payment:
        """Remove a mistaken payment and re-derive the invoice state."""
        payment = next((p for p in self.payments if str(p.id) == str(payment_id)), None)
        if payment is None:
            raise NotFoundError(
                f"Payment {payment_id} not found on invoice {self.invoice_number}",
                data={"invoiceId": str(self.id), "paymentId": str(payment_id)},
            )
        self._assert_accepts_payments()

        new_paid = max(0.0, to_cents(self.paid_amount) - to_cents(payment.amount))
        with atomic_change(self):
            self.remove_payments(payment)
            self._apply_paid_amount(new_paid)

        self.raise_(
            PaymentDeleted(
                invoice_id=str(self.id),
                payment_id=str(payment.id),
                amount=payment.amount,
                paid_amount=self.paid_amount,
                balance_due=self.balance_due,
                status=self.status,
                deleted_at=datetime.now(UTC),
            )
        )
        return payment
