"""Tests for the Invoice aggregate — issuing and the payment ledger."""

from datetime import date

import pytest
from protean.exceptions import ValidationError
from warehouse.invoice.events import InvoiceIssued, InvoicePaid, PaymentDeleted, PaymentRecorded
from warehouse.invoice.invoice import Invoice, InvoiceStatus, monthly_invoice_number
from warehouse.shared.errors import InvalidInvoiceStateError, NotFoundError, PaymentExceedsTotalError


def _make_invoice(**overrides):
    defaults = {
        "client_id": "client-001",
        "total_amount": 100.0,
        "issue": True,
    }
    defaults.update(overrides)
    return Invoice.create(**defaults)


def _line(order_id, quantity, unit_price, amount):
    return {
        "order_id": order_id,
        "description": f"Order Fulfillment - Order #{order_id.upper()}",
        "quantity": quantity,
        "unit_price": unit_price,
        "amount": amount,
    }


def _make_monthly(**overrides):
    defaults = {
        "client_id": "client-abc123",
        "month": 3,
        "year": 2025,
        "period_start": date(2025, 3, 1),
        "period_end": date(2025, 3, 31),
        "lines": [_line("o-1", 1, 2.5, 2.5), _line("o-2", 3, 1.67, 5.0)],
    }
    defaults.update(overrides)
    return Invoice.create_monthly(**defaults)


class TestInvoiceCreation:
    def test_issued_invoice_starts_sent(self):
        invoice = _make_invoice()
        assert invoice.status == "sent"
        assert invoice.balance_due == 100.0
        assert invoice.paid_amount == 0.0
        assert invoice.issue_date is not None

    def test_unissued_invoice_is_draft(self):
        invoice = _make_invoice(issue=False)
        assert invoice.status == "draft"
        assert invoice.issue_date is None

    def test_monthly_invoice_totals_lines(self):
        invoice = _make_monthly()
        assert invoice.total_amount == 7.5
        assert invoice.order_count == 2
        assert len(invoice.line_items) == 2
        assert invoice.invoice_type == "monthly"
        assert invoice.due_date == date(2025, 4, 30)

    def test_monthly_invoice_number(self):
        assert monthly_invoice_number("client-abc123", 2025, 3) == "INV-202503-ABC123"
        assert _make_monthly().invoice_number == "INV-202503-ABC123"


class TestIssue:
    def test_issue_moves_draft_to_sent(self):
        invoice = _make_invoice(issue=False)
        invoice.issue()
        assert invoice.status == "sent"
        assert isinstance(invoice._events[-1], InvoiceIssued)

    def test_only_drafts_can_be_issued(self):
        invoice = _make_invoice()
        with pytest.raises(InvalidInvoiceStateError):
            invoice.issue()


class TestRecordPayment:
    def test_partial_payment(self):
        invoice = _make_invoice()
        invoice.record_payment(40.0, payment_date=date(2025, 4, 2))
        assert invoice.paid_amount == 40.0
        assert invoice.balance_due == 60.0
        assert invoice.status == "partial"
        assert invoice.paid_date is None
        assert len(invoice.payments) == 1

    def test_payment_in_full(self):
        invoice = _make_invoice()
        invoice.record_payment(60.0, payment_date=date(2025, 4, 2))
        invoice.record_payment(40.0, payment_date=date(2025, 4, 9))
        assert invoice.status == "paid"
        assert invoice.balance_due == 0.0
        assert invoice.paid_date == date(2025, 4, 9)
        assert invoice.is_fully_paid

    def test_payment_events(self):
        invoice = _make_invoice()
        invoice.record_payment(100.0)
        event_types = [type(e) for e in invoice._events]
        assert PaymentRecorded in event_types
        assert InvoicePaid in event_types

    def test_overpayment_rejected_without_side_effects(self):
        invoice = _make_invoice()
        invoice.record_payment(80.0)
        with pytest.raises(PaymentExceedsTotalError) as exc:
            invoice.record_payment(30.0)
        assert exc.value.data == {
            "totalAmount": 100.0,
            "alreadyPaid": 80.0,
            "maxPayment": 20.0,
            "attemptedPayment": 30.0,
        }
        assert invoice.paid_amount == 80.0
        assert len(invoice.payments) == 1

    def test_sub_cent_noise_is_tolerated(self):
        invoice = _make_invoice(total_amount=0.3)
        invoice.record_payment(0.1)
        invoice.record_payment(0.2)
        assert invoice.status == "paid"

    @pytest.mark.parametrize("amount", [0, -5.0])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValidationError):
            _make_invoice().record_payment(amount)

    def test_payment_date_defaults_to_today(self):
        payment = _make_invoice().record_payment(10.0)
        assert payment.payment_date is not None

    def test_void_invoice_refuses_payments(self):
        invoice = _make_invoice()
        invoice.status = InvoiceStatus.VOID.value
        with pytest.raises(InvalidInvoiceStateError):
            invoice.record_payment(10.0)

    def test_payment_on_draft_derives_status(self):
        invoice = _make_invoice(issue=False)
        invoice.record_payment(25.0)
        assert invoice.status == "partial"


class TestDeletePayment:
    def test_deleting_payment_regresses_paid_invoice(self):
        invoice = _make_invoice()
        first = invoice.record_payment(60.0)
        invoice.record_payment(40.0)
        assert invoice.status == "paid"

        invoice.delete_payment(first.id)
        assert invoice.paid_amount == 40.0
        assert invoice.balance_due == 60.0
        assert invoice.status == "partial"
        assert invoice.paid_date is None
        assert isinstance(invoice._events[-1], PaymentDeleted)

    def test_deleting_only_payment_returns_to_sent(self):
        invoice = _make_invoice()
        payment = invoice.record_payment(30.0)
        invoice.delete_payment(payment.id)
        assert invoice.status == "sent"
        assert invoice.paid_amount == 0.0
        assert len(invoice.payments) == 0

    def test_unknown_payment(self):
        with pytest.raises(NotFoundError):
            _make_invoice().delete_payment("missing")


class TestDerivedFieldsInvariant:
    def test_status_cannot_be_forced_out_of_line(self):
        invoice = _make_invoice()
        with pytest.raises(ValidationError):
            invoice.status = "paid"

    def test_paid_amount_cannot_exceed_total(self):
        invoice = _make_invoice()
        with pytest.raises(ValidationError):
            invoice.paid_amount = 150.0

    def test_reports_the_same_violations_as_the_state_validator(self):
        invoice = _make_invoice()
        with pytest.raises(ValidationError) as exc:
            invoice.paid_amount = 150.0

        assert "paid amount 150.00 exceeds total 100.00" in exc.value.messages["status"]
        assert "status is sent but 150.00 has been paid" in exc.value.messages["status"]
