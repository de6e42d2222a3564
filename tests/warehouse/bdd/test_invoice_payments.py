"""BDD tests for recording and deleting invoice payments."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when
from warehouse.invoice.invoice import Invoice
from warehouse.invoice.payments import DeletePayment, RecordPayment
from warehouse.shared.errors import WarehouseError

scenarios("features/invoice_payments.feature")


def _invoice(invoice_id):
    return current_domain.repository_for(Invoice).get(invoice_id)


def _pay(invoice_id, amount):
    return current_domain.process(RecordPayment(invoice_id=invoice_id, amount=amount), asynchronous=False)


@pytest.fixture()
def payment_ids():
    return []


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a payment of {amount:g} has been recorded"))
def payment_recorded(invoice_id, amount, payment_ids):
    payment_ids.append(_pay(invoice_id, amount))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("a payment of {amount:g} is recorded"))
def record_payment(invoice_id, amount, error):
    try:
        _pay(invoice_id, amount)
    except (WarehouseError, ValidationError) as exc:
        error["exc"] = exc


@when("the first payment is deleted")
def delete_first_payment(invoice_id, payment_ids):
    current_domain.process(DeletePayment(invoice_id=invoice_id, payment_id=payment_ids[0]), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the invoice status is "{status}"'))
def invoice_status_is(invoice_id, status):
    assert _invoice(invoice_id).status == status


@then(parsers.cfparse("the balance due is {amount:g}"))
def balance_due_is(invoice_id, amount):
    assert _invoice(invoice_id).balance_due == pytest.approx(amount)


@then(parsers.cfparse("the maximum payment reported is {amount:g}"))
def maximum_payment_is(error, amount):
    assert error["exc"].data["maxPayment"] == pytest.approx(amount)


@then(parsers.cfparse("the invoice has {count:d} payment"))
def invoice_payment_count(invoice_id, count):
    assert len(_invoice(invoice_id).payments) == count
