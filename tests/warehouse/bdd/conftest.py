"""Shared BDD fixtures and step definitions for the Warehouse domain."""

import json

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then
from warehouse.inventory.ledger import InventoryLedger
from warehouse.inventory.receiving import OnboardProduct
from warehouse.inventory.record import InventoryRecord
from warehouse.invoice.invoice import Invoice
from warehouse.order.creation import CreateOrder
from warehouse.order.order import Order
from warehouse.order.status import UpdateOrderStatus
from warehouse.shared.errors import WarehouseError


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def client_id():
    return "client-bdd-001"


@pytest.fixture()
def product_id():
    return "prod-bdd-001"


@pytest.fixture()
def error():
    """Container for the error raised by a When step."""
    return {"exc": None}


@pytest.fixture()
def stock(client_id, product_id):
    """Reads the current inventory record on every call."""
    ledger = InventoryLedger(current_domain.repository_for(InventoryRecord))
    return lambda: ledger.get(product_id, client_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("the client has {quantity:d} units in stock"))
def client_has_stock(client_id, product_id, quantity):
    current_domain.process(
        OnboardProduct(product_id=product_id, client_id=client_id, initial_stock=quantity),
        asynchronous=False,
    )


@given(parsers.cfparse("a pending order for {quantity:d} units"), target_fixture="order_id")
def pending_order(client_id, product_id, quantity):
    return current_domain.process(
        CreateOrder(client_id=client_id, items=json.dumps([{"productId": product_id, "quantity": quantity}])),
        asynchronous=False,
    )


@given(parsers.cfparse('the order is moved to "{status}"'))
def order_moved_to(order_id, status):
    current_domain.process(UpdateOrderStatus(order_id=order_id, status=status), asynchronous=False)


@given(parsers.cfparse('an invoice for {total:g} with status "{status}"'), target_fixture="invoice_id")
def invoice_with_status(client_id, total, status):
    invoice = Invoice.create(client_id=client_id, total_amount=total, issue=status != "draft")
    current_domain.repository_for(Invoice).add(invoice)
    return str(invoice.id)


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the available stock is {count:d}"))
def available_stock_is(stock, count):
    assert stock().available_stock == count


@then(parsers.cfparse("the reserved stock is {count:d}"))
def reserved_stock_is(stock, count):
    assert stock().reserved_stock == count


@then(parsers.cfparse("the dispatched stock is {count:d}"))
def dispatched_stock_is(stock, count):
    assert stock().dispatched_stock == count


@then(parsers.cfparse("the total stock is {count:d}"))
def total_stock_is(stock, count):
    assert stock().total_stock == count


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse('the action is rejected with "{code}"'))
def action_rejected_with(error, code):
    assert error["exc"] is not None, "Expected the action to be rejected but it succeeded"
    assert isinstance(error["exc"], WarehouseError)
    assert error["exc"].code == code


@then("the action succeeds")
def action_succeeds(error):
    assert error["exc"] is None, f"Unexpected error: {error['exc']}"
