"""BDD tests for order fulfillment, stock movements and the invoice lock."""

import json

from protean import current_domain
from pytest_bdd import given, parsers, scenarios, when
from warehouse.invoice.invoice import Invoice
from warehouse.order.creation import CreateOrder
from warehouse.order.order import Order
from warehouse.order.status import UpdateOrderStatus
from warehouse.shared.errors import WarehouseError

scenarios("features/order_fulfillment.feature")


def _update_status(order_id, status, error):
    try:
        current_domain.process(UpdateOrderStatus(order_id=order_id, status=status), asynchronous=False)
    except WarehouseError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the order is billed on an invoice with status "{status}"'))
def order_billed(client_id, order_id, status):
    invoice = Invoice.create(client_id=client_id, total_amount=2.5, issue=status != "draft")
    current_domain.repository_for(Invoice).add(invoice)

    order = current_domain.repository_for(Order).get(order_id)
    order.link_invoice(str(invoice.id), invoice.invoice_number)
    current_domain.repository_for(Order).add(order)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("an order for {quantity:d} units is placed"))
def place_order(client_id, product_id, quantity, error):
    items = json.dumps([{"productId": product_id, "quantity": quantity}])
    try:
        current_domain.process(CreateOrder(client_id=client_id, items=items), asynchronous=False)
    except WarehouseError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the order is moved to "{status}"'))
def move_order(order_id, status, error):
    _update_status(order_id, status, error)


@when("the order is cancelled")
def cancel_order(order_id, error):
    _update_status(order_id, "cancelled", error)


@when(parsers.cfparse('the status is changed to "{status}"'))
def change_status(order_id, status, error):
    _update_status(order_id, status, error)
