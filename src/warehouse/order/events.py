"""Domain events for the Order aggregate.

Order items are carried as a JSON string so consumers can rebuild the
lines without loading the order.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from warehouse.domain import warehouse


@warehouse.event(part_of="Order")
class OrderCreated:
    """A client placed an order and its stock was reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    created_by = String()
    items = Text(required=True)  # JSON: list of {product_id, quantity, unit_price}
    total_weight = Float(required=True)
    shipping_fee = Float(required=True)
    total_amount = Float(required=True)
    priority = String(required=True)
    created_at = DateTime(required=True)


@warehouse.event(part_of="Order")
class OrderApproved:
    """The order was approved for picking."""

    __version__ = 1

    order_id = Identifier(required=True)
    approved_by = String()
    approved_at = DateTime(required=True)


@warehouse.event(part_of="Order")
class OrderPacked:
    """The order was packed and is ready to ship."""

    __version__ = 1

    order_id = Identifier(required=True)
    packed_at = DateTime(required=True)


@warehouse.event(part_of="Order")
class OrderDispatched:
    """The order left the warehouse; its reserved stock became dispatched stock."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    tracking_number = String()
    dispatched_by = String()
    dispatched_at = DateTime(required=True)


@warehouse.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; its reserved stock returned to the shelf."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    previous_status = String(required=True)
    cancelled_by = String()
    cancelled_at = DateTime(required=True)


@warehouse.event(part_of="Order")
class OrderInvoiced:
    """The order was billed on an invoice and is now tied to it."""

    __version__ = 1

    order_id = Identifier(required=True)
    invoice_id = Identifier(required=True)
    invoice_number = String(required=True)
    invoiced_at = DateTime(required=True)
