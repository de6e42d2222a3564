"""Order timeline — append-only audit trail of order lifecycle events."""

import json
import uuid

from protean.core.projector import on
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from warehouse.domain import warehouse
from warehouse.order.events import (
    OrderApproved,
    OrderCancelled,
    OrderCreated,
    OrderDispatched,
    OrderInvoiced,
    OrderPacked,
)
from warehouse.order.order import Order


@warehouse.projection
class OrderTimeline:
    entry_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    event_type = String(required=True)
    description = String(required=True)
    actor = String()
    occurred_at = DateTime(required=True)
    event_metadata = Text()  # JSON: extra event data


def _add_entry(order_id, event_type, description, occurred_at, actor=None, event_metadata=None):
    current_domain.repository_for(OrderTimeline).add(
        OrderTimeline(
            entry_id=str(uuid.uuid4()),
            order_id=order_id,
            event_type=event_type,
            description=description,
            actor=actor,
            occurred_at=occurred_at,
            event_metadata=json.dumps(event_metadata) if event_metadata else None,
        )
    )


def timeline_for(order_id: str) -> list[OrderTimeline]:
    entries = current_domain.repository_for(OrderTimeline)._dao.query.filter(order_id=str(order_id)).all().items
    return sorted(entries, key=lambda entry: entry.occurred_at)


@warehouse.projector(projector_for=OrderTimeline, aggregates=[Order])
class OrderTimelineProjector:
    @on(OrderCreated)
    def on_order_created(self, event):
        _add_entry(
            event.order_id,
            "OrderCreated",
            f"Order {event.order_number} was placed",
            event.created_at,
            actor=event.created_by,
            event_metadata={"items": json.loads(event.items), "shippingFee": event.shipping_fee},
        )

    @on(OrderApproved)
    def on_order_approved(self, event):
        _add_entry(event.order_id, "OrderApproved", "Order was approved", event.approved_at, actor=event.approved_by)

    @on(OrderPacked)
    def on_order_packed(self, event):
        _add_entry(event.order_id, "OrderPacked", "Order was packed", event.packed_at)

    @on(OrderDispatched)
    def on_order_dispatched(self, event):
        description = "Order was dispatched"
        if event.tracking_number:
            description += f" (tracking {event.tracking_number})"
        _add_entry(
            event.order_id,
            "OutboundDispatch",
            description,
            event.dispatched_at,
            actor=event.dispatched_by,
            event_metadata={"items": json.loads(event.items), "trackingNumber": event.tracking_number},
        )

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        _add_entry(
            event.order_id,
            "OrderCancelled",
            f"Order was cancelled from {event.previous_status}; reserved stock returned",
            event.cancelled_at,
            actor=event.cancelled_by,
            event_metadata={"items": json.loads(event.items)},
        )

    @on(OrderInvoiced)
    def on_order_invoiced(self, event):
        _add_entry(
            event.order_id,
            "OrderInvoiced",
            f"Order was billed on invoice {event.invoice_number}",
            event.invoiced_at,
            event_metadata={"invoiceId": event.invoice_id},
        )
