"""Order aggregate (CQRS) — a client's fulfillment order.

State Machine:
    PENDING → APPROVED → PACKED → DISPATCHED
    APPROVED → DISPATCHED (pack step skipped)
    PENDING | APPROVED → CANCELLED

DISPATCHED and CANCELLED are terminal. DELIVERED is recorded by carrier
integrations outside this service; it is terminal as well and never
reachable through a status change.

Stock movements that accompany a transition (reserve on creation, dispatch,
release on cancel) are carried out by the command handlers through the
inventory ledger, in the same unit of work as the order write.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from warehouse.domain import warehouse
from warehouse.order.events import (
    OrderApproved,
    OrderCancelled,
    OrderCreated,
    OrderDispatched,
    OrderInvoiced,
    OrderPacked,
)
from warehouse.order.shipping import shipping_fee
from warehouse.shared.errors import InvalidStatusTransitionError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PACKED = "packed"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.APPROVED, OrderStatus.CANCELLED},
    OrderStatus.APPROVED: {OrderStatus.PACKED, OrderStatus.DISPATCHED, OrderStatus.CANCELLED},
    OrderStatus.PACKED: {OrderStatus.DISPATCHED},
    OrderStatus.DISPATCHED: set(),  # Terminal
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Statuses a PUT /orders/{id}/status request may ask for
REQUESTABLE_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.APPROVED,
    OrderStatus.PACKED,
    OrderStatus.DISPATCHED,
    OrderStatus.CANCELLED,
)

# Statuses whose orders are billed by the monthly invoice run
BILLABLE_STATUSES = (OrderStatus.DISPATCHED, OrderStatus.DELIVERED)


def allowed_transitions(status: OrderStatus) -> list[str]:
    """Allowed next statuses, in lifecycle order."""
    targets = _VALID_TRANSITIONS.get(status, set())
    return [s.value for s in OrderStatus if s in targets]


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@warehouse.value_object(part_of="Order")
class DeliveryAddress:
    """Delivery address snapshot taken when the order is placed."""

    name = String(max_length=255)
    phone = String(max_length=50)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    country = String(max_length=100, default="United States")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@warehouse.entity(part_of="Order", schema_name="order_items")
class OrderItem:
    """A product line on an order. Immutable once the order is placed."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(default=0.0, min_value=0.0)
    unit_weight_lbs = Float(default=0.0, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@warehouse.aggregate(schema_name="orders")
class Order:
    order_number = String(required=True, max_length=50)
    client_id = Identifier(required=True)
    created_by = String(max_length=255)
    delivery_address = ValueObject(DeliveryAddress)
    items = HasMany(OrderItem)
    status = String(
        max_length=20,
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    priority = String(
        max_length=10,
        choices=OrderPriority,
        default=OrderPriority.MEDIUM.value,
    )
    notes = Text()
    invoice_id = Identifier()
    total_weight = Float(default=0.0)
    shipping_fee = Float(default=0.0)
    total_amount = Float(default=0.0)
    tracking_number = String(max_length=100)
    approved_by = String(max_length=255)
    approved_at = DateTime()
    packed_at = DateTime()
    dispatched_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        client_id: str,
        items_data: list[dict],
        delivery_address: DeliveryAddress | None = None,
        priority: str | None = None,
        notes: str | None = None,
        created_by: str | None = None,
    ):
        """Place a new order.

        ``items_data`` is a list of ``{product_id, quantity, unit_price,
        unit_weight_lbs}`` dicts with weights already resolved to pounds.
        """
        if not items_data:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        now = datetime.now(UTC)
        total_weight = round(sum(item["quantity"] * item.get("unit_weight_lbs", 0.0) for item in items_data), 4)
        fee = shipping_fee(total_weight)

        order = cls(
            order_number=f"ORD-{uuid4().hex[:8].upper()}",
            client_id=client_id,
            created_by=created_by,
            delivery_address=delivery_address,
            priority=priority or OrderPriority.MEDIUM.value,
            notes=notes,
            total_weight=total_weight,
            shipping_fee=fee,
            total_amount=fee,
            created_at=now,
            updated_at=now,
        )
        for item in items_data:
            order.add_items(
                OrderItem(
                    product_id=item["product_id"],
                    quantity=item["quantity"],
                    unit_price=item.get("unit_price", 0.0),
                    unit_weight_lbs=item.get("unit_weight_lbs", 0.0),
                )
            )

        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order.order_number,
                client_id=client_id,
                created_by=created_by,
                items=order._items_json(with_price=True),
                total_weight=total_weight,
                shipping_fee=fee,
                total_amount=fee,
                priority=order.priority,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def item_lines(self) -> list[tuple[str, int]]:
        return [(str(item.product_id), item.quantity) for item in self.items]

    @property
    def units(self) -> int:
        return sum(item.quantity or 0 for item in self.items)

    @property
    def fulfilled_at(self):
        """When the order left the warehouse for good: delivery time, else dispatch time."""
        return self.delivered_at or self.dispatched_at

    def _items_json(self, with_price=False) -> str:
        lines = []
        for item in self.items:
            line = {"product_id": str(item.product_id), "quantity": item.quantity}
            if with_price:
                line["unit_price"] = item.unit_price
            lines.append(line)
        return json.dumps(lines)

    def allowed_transitions(self) -> list[str]:
        return allowed_transitions(OrderStatus(self.status))

    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStatusTransitionError(current.value, target_status.value, allowed_transitions(current))

    # -------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------
    def change_status(self, target: str, actor: str | None = None, tracking_number: str | None = None) -> None:
        """Move the order to ``target`` through the matching lifecycle method."""
        try:
            target_status = OrderStatus(target)
        except ValueError:
            raise ValidationError({"status": [f"'{target}' is not a valid order status"]}) from None
        if target_status not in REQUESTABLE_STATUSES:
            raise ValidationError({"status": [f"Status '{target}' cannot be requested"]})

        if target_status == OrderStatus.APPROVED:
            self.approve(approved_by=actor)
        elif target_status == OrderStatus.PACKED:
            self.pack()
        elif target_status == OrderStatus.DISPATCHED:
            self.dispatch(tracking_number=tracking_number, dispatched_by=actor)
        elif target_status == OrderStatus.CANCELLED:
            self.cancel(cancelled_by=actor)
        else:
            # Nothing transitions back to pending; this always raises
            self._assert_can_transition(target_status)

    def approve(self, approved_by: str | None = None) -> None:
        self._assert_can_transition(OrderStatus.APPROVED)
        now = datetime.now(UTC)
        self.status = OrderStatus.APPROVED.value
        self.approved_by = approved_by
        self.approved_at = now
        self.updated_at = now
        self.raise_(OrderApproved(order_id=str(self.id), approved_by=approved_by, approved_at=now))

    def pack(self) -> None:
        self._assert_can_transition(OrderStatus.PACKED)
        now = datetime.now(UTC)
        self.status = OrderStatus.PACKED.value
        self.packed_at = now
        self.updated_at = now
        self.raise_(OrderPacked(order_id=str(self.id), packed_at=now))

    def dispatch(self, tracking_number: str | None = None, dispatched_by: str | None = None) -> None:
        self._assert_can_transition(OrderStatus.DISPATCHED)
        now = datetime.now(UTC)
        self.status = OrderStatus.DISPATCHED.value
        self.dispatched_at = now
        if tracking_number:
            self.tracking_number = tracking_number
        self.updated_at = now
        self.raise_(
            OrderDispatched(
                order_id=str(self.id),
                order_number=self.order_number,
                client_id=str(self.client_id),
                items=self._items_json(),
                tracking_number=self.tracking_number,
                dispatched_by=dispatched_by,
                dispatched_at=now,
            )
        )

    def cancel(self, cancelled_by: str | None = None) -> None:
        previous = self.status
        self._assert_can_transition(OrderStatus.CANCELLED)
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_at = now
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                client_id=str(self.client_id),
                items=self._items_json(),
                previous_status=previous,
                cancelled_by=cancelled_by,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Billing
    # -------------------------------------------------------------------
    def link_invoice(self, invoice_id: str, invoice_number: str) -> None:
        """Tie a billed order to the invoice that charges for it."""
        if OrderStatus(self.status) not in BILLABLE_STATUSES:
            raise ValidationError({"invoice_id": [f"Orders in '{self.status}' status cannot be invoiced"]})
        if self.invoice_id and str(self.invoice_id) != str(invoice_id):
            raise ValidationError({"invoice_id": [f"Order {self.order_number} is already invoiced"]})

        now = datetime.now(UTC)
        self.invoice_id = invoice_id
        self.updated_at = now
        self.raise_(
            OrderInvoiced(
                order_id=str(self.id),
                invoice_id=invoice_id,
                invoice_number=invoice_number,
                invoiced_at=now,
            )
        )
