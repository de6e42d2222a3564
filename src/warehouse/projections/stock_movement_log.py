"""Stock movement log — append-only audit trail of inventory changes."""

import uuid

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from warehouse.domain import warehouse
from warehouse.inventory.events import (
    InventoryOnboarded,
    StockAdjusted,
    StockDispatched,
    StockReceived,
    StockReleased,
    StockReserved,
)
from warehouse.inventory.record import InventoryRecord


@warehouse.projection
class StockMovementLog:
    entry_id = Identifier(identifier=True, required=True)
    inventory_id = Identifier(required=True)
    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    movement = String(required=True)
    quantity = Integer(default=0)
    order_id = Identifier()
    total_stock = Integer(default=0)
    available_stock = Integer(default=0)
    reserved_stock = Integer(default=0)
    dispatched_stock = Integer(default=0)
    occurred_at = DateTime(required=True)


def _add_entry(event, movement, occurred_at, quantity, counters, order_id=None):
    current_domain.repository_for(StockMovementLog).add(
        StockMovementLog(
            entry_id=str(uuid.uuid4()),
            inventory_id=event.inventory_id,
            product_id=event.product_id,
            client_id=event.client_id,
            movement=movement,
            quantity=quantity,
            order_id=order_id,
            occurred_at=occurred_at,
            **counters,
        )
    )


def _counters(event) -> dict:
    return {
        "total_stock": event.total_stock,
        "available_stock": event.available_stock,
        "reserved_stock": event.reserved_stock,
        "dispatched_stock": event.dispatched_stock,
    }


def movements_for(product_id: str, client_id: str) -> list[StockMovementLog]:
    entries = (
        current_domain.repository_for(StockMovementLog)
        ._dao.query.filter(product_id=str(product_id), client_id=str(client_id))
        .all()
        .items
    )
    return sorted(entries, key=lambda entry: entry.occurred_at)


@warehouse.projector(projector_for=StockMovementLog, aggregates=[InventoryRecord])
class StockMovementLogProjector:
    @on(InventoryOnboarded)
    def on_inventory_onboarded(self, event):
        opening = {
            "total_stock": event.initial_stock,
            "available_stock": event.initial_stock,
            "reserved_stock": 0,
            "dispatched_stock": 0,
        }
        _add_entry(event, "onboarded", event.onboarded_at, event.initial_stock, opening)

    @on(StockReceived)
    def on_stock_received(self, event):
        _add_entry(event, "received", event.occurred_at, event.quantity, _counters(event))

    @on(StockReserved)
    def on_stock_reserved(self, event):
        _add_entry(event, "reserved", event.occurred_at, event.quantity, _counters(event), order_id=event.order_id)

    @on(StockReleased)
    def on_stock_released(self, event):
        _add_entry(event, "released", event.occurred_at, event.quantity, _counters(event), order_id=event.order_id)

    @on(StockDispatched)
    def on_stock_dispatched(self, event):
        _add_entry(event, "dispatched", event.occurred_at, event.quantity, _counters(event), order_id=event.order_id)

    @on(StockAdjusted)
    def on_stock_adjusted(self, event):
        _add_entry(event, "adjusted", event.occurred_at, event.quantity, _counters(event))
