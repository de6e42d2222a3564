"""Domain events for the InventoryRecord aggregate.

Every event carries the counters as they stand after the movement, so the
stock movement log can be rebuilt without re-reading the record.
"""

from protean.fields import DateTime, Identifier, Integer, String

from warehouse.domain import warehouse


@warehouse.event(part_of="InventoryRecord")
class InventoryOnboarded:
    """A product was onboarded for a client with its opening stock."""

    __version__ = 1

    inventory_id = Identifier(required=True)
    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    initial_stock = Integer(required=True)
    onboarded_at = DateTime(required=True)


@warehouse.event(part_of="InventoryRecord")
class StockReceived:
    """Stock arrived at the warehouse; total and available both grew."""

    __version__ = 1

    inventory_id = Identifier(required=True)
    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    quantity = Integer(required=True)
    total_stock = Integer(required=True)
    available_stock = Integer(required=True)
    reserved_stock = Integer(required=True)
    dispatched_stock = Integer(required=True)
    occurred_at = DateTime(required=True)


@warehouse.event(part_of="InventoryRecord")
class StockReserved:
    """Units moved from available to reserved for an order."""

    __version__ = 1

    inventory_id = Identifier(required=True)
    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    quantity = Integer(required=True)
    total_stock = Integer(required=True)
    available_stock = Integer(required=True)
    reserved_stock = Integer(required=True)
    dispatched_stock = Integer(required=True)
    order_id = Identifier()
    occurred_at = DateTime(required=True)


@warehouse.event(part_of="InventoryRecord")
class StockReleased:
    """Reserved units returned to available stock."""

    __version__ = 1

    inventory_id = Identifier(required=True)
    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    quantity = Integer(required=True)
    total_stock = Integer(required=True)
    available_stock = Integer(required=True)
    reserved_stock = Integer(required=True)
    dispatched_stock = Integer(required=True)
    order_id = Identifier()
    occurred_at = DateTime(required=True)


@warehouse.event(part_of="InventoryRecord")
class StockDispatched:
    """Reserved units left the warehouse with an order."""

    __version__ = 1

    inventory_id = Identifier(required=True)
    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    quantity = Integer(required=True)
    total_stock = Integer(required=True)
    available_stock = Integer(required=True)
    reserved_stock = Integer(required=True)
    dispatched_stock = Integer(required=True)
    order_id = Identifier()
    occurred_at = DateTime(required=True)


@warehouse.event(part_of="InventoryRecord")
class StockAdjusted:
    """A manual correction moved total and available stock together."""

    __version__ = 1

    inventory_id = Identifier(required=True)
    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    quantity = Integer(required=True)  # signed delta
    reason = String(max_length=500)
    total_stock = Integer(required=True)
    available_stock = Integer(required=True)
    reserved_stock = Integer(required=True)
    dispatched_stock = Integer(required=True)
    occurred_at = DateTime(required=True)
