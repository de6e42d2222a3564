"""Order creation — command and handler.

Creating an order reserves stock for every line. The order, its items and
every reservation are written in the handler's unit of work: if any line
cannot be reserved, nothing is persisted.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from warehouse.catalogue import get_catalogue
from warehouse.domain import logger, warehouse
from warehouse.inventory.ledger import InventoryLedger
from warehouse.inventory.record import InventoryRecord
from warehouse.order.order import DeliveryAddress, Order
from warehouse.order.shipping import unit_weight_lbs

_ADDRESS_KEYS = {
    "name": "name",
    "phone": "phone",
    "street": "street",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "zip_code": "zip_code",
    "country": "country",
}


@warehouse.command(part_of="Order")
class CreateOrder:
    client_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {productId, quantity, unitPrice}
    delivery_address = Text()  # JSON: address dict
    priority = String(max_length=10)
    notes = Text()
    created_by = String(max_length=255)


def _load_json(raw, field_name):
    if raw is None or not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError({field_name: ["Must be valid JSON"]}) from None


def parse_items(raw) -> list[dict]:
    """Validate the submitted order lines and normalise their keys."""
    entries = _load_json(raw, "items")
    if not isinstance(entries, list) or not entries:
        raise ValidationError({"items": ["Order must contain at least one item"]})

    items = []
    for position, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            raise ValidationError({"items": [f"Item {position} must be an object"]})

        product_id = entry.get("productId") or entry.get("product_id")
        if not product_id:
            raise ValidationError({"items": [f"Item {position} is missing a product id"]})

        quantity = entry.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError({"items": [f"Item {position} quantity must be a positive integer"]})

        unit_price = entry.get("unitPrice", entry.get("unit_price", 0)) or 0
        if isinstance(unit_price, bool) or not isinstance(unit_price, int | float) or unit_price < 0:
            raise ValidationError({"items": [f"Item {position} unit price must be a non-negative number"]})

        items.append({"product_id": str(product_id), "quantity": quantity, "unit_price": float(unit_price)})
    return items


def parse_delivery_address(raw) -> DeliveryAddress | None:
    data = _load_json(raw, "delivery_address")
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValidationError({"delivery_address": ["Delivery address must be an object"]})

    values = {_ADDRESS_KEYS[key]: value for key, value in data.items() if key in _ADDRESS_KEYS and value}
    return DeliveryAddress(**values)


@warehouse.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        items = parse_items(command.items)
        address = parse_delivery_address(command.delivery_address)

        catalogue = get_catalogue()
        for item in items:
            item["unit_weight_lbs"] = unit_weight_lbs(catalogue.weight_of(item["product_id"]))

        order = Order.create(
            client_id=command.client_id,
            items_data=items,
            delivery_address=address,
            priority=command.priority,
            notes=command.notes,
            created_by=command.created_by,
        )

        ledger = InventoryLedger(current_domain.repository_for(InventoryRecord))
        ledger.reserve_items(str(command.client_id), order.item_lines(), order_id=str(order.id))

        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            client_id=str(command.client_id),
            units=order.units,
            total_weight=order.total_weight,
            shipping_fee=order.shipping_fee,
        )
        return str(order.id)
