"""Manual stock correction and record removal — commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from warehouse.domain import logger, warehouse
from warehouse.inventory.ledger import InventoryLedger
from warehouse.inventory.record import InventoryRecord


@warehouse.command(part_of="InventoryRecord")
class AdjustStock:
    """Correct total and available stock by a signed delta."""

    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    delta = Integer(required=True)  # Can be negative
    reason = String(max_length=500)
    adjusted_by = String(max_length=255)


@warehouse.command(part_of="InventoryRecord")
class RemoveInventoryRecord:
    """Delete an inventory record that no longer holds any stock."""

    product_id = Identifier(required=True)
    client_id = Identifier(required=True)


@warehouse.command_handler(part_of=InventoryRecord)
class StockAdjustmentHandler:
    @handle(AdjustStock)
    def adjust_stock(self, command):
        ledger = InventoryLedger(current_domain.repository_for(InventoryRecord))
        record = ledger.adjust(command.product_id, command.client_id, command.delta, reason=command.reason)
        logger.info(
            "Stock adjusted",
            product_id=str(command.product_id),
            client_id=str(command.client_id),
            delta=command.delta,
            adjusted_by=command.adjusted_by,
        )
        return str(record.id)

    @handle(RemoveInventoryRecord)
    def remove_inventory_record(self, command):
        ledger = InventoryLedger(current_domain.repository_for(InventoryRecord))
        ledger.remove(command.product_id, command.client_id)
