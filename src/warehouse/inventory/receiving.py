"""Product onboarding and stock receipt — commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from warehouse.domain import warehouse
from warehouse.inventory.ledger import InventoryLedger
from warehouse.inventory.record import InventoryRecord


@warehouse.command(part_of="InventoryRecord")
class OnboardProduct:
    """Open an inventory record for a client's product."""

    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    initial_stock = Integer(default=0, min_value=0)


@warehouse.command(part_of="InventoryRecord")
class ReceiveStock:
    """Book units received at the dock onto the shelf."""

    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@warehouse.command_handler(part_of=InventoryRecord)
class StockReceivingHandler:
    @handle(OnboardProduct)
    def onboard_product(self, command):
        ledger = InventoryLedger(current_domain.repository_for(InventoryRecord))
        record = ledger.onboard(command.product_id, command.client_id, command.initial_stock or 0)
        return str(record.id)

    @handle(ReceiveStock)
    def receive_stock(self, command):
        ledger = InventoryLedger(current_domain.repository_for(InventoryRecord))
        record = ledger.receive(command.product_id, command.client_id, command.quantity)
        return str(record.id)
