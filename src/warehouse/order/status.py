"""Order status changes — command and handler.

The invoice lock is checked before the transition itself, so an order on a
sent invoice is refused even when the requested move would otherwise be
valid. Dispatch and cancellation move the order's stock in the same unit of
work as the status write.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from warehouse.domain import logger, warehouse
from warehouse.inventory.ledger import InventoryLedger
from warehouse.inventory.record import InventoryRecord
from warehouse.invoice.invoice import Invoice
from warehouse.order.lock import InvoiceLockGuard
from warehouse.order.order import Order, OrderStatus


@warehouse.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    tracking_number = String(max_length=100)
    updated_by = String(max_length=255)


@warehouse.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous_status = order.status

        InvoiceLockGuard(current_domain.repository_for(Invoice)).assert_mutable(order, attempted_status=command.status)

        order.change_status(command.status, actor=command.updated_by, tracking_number=command.tracking_number)

        ledger = InventoryLedger(current_domain.repository_for(InventoryRecord))
        if order.status == OrderStatus.DISPATCHED.value:
            skipped = ledger.dispatch_items(str(order.client_id), order.item_lines(), order_id=str(order.id))
            if skipped:
                logger.warning(
                    "Order dispatched with unmoved stock",
                    order_id=str(order.id),
                    skipped=skipped,
                )
        elif order.status == OrderStatus.CANCELLED.value:
            released = ledger.release_items(str(order.client_id), order.item_lines(), order_id=str(order.id))
            logger.info("Reserved stock released", order_id=str(order.id), units=released)

        repo.add(order)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            order_number=order.order_number,
            previous_status=previous_status,
            status=order.status,
            updated_by=command.updated_by,
        )
        return str(order.id)
