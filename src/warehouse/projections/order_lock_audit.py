"""Order lock audit — one row per order tied to an invoice."""

from protean.core.projector import on
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from warehouse.domain import warehouse
from warehouse.order.events import OrderInvoiced
from warehouse.order.order import Order


@warehouse.projection(schema_name="order_lock_audit")
class OrderLockAudit:
    order_id = Identifier(identifier=True, required=True)
    invoice_id = Identifier(required=True)
    invoice_number = String(required=True)
    locked_at = DateTime(required=True)


@warehouse.projector(projector_for=OrderLockAudit, aggregates=[Order])
class OrderLockAuditProjector:
    @on(OrderInvoiced)
    def on_order_invoiced(self, event):
        current_domain.repository_for(OrderLockAudit).add(
            OrderLockAudit(
                order_id=event.order_id,
                invoice_id=event.invoice_id,
                invoice_number=event.invoice_number,
                locked_at=event.invoiced_at,
            )
        )
