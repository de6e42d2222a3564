"""Monthly invoice for one client — command and handler.

The invoice and the orders it bills are written in one unit of work: every
billed order is linked to the invoice, or none is.
"""

from protean import handle
from protean.fields import Boolean, Identifier, Integer
from protean.utils.globals import current_domain

from warehouse.billing.period import BillingPeriod, as_utc
from warehouse.billing.pricing import billing_line, exclusion_reason
from warehouse.domain import logger, warehouse
from warehouse.invoice.invoice import Invoice, InvoiceType
from warehouse.order.order import BILLABLE_STATUSES, Order

SKIPPED_DUPLICATE = "duplicate"
SKIPPED_NO_ORDERS = "no_orders"
SKIPPED_ZERO_AMOUNT = "zero_amount"


@warehouse.command(part_of="Invoice")
class GenerateMonthlyInvoice:
    """Bill a client's fulfilled orders for one calendar month."""

    client_id = Identifier(required=True)
    month = Integer(required=True, min_value=1, max_value=12)
    year = Integer(required=True)
    issue = Boolean(default=False)  # True: create as sent, False: create as draft


def find_monthly_invoice(client_id: str, period: BillingPeriod) -> Invoice | None:
    invoices = (
        current_domain.repository_for(Invoice)
        ._dao.query.filter(
            client_id=str(client_id),
            invoice_type=InvoiceType.MONTHLY.value,
            billing_period_month=period.month,
            billing_period_year=period.year,
        )
        .all()
        .items
    )
    return invoices[0] if invoices else None


def fulfilled_orders(client_id: str, period: BillingPeriod) -> list[Order]:
    """Dispatched or delivered orders whose fulfillment falls in the period, oldest first."""
    candidates = (
        current_domain.repository_for(Order)
        ._dao.query.filter(
            client_id=str(client_id),
            status__in=[status.value for status in BILLABLE_STATUSES],
        )
        .all()
        .items
    )
    in_period = [order for order in candidates if period.contains(order.fulfilled_at)]
    return sorted(in_period, key=lambda order: as_utc(order.fulfilled_at))


def _skipped(reason: str, **extra) -> dict:
    return {"status": "skipped", "reason": reason, **extra}


@warehouse.command_handler(part_of=Invoice)
class MonthlyInvoiceHandler:
    @handle(GenerateMonthlyInvoice)
    def generate_monthly_invoice(self, command):
        client_id = str(command.client_id)
        period = BillingPeriod(month=command.month, year=command.year)

        existing = find_monthly_invoice(client_id, period)
        if existing is not None:
            return _skipped(
                SKIPPED_DUPLICATE,
                invoiceId=str(existing.id),
                invoiceNumber=existing.invoice_number,
            )

        orders = fulfilled_orders(client_id, period)
        if not orders:
            return _skipped(SKIPPED_NO_ORDERS)

        billed, lines, excluded = [], [], []
        for order in orders:
            if order.invoice_id:
                excluded.append(
                    {"orderId": str(order.id), "orderNumber": order.order_number, "reason": "Already invoiced"}
                )
                continue
            reason = exclusion_reason(order.total_weight, order.units)
            if reason:
                excluded.append(
                    {
                        "orderId": str(order.id),
                        "orderNumber": order.order_number,
                        "totalWeight": order.total_weight,
                        "reason": reason,
                    }
                )
                continue
            billed.append(order)
            lines.append(billing_line(str(order.id), order.order_number, order.units))

        total = round(sum(line["amount"] for line in lines), 2)
        if total <= 0:
            return _skipped(SKIPPED_ZERO_AMOUNT, excludedOrders=excluded)

        invoice = Invoice.create_monthly(
            client_id=client_id,
            month=period.month,
            year=period.year,
            period_start=period.start,
            period_end=period.end,
            lines=lines,
            issue=bool(command.issue),
            notes=(
                f"Monthly fulfillment charges for {period.month_name} {period.year}: "
                f"{len(lines)} order(s) billed, {len(excluded)} excluded"
            ),
        )

        order_repo = current_domain.repository_for(Order)
        for order in billed:
            order.link_invoice(str(invoice.id), invoice.invoice_number)
            order_repo.add(order)
        current_domain.repository_for(Invoice).add(invoice)

        logger.info(
            "Monthly invoice generated",
            client_id=client_id,
            invoice_number=invoice.invoice_number,
            status=invoice.status,
            amount=invoice.total_amount,
            order_count=len(billed),
            excluded=len(excluded),
        )
        return {
            "status": "success",
            "invoiceId": str(invoice.id),
            "invoiceNumber": invoice.invoice_number,
            "invoiceStatus": invoice.status,
            "amount": invoice.total_amount,
            "orderCount": len(billed),
            "excludedOrders": excluded,
        }
