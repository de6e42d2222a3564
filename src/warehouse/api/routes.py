"""FastAPI routes for the Warehouse domain — orders, invoices and inventory."""

import hmac
import os

from fastapi import APIRouter, File, Form, Header, HTTPException, UploadFile
from protean.utils.globals import current_domain

from warehouse.api.schemas import (
    AdjustStockRequest,
    DeletePaymentResponse,
    InventoryRecordResponse,
    InvoiceResponse,
    InvoiceSummary,
    OnboardProductRequest,
    OrderResponse,
    PaymentListResponse,
    PaymentListSummary,
    PaymentResponse,
    PaymentResultResponse,
    ReceiveStockRequest,
    RecordPaymentRequest,
    StatusResponse,
    StockMovementResponse,
    TimelineEntryResponse,
    UpdateOrderStatusRequest,
)
from warehouse.billing.generator import MonthlyInvoiceGenerator
from warehouse.clients import get_client_directory
from warehouse.domain import logger
from warehouse.inventory.adjustment import AdjustStock, RemoveInventoryRecord
from warehouse.inventory.ledger import InventoryLedger
from warehouse.inventory.receiving import OnboardProduct, ReceiveStock
from warehouse.inventory.record import InventoryRecord
from warehouse.invoice.invoice import Invoice
from warehouse.invoice.issuing import IssueInvoice
from warehouse.invoice.payments import DeletePayment, RecordPayment
from warehouse.order.lock import InvoiceLockGuard
from warehouse.order.creation import CreateOrder
from warehouse.order.order import Order
from warehouse.order.status import UpdateOrderStatus
from warehouse.projections.order_timeline import timeline_for
from warehouse.projections.stock_movement_log import movements_for


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _order_response(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    locked = InvoiceLockGuard(current_domain.repository_for(Invoice)).is_locked(order)
    return OrderResponse.from_order(order, locked=locked)


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(
    client_id: str = Form(alias="clientId"),
    items: str = Form(),
    delivery_address: str | None = Form(default=None, alias="deliveryAddress"),
    priority: str | None = Form(default=None),
    notes: str | None = Form(default=None),
    created_by: str | None = Form(default=None, alias="createdBy"),
    attachment: UploadFile | None = File(default=None),
) -> OrderResponse:
    """Create an order and reserve stock for every line."""
    if attachment is not None:
        logger.info("Order attachment received", filename=attachment.filename, client_id=client_id)

    command = CreateOrder(
        client_id=client_id,
        items=items,
        delivery_address=delivery_address,
        priority=priority or None,
        notes=notes,
        created_by=created_by,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _order_response(order_id)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return _order_response(order_id)


@order_router.get("/{order_id}/timeline", response_model=list[TimelineEntryResponse])
async def get_order_timeline(order_id: str) -> list[TimelineEntryResponse]:
    current_domain.repository_for(Order).get(order_id)
    return [TimelineEntryResponse.from_entry(entry) for entry in timeline_for(order_id)]


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderResponse:
    """Move an order along its lifecycle; refused once a sent invoice bills it."""
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        tracking_number=body.tracking_number,
        updated_by=body.updated_by,
    )
    current_domain.process(command, asynchronous=False)
    return _order_response(order_id)


# ---------------------------------------------------------------------------
# Invoice Router
# ---------------------------------------------------------------------------
invoice_router = APIRouter(prefix="/invoices", tags=["invoices"])


def _verify_service_key(provided: str) -> None:
    expected = os.environ.get("INTERNAL_SERVICE_KEY", "")
    if not expected or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("Rejected internal service call")
        raise HTTPException(status_code=401, detail="Invalid service key")


@invoice_router.post("/generate-monthly-auto")
async def generate_monthly_invoices(x_service_key: str = Header(default="")) -> dict:
    """Scheduled trigger: draft monthly invoices for every active client."""
    _verify_service_key(x_service_key)
    generator = MonthlyInvoiceGenerator(current_domain, get_client_directory())
    return generator.run()


@invoice_router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: str) -> InvoiceResponse:
    invoice = current_domain.repository_for(Invoice).get(invoice_id)
    return InvoiceResponse.from_invoice(invoice)


@invoice_router.post("/{invoice_id}/issue", response_model=InvoiceResponse)
async def issue_invoice(invoice_id: str) -> InvoiceResponse:
    current_domain.process(IssueInvoice(invoice_id=invoice_id), asynchronous=False)
    invoice = current_domain.repository_for(Invoice).get(invoice_id)
    return InvoiceResponse.from_invoice(invoice)


@invoice_router.get("/{invoice_id}/payments", response_model=PaymentListResponse)
async def list_payments(invoice_id: str) -> PaymentListResponse:
    invoice = current_domain.repository_for(Invoice).get(invoice_id)
    payments = sorted(invoice.payments, key=lambda payment: payment.payment_date, reverse=True)
    return PaymentListResponse(
        payments=[PaymentResponse.from_payment(payment) for payment in payments],
        summary=PaymentListSummary(
            payment_count=len(payments),
            total_paid=round(sum(payment.amount for payment in payments), 2),
        ),
    )


@invoice_router.post("/{invoice_id}/payments", status_code=201, response_model=PaymentResultResponse)
async def record_payment(invoice_id: str, body: RecordPaymentRequest) -> PaymentResultResponse:
    """Record a payment and return the re-derived invoice state."""
    command = RecordPayment(
        invoice_id=invoice_id,
        amount=body.amount,
        payment_date=body.payment_date,
        payment_method=body.payment_method,
        reference_number=body.reference_number,
        notes=body.notes,
        created_by=body.created_by,
    )
    payment_id = current_domain.process(command, asynchronous=False)
    invoice = current_domain.repository_for(Invoice).get(invoice_id)
    payment = next(payment for payment in invoice.payments if str(payment.id) == payment_id)
    return PaymentResultResponse(
        payment=PaymentResponse.from_payment(payment),
        invoice=InvoiceResponse.from_invoice(invoice),
        summary=InvoiceSummary.from_invoice(invoice),
    )


@invoice_router.delete("/{invoice_id}/payments/{payment_id}", response_model=DeletePaymentResponse)
async def delete_payment(invoice_id: str, payment_id: str) -> DeletePaymentResponse:
    current_domain.process(DeletePayment(invoice_id=invoice_id, payment_id=payment_id), asynchronous=False)
    invoice = current_domain.repository_for(Invoice).get(invoice_id)
    return DeletePaymentResponse(
        invoice=InvoiceResponse.from_invoice(invoice),
        summary=InvoiceSummary.from_invoice(invoice),
    )


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


def _record_response(record_id: str) -> InventoryRecordResponse:
    record = current_domain.repository_for(InventoryRecord).get(record_id)
    return InventoryRecordResponse.from_record(record)


@inventory_router.post("", status_code=201, response_model=InventoryRecordResponse)
async def onboard_product(body: OnboardProductRequest) -> InventoryRecordResponse:
    command = OnboardProduct(
        product_id=body.product_id,
        client_id=body.client_id,
        initial_stock=body.initial_stock,
    )
    return _record_response(current_domain.process(command, asynchronous=False))


@inventory_router.post("/receive", response_model=InventoryRecordResponse)
async def receive_stock(body: ReceiveStockRequest) -> InventoryRecordResponse:
    command = ReceiveStock(
        product_id=body.product_id,
        client_id=body.client_id,
        quantity=body.quantity,
    )
    return _record_response(current_domain.process(command, asynchronous=False))


@inventory_router.post("/adjust", response_model=InventoryRecordResponse)
async def adjust_stock(body: AdjustStockRequest) -> InventoryRecordResponse:
    command = AdjustStock(
        product_id=body.product_id,
        client_id=body.client_id,
        delta=body.delta,
        reason=body.reason,
        adjusted_by=body.adjusted_by,
    )
    return _record_response(current_domain.process(command, asynchronous=False))


@inventory_router.get("/{product_id}/{client_id}", response_model=InventoryRecordResponse)
async def get_inventory(product_id: str, client_id: str) -> InventoryRecordResponse:
    ledger = InventoryLedger(current_domain.repository_for(InventoryRecord))
    return InventoryRecordResponse.from_record(ledger.get(product_id, client_id))


@inventory_router.delete("/{product_id}/{client_id}", response_model=StatusResponse)
async def remove_inventory(product_id: str, client_id: str) -> StatusResponse:
    command = RemoveInventoryRecord(product_id=product_id, client_id=client_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(message="Inventory record removed")


@inventory_router.get("/{product_id}/{client_id}/movements", response_model=list[StockMovementResponse])
async def get_stock_movements(product_id: str, client_id: str) -> list[StockMovementResponse]:
    ledger = InventoryLedger(current_domain.repository_for(InventoryRecord))
    ledger.get(product_id, client_id)
    return [StockMovementResponse.from_entry(entry) for entry in movements_for(product_id, client_id)]
