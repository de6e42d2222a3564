"""Pydantic request/response schemas for the Warehouse API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Field names are camelCase on the wire.
"""

import json
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Order schemas
# ---------------------------------------------------------------------------
class UpdateOrderStatusRequest(CamelModel):
    status: Literal["pending", "approved", "packed", "dispatched", "cancelled"]
    tracking_number: str | None = None
    updated_by: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={"examples": [{"status": "dispatched", "trackingNumber": "1Z999AA10123456784"}]},
    )


class DeliveryAddressResponse(CamelModel):
    name: str | None = None
    phone: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


class OrderItemResponse(CamelModel):
    id: str
    product_id: str
    quantity: int
    unit_price: float
    unit_weight_lbs: float


class OrderResponse(CamelModel):
    id: str
    order_number: str
    client_id: str
    created_by: str | None = None
    status: str
    priority: str
    notes: str | None = None
    invoice_id: str | None = None
    delivery_address: DeliveryAddressResponse | None = None
    items: list[OrderItemResponse]
    total_weight: float
    shipping_fee: float
    total_amount: float
    tracking_number: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    packed_at: datetime | None = None
    dispatched_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    allowed_transitions: list[str]
    is_locked: bool = False

    @classmethod
    def from_order(cls, order, locked: bool = False) -> "OrderResponse":
        address = order.delivery_address
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            client_id=str(order.client_id),
            created_by=order.created_by,
            status=order.status,
            priority=order.priority,
            notes=order.notes,
            invoice_id=str(order.invoice_id) if order.invoice_id else None,
            delivery_address=(
                DeliveryAddressResponse(
                    name=address.name,
                    phone=address.phone,
                    street=address.street,
                    city=address.city,
                    state=address.state,
                    zip_code=address.zip_code,
                    country=address.country,
                )
                if address
                else None
            ),
            items=[
                OrderItemResponse(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    unit_price=item.unit_price or 0.0,
                    unit_weight_lbs=item.unit_weight_lbs or 0.0,
                )
                for item in order.items
            ],
            total_weight=order.total_weight or 0.0,
            shipping_fee=order.shipping_fee or 0.0,
            total_amount=order.total_amount or 0.0,
            tracking_number=order.tracking_number,
            approved_by=order.approved_by,
            approved_at=order.approved_at,
            packed_at=order.packed_at,
            dispatched_at=order.dispatched_at,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
            allowed_transitions=[] if locked else order.allowed_transitions(),
            is_locked=locked,
        )


class TimelineEntryResponse(CamelModel):
    event_type: str
    description: str
    actor: str | None = None
    occurred_at: datetime
    metadata: dict | None = None

    @classmethod
    def from_entry(cls, entry) -> "TimelineEntryResponse":
        return cls(
            event_type=entry.event_type,
            description=entry.description,
            actor=entry.actor,
            occurred_at=entry.occurred_at,
            metadata=json.loads(entry.event_metadata) if entry.event_metadata else None,
        )


# ---------------------------------------------------------------------------
# Inventory schemas
# ---------------------------------------------------------------------------
class OnboardProductRequest(CamelModel):
    product_id: str
    client_id: str
    initial_stock: int = Field(default=0, ge=0)


class ReceiveStockRequest(CamelModel):
    product_id: str
    client_id: str
    quantity: int = Field(gt=0)


class AdjustStockRequest(CamelModel):
    product_id: str
    client_id: str
    delta: int
    reason: str | None = None
    adjusted_by: str | None = None


class InventoryRecordResponse(CamelModel):
    id: str
    product_id: str
    client_id: str
    total_stock: int
    available_stock: int
    reserved_stock: int
    dispatched_stock: int
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record) -> "InventoryRecordResponse":
        return cls(
            id=str(record.id),
            product_id=str(record.product_id),
            client_id=str(record.client_id),
            updated_at=record.updated_at,
            **record.counters(),
        )


class StockMovementResponse(CamelModel):
    movement: str
    quantity: int
    order_id: str | None = None
    total_stock: int
    available_stock: int
    reserved_stock: int
    dispatched_stock: int
    occurred_at: datetime

    @classmethod
    def from_entry(cls, entry) -> "StockMovementResponse":
        return cls(
            movement=entry.movement,
            quantity=entry.quantity or 0,
            order_id=str(entry.order_id) if entry.order_id else None,
            total_stock=entry.total_stock or 0,
            available_stock=entry.available_stock or 0,
            reserved_stock=entry.reserved_stock or 0,
            dispatched_stock=entry.dispatched_stock or 0,
            occurred_at=entry.occurred_at,
        )


# ---------------------------------------------------------------------------
# Invoice schemas
# ---------------------------------------------------------------------------
class RecordPaymentRequest(CamelModel):
    amount: float
    payment_date: date | None = None
    payment_method: str | None = None
    reference_number: str | None = None
    notes: str | None = None
    created_by: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"amount": 250.0, "paymentDate": "2025-03-15", "paymentMethod": "ach", "referenceNumber": "ACH-1042"}
            ]
        },
    )


class PaymentResponse(CamelModel):
    id: str
    amount: float
    payment_date: date
    payment_method: str | None = None
    reference_number: str | None = None
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_payment(cls, payment) -> "PaymentResponse":
        return cls(
            id=str(payment.id),
            amount=payment.amount,
            payment_date=payment.payment_date,
            payment_method=payment.payment_method,
            reference_number=payment.reference_number,
            notes=payment.notes,
            created_by=payment.created_by,
            created_at=payment.created_at,
        )


class InvoiceLineItemResponse(CamelModel):
    order_id: str | None = None
    description: str
    quantity: int
    unit_price: float
    amount: float


class InvoiceResponse(CamelModel):
    id: str
    invoice_number: str
    client_id: str
    order_id: str | None = None
    invoice_type: str
    status: str
    total_amount: float
    paid_amount: float
    balance_due: float
    billing_period_month: int | None = None
    billing_period_year: int | None = None
    billing_period_start: date | None = None
    billing_period_end: date | None = None
    order_count: int = 0
    issue_date: date | None = None
    due_date: date | None = None
    paid_date: date | None = None
    notes: str | None = None
    line_items: list[InvoiceLineItemResponse] = []

    @classmethod
    def from_invoice(cls, invoice) -> "InvoiceResponse":
        return cls(
            id=str(invoice.id),
            invoice_number=invoice.invoice_number,
            client_id=str(invoice.client_id),
            order_id=str(invoice.order_id) if invoice.order_id else None,
            invoice_type=invoice.invoice_type,
            status=invoice.status,
            total_amount=invoice.total_amount,
            paid_amount=invoice.paid_amount,
            balance_due=invoice.balance_due,
            billing_period_month=invoice.billing_period_month,
            billing_period_year=invoice.billing_period_year,
            billing_period_start=invoice.billing_period_start,
            billing_period_end=invoice.billing_period_end,
            order_count=invoice.order_count or 0,
            issue_date=invoice.issue_date,
            due_date=invoice.due_date,
            paid_date=invoice.paid_date,
            notes=invoice.notes,
            line_items=[
                InvoiceLineItemResponse(
                    order_id=str(line.order_id) if line.order_id else None,
                    description=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    amount=line.amount,
                )
                for line in invoice.line_items
            ],
        )


class InvoiceSummary(CamelModel):
    total_amount: float
    paid_amount: float
    balance_due: float
    status: str
    fully_paid: bool

    @classmethod
    def from_invoice(cls, invoice) -> "InvoiceSummary":
        return cls(
            total_amount=invoice.total_amount,
            paid_amount=invoice.paid_amount,
            balance_due=invoice.balance_due,
            status=invoice.status,
            fully_paid=invoice.is_fully_paid,
        )


class PaymentResultResponse(CamelModel):
    payment: PaymentResponse
    invoice: InvoiceResponse
    summary: InvoiceSummary


class DeletePaymentResponse(CamelModel):
    success: bool = True
    invoice: InvoiceResponse
    summary: InvoiceSummary


class PaymentListSummary(CamelModel):
    payment_count: int
    total_paid: float


class PaymentListResponse(CamelModel):
    payments: list[PaymentResponse]
    summary: PaymentListSummary


class StatusResponse(CamelModel):
    success: bool = True
    message: str | None = None
