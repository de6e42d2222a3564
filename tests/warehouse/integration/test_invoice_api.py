"""Integration tests for Invoice API endpoints via TestClient."""

import json

import pytest
from protean import current_domain
from warehouse.invoice.invoice import Invoice
from warehouse.order.order import Order

SERVICE_KEY = "test-service-key"


def _make_invoice(total=100.0, issue=True):
    invoice = Invoice.create(client_id="client-api-001", total_amount=total, issue=issue)
    current_domain.repository_for(Invoice).add(invoice)
    return str(invoice.id)


def _pay(client, invoice_id, amount, **body):
    return client.post(f"/invoices/{invoice_id}/payments", json={"amount": amount, **body})


class TestRecordPaymentAPI:
    def test_record_payment_returns_201(self, client):
        invoice_id = _make_invoice()
        response = _pay(client, invoice_id, 40.0, paymentDate="2025-04-02", paymentMethod="ach")
        assert response.status_code == 201

        body = response.json()
        assert body["payment"]["amount"] == 40.0
        assert body["payment"]["paymentDate"] == "2025-04-02"
        assert body["invoice"]["status"] == "partial"
        assert body["summary"] == {
            "totalAmount": 100.0,
            "paidAmount": 40.0,
            "balanceDue": 60.0,
            "status": "partial",
            "fullyPaid": False,
        }

    def test_overpayment_returns_400(self, client):
        invoice_id = _make_invoice()
        _pay(client, invoice_id, 80.0)

        response = _pay(client, invoice_id, 30.0)
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "PAYMENT_EXCEEDS_TOTAL"
        assert body["data"]["maxPayment"] == 20.0

    def test_zero_payment_returns_400(self, client):
        response = _pay(client, _make_invoice(), 0)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_unknown_invoice_returns_404(self, client):
        response = _pay(client, "missing", 10.0)
        assert response.status_code == 404


class TestPaymentListAndDeleteAPI:
    def test_list_payments_with_summary(self, client):
        invoice_id = _make_invoice()
        _pay(client, invoice_id, 10.0, paymentDate="2025-04-01")
        _pay(client, invoice_id, 15.5, paymentDate="2025-04-05")

        body = client.get(f"/invoices/{invoice_id}/payments").json()
        assert body["summary"] == {"paymentCount": 2, "totalPaid": 25.5}
        assert [p["paymentDate"] for p in body["payments"]] == ["2025-04-05", "2025-04-01"]

    def test_delete_payment_regresses_status(self, client):
        invoice_id = _make_invoice()
        payment_id = _pay(client, invoice_id, 60.0).json()["payment"]["id"]
        _pay(client, invoice_id, 40.0)

        response = client.delete(f"/invoices/{invoice_id}/payments/{payment_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["summary"]["status"] == "partial"
        assert body["summary"]["balanceDue"] == 60.0

    def test_delete_unknown_payment_returns_404(self, client):
        response = client.delete(f"/invoices/{_make_invoice()}/payments/missing")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


class TestInvoiceReadAndIssueAPI:
    def test_get_invoice(self, client):
        invoice_id = _make_invoice()
        body = client.get(f"/invoices/{invoice_id}").json()
        assert body["id"] == invoice_id
        assert body["balanceDue"] == 100.0

    def test_issue_draft(self, client):
        invoice_id = _make_invoice(issue=False)
        response = client.post(f"/invoices/{invoice_id}/issue")
        assert response.status_code == 200
        assert response.json()["status"] == "sent"

    def test_issue_sent_invoice_returns_400(self, client):
        response = client.post(f"/invoices/{_make_invoice()}/issue")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_INVOICE_STATE"


class TestInvoiceLockAPI:
    def test_status_change_on_billed_order_returns_403(self, client):
        client.post("/inventory", json={"productId": "prod-A", "clientId": "client-api-001", "initialStock": 5})
        order_id = client.post(
            "/orders",
            data={"clientId": "client-api-001", "items": json.dumps([{"productId": "prod-A", "quantity": 1}])},
        ).json()["id"]
        client.put(f"/orders/{order_id}/status", json={"status": "approved"})
        client.put(f"/orders/{order_id}/status", json={"status": "dispatched"})

        invoice_id = _make_invoice(total=2.5)
        invoice = current_domain.repository_for(Invoice).get(invoice_id)
        order = current_domain.repository_for(Order).get(order_id)
        order.link_invoice(invoice_id, invoice.invoice_number)
        current_domain.repository_for(Order).add(order)

        response = client.put(f"/orders/{order_id}/status", json={"status": "cancelled"})
        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "ORDER_LOCKED_BY_INVOICE"
        assert body["data"]["invoiceNumber"] == invoice.invoice_number
        assert body["data"]["invoiceStatus"] == "sent"

        order_body = client.get(f"/orders/{order_id}").json()
        assert order_body["isLocked"] is True
        assert order_body["allowedTransitions"] == []


class TestGenerateMonthlyAPI:
    @pytest.fixture(autouse=True)
    def _service_key(self, monkeypatch):
        monkeypatch.setenv("INTERNAL_SERVICE_KEY", SERVICE_KEY)

    def test_missing_key_returns_401(self, client):
        response = client.post("/invoices/generate-monthly-auto")
        assert response.status_code == 401

    def test_wrong_key_returns_401(self, client):
        response = client.post("/invoices/generate-monthly-auto", headers={"x-service-key": "nope"})
        assert response.status_code == 401

    def test_valid_key_runs_generation(self, client, client_directory):
        client_directory.register("client-api-001", "Api Client")
        response = client.post("/invoices/generate-monthly-auto", headers={"x-service-key": SERVICE_KEY})
        assert response.status_code == 200

        body = response.json()
        assert body["summary"]["totalClients"] == 1
        assert body["results"][0]["status"] == "skipped"
        assert body["results"][0]["reason"] == "no_orders"
        assert set(body["billingPeriod"]) == {"month", "year", "monthName"}
