import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from warehouse.api.errors import register_error_handlers
from warehouse.api.routes import inventory_router, invoice_router, order_router


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(invoice_router)
    app.include_router(inventory_router)
    register_error_handlers(app)
    return TestClient(app)
