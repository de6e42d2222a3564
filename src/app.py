"""Warehouse FastAPI application.

Web server that processes commands synchronously via HTTP. Every request
runs inside the warehouse domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - unset / "test" → in-memory database
#   - "production"   → PostgreSQL from DATABASE_URL
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from warehouse.domain import warehouse  # noqa: E402
from warehouse.utils.logging import bind_request_context, clear_request_context  # noqa: E402

warehouse.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Warehouse API",
    description="3PL fulfillment — orders, inventory and client billing",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the warehouse domain context for each request."""
    clear_request_context()
    bind_request_context(
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        method=request.method,
        path=request.url.path,
    )
    with warehouse.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers and error handlers
# ---------------------------------------------------------------------------
from warehouse.api.errors import register_error_handlers  # noqa: E402
from warehouse.api.routes import inventory_router, invoice_router, order_router  # noqa: E402

app.include_router(order_router)
app.include_router(invoice_router)
app.include_router(inventory_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": warehouse.name}})
