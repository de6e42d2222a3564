"""Warehouse bounded context — order fulfillment and billing consistency.

A single domain owns orders, the inventory ledger and invoices so that an
order, the stock records it touches and the invoice that bills it are written
in one unit of work.
"""

import structlog
from protean.domain import Domain

from warehouse.utils.logging import configure_logging

configure_logging()

logger = structlog.get_logger(__name__)

# Domain Composition Root
warehouse = Domain(name="warehouse")
