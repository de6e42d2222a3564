"""Database schema setup for the Warehouse domain.

Tables are created from the registered aggregates, entities and projections.
On PostgreSQL the store-level check constraints and unique indexes are added
on top, mirroring the domain invariants independently of application code.
"""

import structlog
from protean.domain import Domain
from sqlalchemy import create_engine, text

logger = structlog.get_logger(__name__)

# (table, constraint name, check expression)
CHECK_CONSTRAINTS = (
    (
        "inventory",
        "inventory_non_negative",
        "total_stock >= 0 AND available_stock >= 0 AND reserved_stock >= 0 AND dispatched_stock >= 0",
    ),
    ("inventory", "inventory_buckets_add_up", "total_stock = available_stock + reserved_stock + dispatched_stock"),
    (
        "orders",
        "orders_status_check",
        "status IN ('pending', 'approved', 'packed', 'dispatched', 'delivered', 'cancelled')",
    ),
    ("orders", "orders_priority_check", "priority IN ('low', 'medium', 'high')"),
    ("order_items", "order_items_quantity_positive", "quantity > 0"),
    ("invoices", "invoices_status_check", "status IN ('draft', 'sent', 'partial', 'paid', 'overdue', 'void')"),
    ("invoices", "invoices_paid_within_total", "paid_amount >= 0 AND paid_amount <= total_amount + 0.01"),
    (
        "invoices",
        "invoices_balance_matches",
        "balance_due >= 0 AND abs(balance_due - greatest(total_amount - paid_amount, 0)) <= 0.01",
    ),
    ("invoice_payments", "invoice_payments_amount_positive", "amount > 0"),
)

UNIQUE_INDEXES = (
    "CREATE UNIQUE INDEX IF NOT EXISTS inventory_product_client_key ON inventory (product_id, client_id)",
    "CREATE UNIQUE INDEX IF NOT EXISTS invoices_monthly_period_key ON invoices "
    "(client_id, invoice_type, billing_period_month, billing_period_year) WHERE invoice_type = 'monthly'",
)


def _apply_constraints(engine) -> None:
    with engine.begin() as connection:
        for table, name, expression in CHECK_CONSTRAINTS:
            connection.execute(text(f"ALTER TABLE {table} DROP CONSTRAINT IF EXISTS {name}"))
            connection.execute(text(f"ALTER TABLE {table} ADD CONSTRAINT {name} CHECK ({expression})"))
        for statement in UNIQUE_INDEXES:
            connection.execute(text(statement))
    logger.info("Store constraints applied", checks=len(CHECK_CONSTRAINTS), indexes=len(UNIQUE_INDEXES))


def setup_db(domain: Domain):
    """Setup database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])

                # Accessing the repository's _dao registers the model with SQLAlchemy
                for _, aggregate_record in domain.registry.aggregates.items():
                    if aggregate_record.cls.meta_.provider == provider.name:
                        domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

                for _, entity_record in domain.registry.entities.items():
                    if entity_record.cls.meta_.provider == provider.name:
                        domain.repository_for(entity_record.cls)._dao  # noqa: B018

                for _, projection_record in domain.registry.projections.items():
                    if projection_record.cls.meta_.provider == provider.name:
                        domain.repository_for(projection_record.cls)._dao  # noqa: B018

                provider._metadata.create_all(engine)

                if provider.conn_info["provider"] == "postgresql":
                    _apply_constraints(engine)


def drop_db(domain: Domain):
    """Drop database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)
