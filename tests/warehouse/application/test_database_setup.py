"""Tests for schema setup and the store-level constraints."""

from contextlib import contextmanager

from warehouse.domain import warehouse
from warehouse.utils.db import CHECK_CONSTRAINTS, UNIQUE_INDEXES, _apply_constraints, drop_db, setup_db


class _RecordingConnection:
    def __init__(self):
        self.statements = []

    def execute(self, statement):
        self.statements.append(str(statement))


class _RecordingEngine:
    def __init__(self):
        self.connection = _RecordingConnection()

    @contextmanager
    def begin(self):
        yield self.connection


def _registered_tables():
    tables = set()
    for records in (warehouse.registry.aggregates, warehouse.registry.entities):
        for record in records.values():
            tables.add(record.cls.meta_.schema_name)
    return tables


class TestSetupDb:
    def test_setup_and_drop_run_on_the_configured_provider(self):
        setup_db(warehouse)
        drop_db(warehouse)

    def test_constraints_target_registered_tables(self):
        tables = _registered_tables()
        for table, _, _ in CHECK_CONSTRAINTS:
            assert table in tables


class TestApplyConstraints:
    def test_each_check_is_replaced_then_indexes_created(self):
        engine = _RecordingEngine()

        _apply_constraints(engine)

        statements = engine.connection.statements
        assert len(statements) == 2 * len(CHECK_CONSTRAINTS) + len(UNIQUE_INDEXES)
        assert statements[0] == "ALTER TABLE inventory DROP CONSTRAINT IF EXISTS inventory_non_negative"
        assert statements[1].startswith("ALTER TABLE inventory ADD CONSTRAINT inventory_non_negative CHECK (")
        assert statements[-len(UNIQUE_INDEXES) :] == list(UNIQUE_INDEXES)
