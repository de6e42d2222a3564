"""Tests for the InventoryRecord aggregate and its stock movements."""

import pytest
from protean.exceptions import ValidationError
from warehouse.inventory.events import (
    InventoryOnboarded,
    StockAdjusted,
    StockDispatched,
    StockReceived,
    StockReleased,
    StockReserved,
)
from warehouse.inventory.record import InventoryRecord
from warehouse.shared.errors import InsufficientStockError


def _make_record(**overrides):
    defaults = {
        "product_id": "prod-001",
        "client_id": "client-001",
        "initial_stock": 100,
    }
    defaults.update(overrides)
    return InventoryRecord.create(**defaults)


def _assert_balanced(record):
    assert record.total_stock == record.available_stock + record.reserved_stock + record.dispatched_stock


class TestOnboarding:
    def test_initial_stock_is_available(self):
        record = _make_record(initial_stock=50)
        assert record.counters() == {
            "total_stock": 50,
            "available_stock": 50,
            "reserved_stock": 0,
            "dispatched_stock": 0,
        }

    def test_onboarding_raises_event(self):
        record = _make_record(initial_stock=10)
        assert isinstance(record._events[-1], InventoryOnboarded)
        assert record._events[-1].initial_stock == 10

    def test_negative_initial_stock_rejected(self):
        with pytest.raises(ValidationError):
            _make_record(initial_stock=-1)

    def test_empty_record(self):
        assert _make_record(initial_stock=0).is_empty


class TestReserve:
    def test_reserve_moves_available_to_reserved(self):
        record = _make_record(initial_stock=10)
        record.reserve(3, order_id="ord-1")
        assert record.available_stock == 7
        assert record.reserved_stock == 3
        assert record.total_stock == 10
        _assert_balanced(record)

    def test_reserve_raises_event(self):
        record = _make_record(initial_stock=10)
        record.reserve(3, order_id="ord-1")
        event = record._events[-1]
        assert isinstance(event, StockReserved)
        assert event.order_id == "ord-1"
        assert event.available_stock == 7

    def test_reserve_exact_available(self):
        record = _make_record(initial_stock=5)
        record.reserve(5)
        assert record.available_stock == 0
        assert record.reserved_stock == 5

    def test_reserve_more_than_available_fails(self):
        record = _make_record(initial_stock=4)
        with pytest.raises(InsufficientStockError) as exc:
            record.reserve(5)
        assert exc.value.data["available"] == 4
        assert exc.value.data["requested"] == 5
        assert record.available_stock == 4
        assert record.reserved_stock == 0

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity_rejected(self, quantity):
        record = _make_record()
        with pytest.raises(ValidationError):
            record.reserve(quantity)


class TestDispatch:
    def test_dispatch_moves_reserved_to_dispatched(self):
        record = _make_record(initial_stock=10)
        record.reserve(4)
        record.dispatch(4, order_id="ord-1")
        assert record.reserved_stock == 0
        assert record.dispatched_stock == 4
        assert record.available_stock == 6
        assert record.total_stock == 10
        assert isinstance(record._events[-1], StockDispatched)
        _assert_balanced(record)

    def test_dispatch_without_reservation_fails(self):
        record = _make_record(initial_stock=10)
        with pytest.raises(InsufficientStockError) as exc:
            record.dispatch(1)
        assert exc.value.data["counter"] == "reserved"
        assert record.dispatched_stock == 0


class TestRelease:
    def test_release_returns_reserved_to_available(self):
        record = _make_record(initial_stock=10)
        record.reserve(6)
        released = record.release(6, order_id="ord-1")
        assert released == 6
        assert record.available_stock == 10
        assert record.reserved_stock == 0
        assert isinstance(record._events[-1], StockReleased)

    def test_release_is_capped_at_reserved(self):
        record = _make_record(initial_stock=10)
        record.reserve(2)
        assert record.release(5) == 2
        assert record.reserved_stock == 0
        assert record.available_stock == 10

    def test_release_with_nothing_reserved_is_a_no_op(self):
        record = _make_record(initial_stock=10)
        events_before = len(record._events)
        assert record.release(3) == 0
        assert len(record._events) == events_before


class TestReceiveAndAdjust:
    def test_receive_adds_to_total_and_available(self):
        record = _make_record(initial_stock=5)
        record.receive(7)
        assert record.total_stock == 12
        assert record.available_stock == 12
        assert isinstance(record._events[-1], StockReceived)

    def test_positive_adjustment(self):
        record = _make_record(initial_stock=5)
        record.adjust(3, reason="Cycle count")
        assert record.total_stock == 8
        assert record.available_stock == 8
        assert record._events[-1].reason == "Cycle count"
        assert isinstance(record._events[-1], StockAdjusted)

    def test_negative_adjustment(self):
        record = _make_record(initial_stock=5)
        record.adjust(-2, reason="Damaged")
        assert record.total_stock == 3
        assert record.available_stock == 3

    def test_adjustment_cannot_take_reserved_stock(self):
        record = _make_record(initial_stock=5)
        record.reserve(4)
        with pytest.raises(InsufficientStockError):
            record.adjust(-2)
        assert record.available_stock == 1
        _assert_balanced(record)

    def test_zero_adjustment_rejected(self):
        record = _make_record()
        with pytest.raises(ValidationError):
            record.adjust(0)


class TestStockInvariant:
    def test_full_lifecycle_keeps_buckets_balanced(self):
        record = _make_record(initial_stock=20)
        record.reserve(8)
        _assert_balanced(record)
        record.dispatch(5)
        _assert_balanced(record)
        record.release(3)
        _assert_balanced(record)
        record.receive(10)
        _assert_balanced(record)
        record.adjust(-4)
        _assert_balanced(record)
        assert record.counters() == {
            "total_stock": 26,
            "available_stock": 21,
            "reserved_stock": 0,
            "dispatched_stock": 5,
        }

    def test_unbalanced_buckets_rejected(self):
        record = _make_record(initial_stock=10)
        with pytest.raises(ValidationError):
            record.total_stock = 11
