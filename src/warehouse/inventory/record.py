"""InventoryRecord aggregate (CQRS) — the three-way stock ledger.

One record per (product, client) pair. Stock is tracked in three buckets:

    available:  on the shelf and free to promise
    reserved:   held for orders that have not shipped yet
    dispatched: shipped out with an order

and ``total_stock == available + reserved + dispatched`` holds at all times.

Every movement computes the resulting counters first, refuses the write if
any counter would go negative or the buckets would stop adding up, and only
then applies all counters in a single atomic change. The repository persists
the record with a version check, so two writers that read the same version
cannot both succeed.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer

from warehouse.domain import warehouse
from warehouse.inventory.events import (
    InventoryOnboarded,
    StockAdjusted,
    StockDispatched,
    StockReceived,
    StockReleased,
    StockReserved,
)
from warehouse.shared.errors import InsufficientStockError, IntegrityViolationError

_COUNTERS = ("total_stock", "available_stock", "reserved_stock", "dispatched_stock")


@warehouse.aggregate(schema_name="inventory")
class InventoryRecord:
    product_id = Identifier(required=True)
    client_id = Identifier(required=True)
    total_stock = Integer(default=0, min_value=0)
    available_stock = Integer(default=0, min_value=0)
    reserved_stock = Integer(default=0, min_value=0)
    dispatched_stock = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_buckets_must_add_up(self):
        if self.total_stock != self.available_stock + self.reserved_stock + self.dispatched_stock:
            raise ValidationError(
                {
                    "total_stock": [
                        f"Total stock {self.total_stock} does not equal available {self.available_stock} "
                        f"+ reserved {self.reserved_stock} + dispatched {self.dispatched_stock}"
                    ]
                }
            )

    @classmethod
    def create(cls, product_id: str, client_id: str, initial_stock: int = 0):
        """Onboard a product for a client with its opening stock on the shelf."""
        if initial_stock < 0:
            raise ValidationError({"initial_stock": ["Initial stock cannot be negative"]})

        now = datetime.now(UTC)
        record = cls(
            product_id=product_id,
            client_id=client_id,
            total_stock=initial_stock,
            available_stock=initial_stock,
            reserved_stock=0,
            dispatched_stock=0,
            created_at=now,
            updated_at=now,
        )
        record.raise_(
            InventoryOnboarded(
                inventory_id=str(record.id),
                product_id=product_id,
                client_id=client_id,
                initial_stock=initial_stock,
                onboarded_at=now,
            )
        )
        return record

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def counters(self) -> dict:
        return {name: getattr(self, name) for name in _COUNTERS}

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) == 0 for name in _COUNTERS)

    @staticmethod
    def _assert_positive(quantity: int) -> None:
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be a positive integer"]})

    def _move(self, event_cls, quantity, *, total=0, available=0, reserved=0, dispatched=0, **event_fields):
        """Apply a guarded movement across the stock buckets."""
        resulting = {
            "total_stock": self.total_stock + total,
            "available_stock": self.available_stock + available,
            "reserved_stock": self.reserved_stock + reserved,
            "dispatched_stock": self.dispatched_stock + dispatched,
        }

        negative = sorted(name for name, value in resulting.items() if value < 0)
        if negative:
            raise IntegrityViolationError(
                f"Stock movement would make {', '.join(negative)} negative",
                data={"productId": str(self.product_id), "clientId": str(self.client_id), **resulting},
            )
        if resulting["total_stock"] != (
            resulting["available_stock"] + resulting["reserved_stock"] + resulting["dispatched_stock"]
        ):
            raise IntegrityViolationError(
                "Stock movement would break total = available + reserved + dispatched",
                data={"productId": str(self.product_id), "clientId": str(self.client_id), **resulting},
            )

        now = datetime.now(UTC)
        with atomic_change(self):
            for name, value in resulting.items():
                setattr(self, name, value)
            self.updated_at = now

        self.raise_(
            event_cls(
                inventory_id=str(self.id),
                product_id=str(self.product_id),
                client_id=str(self.client_id),
                quantity=quantity,
                occurred_at=now,
                **self.counters(),
                **event_fields,
            )
        )

    # -------------------------------------------------------------------
    # Movements
    # -------------------------------------------------------------------
    def receive(self, quantity: int) -> None:
        """Put newly received units on the shelf."""
        self._assert_positive(quantity)
        self._move(StockReceived, quantity, total=quantity, available=quantity)

    def reserve(self, quantity: int, order_id: str | None = None) -> None:
        """Hold available units for an order."""
        self._assert_positive(quantity)
        if self.available_stock < quantity:
            raise InsufficientStockError(str(self.product_id), self.available_stock, quantity)
        self._move(StockReserved, quantity, available=-quantity, reserved=quantity, order_id=order_id)

    def release(self, quantity: int, order_id: str | None = None) -> int:
        """Return reserved units to available stock.

        Releases at most what is currently reserved and returns the number of
        units actually released.
        """
        self._assert_positive(quantity)
        released = min(quantity, self.reserved_stock)
        if released == 0:
            return 0
        self._move(StockReleased, released, available=released, reserved=-released, order_id=order_id)
        return released

    def dispatch(self, quantity: int, order_id: str | None = None) -> None:
        """Ship reserved units out of the warehouse."""
        self._assert_positive(quantity)
        if self.reserved_stock < quantity:
            raise InsufficientStockError(str(self.product_id), self.reserved_stock, quantity, counter="reserved")
        self._move(StockDispatched, quantity, reserved=-quantity, dispatched=quantity, order_id=order_id)

    def adjust(self, delta: int, reason: str | None = None) -> None:
        """Manual correction: total and available move together by ``delta``."""
        if not isinstance(delta, int) or isinstance(delta, bool) or delta == 0:
            raise ValidationError({"delta": ["Adjustment must be a non-zero integer"]})
        if self.available_stock + delta < 0 or self.total_stock + delta < 0:
            raise InsufficientStockError(str(self.product_id), self.available_stock, -delta)
        self._move(StockAdjusted, delta, total=delta, available=delta, reason=reason)
