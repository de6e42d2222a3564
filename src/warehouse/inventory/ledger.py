"""Inventory ledger — stock operations keyed by (product, client).

The ledger is constructed with the repository it writes through, so handlers
share the unit of work they run in and tests can hand in their own
repository. Every operation loads the record, applies one guarded movement
and writes it back under the aggregate's version check.
"""

from collections import OrderedDict

import structlog

from warehouse.inventory.record import InventoryRecord
from warehouse.shared.errors import (
    DuplicateValueError,
    InsufficientStockError,
    InventoryNotEmptyError,
    InventoryNotFoundError,
)

logger = structlog.get_logger(__name__)


def group_quantities(lines) -> "OrderedDict[str, list[int]]":
    """Group ``(product_id, quantity)`` pairs by product, keeping first-seen order."""
    grouped: OrderedDict[str, list[int]] = OrderedDict()
    for product_id, quantity in lines:
        grouped.setdefault(str(product_id), []).append(quantity)
    return grouped


class InventoryLedger:
    def __init__(self, repository):
        self._repository = repository

    # -------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------
    def find(self, product_id: str, client_id: str) -> InventoryRecord | None:
        records = (
            self._repository._dao.query.filter(product_id=str(product_id), client_id=str(client_id)).all().items
        )
        return records[0] if records else None

    def get(self, product_id: str, client_id: str) -> InventoryRecord:
        record = self.find(product_id, client_id)
        if record is None:
            raise InventoryNotFoundError(str(product_id), str(client_id))
        return record

    # -------------------------------------------------------------------
    # Single-record operations
    # -------------------------------------------------------------------
    def onboard(self, product_id: str, client_id: str, initial_stock: int = 0) -> InventoryRecord:
        if self.find(product_id, client_id) is not None:
            raise DuplicateValueError(
                f"Product {product_id} is already onboarded for client {client_id}",
                data={"productId": str(product_id), "clientId": str(client_id)},
            )
        record = InventoryRecord.create(str(product_id), str(client_id), initial_stock)
        self._repository.add(record)
        return record

    def receive(self, product_id: str, client_id: str, quantity: int) -> InventoryRecord:
        """Receive stock, onboarding the product on its first receipt."""
        record = self.find(product_id, client_id)
        if record is None:
            record = InventoryRecord.create(str(product_id), str(client_id), 0)
        record.receive(quantity)
        self._repository.add(record)
        return record

    def reserve(self, product_id: str, client_id: str, quantity: int, order_id: str | None = None) -> InventoryRecord:
        record = self.get(product_id, client_id)
        record.reserve(quantity, order_id=order_id)
        self._repository.add(record)
        return record

    def release(self, product_id: str, client_id: str, quantity: int, order_id: str | None = None) -> InventoryRecord:
        record = self.get(product_id, client_id)
        record.release(quantity, order_id=order_id)
        self._repository.add(record)
        return record

    def dispatch(self, product_id: str, client_id: str, quantity: int, order_id: str | None = None) -> InventoryRecord:
        record = self.get(product_id, client_id)
        record.dispatch(quantity, order_id=order_id)
        self._repository.add(record)
        return record

    def adjust(self, product_id: str, client_id: str, delta: int, reason: str | None = None) -> InventoryRecord:
        record = self.get(product_id, client_id)
        record.adjust(delta, reason=reason)
        self._repository.add(record)
        return record

    # -------------------------------------------------------------------
    # Order-level operations
    # -------------------------------------------------------------------
    def reserve_items(self, client_id: str, lines, order_id: str | None = None) -> list[InventoryRecord]:
        """Reserve every ``(product_id, quantity)`` line, or nothing at all.

        All movements are applied to in-memory records first; nothing is
        written unless every line could be reserved.
        """
        records = []
        for product_id, quantities in group_quantities(lines).items():
            record = self.find(product_id, client_id)
            requested = sum(quantities)
            if record is None:
                raise InsufficientStockError(product_id, 0, requested)
            for quantity in quantities:
                record.reserve(quantity, order_id=order_id)
            records.append(record)

        for record in records:
            self._repository.add(record)
        return records

    def dispatch_items(self, client_id: str, lines, order_id: str | None = None) -> list[dict]:
        """Move each line from reserved to dispatched.

        A line whose record is missing or lacks reserved stock is logged and
        skipped; the remaining lines are still dispatched. Returns the
        skipped lines.
        """
        skipped = []
        for product_id, quantities in group_quantities(lines).items():
            record = self.find(product_id, client_id)
            if record is None:
                logger.warning(
                    "Inventory record missing during dispatch",
                    product_id=product_id,
                    client_id=str(client_id),
                    order_id=order_id,
                )
                skipped.extend({"productId": product_id, "quantity": q, "reason": "not_found"} for q in quantities)
                continue

            moved = False
            for quantity in quantities:
                try:
                    record.dispatch(quantity, order_id=order_id)
                    moved = True
                except InsufficientStockError as exc:
                    logger.warning(
                        "Skipping dispatch of order item",
                        product_id=product_id,
                        client_id=str(client_id),
                        order_id=order_id,
                        error=exc.message,
                    )
                    skipped.append({"productId": product_id, "quantity": quantity, "reason": "insufficient_reserved"})
            if moved:
                self._repository.add(record)
        return skipped

    def release_items(self, client_id: str, lines, order_id: str | None = None) -> int:
        """Return reserved units for every line; returns the units released."""
        released = 0
        for product_id, quantities in group_quantities(lines).items():
            record = self.find(product_id, client_id)
            if record is None:
                logger.warning(
                    "Inventory record missing during release",
                    product_id=product_id,
                    client_id=str(client_id),
                    order_id=order_id,
                )
                continue

            before = released
            for quantity in quantities:
                released += record.release(quantity, order_id=order_id)
            if released > before:
                self._repository.add(record)
        return released

    # -------------------------------------------------------------------
    # Removal
    # -------------------------------------------------------------------
    def remove(self, product_id: str, client_id: str) -> None:
        record = self.get(product_id, client_id)
        if not record.is_empty:
            raise InventoryNotEmptyError(str(product_id), str(client_id), record.counters())
        self._repository._dao.delete(record)
