"""Product catalogue port.

Products are managed outside this service; order creation only needs each
product's per-unit shipping weight.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ProductWeight:
    """Per-unit weight as recorded in the product's metadata."""

    value: float
    unit: str = "lb"


class ProductCatalogue(ABC):
    """Abstract product catalogue interface."""

    @abstractmethod
    def weight_of(self, product_id: str) -> ProductWeight | None:
        """Return the per-unit weight of a product, or None when unknown."""
        ...
