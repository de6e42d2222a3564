"""In-memory product catalogue for development and testing."""

from warehouse.catalogue.port import ProductCatalogue, ProductWeight


class InMemoryCatalogue(ProductCatalogue):
    def __init__(self):
        self._weights: dict[str, ProductWeight] = {}

    def register(self, product_id: str, value: float, unit: str = "lb") -> None:
        self._weights[str(product_id)] = ProductWeight(value=value, unit=unit)

    def clear(self) -> None:
        self._weights.clear()

    def weight_of(self, product_id: str) -> ProductWeight | None:
        return self._weights.get(str(product_id))
