"""Product catalogue factory.

Provides get_catalogue() / set_catalogue() to swap implementations.
"""

from warehouse.catalogue.memory_adapter import InMemoryCatalogue
from warehouse.catalogue.port import ProductCatalogue, ProductWeight

_current_catalogue: ProductCatalogue | None = None


def get_catalogue() -> ProductCatalogue:
    """Return the active product catalogue. Defaults to an empty InMemoryCatalogue."""
    global _current_catalogue
    if _current_catalogue is None:
        _current_catalogue = InMemoryCatalogue()
    return _current_catalogue


def set_catalogue(catalogue: ProductCatalogue) -> None:
    """Override the active product catalogue (useful for tests)."""
    global _current_catalogue
    _current_catalogue = catalogue


def reset_catalogue() -> None:
    """Reset to the default catalogue."""
    global _current_catalogue
    _current_catalogue = None


__all__ = ["ProductCatalogue", "ProductWeight", "InMemoryCatalogue", "get_catalogue", "set_catalogue", "reset_catalogue"]
