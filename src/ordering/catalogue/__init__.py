"""Product catalogue factory.

Provides get_catalog() / set_catalog() to swap implementations. The
in-memory catalogue is the only adapter shipped with the ordering core.
"""

from ordering import config
from ordering.catalogue.port import ProductCatalog

_current_catalog: ProductCatalog | None = None


def get_catalog() -> ProductCatalog:
    """Return the configured product catalogue (singleton)."""
    global _current_catalog
    if _current_catalog is None:
        if config.CATALOG_ADAPTER == "memory":
            from ordering.catalogue.memory_adapter import InMemoryCatalog

            _current_catalog = InMemoryCatalog()
        else:
            raise ValueError(f"Unknown catalog adapter: {config.CATALOG_ADAPTER}")
    return _current_catalog


def set_catalog(catalog: ProductCatalog) -> None:
    """Override the active catalogue (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the default catalogue."""
    global _current_catalog
    _current_catalog = None
