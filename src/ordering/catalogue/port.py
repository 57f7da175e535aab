"""Product catalogue port (abstract interface).

The ordering core only reads product data (price, stock, sale status) and, at
checkout, asks the catalogue to commit the purchased stock. Catalogue
management itself lives outside this bounded context.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class SaleStatus(Enum):
    ACTIVE = "Active"
    SOLD_OUT = "Sold_Out"
    INACTIVE = "Inactive"
    TRADING = "Trading"


@dataclass(frozen=True)
class ProductSnapshot:
    """Read-only view of a product as the ordering core sees it."""

    id: str
    name: str
    price: float
    stock_quantity: int | None
    sale_status: SaleStatus = SaleStatus.ACTIVE
    brand: str | None = None

    def is_available(self) -> bool:
        """Only active products can be bought."""
        return self.sale_status == SaleStatus.ACTIVE


class ProductCatalog(ABC):
    """Abstract product catalogue interface."""

    @abstractmethod
    def find_by_id(self, product_id: str) -> ProductSnapshot | None:
        """Return the product, or None when no such product exists."""
        ...

    @abstractmethod
    def commit_stock(self, lines: dict[str, int], reference: str | None = None) -> None:
        """Decrement stock for every ``product_id -> quantity`` line.

        Must be atomic: either every line is committed or none is, and
        ``InsufficientStockError`` is raised when any line cannot be covered.
        A commit made under ``reference`` is remembered, and committing the
        same reference again does nothing.
        """
        ...

    @abstractmethod
    def release_stock(self, reference: str) -> None:
        """Return the stock committed under ``reference``. Unknown references are ignored."""
        ...
