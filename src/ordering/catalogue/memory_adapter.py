"""In-memory product catalogue for development and testing.

Products are registered directly on the adapter. Stock commits take a lock
per product (acquired in sorted order) so two concurrent checkouts cannot
both consume the same units. Commits made under a reference (the order id at
checkout) are kept until released, which hands the units back.
"""

import threading
from dataclasses import replace

from ordering.catalogue.port import ProductCatalog, ProductSnapshot, SaleStatus
from ordering.errors import InsufficientStockError, NotFoundError


class InMemoryCatalog(ProductCatalog):
    """Dictionary-backed product catalogue."""

    def __init__(self) -> None:
        self._products: dict[str, ProductSnapshot] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._commitments: dict[str, dict[str, int]] = {}
        self._registry_lock = threading.Lock()

    def register(
        self,
        product_id: str,
        name: str,
        price: float,
        stock_quantity: int | None,
        sale_status: SaleStatus = SaleStatus.ACTIVE,
        brand: str | None = None,
    ) -> ProductSnapshot:
        product = ProductSnapshot(
            id=str(product_id),
            name=name,
            price=price,
            stock_quantity=stock_quantity,
            sale_status=sale_status,
            brand=brand,
        )
        with self._registry_lock:
            self._products[product.id] = product
            self._locks.setdefault(product.id, threading.Lock())
        return product

    def update(self, product_id: str, **changes) -> ProductSnapshot:
        """Change price, stock or sale status of a registered product."""
        with self._registry_lock:
            product = self._products.get(str(product_id))
            if product is None:
                raise NotFoundError.product(product_id)
            updated = replace(product, **changes)
            self._products[updated.id] = updated
        return updated

    def find_by_id(self, product_id: str) -> ProductSnapshot | None:
        return self._products.get(str(product_id))

    def commit_stock(self, lines: dict[str, int], reference: str | None = None) -> None:
        product_ids = sorted(str(pid) for pid in lines)
        for product_id in product_ids:
            if product_id not in self._products:
                raise NotFoundError.product(product_id)

        locks = [self._locks[pid] for pid in product_ids]
        for lock in locks:
            lock.acquire()
        try:
            if reference is not None and self._is_committed(reference):
                return

            for product_id in product_ids:
                product = self._products[product_id]
                requested = lines[product_id]
                if product.stock_quantity is None or product.stock_quantity < requested:
                    raise InsufficientStockError(
                        {
                            "stock": [
                                f"Insufficient stock. Product: {product.name}, "
                                f"current stock: {product.stock_quantity}, requested: {requested}"
                            ]
                        }
                    )
            for product_id in product_ids:
                product = self._products[product_id]
                self._products[product_id] = replace(
                    product,
                    stock_quantity=product.stock_quantity - lines[product_id],
                )
            if reference is not None:
                with self._registry_lock:
                    self._commitments[str(reference)] = {pid: lines[pid] for pid in product_ids}
        finally:
            for lock in reversed(locks):
                lock.release()

    def release_stock(self, reference: str) -> None:
        with self._registry_lock:
            lines = self._commitments.pop(str(reference), None)
        if not lines:
            return

        for product_id in sorted(lines):
            with self._locks[product_id]:
                product = self._products.get(product_id)
                # Delisted since the commit
                if product is None or product.stock_quantity is None:
                    continue
                self._products[product_id] = replace(
                    product, stock_quantity=product.stock_quantity + lines[product_id]
                )

    def _is_committed(self, reference: str) -> bool:
        with self._registry_lock:
            return str(reference) in self._commitments

    def remove(self, product_id: str) -> None:
        """Delist a product entirely; carts holding it see it as gone."""
        with self._registry_lock:
            self._products.pop(str(product_id), None)
