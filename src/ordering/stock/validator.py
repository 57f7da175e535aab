"""Stock and availability checks shared by the cart and checkout paths.

``ensure_available`` is the strict gate used whenever a quantity is about to
be committed to a cart or an order. ``assess`` answers the same questions
without raising, and is used to annotate cart contents for display.
"""

from dataclasses import dataclass

import structlog

from ordering.catalogue import get_catalog
from ordering.catalogue.port import ProductSnapshot
from ordering.errors import (
    InsufficientStockError,
    InvalidStockError,
    NotFoundError,
    ProductUnavailableError,
)

logger = structlog.get_logger(__name__)


def load_product(product_id) -> ProductSnapshot:
    product = get_catalog().find_by_id(str(product_id))
    if product is None:
        raise NotFoundError.product(product_id)
    return product


def ensure_available(product: ProductSnapshot, requested_quantity: int) -> ProductSnapshot:
    """Check that ``requested_quantity`` units of ``product`` can be sold.

    Checks run in a fixed order and the first failure wins:
    sellability, then a known stock level, then enough stock.
    Asking for exactly the remaining stock succeeds.
    """
    if not product.is_available():
        raise ProductUnavailableError(
            {"product": [f"Product is not available for sale: {product.name}"]}
        )

    if product.stock_quantity is None:
        raise InvalidStockError({"stock": [f"Stock information is missing for product: {product.name}"]})

    if requested_quantity > product.stock_quantity:
        raise InsufficientStockError(
            {
                "stock": [
                    f"Insufficient stock. Product: {product.name}, "
                    f"current stock: {product.stock_quantity}, requested: {requested_quantity}"
                ]
            }
        )

    logger.debug(
        "Stock available",
        product_id=product.id,
        requested=requested_quantity,
        stock=product.stock_quantity,
    )
    return product


@dataclass(frozen=True)
class Availability:
    """Non-throwing availability report for one cart line."""

    is_product_available: bool
    is_stock_available: bool
    is_price_changed: bool
    current_price: float | None
    warning_message: str | None


def stock_shortage_message(product: ProductSnapshot | None, quantity: int) -> str | None:
    if product is None or product.stock_quantity is None:
        return "Stock information is unavailable."
    if product.stock_quantity < quantity:
        return f"Insufficient stock. Current stock: {product.stock_quantity}, requested: {quantity}"
    return None


def format_price(price: float) -> str:
    """Whole amounts print without decimals, fractional ones keep their cents."""
    return f"{price:.2f}".rstrip("0").rstrip(".")


def price_change_message(previous_price: float, current_price: float) -> str | None:
    if previous_price == current_price:
        return None
    direction = "increased" if current_price > previous_price else "decreased"
    return f"Price {direction} from {format_price(previous_price)} to {format_price(current_price)}."


def assess(product: ProductSnapshot | None, quantity: int, unit_price: float | None) -> Availability:
    """Report sellability, stock and price drift for a line of ``quantity`` units.

    ``product`` may be None when the product has disappeared from the
    catalogue; such a line is reported as unavailable.
    """
    product_available = product is not None and product.is_available()
    stock_available = (
        product is not None and product.stock_quantity is not None and product.stock_quantity >= quantity
    )
    current_price = product.price if product is not None else None
    price_changed = current_price is not None and unit_price is not None and current_price != unit_price

    if not product_available:
        warning = "This product is no longer available for sale."
    elif not stock_available:
        warning = stock_shortage_message(product, quantity)
    elif price_changed:
        warning = price_change_message(unit_price, current_price)
    else:
        warning = None

    return Availability(
        is_product_available=product_available,
        is_stock_available=stock_available,
        is_price_changed=price_changed,
        current_price=current_price,
        warning_message=warning,
    )
