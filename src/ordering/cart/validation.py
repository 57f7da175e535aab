"""Cart validation — re-prices a cart and reports what changed.

Unlike every other cart operation, validation never fails because of stock,
price or sellability problems. A stale cart must stay browsable, so problems
are reported per line and only checkout refuses them.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.cart.management import load_or_create_cart
from ordering.cart.snapshot import cart_snapshot
from ordering.catalogue import get_catalog
from ordering.domain import ordering
from ordering.stock.validator import assess

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Cart")
class ValidateCart:
    user_id = Identifier(required=True)


@ordering.command_handler(part_of=Cart)
class ValidateCartHandler:
    @handle(ValidateCart)
    def validate_cart(self, command):
        cart = load_or_create_cart(command.user_id)
        catalog = get_catalog()

        reports = {}
        for item in list(cart.items):
            product = catalog.find_by_id(str(item.product_id))
            # Price drift is judged against the price the customer last saw
            report = assess(product, item.quantity, item.unit_price)
            reports[str(item.id)] = report

            if not report.is_product_available:
                logger.warning("Cart item no longer sellable", cart_id=str(cart.id), product_id=str(item.product_id))
            elif not report.is_stock_available:
                logger.warning(
                    "Cart item exceeds stock",
                    cart_id=str(cart.id),
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    stock=product.stock_quantity,
                )

            if product is not None:
                cart.refresh_item_price(item.product_id, product)

        cart.recalculate()
        current_domain.repository_for(Cart).add(cart)

        logger.info(
            "Cart validated",
            cart_id=str(cart.id),
            issues=sum(1 for r in reports.values() if r.warning_message),
        )
        return cart_snapshot(cart, reports)
