"""Cart item management — commands and handler.

Every quantity that ends up in a cart line is checked against the product's
current stock first. When a product is merged into an existing line, the
check covers the combined quantity, not just the increment.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.cart.management import load_or_create_cart
from ordering.domain import ordering
from ordering.errors import ForbiddenError, InvalidArgumentError, NotFoundError
from ordering.stock.validator import ensure_available, load_product

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Cart")
class AddCartItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@ordering.command(part_of="Cart")
class UpdateCartItemQuantity:
    """Set a line's quantity. Zero or a negative value removes the line."""

    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True)


@ordering.command(part_of="Cart")
class RemoveCartItem:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)


def _owned_item(cart, item_id):
    item = cart.find_item(item_id)
    if item is not None:
        return item

    if current_domain.repository_for(Cart).find_by_item(item_id) is not None:
        raise ForbiddenError({"cart_item": [f"Cart item {item_id} does not belong to the caller"]})
    raise NotFoundError.cart_item(item_id)


@ordering.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddCartItem)
    def add_cart_item(self, command):
        if command.quantity <= 0:
            raise InvalidArgumentError({"quantity": ["Quantity must be greater than zero"]})

        product = load_product(command.product_id)
        cart = load_or_create_cart(command.user_id)

        combined_quantity = cart.product_quantity(product.id) + command.quantity
        ensure_available(product, combined_quantity)

        item = cart.add_item(product, command.quantity)
        current_domain.repository_for(Cart).add(cart)

        logger.info(
            "Cart item added",
            cart_id=str(cart.id),
            product_id=product.id,
            quantity=command.quantity,
            line_quantity=item.quantity,
        )
        return str(item.id)

    @handle(UpdateCartItemQuantity)
    def update_cart_item_quantity(self, command):
        cart = load_or_create_cart(command.user_id)
        item = _owned_item(cart, command.item_id)
        product_id = str(item.product_id)

        if command.quantity > 0:
            product = load_product(product_id)
            ensure_available(product, command.quantity)

        cart.update_item_quantity(product_id, command.quantity)
        current_domain.repository_for(Cart).add(cart)

        logger.info(
            "Cart item quantity updated",
            cart_id=str(cart.id),
            product_id=product_id,
            quantity=command.quantity,
            removed=command.quantity <= 0,
        )

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        cart = load_or_create_cart(command.user_id)
        item = _owned_item(cart, command.item_id)

        cart.remove_item(item.product_id)
        current_domain.repository_for(Cart).add(cart)

        logger.info("Cart item removed", cart_id=str(cart.id), product_id=str(item.product_id))
