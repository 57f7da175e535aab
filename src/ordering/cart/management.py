"""Cart management — commands and handler.

Handles lazy cart creation, clearing, and activation.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.errors import NotFoundError
from ordering.identity import get_user_directory

logger = structlog.get_logger(__name__)


def load_or_create_cart(user_id) -> Cart:
    """Return the user's cart, opening an empty one on first access.

    The new cart is registered with the repository but not persisted until
    the surrounding unit of work commits.
    """
    if not get_user_directory().exists(user_id):
        raise NotFoundError.user(user_id)

    repo = current_domain.repository_for(Cart)
    cart = repo.find_by_user(user_id)
    if cart is None:
        cart = Cart.create(user_id=str(user_id))
        logger.info("Cart created", cart_id=str(cart.id), user_id=str(user_id))
    return cart


@ordering.command(part_of="Cart")
class GetOrCreateCart:
    """Fetch the user's cart, creating it with zero totals if absent."""

    user_id = Identifier(required=True)


@ordering.command(part_of="Cart")
class ClearCart:
    """Remove every line from the user's cart."""

    user_id = Identifier(required=True)


@ordering.command(part_of="Cart")
class DeactivateCart:
    user_id = Identifier(required=True)


@ordering.command(part_of="Cart")
class ActivateCart:
    user_id = Identifier(required=True)


@ordering.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(GetOrCreateCart)
    def get_or_create_cart(self, command):
        cart = load_or_create_cart(command.user_id)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = load_or_create_cart(command.user_id)
        cart.clear()
        current_domain.repository_for(Cart).add(cart)
        logger.info("Cart cleared", cart_id=str(cart.id), user_id=str(command.user_id))
        return str(cart.id)

    @handle(DeactivateCart)
    def deactivate_cart(self, command):
        cart = load_or_create_cart(command.user_id)
        cart.deactivate()
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(ActivateCart)
    def activate_cart(self, command):
        cart = load_or_create_cart(command.user_id)
        cart.activate()
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)
