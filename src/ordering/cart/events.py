"""Domain events for the Cart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer

from ordering.domain import ordering


@ordering.event(part_of="Cart")
class CartCreated:
    """A cart was opened for a user on first access."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    created_at = DateTime()


@ordering.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or merged into its existing line."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)
    unit_price = Float(required=True)


@ordering.event(part_of="Cart")
class CartItemQuantityUpdated:
    """The quantity of a cart line was set to a new value."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)


@ordering.event(part_of="Cart")
class CartCleared:
    """Every line was removed from the cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    removed_items = Integer(required=True)


@ordering.event(part_of="Cart")
class CartDeactivated:
    __version__ = "v1"

    cart_id = Identifier(required=True)


@ordering.event(part_of="Cart")
class CartActivated:
    __version__ = "v1"

    cart_id = Identifier(required=True)
