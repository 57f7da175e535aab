"""Cart aggregate — one long-lived staging area per user.

The cart holds at most one line per product. Adding a product that is
already in the cart increases that line's quantity instead of opening a
second line. ``total_items`` and ``total_price`` are derived from the lines
and are recomputed by ``recalculate()`` after every structural change.

Stock and sellability are checked by the application layer before a
quantity is committed (see ``ordering.stock.validator``); the aggregate
itself only keeps its arithmetic consistent.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String

from ordering.cart.events import (
    CartActivated,
    CartCleared,
    CartCreated,
    CartDeactivated,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
)
from ordering.domain import ordering
from ordering.errors import InvalidArgumentError


@ordering.entity(part_of="Cart")
class CartItem:
    """One product line in a cart.

    ``unit_price`` is a snapshot of the product price taken when the line was
    opened; it is refreshed explicitly (cart validation) and never silently.
    ``total_price`` always equals ``unit_price * quantity``.
    """

    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(default=0.0)
    added_at = DateTime()

    def calculate_total_price(self):
        self.total_price = self.unit_price * self.quantity

    def increase_quantity(self, additional_quantity):
        if additional_quantity is None or additional_quantity <= 0:
            raise InvalidArgumentError({"quantity": ["Quantity to add must be greater than zero"]})

        self.quantity += additional_quantity
        self.calculate_total_price()

    def decrease_quantity(self, quantity):
        """Reduce the quantity, never down to zero: removing a line is an explicit cart operation."""
        if quantity is None or quantity <= 0:
            raise InvalidArgumentError({"quantity": ["Quantity to remove must be greater than zero"]})
        if self.quantity <= quantity:
            raise InvalidArgumentError(
                {"quantity": [f"Not enough quantity to remove. Current quantity: {self.quantity}"]}
            )

        self.quantity -= quantity
        self.calculate_total_price()

    def set_quantity(self, quantity):
        if quantity is None or quantity <= 0:
            raise InvalidArgumentError({"quantity": ["Quantity must be greater than zero"]})

        self.quantity = quantity
        self.calculate_total_price()

    def set_unit_price(self, unit_price):
        if unit_price is None or unit_price < 0:
            raise InvalidArgumentError({"unit_price": ["Unit price must be zero or greater"]})

        self.unit_price = unit_price
        self.calculate_total_price()

    def refresh_unit_price(self, product):
        """Re-snapshot the price from the product's current catalogue price."""
        if product is not None and product.price is not None:
            self.set_unit_price(product.price)


@ordering.aggregate
class Cart:
    user_id = Identifier(required=True)
    items = HasMany(CartItem)
    total_items = Integer(default=0, min_value=0)
    total_price = Float(default=0.0, min_value=0.0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product(self):
        product_ids = [str(item.product_id) for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A cart may hold only one line per product"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        cart = cls(
            user_id=user_id,
            total_items=0,
            total_price=0.0,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        cart.raise_(CartCreated(cart_id=str(cart.id), user_id=str(user_id), created_at=now))
        return cart

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def find_item_by_product(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def find_item(self, item_id):
        return next((i for i in self.items if str(i.id) == str(item_id)), None)

    def is_empty(self):
        return not self.items

    def has_product(self, product_id):
        return self.find_item_by_product(product_id) is not None

    def product_quantity(self, product_id):
        item = self.find_item_by_product(product_id)
        return item.quantity if item else 0

    def item_count(self):
        return len(self.items)

    def can_place_order(self):
        return bool(self.is_active) and not self.is_empty()

    # -------------------------------------------------------------------
    # Derived totals
    # -------------------------------------------------------------------
    def recalculate(self):
        """Re-derive ``total_items`` and ``total_price`` from the lines."""
        self.total_items = sum(item.quantity for item in self.items)
        self.total_price = sum((item.total_price for item in self.items), 0.0)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product, quantity):
        """Add ``quantity`` units of ``product``, merging into an existing line.

        New lines snapshot the product's current price. Returns the line.
        """
        if quantity is None or quantity <= 0:
            raise InvalidArgumentError({"quantity": ["Quantity must be greater than zero"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            item = self.find_item_by_product(product.id)
            if item:
                item.increase_quantity(quantity)
            else:
                item = CartItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    unit_price=product.price,
                    total_price=product.price * quantity,
                    added_at=now,
                )
                self.add_items(item)

            self.recalculate()
            self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product.id),
                quantity=quantity,
                line_quantity=item.quantity,
                unit_price=item.unit_price,
            )
        )
        return item

    def update_item_quantity(self, product_id, new_quantity):
        """Set a line's quantity; zero or less removes the line. Unknown products are ignored."""
        item = self.find_item_by_product(product_id)
        if item is None:
            return

        if new_quantity is None or new_quantity <= 0:
            self.remove_item(product_id)
            return

        previous_quantity = item.quantity
        with atomic_change(self):
            item.set_quantity(new_quantity)
            self.recalculate()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, product_id):
        """Remove the line for ``product_id``; a no-op when there is none."""
        item = self.find_item_by_product(product_id)
        if item is None:
            return

        with atomic_change(self):
            self.remove_items(item)
            self.recalculate()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
            )
        )

    def refresh_item_price(self, product_id, product):
        """Re-snapshot one line's price from the catalogue and re-derive totals."""
        item = self.find_item_by_product(product_id)
        if item is None:
            return

        with atomic_change(self):
            item.refresh_unit_price(product)
            self.recalculate()
            self.updated_at = datetime.now(UTC)

    def clear(self):
        removed = len(self.items)
        with atomic_change(self):
            for item in list(self.items):
                self.remove_items(item)
            self.recalculate()
            self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), removed_items=removed))

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def deactivate(self):
        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(CartDeactivated(cart_id=str(self.id)))

    def activate(self):
        self.is_active = True
        self.updated_at = datetime.now(UTC)
        self.raise_(CartActivated(cart_id=str(self.id)))


@ordering.repository(part_of=Cart)
class CartRepository:
    def find_by_user(self, user_id) -> Cart | None:
        """Return the user's cart, or None if the user has never had one."""
        carts = self._dao.query.filter(user_id=str(user_id)).all().items
        return carts[0] if carts else None

    def find_by_item(self, item_id) -> Cart | None:
        """Return whichever cart holds the line ``item_id``, if any."""
        for cart in self._dao.query.limit(None).all().items:
            if cart.find_item(item_id) is not None:
                return cart
        return None
