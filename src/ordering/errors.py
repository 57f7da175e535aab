"""Typed failures raised by the Ordering domain.

Every error carries a ``kind`` that survives up to the API boundary, where it
is mapped to a status code. The classes extend Protean's own exceptions so
that code catching ``ValidationError`` or ``ObjectNotFoundError`` keeps
working, and all of them carry a ``messages`` dict of the form
``{field: [message, ...]}``.
"""

from enum import Enum

from protean.exceptions import (
    InvalidOperationError,
    InvalidStateError,
    ObjectNotFoundError,
    ProteanException,
    ValidationError,
)


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    INVALID_ARGUMENT = "invalid_argument"
    CONFLICT = "conflict"
    ILLEGAL_STATE = "illegal_state"


class _WithMessages:
    """Gives Protean exceptions that only take positional args a ``messages`` dict."""

    def __init__(self, messages, **kwargs):
        self.messages = messages
        super().__init__(messages, **kwargs)

    def __str__(self):
        if isinstance(self.messages, dict):
            return f"{dict(self.messages)}"
        return f"{self.messages}"


class NotFoundError(_WithMessages, ObjectNotFoundError):
    """A lookup by id failed."""

    kind = ErrorKind.NOT_FOUND

    @classmethod
    def user(cls, user_id):
        return cls({"user": [f"User not found: {user_id}"]})

    @classmethod
    def cart(cls, cart_id):
        return cls({"cart": [f"Cart not found: {cart_id}"]})

    @classmethod
    def cart_item(cls, item_id):
        return cls({"cart_item": [f"Cart item not found: {item_id}"]})

    @classmethod
    def order(cls, order_id):
        return cls({"order": [f"Order not found: {order_id}"]})

    @classmethod
    def order_item(cls, item_id):
        return cls({"order_item": [f"Order item not found: {item_id}"]})

    @classmethod
    def product(cls, product_id):
        return cls({"product": [f"Product not found: {product_id}"]})


class UnauthorizedError(_WithMessages, ProteanException):
    """The caller could not be identified."""

    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(_WithMessages, ProteanException):
    """The caller is known but may not touch the resource."""

    kind = ErrorKind.FORBIDDEN


class InvalidArgumentError(ValidationError):
    """Malformed input at the domain boundary."""

    kind = ErrorKind.INVALID_ARGUMENT


class ConflictError(_WithMessages, InvalidOperationError):
    """A business rule rejected an otherwise well-formed request."""

    kind = ErrorKind.CONFLICT


class ProductUnavailableError(ConflictError):
    """The product is not available for sale."""


class InvalidStockError(ConflictError):
    """The product has no recorded stock quantity."""


class InsufficientStockError(ConflictError):
    """More units were requested than the product has in stock."""


class IllegalStateError(_WithMessages, InvalidStateError):
    """The aggregate's current status does not permit the operation."""

    kind = ErrorKind.ILLEGAL_STATE
