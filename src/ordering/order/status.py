"""Order and order-item status state machines.

Item transitions:

    ORDERED -> PREPARING -> SHIPPED -> DELIVERED -> REFUNDED | EXCHANGED
    ORDERED | PREPARING | SHIPPED -> CANCELLED

CANCELLED, REFUNDED and EXCHANGED are terminal.

The order's own status is normally derived from its items via
``aggregate_order_status``; explicit moves (confirm, cancel, refund, admin
overrides) go through the audited ``Order.change_status`` path instead.
"""

from enum import Enum

from ordering.errors import IllegalStateError


class OrderItemStatus(Enum):
    ORDERED = "Ordered"
    PREPARING = "Preparing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"
    EXCHANGED = "Exchanged"


class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PREPARING = "Preparing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"
    EXCHANGED = "Exchanged"


_ITEM_TRANSITIONS = {
    OrderItemStatus.ORDERED: {OrderItemStatus.PREPARING, OrderItemStatus.CANCELLED},
    OrderItemStatus.PREPARING: {OrderItemStatus.SHIPPED, OrderItemStatus.CANCELLED},
    OrderItemStatus.SHIPPED: {OrderItemStatus.DELIVERED, OrderItemStatus.CANCELLED},
    OrderItemStatus.DELIVERED: {OrderItemStatus.REFUNDED, OrderItemStatus.EXCHANGED},
    OrderItemStatus.CANCELLED: set(),  # Terminal
    OrderItemStatus.REFUNDED: set(),  # Terminal
    OrderItemStatus.EXCHANGED: set(),  # Terminal
}

# Advisory predicates. ITEM_CANCELLABLE is narrower than what the cancel
# mutator accepts: a SHIPPED item can still be cancelled.
ITEM_CANCELLABLE = {OrderItemStatus.ORDERED, OrderItemStatus.PREPARING}
ITEM_REFUNDABLE = {OrderItemStatus.DELIVERED}
ITEM_EXCHANGEABLE = {OrderItemStatus.DELIVERED}

ORDER_CANCELLABLE = {OrderStatus.PENDING, OrderStatus.CONFIRMED}
ORDER_REFUNDABLE = {OrderStatus.DELIVERED}

# Fulfilment progress of an item still on its way to the customer, and the
# order status each level maps to
_ITEM_PROGRESS = {
    OrderItemStatus.ORDERED: 0,
    OrderItemStatus.PREPARING: 1,
    OrderItemStatus.SHIPPED: 2,
}
_PROGRESS_TO_ORDER_STATUS = {
    0: OrderStatus.CONFIRMED,
    1: OrderStatus.PREPARING,
    2: OrderStatus.SHIPPED,
}
_DELIVERED_OR_LATER = {OrderItemStatus.DELIVERED, OrderItemStatus.REFUNDED, OrderItemStatus.EXCHANGED}


def _as_item_status(status) -> OrderItemStatus:
    return status if isinstance(status, OrderItemStatus) else OrderItemStatus(status)


def item_can_transition(current, target) -> bool:
    return _as_item_status(target) in _ITEM_TRANSITIONS[_as_item_status(current)]


def assert_item_transition(current, target) -> None:
    """Raise ``IllegalStateError`` unless ``current -> target`` is a legal item move."""
    current, target = _as_item_status(current), _as_item_status(target)
    if target not in _ITEM_TRANSITIONS[current]:
        raise IllegalStateError(
            {"status": [f"Cannot change order item status from {current.value} to {target.value}"]}
        )


def aggregate_order_status(item_statuses) -> OrderStatus:
    """Derive an order's status from the statuses of its items.

    Cancelled items are ignored unless every item is cancelled.

    - no items: PENDING
    - every item cancelled: CANCELLED
    - every remaining item refunded (or exchanged): REFUNDED (or EXCHANGED)
    - every remaining item delivered, possibly refunded or exchanged since: DELIVERED
    - otherwise the furthest stage reached by an item not yet delivered,
      so one item in transit keeps the whole order SHIPPED
    """
    statuses = [_as_item_status(s) for s in item_statuses]
    if not statuses:
        return OrderStatus.PENDING

    active = [s for s in statuses if s != OrderItemStatus.CANCELLED]
    if not active:
        return OrderStatus.CANCELLED

    if all(s == OrderItemStatus.REFUNDED for s in active):
        return OrderStatus.REFUNDED
    if all(s == OrderItemStatus.EXCHANGED for s in active):
        return OrderStatus.EXCHANGED

    undelivered = [s for s in active if s not in _DELIVERED_OR_LATER]
    if not undelivered:
        return OrderStatus.DELIVERED

    progress = max(_ITEM_PROGRESS[s] for s in undelivered)
    return _PROGRESS_TO_ORDER_STATUS[progress]
