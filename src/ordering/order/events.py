"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A new order was created from the contents of a user's cart."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity, unit_price, total_price}
    total_amount = Float(required=True)
    delivery_fee = Float(required=True)
    discount_amount = Float(required=True)
    final_amount = Float(required=True)
    payment_method = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved to a new status through the audited path."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    reason = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderItemStatusChanged:
    """One line of the order advanced through its fulfilment state machine."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = "v1"

    order_id = Identifier(required=True)
    reason = String()
    cancelled_items = Integer(required=True)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderRefunded:
    __version__ = "v1"

    order_id = Identifier(required=True)
    reason = String()
    refunded_items = Integer(required=True)
    refund_amount = Float(required=True)
    refunded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    __version__ = "v1"

    order_id = Identifier(required=True)
    tracking_number = String()
    delivered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class DeliveryInfoUpdated:
    """The recipient or address details of an order changed."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    recipient_name = String()
    road_address = String()
    zip_code = String()


@ordering.event(part_of="Order")
class OrderAmountsAdjusted:
    """A discount or delivery fee change re-derived the payable amount."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    total_amount = Float(required=True)
    discount_amount = Float(required=True)
    delivery_fee = Float(required=True)
    final_amount = Float(required=True)


@ordering.event(part_of="Order")
class PaymentRecorded:
    """A payment outcome was recorded against the order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    payment_id = String()
    transaction_id = String()
    payment_status = String(required=True)
