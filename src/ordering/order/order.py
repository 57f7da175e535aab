"""Order aggregate — a committed purchase and its fulfilment lifecycle.

An order is created once, at checkout, from the validated contents of a
cart. Each line (``OrderItem``) carries a price snapshot fixed at creation
and advances through its own state machine (see ``ordering.order.status``).

The order status moves along two paths:

- ``change_status`` is the audited path: it overwrites the status and appends
  an ``OrderStatusHistory`` entry. Confirmation, cancellation, refunds,
  delivery and admin overrides use it.
- ``calculate_status`` derives the status from the item statuses and leaves
  no history entry behind.

Amounts: ``total_amount`` is refreshed from the live items whenever the
items or the discount/fee change, and ``final_amount`` is always
``total_amount - discount_amount + delivery_fee`` after such a refresh.
Item status changes never touch amounts.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering import config
from ordering.domain import ordering
from ordering.errors import IllegalStateError, InvalidArgumentError, NotFoundError
from ordering.order.events import (
    DeliveryInfoUpdated,
    OrderAmountsAdjusted,
    OrderCancelled,
    OrderDelivered,
    OrderItemStatusChanged,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
    PaymentRecorded,
)
from ordering.order.status import (
    ITEM_CANCELLABLE,
    ITEM_EXCHANGEABLE,
    ITEM_REFUNDABLE,
    ORDER_CANCELLABLE,
    ORDER_REFUNDABLE,
    OrderItemStatus,
    OrderStatus,
    aggregate_order_status,
    assert_item_transition,
    item_can_transition,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentMethod(Enum):
    CARD = "Card"
    BANK_TRANSFER = "Bank_Transfer"
    MOBILE_PAY = "Mobile_Pay"
    POINT = "Point"


class PaymentStatus(Enum):
    READY = "Ready"
    IN_PROGRESS = "In_Progress"
    DONE = "Done"
    CANCELED = "Canceled"
    PARTIAL_CANCELED = "Partial_Canceled"
    ABORTED = "Aborted"
    EXPIRED = "Expired"
    WAITING_FOR_DEPOSIT = "Waiting_For_Deposit"


def _present(value):
    return value is not None and str(value).strip() != ""


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
_DELIVERY_FIELDS = (
    "recipient_name",
    "recipient_phone",
    "road_address",
    "detail_address",
    "zip_code",
    "memo",
    "tracking_number",
    "delivered_at",
)


@ordering.value_object(part_of="Order")
class DeliveryInfo:
    """Where and to whom the order is delivered.

    Updates are partial: the required parts of the address (name, phone,
    road address, zip code) keep their current value when the update leaves
    them empty, while ``detail_address`` and ``memo`` are always replaced,
    even by None.
    """

    recipient_name = String(max_length=50)
    recipient_phone = String(max_length=20)
    road_address = String(max_length=200)
    detail_address = String(max_length=200)
    zip_code = String(max_length=10)
    memo = String(max_length=500)
    tracking_number = String(max_length=100)
    delivered_at = DateTime()

    def _replace(self, **changes):
        values = {name: getattr(self, name) for name in _DELIVERY_FIELDS}
        values.update(changes)
        return DeliveryInfo(**values)

    def updated(
        self,
        recipient_name=None,
        recipient_phone=None,
        road_address=None,
        detail_address=None,
        zip_code=None,
        memo=None,
    ):
        return self._replace(
            recipient_name=recipient_name if _present(recipient_name) else self.recipient_name,
            recipient_phone=recipient_phone if _present(recipient_phone) else self.recipient_phone,
            road_address=road_address if _present(road_address) else self.road_address,
            zip_code=zip_code if _present(zip_code) else self.zip_code,
            detail_address=detail_address,
            memo=memo,
        )

    def delivered(self, tracking_number):
        """Stamp the tracking number and delivery time, whatever they were before."""
        return self._replace(tracking_number=tracking_number, delivered_at=datetime.now(UTC))

    def full_address(self):
        parts = [self.road_address, self.detail_address]
        address = " ".join(p for p in parts if _present(p))
        return f"({self.zip_code}) {address}" if _present(self.zip_code) else address


_PAYMENT_FIELDS = (
    "payment_id",
    "transaction_id",
    "payment_status",
    "paid_at",
    "cancelled_at",
    "cancel_reason",
)


@ordering.value_object(part_of="Order")
class PaymentInfo:
    """Outcome of the payment for an order.

    The ``completed``/``cancelled``/``refunded``/``failed`` helpers set the
    status they are named after without checking where it came from: the
    payment provider is the authority on payment state.
    """

    payment_id = String(max_length=200)
    transaction_id = String(max_length=200)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.READY.value)
    paid_at = DateTime()
    cancelled_at = DateTime()
    cancel_reason = String(max_length=500)

    def _replace(self, **changes):
        values = {name: getattr(self, name) for name in _PAYMENT_FIELDS}
        values.update(changes)
        return PaymentInfo(**values)

    def completed(self, payment_id, transaction_id):
        return self._replace(
            payment_id=payment_id,
            transaction_id=transaction_id,
            payment_status=PaymentStatus.DONE.value,
            paid_at=datetime.now(UTC),
        )

    def cancelled(self, reason):
        return self._replace(
            payment_status=PaymentStatus.CANCELED.value,
            cancelled_at=datetime.now(UTC),
            cancel_reason=reason,
        )

    def refunded(self):
        # Refunds are reported by the provider as cancellations
        return self._replace(payment_status=PaymentStatus.CANCELED.value)

    def failed(self):
        return self._replace(payment_status=PaymentStatus.ABORTED.value)

    def is_paid(self):
        return self.payment_status == PaymentStatus.DONE.value


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A priced line of an order.

    ``unit_price`` and ``total_price`` are fixed when the item is created and
    do not follow later catalogue price changes.
    """

    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    status = String(choices=OrderItemStatus, default=OrderItemStatus.ORDERED.value)

    @classmethod
    def create(cls, product, quantity):
        """Price ``quantity`` units of ``product`` after re-checking its stock."""
        if quantity is None or quantity <= 0:
            raise InvalidArgumentError({"quantity": ["Quantity must be greater than zero"]})
        if product.stock_quantity is None or product.stock_quantity < quantity:
            raise InvalidArgumentError(
                {
                    "quantity": [
                        f"Insufficient stock for {product.name}: "
                        f"requested {quantity}, available {product.stock_quantity}"
                    ]
                }
            )

        return cls(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price=product.price,
            total_price=product.price * quantity,
            status=OrderItemStatus.ORDERED.value,
        )

    def calculate_total_price(self):
        return self.unit_price * self.quantity

    def _move_to(self, target):
        assert_item_transition(self.status, target)
        self.status = target.value

    def mark_as_preparing(self):
        self._move_to(OrderItemStatus.PREPARING)

    def mark_as_shipped(self):
        self._move_to(OrderItemStatus.SHIPPED)

    def mark_as_delivered(self):
        self._move_to(OrderItemStatus.DELIVERED)

    def cancel(self):
        """Cancel the line. Allowed until delivery, shipped lines included."""
        self._move_to(OrderItemStatus.CANCELLED)

    def refund(self):
        self._move_to(OrderItemStatus.REFUNDED)

    def exchange(self):
        self._move_to(OrderItemStatus.EXCHANGED)

    def can_cancel(self):
        return OrderItemStatus(self.status) in ITEM_CANCELLABLE

    def can_refund(self):
        return OrderItemStatus(self.status) in ITEM_REFUNDABLE

    def can_exchange(self):
        return OrderItemStatus(self.status) in ITEM_EXCHANGEABLE


@ordering.entity(part_of="Order")
class OrderStatusHistory:
    """One audited order status change. Only ``reason`` and ``memo`` may be edited later."""

    sequence = Integer(required=True, min_value=1)
    from_status = String(choices=OrderStatus, required=True)
    to_status = String(choices=OrderStatus, required=True)
    reason = String(max_length=500)
    memo = Text()
    changed_at = DateTime(required=True)

    @classmethod
    def record(cls, sequence, from_status, to_status, reason=None, memo=None):
        return cls(
            sequence=sequence,
            from_status=OrderStatus(from_status).value,
            to_status=OrderStatus(to_status).value,
            reason=reason,
            memo=memo,
            changed_at=datetime.now(UTC),
        )

    def update_memo(self, memo):
        self.memo = memo

    def update_reason(self, reason):
        self.reason = reason

    def is_same_status_change(self, from_status, to_status):
        return (
            self.from_status == OrderStatus(from_status).value
            and self.to_status == OrderStatus(to_status).value
        )

    def is_cancellation(self):
        return self.to_status == OrderStatus.CANCELLED.value

    def is_refund(self):
        return self.to_status == OrderStatus.REFUNDED.value

    def is_delivery_related(self):
        return self.to_status in (OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    user_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod)
    total_amount = Float(default=0.0)
    delivery_fee = Float(default=0.0)
    discount_amount = Float(default=0.0)
    final_amount = Float(default=0.0)
    items = HasMany(OrderItem)
    status_history = HasMany(OrderStatusHistory)
    delivery_info = ValueObject(DeliveryInfo)
    payment_info = ValueObject(PaymentInfo)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @staticmethod
    def generate_order_number():
        now = datetime.now(UTC)
        return f"{config.ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-{now:%H%M%S}-{uuid4().hex[:6].upper()}"

    @classmethod
    def place(
        cls,
        user_id,
        items,
        delivery_info=None,
        payment_method=None,
        delivery_fee=0.0,
        discount_amount=0.0,
        order_id=None,
    ):
        """Create a PENDING order from already-priced items."""
        if not items:
            raise InvalidArgumentError({"items": ["An order needs at least one item"]})
        _check_amount("delivery_fee", delivery_fee)
        _check_amount("discount_amount", discount_amount)

        now = datetime.now(UTC)
        identity = {"id": str(order_id)} if order_id else {}
        order = cls(
            **identity,
            order_number=cls.generate_order_number(),
            user_id=str(user_id),
            status=OrderStatus.PENDING.value,
            payment_method=PaymentMethod(payment_method).value if payment_method else None,
            delivery_fee=delivery_fee or 0.0,
            discount_amount=discount_amount or 0.0,
            delivery_info=delivery_info,
            payment_info=PaymentInfo(payment_status=PaymentStatus.READY.value),
            created_at=now,
            updated_at=now,
        )
        with atomic_change(order):
            for item in items:
                order.add_items(item)
            order.refresh_amounts()

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                            "total_price": item.total_price,
                        }
                        for item in items
                    ]
                ),
                total_amount=order.total_amount,
                delivery_fee=order.delivery_fee,
                discount_amount=order.discount_amount,
                final_amount=order.final_amount,
                payment_method=order.payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Amounts
    # -------------------------------------------------------------------
    def calculate_total_amount(self):
        return sum((item.total_price for item in self.items), 0.0)

    def calculate_final_amount(self):
        return (self.total_amount or 0.0) - (self.discount_amount or 0.0) + (self.delivery_fee or 0.0)

    def refresh_amounts(self):
        """Pull ``total_amount`` from the items, then re-derive ``final_amount``."""
        self.total_amount = self.calculate_total_amount()
        self.final_amount = self.calculate_final_amount()

    def apply_discount(self, amount):
        _check_amount("discount_amount", amount)
        with atomic_change(self):
            self.discount_amount = amount or 0.0
            self.refresh_amounts()
            self.updated_at = datetime.now(UTC)
        self._amounts_adjusted()

    def set_delivery_fee(self, amount):
        _check_amount("delivery_fee", amount)
        with atomic_change(self):
            self.delivery_fee = amount or 0.0
            self.refresh_amounts()
            self.updated_at = datetime.now(UTC)
        self._amounts_adjusted()

    def _amounts_adjusted(self):
        self.raise_(
            OrderAmountsAdjusted(
                order_id=str(self.id),
                total_amount=self.total_amount,
                discount_amount=self.discount_amount,
                delivery_fee=self.delivery_fee,
                final_amount=self.final_amount,
            )
        )

    # -------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------
    def find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise NotFoundError.order_item(item_id)
        return item

    def add_item(self, item):
        self._require_pending("Items can only be added to a pending order")
        with atomic_change(self):
            self.add_items(item)
            self.refresh_amounts()
            self.updated_at = datetime.now(UTC)

    def remove_item(self, item_id):
        self._require_pending("Items can only be removed from a pending order")
        item = self.find_item(item_id)
        with atomic_change(self):
            self.remove_items(item)
            self.refresh_amounts()
            self.updated_at = datetime.now(UTC)

    def _require_pending(self, message):
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise IllegalStateError({"status": [f"{message} (current status: {self.status})"]})

    def _advance_item(self, item_id, transition):
        item = self.find_item(item_id)
        previous = item.status
        transition(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderItemStatusChanged(
                order_id=str(self.id),
                item_id=str(item.id),
                product_id=str(item.product_id),
                from_status=previous,
                to_status=item.status,
            )
        )
        return item

    def prepare_item(self, item_id):
        return self._advance_item(item_id, OrderItem.mark_as_preparing)

    def ship_item(self, item_id):
        return self._advance_item(item_id, OrderItem.mark_as_shipped)

    def deliver_item(self, item_id):
        return self._advance_item(item_id, OrderItem.mark_as_delivered)

    def cancel_item(self, item_id):
        return self._advance_item(item_id, OrderItem.cancel)

    def refund_item(self, item_id):
        return self._advance_item(item_id, OrderItem.refund)

    def exchange_item(self, item_id):
        return self._advance_item(item_id, OrderItem.exchange)

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def change_status(self, new_status, reason=None, memo=None):
        """Overwrite the status and append a history entry. No transition guard applies here."""
        new_status = OrderStatus(new_status)
        previous = self.status
        now = datetime.now(UTC)

        entry = OrderStatusHistory.record(
            sequence=len(self.status_history) + 1,
            from_status=previous,
            to_status=new_status,
            reason=reason,
            memo=memo,
        )
        with atomic_change(self):
            self.status = new_status.value
            self.add_status_history(entry)
            self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=previous,
                to_status=new_status.value,
                reason=reason,
                changed_at=now,
            )
        )
        return entry

    def calculate_status(self):
        """Derive the status from the items. Leaves no history entry."""
        self.status = aggregate_order_status(item.status for item in self.items).value
        return OrderStatus(self.status)

    def ordered_history(self):
        """History entries in the order they were recorded."""
        return sorted(self.status_history, key=lambda entry: entry.sequence)

    def find_history_entry(self, entry_id):
        entry = next((h for h in self.status_history if str(h.id) == str(entry_id)), None)
        if entry is None:
            raise NotFoundError({"status_history": [f"Status history entry not found: {entry_id}"]})
        return entry

    def can_cancel(self):
        return OrderStatus(self.status) in ORDER_CANCELLABLE

    def can_refund(self):
        return OrderStatus(self.status) in ORDER_REFUNDABLE

    def confirm(self, reason="Order confirmed"):
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise IllegalStateError({"status": [f"Only pending orders can be confirmed (current status: {self.status})"]})
        self.change_status(OrderStatus.CONFIRMED, reason)

    def cancel(self, reason=None):
        """Cancel the order and every line of it, or nothing at all.

        Lines that are already cancelled are left alone. If any other line can
        no longer be cancelled the whole request fails before anything changes.
        """
        if not self.can_cancel():
            raise IllegalStateError({"status": [f"Order cannot be cancelled in status {self.status}"]})

        to_cancel = [item for item in self.items if item.status != OrderItemStatus.CANCELLED.value]
        blocked = [item for item in to_cancel if not item_can_transition(item.status, OrderItemStatus.CANCELLED)]
        if blocked:
            raise IllegalStateError(
                {
                    "items": [
                        f"Order item {item.id} cannot be cancelled in status {item.status}" for item in blocked
                    ]
                }
            )

        now = datetime.now(UTC)
        with atomic_change(self):
            for item in to_cancel:
                item.cancel()
            self.change_status(OrderStatus.CANCELLED, reason)
            if self.payment_info is not None:
                self.payment_info = self.payment_info.cancelled(reason)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                cancelled_items=len(to_cancel),
                cancelled_at=now,
            )
        )

    def refund(self, reason=None):
        """Refund every delivered line and move the order to REFUNDED."""
        if not self.can_refund():
            raise IllegalStateError({"status": [f"Order cannot be refunded in status {self.status}"]})

        to_refund = [item for item in self.items if item.status == OrderItemStatus.DELIVERED.value]
        now = datetime.now(UTC)
        with atomic_change(self):
            for item in to_refund:
                item.refund()
            self.change_status(OrderStatus.REFUNDED, reason)
            if self.payment_info is not None:
                self.payment_info = self.payment_info.refunded()

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                reason=reason,
                refunded_items=len(to_refund),
                refund_amount=sum((item.total_price for item in to_refund), 0.0),
                refunded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------
    def update_delivery_info(
        self,
        recipient_name=None,
        recipient_phone=None,
        road_address=None,
        detail_address=None,
        zip_code=None,
        memo=None,
    ):
        current = self.delivery_info if self.delivery_info is not None else DeliveryInfo()
        self.delivery_info = current.updated(
            recipient_name=recipient_name,
            recipient_phone=recipient_phone,
            road_address=road_address,
            detail_address=detail_address,
            zip_code=zip_code,
            memo=memo,
        )
        self.updated_at = datetime.now(UTC)

        self.raise_(
            DeliveryInfoUpdated(
                order_id=str(self.id),
                recipient_name=self.delivery_info.recipient_name,
                road_address=self.delivery_info.road_address,
                zip_code=self.delivery_info.zip_code,
            )
        )

    def mark_as_delivered(self, tracking_number=None):
        now = datetime.now(UTC)
        with atomic_change(self):
            if self.delivery_info is not None:
                self.delivery_info = self.delivery_info.delivered(tracking_number)
            self.change_status(OrderStatus.DELIVERED, "Delivered")

        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                tracking_number=tracking_number,
                delivered_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment(self, payment_id, transaction_id):
        current = self.payment_info if self.payment_info is not None else PaymentInfo()
        self.payment_info = current.completed(payment_id, transaction_id)
        self.updated_at = datetime.now(UTC)
        self._payment_recorded()

    def record_payment_failure(self):
        current = self.payment_info if self.payment_info is not None else PaymentInfo()
        self.payment_info = current.failed()
        self.updated_at = datetime.now(UTC)
        self._payment_recorded()

    def _payment_recorded(self):
        self.raise_(
            PaymentRecorded(
                order_id=str(self.id),
                payment_id=self.payment_info.payment_id,
                transaction_id=self.payment_info.transaction_id,
                payment_status=self.payment_info.payment_status,
            )
        )


def _check_amount(field, amount):
    if amount is not None and amount < 0:
        raise InvalidArgumentError({field: ["Amount must be zero or greater"]})


@ordering.repository(part_of=Order)
class OrderRepository:
    def find_by_user(self, user_id) -> list[Order]:
        return self._dao.query.filter(user_id=str(user_id)).all().items

    def find_by_order_number(self, order_number) -> Order | None:
        orders = self._dao.query.filter(order_number=order_number).all().items
        return orders[0] if orders else None
