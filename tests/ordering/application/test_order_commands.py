"""Application tests for commands acting on an existing order."""

import pytest
from ordering.cart.items import AddCartItem
from ordering.errors import ForbiddenError, IllegalStateError, InvalidArgumentError, NotFoundError
from ordering.order.cancellation import CancelOrder, RefundOrder
from ordering.order.confirmation import ChangeOrderStatus, ConfirmOrder, RecalculateOrderStatus
from ordering.order.creation import PlaceOrder
from ordering.order.delivery import MarkOrderDelivered, UpdateDeliveryInfo
from ordering.order.fulfillment import (
    CancelOrderItem,
    DeliverOrderItem,
    ExchangeOrderItem,
    PrepareOrderItem,
    RefundOrderItem,
    ShipOrderItem,
)
from ordering.order.modification import ApplyOrderDiscount, SetOrderDeliveryFee, UpdateStatusHistoryMemo
from ordering.order.order import Order, PaymentStatus
from ordering.order.payment import RecordOrderPayment, RecordOrderPaymentFailure
from ordering.order.status import OrderItemStatus, OrderStatus
from protean import current_domain


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


@pytest.fixture()
def order_id(camera, lens):
    _process(AddCartItem(user_id="user-001", product_id=camera.id, quantity=1))
    _process(AddCartItem(user_id="user-001", product_id=lens.id, quantity=1))
    return _process(
        PlaceOrder(
            user_id="user-001",
            recipient_name="Kim Minji",
            recipient_phone="010-1234-5678",
            road_address="123 Teheran-ro",
            detail_address="Apt 501",
            zip_code="06234",
        )
    )


@pytest.fixture()
def item_ids(order_id, camera, lens):
    by_product = {str(item.product_id): str(item.id) for item in _order(order_id).items}
    return by_product[camera.id], by_product[lens.id]


def _drive(order_id, item_id, *commands):
    result = None
    for command in commands:
        result = _process(command(order_id=order_id, item_id=item_id))
    return result


class TestLoading:
    def test_unknown_order(self):
        with pytest.raises(NotFoundError) as exc_info:
            _process(ConfirmOrder(order_id="order-404"))
        assert exc_info.value.messages == {"order": ["Order not found: order-404"]}

    def test_other_users_order_is_forbidden(self, order_id):
        with pytest.raises(ForbiddenError):
            _process(CancelOrder(order_id=order_id, user_id="user-002", reason="Not mine"))
        assert _order(order_id).status == OrderStatus.PENDING.value


class TestStatusCommands:
    def test_confirm(self, order_id):
        _process(ConfirmOrder(order_id=order_id))

        order = _order(order_id)
        assert order.status == OrderStatus.CONFIRMED.value
        assert order.ordered_history()[-1].reason == "Order confirmed"

    def test_change_status_is_audited(self, order_id):
        _process(ChangeOrderStatus(order_id=order_id, status="Shipped", reason="Courier pickup", memo="box 3"))

        entry = _order(order_id).ordered_history()[-1]
        assert entry.from_status == "Pending"
        assert entry.to_status == "Shipped"
        assert entry.memo == "box 3"

    def test_recalculate(self, order_id, item_ids):
        camera_id, _ = item_ids
        _process(PrepareOrderItem(order_id=order_id, item_id=camera_id))
        _process(ChangeOrderStatus(order_id=order_id, status="Pending", reason="Reset"))

        assert _process(RecalculateOrderStatus(order_id=order_id)) == "Preparing"
        assert _order(order_id).status == OrderStatus.PREPARING.value


class TestItemCommands:
    def test_each_step_rederives_order_status(self, order_id, item_ids):
        camera_id, lens_id = item_ids

        assert _drive(order_id, camera_id, PrepareOrderItem) == "Preparing"
        assert _drive(order_id, camera_id, ShipOrderItem) == "Shipped"
        assert _drive(order_id, lens_id, PrepareOrderItem, ShipOrderItem, DeliverOrderItem) == "Shipped"
        assert _drive(order_id, camera_id, DeliverOrderItem) == "Delivered"

        order = _order(order_id)
        assert order.status == OrderStatus.DELIVERED.value
        assert order.ordered_history() == []

    def test_refund_and_exchange_after_delivery(self, order_id, item_ids):
        camera_id, lens_id = item_ids
        _drive(order_id, camera_id, PrepareOrderItem, ShipOrderItem, DeliverOrderItem, RefundOrderItem)
        status = _drive(order_id, lens_id, PrepareOrderItem, ShipOrderItem, DeliverOrderItem, ExchangeOrderItem)

        assert status == "Delivered"
        order = _order(order_id)
        assert order.find_item(camera_id).status == OrderItemStatus.REFUNDED.value
        assert order.find_item(lens_id).status == OrderItemStatus.EXCHANGED.value

    def test_cancel_every_item(self, order_id, item_ids):
        for item_id in item_ids:
            status = _drive(order_id, item_id, CancelOrderItem)
        assert status == "Cancelled"

    def test_illegal_transition(self, order_id, item_ids):
        camera_id, _ = item_ids
        with pytest.raises(IllegalStateError) as exc_info:
            _drive(order_id, camera_id, ShipOrderItem)

        assert exc_info.value.messages == {"status": ["Cannot change order item status from Ordered to Shipped"]}
        assert _order(order_id).find_item(camera_id).status == OrderItemStatus.ORDERED.value

    def test_unknown_item(self, order_id):
        with pytest.raises(NotFoundError):
            _drive(order_id, "item-404", PrepareOrderItem)


class TestCancelAndRefund:
    def test_owner_cancels(self, order_id):
        _process(CancelOrder(order_id=order_id, user_id="user-001", reason="Changed my mind"))

        order = _order(order_id)
        assert order.status == OrderStatus.CANCELLED.value
        assert all(item.status == OrderItemStatus.CANCELLED.value for item in order.items)
        assert order.payment_info.payment_status == PaymentStatus.CANCELED.value

    def test_cancel_blocked_by_delivered_item_changes_nothing(self, order_id, item_ids):
        camera_id, lens_id = item_ids
        _drive(order_id, camera_id, PrepareOrderItem, ShipOrderItem, DeliverOrderItem)
        _process(ChangeOrderStatus(order_id=order_id, status="Confirmed", reason="Back-office"))

        with pytest.raises(IllegalStateError):
            _process(CancelOrder(order_id=order_id, user_id="user-001", reason="Too late"))

        order = _order(order_id)
        assert order.status == OrderStatus.CONFIRMED.value
        assert order.find_item(lens_id).status == OrderItemStatus.ORDERED.value

    def test_refund_delivered_order(self, order_id, item_ids):
        for item_id in item_ids:
            _drive(order_id, item_id, PrepareOrderItem, ShipOrderItem, DeliverOrderItem)

        _process(RefundOrder(order_id=order_id, user_id="user-001", reason="Damaged"))

        order = _order(order_id)
        assert order.status == OrderStatus.REFUNDED.value
        assert all(item.status == OrderItemStatus.REFUNDED.value for item in order.items)

    def test_refund_requires_delivery(self, order_id):
        with pytest.raises(IllegalStateError):
            _process(RefundOrder(order_id=order_id, reason="Too early"))


class TestDeliveryCommands:
    def test_owner_updates_delivery_info(self, order_id):
        _process(UpdateDeliveryInfo(order_id=order_id, user_id="user-001", recipient_name="Lee Jun", memo="Call first"))

        info = _order(order_id).delivery_info
        assert info.recipient_name == "Lee Jun"
        assert info.road_address == "123 Teheran-ro"
        assert info.detail_address is None
        assert info.memo == "Call first"

    def test_other_user_cannot_update(self, order_id):
        with pytest.raises(ForbiddenError):
            _process(UpdateDeliveryInfo(order_id=order_id, user_id="user-002", recipient_name="Mallory"))

    def test_mark_delivered(self, order_id):
        _process(MarkOrderDelivered(order_id=order_id, tracking_number="TRACK-1"))

        order = _order(order_id)
        assert order.status == OrderStatus.DELIVERED.value
        assert order.delivery_info.tracking_number == "TRACK-1"
        assert order.ordered_history()[-1].reason == "Delivered"


class TestAdjustments:
    def test_discount_and_fee(self, order_id):
        _process(ApplyOrderDiscount(order_id=order_id, amount=50000.0))
        _process(SetOrderDeliveryFee(order_id=order_id, amount=3000.0))

        order = _order(order_id)
        assert order.final_amount == 350000.0 - 50000.0 + 3000.0

    def test_negative_discount(self, order_id):
        with pytest.raises(InvalidArgumentError):
            _process(ApplyOrderDiscount(order_id=order_id, amount=-1.0))

    def test_history_memo(self, order_id):
        _process(ConfirmOrder(order_id=order_id))
        entry_id = str(_order(order_id).ordered_history()[0].id)

        _process(UpdateStatusHistoryMemo(order_id=order_id, entry_id=entry_id, memo="Called customer"))

        entry = _order(order_id).ordered_history()[0]
        assert entry.memo == "Called customer"
        assert entry.reason == "Order confirmed"
        assert entry.to_status == "Confirmed"

    def test_history_memo_unknown_entry(self, order_id):
        with pytest.raises(NotFoundError):
            _process(UpdateStatusHistoryMemo(order_id=order_id, entry_id="entry-404", memo="x"))


class TestPaymentCommands:
    def test_record_payment(self, order_id):
        _process(RecordOrderPayment(order_id=order_id, payment_id="pay-001", transaction_id="txn-001"))

        info = _order(order_id).payment_info
        assert info.payment_status == PaymentStatus.DONE.value
        assert info.payment_id == "pay-001"

    def test_record_failure(self, order_id):
        _process(RecordOrderPaymentFailure(order_id=order_id))
        assert _order(order_id).payment_info.payment_status == PaymentStatus.ABORTED.value
