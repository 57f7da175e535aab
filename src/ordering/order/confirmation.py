"""Order-level status commands: confirmation, admin overrides and re-derivation."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.access import load_order
from ordering.order.order import Order
from ordering.order.status import OrderStatus

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500, default="Order confirmed")


@ordering.command(part_of="Order")
class ChangeOrderStatus:
    """Set the order status directly. Audited, but not checked against any transition rule."""

    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    reason = String(max_length=500)
    memo = Text()


@ordering.command(part_of="Order")
class RecalculateOrderStatus:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(ConfirmOrder)
    def confirm_order(self, command):
        order = load_order(command.order_id)
        order.confirm(command.reason)
        current_domain.repository_for(Order).add(order)
        logger.info("Order confirmed", order_id=str(order.id))

    @handle(ChangeOrderStatus)
    def change_order_status(self, command):
        order = load_order(command.order_id)
        previous = order.status
        order.change_status(command.status, command.reason, command.memo)
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Order status changed",
            order_id=str(order.id),
            from_status=previous,
            to_status=order.status,
            reason=command.reason,
        )

    @handle(RecalculateOrderStatus)
    def recalculate_order_status(self, command):
        order = load_order(command.order_id)
        status = order.calculate_status()
        current_domain.repository_for(Order).add(order)
        return status.value
