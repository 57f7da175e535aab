"""Order cancellation and refund — commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.access import load_order
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    """Cancel an order on behalf of its owner."""

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String(max_length=500)


@ordering.command(part_of="Order")
class RefundOrder:
    order_id = Identifier(required=True)
    user_id = Identifier()  # Optional: omitted for back-office refunds
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id, user_id=command.user_id)
        order.cancel(reason=command.reason)
        current_domain.repository_for(Order).add(order)
        logger.info("Order cancelled", order_id=str(order.id), reason=command.reason)

    @handle(RefundOrder)
    def refund_order(self, command):
        order = load_order(command.order_id, user_id=command.user_id)
        order.refund(reason=command.reason)
        current_domain.repository_for(Order).add(order)
        logger.info("Order refunded", order_id=str(order.id), reason=command.reason)
