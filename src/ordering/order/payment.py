"""Payment outcomes — commands and handler.

The payment gateway itself lives outside the ordering core; these commands
record what it reported.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.access import load_order
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class RecordOrderPayment:
    order_id = Identifier(required=True)
    payment_id = String(required=True, max_length=200)
    transaction_id = String(required=True, max_length=200)


@ordering.command(part_of="Order")
class RecordOrderPaymentFailure:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(RecordOrderPayment)
    def record_payment(self, command):
        order = load_order(command.order_id)
        order.record_payment(command.payment_id, command.transaction_id)
        current_domain.repository_for(Order).add(order)
        logger.info("Order payment recorded", order_id=str(order.id), payment_id=command.payment_id)

    @handle(RecordOrderPaymentFailure)
    def record_payment_failure(self, command):
        order = load_order(command.order_id)
        order.record_payment_failure()
        current_domain.repository_for(Order).add(order)
        logger.warning("Order payment failed", order_id=str(order.id))
