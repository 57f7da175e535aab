"""Order adjustments — discount, delivery fee and history annotations."""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.access import load_order
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ApplyOrderDiscount:
    order_id = Identifier(required=True)
    amount = Float()


@ordering.command(part_of="Order")
class SetOrderDeliveryFee:
    order_id = Identifier(required=True)
    amount = Float()


@ordering.command(part_of="Order")
class UpdateStatusHistoryMemo:
    """Annotate an existing history entry. The recorded transition itself cannot change."""

    order_id = Identifier(required=True)
    entry_id = Identifier(required=True)
    memo = Text()
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class ModifyOrderHandler:
    @handle(ApplyOrderDiscount)
    def apply_discount(self, command):
        order = load_order(command.order_id)
        order.apply_discount(command.amount)
        current_domain.repository_for(Order).add(order)
        logger.info("Order discount applied", order_id=str(order.id), final_amount=order.final_amount)

    @handle(SetOrderDeliveryFee)
    def set_delivery_fee(self, command):
        order = load_order(command.order_id)
        order.set_delivery_fee(command.amount)
        current_domain.repository_for(Order).add(order)
        logger.info("Order delivery fee set", order_id=str(order.id), final_amount=order.final_amount)

    @handle(UpdateStatusHistoryMemo)
    def update_history_memo(self, command):
        order = load_order(command.order_id)
        entry = order.find_history_entry(command.entry_id)
        entry.update_memo(command.memo)
        if command.reason is not None:
            entry.update_reason(command.reason)
        current_domain.repository_for(Order).add(order)
