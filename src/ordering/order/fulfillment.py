"""Order fulfilment — per-item commands and handler.

Each command advances one order line through its state machine and then
re-derives the order status from all of its lines.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.access import load_order
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PrepareOrderItem:
    """The seller started preparing the line for shipment."""

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command(part_of="Order")
class ShipOrderItem:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command(part_of="Order")
class DeliverOrderItem:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command(part_of="Order")
class CancelOrderItem:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command(part_of="Order")
class RefundOrderItem:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command(part_of="Order")
class ExchangeOrderItem:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class OrderItemFulfillmentHandler:
    def _advance(self, command, transition):
        order = load_order(command.order_id)
        item = transition(order, command.item_id)
        order.calculate_status()
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order item status changed",
            order_id=str(order.id),
            item_id=str(item.id),
            item_status=item.status,
            order_status=order.status,
        )
        return order.status

    @handle(PrepareOrderItem)
    def prepare_item(self, command):
        return self._advance(command, Order.prepare_item)

    @handle(ShipOrderItem)
    def ship_item(self, command):
        return self._advance(command, Order.ship_item)

    @handle(DeliverOrderItem)
    def deliver_item(self, command):
        return self._advance(command, Order.deliver_item)

    @handle(CancelOrderItem)
    def cancel_item(self, command):
        return self._advance(command, Order.cancel_item)

    @handle(RefundOrderItem)
    def refund_item(self, command):
        return self._advance(command, Order.refund_item)

    @handle(ExchangeOrderItem)
    def exchange_item(self, command):
        return self._advance(command, Order.exchange_item)
