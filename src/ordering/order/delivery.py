"""Delivery details — commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.access import load_order
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateDeliveryInfo:
    """Change recipient or address details.

    Empty recipient name, phone, road address or zip code keep their current
    value. Detail address and memo are replaced as given, including by nothing.
    """

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    recipient_name = String(max_length=50)
    recipient_phone = String(max_length=20)
    road_address = String(max_length=200)
    detail_address = String(max_length=200)
    zip_code = String(max_length=10)
    memo = String(max_length=500)


@ordering.command(part_of="Order")
class MarkOrderDelivered:
    order_id = Identifier(required=True)
    tracking_number = String(max_length=100)


@ordering.command_handler(part_of=Order)
class DeliveryHandler:
    @handle(UpdateDeliveryInfo)
    def update_delivery_info(self, command):
        order = load_order(command.order_id, user_id=command.user_id)
        order.update_delivery_info(
            recipient_name=command.recipient_name,
            recipient_phone=command.recipient_phone,
            road_address=command.road_address,
            detail_address=command.detail_address,
            zip_code=command.zip_code,
            memo=command.memo,
        )
        current_domain.repository_for(Order).add(order)
        logger.info("Delivery info updated", order_id=str(order.id))

    @handle(MarkOrderDelivered)
    def mark_order_delivered(self, command):
        order = load_order(command.order_id)
        order.mark_as_delivered(command.tracking_number)
        current_domain.repository_for(Order).add(order)
        logger.info("Order delivered", order_id=str(order.id), tracking_number=command.tracking_number)
