"""Order placement — turns the caller's cart into an order.

Checkout re-validates every cart line against the catalogue as it stands
now, prices the lines at the current product price, and asks the catalogue
to commit the purchased stock for all lines at once. The stock commit is the
handler's last step and is keyed by the order id. If another checkout
consumed the stock in the meantime, the commit fails and nothing is saved:
the cart keeps its contents and no order is created. If the order itself
fails to persist after stock was committed, ``checkout`` hands the stock
back.
"""

from uuid import uuid4

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering import config
from ordering.cart.cart import Cart
from ordering.catalogue import get_catalog
from ordering.domain import ordering
from ordering.errors import IllegalStateError, NotFoundError
from ordering.identity import get_user_directory
from ordering.order.order import DeliveryInfo, Order, OrderItem, PaymentMethod
from ordering.stock.validator import ensure_available, load_product

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    order_id = Identifier()
    recipient_name = String(required=True, max_length=50)
    recipient_phone = String(required=True, max_length=20)
    road_address = String(required=True, max_length=200)
    detail_address = String(max_length=200)
    zip_code = String(required=True, max_length=10)
    delivery_memo = String(max_length=500)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CARD.value)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        user_id = str(command.user_id)
        order_id = str(command.order_id or uuid4())
        if not get_user_directory().exists(user_id):
            raise NotFoundError.user(user_id)

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.find_by_user(user_id)
        if cart is None or not cart.can_place_order():
            raise IllegalStateError({"cart": ["Cannot place an order from an empty or inactive cart"]})

        items = []
        stock_lines = {}
        for cart_item in cart.items:
            product = ensure_available(load_product(cart_item.product_id), cart_item.quantity)
            items.append(OrderItem.create(product, cart_item.quantity))
            stock_lines[product.id] = cart_item.quantity

        delivery_info = DeliveryInfo(
            recipient_name=command.recipient_name,
            recipient_phone=command.recipient_phone,
            road_address=command.road_address,
            detail_address=command.detail_address,
            zip_code=command.zip_code,
            memo=command.delivery_memo,
        )
        subtotal = sum((item.total_price for item in items), 0.0)
        order = Order.place(
            user_id=user_id,
            items=items,
            delivery_info=delivery_info,
            payment_method=command.payment_method,
            delivery_fee=config.delivery_fee_for(subtotal),
            order_id=order_id,
        )

        cart.clear()
        current_domain.repository_for(Order).add(order)
        cart_repo.add(cart)

        get_catalog().commit_stock(stock_lines, reference=order_id)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=user_id,
            item_count=len(items),
            final_amount=order.final_amount,
        )
        return str(order.id)


def checkout(user_id, order_id=None, **details) -> str:
    """Place an order from the user's cart and return its id.

    The order id is fixed before the command runs, so stock committed under
    it is released again when the order is not persisted.
    """
    order_id = str(order_id or uuid4())
    try:
        return current_domain.process(
            PlaceOrder(user_id=user_id, order_id=order_id, **details), asynchronous=False
        )
    except Exception:
        get_catalog().release_stock(order_id)
        logger.warning("Order not placed, committed stock released", order_id=order_id, user_id=str(user_id))
        raise
