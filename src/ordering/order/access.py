"""Loading orders on behalf of a caller."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.errors import ForbiddenError, NotFoundError
from ordering.order.order import Order


def load_order(order_id, user_id=None) -> Order:
    """Fetch an order, checking that ``user_id`` owns it when one is given."""
    try:
        order = current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError as exc:
        raise NotFoundError.order(order_id) from exc

    if user_id is not None and str(order.user_id) != str(user_id):
        raise ForbiddenError({"order": [f"Order {order_id} does not belong to the caller"]})
    return order
