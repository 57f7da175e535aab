"""FastAPI routes for the Ordering domain — carts and orders.

Callers identify themselves with an ``Authorization: Bearer <token>`` header
that the user directory resolves to a user id. Mutations of one user's cart,
checkout included, are serialised by a per-user lock. Routes that take the
lock are plain functions so FastAPI runs them on its threadpool, where a
second request for the same user actually waits.
"""

from fastapi import APIRouter, Depends, Header
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddCartItemRequest,
    AmountRequest,
    CartItemIdResponse,
    CartResponse,
    CartSummaryResponse,
    ChangeOrderStatusRequest,
    MarkDeliveredRequest,
    OrderResponse,
    OrderStatusResponse,
    PlaceOrderRequest,
    ReasonRequest,
    RecordPaymentRequest,
    UpdateCartItemRequest,
    UpdateDeliveryInfoRequest,
    UpdateHistoryMemoRequest,
)
from ordering.cart.cart import Cart
from ordering.cart.items import AddCartItem, RemoveCartItem, UpdateCartItemQuantity
from ordering.cart.management import ClearCart, GetOrCreateCart
from ordering.cart.snapshot import cart_snapshot, cart_summary
from ordering.cart.validation import ValidateCart
from ordering.concurrency import KeyedLocks
from ordering.errors import NotFoundError
from ordering.identity import get_user_directory
from ordering.identity.port import bearer_token
from ordering.order.access import load_order
from ordering.order.cancellation import CancelOrder, RefundOrder
from ordering.order.confirmation import ChangeOrderStatus, ConfirmOrder, RecalculateOrderStatus
from ordering.order.creation import checkout
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
from ordering.order.order import Order
from ordering.order.payment import RecordOrderPayment, RecordOrderPaymentFailure
from ordering.order.snapshot import order_snapshot
from ordering.utils.logging import bind_caller

cart_locks = KeyedLocks()


async def current_user(authorization: str | None = Header(default=None)) -> str:
    """Resolve the bearer token on the request to a user id."""
    user_id = get_user_directory().resolve(bearer_token(authorization))
    bind_caller(user_id)
    return user_id


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _cart_response(user_id: str) -> CartResponse:
    cart_id = _process(GetOrCreateCart(user_id=user_id))
    cart = current_domain.repository_for(Cart).get(cart_id)
    return CartResponse(**cart_snapshot(cart))


def _order_response(order_id: str) -> OrderResponse:
    return OrderResponse(**order_snapshot(load_order(order_id)))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
def get_cart(user_id: str = Depends(current_user)) -> CartResponse:
    with cart_locks.hold(user_id):
        return _cart_response(user_id)


@cart_router.get("/summary", response_model=CartSummaryResponse)
def get_cart_summary(user_id: str = Depends(current_user)) -> CartSummaryResponse:
    with cart_locks.hold(user_id):
        snapshot = _cart_response(user_id).model_dump()
    return CartSummaryResponse(**cart_summary(snapshot))


@cart_router.post("/items", status_code=201, response_model=CartItemIdResponse)
def add_cart_item(body: AddCartItemRequest, user_id: str = Depends(current_user)) -> CartItemIdResponse:
    with cart_locks.hold(user_id):
        item_id = _process(AddCartItem(user_id=user_id, product_id=body.product_id, quantity=body.quantity))
        return CartItemIdResponse(cart_item_id=item_id, cart=_cart_response(user_id))


@cart_router.patch("/items/{item_id}", response_model=CartResponse)
def update_cart_item(
    item_id: str, body: UpdateCartItemRequest, user_id: str = Depends(current_user)
) -> CartResponse:
    with cart_locks.hold(user_id):
        _process(UpdateCartItemQuantity(user_id=user_id, item_id=item_id, quantity=body.quantity))
        return _cart_response(user_id)


@cart_router.delete("/items/{item_id}", response_model=CartResponse)
def remove_cart_item(item_id: str, user_id: str = Depends(current_user)) -> CartResponse:
    with cart_locks.hold(user_id):
        _process(RemoveCartItem(user_id=user_id, item_id=item_id))
        return _cart_response(user_id)


@cart_router.delete("", response_model=CartResponse)
def clear_cart(user_id: str = Depends(current_user)) -> CartResponse:
    with cart_locks.hold(user_id):
        _process(ClearCart(user_id=user_id))
        return _cart_response(user_id)


@cart_router.post("/validate", response_model=CartResponse)
def validate_cart(user_id: str = Depends(current_user)) -> CartResponse:
    with cart_locks.hold(user_id):
        return CartResponse(**_process(ValidateCart(user_id=user_id)))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
def place_order(body: PlaceOrderRequest, user_id: str = Depends(current_user)) -> OrderResponse:
    with cart_locks.hold(user_id):
        order_id = checkout(user_id=user_id, **body.model_dump())
    return _order_response(order_id)


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(user_id: str = Depends(current_user)) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).find_by_user(user_id)
    orders = sorted(orders, key=lambda o: o.created_at)
    return [OrderResponse(**order_snapshot(order)) for order in orders]


@order_router.get("/number/{order_number}", response_model=OrderResponse)
async def get_order_by_number(order_number: str, user_id: str = Depends(current_user)) -> OrderResponse:
    order = current_domain.repository_for(Order).find_by_order_number(order_number)
    if order is None:
        raise NotFoundError.order(order_number)
    return OrderResponse(**order_snapshot(load_order(order.id, user_id=user_id)))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, user_id: str = Depends(current_user)) -> OrderResponse:
    return OrderResponse(**order_snapshot(load_order(order_id, user_id=user_id)))


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, body: ReasonRequest, user_id: str = Depends(current_user)) -> OrderResponse:
    _process(CancelOrder(order_id=order_id, user_id=user_id, reason=body.reason))
    return _order_response(order_id)


@order_router.post("/{order_id}/refund", response_model=OrderResponse)
async def refund_order(order_id: str, body: ReasonRequest, user_id: str = Depends(current_user)) -> OrderResponse:
    _process(RefundOrder(order_id=order_id, user_id=user_id, reason=body.reason))
    return _order_response(order_id)


@order_router.patch("/{order_id}/delivery-info", response_model=OrderResponse)
async def update_delivery_info(
    order_id: str, body: UpdateDeliveryInfoRequest, user_id: str = Depends(current_user)
) -> OrderResponse:
    _process(UpdateDeliveryInfo(order_id=order_id, user_id=user_id, **body.model_dump()))
    return _order_response(order_id)


# Back-office operations: any authenticated caller, no ownership check


@order_router.post("/{order_id}/confirm", response_model=OrderResponse, dependencies=[Depends(current_user)])
async def confirm_order(order_id: str, body: ReasonRequest) -> OrderResponse:
    if body.reason:
        _process(ConfirmOrder(order_id=order_id, reason=body.reason))
    else:
        _process(ConfirmOrder(order_id=order_id))
    return _order_response(order_id)


@order_router.put("/{order_id}/status", response_model=OrderResponse, dependencies=[Depends(current_user)])
async def change_order_status(order_id: str, body: ChangeOrderStatusRequest) -> OrderResponse:
    _process(ChangeOrderStatus(order_id=order_id, status=body.status, reason=body.reason, memo=body.memo))
    return _order_response(order_id)


@order_router.post(
    "/{order_id}/status/recalculate", response_model=OrderStatusResponse, dependencies=[Depends(current_user)]
)
async def recalculate_order_status(order_id: str) -> OrderStatusResponse:
    status = _process(RecalculateOrderStatus(order_id=order_id))
    return OrderStatusResponse(order_id=order_id, status=status)


_ITEM_ACTIONS = {
    "prepare": PrepareOrderItem,
    "ship": ShipOrderItem,
    "deliver": DeliverOrderItem,
    "cancel": CancelOrderItem,
    "refund": RefundOrderItem,
    "exchange": ExchangeOrderItem,
}


@order_router.post(
    "/{order_id}/items/{item_id}/{action}", response_model=OrderResponse, dependencies=[Depends(current_user)]
)
async def advance_order_item(order_id: str, item_id: str, action: str) -> OrderResponse:
    command_cls = _ITEM_ACTIONS.get(action)
    if command_cls is None:
        raise NotFoundError({"action": [f"Unknown order item action: {action}"]})
    _process(command_cls(order_id=order_id, item_id=item_id))
    return _order_response(order_id)


@order_router.post("/{order_id}/deliver", response_model=OrderResponse, dependencies=[Depends(current_user)])
async def mark_order_delivered(order_id: str, body: MarkDeliveredRequest) -> OrderResponse:
    _process(MarkOrderDelivered(order_id=order_id, tracking_number=body.tracking_number))
    return _order_response(order_id)


@order_router.put("/{order_id}/discount", response_model=OrderResponse, dependencies=[Depends(current_user)])
async def apply_discount(order_id: str, body: AmountRequest) -> OrderResponse:
    _process(ApplyOrderDiscount(order_id=order_id, amount=body.amount))
    return _order_response(order_id)


@order_router.put("/{order_id}/delivery-fee", response_model=OrderResponse, dependencies=[Depends(current_user)])
async def set_delivery_fee(order_id: str, body: AmountRequest) -> OrderResponse:
    _process(SetOrderDeliveryFee(order_id=order_id, amount=body.amount))
    return _order_response(order_id)


@order_router.post("/{order_id}/payment", response_model=OrderResponse, dependencies=[Depends(current_user)])
async def record_payment(order_id: str, body: RecordPaymentRequest) -> OrderResponse:
    _process(RecordOrderPayment(order_id=order_id, payment_id=body.payment_id, transaction_id=body.transaction_id))
    return _order_response(order_id)


@order_router.post(
    "/{order_id}/payment/failure", response_model=OrderResponse, dependencies=[Depends(current_user)]
)
async def record_payment_failure(order_id: str) -> OrderResponse:
    _process(RecordOrderPaymentFailure(order_id=order_id))
    return _order_response(order_id)


@order_router.patch(
    "/{order_id}/history/{entry_id}", response_model=OrderResponse, dependencies=[Depends(current_user)]
)
async def update_history_memo(order_id: str, entry_id: str, body: UpdateHistoryMemoRequest) -> OrderResponse:
    _process(UpdateStatusHistoryMemo(order_id=order_id, entry_id=entry_id, memo=body.memo, reason=body.reason))
    return _order_response(order_id)
