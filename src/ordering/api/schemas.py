"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateCartItemRequest(BaseModel):
    """Zero or a negative quantity removes the line."""

    quantity: int


# ---------------------------------------------------------------------------
# Cart Response Schemas
# ---------------------------------------------------------------------------
class CartItemResponse(BaseModel):
    cart_item_id: str
    product_id: str
    product_name: str | None = None
    quantity: int
    unit_price: float
    total_price: float
    is_product_available: bool
    is_stock_available: bool
    is_price_changed: bool
    warning_message: str | None = None


class CartResponse(BaseModel):
    cart_id: str
    user_id: str
    is_active: bool
    total_items: int
    total_price: float
    item_count: int
    items: list[CartItemResponse] = []


class CartSummaryResponse(BaseModel):
    cart_id: str
    total_items: int
    total_price: float
    item_count: int
    estimated_delivery_fee: float
    has_issues: bool
    issue_count: int


class CartItemIdResponse(BaseModel):
    cart_item_id: str
    cart: CartResponse


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    recipient_name: str = Field(min_length=1, max_length=50)
    recipient_phone: str = Field(min_length=1, max_length=20)
    road_address: str = Field(min_length=1, max_length=200)
    detail_address: str | None = None
    zip_code: str = Field(min_length=1, max_length=10)
    delivery_memo: str | None = None
    payment_method: str = "Card"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "recipient_name": "Kim Minji",
                    "recipient_phone": "010-1234-5678",
                    "road_address": "123 Teheran-ro, Gangnam-gu, Seoul",
                    "detail_address": "Apt 501",
                    "zip_code": "06234",
                    "delivery_memo": "Leave at the door",
                    "payment_method": "Card",
                }
            ]
        }
    }


class ReasonRequest(BaseModel):
    reason: str | None = None


class ChangeOrderStatusRequest(BaseModel):
    status: str
    reason: str | None = None
    memo: str | None = None


class UpdateDeliveryInfoRequest(BaseModel):
    recipient_name: str | None = None
    recipient_phone: str | None = None
    road_address: str | None = None
    detail_address: str | None = None
    zip_code: str | None = None
    memo: str | None = None


class MarkDeliveredRequest(BaseModel):
    tracking_number: str | None = None


class AmountRequest(BaseModel):
    amount: float | None = None


class RecordPaymentRequest(BaseModel):
    payment_id: str
    transaction_id: str


class UpdateHistoryMemoRequest(BaseModel):
    memo: str | None = None
    reason: str | None = None


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    order_item_id: str
    product_id: str
    product_name: str | None = None
    quantity: int
    unit_price: float
    total_price: float
    status: str
    can_cancel: bool
    can_refund: bool
    can_exchange: bool


class StatusHistoryResponse(BaseModel):
    entry_id: str
    from_status: str
    to_status: str
    reason: str | None = None
    memo: str | None = None
    changed_at: str | None = None


class DeliveryInfoResponse(BaseModel):
    recipient_name: str | None = None
    recipient_phone: str | None = None
    road_address: str | None = None
    detail_address: str | None = None
    zip_code: str | None = None
    memo: str | None = None
    tracking_number: str | None = None
    delivered_at: str | None = None


class PaymentInfoResponse(BaseModel):
    payment_id: str | None = None
    transaction_id: str | None = None
    payment_status: str | None = None
    paid_at: str | None = None
    cancelled_at: str | None = None
    cancel_reason: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    user_id: str
    status: str
    payment_method: str | None = None
    total_amount: float
    delivery_fee: float
    discount_amount: float
    final_amount: float
    can_cancel: bool
    can_refund: bool
    items: list[OrderItemResponse] = []
    status_history: list[StatusHistoryResponse] = []
    delivery_info: DeliveryInfoResponse | None = None
    payment_info: PaymentInfoResponse | None = None
    created_at: str | None = None


class OrderStatusResponse(BaseModel):
    order_id: str
    status: str
