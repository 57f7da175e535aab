"""Read-side view of an order."""


def _delivery_view(info) -> dict | None:
    if info is None:
        return None
    return {
        "recipient_name": info.recipient_name,
        "recipient_phone": info.recipient_phone,
        "road_address": info.road_address,
        "detail_address": info.detail_address,
        "zip_code": info.zip_code,
        "memo": info.memo,
        "tracking_number": info.tracking_number,
        "delivered_at": info.delivered_at.isoformat() if info.delivered_at else None,
    }


def _payment_view(info) -> dict | None:
    if info is None:
        return None
    return {
        "payment_id": info.payment_id,
        "transaction_id": info.transaction_id,
        "payment_status": info.payment_status,
        "paid_at": info.paid_at.isoformat() if info.paid_at else None,
        "cancelled_at": info.cancelled_at.isoformat() if info.cancelled_at else None,
        "cancel_reason": info.cancel_reason,
    }


def order_snapshot(order) -> dict:
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "user_id": str(order.user_id),
        "status": order.status,
        "payment_method": order.payment_method,
        "total_amount": order.total_amount,
        "delivery_fee": order.delivery_fee,
        "discount_amount": order.discount_amount,
        "final_amount": order.final_amount,
        "can_cancel": order.can_cancel(),
        "can_refund": order.can_refund(),
        "items": [
            {
                "order_item_id": str(item.id),
                "product_id": str(item.product_id),
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
                "status": item.status,
                "can_cancel": item.can_cancel(),
                "can_refund": item.can_refund(),
                "can_exchange": item.can_exchange(),
            }
            for item in order.items
        ],
        "status_history": [
            {
                "entry_id": str(entry.id),
                "from_status": entry.from_status,
                "to_status": entry.to_status,
                "reason": entry.reason,
                "memo": entry.memo,
                "changed_at": entry.changed_at.isoformat() if entry.changed_at else None,
            }
            for entry in order.ordered_history()
        ],
        "delivery_info": _delivery_view(order.delivery_info),
        "payment_info": _payment_view(order.payment_info),
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }
