"""Read-side views of a cart.

``cart_snapshot`` renders a cart together with per-line stock, sellability
and price-drift flags looked up from the catalogue. ``cart_summary`` condenses
a snapshot into the figures shown next to a checkout button.
"""

from ordering import config
from ordering.catalogue import get_catalog
from ordering.stock.validator import Availability, assess


def _item_view(item, availability: Availability) -> dict:
    return {
        "cart_item_id": str(item.id),
        "product_id": str(item.product_id),
        "product_name": item.product_name,
        "quantity": item.quantity,
        "unit_price": item.unit_price,
        "total_price": item.total_price,
        "is_product_available": availability.is_product_available,
        "is_stock_available": availability.is_stock_available,
        "is_price_changed": availability.is_price_changed,
        "warning_message": availability.warning_message,
    }


def cart_snapshot(cart, availability: dict[str, Availability] | None = None) -> dict:
    """Render ``cart`` as a plain dict.

    ``availability`` maps cart item ids to precomputed reports. Lines without
    one are assessed against the catalogue as it stands now.
    """
    availability = availability or {}
    catalog = get_catalog()

    items = []
    for item in cart.items:
        report = availability.get(str(item.id))
        if report is None:
            product = catalog.find_by_id(str(item.product_id))
            report = assess(product, item.quantity, item.unit_price)
        items.append(_item_view(item, report))

    return {
        "cart_id": str(cart.id),
        "user_id": str(cart.user_id),
        "is_active": bool(cart.is_active),
        "total_items": cart.total_items,
        "total_price": cart.total_price,
        "item_count": cart.item_count(),
        "items": items,
    }


def cart_summary(snapshot: dict) -> dict:
    issues = [
        item
        for item in snapshot["items"]
        if not (item["is_product_available"] and item["is_stock_available"]) or item["is_price_changed"]
    ]
    return {
        "cart_id": snapshot["cart_id"],
        "total_items": snapshot["total_items"],
        "total_price": snapshot["total_price"],
        "item_count": snapshot["item_count"],
        "estimated_delivery_fee": config.delivery_fee_for(snapshot["total_price"]) if snapshot["items"] else 0.0,
        "has_issues": bool(issues),
        "issue_count": len(issues),
    }
