from goryl.common.money import format_currency
from goryl.common.utils import iso
from goryl.schema.full_schema import Orders


def order_out(order: Orders, items=None) -> dict:
    return {
        "id": str(order.public_id),
        "status": order.status,
        "total_amount": order.total_amount,
        "total_display": format_currency(order.total_amount, order.currency),
        "currency": order.currency,
        "created_at": iso(order.created_at),
        "delivered_at": iso(order.delivered_at),
        "items": [
            {"name": i.product_name_snapshot, "quantity": i.quantity, "unit_price": i.unit_price_snapshot}
            for i in (items or [])
        ],
    }
