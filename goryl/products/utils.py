from goryl.common.money import format_currency
from goryl.common.utils import iso
from goryl.schema.full_schema import Product


def product_out(p: Product) -> dict:
    return {
        "id": str(p.public_id),
        "name": p.name,
        "description": p.description or "",
        "price": p.price,
        "price_display": format_currency(p.price),
        "stock_qty": p.stock_qty,
        "image_url": p.image_url,
        "status": p.status,
        "created_at": iso(p.created_at),
    }
