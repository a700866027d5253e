import re
from goryl.common.utils import iso
from goryl.schema.full_schema import Category

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    return _NON_SLUG.sub("-", text.strip().lower()).strip("-")


def category_out(c: Category) -> dict:
    return {
        "id": str(c.public_id),
        "name": c.name,
        "slug": c.slug,
        "description": c.description or "",
        "icon": c.icon,
        "image_url": c.image_url,
        "sort_order": c.sort_order,
        "product_count": c.product_count,
        "is_active": c.is_active,
        "created_at": iso(c.created_at),
    }
