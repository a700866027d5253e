from fastapi import HTTPException, status
from goryl.audit.repository import write_audit
from goryl.cache.cache_get_n_set import cache_get_or_set, invalidate
from goryl.categories.constants import CATEGORY_LIST_NAMESPACE, CATEGORY_LIST_TTL, logger
from goryl.categories.models import CategoryCreateIn, CategoryUpdateIn
from goryl.categories.repository import category_by_name_or_slug, category_by_slug, list_active_categories
from goryl.categories.utils import category_out, slugify
from goryl.common.utils import now
from goryl.schema.full_schema import Category


async def cached_category_list(session):
    async def loader():
        return [category_out(c) for c in await list_active_categories(session)]
    return await cache_get_or_set(CATEGORY_LIST_NAMESPACE, "active", CATEGORY_LIST_TTL, loader)


async def create_category(session, payload: CategoryCreateIn, actor_id: int) -> Category:
    slug = slugify(payload.slug or payload.name)
    if not slug:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Category slug cannot be empty")
    if await category_by_name_or_slug(session, payload.name.strip(), slug):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A category with that name already exists")

    category = Category(name=payload.name.strip(), slug=slug, description=payload.description, icon=payload.icon,
                        image_url=payload.image_url, sort_order=payload.sort_order)
    session.add(category)
    await session.flush()
    await write_audit(session, actor_id, "admin", "category.create", "category", slug)
    logger.info("category.created", extra={"slug": slug})
    return category


async def update_category(session, slug: str, payload: CategoryUpdateIn, actor_id: int) -> Category:
    category = await category_by_slug(session, slug, active_only=False)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    updates = payload.model_dump(exclude_unset=True)
    for field, value in updates.items():
        setattr(category, field, value)
    category.updated_at = now()
    session.add(category)
    await write_audit(session, actor_id, "admin", "category.update", "category", slug, {"fields": sorted(updates)})
    return category


async def deactivate_category(session, slug: str, actor_id: int):
    category = await category_by_slug(session, slug, active_only=False)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    category.is_active = False
    category.updated_at = now()
    session.add(category)
    await write_audit(session, actor_id, "admin", "category.delete", "category", slug)
    return category


async def drop_category_cache():
    await invalidate(CATEGORY_LIST_NAMESPACE, "active")
