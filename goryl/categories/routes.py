from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.categories.constants import logger
from goryl.categories.models import CategoryCreateIn, CategoryUpdateIn
from goryl.categories.repository import category_by_slug, fetch_category_products
from goryl.categories.services import cached_category_list, create_category, deactivate_category, drop_category_cache, update_category
from goryl.categories.utils import category_out
from goryl.common.cursor import decode_cursor, encode_cursor
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.products.utils import product_out
from goryl.users.dependencies import require_permissions

categories_router=APIRouter()
categories_admin_router=APIRouter()


@categories_router.get("")
async def get_categories(session: AsyncSession = Depends(get_session)):
    return success_response({"items": await cached_category_list(session)})


@categories_router.get("/{slug}")
async def get_category(slug: str, session: AsyncSession = Depends(get_session)):
    category = await category_by_slug(session, slug)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return success_response(category_out(category))


@categories_router.get("/{slug}/products")
async def browse_category(slug: str,
                          limit: int = Query(20, ge=1, le=100),
                          cursor: Optional[str] = Query(None, description="Opaque signed cursor token"),
                          session: AsyncSession = Depends(get_session)):

    category = await category_by_slug(session, slug)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    cursor_vals = None
    if cursor:
        try:
            created_at, last_id = decode_cursor(cursor, max_age=24*3600)
            cursor_vals = (created_at, int(last_id))
        except (ValueError, KeyError):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid cursor")

    rows = await fetch_category_products(session, category.id, cursor_vals, limit)
    has_more = len(rows) > limit
    page = rows[:limit]

    next_cursor = None
    if has_more:
        last = page[-1]
        next_cursor = encode_cursor(last.created_at, last.id)

    return success_response({"category": category_out(category), "items": [product_out(p) for p in page],
                             "next_cursor": next_cursor, "has_more": has_more})

#---------------------------------------------------------------------------------------------------------

@categories_admin_router.post("", dependencies=[require_permissions("categories:manage")])
async def admin_create_category(request: Request, payload: CategoryCreateIn, session: AsyncSession = Depends(get_session)):
    category = await create_category(session, payload, request.state.user_identifier)
    await session.commit()
    await drop_category_cache()
    return success_response(category_out(category), status_code=status.HTTP_201_CREATED)


@categories_admin_router.patch("/{slug}", dependencies=[require_permissions("categories:manage")])
async def admin_update_category(request: Request, slug: str, payload: CategoryUpdateIn,
                                session: AsyncSession = Depends(get_session)):
    category = await update_category(session, slug, payload, request.state.user_identifier)
    await session.commit()
    await drop_category_cache()
    return success_response(category_out(category))


@categories_admin_router.delete("/{slug}", dependencies=[require_permissions("categories:manage")])
async def admin_delete_category(request: Request, slug: str, session: AsyncSession = Depends(get_session)):
    await deactivate_category(session, slug, request.state.user_identifier)
    await session.commit()
    await drop_category_cache()
    logger.info("category.deactivated", extra={"slug": slug})
    return success_response({"message": "Category removed"})
