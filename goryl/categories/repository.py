from sqlalchemy import and_, func, or_, select, update
from goryl.common.utils import as_utc
from goryl.schema.full_schema import Category, Product, ProductStatus


async def list_active_categories(session):
    stmt = select(Category).where(Category.is_active == True).order_by(Category.sort_order, Category.name)
    return (await session.execute(stmt)).scalars().all()


async def category_by_slug(session, slug: str, active_only: bool = True):
    stmt = select(Category).where(Category.slug == slug)
    if active_only:
        stmt = stmt.where(Category.is_active == True)
    return (await session.execute(stmt)).scalar_one_or_none()


async def refresh_product_count(session, category_id: int):
    """Recounts the approved, live listings of one category."""
    live = (select(func.count(Product.id))
            .where(Product.category_id == category_id,
                   Product.status == ProductStatus.APPROVED.value,
                   Product.deleted_at.is_(None))
            .scalar_subquery())
    stmt = (update(Category).where(Category.id == category_id)
            .values(product_count=live)
            .execution_options(synchronize_session=False))
    await session.execute(stmt)


async def category_by_name_or_slug(session, name: str, slug: str):
    stmt = select(Category.id).where(or_(Category.name == name, Category.slug == slug))
    return (await session.execute(stmt)).first()


async def fetch_category_products(session, category_id: int, cursor_vals, limit: int):
    stmt = select(Product).where(
        Product.category_id == category_id,
        Product.status == ProductStatus.APPROVED.value,
        Product.deleted_at.is_(None),
    )
    if cursor_vals:
        created_at, last_id = cursor_vals
        created_at = as_utc(created_at)
        stmt = stmt.where(or_(Product.created_at < created_at,
                              and_(Product.created_at == created_at, Product.id < last_id)))
    stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc()).limit(limit + 1)
    return (await session.execute(stmt)).scalars().all()
