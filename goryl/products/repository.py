from typing import Optional
from sqlalchemy import and_, func, select, update
from goryl.common.utils import parse_uuid
from goryl.schema.full_schema import OrderItem, Orders, OrderStatus, Product, Review


async def product_by_pid(session, product_pid) -> Optional[Product]:
    pid = parse_uuid(product_pid)
    if pid is None:
        return None
    stmt = select(Product).where(Product.public_id == pid, Product.deleted_at.is_(None))
    return (await session.execute(stmt)).scalar_one_or_none()


async def products_by_pids(session, pids, for_update: bool = False):
    ids = [parse_uuid(p) for p in pids]
    if any(i is None for i in ids):
        return None
    stmt = select(Product).where(Product.public_id.in_(ids), Product.deleted_at.is_(None))
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return (await session.execute(stmt)).scalars().all()


async def list_products(session, seller_id: Optional[int] = None, status: Optional[str] = None, limit: int = 100):
    stmt = select(Product).where(Product.deleted_at.is_(None))
    if seller_id is not None:
        stmt = stmt.where(Product.seller_id == seller_id)
    if status:
        stmt = stmt.where(Product.status == status)
    stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc()).limit(limit)
    return (await session.execute(stmt)).scalars().all()


async def buyer_received_product(session, buyer_id: int, product_id: int) -> bool:
    stmt = (select(OrderItem.id)
            .join(Orders, Orders.id == OrderItem.order_id)
            .where(Orders.buyer_id == buyer_id, OrderItem.product_id == product_id,
                   Orders.status == OrderStatus.DELIVERED.value)
            .limit(1))
    return (await session.execute(stmt)).first() is not None


async def review_exists(session, product_id: int, reviewer_id: int) -> bool:
    stmt = select(Review.id).where(Review.product_id == product_id, Review.reviewer_id == reviewer_id)
    return (await session.execute(stmt)).first() is not None


async def seller_rating(session, seller_id: int):
    stmt = select(func.avg(Review.rating), func.count(Review.id)).where(Review.seller_id == seller_id)
    avg, count = (await session.execute(stmt)).one()
    return (round(float(avg), 2) if avg is not None else 0.0), count


async def take_stock(session, product_id: int, qty: int) -> bool:
    """Atomic decrement, False when fewer than `qty` units are left."""
    stmt = (update(Product)
            .where(and_(Product.id == product_id, Product.stock_qty >= qty))
            .values(stock_qty=Product.stock_qty - qty)
            .execution_options(synchronize_session=False))
    res = await session.execute(stmt)
    return res.rowcount == 1


async def return_stock(session, product_id: int, qty: int):
    stmt = (update(Product)
            .where(Product.id == product_id)
            .values(stock_qty=Product.stock_qty + qty)
            .execution_options(synchronize_session=False))
    await session.execute(stmt)
