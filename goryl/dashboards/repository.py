from datetime import datetime
from typing import Dict
from sqlalchemy import distinct, func, select
from goryl.dashboards.constants import SELLER_PENDING_STATUSES, VOID_ORDER_STATUSES
from goryl.schema.full_schema import Orders, OrderStatus, Product, Review, SellerKYC, Users


async def _scalar(session, stmt) -> int:
    return int((await session.execute(stmt)).scalar_one() or 0)


async def _grouped_counts(session, column, *where) -> Dict[str, int]:
    stmt = select(column, func.count()).where(*where).group_by(column)
    return {key: int(n) for key, n in (await session.execute(stmt)).all()}


async def buyer_totals(session, buyer_id: int) -> dict:
    orders = await _scalar(session, select(func.count(Orders.id)).where(Orders.buyer_id==buyer_id))
    spent = await _scalar(session, select(func.coalesce(func.sum(Orders.total_amount), 0))
                          .where(Orders.buyer_id==buyer_id, Orders.status.not_in(VOID_ORDER_STATUSES)))
    reviews = await _scalar(session, select(func.count(Review.id)).where(Review.reviewer_id==buyer_id))
    return {"total_orders": orders, "total_spent": spent, "total_reviews": reviews}


async def seller_totals(session, seller_id: int) -> dict:
    delivered = (Orders.seller_id==seller_id, Orders.status==OrderStatus.DELIVERED.value)
    return {
        "revenue": await _scalar(session, select(func.coalesce(func.sum(Orders.total_amount), 0)).where(*delivered)),
        "total_sales": await _scalar(session, select(func.count(Orders.id)).where(*delivered)),
        "pending_orders": await _scalar(session, select(func.count(Orders.id))
                                        .where(Orders.seller_id==seller_id, Orders.status.in_(SELLER_PENDING_STATUSES))),
        "total_orders": await _scalar(session, select(func.count(Orders.id)).where(Orders.seller_id==seller_id)),
        "product_count": await _scalar(session, select(func.count(Product.id))
                                       .where(Product.seller_id==seller_id, Product.deleted_at.is_(None))),
        "customers": await _scalar(session, select(func.count(distinct(Orders.buyer_id)))
                                   .where(Orders.seller_id==seller_id, Orders.status.not_in(VOID_ORDER_STATUSES))),
    }


async def seller_period(session, seller_id: int, since: datetime) -> tuple:
    stmt = (select(func.coalesce(func.sum(Orders.total_amount), 0), func.count(Orders.id))
            .where(Orders.seller_id==seller_id, Orders.created_at>=since,
                   Orders.status.not_in(VOID_ORDER_STATUSES)))
    total, count = (await session.execute(stmt)).one()
    return int(total or 0), int(count or 0)


async def platform_revenue(session, since: datetime = None) -> int:
    stmt = (select(func.coalesce(func.sum(Orders.total_amount), 0))
            .where(Orders.status!=OrderStatus.REFUNDED.value))
    if since is not None:
        stmt = stmt.where(Orders.created_at>=since)
    return await _scalar(session, stmt)


async def platform_counts(session) -> dict:
    return {
        "total_users": await _scalar(session, select(func.count(Users.id)).where(Users.deleted_at.is_(None))),
        "total_products": await _scalar(session, select(func.count(Product.id)).where(Product.deleted_at.is_(None))),
        "total_orders": await _scalar(session, select(func.count(Orders.id))),
        "pending_kyc": await _scalar(session, select(func.count(SellerKYC.id)).where(SellerKYC.status=="pending")),
        "user_roles": await _grouped_counts(session, Users.account_type, Users.deleted_at.is_(None)),
        "order_status": await _grouped_counts(session, Orders.status),
        "product_status": await _grouped_counts(session, Product.status, Product.deleted_at.is_(None)),
    }
