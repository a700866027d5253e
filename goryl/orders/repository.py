from typing import Optional
from sqlalchemy import select
from goryl.common.utils import parse_uuid
from goryl.schema.full_schema import OrderItem, Orders


async def order_by_pid(session, order_pid, for_update: bool = False) -> Optional[Orders]:
    pid = parse_uuid(order_pid)
    if pid is None:
        return None
    stmt = select(Orders).where(Orders.public_id == pid)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return (await session.execute(stmt)).scalar_one_or_none()


async def order_items(session, order_ids):
    if not order_ids:
        return {}
    rows = (await session.execute(select(OrderItem).where(OrderItem.order_id.in_(list(order_ids))))).scalars().all()
    out = {}
    for r in rows:
        out.setdefault(r.order_id, []).append(r)
    return out


async def list_orders(session, buyer_id: Optional[int] = None, seller_id: Optional[int] = None, limit: int = 100):
    stmt = select(Orders)
    if buyer_id is not None:
        stmt = stmt.where(Orders.buyer_id == buyer_id)
    if seller_id is not None:
        stmt = stmt.where(Orders.seller_id == seller_id)
    stmt = stmt.order_by(Orders.created_at.desc(), Orders.id.desc()).limit(limit)
    return (await session.execute(stmt)).scalars().all()
