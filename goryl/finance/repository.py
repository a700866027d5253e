from typing import Dict, Iterable, Optional
from sqlalchemy import func, select
from goryl.schema.full_schema import (HoldStatus, OrderItem, Orders, OrderStatus, PaymentHold, Product,
                                      WithdrawRequest, WithdrawStatus)

OPEN_WITHDRAW = (WithdrawStatus.PENDING.value, WithdrawStatus.APPROVED.value)


def _scope(stmt, column, seller_ids: Optional[Iterable[int]]):
    if seller_ids is not None:
        stmt = stmt.where(column.in_(list(seller_ids)))
    return stmt


async def _grouped(session, stmt) -> Dict[int, tuple]:
    return {row[0]: tuple(row[1:]) for row in (await session.execute(stmt)).all()}


async def balance_components(session, seller_ids: Optional[Iterable[int]] = None) -> Dict[int, dict]:
    """Per-seller sums in cents. Sellers with no records are absent from the result."""
    delivered = await _grouped(session, _scope(
        select(Orders.seller_id, func.coalesce(func.sum(Orders.total_amount), 0), func.count(Orders.id))
        .where(Orders.status == OrderStatus.DELIVERED.value)
        .group_by(Orders.seller_id), Orders.seller_id, seller_ids))

    sold = await _grouped(session, _scope(
        select(Orders.seller_id, func.coalesce(func.sum(OrderItem.quantity), 0))
        .join(OrderItem, OrderItem.order_id == Orders.id)
        .where(Orders.status == OrderStatus.DELIVERED.value)
        .group_by(Orders.seller_id), Orders.seller_id, seller_ids))

    orders = await _grouped(session, _scope(
        select(Orders.seller_id, func.count(Orders.id))
        .where(Orders.status != OrderStatus.CANCELLED.value)
        .group_by(Orders.seller_id), Orders.seller_id, seller_ids))

    held = await _grouped(session, _scope(
        select(PaymentHold.seller_id, func.coalesce(func.sum(PaymentHold.amount), 0))
        .where(PaymentHold.status == HoldStatus.ACTIVE.value)
        .group_by(PaymentHold.seller_id), PaymentHold.seller_id, seller_ids))

    pending = await _grouped(session, _scope(
        select(WithdrawRequest.seller_id, func.coalesce(func.sum(WithdrawRequest.amount), 0))
        .where(WithdrawRequest.status.in_(OPEN_WITHDRAW))
        .group_by(WithdrawRequest.seller_id), WithdrawRequest.seller_id, seller_ids))

    paid = await _grouped(session, _scope(
        select(WithdrawRequest.seller_id,
               func.coalesce(func.sum(func.coalesce(WithdrawRequest.paid_amount, WithdrawRequest.amount)), 0),
               func.count(WithdrawRequest.id),
               func.max(WithdrawRequest.processed_at))
        .where(WithdrawRequest.status == WithdrawStatus.PAID.value)
        .group_by(WithdrawRequest.seller_id), WithdrawRequest.seller_id, seller_ids))

    products = await _grouped(session, _scope(
        select(Product.seller_id, func.count(Product.id))
        .where(Product.deleted_at.is_(None))
        .group_by(Product.seller_id), Product.seller_id, seller_ids))

    ids = set(delivered) | set(sold) | set(orders) | set(held) | set(pending) | set(paid) | set(products)
    out = {}
    for sid in ids:
        earnings = int(delivered.get(sid, (0, 0))[0])
        held_amount = int(held.get(sid, (0,))[0])
        pending_amount = int(pending.get(sid, (0,))[0])
        paid_row = paid.get(sid, (0, 0, None))
        withdrawn = int(paid_row[0])
        out[sid] = {
            "total_earnings": earnings,
            "total_revenue": earnings,
            "held_amount": held_amount,
            "pending_withdrawals": pending_amount,
            "total_withdrawn": withdrawn,
            "available_balance": earnings - held_amount - pending_amount - withdrawn,
            "order_count": int(orders.get(sid, (0,))[0]),
            "delivered_count": int(delivered.get(sid, (0, 0))[1]),
            "total_products_sold": int(sold.get(sid, (0,))[0]),
            "product_count": int(products.get(sid, (0,))[0]),
            "total_payments_received": withdrawn,
            "payments_received_count": int(paid_row[1]),
            "last_payment_date": paid_row[2],
        }
    return out


EMPTY_COMPONENTS = {
    "total_earnings": 0, "total_revenue": 0, "held_amount": 0, "pending_withdrawals": 0, "total_withdrawn": 0,
    "available_balance": 0, "order_count": 0, "delivered_count": 0, "total_products_sold": 0, "product_count": 0,
    "total_payments_received": 0, "payments_received_count": 0, "last_payment_date": None,
}


async def seller_balance(session, seller_id: int) -> dict:
    comps = await balance_components(session, [seller_id])
    return dict(comps.get(seller_id, EMPTY_COMPONENTS))


async def available_balance(session, seller_id: int) -> int:
    return (await seller_balance(session, seller_id))["available_balance"]
