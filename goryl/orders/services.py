from fastapi import HTTPException, status
from goryl.audit.repository import write_audit
from goryl.common.utils import now, parse_uuid
from goryl.db.utils import claim_status
from goryl.config.settings import config_settings
from goryl.orders.constants import CANCELLABLE, NOT_REFUNDABLE, ORDER_FLOW, logger
from goryl.orders.models import OrderCreateIn
from goryl.orders.repository import order_by_pid, order_items
from goryl.products.repository import products_by_pids, return_stock, take_stock
from goryl.schema.full_schema import OrderItem, Orders, OrderStatus, ProductStatus


async def place_order(session, payload: OrderCreateIn, buyer_id: int):
    wanted = {}
    for item in payload.items:
        pid = parse_uuid(item.product_id)
        if pid is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="One or more products were not found")
        wanted[pid] = wanted.get(pid, 0) + item.quantity

    products = await products_by_pids(session, list(wanted), for_update=True)
    if products is None or len(products) != len(wanted):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="One or more products were not found")
    if any(p.status != ProductStatus.APPROVED.value for p in products):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="One or more products are not available")

    sellers = {p.seller_id for p in products}
    if len(sellers) != 1:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="All items in an order must come from one seller")
    seller_id = sellers.pop()
    if seller_id == buyer_id:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="You cannot order your own products")

    total = 0
    for p in products:
        qty = wanted[p.public_id]
        if p.stock_qty < qty:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Not enough stock for {p.name}")
        total += p.price * qty

    for p in products:
        if not await take_stock(session, p.id, wanted[p.public_id]):
            logger.warning("order.stock.lost_race", extra={"product_id": str(p.public_id)})
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Not enough stock for {p.name}")

    order = Orders(buyer_id=buyer_id, seller_id=seller_id, total_amount=total,
                   currency=config_settings.DEFAULT_CURRENCY, shipping_address_json=payload.shipping_address)
    session.add(order)
    await session.flush()

    items = []
    for p in products:
        qty = wanted[p.public_id]
        item = OrderItem(order_id=order.id, product_id=p.id, product_name_snapshot=p.name,
                         quantity=qty, unit_price_snapshot=p.price)
        session.add(item)
        items.append(item)

    logger.info("order.placed", extra={"order_id": str(order.public_id), "total": total})
    return order, items


async def _owned_order(session, order_pid: str):
    order = await order_by_pid(session, order_pid, for_update=True)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


async def _move(session, order, new_status: str):
    if not await claim_status(session, Orders, order.id, order.status, new_status):
        logger.warning("order.status.lost_race", extra={"order_id": str(order.public_id), "to": new_status})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Order was updated by someone else, reload and try again")
    order.status = new_status
    order.updated_at = now()


async def _restock(session, order):
    items = (await order_items(session, [order.id])).get(order.id, [])
    for item in items:
        await return_stock(session, item.product_id, item.quantity)


async def advance_order(session, order_pid: str, new_status: str, seller_id: int):
    order = await _owned_order(session, order_pid)
    if order.seller_id != seller_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your order")

    if new_status == OrderStatus.CANCELLED.value:
        return await cancel_order(session, order, "seller")

    if new_status not in ORDER_FLOW:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown order status: {new_status}")
    if order.status not in ORDER_FLOW or ORDER_FLOW.index(new_status) <= ORDER_FLOW.index(order.status):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Cannot move order from {order.status} to {new_status}")

    await _move(session, order, new_status)
    if new_status == OrderStatus.DELIVERED.value:
        order.delivered_at = now()
    session.add(order)
    logger.info("order.status.changed", extra={"order_id": order_pid, "status": new_status})
    return order


async def cancel_order(session, order, actor: str):
    if order.status not in CANCELLABLE:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Order can no longer be cancelled")
    await _move(session, order, OrderStatus.CANCELLED.value)
    session.add(order)
    await _restock(session, order)
    logger.info("order.cancelled", extra={"order_id": str(order.public_id), "by": actor})
    return order


async def buyer_cancel_order(session, order_pid: str, buyer_id: int):
    order = await _owned_order(session, order_pid)
    if order.buyer_id != buyer_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your order")
    return await cancel_order(session, order, "buyer")


async def refund_order(session, order_pid: str, actor_id: int):
    order = await _owned_order(session, order_pid)
    if order.status in NOT_REFUNDABLE:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Order is already {order.status}")
    old = order.status
    await _move(session, order, OrderStatus.REFUNDED.value)
    session.add(order)
    await write_audit(session, actor_id, "admin", "order.refund", "order", order_pid,
                      {"previous_status": old, "amount": order.total_amount})
    logger.info("order.refunded", extra={"order_id": order_pid})
    return order
