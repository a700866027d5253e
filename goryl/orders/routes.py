from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.orders.models import OrderCreateIn, OrderStatusIn
from goryl.orders.repository import list_orders, order_items
from goryl.orders.services import advance_order, buyer_cancel_order, place_order, refund_order
from goryl.orders.utils import order_out
from goryl.users.dependencies import require_permissions

orders_router=APIRouter()
orders_admin_router=APIRouter()


async def _with_items(session, orders):
    items = await order_items(session, [o.id for o in orders])
    return [order_out(o, items.get(o.id)) for o in orders]


@orders_router.post("", dependencies=[require_permissions("order:place")])
async def create_order(request: Request, payload: OrderCreateIn, session: AsyncSession = Depends(get_session)):
    order, items = await place_order(session, payload, request.state.user_identifier)
    await session.commit()
    return success_response(order_out(order, items), status_code=status.HTTP_201_CREATED)


@orders_router.get("")
async def my_orders(request: Request, session: AsyncSession = Depends(get_session)):
    orders = await list_orders(session, buyer_id=request.state.user_identifier)
    return success_response({"items": await _with_items(session, orders)})


@orders_router.get("/sales", dependencies=[require_permissions("order:fulfil")])
async def my_sales(request: Request, session: AsyncSession = Depends(get_session)):
    orders = await list_orders(session, seller_id=request.state.user_identifier)
    return success_response({"items": await _with_items(session, orders)})


@orders_router.post("/{order_public_id}/status", dependencies=[require_permissions("order:fulfil")])
async def update_order_status(request: Request, order_public_id: str, payload: OrderStatusIn,
                              session: AsyncSession = Depends(get_session)):
    order = await advance_order(session, order_public_id, payload.status, request.state.user_identifier)
    await session.commit()
    return success_response(order_out(order))


@orders_router.post("/{order_public_id}/cancel")
async def cancel_my_order(request: Request, order_public_id: str, session: AsyncSession = Depends(get_session)):
    order = await buyer_cancel_order(session, order_public_id, request.state.user_identifier)
    await session.commit()
    return success_response(order_out(order))


@orders_admin_router.post("/{order_public_id}/refund", dependencies=[require_permissions("orders:refund")])
async def admin_refund_order(request: Request, order_public_id: str, session: AsyncSession = Depends(get_session)):
    order = await refund_order(session, order_public_id, request.state.user_identifier)
    await session.commit()
    return success_response(order_out(order))
