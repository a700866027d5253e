from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.common.csv_export import build_csv, csv_response
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.finance.repository import seller_balance
from goryl.payments.constants import logger
from goryl.payments.models import PaymentHoldIn, PaymentMethodIn, PaymentMethodUpdateIn, ProcessWithdrawIn, WithdrawRequestIn
from goryl.payments.repository import active_methods, list_holds, list_withdraw_requests
from goryl.payments.services import (add_payment_method, create_payment_hold, create_withdraw_request, delete_payment_method,
                                     hold_out, method_out, payout_stats, process_withdraw_request, release_payment_hold,
                                     update_payment_method, withdraw_csv_rows, withdraw_out, withdrawal_limit)
from goryl.users.dependencies import require_permissions
from goryl.users.repository import get_user, get_user_by_pid

payments_router=APIRouter()
payments_admin_router=APIRouter()


@payments_router.get("/balance", dependencies=[require_permissions("withdraw:request")])
async def my_balance(request: Request, session: AsyncSession = Depends(get_session)):
    user_id = request.state.user_identifier
    balance = await seller_balance(session, user_id)
    balance["available_balance"] = max(balance["available_balance"], 0)
    balance.pop("last_payment_date", None)
    balance["withdrawal_limit"] = await withdrawal_limit(session, user_id)
    return success_response(balance)


@payments_router.post("/withdraw-requests", dependencies=[require_permissions("withdraw:request")])
async def request_withdrawal(request: Request, payload: WithdrawRequestIn, session: AsyncSession = Depends(get_session)):
    seller = await get_user(session, request.state.user_identifier)
    logger.info("withdraw.request.attempt", extra={"amount": payload.amount})
    wr = await create_withdraw_request(session, seller, payload.amount, payload.payment_method, payload.note)
    await session.commit()
    return success_response(withdraw_out(wr), status_code=status.HTTP_201_CREATED)


@payments_router.get("/withdraw-requests", dependencies=[require_permissions("withdraw:request")])
async def my_withdrawals(request: Request, session: AsyncSession = Depends(get_session)):
    rows = await list_withdraw_requests(session, seller_id=request.state.user_identifier)
    return success_response({"items": [withdraw_out(r) for r in rows]})

#---------------------------------------------------------------------------------------------------------

@payments_admin_router.get("/withdraw-requests", dependencies=[require_permissions("payments:manage")])
async def admin_list_withdrawals(status_filter: Optional[str] = Query(None, alias="status"),
                                 search: Optional[str] = Query(None),
                                 date_from: Optional[date] = Query(None),
                                 date_to: Optional[date] = Query(None),
                                 session: AsyncSession = Depends(get_session)):
    rows = await list_withdraw_requests(session, status_filter, search, date_from, date_to)
    return success_response({"items": [withdraw_out(r) for r in rows], "stats": payout_stats(rows)})


@payments_admin_router.get("/withdraw-requests/export", dependencies=[require_permissions("payments:manage")])
async def admin_export_withdrawals(status_filter: Optional[str] = Query(None, alias="status"),
                                   search: Optional[str] = Query(None),
                                   date_from: Optional[date] = Query(None),
                                   date_to: Optional[date] = Query(None),
                                   session: AsyncSession = Depends(get_session)):
    rows = await list_withdraw_requests(session, status_filter, search, date_from, date_to)
    logger.info("payments.export", extra={"rows": len(rows)})
    return csv_response(build_csv(withdraw_csv_rows(rows)), "payments")


@payments_admin_router.post("/withdraw-requests/{request_id}/process", dependencies=[require_permissions("payments:manage")])
async def admin_process_withdrawal(request: Request, request_id: str, payload: ProcessWithdrawIn,
                                   session: AsyncSession = Depends(get_session)):
    wr = await process_withdraw_request(session, request_id, payload.action, "admin", payload.details(),
                                        actor_id=request.state.user_identifier)
    await session.commit()
    return success_response({"message": f"Request {wr.status}", "request": withdraw_out(wr)})


@payments_admin_router.get("/holds", dependencies=[require_permissions("payments:manage")])
async def admin_list_holds(seller_id: Optional[str] = Query(None), status_filter: Optional[str] = Query(None, alias="status"),
                           session: AsyncSession = Depends(get_session)):
    seller_pk = None
    if seller_id:
        seller = await get_user_by_pid(session, seller_id)
        if not seller:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Seller not found")
        seller_pk = seller.id
    holds = await list_holds(session, seller_pk, status_filter)
    return success_response({"items": [hold_out(h) for h in holds]})


@payments_admin_router.post("/holds", dependencies=[require_permissions("payments:manage")])
async def admin_create_hold(request: Request, payload: PaymentHoldIn, session: AsyncSession = Depends(get_session)):
    hold = await create_payment_hold(session, payload.seller_id, payload.seller_name, payload.amount, payload.reason,
                                     "admin", actor_id=request.state.user_identifier)
    await session.commit()
    return success_response(hold_out(hold), status_code=status.HTTP_201_CREATED)


@payments_admin_router.post("/holds/{hold_id}/release", dependencies=[require_permissions("payments:manage")])
async def admin_release_hold(request: Request, hold_id: str, session: AsyncSession = Depends(get_session)):
    hold = await release_payment_hold(session, hold_id, "admin", actor_id=request.state.user_identifier)
    await session.commit()
    return success_response(hold_out(hold))


@payments_admin_router.get("/methods", dependencies=[require_permissions("payments:manage")])
async def admin_list_methods(session: AsyncSession = Depends(get_session)):
    return success_response({"items": [method_out(m) for m in await active_methods(session)]})


@payments_admin_router.post("/methods", dependencies=[require_permissions("payments:manage")])
async def admin_add_method(request: Request, payload: PaymentMethodIn, session: AsyncSession = Depends(get_session)):
    method = await add_payment_method(session, payload.type, payload.account_name, payload.account_details,
                                      request.state.user_identifier)
    await session.commit()
    return success_response(method_out(method), status_code=status.HTTP_201_CREATED)


@payments_admin_router.patch("/methods/{method_id}", dependencies=[require_permissions("payments:manage")])
async def admin_update_method(method_id: str, payload: PaymentMethodUpdateIn, session: AsyncSession = Depends(get_session)):
    method = await update_payment_method(session, method_id, payload.model_dump(exclude_unset=True))
    await session.commit()
    return success_response(method_out(method))


@payments_admin_router.delete("/methods/{method_id}", dependencies=[require_permissions("payments:manage")])
async def admin_delete_method(method_id: str, session: AsyncSession = Depends(get_session)):
    await delete_payment_method(session, method_id)
    await session.commit()
    return success_response({"message": "Payment method removed"})
