from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.common.csv_export import csv_response
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.finance.constants import logger
from goryl.finance.services import finance_report_csv, list_seller_finance, platform_stats, process_seller_payment, seller_finance
from goryl.payments.models import SellerPaymentIn
from goryl.payments.services import withdraw_out
from goryl.users.dependencies import require_permissions

finance_admin_router=APIRouter()


@finance_admin_router.get("/sellers", dependencies=[require_permissions("finance:view")])
async def admin_seller_finance(search: Optional[str] = Query(None), session: AsyncSession = Depends(get_session)):
    sellers = await list_seller_finance(session, search)
    return success_response({"items": sellers, "platform_stats": platform_stats(sellers)})


@finance_admin_router.get("/sellers/{seller_id}", dependencies=[require_permissions("finance:view")])
async def admin_one_seller_finance(seller_id: str, session: AsyncSession = Depends(get_session)):
    return success_response(await seller_finance(session, seller_id))


@finance_admin_router.get("/export", dependencies=[require_permissions("finance:view")])
async def admin_export_finance(search: Optional[str] = Query(None), session: AsyncSession = Depends(get_session)):
    sellers = await list_seller_finance(session, search)
    logger.info("finance.export", extra={"rows": len(sellers)})
    return csv_response(finance_report_csv(sellers), "finance-report")


@finance_admin_router.post("/sellers/{seller_id}/pay", dependencies=[require_permissions("payments:manage")])
async def admin_pay_seller(request: Request, seller_id: str, payload: SellerPaymentIn,
                           session: AsyncSession = Depends(get_session)):
    paid = await process_seller_payment(session, seller_id, payload.amount, payload.transaction_id,
                                        actor_id=request.state.user_identifier)
    await session.commit()
    return success_response({"message": "Payment processed", "request": withdraw_out(paid)})
