from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from sqlalchemy import select
from goryl.common.utils import parse_uuid
from goryl.schema.full_schema import AdminPaymentMethod, PaymentHold, WithdrawRequest, WithdrawStatus


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


async def withdraw_by_pid(session, request_pid, for_update: bool = False) -> Optional[WithdrawRequest]:
    pid = parse_uuid(request_pid)
    if pid is None:
        return None
    stmt = select(WithdrawRequest).where(WithdrawRequest.public_id == pid)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return (await session.execute(stmt)).scalar_one_or_none()


async def list_withdraw_requests(session, status: Optional[str] = None, search: Optional[str] = None,
                                 date_from: Optional[date] = None, date_to: Optional[date] = None,
                                 seller_id: Optional[int] = None):
    stmt = select(WithdrawRequest)
    if status:
        stmt = stmt.where(WithdrawRequest.status == status)
    if seller_id is not None:
        stmt = stmt.where(WithdrawRequest.seller_id == seller_id)
    if date_from:
        stmt = stmt.where(WithdrawRequest.requested_at >= _day_start(date_from))
    if date_to:
        # inclusive of the whole end day
        stmt = stmt.where(WithdrawRequest.requested_at < _day_start(date_to + timedelta(days=1)))
    stmt = stmt.order_by(WithdrawRequest.requested_at.desc(), WithdrawRequest.id.desc())
    rows = (await session.execute(stmt)).scalars().all()

    if search and search.strip():
        term = search.strip().lower()
        rows = [r for r in rows if term in (r.seller_name or "").lower() or term in str(r.public_id).lower()]
    return rows


async def oldest_pending_request(session, seller_id: int) -> Optional[WithdrawRequest]:
    stmt = (select(WithdrawRequest)
            .where(WithdrawRequest.seller_id == seller_id, WithdrawRequest.status == WithdrawStatus.PENDING.value)
            .order_by(WithdrawRequest.requested_at.asc(), WithdrawRequest.id.asc())
            .limit(1))
    return (await session.execute(stmt)).scalar_one_or_none()


async def hold_by_pid(session, hold_pid, for_update: bool = False) -> Optional[PaymentHold]:
    pid = parse_uuid(hold_pid)
    if pid is None:
        return None
    stmt = select(PaymentHold).where(PaymentHold.public_id == pid)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return (await session.execute(stmt)).scalar_one_or_none()


async def list_holds(session, seller_id: Optional[int] = None, status: Optional[str] = None):
    stmt = select(PaymentHold)
    if seller_id is not None:
        stmt = stmt.where(PaymentHold.seller_id == seller_id)
    if status:
        stmt = stmt.where(PaymentHold.status == status)
    stmt = stmt.order_by(PaymentHold.created_at.desc(), PaymentHold.id.desc())
    return (await session.execute(stmt)).scalars().all()


async def method_by_pid(session, method_pid) -> Optional[AdminPaymentMethod]:
    pid = parse_uuid(method_pid)
    if pid is None:
        return None
    stmt = select(AdminPaymentMethod).where(AdminPaymentMethod.public_id == pid, AdminPaymentMethod.is_active == True)
    return (await session.execute(stmt)).scalar_one_or_none()


async def active_methods(session):
    stmt = select(AdminPaymentMethod).where(AdminPaymentMethod.is_active == True).order_by(AdminPaymentMethod.created_at.desc())
    return (await session.execute(stmt)).scalars().all()
