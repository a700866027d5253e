from typing import Optional
from sqlalchemy import select
from goryl.common.utils import parse_uuid
from goryl.kyc.constants import OPEN_KYC_STATUSES
from goryl.schema.full_schema import SellerKYC, Users


async def open_kyc_for_user(session, user_id: int) -> Optional[SellerKYC]:
    stmt = (select(SellerKYC)
            .where(SellerKYC.user_id == user_id, SellerKYC.status.in_(OPEN_KYC_STATUSES))
            .order_by(SellerKYC.id.desc()).limit(1))
    return (await session.execute(stmt)).scalar_one_or_none()


async def latest_kyc_for_user(session, user_id: int) -> Optional[SellerKYC]:
    stmt = select(SellerKYC).where(SellerKYC.user_id == user_id).order_by(SellerKYC.id.desc()).limit(1)
    return (await session.execute(stmt)).scalar_one_or_none()


async def kyc_by_pid(session, kyc_pid, for_update: bool = False) -> Optional[SellerKYC]:
    pid = parse_uuid(kyc_pid)
    if pid is None:
        return None
    stmt = select(SellerKYC).where(SellerKYC.public_id == pid)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return (await session.execute(stmt)).scalar_one_or_none()


async def cnic_owners(session, cnic: str, exclude_user_id: int):
    stmt = (select(Users.public_id)
            .join(SellerKYC, SellerKYC.user_id == Users.id)
            .where(SellerKYC.cnic == cnic, SellerKYC.user_id != exclude_user_id)
            .distinct())
    return [str(pid) for pid in (await session.execute(stmt)).scalars().all()]


async def verified_tier(session, user_id: int) -> Optional[str]:
    stmt = (select(SellerKYC.tier)
            .where(SellerKYC.user_id == user_id, SellerKYC.status == "verified")
            .order_by(SellerKYC.verified_at.desc()).limit(1))
    return (await session.execute(stmt)).scalar_one_or_none()


async def list_kyc(session, status: Optional[str] = None, limit: int = 200):
    stmt = select(SellerKYC)
    if status:
        stmt = stmt.where(SellerKYC.status == status)
    stmt = stmt.order_by(SellerKYC.submitted_at.desc(), SellerKYC.id.desc()).limit(limit)
    return (await session.execute(stmt)).scalars().all()
