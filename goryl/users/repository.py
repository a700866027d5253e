from typing import Optional
from sqlalchemy import func, or_, select, update
from goryl.common.constants import SELLER_ROLES
from goryl.common.utils import LIKE_ESCAPE, contains_pattern, now, parse_uuid
from goryl.schema.full_schema import Users, UserStatus


async def identify_user_by_pid(session,user_pid):
    pid = parse_uuid(user_pid)
    if pid is None:
        return None
    stmt=select(Users.id,Users.status,Users.account_type,Users.name).where(Users.public_id==pid,Users.deleted_at==None)
    res=await session.execute(stmt)
    return res.first()


async def lock_account(session, user_id: int):
    """Takes the account row lock for the rest of the transaction.

    Balance checks and KYC submissions for one seller run one at a time behind it.
    """
    stmt = (update(Users).where(Users.id == user_id)
            .values(updated_at=now())
            .execution_options(synchronize_session=False))
    await session.execute(stmt)


async def get_user_by_pid(session,user_pid) -> Optional[Users]:
    pid = parse_uuid(user_pid)
    if pid is None:
        return None
    stmt=select(Users).where(Users.public_id==pid,Users.deleted_at==None)
    return (await session.execute(stmt)).scalar_one_or_none()


async def get_user(session,user_id) -> Optional[Users]:
    return await session.get(Users, user_id)


async def list_users(session, search: Optional[str] = None, role: Optional[str] = None, status: Optional[str] = None):
    stmt = select(Users).where(Users.deleted_at==None)
    if search:
        term = contains_pattern(search.strip().lower())
        stmt = stmt.where(or_(
            func.lower(Users.name).like(term, escape=LIKE_ESCAPE),
            func.lower(Users.email).like(term, escape=LIKE_ESCAPE),
            func.lower(Users.location).like(term, escape=LIKE_ESCAPE),
        ))
    if role:
        stmt = stmt.where(Users.account_type==role)
    if status:
        stmt = stmt.where(Users.status==status)
    stmt = stmt.order_by(Users.created_at.desc(), Users.id.desc())
    return (await session.execute(stmt)).scalars().all()


async def user_counts(session):
    base = select(func.count(Users.id)).where(Users.deleted_at==None)
    total = (await session.execute(base)).scalar_one()
    active = (await session.execute(base.where(Users.status==UserStatus.ACTIVE.value))).scalar_one()
    sellers = (await session.execute(base.where(Users.account_type.in_(SELLER_ROLES)))).scalar_one()
    pending = (await session.execute(base.where(Users.status==UserStatus.PENDING.value))).scalar_one()
    return {"total": total, "active": active, "sellers": sellers, "pending": pending}


async def list_sellers(session):
    stmt = select(Users).where(Users.deleted_at==None, Users.account_type.in_(SELLER_ROLES)).order_by(Users.id)
    return (await session.execute(stmt)).scalars().all()
