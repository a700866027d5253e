from typing import Optional
from sqlalchemy import func, select
from goryl.common.utils import parse_uuid
from goryl.schema.full_schema import (CompanyInfo, Product, ProductStatus, Review, TeamMember, UserFollow, Users)


async def follower_count(session, user_id: int) -> int:
    stmt = select(func.count(UserFollow.id)).where(UserFollow.followee_id==user_id)
    return (await session.execute(stmt)).scalar_one()


async def following_count(session, user_id: int) -> int:
    stmt = select(func.count(UserFollow.id)).where(UserFollow.follower_id==user_id)
    return (await session.execute(stmt)).scalar_one()


async def follow_row(session, follower_id: int, followee_id: int) -> Optional[UserFollow]:
    stmt = select(UserFollow).where(UserFollow.follower_id==follower_id, UserFollow.followee_id==followee_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def approved_product_count(session, seller_id: int) -> int:
    stmt = select(func.count(Product.id)).where(Product.seller_id==seller_id, Product.deleted_at.is_(None),
                                                Product.status==ProductStatus.APPROVED.value)
    return (await session.execute(stmt)).scalar_one()


async def seller_reviews(session, seller_id: int, limit: int):
    stmt = (select(Review, Users.name, Product.name)
            .join(Users, Users.id==Review.reviewer_id)
            .join(Product, Product.id==Review.product_id)
            .where(Review.seller_id==seller_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit))
    return (await session.execute(stmt)).all()


async def company_for(session, user_id: int) -> Optional[CompanyInfo]:
    stmt = select(CompanyInfo).where(CompanyInfo.user_id==user_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def team_for(session, owner_id: int):
    stmt = select(TeamMember).where(TeamMember.owner_id==owner_id).order_by(TeamMember.created_at, TeamMember.id)
    return (await session.execute(stmt)).scalars().all()


async def team_member_by_pid(session, member_pid) -> Optional[TeamMember]:
    pid = parse_uuid(member_pid)
    if pid is None:
        return None
    stmt = select(TeamMember).where(TeamMember.public_id==pid)
    return (await session.execute(stmt)).scalar_one_or_none()
