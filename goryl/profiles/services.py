from typing import List, Optional
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from goryl.common.constants import SELLER_ROLES
from goryl.common.utils import iso, now
from goryl.products.repository import list_products, seller_rating
from goryl.products.utils import product_out
from goryl.profiles.constants import BASE_TABS, ORG_ROLES, ORG_TABS, PROFILE_PRODUCTS_LIMIT, PROFILE_REVIEWS_LIMIT, logger
from goryl.profiles.models import AboutIn, CompanyIn, TeamMemberIn
from goryl.profiles.repository import (approved_product_count, company_for, follow_row, follower_count, following_count,
                                       seller_reviews, team_for, team_member_by_pid)
from goryl.schema.full_schema import CompanyInfo, ProductStatus, TeamMember, UserFollow, Users
from goryl.users.repository import get_user_by_pid


def profile_tabs(account_type: str) -> List[str]:
    tabs = list(BASE_TABS)
    if account_type in ORG_ROLES:
        tabs.extend(ORG_TABS)
    return tabs


async def profile_user(session, user_pid: str) -> Users:
    user = await get_user_by_pid(session, user_pid)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return user


def _require_org(user: Users):
    if user.account_type not in ORG_ROLES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="This profile has no company page")


async def banner(session, user: Users, viewer_id: Optional[int] = None) -> dict:
    is_seller = user.account_type in SELLER_ROLES
    out = {
        "id": str(user.public_id),
        "name": user.name or "Unknown User",
        "avatar_url": user.avatar_url,
        "role": user.account_type,
        "location": user.location,
        "verified": bool(is_seller and user.kyc_status == "verified"),
        "product_count": await approved_product_count(session, user.id) if is_seller else 0,
        "follower_count": await follower_count(session, user.id),
        "following_count": await following_count(session, user.id),
        "member_since": iso(user.created_at),
        "tabs": profile_tabs(user.account_type),
        "is_owner": viewer_id == user.id,
    }
    if viewer_id is not None and viewer_id != user.id:
        out["is_following"] = await follow_row(session, viewer_id, user.id) is not None
    return out


async def profile_products(session, user: Users, viewer_id: Optional[int] = None) -> List[dict]:
    # owners see their pending and rejected listings too
    only = None if viewer_id == user.id else ProductStatus.APPROVED.value
    rows = await list_products(session, seller_id=user.id, status=only, limit=PROFILE_PRODUCTS_LIMIT)
    return [product_out(p) for p in rows]


async def profile_reviews(session, user: Users) -> dict:
    rows = await seller_reviews(session, user.id, PROFILE_REVIEWS_LIMIT)
    average, count = await seller_rating(session, user.id)
    items = [{
        "id": str(review.public_id),
        "rating": review.rating,
        "comment": review.comment or "",
        "reviewer_name": reviewer_name or "Unknown User",
        "product_name": product_name,
        "created_at": iso(review.created_at),
    } for review, reviewer_name, product_name in rows]
    return {"items": items, "average_rating": average, "review_count": count}


def about_out(user: Users) -> dict:
    return {
        "name": user.name or "Unknown User",
        "bio": user.bio or "",
        "location": user.location,
        "phone": user.phone,
        "email": user.email,
        "avatar_url": user.avatar_url,
        "role": user.account_type,
        "member_since": iso(user.created_at),
    }


def company_out(info: Optional[CompanyInfo]) -> dict:
    if info is None:
        return {}
    return {
        "company_name": info.company_name,
        "registration_number": info.registration_number,
        "website": info.website,
        "industry": info.industry,
        "founded_year": info.founded_year,
        "employee_count": info.employee_count,
        "description": info.description or "",
        "address": info.address,
        "updated_at": iso(info.updated_at),
    }


def member_out(m: TeamMember) -> dict:
    return {"id": str(m.public_id), "name": m.name, "title": m.title, "email": m.email,
            "avatar_url": m.avatar_url, "created_at": iso(m.created_at)}


async def profile_company(session, user: Users) -> dict:
    _require_org(user)
    return company_out(await company_for(session, user.id))


async def profile_team(session, user: Users) -> List[dict]:
    _require_org(user)
    return [member_out(m) for m in await team_for(session, user.id)]

#---------------------------------------------------------------------------------------------------------

async def update_about(session, user: Users, payload: AboutIn) -> Users:
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(user, field, value.strip() if isinstance(value, str) else value)
    user.updated_at = now()
    session.add(user)
    await session.commit()
    logger.info("profile.about.updated", extra={"fields": sorted(changes)})
    return user


def _require_org_owner(user: Users):
    if user.account_type not in ORG_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="Only brand and company accounts have a company profile")


async def upsert_company(session, user: Users, payload: CompanyIn) -> CompanyInfo:
    _require_org_owner(user)
    info = await company_for(session, user.id)
    if info is None:
        info = CompanyInfo(user_id=user.id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(info, field, value)
    info.updated_at = now()
    session.add(info)
    await session.commit()
    logger.info("profile.company.saved", extra={"user_id": user.id})
    return info


async def add_team_member(session, user: Users, payload: TeamMemberIn) -> TeamMember:
    _require_org_owner(user)
    member = TeamMember(owner_id=user.id, name=payload.name.strip(), title=payload.title,
                        email=str(payload.email) if payload.email else None, avatar_url=payload.avatar_url)
    session.add(member)
    await session.commit()
    logger.info("profile.team.added", extra={"member_id": str(member.public_id)})
    return member


async def remove_team_member(session, user: Users, member_pid: str):
    _require_org_owner(user)
    member = await team_member_by_pid(session, member_pid)
    if not member or member.owner_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found")
    await session.delete(member)
    await session.commit()
    logger.info("profile.team.removed", extra={"member_id": member_pid})


async def follow_user(session, follower: Users, target: Users) -> bool:
    if follower.id == target.id:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="You cannot follow yourself")
    if await follow_row(session, follower.id, target.id):
        return False
    session.add(UserFollow(follower_id=follower.id, followee_id=target.id))
    try:
        await session.commit()
    except IntegrityError:
        # lost a race with a duplicate follow
        await session.rollback()
        return False
    return True


async def unfollow_user(session, follower: Users, target: Users) -> bool:
    row = await follow_row(session, follower.id, target.id)
    if not row:
        return False
    await session.delete(row)
    await session.commit()
    return True
