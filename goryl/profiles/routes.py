from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.profiles.models import AboutIn, CompanyIn, TeamMemberIn
from goryl.profiles.services import (about_out, add_team_member, banner, company_out, follow_user, member_out,
                                     profile_company, profile_products, profile_reviews, profile_team, profile_user,
                                     remove_team_member, unfollow_user, update_about, upsert_company)
from goryl.users.dependencies import require_user
from goryl.users.repository import get_user

profiles_router=APIRouter()


def _viewer(request: Request):
    return getattr(request.state, "user_identifier", None)

# owner edits, declared before the /{user_public_id} routes

@profiles_router.put("/me/about")
async def edit_about(payload: AboutIn, user_id: int = Depends(require_user), session: AsyncSession = Depends(get_session)):
    user = await update_about(session, await get_user(session, user_id), payload)
    return success_response(about_out(user))


@profiles_router.put("/me/company")
async def edit_company(payload: CompanyIn, user_id: int = Depends(require_user), session: AsyncSession = Depends(get_session)):
    info = await upsert_company(session, await get_user(session, user_id), payload)
    return success_response(company_out(info))


@profiles_router.post("/me/team")
async def add_member(payload: TeamMemberIn, user_id: int = Depends(require_user), session: AsyncSession = Depends(get_session)):
    member = await add_team_member(session, await get_user(session, user_id), payload)
    return success_response(member_out(member), status_code=status.HTTP_201_CREATED)


@profiles_router.delete("/me/team/{member_id}")
async def delete_member(member_id: str, user_id: int = Depends(require_user), session: AsyncSession = Depends(get_session)):
    await remove_team_member(session, await get_user(session, user_id), member_id)
    return success_response({"message": "Team member removed"})

#----------------------------------------------------------------------------------------------------------

@profiles_router.get("/{user_public_id}")
async def get_profile(request: Request, user_public_id: str, session: AsyncSession = Depends(get_session)):
    user = await profile_user(session, user_public_id)
    return success_response(await banner(session, user, _viewer(request)))


@profiles_router.get("/{user_public_id}/products")
async def get_profile_products(request: Request, user_public_id: str, session: AsyncSession = Depends(get_session)):
    user = await profile_user(session, user_public_id)
    return success_response({"items": await profile_products(session, user, _viewer(request))})


@profiles_router.get("/{user_public_id}/reviews")
async def get_profile_reviews(user_public_id: str, session: AsyncSession = Depends(get_session)):
    user = await profile_user(session, user_public_id)
    return success_response(await profile_reviews(session, user))


@profiles_router.get("/{user_public_id}/about")
async def get_profile_about(user_public_id: str, session: AsyncSession = Depends(get_session)):
    user = await profile_user(session, user_public_id)
    return success_response(about_out(user))


@profiles_router.get("/{user_public_id}/company")
async def get_profile_company(user_public_id: str, session: AsyncSession = Depends(get_session)):
    user = await profile_user(session, user_public_id)
    return success_response(await profile_company(session, user))


@profiles_router.get("/{user_public_id}/team")
async def get_profile_team(user_public_id: str, session: AsyncSession = Depends(get_session)):
    user = await profile_user(session, user_public_id)
    return success_response({"items": await profile_team(session, user)})


@profiles_router.post("/{user_public_id}/follow")
async def follow(user_public_id: str, user_id: int = Depends(require_user), session: AsyncSession = Depends(get_session)):
    target = await profile_user(session, user_public_id)
    created = await follow_user(session, await get_user(session, user_id), target)
    return success_response({"following": True, "created": created})


@profiles_router.delete("/{user_public_id}/follow")
async def unfollow(user_public_id: str, user_id: int = Depends(require_user), session: AsyncSession = Depends(get_session)):
    target = await profile_user(session, user_public_id)
    removed = await unfollow_user(session, await get_user(session, user_id), target)
    return success_response({"following": False, "removed": removed})
