from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import  AsyncSession
from goryl.common.csv_export import build_csv, csv_response
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.users.constants import logger
from goryl.users.dependencies import require_permissions
from goryl.users.repository import get_user, list_users, user_counts
from goryl.users.services import apply_user_action, user_record, users_csv_rows


user_router=APIRouter()
user_admin_router=APIRouter()


@user_router.get("/me")
async def get_user_profile(request:Request, session: AsyncSession = Depends(get_session)):
    user = await get_user(session, request.state.user_identifier)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return success_response(user_record(user))


@user_admin_router.get("", dependencies=[require_permissions("users:manage")])
async def admin_list_users(search: Optional[str] = Query(None), role: Optional[str] = Query(None),
                           status_filter: Optional[str] = Query(None, alias="status"),
                           session: AsyncSession = Depends(get_session)):

    users = await list_users(session, search, role, status_filter)
    counts = await user_counts(session)
    return success_response({"items": [user_record(u) for u in users], "counts": counts})


@user_admin_router.get("/export", dependencies=[require_permissions("users:manage")])
async def admin_export_users(search: Optional[str] = Query(None), role: Optional[str] = Query(None),
                             status_filter: Optional[str] = Query(None, alias="status"),
                             session: AsyncSession = Depends(get_session)):

    users = await list_users(session, search, role, status_filter)
    logger.info("admin.users.export", extra={"rows": len(users)})
    return csv_response(build_csv(users_csv_rows(users)), "users")


@user_admin_router.post("/{user_public_id}/{action}", dependencies=[require_permissions("users:manage")])
async def admin_user_action(request: Request, user_public_id: str, action: str,
                            session: AsyncSession = Depends(get_session)):

    logger.info("admin.user.action.attempt", extra={"target": user_public_id, "action": action})
    user = await apply_user_action(session, user_public_id, action, request.state.user_identifier)
    await session.commit()
    return success_response({"message": f"User {action} successful", "user": user_record(user)})
