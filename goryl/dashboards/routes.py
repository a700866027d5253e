from typing import Literal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.common.utils import success_response
from goryl.dashboards.constants import DEFAULT_PERIOD
from goryl.dashboards.services import admin_stats, user_dashboard
from goryl.db.dependencies import get_session
from goryl.users.dependencies import require_permissions, require_user
from goryl.users.repository import get_user

dashboard_router=APIRouter()
stats_admin_router=APIRouter()


@dashboard_router.get("")
async def my_dashboard(period: Literal["daily", "weekly", "monthly", "yearly"] = Query(DEFAULT_PERIOD),
                       user_id: int = Depends(require_user),
                       session: AsyncSession = Depends(get_session)):
    user = await get_user(session, user_id)
    return success_response(await user_dashboard(session, user, period))


@stats_admin_router.get("/stats", dependencies=[require_permissions("stats:view")])
async def platform_stats(session: AsyncSession = Depends(get_session)):
    return success_response(await admin_stats(session))
