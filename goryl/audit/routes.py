from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.audit.repository import latest_audit
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.users.dependencies import require_permissions

audit_admin_router=APIRouter()


@audit_admin_router.get("", dependencies=[require_permissions("audit:view")])
async def audit_log(limit: int = Query(100, ge=1, le=500), session: AsyncSession = Depends(get_session)):
    return success_response({"items": await latest_audit(session, limit)})
