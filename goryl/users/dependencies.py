from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.auth.utils import decode_token
from goryl.db.dependencies import get_session
from goryl.schema.full_schema import Permission, RolePermission


class Authentication(HTTPBearer):
    def __init__(self,auto_error=True):
        super().__init__(auto_error=auto_error)

    async def __call__(self, request:Request) -> dict:
        auth_creds=await super().__call__(request)
        if auth_creds is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,detail="Not authenticated")
        token=auth_creds.credentials

        decoded_token=decode_token(token)

        if not decoded_token:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,detail="Invalid or expired token provided.")

        return decoded_token


async def require_user(request: Request) -> int:
    # anonymous callers reach this only on optional-auth paths
    user_identifier = getattr(request.state, "user_identifier", None)
    if user_identifier is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Please sign in to continue")
    return user_identifier


def require_permissions(perm:str):
    async def _checker(request: Request,
        session: AsyncSession = Depends(get_session),):
        user_roles=set(getattr(request.state, "user_roles", None) or [])

        if not user_roles:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Please sign in to continue")

        # check if the required permission belongs to any of the token roles
        stmt=(
            select(RolePermission.id)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .where(Permission.name == perm,RolePermission.role_id.in_(list(user_roles))).limit(1)
        )

        res=await session.execute(stmt)
        res=res.scalar_one_or_none()

        if not res:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,detail="You don't have permission to do that")

        return True

    return Depends(_checker)
