from typing import Optional, Sequence
from fastapi import HTTPException, Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from goryl.common.utils import build_error, json_error
from goryl.schema.full_schema import UserStatus
from goryl.users.dependencies import Authentication
from goryl.users.repository import identify_user_by_pid
from goryl.middlewares.constants import logger


def _set_anonymous(request: Request):
    request.state.user_identifier = None
    request.state.user_public_id = None
    request.state.user_roles = []
    request.state.account_type = None
    request.state.user_name = None


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Resolves the bearer token to a user row for every path not listed in `paths`.

    Paths in `maybe_auth_paths` are served anonymously when no Authorization header is sent,
    a header that is sent must still be valid.
    """

    def __init__(self, app, *, session_maker, paths: Sequence[str], maybe_auth_paths: Optional[Sequence[str]] = None):
        super().__init__(app)
        self.session_maker = session_maker
        self.paths = list(paths)
        self.maybe_auth_paths = list(maybe_auth_paths or [])

    async def dispatch(self, request: Request, call_next):

        _set_anonymous(request)

        if any(request.url.path.startswith(p) for p in self.paths):
            return await call_next(request)

        maybe = any(request.url.path.startswith(p) for p in self.maybe_auth_paths)
        if maybe and not request.headers.get("authorization"):
            return await call_next(request)

        logger.debug("auth.middleware.attempt", extra={
            "path": request.url.path,
            "method": request.method
        })

        try:
            auth_token = await Authentication()(request)
        except HTTPException as e:
            logger.warning("auth.middleware.failed", extra={
                "reason": e.detail,
                "path": request.url.path,
                "method": request.method
            })
            payload = build_error(code="INVALID_AUTH", details={"message":"Missing or Invalid Auth Headers"})
            return json_error(payload, status_code=status.HTTP_401_UNAUTHORIZED)

        user_pid = auth_token.get("sub")

        async with self.session_maker() as session:
            user = await identify_user_by_pid(session,user_pid)

        if not user:
            logger.warning("auth.middleware.user_not_found", extra={
                "user_public_id": user_pid,
                "path": request.url.path
            })
            payload = build_error(code="INVALID_AUTH", details={"message":"User unidentified and not authorized"})
            return json_error(payload, status_code=status.HTTP_403_FORBIDDEN)

        if user.status in (UserStatus.SUSPENDED.value, UserStatus.BANNED.value):
            logger.warning("auth.middleware.account_blocked", extra={
                "user_public_id": user_pid,
                "status": user.status
            })
            payload = build_error(code="ACCOUNT_BLOCKED", details={"message":f"Your account is {user.status}"})
            return json_error(payload, status_code=status.HTTP_403_FORBIDDEN)

        request.state.user_identifier = user.id
        request.state.user_public_id = user_pid
        request.state.user_roles = auth_token.get("roles") or []
        request.state.account_type = user.account_type
        request.state.user_name = user.name

        return await call_next(request)
