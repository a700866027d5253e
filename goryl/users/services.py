from fastapi import HTTPException, status
from goryl.audit.repository import write_audit
from goryl.common.money import format_date
from goryl.common.utils import iso, now
from goryl.schema.full_schema import Users
from goryl.users.constants import USER_ACTIONS, USERS_CSV_HEADER, logger
from goryl.users.models import UserOut
from goryl.users.repository import get_user_by_pid


def user_record(user: Users) -> dict:
    # display record, optional fields fall back to stable defaults
    return UserOut(
        id=str(user.public_id),
        email=user.email,
        name=user.name or "Unknown User",
        role=user.account_type or "normal",
        status=user.status or "active",
        phone=user.phone,
        location=user.location,
        bio=user.bio,
        avatar_url=user.avatar_url,
        kyc_status=user.kyc_status,
        created_at=iso(user.created_at),
        last_login_at=iso(user.last_login_at),
    ).model_dump()


async def apply_user_action(session, target_pid: str, action: str, actor_id: int):
    new_status = USER_ACTIONS.get(action)
    if new_status is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown action: {action}")

    user = await get_user_by_pid(session, target_pid)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.id == actor_id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You cannot change your own account status")

    old_status = user.status
    user.status = new_status
    user.updated_at = now()
    session.add(user)

    await write_audit(session, actor_id, "admin", f"user.{action}", "user", str(user.public_id),
                      {"old_status": old_status, "new_status": new_status})
    logger.info("admin.user.status_changed", extra={"target": str(user.public_id), "status": new_status})
    return user


def users_csv_rows(users) -> list:
    rows = [USERS_CSV_HEADER]
    for u in users:
        rows.append([
            str(u.public_id),
            u.name or "Unknown User",
            u.email,
            u.account_type,
            u.status,
            u.location or "",
            format_date(u.created_at),
            format_date(u.last_login_at),
        ])
    return rows
