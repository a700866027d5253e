from fastapi import HTTPException,status
from sqlalchemy.exc import IntegrityError
from goryl.auth.models import SignIn, SignupIn
from goryl.auth.repository import get_user_role_ids, identify_user, role_id_by_name, user_id_by_email
from goryl.auth.utils import create_access_token, hash_password
from goryl.common.utils import now
from goryl.schema.full_schema import Credential, CredentialType, Role, UserRole, Users, UserStatus
from goryl.auth.constants import logger


async def link_user_role(session,user_id,role_name):
    role_id = await role_id_by_name(session, role_name)
    if not role_id:
        role = Role(name=role_name)
        session.add(role)
        await session.flush()
        role_id = role.id

    session.add(UserRole(user_id=user_id, role_id=role_id))


async def create_user(session,payload: SignupIn):

    user_id = await user_id_by_email(session,payload.email)
    if user_id:
        logger.warning("user.duplicate", extra={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with email already exists")

    try:
        user = Users(email=payload.email, name=payload.name, phone=payload.phone, location=payload.location,
                     account_type=payload.role)
        session.add(user)
        await session.flush()

        pwd_hash = hash_password(payload.password)
        session.add(Credential(user_id=user.id, type=CredentialType.PASSWORD.value, provider="goryl", password_hash=pwd_hash))

        await link_user_role(session,user.id,payload.role)

        await session.commit()
        await session.refresh(user)
        logger.info("user.created", extra={"user_public_id": str(user.public_id), "role": payload.role})
        return user
    except IntegrityError:
        await session.rollback()
        logger.warning("user.create.integrity_error", extra={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with email already exists")


async def issue_access_token(session,payload: SignIn):

    user=await identify_user(session,payload.email,payload.password)

    if user.status in (UserStatus.SUSPENDED.value, UserStatus.BANNED.value):
        logger.warning("login.blocked", extra={"user_public_id": str(user.public_id), "status": user.status})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Your account is {user.status}")

    role_ids = await get_user_role_ids(session,user.id)
    access = create_access_token(user.public_id, role_ids)

    user.last_login_at = now()
    session.add(user)
    await session.commit()

    return access, user
