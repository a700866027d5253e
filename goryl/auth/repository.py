from sqlalchemy import select
from fastapi import HTTPException,status
from goryl.auth.utils import verify_password
from goryl.schema.full_schema import Credential,CredentialType,Role, UserRole,Users
from goryl.auth.constants import logger


async def user_by_email(session,email):
    stmt=select(Users).where(Users.email==email,Users.deleted_at.is_(None))
    result=await session.execute(stmt)
    user=result.scalar_one_or_none()
    if not user:
        logger.warning("auth.user.not_found", extra={"email": email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return user


async def user_id_by_email(session,email):
    stmt=select(Users.id).where(Users.email==email,Users.deleted_at.is_(None))
    result=await session.execute(stmt)
    return result.scalar_one_or_none()


async def identify_user(session,email,password):
    email = email.strip().lower()
    user=await user_by_email(session,email)

    stmt= select(Credential.password_hash).where(Credential.user_id == user.id, Credential.type == CredentialType.PASSWORD.value,
                                                  Credential.revoked_at.is_(None))
    pwd_hash = (await session.execute(stmt)).scalar_one_or_none()

    if not pwd_hash or not verify_password(password, pwd_hash):
        logger.warning("auth.user.invalid_credentials", extra={"user_public_id": str(user.public_id)})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    return user


async def role_id_by_name(session,role_name):
    stmt = select(Role.id).where(Role.name == role_name)
    return (await session.execute(stmt)).scalar_one_or_none()


async def get_user_role_ids(session,user_id):
    stmt=select(Role.id).join(UserRole,Role.id==UserRole.role_id).where(UserRole.user_id==user_id)
    result = await session.execute(stmt)
    return result.scalars().all()
