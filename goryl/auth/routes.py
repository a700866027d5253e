from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import  AsyncSession
from goryl.auth.constants import ACCESS_TOKEN_TTL_SECONDS
from goryl.auth.dependencies import signup_validation
from goryl.auth.models import SignIn, SignupIn
from goryl.auth.services import create_user, issue_access_token
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.auth.constants import logger

auth_router = APIRouter()


@auth_router.post("/login")
async def login_user(payload:SignIn, session: AsyncSession = Depends(get_session)):

    logger.info("login.attempt", extra={"email": payload.email})

    access, user = await issue_access_token(session,payload)

    logger.info("login.success", extra={"user_public_id": str(user.public_id)})
    return success_response({"access_token": access, "token_type": "bearer",
                             "expires_in": ACCESS_TOKEN_TTL_SECONDS, "role": user.account_type})


@auth_router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup_user(payload: SignupIn=Depends(signup_validation), session: AsyncSession = Depends(get_session)):

    logger.info("signup.attempt", extra={"email": payload.email, "role": payload.role})

    user=await create_user(session,payload)
    logger.info("signup.success", extra={"user_public_id": str(user.public_id)})
    return success_response({"message": "User created successfully.", "id": str(user.public_id)}, 201)
