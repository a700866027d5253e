from email_validator import validate_email, EmailNotValidError
from fastapi import HTTPException,status
from goryl.auth.constants import SIGNUP_ROLES, logger
from goryl.auth.models import SignupIn
from goryl.auth.utils import validate_password


def normalize_email_address(email: str) -> str:
    """
    Validate and return normalized email (lowercased, normalized by email-validator).
    Raises ValueError if invalid.
    """
    try:
        v = validate_email(email, check_deliverability=False)
        return v.normalized.lower()
    except EmailNotValidError as e:
        raise ValueError(str(e))


async def signup_validation(payload: SignupIn) -> SignupIn:
    try:
        email = normalize_email_address(payload.email)
    except ValueError as e:
        logger.warning("signup.validation.email_invalid", extra={"email": payload.email, "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid email: {e}")

    if payload.role not in SIGNUP_ROLES:
        logger.warning("signup.validation.role_invalid", extra={"email": email, "role": payload.role})
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Role '{payload.role}' cannot be chosen at signup")

    is_valid, detail = validate_password(payload.password)
    if not is_valid:
        logger.warning("signup.validation.password_invalid", extra={"email": email, "reason": detail})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    return payload.model_copy(update={"email": email})
