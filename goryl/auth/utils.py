from datetime import datetime, timedelta, timezone
import secrets
from passlib.context import CryptContext
from goryl.auth import SPECIALS
from jose import jwt, JWTError
from goryl.config.settings import config_settings

PASS_HASH_SCHEME=config_settings.PASS_HASH_SCHEME
ACCESS_TOKEN_EXPIRE_MINUTES = int(config_settings.ACCESS_TOKEN_EXPIRE_MINUTES)

pwd_context = CryptContext(schemes=[PASS_HASH_SCHEME], deprecated="auto")

def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)

def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def validate_password(password: str, min_length: int = 8) -> tuple[bool, str]:
    pw = password.strip()
    if len(pw) < min_length:
        return False, f"Password must be at least {min_length} characters long"
    if not any(c.islower() for c in pw):
        return False, "Password must include at least one lowercase letter"
    if not any(c.isupper() for c in pw):
        return False, "Password must include at least one uppercase letter"
    if not any(c.isdigit() for c in pw):
        return False, "Password must include at least one digit"
    if not any(c in SPECIALS for c in pw):
        return False, "Password must include at least one special character"
    return True, "OK"


def create_access_token(user_id,user_roles,expires_dur=ACCESS_TOKEN_EXPIRE_MINUTES):
    now=datetime.now(timezone.utc)
    expiry= now + (timedelta(minutes=expires_dur))

    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(expiry.timestamp()),
        "jti": secrets.token_hex(16),
        "roles": list(user_roles),
    }
    token=jwt.encode(claims=payload,key=config_settings.JWT_SECRET,algorithm=config_settings.JWT_ALGO)
    return token


def decode_token(token:str):
    """To verify the signature , expiration and user claims of token"""
    try:
        return jwt.decode(
            token,
            key=config_settings.JWT_SECRET,
            algorithms=[config_settings.JWT_ALGO]
        )
    except JWTError:
        return None
