from typing import Optional
from pydantic import BaseModel


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: str
    status: str
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    kyc_status: Optional[str] = None
    created_at: Optional[str] = None
    last_login_at: Optional[str] = None
