from typing import  Optional
from pydantic import BaseModel, Field


class SignupIn(BaseModel):
    email: str = Field(..., examples=["seller@goryl.pk"])
    password: str = Field(..., examples=["Str0ng!Pass"])
    name: Optional[str] = Field(None, examples=["Ayesha Khan"])
    role: str = Field("normal", examples=["personal"])
    phone: Optional[str] = None
    location: Optional[str] = None

class SignIn(BaseModel):
    email: str = Field(...)
    password: str = Field(...)
