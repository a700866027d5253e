from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class AboutIn(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    bio: Optional[str] = Field(None, max_length=5000)
    location: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    avatar_url: Optional[str] = Field(None, max_length=1024)


class CompanyIn(BaseModel):
    company_name: Optional[str] = Field(None, max_length=255)
    registration_number: Optional[str] = Field(None, max_length=128)
    website: Optional[str] = Field(None, max_length=1024)
    industry: Optional[str] = Field(None, max_length=128)
    founded_year: Optional[int] = Field(None, ge=1800, le=2100)
    employee_count: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    address: Optional[str] = Field(None, max_length=512)


class TeamMemberIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    title: Optional[str] = Field(None, max_length=128)
    email: Optional[EmailStr] = None
    avatar_url: Optional[str] = Field(None, max_length=1024)
