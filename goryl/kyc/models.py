from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class AddressIn(BaseModel):
    street: str = ""
    city: str = ""
    province: str = ""
    postal_code: str = ""
    country: str = "Pakistan"


# every field is optional so a half-filled wizard can be checked step by step
class ArtisanKYCIn(BaseModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    cnic: str = ""
    cnic_front_url: Optional[str] = None
    cnic_back_url: Optional[str] = None
    selfie_url: Optional[str] = None
    address: AddressIn = Field(default_factory=AddressIn)
    production_address: str = ""
    product_proof_urls: List[str] = Field(default_factory=list)
    product_description: str = ""
    payoneer_email: str = ""
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    bank_account_title: Optional[str] = None


class BusinessKYCIn(BaseModel):
    full_name: str = ""
    business_name: str = ""
    email: str = ""
    phone: str = ""
    business_registration_id: Optional[str] = None
    fbr_ntn: Optional[str] = None
    business_license_url: Optional[str] = None
    tax_certificate_url: Optional[str] = None
    cnic: str = ""
    cnic_front_url: Optional[str] = None
    cnic_back_url: Optional[str] = None
    address: AddressIn = Field(default_factory=AddressIn)
    bank_name: str = ""
    bank_account_number: str = ""
    bank_account_title: str = ""
    iban: Optional[str] = None


class KYCReviewIn(BaseModel):
    action: Literal["approve", "reject"]
    tier: Optional[Literal["tier1", "tier2", "tier3"]] = None
    remarks: Optional[str] = None
    rejection_reason: Optional[str] = None
