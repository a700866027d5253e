import re
from typing import Optional, Union
from goryl.kyc.constants import ARTISAN_STEPS, BUSINESS_STEPS
from goryl.kyc.models import ArtisanKYCIn, BusinessKYCIn

_NON_DIGIT = re.compile(r"[^0-9]")


def validate_cnic(value: Optional[str]) -> dict:
    """CNIC check: digits only, exactly 13 of them, formatted as #####-#######-#."""
    cleaned = _NON_DIGIT.sub("", str(value or ""))
    if not cleaned:
        return {"is_valid": False, "formatted": None, "error": "CNIC is required"}
    if len(cleaned) != 13:
        return {"is_valid": False, "formatted": None, "error": "CNIC must be exactly 13 digits"}
    return {"is_valid": True, "formatted": f"{cleaned[:5]}-{cleaned[5:12]}-{cleaned[12]}", "error": None}


def _blank(value) -> bool:
    return not (value or "").strip()


def _cnic_step(form: Union[ArtisanKYCIn, BusinessKYCIn]) -> Optional[str]:
    result = validate_cnic(form.cnic)
    if not result["is_valid"]:
        return result["error"] or "Invalid CNIC"
    if _blank(form.cnic_front_url) or _blank(form.cnic_back_url):
        return "Please upload both CNIC front and back images"
    return None


def _address_step(form: Union[ArtisanKYCIn, BusinessKYCIn]) -> Optional[str]:
    a = form.address
    if _blank(a.street) or _blank(a.city) or _blank(a.province):
        return "Please fill complete address"
    return None


def validate_artisan_step(form: ArtisanKYCIn, step: int) -> Optional[str]:
    """Returns the error message for `step`, None when the step is complete."""
    if step == 1:
        if _blank(form.full_name) or _blank(form.email) or _blank(form.phone):
            return "Please fill all required fields"
    elif step == 2:
        return _cnic_step(form)
    elif step == 3:
        if _blank(form.selfie_url):
            return "Please upload a selfie with your CNIC"
    elif step == 4:
        return _address_step(form)
    elif step == 5:
        if _blank(form.production_address):
            return "Please provide your production address"
    elif step == 6:
        if not [u for u in form.product_proof_urls if u and u.strip()]:
            return "Please upload at least one product proof (video or photo)"
        if _blank(form.product_description):
            return "Please describe your products"
    elif step == 7:
        if _blank(form.payoneer_email):
            return "Payoneer email is required"
    return None


def validate_business_step(form: BusinessKYCIn, step: int) -> Optional[str]:
    if step == 1:
        if _blank(form.full_name) or _blank(form.business_name) or _blank(form.email) or _blank(form.phone):
            return "Please fill all required fields"
    elif step == 2:
        if _blank(form.business_registration_id) and _blank(form.fbr_ntn):
            return "Either Business Registration ID or FBR NTN is required"
    elif step == 3:
        return _cnic_step(form)
    elif step == 4:
        return _address_step(form)
    elif step == 5:
        if _blank(form.bank_name) or _blank(form.bank_account_number) or _blank(form.bank_account_title):
            return "Please fill all bank details"
    return None


STEP_VALIDATORS = {
    "artisan": (ArtisanKYCIn, validate_artisan_step, ARTISAN_STEPS),
    "business": (BusinessKYCIn, validate_business_step, BUSINESS_STEPS),
}


def first_error(category: str, form) -> Optional[str]:
    _, validator, steps = STEP_VALIDATORS[category]
    for step in range(1, steps + 1):
        error = validator(form, step)
        if error:
            return error
    return None
