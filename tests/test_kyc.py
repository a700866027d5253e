import asyncio
import pytest
from fastapi import HTTPException
from goryl.kyc.models import ArtisanKYCIn, BusinessKYCIn
from goryl.kyc.services import create_artisan_kyc
from goryl.kyc.validation import first_error, validate_artisan_step, validate_business_step, validate_cnic
from goryl.users.repository import get_user_by_pid

url_prefix="/api/v1"

ADDRESS = {"street": "12 Anarkali Bazaar", "city": "Lahore", "province": "Punjab", "postal_code": "54000"}

ARTISAN_FORM = {
    "full_name": "Sana Seller",
    "email": "seller@goryl.pk",
    "phone": "+923001234567",
    "cnic": "35202-1234567-1",
    "cnic_front_url": "https://cdn.goryl.pk/kyc/front.jpg",
    "cnic_back_url": "https://cdn.goryl.pk/kyc/back.jpg",
    "selfie_url": "https://cdn.goryl.pk/kyc/selfie.jpg",
    "address": ADDRESS,
    "production_address": "Workshop 4, Multan Road",
    "product_proof_urls": ["https://cdn.goryl.pk/kyc/loom.mp4"],
    "product_description": "Hand woven khaddar shawls",
    "payoneer_email": "sana@payoneer.com",
}

BUSINESS_FORM = {
    "full_name": "Imran Ali",
    "business_name": "Indus Threads Pvt Ltd",
    "email": "brand@goryl.pk",
    "phone": "+923331234567",
    "fbr_ntn": "1234567-8",
    "cnic": "4210112345671",
    "cnic_front_url": "https://cdn.goryl.pk/kyc/b-front.jpg",
    "cnic_back_url": "https://cdn.goryl.pk/kyc/b-back.jpg",
    "address": ADDRESS,
    "bank_name": "Meezan Bank",
    "bank_account_number": "0101234567890",
    "bank_account_title": "Indus Threads",
    "iban": "PK36MEZN0001010123456789",
}


def _message(resp):
    return resp.json()["error"]["details"]["message"]


@pytest.mark.parametrize("raw,formatted", [
    ("3520212345671", "35202-1234567-1"),
    ("35202-1234567-1", "35202-1234567-1"),
    (" 35202 1234567 1 ", "35202-1234567-1"),
])
def test_cnic_is_normalized(raw, formatted):
    result = validate_cnic(raw)
    assert result["is_valid"] is True
    assert result["formatted"] == formatted


@pytest.mark.parametrize("raw,error", [
    ("", "CNIC is required"),
    (None, "CNIC is required"),
    ("abc", "CNIC is required"),
    ("35202-123456", "CNIC must be exactly 13 digits"),
    ("352021234567123", "CNIC must be exactly 13 digits"),
])
def test_cnic_errors(raw, error):
    result = validate_cnic(raw)
    assert result["is_valid"] is False
    assert result["formatted"] is None
    assert result["error"] == error


def test_artisan_steps_in_order():
    form = ArtisanKYCIn()
    assert validate_artisan_step(form, 1) == "Please fill all required fields"
    assert first_error("artisan", form) == "Please fill all required fields"

    form = ArtisanKYCIn(**{**ARTISAN_FORM, "selfie_url": None})
    assert validate_artisan_step(form, 2) is None
    assert first_error("artisan", form) == "Please upload a selfie with your CNIC"

    form = ArtisanKYCIn(**{**ARTISAN_FORM, "product_proof_urls": ["  "]})
    assert validate_artisan_step(form, 6) == "Please upload at least one product proof (video or photo)"

    assert first_error("artisan", ArtisanKYCIn(**ARTISAN_FORM)) is None


def test_business_needs_registration_or_ntn():
    form = BusinessKYCIn(**{**BUSINESS_FORM, "fbr_ntn": None})
    assert validate_business_step(form, 2) == "Either Business Registration ID or FBR NTN is required"

    form = BusinessKYCIn(**{**BUSINESS_FORM, "fbr_ntn": None, "business_registration_id": "SECP-0099"})
    assert validate_business_step(form, 2) is None

    form = BusinessKYCIn(**{**BUSINESS_FORM, "cnic_back_url": ""})
    assert validate_business_step(form, 3) == "Please upload both CNIC front and back images"

    form = BusinessKYCIn(**{**BUSINESS_FORM, "address": {"street": "x", "city": "", "province": "Sindh"}})
    assert first_error("business", form) == "Please fill complete address"


@pytest.mark.asyncio
async def test_public_helpers(ac_client, seller):
    resp = await ac_client.get(f"{url_prefix}/kyc/tiers", headers=seller.headers)
    tiers = resp.json()["data"]["items"]
    assert [t["tier"] for t in tiers] == ["tier1", "tier2", "tier3"]
    assert tiers[2]["payment_restrictions"]["withdrawal_limit"] is None

    resp = await ac_client.get(f"{url_prefix}/kyc/cnic/validate", headers=seller.headers, params={"value": "3520212345671"})
    assert resp.json()["data"]["formatted"] == "35202-1234567-1"

    resp = await ac_client.post(f"{url_prefix}/kyc/artisan/steps/2/validate", headers=seller.headers,
                                json={"cnic": "123"})
    assert resp.status_code == 200
    assert resp.json()["data"] == {"step": 2, "is_valid": False, "error": "CNIC must be exactly 13 digits"}

    resp = await ac_client.post(f"{url_prefix}/kyc/business/steps/5/validate", headers=seller.headers, json=BUSINESS_FORM)
    assert resp.json()["data"]["is_valid"] is True

    resp = await ac_client.post(f"{url_prefix}/kyc/artisan/steps/9/validate", headers=seller.headers, json={})
    assert resp.status_code == 422

    resp = await ac_client.post(f"{url_prefix}/kyc/freelancer/steps/1/validate", headers=seller.headers, json={})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_submit_and_approve_artisan(ac_client, seller, admin):
    resp = await ac_client.post(f"{url_prefix}/kyc/artisan", headers=seller.headers, json={**ARTISAN_FORM, "selfie_url": ""})
    assert resp.status_code == 422
    assert _message(resp) == "Please upload a selfie with your CNIC"

    resp = await ac_client.post(f"{url_prefix}/kyc/artisan", headers=seller.headers, json=ARTISAN_FORM)
    assert resp.status_code == 201
    kyc_id = resp.json()["data"]["id"]

    resp = await ac_client.post(f"{url_prefix}/kyc/artisan", headers=seller.headers, json=ARTISAN_FORM)
    assert resp.status_code == 409
    assert _message(resp) == "You already have a KYC submission under review"

    resp = await ac_client.get(f"{url_prefix}/kyc/me", headers=seller.headers)
    mine = resp.json()["data"]
    assert mine["id"] == kyc_id
    assert mine["status"] == "pending"
    assert mine["tier"] == "tier1"
    assert mine["fraud_detection"]["cnic_duplicate_found"] is False

    resp = await ac_client.get(f"{url_prefix}/admin/kyc", headers=admin.headers, params={"status": "pending"})
    assert [k["id"] for k in resp.json()["data"]["items"]] == [kyc_id]

    review = f"{url_prefix}/admin/kyc/{kyc_id}/review"
    resp = await ac_client.post(review, headers=admin.headers, json={"action": "reject"})
    assert resp.status_code == 422

    resp = await ac_client.post(review, headers=admin.headers, json={"action": "approve", "tier": "tier2", "remarks": "Loom video checked"})
    assert resp.status_code == 200
    assert resp.json()["data"]["message"] == "KYC verified"
    assert resp.json()["data"]["kyc"]["tier"] == "tier2"

    resp = await ac_client.post(review, headers=admin.headers, json={"action": "approve"})
    assert resp.status_code == 409

    resp = await ac_client.get(f"{url_prefix}/users/me", headers=seller.headers)
    assert resp.json()["data"]["kyc_status"] == "verified"

    resp = await ac_client.get(f"{url_prefix}/payments/balance", headers=seller.headers)
    assert resp.json()["data"]["withdrawal_limit"] == 500_000

    resp = await ac_client.post(f"{url_prefix}/kyc/artisan", headers=seller.headers, json=ARTISAN_FORM)
    assert resp.status_code == 409
    assert _message(resp) == "Your KYC is already verified"


@pytest.mark.asyncio
async def test_business_kyc_masks_bank_details_and_flags_reused_cnic(ac_client, register, admin):
    brand = await register("brand@goryl.pk", "brand", "Indus Threads")
    other = await register("copycat@goryl.pk", "company", "Copy Cat")

    resp = await ac_client.post(f"{url_prefix}/kyc/business", headers=brand.headers, json=BUSINESS_FORM)
    assert resp.status_code == 201
    kyc_id = resp.json()["data"]["id"]

    resp = await ac_client.get(f"{url_prefix}/kyc/{kyc_id}", headers=brand.headers)
    kyc = resp.json()["data"]
    assert kyc["cnic"] == "42101-1234567-1"
    assert kyc["payment_info"]["bank_account_number"].endswith("7890")
    assert "0101234" not in kyc["payment_info"]["bank_account_number"]
    assert kyc["business_info"]["fbr_ntn"] == "1234567-8"

    # other sellers cannot read it, admins can
    resp = await ac_client.get(f"{url_prefix}/kyc/{kyc_id}", headers=other.headers)
    assert resp.status_code == 404
    resp = await ac_client.get(f"{url_prefix}/kyc/{kyc_id}", headers=admin.headers)
    assert resp.status_code == 200

    resp = await ac_client.post(f"{url_prefix}/kyc/business", headers=other.headers, json={**BUSINESS_FORM, "email": other.email})
    assert resp.status_code == 201
    resp = await ac_client.get(f"{url_prefix}/kyc/me", headers=other.headers)
    fraud = resp.json()["data"]["fraud_detection"]
    assert fraud["cnic_duplicate_found"] is True
    assert fraud["duplicate_account_ids"] == [brand.id]

    resp = await ac_client.post(f"{url_prefix}/admin/kyc/{kyc_id}/review", headers=admin.headers,
                                json={"action": "reject", "rejection_reason": "CNIC photo is blurry"})
    assert resp.status_code == 200
    assert resp.json()["data"]["kyc"]["status"] == "rejected"

    # a rejected submission can be redone
    resp = await ac_client.post(f"{url_prefix}/kyc/business", headers=brand.headers, json=BUSINESS_FORM)
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_helpers_work_without_a_token(ac_client):
    resp = await ac_client.get(f"{url_prefix}/kyc/tiers")
    assert resp.status_code == 200
    assert len(resp.json()["data"]["items"]) == 3

    resp = await ac_client.get(f"{url_prefix}/kyc/cnic/validate", params={"value": "35202-1234567-1"})
    assert resp.status_code == 200
    assert resp.json()["data"]["is_valid"] is True

    resp = await ac_client.post(f"{url_prefix}/kyc/business/steps/5/validate", json=BUSINESS_FORM)
    assert resp.status_code == 200

    resp = await ac_client.post(f"{url_prefix}/kyc/artisan", json=ARTISAN_FORM)
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_parallel_submissions_leave_one_pending(app, ac_client, seller):
    form = ArtisanKYCIn(**ARTISAN_FORM)

    async def submit():
        async with app.state.session_maker() as session:
            user = await get_user_by_pid(session, seller.id)
            kyc_id = await create_artisan_kyc(session, form, user.id, user.email)
            await session.commit()
            return kyc_id

    results = await asyncio.gather(submit(), submit(), return_exceptions=True)
    conflicts = [r for r in results if isinstance(r, HTTPException)]
    assert len(conflicts) == 1
    assert conflicts[0].status_code == 409

    resp = await ac_client.get(f"{url_prefix}/kyc/me", headers=seller.headers)
    assert resp.json()["data"]["id"] in results
    assert resp.json()["data"]["status"] == "pending"
