from typing import Optional
from fastapi import HTTPException, status
from goryl.audit.repository import write_audit
from goryl.common.utils import iso, mask_tail, now
from goryl.db.utils import claim_status
from goryl.kyc.constants import DEFAULT_TIER, logger
from goryl.kyc.models import ArtisanKYCIn, BusinessKYCIn, KYCReviewIn
from goryl.kyc.repository import cnic_owners, kyc_by_pid, open_kyc_for_user
from goryl.kyc.validation import first_error, validate_cnic
from goryl.schema.full_schema import SellerKYC, Users
from goryl.users.repository import lock_account


def kyc_out(k: SellerKYC) -> dict:
    payment = dict(k.payment_info or {})
    if payment.get("bank_account_number"):
        payment["bank_account_number"] = mask_tail(payment["bank_account_number"])
    if payment.get("iban"):
        payment["iban"] = mask_tail(payment["iban"])
    return {
        "id": str(k.public_id),
        "category": k.category,
        "tier": k.tier,
        "status": k.status,
        "full_name": k.full_name,
        "email": k.email,
        "phone": k.phone,
        "cnic": k.cnic,
        "cnic_front_url": k.cnic_front_url,
        "cnic_back_url": k.cnic_back_url,
        "selfie_url": k.selfie_url,
        "address": k.address or {},
        "artisan_info": k.artisan_info,
        "business_info": k.business_info,
        "payment_info": payment,
        "fraud_detection": k.fraud_detection or {},
        "remarks": k.remarks,
        "rejection_reason": k.rejection_reason,
        "submitted_at": iso(k.submitted_at),
        "verified_at": iso(k.verified_at),
        "rejected_at": iso(k.rejected_at),
    }


async def _prepare_submission(session, category: str, form, user_id: int, client: Optional[dict]):
    error = first_error(category, form)
    if error:
        logger.warning("kyc.submit.invalid", extra={"category": category, "reason": error})
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error)

    await lock_account(session, user_id)
    existing = await open_kyc_for_user(session, user_id)
    if existing:
        detail = "Your KYC is already verified" if existing.status == "verified" else "You already have a KYC submission under review"
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

    cnic = validate_cnic(form.cnic)["formatted"]
    duplicates = await cnic_owners(session, cnic, user_id)
    if duplicates:
        logger.warning("kyc.fraud.cnic_duplicate", extra={"category": category, "matches": len(duplicates)})

    client = client or {}
    fraud = {
        "cnic_duplicate_checked": True,
        "cnic_duplicate_found": bool(duplicates),
        "duplicate_account_ids": duplicates,
        "ip_address": client.get("ip_address"),
        "device_id": client.get("device_id"),
        "browser_fingerprint": client.get("user_agent"),
    }
    return cnic, fraud


async def _save(session, kyc: SellerKYC, user_id: int):
    session.add(kyc)
    user = await session.get(Users, user_id)
    if user:
        user.kyc_status = "pending"
        session.add(user)
    await session.flush()
    logger.info("kyc.submit.success", extra={"kyc_id": str(kyc.public_id), "category": kyc.category})
    return str(kyc.public_id)


async def create_artisan_kyc(session, form_data: ArtisanKYCIn, user_id: int, email: str, client: Optional[dict] = None) -> str:
    cnic, fraud = await _prepare_submission(session, "artisan", form_data, user_id, client)

    kyc = SellerKYC(
        user_id=user_id, user_email=email, category="artisan", tier=DEFAULT_TIER, status="pending",
        full_name=form_data.full_name.strip(), email=form_data.email.strip(), phone=form_data.phone.strip(),
        cnic=cnic, cnic_front_url=form_data.cnic_front_url, cnic_back_url=form_data.cnic_back_url,
        selfie_url=form_data.selfie_url,
        address=form_data.address.model_dump(),
        artisan_info={
            "production_address": form_data.production_address,
            "product_proof": form_data.product_proof_urls,
            "product_description": form_data.product_description,
        },
        payment_info={
            "payoneer_email": form_data.payoneer_email,
            "bank_name": form_data.bank_name,
            "bank_account_number": form_data.bank_account_number,
            "bank_account_title": form_data.bank_account_title,
        },
        fraud_detection=fraud,
    )
    return await _save(session, kyc, user_id)


async def create_business_kyc(session, form_data: BusinessKYCIn, user_id: int, email: str, client: Optional[dict] = None) -> str:
    cnic, fraud = await _prepare_submission(session, "business", form_data, user_id, client)

    kyc = SellerKYC(
        user_id=user_id, user_email=email, category="business", tier=DEFAULT_TIER, status="pending",
        full_name=form_data.full_name.strip(), email=form_data.email.strip(), phone=form_data.phone.strip(),
        cnic=cnic, cnic_front_url=form_data.cnic_front_url, cnic_back_url=form_data.cnic_back_url,
        address=form_data.address.model_dump(),
        business_info={
            "business_name": form_data.business_name,
            "business_registration_id": form_data.business_registration_id,
            "fbr_ntn": form_data.fbr_ntn,
            "business_license": form_data.business_license_url,
            "tax_certificate": form_data.tax_certificate_url,
        },
        payment_info={
            "bank_name": form_data.bank_name,
            "bank_account_number": form_data.bank_account_number,
            "bank_account_title": form_data.bank_account_title,
            "iban": form_data.iban,
        },
        fraud_detection=fraud,
    )
    return await _save(session, kyc, user_id)


async def review_kyc(session, kyc_pid: str, payload: KYCReviewIn, reviewer_id: int) -> SellerKYC:
    kyc = await kyc_by_pid(session, kyc_pid, for_update=True)
    if not kyc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="KYC submission not found")
    if kyc.status != "pending":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"KYC is already {kyc.status}")

    reason = (payload.rejection_reason or "").strip()
    if payload.action == "reject" and not reason:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Please provide a rejection reason")

    new_status = "verified" if payload.action == "approve" else "rejected"
    if not await claim_status(session, SellerKYC, kyc.id, "pending", new_status):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="KYC was reviewed by someone else, reload and try again")

    user = await session.get(Users, kyc.user_id)
    kyc.status = new_status
    if payload.action == "approve":
        kyc.tier = payload.tier or DEFAULT_TIER
        kyc.verified_by = reviewer_id
        kyc.verified_at = now()
    else:
        kyc.rejection_reason = reason
        kyc.rejected_at = now()

    kyc.remarks = payload.remarks
    kyc.updated_at = now()
    session.add(kyc)
    if user:
        user.kyc_status = kyc.status
        session.add(user)

    await write_audit(session, reviewer_id, "admin", f"kyc.{payload.action}", "kyc", str(kyc.public_id),
                      {"tier": kyc.tier, "reason": kyc.rejection_reason})
    logger.info("kyc.review.done", extra={"kyc_id": str(kyc.public_id), "action": payload.action})
    return kyc
