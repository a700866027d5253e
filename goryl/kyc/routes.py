from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.kyc.constants import KYC_TIER_LIMITS, logger
from goryl.kyc.models import ArtisanKYCIn, BusinessKYCIn, KYCReviewIn
from goryl.kyc.repository import kyc_by_pid, latest_kyc_for_user, list_kyc
from goryl.kyc.services import create_artisan_kyc, create_business_kyc, kyc_out, review_kyc
from goryl.kyc.validation import STEP_VALIDATORS, validate_cnic
from goryl.users.dependencies import require_permissions
from goryl.users.repository import get_user

kyc_router=APIRouter()
kyc_admin_router=APIRouter()


def _client_meta(request: Request) -> dict:
    return {
        "ip_address": request.client.host if request.client else None,
        "device_id": request.headers.get("X-Device-Id"),
        "user_agent": (request.headers.get("user-agent") or "")[:256] or None,
    }


@kyc_router.get("/tiers")
async def get_tiers():
    return success_response({"items": list(KYC_TIER_LIMITS.values())})


@kyc_router.get("/cnic/validate")
async def check_cnic(value: str = Query("")):
    return success_response(validate_cnic(value))


@kyc_router.post("/{category}/steps/{step}/validate")
async def validate_step(category: str, step: int, form: Dict[str, Any] = Body(...)):
    if category not in STEP_VALIDATORS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown KYC category")
    model, validator, steps = STEP_VALIDATORS[category]
    if step < 1 or step > steps:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Step must be between 1 and {steps}")
    try:
        parsed = model.model_validate(form)
    except ValidationError as e:
        first = e.errors()[0]
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                            detail=f"{'.'.join(str(p) for p in first['loc'])}: {first['msg']}")
    error = validator(parsed, step)
    return success_response({"step": step, "is_valid": error is None, "error": error})


async def _submitter_email(session, user_id: int) -> str:
    user = await get_user(session, user_id)
    return user.email if user else ""


@kyc_router.post("/artisan", dependencies=[require_permissions("kyc:submit")])
async def submit_artisan_kyc(request: Request, payload: ArtisanKYCIn, session: AsyncSession = Depends(get_session)):
    user_id = request.state.user_identifier
    logger.info("kyc.submit.attempt", extra={"category": "artisan"})
    kyc_id = await create_artisan_kyc(session, payload, user_id, await _submitter_email(session, user_id), _client_meta(request))
    await session.commit()
    return success_response({"message": "KYC submitted for review", "id": kyc_id}, status_code=status.HTTP_201_CREATED)


@kyc_router.post("/business", dependencies=[require_permissions("kyc:submit")])
async def submit_business_kyc(request: Request, payload: BusinessKYCIn, session: AsyncSession = Depends(get_session)):
    user_id = request.state.user_identifier
    logger.info("kyc.submit.attempt", extra={"category": "business"})
    kyc_id = await create_business_kyc(session, payload, user_id, await _submitter_email(session, user_id), _client_meta(request))
    await session.commit()
    return success_response({"message": "KYC submitted for review", "id": kyc_id}, status_code=status.HTTP_201_CREATED)


@kyc_router.get("/me")
async def my_kyc(request: Request, session: AsyncSession = Depends(get_session)):
    kyc = await latest_kyc_for_user(session, request.state.user_identifier)
    if not kyc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No KYC submission found")
    return success_response(kyc_out(kyc))


@kyc_router.get("/{kyc_id}")
async def get_kyc(request: Request, kyc_id: str, session: AsyncSession = Depends(get_session)):
    kyc = await kyc_by_pid(session, kyc_id)
    is_admin = request.state.account_type == "admin"
    if not kyc or (kyc.user_id != request.state.user_identifier and not is_admin):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="KYC submission not found")
    return success_response(kyc_out(kyc))

#---------------------------------------------------------------------------------------------------------

@kyc_admin_router.get("", dependencies=[require_permissions("kyc:review")])
async def admin_list_kyc(status_filter: Optional[str] = Query(None, alias="status"), session: AsyncSession = Depends(get_session)):
    return success_response({"items": [kyc_out(k) for k in await list_kyc(session, status_filter)]})


@kyc_admin_router.post("/{kyc_id}/review", dependencies=[require_permissions("kyc:review")])
async def admin_review_kyc(request: Request, kyc_id: str, payload: KYCReviewIn, session: AsyncSession = Depends(get_session)):
    kyc = await review_kyc(session, kyc_id, payload, request.state.user_identifier)
    await session.commit()
    return success_response({"message": f"KYC {kyc.status}", "kyc": kyc_out(kyc)})
