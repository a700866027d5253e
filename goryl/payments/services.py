from typing import Any, Dict, Optional
from fastapi import HTTPException, status
from goryl.audit.repository import write_audit
from goryl.common.money import format_currency, format_date, format_datetime
from goryl.common.utils import iso, mask_tail, now
from goryl.db.utils import claim_status
from goryl.finance.repository import available_balance
from goryl.kyc.constants import DEFAULT_TIER, KYC_TIER_LIMITS
from goryl.kyc.repository import verified_tier
from goryl.payments.constants import (ACTION_RESULT, ALLOWED_FROM, DEFAULT_PAYMENT_METHOD, PAYMENTS_CSV_HEADER,
                                      STRIPE_SECRET_FIELDS, WITHDRAW_ACTIONS, logger)
from goryl.payments.repository import hold_by_pid, method_by_pid, withdraw_by_pid
from goryl.schema.full_schema import (AdminPaymentMethod, HoldStatus, PaymentHold, PaymentMethodType, Users,
                                      WithdrawRequest, WithdrawStatus)
from goryl.users.repository import get_user_by_pid, lock_account


def withdraw_out(r: WithdrawRequest) -> dict:
    return {
        "id": str(r.public_id),
        "seller_name": r.seller_name,
        "amount": r.amount,
        "amount_display": format_currency(r.amount),
        "status": r.status,
        "payment_method": r.payment_method,
        "note": r.note,
        "requested_at": iso(r.requested_at),
        "processed_at": iso(r.processed_at),
        "processed_by_role": r.processed_by_role,
        "rejection_reason": r.rejection_reason,
        "transaction_id": r.transaction_id,
        "paid_amount": r.paid_amount,
    }


def hold_out(h: PaymentHold) -> dict:
    return {
        "id": str(h.public_id),
        "seller_name": h.seller_name,
        "amount": h.amount,
        "amount_display": format_currency(h.amount),
        "reason": h.reason,
        "status": h.status,
        "created_by_role": h.created_by_role,
        "created_at": iso(h.created_at),
        "released_at": iso(h.released_at),
        "released_by_role": h.released_by_role,
    }


def _masked_details(method_type: str, details: Any) -> Any:
    if method_type != PaymentMethodType.STRIPE.value or not isinstance(details, dict):
        return details
    out = dict(details)
    for field in STRIPE_SECRET_FIELDS:
        if out.get(field):
            out[field] = mask_tail(out[field])
    return out


def method_out(m: AdminPaymentMethod) -> dict:
    return {
        "id": str(m.public_id),
        "type": m.type,
        "account_name": m.account_name,
        "account_details": _masked_details(m.type, m.account_details),
        "is_active": m.is_active,
        "created_at": iso(m.created_at),
    }


def payout_stats(requests) -> dict:
    return {
        "count": len(requests),
        "total_amount": sum(r.amount for r in requests),
        "pending_count": sum(1 for r in requests if r.status == WithdrawStatus.PENDING.value),
        "paid_count": sum(1 for r in requests if r.status == WithdrawStatus.PAID.value),
    }

# --------------------------------------------------------------------------------------------------------------

async def withdrawal_limit(session, seller_id: int) -> Optional[int]:
    tier = await verified_tier(session, seller_id) or DEFAULT_TIER
    return KYC_TIER_LIMITS[tier]["payment_restrictions"]["withdrawal_limit"]


async def create_withdraw_request(session, seller: Users, amount: int, payment_method: Optional[str] = None,
                                  note: Optional[str] = None) -> WithdrawRequest:
    if amount is None or amount <= 0:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Amount must be greater than zero")

    await lock_account(session, seller.id)
    available = await available_balance(session, seller.id)
    if amount > available:
        logger.warning("withdraw.request.insufficient", extra={"requested": amount, "available": available})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail=f"Insufficient funds. Available: {format_currency(max(available, 0))}")

    limit = await withdrawal_limit(session, seller.id)
    if limit is not None and amount > limit:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail=f"Amount exceeds your per-withdrawal limit of {format_currency(limit)}")

    request = WithdrawRequest(
        seller_id=seller.id,
        seller_name=seller.name or seller.email,
        amount=amount,
        payment_method=payment_method or DEFAULT_PAYMENT_METHOD,
        note=note or f"Withdraw request for {format_currency(amount)}",
    )
    session.add(request)
    await session.flush()
    logger.info("withdraw.request.created", extra={"request_id": str(request.public_id), "amount": amount})
    return request


async def process_withdraw_request(session, request_id: str, action: str, actor_role: str,
                                   details: Optional[Dict[str, Any]] = None, actor_id: Optional[int] = None) -> WithdrawRequest:
    """approve: pending -> approved, reject: pending|approved -> rejected, pay: pending|approved -> paid."""
    details = details or {}
    logger.info("withdraw.process.attempt", extra={"request_id": request_id, "action": action, "actor_role": actor_role})

    if action not in WITHDRAW_ACTIONS:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown action: {action}")

    request = await withdraw_by_pid(session, request_id, for_update=True)
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Withdraw request not found")

    if request.status not in ALLOWED_FROM[action]:
        logger.warning("withdraw.process.bad_transition", extra={"request_id": request_id, "from": request.status, "action": action})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail=f"Cannot {action} a request that is {request.status}")

    changes = {}
    if action == "reject":
        changes["rejection_reason"] = (details.get("reason") or "").strip() or None

    if action == "pay":
        transaction_id = (details.get("transaction_id") or "").strip()
        if not transaction_id:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Transaction ID is required")
        custom_amount = details.get("custom_amount")
        if custom_amount is not None and not (0 < int(custom_amount) <= request.amount):
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                                detail=f"Payment amount must be between {format_currency(1)} and {format_currency(request.amount)}")
        changes["transaction_id"] = transaction_id
        changes["paid_amount"] = int(custom_amount) if custom_amount is not None else request.amount

    old_status = request.status
    if not await claim_status(session, WithdrawRequest, request.id, old_status, ACTION_RESULT[action]):
        logger.warning("withdraw.process.lost_race", extra={"request_id": request_id, "action": action})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail="Withdraw request was processed by someone else, reload and try again")
    for field, value in changes.items():
        setattr(request, field, value)
    request.status = ACTION_RESULT[action]
    request.processed_at = now()
    request.processed_by_role = actor_role
    request.processed_by = actor_id
    session.add(request)

    await write_audit(session, actor_id, actor_role, f"withdraw.{action}", "withdraw_request", str(request.public_id),
                      {"from": old_status, "to": request.status, "amount": request.amount,
                       "paid_amount": request.paid_amount, "transaction_id": request.transaction_id,
                       "reason": request.rejection_reason})
    logger.info("withdraw.process.success", extra={"request_id": request_id, "status": request.status})
    return request

# --------------------------------------------------------------------------------------------------------------

async def create_payment_hold(session, seller_id: str, seller_name: str, amount: Optional[int], reason: str,
                              actor_role: str, actor_id: Optional[int] = None) -> PaymentHold:
    if not (seller_id or "").strip() or amount is None or not (reason or "").strip():
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Please fill all fields")
    if amount <= 0:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Amount must be greater than zero")

    seller = await get_user_by_pid(session, seller_id.strip())
    if not seller:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Seller not found")

    await lock_account(session, seller.id)
    available = await available_balance(session, seller.id)
    if amount > available:
        logger.warning("hold.create.insufficient", extra={"requested": amount, "available": available})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail=f"Hold amount exceeds available balance of {format_currency(max(available, 0))}")

    hold = PaymentHold(seller_id=seller.id, seller_name=(seller_name or "").strip() or seller.name or seller.email,
                       amount=amount, reason=reason.strip(), created_by_role=actor_role)
    session.add(hold)
    await session.flush()
    await write_audit(session, actor_id, actor_role, "hold.create", "payment_hold", str(hold.public_id),
                      {"amount": amount, "reason": hold.reason})
    logger.info("hold.create.success", extra={"hold_id": str(hold.public_id), "amount": amount})
    return hold


async def release_payment_hold(session, hold_id: str, actor_role: str, actor_id: Optional[int] = None) -> PaymentHold:
    hold = await hold_by_pid(session, hold_id, for_update=True)
    if not hold:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment hold not found")
    if hold.status != HoldStatus.ACTIVE.value:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Payment hold is already released")

    if not await claim_status(session, PaymentHold, hold.id, HoldStatus.ACTIVE.value, HoldStatus.RELEASED.value):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Payment hold is already released")
    hold.status = HoldStatus.RELEASED.value
    hold.released_at = now()
    hold.released_by_role = actor_role
    session.add(hold)
    await write_audit(session, actor_id, actor_role, "hold.release", "payment_hold", str(hold.public_id))
    logger.info("hold.release.success", extra={"hold_id": hold_id})
    return hold

# --------------------------------------------------------------------------------------------------------------

def _check_method_details(method_type: str, details: Any):
    if method_type == PaymentMethodType.STRIPE.value:
        if not isinstance(details, dict) or not details.get("publishableKey") or not details.get("secretKey"):
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Please fill all Stripe fields")
    elif isinstance(details, str):
        if not details.strip():
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Please fill all fields")
    elif not details:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Please fill all fields")


async def add_payment_method(session, method_type: str, account_name: str, details: Any, actor_id: Optional[int]) -> AdminPaymentMethod:
    _check_method_details(method_type, details)
    method = AdminPaymentMethod(type=method_type, account_name=account_name.strip(), account_details=details,
                                created_by=actor_id)
    session.add(method)
    await session.flush()
    logger.info("payment_method.created", extra={"method_id": str(method.public_id), "type": method_type})
    return method


async def update_payment_method(session, method_id: str, updates: Dict[str, Any]) -> AdminPaymentMethod:
    method = await method_by_pid(session, method_id)
    if not method:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment method not found")

    if "account_details" in updates and updates["account_details"] is not None:
        details = updates["account_details"]
        if method.type == PaymentMethodType.STRIPE.value and isinstance(details, dict) and isinstance(method.account_details, dict):
            # a masked secret echoed back from a read means "unchanged"
            details = dict(details)
            for field in STRIPE_SECRET_FIELDS:
                if "*" in str(details.get(field) or ""):
                    details[field] = method.account_details.get(field)
        _check_method_details(method.type, details)
        method.account_details = details
    if updates.get("account_name"):
        method.account_name = updates["account_name"].strip()
    if updates.get("is_active") is not None:
        method.is_active = updates["is_active"]
    method.updated_at = now()
    session.add(method)
    return method


async def delete_payment_method(session, method_id: str):
    method = await method_by_pid(session, method_id)
    if not method:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment method not found")
    method.is_active = False
    method.updated_at = now()
    session.add(method)
    logger.info("payment_method.deleted", extra={"method_id": method_id})

# --------------------------------------------------------------------------------------------------------------

def withdraw_csv_rows(requests) -> list:
    rows = [PAYMENTS_CSV_HEADER]
    for r in requests:
        rows.append([
            str(r.public_id),
            r.seller_name,
            format_currency(r.amount),
            r.status,
            format_datetime(r.requested_at),
            format_date(r.processed_at, missing=""),
        ])
    return rows
