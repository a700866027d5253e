from datetime import datetime
from typing import List, Optional
from fastapi import HTTPException, status
from goryl.common.csv_export import build_csv
from goryl.common.money import format_currency, format_date
from goryl.common.utils import iso, now
from goryl.finance.constants import FINANCE_CSV_HEADER, logger
from goryl.finance.repository import EMPTY_COMPONENTS, balance_components
from goryl.payments.repository import oldest_pending_request
from goryl.payments.services import process_withdraw_request
from goryl.schema.full_schema import WithdrawRequest
from goryl.users.repository import get_user_by_pid, list_sellers


def _details(seller, comps: dict) -> dict:
    d = dict(comps)
    d["raw_available_balance"] = d["available_balance"]
    d["available_balance"] = max(d["available_balance"], 0)
    d["last_payment_date"] = iso(d["last_payment_date"])
    d.update({
        "seller_id": str(seller.public_id),
        "seller_name": seller.name or "Unknown Seller",
        "email": seller.email,
        "phone": seller.phone,
        "account_type": seller.account_type,
    })
    return d


async def list_seller_finance(session, search: Optional[str] = None) -> List[dict]:
    sellers = await list_sellers(session)
    if search and search.strip():
        term = search.strip().lower()
        sellers = [s for s in sellers if term in (s.name or "").lower() or term in str(s.public_id).lower()]
    if not sellers:
        return []
    comps = await balance_components(session, [s.id for s in sellers])
    return [_details(s, comps.get(s.id, EMPTY_COMPONENTS)) for s in sellers]


async def seller_finance(session, seller_pid: str) -> dict:
    seller = await get_user_by_pid(session, seller_pid)
    if not seller:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Seller not found")
    comps = await balance_components(session, [seller.id])
    return _details(seller, comps.get(seller.id, EMPTY_COMPONENTS))


def platform_stats(sellers: List[dict]) -> dict:
    return {
        "total_revenue": sum(s["total_revenue"] for s in sellers),
        "total_earnings": sum(s["total_earnings"] for s in sellers),
        "total_products_sold": sum(s["total_products_sold"] for s in sellers),
        "total_pending": sum(s["pending_withdrawals"] for s in sellers),
        "total_paid": sum(s["total_withdrawn"] for s in sellers),
        "total_sellers": len(sellers),
    }


async def process_seller_payment(session, seller_pid: str, amount: Optional[int], transaction_id: str,
                                 actor_id: Optional[int] = None) -> WithdrawRequest:
    if not (seller_pid or "").strip() or not amount or not (transaction_id or "").strip():
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Please fill all fields")

    seller = await get_user_by_pid(session, seller_pid)
    if not seller:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Seller not found")

    pending = await oldest_pending_request(session, seller.id)
    if not pending:
        logger.info("finance.payment.no_pending", extra={"seller_id": seller_pid})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail="No pending withdraw request found for this seller")

    return await process_withdraw_request(session, str(pending.public_id), "pay", "admin",
                                          {"transaction_id": transaction_id, "custom_amount": amount},
                                          actor_id=actor_id)


def finance_report_csv(sellers: List[dict]) -> str:
    stats = platform_stats(sellers)
    rows = [
        ["Platform Finance Report"],
        ["Generated:", iso(now())],
        [""],
        ["Platform Statistics"],
        ["Total Revenue", format_currency(stats["total_revenue"])],
        ["Total Earnings", format_currency(stats["total_earnings"])],
        ["Total Products Sold", str(stats["total_products_sold"])],
        ["Total Pending Payments", format_currency(stats["total_pending"])],
        ["Total Paid Out", format_currency(stats["total_paid"])],
        ["Total Sellers", str(stats["total_sellers"])],
        [""],
        ["Seller Detailed Finance Report"],
        FINANCE_CSV_HEADER,
    ]
    for s in sellers:
        rows.append([
            s["seller_name"],
            s["email"] or "N/A",
            s["account_type"] or "N/A",
            str(s["product_count"]),
            str(s["total_products_sold"]),
            str(s["order_count"]),
            format_currency(s["total_revenue"]),
            format_currency(s["total_earnings"]),
            format_currency(s["total_payments_received"]),
            str(s["payments_received_count"]),
            format_currency(s["pending_withdrawals"]),
            format_currency(s["available_balance"]),
            format_currency(s["held_amount"]),
            format_currency(s["total_withdrawn"]),
            format_date(datetime.fromisoformat(s["last_payment_date"]) if s["last_payment_date"] else None),
        ])
    return build_csv(rows, quote_all=True)
