from datetime import datetime, timedelta
from typing import Optional
from goryl.common.constants import SELLER_ROLES
from goryl.common.money import format_currency
from goryl.common.utils import iso, now
from goryl.dashboards.constants import DEFAULT_PERIOD, logger
from goryl.dashboards.repository import buyer_totals, platform_counts, platform_revenue, seller_period, seller_totals
from goryl.finance.repository import seller_balance
from goryl.products.repository import seller_rating
from goryl.schema.full_schema import OrderStatus, ProductStatus, Users


def period_start(period: str, at: Optional[datetime] = None) -> datetime:
    """daily: midnight today, weekly: the last 7 days, monthly: the 1st, yearly: Jan 1 (all UTC)."""
    at = at or now()
    midnight = at.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "daily":
        return midnight
    if period == "weekly":
        return at - timedelta(days=7)
    if period == "yearly":
        return midnight.replace(month=1, day=1)
    return midnight.replace(day=1)


async def buyer_dashboard(session, user: Users) -> dict:
    totals = await buyer_totals(session, user.id)
    totals["total_spent_display"] = format_currency(totals["total_spent"])
    return totals


async def seller_dashboard(session, user: Users, period: str = DEFAULT_PERIOD) -> dict:
    stats = await seller_totals(session, user.id)
    stats["revenue_display"] = format_currency(stats["revenue"])
    stats["average_rating"], stats["review_count"] = await seller_rating(session, user.id)

    since = period_start(period)
    earnings, orders = await seller_period(session, user.id, since)
    stats["period"] = {
        "period": period,
        "since": iso(since),
        "earnings": earnings,
        "order_count": orders,
        "average_order_value": earnings // orders if orders else 0,
    }

    balance = await seller_balance(session, user.id)
    stats["balance"] = {
        "total_earnings": balance["total_earnings"],
        "held_amount": balance["held_amount"],
        "pending_withdrawals": balance["pending_withdrawals"],
        "total_withdrawn": balance["total_withdrawn"],
        "available_balance": max(balance["available_balance"], 0),
    }
    return stats


async def user_dashboard(session, user: Users, period: str = DEFAULT_PERIOD) -> dict:
    out = {"role": user.account_type, "buyer": await buyer_dashboard(session, user)}
    if user.account_type in SELLER_ROLES:
        out["seller"] = await seller_dashboard(session, user, period)
    logger.debug("dashboard.built", extra={"role": user.account_type, "period": period})
    return out


async def admin_stats(session) -> dict:
    at = now()
    counts = await platform_counts(session)
    order_status = {s.value: counts["order_status"].get(s.value, 0) for s in OrderStatus}
    product_status = {s.value: counts["product_status"].get(s.value, 0) for s in ProductStatus}
    return {
        "total_users": counts["total_users"],
        "total_products": counts["total_products"],
        "total_orders": counts["total_orders"],
        "total_revenue": await platform_revenue(session),
        "revenue": {
            "today": await platform_revenue(session, at - timedelta(days=1)),
            "week_7d": await platform_revenue(session, at - timedelta(days=7)),
            "month_30d": await platform_revenue(session, at - timedelta(days=30)),
        },
        "user_roles": counts["user_roles"],
        "order_status": order_status,
        "product_status": product_status,
        "pending_products": product_status[ProductStatus.PENDING.value],
        "pending_kyc": counts["pending_kyc"],
    }
