from goryl.common.logging_setup import get_logger

logger = get_logger("goryl.payments")

WITHDRAW_ACTIONS = ("approve", "reject", "pay")

# action -> statuses it may start from
ALLOWED_FROM = {
    "approve": ("pending",),
    "reject": ("pending", "approved"),
    "pay": ("pending", "approved"),
}

ACTION_RESULT = {
    "approve": "approved",
    "reject": "rejected",
    "pay": "paid",
}

DEFAULT_PAYMENT_METHOD = "bank_transfer"

PAYMENTS_CSV_HEADER = ["Payment ID", "Seller", "Amount", "Status", "Requested Date", "Processed Date"]

STRIPE_SECRET_FIELDS = ("secretKey",)
