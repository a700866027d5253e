from goryl.common.logging_setup import get_logger

logger = get_logger("goryl.dashboards")

DEFAULT_PERIOD = "monthly"

SELLER_PENDING_STATUSES = ("pending", "confirmed")
# orders that never turned into money
VOID_ORDER_STATUSES = ("cancelled", "refunded")
