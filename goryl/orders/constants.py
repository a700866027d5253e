from goryl.common.logging_setup import get_logger
from goryl.schema.full_schema import OrderStatus

logger = get_logger("goryl.orders")

# forward-only fulfilment path
ORDER_FLOW = [
    OrderStatus.PENDING.value,
    OrderStatus.CONFIRMED.value,
    OrderStatus.PROCESSING.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.OUT_FOR_DELIVERY.value,
    OrderStatus.DELIVERED.value,
]

CANCELLABLE = (OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value, OrderStatus.PROCESSING.value)

NOT_REFUNDABLE = (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value)
