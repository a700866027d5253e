from goryl.common.logging_setup import get_logger

logger = get_logger("goryl.middlewares")
