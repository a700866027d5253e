from goryl.common.logging_setup import get_logger
from goryl.config.settings import config_settings

logger = get_logger("goryl.categories")

CATEGORY_LIST_NAMESPACE = "categories"
CATEGORY_LIST_TTL = config_settings.CATEGORY_CACHE_TTL
