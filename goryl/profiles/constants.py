from goryl.common.logging_setup import get_logger

logger = get_logger("goryl.profiles")

BASE_TABS = ("products", "reviews", "about")
ORG_TABS = ("company", "team")
ORG_ROLES = ("brand", "company")

PROFILE_PRODUCTS_LIMIT = 60
PROFILE_REVIEWS_LIMIT = 100
