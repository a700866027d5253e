from goryl.config.settings import config_settings
from goryl.common.logging_setup import get_logger

logger = get_logger("goryl.auth")

ACCESS_TOKEN_TTL_SECONDS = int(config_settings.ACCESS_TOKEN_EXPIRE_MINUTES) * 60


#* admin accounts are never self-assigned
SIGNUP_ROLES = ("normal", "personal", "brand", "company")
