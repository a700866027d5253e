from goryl.common.logging_setup import get_logger
from goryl.config.settings import config_settings

logger = get_logger("goryl.chat")

CHAT_LIST_NAMESPACE = "chats"
CHAT_LIST_TTL = config_settings.CHAT_LIST_CACHE_TTL

DEFAULT_MESSAGE_LIMIT = 50
MAX_MESSAGE_LIMIT = 200
MESSAGE_MAX_LENGTH = 4000

MESSAGES_POLL_MS = config_settings.CHAT_MESSAGES_POLL_MS
USER_CHATS_POLL_MS = config_settings.CHAT_LIST_POLL_MS
LONG_POLL_DEFAULT_MS = 25000
LONG_POLL_MAX_MS = 60000
