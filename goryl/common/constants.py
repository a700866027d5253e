import contextvars
from typing import Optional

# Context variable carrying the request id of the request being served
request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)

SELLER_ROLES = ("personal", "brand", "company")
