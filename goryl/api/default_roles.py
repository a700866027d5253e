DEFAULT_ROLES = [
    {"name": "normal", "description": "Buyer account"},
    {"name": "personal", "description": "Individual seller"},
    {"name": "brand", "description": "Brand seller"},
    {"name": "company", "description": "Company seller"},
    {"name": "admin", "description": "Platform administrator"},
]

_BUYER = ["order:place", "review:write", "chat:use", "kyc:submit"]
_SELLER = _BUYER + ["product:create", "order:fulfil", "withdraw:request"]

ROLE_PERMISSIONS = {
    "normal": _BUYER,
    "personal": _SELLER,
    "brand": _SELLER + ["team:manage"],
    "company": _SELLER + ["team:manage"],
    "admin": ["chat:use", "payments:manage", "finance:view", "kyc:review", "users:manage",
              "categories:manage", "products:moderate", "orders:refund", "audit:view", "stats:view"],
}
