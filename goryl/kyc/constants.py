from goryl.common.logging_setup import get_logger

logger = get_logger("goryl.kyc")

OPEN_KYC_STATUSES = ("pending", "verified")

ARTISAN_STEPS = 7
BUSINESS_STEPS = 5

# withdrawal limits are per request, in cents, None means no cap
KYC_TIER_LIMITS = {
    "tier1": {
        "tier": "tier1",
        "name": "Basic",
        "description": "CNIC, selfie and address verified",
        "selling_limit": {"monthly": 100_000_00},
        "payment_restrictions": {"auto_transfer": False, "manual_review": True,
                                 "withdrawal_limit": 500_00, "withdrawal_frequency": "weekly"},
        "features": ["List products", "Receive orders"],
        "requirements": ["CNIC", "Selfie with CNIC", "Address"],
    },
    "tier2": {
        "tier": "tier2",
        "name": "Verified Artisan",
        "description": "Production proof reviewed by the platform",
        "selling_limit": {"monthly": 1_000_000_00},
        "payment_restrictions": {"auto_transfer": False, "manual_review": True,
                                 "withdrawal_limit": 5_000_00, "withdrawal_frequency": "daily"},
        "features": ["Verified badge", "Higher withdrawal limit"],
        "requirements": ["Tier 1", "Product proof", "Production address"],
    },
    "tier3": {
        "tier": "tier3",
        "name": "Professional",
        "description": "Registered business with tax documents",
        "selling_limit": {},
        "payment_restrictions": {"auto_transfer": True, "manual_review": False,
                                 "withdrawal_limit": None, "withdrawal_frequency": "daily"},
        "features": ["No withdrawal cap", "Automatic transfers"],
        "requirements": ["Business registration or FBR NTN", "Bank account"],
    },
}

DEFAULT_TIER = "tier1"
