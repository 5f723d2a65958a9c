from decimal import Decimal

LOGGER_NAME = "affiliate-hooks"

ORDER_STATUS_PENDING = "pending"
ORDER_STATUS_COMPLETED = "completed"

TAG_PREFIX = "product-"

COMMISSION_STATUS_UNPAID = "unpaid"
COMMISSION_STATUS_PAID = "paid"
COMMISSION_TYPE_SELF_REFERRAL = "self-referral"
DEFAULT_COMMISSION_CURRENCY = "USD"

# Insertion order matters: the first purchased item matching a key wins.
DEFAULT_SELF_REFERRAL_RATES = {
    "beginner": Decimal("0.30"),
    "basic": Decimal("0.35"),
    "advanced": Decimal("0.40"),
    "mastery": Decimal("0.40"),
}

WEBHOOK_SIGNATURE_HEADER = "X-WC-Webhook-Signature"
