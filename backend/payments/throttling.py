from rest_framework.throttling import UserRateThrottle


class PremiumPaymentThrottle(UserRateThrottle):
    """Limits order creation and verification per user (per IP when anonymous)."""

    scope = "premium_payment"
