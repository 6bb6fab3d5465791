from rest_framework.throttling import AnonRateThrottle


class OTPVerifyThrottle(AnonRateThrottle):
    """Caps OTP guesses per client IP on the unauthenticated verify endpoints."""

    scope = "otp_verify"
