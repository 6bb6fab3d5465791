import hashlib
import logging
import secrets
import smtplib
import socket
from datetime import timedelta
from email.utils import parseaddr

import requests
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from .models import EmailOTP

logger = logging.getLogger(__name__)

BREVO_SEND_URL = "https://api.brevo.com/v3/smtp/email"

OTP_EMAILS = {
    "password_reset": (
        "Password Reset OTP",
        "Your password reset OTP is {otp}. This OTP is valid for {minutes} minutes. "
        "If you did not request this, you can ignore this email.",
    ),
    "login": (
        "Login OTP",
        "Your login OTP is {otp}. This OTP is valid for {minutes} minutes. "
        "If you did not request this, you can ignore this email.",
    ),
}


class OTPServiceError(Exception):
    pass


def generate_otp() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def hash_otp(otp: str, user_id, purpose: str) -> str:
    raw = f"{str(otp).strip()}.{settings.PASSWORD_RESET_OTP_SECRET}.{user_id}"
    if purpose == "login":
        raw = f"{raw}.login"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def issue_otp(user, purpose: str):
    """Create a fresh OTP for ``user`` and retire any outstanding one."""
    now = timezone.now()
    EmailOTP.objects.filter(user=user, purpose=purpose, used_at__isnull=True).update(used_at=now)
    otp = generate_otp()
    record = EmailOTP.objects.create(
        user=user,
        purpose=purpose,
        token_hash=hash_otp(otp, user.id, purpose),
        expires_at=now + timedelta(minutes=settings.OTP_TTL_MINUTES),
    )
    return otp, record


def consume_otp(user, otp: str, purpose: str) -> EmailOTP:
    record = (
        EmailOTP.objects.filter(user=user, purpose=purpose, token_hash=hash_otp(otp, user.id, purpose))
        .order_by("-created_at")
        .first()
    )
    if not record:
        raise OTPServiceError("Invalid OTP")
    if record.is_used:
        raise OTPServiceError("OTP already used")
    if record.is_expired():
        raise OTPServiceError("OTP expired")
    record.mark_used()
    return record


def _sender():
    name, address = parseaddr(settings.DEFAULT_FROM_EMAIL or "")
    address = address or settings.EMAIL_HOST_USER
    return {"email": address, "name": name or "KCET Prep"}


def _send_with_brevo(to_email, subject, text):
    sender = _sender()
    if not sender["email"]:
        raise OTPServiceError("Email service not configured")
    try:
        response = requests.post(
            BREVO_SEND_URL,
            json={
                "sender": sender,
                "to": [{"email": to_email}],
                "subject": subject,
                "textContent": text,
            },
            headers={"api-key": settings.BREVO_API_KEY, "accept": "application/json"},
            timeout=settings.EMAIL_TIMEOUT_SECONDS,
        )
    except requests.Timeout as exc:
        raise OTPServiceError("Email service connection timeout") from exc
    except requests.RequestException as exc:
        raise OTPServiceError(f"Email send failed: {exc}") from exc

    if response.status_code not in {200, 201, 202}:
        try:
            payload = response.json()
            message = payload.get("message") or payload.get("code")
        except (ValueError, AttributeError):
            message = response.text
        raise OTPServiceError(f"Email send failed: {message or response.status_code}")


def _send_with_smtp(to_email, subject, text):
    if not settings.EMAIL_HOST:
        raise OTPServiceError("Email service not configured")
    try:
        send_mail(subject, text, settings.DEFAULT_FROM_EMAIL, [to_email], fail_silently=False)
    except (socket.timeout, TimeoutError) as exc:
        raise OTPServiceError("Email service connection timeout") from exc
    except (smtplib.SMTPException, OSError) as exc:
        raise OTPServiceError(f"Email send failed: {exc}") from exc


def send_email(to_email: str, subject: str, text: str):
    if settings.BREVO_API_KEY:
        _send_with_brevo(to_email, subject, text)
    else:
        _send_with_smtp(to_email, subject, text)


def send_otp_email(user, otp: str, purpose: str):
    subject, template = OTP_EMAILS[purpose]
    text = template.format(otp=otp, minutes=settings.OTP_TTL_MINUTES)
    try:
        send_email(user.email, subject, text)
    except OTPServiceError:
        logger.warning("OTP email (%s) to user %s failed", purpose, user.id, exc_info=True)
        raise
