import hashlib
import hmac
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

RAZORPAY_ORDERS_URL = "https://api.razorpay.com/v1/orders"


class GatewayError(Exception):
    pass


class GatewayNotConfigured(GatewayError):
    pass


def razorpay_configured():
    return bool(settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET)


def _ensure_razorpay_config():
    if not razorpay_configured():
        raise GatewayNotConfigured("Payment gateway not configured")


def _hmac_sha256_hex(secret: str, message) -> str:
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def create_razorpay_order(amount_paise: int, receipt: str, notes=None, currency="INR"):
    _ensure_razorpay_config()
    try:
        response = requests.post(
            RAZORPAY_ORDERS_URL,
            json={
                "amount": int(amount_paise),
                "currency": currency,
                "receipt": receipt[:40],
                "payment_capture": 1,
                "notes": notes or {},
            },
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET),
            timeout=20,
        )
    except requests.RequestException as exc:
        logger.warning("Razorpay order request failed: %s", exc)
        raise GatewayError("Payment gateway unreachable.") from exc

    if response.status_code not in {200, 201}:
        try:
            payload = response.json()
            error = payload.get("error") or {}
            message = error.get("description") or payload.get("message")
        except (ValueError, AttributeError):
            message = response.text
        logger.warning("Razorpay order rejected (%s): %s", response.status_code, message)
        raise GatewayError(message or "Razorpay order creation failed.")

    payload = response.json()
    if not payload.get("id"):
        raise GatewayError("Razorpay did not return an order id.")
    return payload


def verify_payment_signature(order_id: str, payment_id: str, signature: str) -> bool:
    _ensure_razorpay_config()
    expected = _hmac_sha256_hex(settings.RAZORPAY_KEY_SECRET, f"{order_id}|{payment_id}")
    return hmac.compare_digest(expected, str(signature or ""))


def verify_webhook_signature(raw_body: bytes, signature: str) -> bool:
    secret = settings.RAZORPAY_WEBHOOK_SECRET
    if not secret or not signature:
        return False
    expected = _hmac_sha256_hex(secret, raw_body or b"")
    return hmac.compare_digest(expected, str(signature))


def extract_webhook_order_id(payload: dict) -> str:
    body = (payload or {}).get("payload") or {}
    candidates = (
        ((body.get("payment") or {}).get("entity") or {}).get("order_id"),
        ((body.get("order") or {}).get("entity") or {}).get("id"),
        ((body.get("payment_link") or {}).get("entity") or {}).get("order_id"),
    )
    for candidate in candidates:
        if candidate:
            return str(candidate)
    return ""
