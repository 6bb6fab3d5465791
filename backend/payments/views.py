import json
import logging
import secrets

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdminRole, IsStudentOrAdmin

from .access import AccessChecker, grant_access_for_plan
from .gateways import (
    GatewayError,
    GatewayNotConfigured,
    create_razorpay_order,
    extract_webhook_order_id,
    verify_payment_signature,
    verify_webhook_signature,
)
from .models import PLAN_CODES, Payment, Plan
from .serializers import PaymentRowSerializer, PlanSerializer
from .throttling import PremiumPaymentThrottle

logger = logging.getLogger(__name__)

CAPTURE_EVENTS = {"payment.captured", "order.paid"}


def _now_ms():
    return int(timezone.now().timestamp() * 1000)


def _mark_payment_paid(payment, payment_id="", signature=""):
    """Settle a created payment once and grant its plan.

    Returns ``(settled, expiry)``; ``settled`` is False when another request got there first.
    """
    with transaction.atomic():
        now = timezone.now()
        updated = Payment.objects.filter(id=payment.id, status__in=["pending", "created"]).update(
            status="paid",
            razorpay_payment_id=payment_id or payment.razorpay_payment_id,
            razorpay_signature=signature or payment.razorpay_signature,
            paid_at=now,
            updated_at=now,
        )
        if not updated:
            return False, None
        expiry = grant_access_for_plan(payment.user, payment.plan, now=now)

    logger.info(
        "Payment %s settled: user=%s plan=%s order=%s",
        payment.id,
        payment.user_id,
        payment.plan.code,
        payment.razorpay_order_id,
    )
    return True, expiry


class PremiumPlansView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        plans = Plan.objects.filter(status="active").order_by("id")
        return Response({"plans": PlanSerializer(plans, many=True).data})


class PremiumStatusView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        return Response({"access": AccessChecker(request.user).status()})


class PremiumOrderView(APIView):
    permission_classes = [IsStudentOrAdmin]
    throttle_classes = [PremiumPaymentThrottle]

    def post(self, request):
        plan_code = str(request.data.get("planCode") or request.data.get("code") or "").strip().lower()
        if plan_code not in PLAN_CODES:
            return Response({"message": "Invalid planCode"}, status=status.HTTP_400_BAD_REQUEST)

        plan = Plan.objects.filter(code=plan_code).first()
        if not plan or not plan.is_active:
            return Response({"message": "Plan is not available"}, status=status.HTTP_400_BAD_REQUEST)

        user = request.user
        if not plan.requires_payment:
            with transaction.atomic():
                now = timezone.now()
                expiry = grant_access_for_plan(user, plan, now=now)
                Payment.objects.create(
                    user=user,
                    plan=plan,
                    amount_paise=0,
                    status="free",
                    razorpay_order_id=f"free_{user.id}_{_now_ms()}_{secrets.token_hex(6)}",
                    paid_at=now,
                )
            logger.info("Free plan %s activated for user %s", plan.code, user.id)
            return Response({"free": True, "plan": {"code": plan.code, "name": plan.name}, "expiry": expiry})

        try:
            order = create_razorpay_order(
                plan.price_paise,
                receipt=f"rcpt_{user.id}_{plan.code}_{_now_ms()}",
                notes={"userId": str(user.id), "planCode": plan.code},
            )
        except GatewayNotConfigured as exc:
            return Response({"message": str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        except GatewayError as exc:
            return Response({"message": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)

        Payment.objects.create(
            user=user,
            plan=plan,
            amount_paise=plan.price_paise,
            currency=order.get("currency") or "INR",
            status="created",
            razorpay_order_id=order["id"],
        )

        return Response(
            {
                "orderId": order["id"],
                "amountPaise": plan.price_paise,
                "currency": "INR",
                "keyId": settings.RAZORPAY_KEY_ID,
                "plan": {"code": plan.code, "name": plan.name, "durationDays": plan.duration_days},
                "user": {"name": user.name, "email": user.email},
            }
        )


class PremiumVerifyView(APIView):
    permission_classes = [IsStudentOrAdmin]
    throttle_classes = [PremiumPaymentThrottle]

    def post(self, request):
        data = request.data
        order_id = str(data.get("razorpay_order_id") or data.get("orderId") or "").strip()
        payment_id = str(data.get("razorpay_payment_id") or data.get("paymentId") or "").strip()
        signature = str(data.get("razorpay_signature") or data.get("signature") or "").strip()
        if not (order_id and payment_id and signature):
            return Response(
                {"message": "razorpay_order_id, razorpay_payment_id, razorpay_signature are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            payment = Payment.objects.select_related("plan", "user").get(razorpay_order_id=order_id)
        except Payment.DoesNotExist:
            return Response({"message": "Payment not found"}, status=status.HTTP_404_NOT_FOUND)
        if payment.user_id != request.user.id:
            return Response({"message": "Forbidden"}, status=status.HTTP_403_FORBIDDEN)

        try:
            valid = verify_payment_signature(order_id, payment_id, signature)
        except GatewayNotConfigured as exc:
            return Response({"message": str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        if not valid:
            logger.warning("Invalid payment signature for order %s", order_id)
            return Response({"message": "Invalid payment signature"}, status=status.HTTP_400_BAD_REQUEST)

        if payment.is_settled:
            return Response({"ok": True, "alreadyProcessed": True})

        settled, expiry = _mark_payment_paid(payment, payment_id=payment_id, signature=signature)
        if not settled:
            return Response({"ok": True, "alreadyProcessed": True})
        return Response({"ok": True, "planCode": payment.plan.code, "expiry": expiry})


class RazorpayWebhookView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        raw_body = request.body
        signature = request.headers.get("X-Razorpay-Signature", "")
        if not verify_webhook_signature(raw_body, signature):
            logger.warning("Rejected Razorpay webhook with invalid signature")
            return Response({"message": "Invalid webhook signature"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            payload = json.loads(raw_body.decode("utf-8") or "{}")
        except (UnicodeDecodeError, ValueError):
            return Response({"message": "Invalid webhook payload"}, status=status.HTTP_400_BAD_REQUEST)
        if not isinstance(payload, dict):
            return Response({"message": "Invalid webhook payload"}, status=status.HTTP_400_BAD_REQUEST)

        event = str(payload.get("event") or "")
        order_id = extract_webhook_order_id(payload)
        if not order_id:
            logger.info("Webhook %s ignored: no order id", event)
            return Response({"ok": True, "ignored": True})

        payment = Payment.objects.select_related("plan", "user").filter(razorpay_order_id=order_id).first()
        if not payment or not payment.plan:
            logger.info("Webhook %s for unknown order %s", event, order_id)
            return Response({"ok": True, "missing": True})

        if payment.is_settled:
            return Response({"ok": True, "alreadyProcessed": True})

        if event not in CAPTURE_EVENTS:
            logger.info("Webhook %s ignored for order %s", event, order_id)
            return Response({"ok": True, "ignored": True})

        entity = ((payload.get("payload") or {}).get("payment") or {}).get("entity") or {}
        settled, expiry = _mark_payment_paid(payment, payment_id=str(entity.get("id") or ""))
        if not settled:
            return Response({"ok": True, "alreadyProcessed": True})
        return Response({"ok": True, "planCode": payment.plan.code, "expiry": expiry})


class PlanAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        return Response({"plans": PlanSerializer(Plan.objects.order_by("id"), many=True).data})


class PlanAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def put(self, request, plan_id):
        try:
            plan = Plan.objects.get(id=plan_id)
        except Plan.DoesNotExist:
            return Response({"message": "Plan not found"}, status=status.HTTP_404_NOT_FOUND)

        aliases = {
            "code": ("code",),
            "name": ("name",),
            "price_paise": ("pricePaise", "price_paise"),
            "duration_days": ("durationDays", "duration_days"),
            "status": ("status",),
            "is_free": ("isFree", "is_free"),
        }
        updates = {}
        for field, keys in aliases.items():
            for key in keys:
                if key in request.data:
                    updates[field] = request.data.get(key)
                    break

        if not updates:
            return Response({"message": "No fields to update"}, status=status.HTTP_400_BAD_REQUEST)

        errors = {}
        if "code" in updates:
            updates["code"] = str(updates["code"] or "").strip().lower()
            if updates["code"] not in PLAN_CODES:
                errors["code"] = f"code must be one of {', '.join(PLAN_CODES)}"
            elif Plan.objects.filter(code=updates["code"]).exclude(id=plan.id).exists():
                errors["code"] = "code already in use"
        if "name" in updates:
            updates["name"] = str(updates["name"] or "").strip()
            if not updates["name"]:
                errors["name"] = "name cannot be empty"
        if "status" in updates and updates["status"] not in {"active", "inactive"}:
            errors["status"] = "status must be active or inactive"
        if "price_paise" in updates:
            try:
                updates["price_paise"] = int(updates["price_paise"])
                if updates["price_paise"] < 0:
                    raise ValueError
            except (TypeError, ValueError):
                errors["pricePaise"] = "pricePaise must be a non-negative integer"
        if "duration_days" in updates:
            try:
                updates["duration_days"] = int(updates["duration_days"])
                if updates["duration_days"] <= 0:
                    raise ValueError
            except (TypeError, ValueError):
                errors["durationDays"] = "durationDays must be a positive integer"
        if "is_free" in updates:
            updates["is_free"] = str(updates["is_free"]).lower() in {"1", "true", "yes"}

        if errors:
            return Response({"message": "Validation failed", "details": errors}, status=status.HTTP_400_BAD_REQUEST)

        for key, value in updates.items():
            setattr(plan, key, value)
        plan.save()
        return Response({"plan": PlanSerializer(plan).data})

    def delete(self, request, plan_id):
        updated = Plan.objects.filter(id=plan_id).update(status="inactive", updated_at=timezone.now())
        if not updated:
            return Response({"message": "Plan not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"ok": True})


class PaymentAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        payments = Payment.objects.select_related("user", "plan").order_by("-created_at", "-id")[:200]
        return Response({"payments": PaymentRowSerializer(payments, many=True).data})
