import hashlib
import hmac
import json
from datetime import timedelta
from unittest.mock import Mock, patch

import requests
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from content.models import UserNotification

from .access import AccessChecker, compute_active_access
from .models import Payment, Plan, UserAccess
from .throttling import PremiumPaymentThrottle
from .views import _mark_payment_paid

User = get_user_model()

RAZORPAY_SETTINGS = {
    "RAZORPAY_KEY_ID": "rzp_test_key",
    "RAZORPAY_KEY_SECRET": "rzp_test_secret",
    "RAZORPAY_WEBHOOK_SECRET": "whsec_test",
}


def _signature(secret, message):
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def _order_response(order_id="order_TEST123", status_code=200):
    response = Mock(status_code=status_code)
    response.json.return_value = {"id": order_id, "amount": 19900, "currency": "INR"}
    return response


class PaymentTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.student = User.objects.create_user(
            username="pay@example.com", email="pay@example.com", password="x", name="Payer"
        )
        self.client = APIClient()
        self.client.force_authenticate(self.student)
        Plan.objects.filter(code="combo").update(is_free=False, price_paise=19900, name="Combo Premium")
        self.combo = Plan.objects.get(code="combo")


class AccessComputationTests(TestCase):
    def test_combo_covers_pyq_and_materials_with_combo_expiry(self):
        now = timezone.now()
        access = UserAccess(combo_access=True, expiry=now + timedelta(days=10), pyq_expiry=now + timedelta(days=90))

        active = compute_active_access(access, now=now)

        self.assertTrue(active["pyqActive"])
        self.assertTrue(active["materialActive"])
        self.assertEqual(active["pyqExpiry"], access.expiry)

    def test_expired_flags_are_inactive(self):
        now = timezone.now()
        access = UserAccess(pyq_access=True, pyq_expiry=now - timedelta(seconds=1))

        active = compute_active_access(access, now=now)

        self.assertFalse(active["pyqActive"])
        self.assertIsNone(active["pyqExpiry"])

    def test_free_active_plan_unlocks_without_purchase(self):
        user = User.objects.create_user(username="f@example.com", email="f@example.com", password="x", name="F")

        self.assertTrue(AccessChecker(user).can_access("pyq"))

    def test_inactive_plan_locks_even_when_free(self):
        user = User.objects.create_user(username="g@example.com", email="g@example.com", password="x", name="G")
        Plan.objects.filter(code="pyq").update(status="inactive")

        self.assertFalse(AccessChecker(user).can_access("pyq"))


class PremiumOrderTests(PaymentTestCase):
    def test_invalid_plan_code(self):
        response = self.client.post("/api/student/premium/order", {"planCode": "gold"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Invalid planCode")

    def test_free_plan_activates_immediately(self):
        response = self.client.post("/api/student/premium/order", {"planCode": "pyq"}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["free"])
        self.assertEqual(Payment.objects.get().status, "free")
        self.assertTrue(UserAccess.objects.get(user=self.student).pyq_access)
        self.assertEqual(UserNotification.objects.get(user=self.student).title, "Premium activated")

    @override_settings(RAZORPAY_KEY_ID="", RAZORPAY_KEY_SECRET="")
    def test_paid_plan_without_gateway_config(self):
        response = self.client.post("/api/student/premium/order", {"planCode": "combo"}, format="json")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["message"], "Payment gateway not configured")
        self.assertFalse(Payment.objects.exists())

    @override_settings(**RAZORPAY_SETTINGS)
    def test_paid_plan_creates_gateway_order(self):
        with patch("payments.gateways.requests.post", return_value=_order_response()) as mocked_post:
            response = self.client.post("/api/student/premium/order", {"planCode": "combo"}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["orderId"], "order_TEST123")
        self.assertEqual(response.data["keyId"], "rzp_test_key")
        self.assertEqual(mocked_post.call_args.kwargs["json"]["amount"], 19900)
        self.assertEqual(mocked_post.call_args.kwargs["auth"], ("rzp_test_key", "rzp_test_secret"))
        payment = Payment.objects.get(razorpay_order_id="order_TEST123")
        self.assertEqual(payment.status, "created")

    @override_settings(**RAZORPAY_SETTINGS)
    def test_gateway_failure_maps_to_bad_gateway(self):
        with patch("payments.gateways.requests.post", side_effect=requests.ConnectionError()):
            response = self.client.post("/api/student/premium/order", {"planCode": "combo"}, format="json")

        self.assertEqual(response.status_code, 502)
        self.assertFalse(Payment.objects.exists())

    def test_order_requests_are_throttled(self):
        with patch.object(PremiumPaymentThrottle, "rate", "2/min", create=True):
            statuses = [
                self.client.post("/api/student/premium/order", {"planCode": "gold"}, format="json")
                for _ in range(3)
            ]

        self.assertEqual([response.status_code for response in statuses], [400, 400, 429])
        self.assertEqual(statuses[-1].data["message"], "Too many requests")


@override_settings(**RAZORPAY_SETTINGS)
class PremiumVerifyTests(PaymentTestCase):
    def setUp(self):
        super().setUp()
        self.payment = Payment.objects.create(
            user=self.student,
            plan=self.combo,
            amount_paise=19900,
            status="created",
            razorpay_order_id="order_ABC",
        )

    def _verify(self, signature=None, client=None):
        return (client or self.client).post(
            "/api/student/premium/verify",
            {
                "razorpay_order_id": "order_ABC",
                "razorpay_payment_id": "pay_XYZ",
                "razorpay_signature": signature or _signature("rzp_test_secret", "order_ABC|pay_XYZ"),
            },
            format="json",
        )

    def test_valid_signature_activates_combo(self):
        response = self._verify()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["planCode"], "combo")
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, "paid")
        self.assertEqual(self.payment.razorpay_payment_id, "pay_XYZ")
        self.assertTrue(AccessChecker(self.student).can_access("materials"))

    def test_second_verify_is_idempotent(self):
        self._verify()
        response = self._verify()

        self.assertTrue(response.data["alreadyProcessed"])
        self.assertEqual(UserNotification.objects.filter(user=self.student).count(), 1)

    def test_bad_signature_is_rejected(self):
        response = self._verify(signature="deadbeef")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Invalid payment signature")
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, "created")

    def test_stale_payment_is_settled_only_once(self):
        stale = Payment.objects.select_related("plan", "user").get(id=self.payment.id)

        first = _mark_payment_paid(stale, payment_id="pay_XYZ")
        second = _mark_payment_paid(stale, payment_id="pay_XYZ")

        self.assertTrue(first[0])
        self.assertEqual(second, (False, None))
        self.assertEqual(UserNotification.objects.filter(user=self.student).count(), 1)

    def test_plan_without_entitlement_still_settles(self):
        Plan.objects.filter(id=self.combo.id).update(code="legacy")

        response = self._verify()

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.data["expiry"])
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, "paid")
        self.assertFalse(UserAccess.objects.filter(user=self.student).exists())
        self.assertFalse(UserNotification.objects.exists())

    def test_other_users_order_is_forbidden(self):
        other = User.objects.create_user(username="o@example.com", email="o@example.com", password="x", name="O")
        client = APIClient()
        client.force_authenticate(other)

        response = self._verify(client=client)

        self.assertEqual(response.status_code, 403)


@override_settings(**RAZORPAY_SETTINGS)
class RazorpayWebhookTests(PaymentTestCase):
    def setUp(self):
        super().setUp()
        self.payment = Payment.objects.create(
            user=self.student,
            plan=self.combo,
            amount_paise=19900,
            status="created",
            razorpay_order_id="order_HOOK",
        )

    def _post(self, payload, signature=None):
        body = json.dumps(payload).encode("utf-8")
        return APIClient().post(
            "/api/webhooks/razorpay",
            data=body,
            content_type="application/json",
            HTTP_X_RAZORPAY_SIGNATURE=signature or _signature("whsec_test", body),
        )

    def _captured(self):
        return {
            "event": "payment.captured",
            "payload": {"payment": {"entity": {"id": "pay_HOOK", "order_id": "order_HOOK"}}},
        }

    def test_captured_event_settles_payment(self):
        response = self._post(self._captured())

        self.assertEqual(response.status_code, 200)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, "paid")
        self.assertEqual(self.payment.razorpay_payment_id, "pay_HOOK")

    def test_verify_after_webhook_grants_access_once(self):
        self._post(self._captured())
        expiry = UserAccess.objects.get(user=self.student).expiry

        response = self.client.post(
            "/api/student/premium/verify",
            {
                "razorpay_order_id": "order_HOOK",
                "razorpay_payment_id": "pay_HOOK",
                "razorpay_signature": _signature("rzp_test_secret", "order_HOOK|pay_HOOK"),
            },
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["alreadyProcessed"])
        self.assertEqual(UserNotification.objects.filter(user=self.student).count(), 1)
        self.assertEqual(UserAccess.objects.get(user=self.student).expiry, expiry)

    def test_invalid_signature(self):
        response = self._post(self._captured(), signature="bad")

        self.assertEqual(response.status_code, 400)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, "created")

    def test_unknown_order_is_acknowledged(self):
        payload = self._captured()
        payload["payload"]["payment"]["entity"]["order_id"] = "order_OTHER"

        response = self._post(payload)

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["missing"])

    def test_non_capture_event_is_ignored(self):
        payload = self._captured()
        payload["event"] = "payment.failed"

        response = self._post(payload)

        self.assertTrue(response.data["ignored"])
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, "created")


class PlanAdminTests(TestCase):
    def setUp(self):
        admin = User.objects.create_user(
            username="adm@example.com", email="adm@example.com", password="x", name="Adm", role="admin"
        )
        self.client = APIClient()
        self.client.force_authenticate(admin)

    def test_code_must_be_unique(self):
        plan = Plan.objects.get(code="pyq")

        response = self.client.put(f"/api/admin/plans/{plan.id}", {"code": "COMBO"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["details"]["code"], "code already in use")

    def test_code_outside_known_plans_is_rejected(self):
        plan = Plan.objects.get(code="combo")

        response = self.client.put(f"/api/admin/plans/{plan.id}", {"code": "combo-2026"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertIn("code", response.data["details"])
        plan.refresh_from_db()
        self.assertEqual(plan.code, "combo")

    def test_price_update(self):
        plan = Plan.objects.get(code="materials")

        response = self.client.put(
            f"/api/admin/plans/{plan.id}", {"pricePaise": 4900, "isFree": False}, format="json"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["plan"]["pricePaise"], 4900)
        self.assertFalse(response.data["plan"]["isFree"])

    def test_delete_deactivates(self):
        plan = Plan.objects.get(code="pyq")

        response = self.client.delete(f"/api/admin/plans/{plan.id}")

        self.assertEqual(response.status_code, 200)
        plan.refresh_from_db()
        self.assertEqual(plan.status, "inactive")
