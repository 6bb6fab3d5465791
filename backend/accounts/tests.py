import re
from datetime import timedelta
from io import StringIO
from unittest.mock import Mock, patch

import requests
from django.contrib.auth import get_user_model
from django.core import mail
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from exams.models import Result
from exams.models import Test as MockTest

from .models import EmailOTP
from .otp_service import OTPServiceError, consume_otp, hash_otp, issue_otp, send_email
from .throttling import OTPVerifyThrottle

User = get_user_model()

SMTP_SETTINGS = {"BREVO_API_KEY": "", "EMAIL_HOST": "smtp.kcet.test", "SHOW_OTP_IN_RESPONSE": False}


def _otp_from_outbox():
    match = re.search(r"\b(\d{6})\b", mail.outbox[-1].body)
    return match.group(1)


class StudentAuthTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_returns_tokens_and_student_role(self):
        response = self.client.post(
            "/api/auth/student/register",
            {"name": "Asha", "email": "Asha@Example.com ", "password": "secret1"},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertIn("token", response.data)
        self.assertIn("refresh", response.data)
        self.assertEqual(response.data["user"]["email"], "asha@example.com")
        self.assertEqual(response.data["user"]["role"], "student")

    def test_register_rejects_duplicate_email_case_insensitively(self):
        User.objects.create_user(username="asha@example.com", email="asha@example.com", password="x", name="A")

        response = self.client.post(
            "/api/auth/student/register",
            {"name": "Asha", "email": "ASHA@example.com", "password": "secret1"},
            format="json",
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["message"], "Email already registered")

    def test_register_requires_all_fields(self):
        response = self.client.post("/api/auth/student/register", {"email": "a@b.com"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "name, email, password are required")

    def test_student_cannot_use_admin_login(self):
        User.objects.create_user(username="s@example.com", email="s@example.com", password="pw123456", name="S")

        student = self.client.post(
            "/api/auth/student/login", {"email": "s@example.com", "password": "pw123456"}, format="json"
        )
        admin = self.client.post(
            "/api/auth/admin/login", {"email": "s@example.com", "password": "pw123456"}, format="json"
        )

        self.assertEqual(student.status_code, 200)
        self.assertEqual(admin.status_code, 401)
        self.assertEqual(admin.data["message"], "Invalid credentials")

    def test_me_requires_token(self):
        response = self.client.get("/api/auth/me")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["message"], "Unauthorized")

    def test_me_accepts_bearer_token(self):
        login = self.client.post(
            "/api/auth/student/register",
            {"name": "Ravi", "email": "ravi@example.com", "password": "secret1"},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['token']}")

        response = self.client.get("/api/auth/me")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["user"]["name"], "Ravi")


@override_settings(**SMTP_SETTINGS)
class PasswordResetFlowTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.student = User.objects.create_user(
            username="meera@example.com", email="meera@example.com", password="oldpass1", name="Meera"
        )

    def test_unknown_email_gets_generic_message_without_mail(self):
        response = self.client.post(
            "/api/auth/student/password-reset/request", {"email": "nobody@example.com"}, format="json"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(mail.outbox), 0)
        self.assertFalse(EmailOTP.objects.exists())

    def test_reset_with_emailed_otp_changes_password_once(self):
        self.client.post("/api/auth/student/password-reset/request", {"email": "meera@example.com"}, format="json")
        otp = _otp_from_outbox()
        payload = {"email": "meera@example.com", "otp": otp, "newPassword": "newpass1"}

        first = self.client.post("/api/auth/student/password-reset/reset", payload, format="json")
        second = self.client.post("/api/auth/student/password-reset/reset", payload, format="json")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.data, {"reset": True})
        self.assertEqual(second.status_code, 400)
        self.assertEqual(second.data["message"], "OTP already used")
        self.student.refresh_from_db()
        self.assertTrue(self.student.check_password("newpass1"))

    def test_expired_otp_is_rejected(self):
        otp, record = issue_otp(self.student, "password_reset")
        record.expires_at = timezone.now() - timedelta(seconds=1)
        record.save(update_fields=["expires_at"])

        response = self.client.post(
            "/api/auth/student/password-reset/reset",
            {"email": "meera@example.com", "otp": otp, "newPassword": "newpass1"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "OTP expired")

    def test_new_request_retires_previous_code(self):
        old_otp, _ = issue_otp(self.student, "password_reset")
        issue_otp(self.student, "password_reset")

        with self.assertRaisesMessage(OTPServiceError, "OTP already used"):
            consume_otp(self.student, old_otp, "password_reset")

    def test_login_otp_is_not_valid_for_password_reset(self):
        otp, _ = issue_otp(self.student, "login")

        self.assertNotEqual(hash_otp(otp, self.student.id, "login"), hash_otp(otp, self.student.id, "password_reset"))
        with self.assertRaisesMessage(OTPServiceError, "Invalid OTP"):
            consume_otp(self.student, otp, "password_reset")

    def test_otp_login_returns_session(self):
        self.client.post("/api/auth/student/otp-login/request", {"email": "meera@example.com"}, format="json")
        otp = _otp_from_outbox()

        response = self.client.post(
            "/api/auth/student/otp-login/verify", {"email": "meera@example.com", "otp": otp}, format="json"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["user"]["email"], "meera@example.com")
        self.assertEqual(mail.outbox[-1].subject, "Login OTP")

    def test_otp_guesses_are_throttled(self):
        issue_otp(self.student, "login")
        payload = {"email": "meera@example.com", "otp": "000000"}

        with patch.object(OTPVerifyThrottle, "rate", "3/min", create=True):
            responses = [
                self.client.post("/api/auth/student/otp-login/verify", payload, format="json") for _ in range(4)
            ]

        self.assertEqual([response.status_code for response in responses], [400, 400, 400, 429])
        self.assertEqual(responses[-1].data["message"], "Too many requests")


class EmailDeliveryTests(TestCase):
    @override_settings(BREVO_API_KEY="", EMAIL_HOST="")
    def test_unconfigured_email_raises(self):
        with self.assertRaisesMessage(OTPServiceError, "Email service not configured"):
            send_email("a@example.com", "Subject", "Body")

    @override_settings(BREVO_API_KEY="brevo-key", DEFAULT_FROM_EMAIL="KCET Prep <noreply@kcet.test>")
    def test_brevo_timeout_maps_to_service_error(self):
        with patch("accounts.otp_service.requests.post", side_effect=requests.Timeout()):
            with self.assertRaisesMessage(OTPServiceError, "Email service connection timeout"):
                send_email("a@example.com", "Subject", "Body")

    @override_settings(BREVO_API_KEY="brevo-key", DEFAULT_FROM_EMAIL="KCET Prep <noreply@kcet.test>")
    def test_brevo_payload(self):
        with patch("accounts.otp_service.requests.post", return_value=Mock(status_code=201)) as mocked_post:
            send_email("a@example.com", "Subject", "Body")

        kwargs = mocked_post.call_args.kwargs
        self.assertEqual(kwargs["headers"]["api-key"], "brevo-key")
        self.assertEqual(kwargs["json"]["sender"], {"email": "noreply@kcet.test", "name": "KCET Prep"})
        self.assertEqual(kwargs["json"]["to"], [{"email": "a@example.com"}])

    @override_settings(BREVO_API_KEY="", EMAIL_HOST="", SHOW_OTP_IN_RESPONSE=True)
    def test_dev_mode_echoes_otp_when_mail_is_unavailable(self):
        User.objects.create_user(username="dev@example.com", email="dev@example.com", password="x", name="Dev")

        response = APIClient().post(
            "/api/auth/student/password-reset/request", {"email": "dev@example.com"}, format="json"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["message"], "Email service not configured")
        self.assertRegex(response.data["otp"], r"^\d{6}$")

    @override_settings(BREVO_API_KEY="", EMAIL_HOST="", SHOW_OTP_IN_RESPONSE=False)
    def test_mail_failure_is_reported_when_not_in_dev_mode(self):
        User.objects.create_user(username="p@example.com", email="p@example.com", password="x", name="P")

        response = APIClient().post("/api/auth/student/otp-login/request", {"email": "p@example.com"}, format="json")

        self.assertEqual(response.status_code, 500)
        self.assertNotIn("otp", response.data)


class StudentAdminTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            username="admin@kcet.test", email="admin@kcet.test", password="x", name="Admin", role="admin"
        )
        self.student = User.objects.create_user(
            username="kiran@example.com", email="kiran@example.com", password="x", name="Kiran"
        )
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

    def test_student_role_cannot_manage_students(self):
        client = APIClient()
        client.force_authenticate(self.student)

        response = client.get("/api/admin/students")

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["message"], "Forbidden")

    def test_list_only_contains_students(self):
        response = self.client.get("/api/admin/students")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["email"] for row in response.data["students"]], ["kiran@example.com"])

    def test_create_conflicts_on_existing_email(self):
        response = self.client.post(
            "/api/admin/students",
            {"name": "Dup", "email": "KIRAN@example.com", "password": "pw"},
            format="json",
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["message"], "Email already exists")

    def test_update_without_fields_is_rejected(self):
        response = self.client.put(f"/api/admin/students/{self.student.id}", {}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "No fields to update")

    def test_delete_cascades_results(self):
        test = MockTest.objects.create(title="Mock 1", question_count=1)
        Result.objects.create(user=self.student, test=test, score=4, total_questions=1)

        response = self.client.delete(f"/api/admin/students/{self.student.id}")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(User.objects.filter(id=self.student.id).exists())
        self.assertFalse(Result.objects.exists())

    def test_delete_unknown_student(self):
        response = self.client.delete("/api/admin/students/9999")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["message"], "Student not found")


class UserModelTests(TestCase):
    def test_email_is_normalised(self):
        user = User.objects.create_user(username="mixed", email="  MiXed@Example.COM ", password="x", name="")

        self.assertEqual(user.email, "mixed@example.com")
        self.assertEqual(user.role, "student")
        self.assertFalse(user.is_staff)

    def test_admin_role_gets_staff_flag(self):
        user = User.objects.create_user(username="a", email="a@example.com", password="x", name="A", role="admin")

        self.assertTrue(user.is_staff)


class EnsureAdminCommandTests(TestCase):
    @override_settings(ADMIN_EMAIL="Owner@KCET.test", ADMIN_PASSWORD="s3cret!", ADMIN_NAME="Owner")
    def test_creates_then_promotes_existing_account(self):
        call_command("ensure_admin", stdout=StringIO())
        admin = User.objects.get(email="owner@kcet.test")
        admin.role = "student"
        admin.save()

        call_command("ensure_admin", stdout=StringIO())

        admin.refresh_from_db()
        self.assertEqual(admin.role, "admin")
        self.assertTrue(admin.check_password("s3cret!"))
        self.assertEqual(User.objects.filter(role="admin").count(), 1)

    @override_settings(ADMIN_EMAIL="", ADMIN_PASSWORD="", DEBUG=False)
    def test_without_credentials_outside_debug_does_nothing(self):
        call_command("ensure_admin", stdout=StringIO())

        self.assertFalse(User.objects.filter(role="admin").exists())
