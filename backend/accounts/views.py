import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from .otp_service import OTPServiceError, consume_otp, issue_otp, send_otp_email
from .permissions import IsAdminRole, IsStudentOrAdmin
from .serializers import (
    StudentRowSerializer,
    UserSerializer,
    authenticate_with_role,
    is_valid_email,
    normalize_email,
)
from .throttling import OTPVerifyThrottle

logger = logging.getLogger(__name__)

User = get_user_model()

GENERIC_OTP_MESSAGE = "If an account exists, an OTP has been sent to the registered email."


def _build_tokens_for_user(user):
    refresh = RefreshToken.for_user(user)
    refresh["role"] = user.role
    refresh["name"] = user.name
    refresh["email"] = user.email
    return {
        "refresh": str(refresh),
        "access": str(refresh.access_token),
    }


def _session_payload(user):
    user.last_login = timezone.now()
    user.save(update_fields=["last_login"])
    tokens = _build_tokens_for_user(user)
    return {
        "token": tokens["access"],
        "refresh": tokens["refresh"],
        "user": UserSerializer(user).data,
    }


def _deliver_otp(user, purpose, message):
    otp, _record = issue_otp(user, purpose)
    try:
        send_otp_email(user, otp, purpose)
    except OTPServiceError as exc:
        if settings.SHOW_OTP_IN_RESPONSE:
            return Response({"message": str(exc), "otp": otp})
        return Response({"message": str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({"message": message})


def _student_for_email(email):
    return User.objects.filter(email__iexact=email, role="student").first()


class StudentRegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        name = str(request.data.get("name") or "").strip()
        email = normalize_email(request.data.get("email"))
        password = str(request.data.get("password") or "")
        if not name or not email or not password:
            return Response(
                {"message": "name, email, password are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if not is_valid_email(email):
            return Response({"message": "Invalid email"}, status=status.HTTP_400_BAD_REQUEST)
        if User.objects.filter(email__iexact=email).exists():
            return Response({"message": "Email already registered"}, status=status.HTTP_409_CONFLICT)

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    username=email,
                    email=email,
                    password=password,
                    name=name,
                    role="student",
                )
        except IntegrityError:
            return Response({"message": "Email already registered"}, status=status.HTTP_409_CONFLICT)

        return Response(_session_payload(user), status=status.HTTP_201_CREATED)


class StudentLoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    role = "student"

    def post(self, request):
        user = authenticate_with_role(request.data.get("email"), request.data.get("password"), self.role)
        if not user:
            return Response({"message": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)
        return Response(_session_payload(user))


class AdminLoginView(StudentLoginView):
    role = "admin"


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"user": UserSerializer(request.user).data})


class PasswordResetRequestView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    purpose = "password_reset"

    def post(self, request):
        email = normalize_email(request.data.get("email"))
        if not email or not is_valid_email(email):
            return Response({"message": "Valid email is required"}, status=status.HTTP_400_BAD_REQUEST)

        user = _student_for_email(email)
        if not user:
            return Response({"message": GENERIC_OTP_MESSAGE})
        return _deliver_otp(user, self.purpose, GENERIC_OTP_MESSAGE)


class OTPLoginRequestView(PasswordResetRequestView):
    purpose = "login"


class PasswordResetConfirmView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [OTPVerifyThrottle]

    def post(self, request):
        email = normalize_email(request.data.get("email"))
        otp = str(request.data.get("otp") or "").strip()
        new_password = str(request.data.get("newPassword") or "")
        if not email or not otp or not new_password:
            return Response(
                {"message": "email, otp and newPassword are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if not is_valid_email(email):
            return Response({"message": "Valid email is required"}, status=status.HTTP_400_BAD_REQUEST)

        user = _student_for_email(email)
        if not user:
            return Response({"message": "Invalid OTP"}, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            try:
                consume_otp(user, otp, "password_reset")
            except OTPServiceError as exc:
                return Response({"message": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
            user.set_password(new_password)
            user.save(update_fields=["password"])
        return Response({"reset": True})


class OTPLoginVerifyView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [OTPVerifyThrottle]

    def post(self, request):
        email = normalize_email(request.data.get("email"))
        otp = str(request.data.get("otp") or "").strip()
        if not email or not otp:
            return Response({"message": "email and otp are required"}, status=status.HTTP_400_BAD_REQUEST)

        user = _student_for_email(email)
        if not user:
            return Response({"message": "Invalid OTP"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            consume_otp(user, otp, "login")
        except OTPServiceError as exc:
            return Response({"message": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(_session_payload(user))


class ProfileView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        return Response({"user": UserSerializer(request.user).data})

    def put(self, request):
        name = str(request.data.get("name") or "").strip()
        if not name:
            return Response({"message": "name is required"}, status=status.HTTP_400_BAD_REQUEST)
        request.user.name = name
        request.user.save(update_fields=["name"])
        return Response({"updated": True})


class ProfilePasswordResetRequestView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def post(self, request):
        return _deliver_otp(request.user, "password_reset", "OTP sent to your registered email.")


class ProfilePasswordResetView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def post(self, request):
        otp = str(request.data.get("otp") or "").strip()
        new_password = str(request.data.get("newPassword") or "")
        if not otp or not new_password:
            return Response({"message": "otp and newPassword are required"}, status=status.HTTP_400_BAD_REQUEST)

        user = request.user
        with transaction.atomic():
            try:
                consume_otp(user, otp, "password_reset")
            except OTPServiceError as exc:
                return Response({"message": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
            user.set_password(new_password)
            user.save(update_fields=["password"])
        return Response({"reset": True})


class StudentAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        students = User.objects.filter(role="student").order_by("-date_joined", "-id")
        return Response({"students": StudentRowSerializer(students, many=True).data})

    def post(self, request):
        name = str(request.data.get("name") or "").strip()
        email = normalize_email(request.data.get("email"))
        password = str(request.data.get("password") or "")
        if not name or not email or not password:
            return Response(
                {"message": "name, email, password are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if not is_valid_email(email):
            return Response({"message": "Invalid email"}, status=status.HTTP_400_BAD_REQUEST)
        if User.objects.filter(email__iexact=email).exists():
            return Response({"message": "Email already exists"}, status=status.HTTP_409_CONFLICT)

        user = User.objects.create_user(username=email, email=email, password=password, name=name, role="student")
        logger.info("Admin %s created student %s", request.user.id, user.id)
        return Response({"user": UserSerializer(user).data}, status=status.HTTP_201_CREATED)


class StudentAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def _get_student(self, student_id):
        try:
            return User.objects.get(id=student_id, role="student")
        except User.DoesNotExist:
            return None

    def put(self, request, student_id):
        student = self._get_student(student_id)
        if not student:
            return Response({"message": "Student not found"}, status=status.HTTP_404_NOT_FOUND)

        update_fields = []
        if "name" in request.data:
            name = str(request.data.get("name") or "").strip()
            if not name:
                return Response({"message": "name cannot be empty"}, status=status.HTTP_400_BAD_REQUEST)
            student.name = name
            update_fields.append("name")
        if "email" in request.data:
            email = normalize_email(request.data.get("email"))
            if not is_valid_email(email):
                return Response({"message": "Invalid email"}, status=status.HTTP_400_BAD_REQUEST)
            if User.objects.filter(email__iexact=email).exclude(id=student.id).exists():
                return Response({"message": "Email already exists"}, status=status.HTTP_409_CONFLICT)
            student.email = email
            student.username = email
            update_fields.extend(["email", "username"])
        if request.data.get("password"):
            student.set_password(str(request.data.get("password")))
            update_fields.append("password")

        if not update_fields:
            return Response({"message": "No fields to update"}, status=status.HTTP_400_BAD_REQUEST)
        student.save(update_fields=update_fields)
        return Response({"user": UserSerializer(student).data})

    def delete(self, request, student_id):
        # Results, completions, payments and access rows cascade with the user.
        deleted, _ = User.objects.filter(id=student_id, role="student").delete()
        if not deleted:
            return Response({"message": "Student not found"}, status=status.HTTP_404_NOT_FOUND)
        logger.info("Admin %s deleted student %s", request.user.id, student_id)
        return Response({"ok": True})
