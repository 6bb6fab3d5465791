from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    AdminLoginView,
    MeView,
    OTPLoginRequestView,
    OTPLoginVerifyView,
    PasswordResetConfirmView,
    PasswordResetRequestView,
    ProfilePasswordResetRequestView,
    ProfilePasswordResetView,
    ProfileView,
    StudentAdminDetailView,
    StudentAdminListView,
    StudentLoginView,
    StudentRegisterView,
)

urlpatterns = [
    path("student/register", StudentRegisterView.as_view()),
    path("student/login", StudentLoginView.as_view()),
    path("admin/login", AdminLoginView.as_view()),
    path("me", MeView.as_view()),
    path("token/refresh", TokenRefreshView.as_view()),
    path("student/password-reset/request", PasswordResetRequestView.as_view()),
    path("student/password-reset/reset", PasswordResetConfirmView.as_view()),
    path("student/otp-login/request", OTPLoginRequestView.as_view()),
    path("student/otp-login/verify", OTPLoginVerifyView.as_view()),
]

student_urlpatterns = [
    path("profile", ProfileView.as_view()),
    path("password-reset/request", ProfilePasswordResetRequestView.as_view()),
    path("password-reset/reset", ProfilePasswordResetView.as_view()),
]

admin_urlpatterns = [
    path("students", StudentAdminListView.as_view()),
    path("students/<int:student_id>", StudentAdminDetailView.as_view()),
]
