from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


ROLE_CHOICES = [
    ("student", "Student"),
    ("admin", "Admin"),
]


class User(AbstractUser):
    name = models.CharField(max_length=200, blank=True, default="")
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="student")

    def save(self, *args, **kwargs):
        self.email = (self.email or "").strip().lower()
        if not self.username:
            self.username = self.email
        if not self.name:
            self.name = f"{self.first_name} {self.last_name}".strip() or self.username
        if self.is_superuser:
            self.role = "admin"
        self.is_staff = self.role == "admin"
        super().save(*args, **kwargs)

    @property
    def is_admin_role(self):
        return self.role == "admin"

    @property
    def display_name(self):
        return self.name or self.email


class EmailOTP(models.Model):
    PURPOSE_CHOICES = [
        ("password_reset", "Password reset"),
        ("login", "Login"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="email_otps")
    purpose = models.CharField(max_length=20, choices=PURPOSE_CHOICES, default="password_reset")
    token_hash = models.CharField(max_length=64)
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["user", "purpose", "token_hash"], name="accounts_em_user_id_3f1c2a_idx"),
            models.Index(fields=["expires_at"], name="accounts_em_expires_9b7d41_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.user_id} | {self.purpose} | {self.created_at:%Y-%m-%d %H:%M}"

    @property
    def is_used(self):
        return self.used_at is not None

    def mark_used(self):
        self.used_at = timezone.now()
        self.save(update_fields=["used_at"])

    def is_expired(self):
        return timezone.now() > self.expires_at
