from django.conf import settings
from django.db import models


PLAN_CODES = ("pyq", "materials", "combo")

# plan code -> (flag field, expiry field) on UserAccess
PLAN_ACCESS_FIELDS = {
    "combo": ("combo_access", "expiry"),
    "pyq": ("pyq_access", "pyq_expiry"),
    "materials": ("material_access", "material_expiry"),
}


class Plan(models.Model):
    STATUS_CHOICES = [
        ("active", "Active"),
        ("inactive", "Inactive"),
    ]

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    price_paise = models.IntegerField(default=0)
    duration_days = models.PositiveIntegerField(default=365)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    is_free = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().lower()
        super().save(*args, **kwargs)

    @property
    def is_active(self):
        return self.status == "active"

    @property
    def requires_payment(self):
        return not self.is_free and self.price_paise > 0


class Payment(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("created", "Created"),
        ("paid", "Paid"),
        ("free", "Free"),
        ("failed", "Failed"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="payments")
    plan = models.ForeignKey(Plan, on_delete=models.PROTECT, related_name="payments")
    amount_paise = models.IntegerField(default=0)
    currency = models.CharField(max_length=8, default="INR")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="pending")
    razorpay_order_id = models.CharField(max_length=100, unique=True, null=True, blank=True)
    razorpay_payment_id = models.CharField(max_length=100, blank=True, default="")
    razorpay_signature = models.CharField(max_length=255, blank=True, default="")
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.plan.code} | {self.razorpay_order_id} | {self.status}"

    @property
    def is_settled(self):
        return self.status in {"paid", "free"}


class UserAccess(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="access")
    combo_access = models.BooleanField(default=False)
    expiry = models.DateTimeField(null=True, blank=True)
    pyq_access = models.BooleanField(default=False)
    pyq_expiry = models.DateTimeField(null=True, blank=True)
    material_access = models.BooleanField(default=False)
    material_expiry = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "user access"
        verbose_name_plural = "user access"

    def __str__(self):
        return f"Access for {self.user_id}"
