from django.contrib import admin

from .models import Payment, Plan, UserAccess


@admin.register(Plan)
class PlanAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "price_paise", "duration_days", "is_free", "status", "updated_at")
    list_filter = ("status", "is_free")
    search_fields = ("code", "name")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "plan",
        "amount_paise",
        "status",
        "razorpay_order_id",
        "razorpay_payment_id",
        "created_at",
        "paid_at",
    )
    list_filter = ("status", "plan", "created_at")
    search_fields = (
        "user__email",
        "user__name",
        "razorpay_order_id",
        "razorpay_payment_id",
    )
    readonly_fields = ("created_at", "updated_at", "paid_at")


@admin.register(UserAccess)
class UserAccessAdmin(admin.ModelAdmin):
    list_display = (
        "user",
        "combo_access",
        "expiry",
        "pyq_access",
        "pyq_expiry",
        "material_access",
        "material_expiry",
    )
    list_filter = ("combo_access", "pyq_access", "material_access")
    search_fields = ("user__email",)
