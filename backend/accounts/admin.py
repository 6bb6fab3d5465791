from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin
from django.utils.crypto import get_random_string

from .models import EmailOTP, User


@admin.register(User)
class CustomUserAdmin(UserAdmin):
    fieldsets = UserAdmin.fieldsets + (
        (
            "KCET Prep Profile",
            {"fields": ("name", "role")},
        ),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        (
            "KCET Prep Profile",
            {"fields": ("name", "email", "role")},
        ),
    )
    list_display = ("email", "name", "role", "is_active", "date_joined")
    list_filter = ("role", "is_active")
    search_fields = ("email", "name")
    ordering = ("-date_joined",)
    actions = ("reset_selected_user_passwords",)

    @admin.action(description="Reset selected user passwords (temporary)")
    def reset_selected_user_passwords(self, request, queryset):
        generated = []
        for user in queryset:
            temp_password = get_random_string(10)
            user.set_password(temp_password)
            user.save(update_fields=["password"])
            generated.append(f"{user.email}: {temp_password}")

        if not generated:
            self.message_user(request, "No user selected for password reset.", level=messages.WARNING)
            return

        self.message_user(
            request,
            "Temporary passwords generated. Share securely with users:\n" + " | ".join(generated),
            level=messages.INFO,
        )


@admin.register(EmailOTP)
class EmailOTPAdmin(admin.ModelAdmin):
    list_display = ("user", "purpose", "created_at", "expires_at", "used_at")
    list_filter = ("purpose",)
    search_fields = ("user__email",)
    readonly_fields = ("token_hash", "created_at")
