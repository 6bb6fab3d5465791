from django.contrib import admin

from .models import (
    ExamCentre,
    ExamCentreYear,
    Material,
    MaterialCompletion,
    Menu,
    Notification,
    Pyq,
    SiteSettings,
    Specimen,
    UserNotification,
    Video,
)


@admin.register(SiteSettings)
class SiteSettingsAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "videos_enabled",
        "tests_enabled",
        "pdfs_enabled",
        "pyqs_enabled",
        "notifications_enabled",
        "updated_at",
    )


@admin.register(Menu)
class MenuAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "resource_type", "status", "menu_order", "parent")
    list_filter = ("type", "status", "resource_type")
    search_fields = ("name", "route")
    ordering = ("menu_order", "id")


@admin.register(Video)
class VideoAdmin(admin.ModelAdmin):
    list_display = ("title", "subject", "status", "created_at")
    list_filter = ("status", "subject")
    search_fields = ("title", "video_url")


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    list_display = ("title", "type", "access_type", "subject", "status", "menu", "created_at")
    list_filter = ("type", "access_type", "status")
    search_fields = ("title", "subject", "pdf_url")


@admin.register(MaterialCompletion)
class MaterialCompletionAdmin(admin.ModelAdmin):
    list_display = ("user", "material", "completed_at")
    search_fields = ("user__email", "material__title")


class ExamCentreYearInline(admin.TabularInline):
    model = ExamCentreYear
    extra = 0


@admin.register(ExamCentre)
class ExamCentreAdmin(admin.ModelAdmin):
    list_display = ("name", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("name",)
    inlines = [ExamCentreYearInline]


@admin.register(Pyq)
class PyqAdmin(admin.ModelAdmin):
    list_display = ("title", "centre", "year", "subject", "access_type", "status", "created_at")
    list_filter = ("access_type", "status", "year", "centre")
    search_fields = ("title", "subject", "centre__name")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("title", "message")


@admin.register(UserNotification)
class UserNotificationAdmin(admin.ModelAdmin):
    list_display = ("user", "title", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("user__email", "title")


@admin.register(Specimen)
class SpecimenAdmin(admin.ModelAdmin):
    list_display = ("id", "question_text", "correct", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("question_text",)
