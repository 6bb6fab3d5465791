from rest_framework import serializers

from .models import (
    ExamCentre,
    ExamCentreYear,
    Material,
    Menu,
    Notification,
    Pyq,
    SiteSettings,
    Specimen,
    UserNotification,
    Video,
)


class SiteSettingsSerializer(serializers.ModelSerializer):
    videosEnabled = serializers.BooleanField(source="videos_enabled")
    testsEnabled = serializers.BooleanField(source="tests_enabled")
    pdfsEnabled = serializers.BooleanField(source="pdfs_enabled")
    pyqsEnabled = serializers.BooleanField(source="pyqs_enabled")
    notificationsEnabled = serializers.BooleanField(source="notifications_enabled")

    class Meta:
        model = SiteSettings
        fields = ["id", "videosEnabled", "testsEnabled", "pdfsEnabled", "pyqsEnabled", "notificationsEnabled"]


class MenuSerializer(serializers.ModelSerializer):
    parent_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Menu
        fields = ["id", "name", "route", "icon", "resource_type", "type", "status", "menu_order", "parent_id"]


class VideoSerializer(serializers.ModelSerializer):
    videoUrl = serializers.CharField(source="video_url")
    thumbnailUrl = serializers.CharField(source="thumbnail_url")
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Video
        fields = ["id", "title", "videoUrl", "thumbnailUrl", "subject", "duration", "status", "createdAt"]


class NotificationSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Notification
        fields = ["id", "title", "message", "status", "createdAt"]


class UserNotificationSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = UserNotification
        fields = ["id", "title", "message", "status", "createdAt"]


class MaterialAdminSerializer(serializers.ModelSerializer):
    pdfUrl = serializers.CharField(source="pdf_url")
    accessType = serializers.CharField(source="access_type")
    menuId = serializers.IntegerField(source="menu_id", allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Material
        fields = [
            "id",
            "title",
            "description",
            "pdfUrl",
            "subject",
            "type",
            "accessType",
            "status",
            "menuId",
            "createdAt",
        ]


class StudentMaterialSerializer(serializers.ModelSerializer):
    """Expects an ``access`` checker in context; paid files go through the guarded endpoint."""

    accessType = serializers.CharField(source="access_type")
    locked = serializers.SerializerMethodField()
    pdfUrl = serializers.SerializerMethodField()

    class Meta:
        model = Material
        fields = ["id", "title", "subject", "type", "accessType", "locked", "pdfUrl"]

    def get_locked(self, obj):
        if obj.access_type != "paid":
            return False
        return not self.context["access"].can_access(obj.plan_code)

    def get_pdfUrl(self, obj):
        if obj.access_type == "paid":
            return f"/api/student/materials/{obj.id}/file"
        return obj.pdf_url


class StudentPyqSerializer(serializers.ModelSerializer):
    accessType = serializers.SerializerMethodField()
    locked = serializers.SerializerMethodField()

    class Meta:
        model = Pyq
        fields = ["id", "title", "subject", "year", "accessType", "locked"]

    def get_accessType(self, obj):
        return obj.access_type or "paid"

    def get_locked(self, obj):
        if self.get_accessType(obj) != "paid":
            return False
        return not self.context["access"].can_access("pyq")


class PyqAdminSerializer(serializers.ModelSerializer):
    centre_id = serializers.IntegerField(read_only=True)
    centre_name = serializers.SerializerMethodField()

    class Meta:
        model = Pyq
        fields = [
            "id",
            "title",
            "pdf_url",
            "solution_url",
            "subject",
            "year",
            "centre_id",
            "centre_name",
            "access_type",
            "status",
            "created_at",
        ]

    def get_centre_name(self, obj):
        return obj.centre.name if obj.centre else None


class ExamCentreSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExamCentre
        fields = ["id", "name", "status", "created_at"]


class ExamCentreYearSerializer(serializers.ModelSerializer):
    centre_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = ExamCentreYear
        fields = ["id", "centre_id", "year", "status", "created_at"]


class SpecimenSerializer(serializers.ModelSerializer):
    imageUrl = serializers.CharField(source="image_url")
    questionText = serializers.CharField(source="question_text")
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Specimen
        fields = ["id", "imageUrl", "options", "correct", "status", "questionText", "createdAt"]
