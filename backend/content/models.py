from django.conf import settings
from django.db import models


STATUS_CHOICES = [
    ("active", "Active"),
    ("inactive", "Inactive"),
]

ACCESS_TYPE_CHOICES = [
    ("free", "Free"),
    ("paid", "Paid"),
]


class SiteSettings(models.Model):
    """Feature toggles for the student area; a single row with pk=1."""

    videos_enabled = models.BooleanField(default=True)
    tests_enabled = models.BooleanField(default=True)
    pdfs_enabled = models.BooleanField(default=True)
    pyqs_enabled = models.BooleanField(default=True)
    notifications_enabled = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "site settings"
        verbose_name_plural = "site settings"

    def __str__(self):
        return "Site settings"

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj


class Menu(models.Model):
    TYPE_CHOICES = [
        ("student", "Student"),
        ("admin", "Admin"),
        ("both", "Both"),
    ]

    name = models.CharField(max_length=120)
    route = models.CharField(max_length=255, blank=True, default="")
    icon = models.CharField(max_length=32, blank=True, default="📄")
    resource_type = models.CharField(max_length=20, blank=True, default="link")
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default="student")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    menu_order = models.IntegerField(default=0)
    parent = models.ForeignKey("self", on_delete=models.SET_NULL, null=True, blank=True, related_name="children")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["menu_order", "id"]

    def __str__(self):
        return self.name


class Video(models.Model):
    title = models.CharField(max_length=255)
    video_url = models.CharField(max_length=500)
    thumbnail_url = models.CharField(max_length=500, blank=True, default="")
    subject = models.CharField(max_length=120, default="General")
    duration = models.CharField(max_length=20, blank=True, default="")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.title


class Material(models.Model):
    TYPE_CHOICES = [
        ("pdf", "PDF"),
        ("pyq", "PYQ"),
    ]

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    pdf_url = models.CharField(max_length=500)
    subject = models.CharField(max_length=120, blank=True, default="")
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default="pdf")
    access_type = models.CharField(max_length=10, choices=ACCESS_TYPE_CHOICES, default="free")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    menu = models.ForeignKey(Menu, on_delete=models.SET_NULL, null=True, blank=True, related_name="materials")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.title

    @property
    def plan_code(self):
        return "pyq" if self.type == "pyq" else "materials"


class MaterialCompletion(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="material_completions")
    material = models.ForeignKey(Material, on_delete=models.CASCADE, related_name="completions")
    completed_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("user", "material")


class ExamCentre(models.Model):
    name = models.CharField(max_length=200, unique=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class ExamCentreYear(models.Model):
    centre = models.ForeignKey(ExamCentre, on_delete=models.CASCADE, related_name="years")
    year = models.CharField(max_length=10)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("centre", "year")
        ordering = ["-year"]

    def __str__(self):
        return f"{self.centre} {self.year}"


class Pyq(models.Model):
    title = models.CharField(max_length=255)
    pdf_url = models.CharField(max_length=500)
    solution_url = models.CharField(max_length=500, blank=True, default="")
    subject = models.CharField(max_length=120, default="General")
    year = models.CharField(max_length=10, blank=True, default="")
    centre = models.ForeignKey(ExamCentre, on_delete=models.SET_NULL, null=True, blank=True, related_name="pyqs")
    access_type = models.CharField(max_length=10, choices=ACCESS_TYPE_CHOICES, default="paid")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-year", "-created_at", "-id"]
        verbose_name = "PYQ"
        verbose_name_plural = "PYQs"

    def __str__(self):
        return self.title


class Notification(models.Model):
    title = models.CharField(max_length=200)
    message = models.TextField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.title


class UserNotification(models.Model):
    STATUS_CHOICES = [
        ("unread", "Unread"),
        ("read", "Read"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    title = models.CharField(max_length=200)
    message = models.TextField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="unread")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]


class Specimen(models.Model):
    image_url = models.CharField(max_length=500)
    options = models.JSONField(default=list)
    correct = models.PositiveSmallIntegerField(default=0)
    question_text = models.TextField(blank=True, default="")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.question_text or f"Specimen {self.pk}"
