import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


STATUS_CHOICES = [("active", "Active"), ("inactive", "Inactive")]
ACCESS_TYPE_CHOICES = [("free", "Free"), ("paid", "Paid")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SiteSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("videos_enabled", models.BooleanField(default=True)),
                ("tests_enabled", models.BooleanField(default=True)),
                ("pdfs_enabled", models.BooleanField(default=True)),
                ("pyqs_enabled", models.BooleanField(default=True)),
                ("notifications_enabled", models.BooleanField(default=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "site settings",
                "verbose_name_plural": "site settings",
            },
        ),
        migrations.CreateModel(
            name="Menu",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
                ("route", models.CharField(blank=True, default="", max_length=255)),
                ("icon", models.CharField(blank=True, default="📄", max_length=32)),
                ("resource_type", models.CharField(blank=True, default="link", max_length=20)),
                (
                    "type",
                    models.CharField(
                        choices=[("student", "Student"), ("admin", "Admin"), ("both", "Both")],
                        default="student",
                        max_length=10,
                    ),
                ),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=10)),
                ("menu_order", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="children",
                        to="content.menu",
                    ),
                ),
            ],
            options={
                "ordering": ["menu_order", "id"],
            },
        ),
        migrations.CreateModel(
            name="Video",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("video_url", models.CharField(max_length=500)),
                ("thumbnail_url", models.CharField(blank=True, default="", max_length=500)),
                ("subject", models.CharField(default="General", max_length=120)),
                ("duration", models.CharField(blank=True, default="", max_length=20)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="Material",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("pdf_url", models.CharField(max_length=500)),
                ("subject", models.CharField(blank=True, default="", max_length=120)),
                (
                    "type",
                    models.CharField(choices=[("pdf", "PDF"), ("pyq", "PYQ")], default="pdf", max_length=10),
                ),
                ("access_type", models.CharField(choices=ACCESS_TYPE_CHOICES, default="free", max_length=10)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "menu",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="materials",
                        to="content.menu",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="MaterialCompletion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("completed_at", models.DateTimeField(auto_now=True)),
                (
                    "material",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="completions",
                        to="content.material",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="material_completions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "unique_together": {("user", "material")},
            },
        ),
        migrations.CreateModel(
            name="ExamCentre",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, unique=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ExamCentreYear",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("year", models.CharField(max_length=10)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "centre",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="years",
                        to="content.examcentre",
                    ),
                ),
            ],
            options={
                "ordering": ["-year"],
                "unique_together": {("centre", "year")},
            },
        ),
        migrations.CreateModel(
            name="Pyq",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("pdf_url", models.CharField(max_length=500)),
                ("solution_url", models.CharField(blank=True, default="", max_length=500)),
                ("subject", models.CharField(default="General", max_length=120)),
                ("year", models.CharField(blank=True, default="", max_length=10)),
                ("access_type", models.CharField(choices=ACCESS_TYPE_CHOICES, default="paid", max_length=10)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "centre",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="pyqs",
                        to="content.examcentre",
                    ),
                ),
            ],
            options={
                "verbose_name": "PYQ",
                "verbose_name_plural": "PYQs",
                "ordering": ["-year", "-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200)),
                ("message", models.TextField()),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="UserNotification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200)),
                ("message", models.TextField()),
                (
                    "status",
                    models.CharField(
                        choices=[("unread", "Unread"), ("read", "Read")],
                        default="unread",
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="Specimen",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("image_url", models.CharField(max_length=500)),
                ("options", models.JSONField(default=list)),
                ("correct", models.PositiveSmallIntegerField(default=0)),
                ("question_text", models.TextField(blank=True, default="")),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
