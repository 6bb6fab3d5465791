import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from content.models import SiteSettings

logger = logging.getLogger(__name__)

DEV_ADMIN_EMAIL = "admin@kcet.local"
DEV_ADMIN_PASSWORD = "admin123"


class Command(BaseCommand):
    help = "Create or update the admin account from ADMIN_EMAIL / ADMIN_PASSWORD and ensure the settings row."

    def handle(self, *args, **options):
        User = get_user_model()
        SiteSettings.load()

        email = settings.ADMIN_EMAIL
        password = settings.ADMIN_PASSWORD
        name = settings.ADMIN_NAME

        if not (email and password):
            if not settings.DEBUG or User.objects.filter(role="admin").exists():
                self.stdout.write("Admin credentials not configured; nothing to do.")
                return
            email, password = DEV_ADMIN_EMAIL, DEV_ADMIN_PASSWORD
            self.stdout.write(self.style.WARNING(f"Using development admin {email} / {password}"))

        user = User.objects.filter(email__iexact=email).first()
        if user:
            user.role = "admin"
            user.name = name
            user.set_password(password)
            user.save()
            action = "Updated"
        else:
            User.objects.create_user(username=email, email=email, password=password, name=name, role="admin")
            action = "Created"

        logger.info("%s admin account %s", action, email)
        self.stdout.write(self.style.SUCCESS(f"{action} admin {email}"))
