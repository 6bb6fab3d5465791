from django.conf import settings
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path, re_path
from django.views.static import serve

from accounts import urls as accounts_urls
from content import urls as content_urls
from exams import urls as exams_urls
from payments import urls as payments_urls


def health(request):
    return JsonResponse({"ok": True})


student_urlpatterns = (
    accounts_urls.student_urlpatterns
    + content_urls.student_urlpatterns
    + exams_urls.student_urlpatterns
    + payments_urls.student_urlpatterns
)

admin_urlpatterns = (
    accounts_urls.admin_urlpatterns
    + content_urls.admin_urlpatterns
    + exams_urls.admin_urlpatterns
    + payments_urls.admin_urlpatterns
)

urlpatterns = [
    path("", health),
    path("api/health", health),
    path("admin/", admin.site.urls),
    path("api/auth/", include(accounts_urls.urlpatterns)),
    path("api/student/", include(student_urlpatterns)),
    path("api/admin/", include(admin_urlpatterns)),
    path("api/webhooks/", include(payments_urls.urlpatterns)),
]

if settings.SERVE_PUBLIC_UPLOADS:
    # Private material and PYQ files live outside this folder and are only
    # reachable through the guarded student file endpoints.
    urlpatterns += [
        re_path(
            r"^uploads/(?P<path>.*)$",
            serve,
            {"document_root": settings.UPLOAD_ROOT / "uploads"},
        ),
    ]
