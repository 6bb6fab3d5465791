from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db.models import Avg
from django.http import HttpResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from tablib import Dataset

from accounts.permissions import IsAdminRole
from content.models import Material, Pyq, Specimen, Video

from .models import Result, Test
from .scoring import first_attempt_leaderboard
from .serializers import AdminResultRowSerializer

User = get_user_model()

DASHBOARD_CACHE_KEY = "admin:dashboard:v1"
ANALYTICS_CACHE_KEY = "admin:analytics:v1"

RESULTS_DEFAULT_LIMIT = 200
RESULTS_MAX_LIMIT = 500
EXPORT_MAX_ROWS = 5000

EXPORT_HEADERS = ["date", "student_name", "student_email", "test_title", "score", "accuracy", "time_taken_sec"]


def _parse_test_id(raw):
    """Return ``(test_id, error_response)``; both are ``None`` when no filter was given."""
    raw = str(raw or "").strip()
    if not raw:
        return None, None
    try:
        return int(raw), None
    except ValueError:
        return None, Response({"message": "testId must be a number"}, status=status.HTTP_400_BAD_REQUEST)


def _parse_limit(raw):
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        limit = 0
    if limit <= 0:
        limit = RESULTS_DEFAULT_LIMIT
    return min(limit, RESULTS_MAX_LIMIT)


def _dashboard_counts():
    return {
        "students": {"count": User.objects.filter(role="student").count()},
        "tests": {"count": Test.objects.filter(is_active=True).count()},
        "videos": {"count": Video.objects.filter(status="active").count()},
        "materials": {"count": Material.objects.count()},
    }


def _analytics_counts():
    average = Result.objects.aggregate(avg=Avg("accuracy"))["avg"]
    return {
        "studentsCount": User.objects.filter(role="student").count(),
        "testsCount": Test.objects.filter(is_active=True).count(),
        "specimensCount": Specimen.objects.filter(status="active").count(),
        "videosCount": Video.objects.filter(status="active").count(),
        "materialsCount": Material.objects.count(),
        "pyqsCount": Pyq.objects.count(),
        "resultsCount": Result.objects.count(),
        "avgAccuracy": float(average or 0),
    }


class AdminDashboardView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        data = cache.get_or_set(DASHBOARD_CACHE_KEY, _dashboard_counts, settings.DASHBOARD_CACHE_TTL_SECONDS)
        return Response(data)


class AnalyticsView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        data = cache.get_or_set(ANALYTICS_CACHE_KEY, _analytics_counts, settings.DASHBOARD_CACHE_TTL_SECONDS)
        return Response(data)


class AdminResultListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        test_id, error = _parse_test_id(request.query_params.get("testId"))
        if error:
            return error
        limit = _parse_limit(request.query_params.get("limit"))

        if test_id is not None:
            rows = first_attempt_leaderboard(test_id, limit)
        else:
            rows = Result.objects.select_related("user", "test").order_by("-date", "-id")[:limit]
        return Response({"results": AdminResultRowSerializer(rows, many=True).data})


class ResultExportCSVView(APIView):
    """Download results as ``results.csv``; ranked when filtered to a single test."""

    permission_classes = [IsAdminRole]

    def get(self, request):
        test_id, error = _parse_test_id(request.query_params.get("testId"))
        if error:
            return error

        if test_id is not None:
            rows = first_attempt_leaderboard(test_id, EXPORT_MAX_ROWS)
            dataset = Dataset(headers=["rank"] + EXPORT_HEADERS)
        else:
            rows = Result.objects.select_related("user", "test").order_by("-date", "-id")[:EXPORT_MAX_ROWS]
            dataset = Dataset(headers=EXPORT_HEADERS)

        for row in rows:
            values = [
                row.date.isoformat() if row.date else "",
                row.user.name if row.user_id else "",
                row.user.email if row.user_id else "",
                row.test.title if row.test_id else "",
                row.score,
                row.accuracy,
                row.time_taken_sec,
            ]
            if test_id is not None:
                values.insert(0, row.rank)
            dataset.append(values)

        response = HttpResponse(dataset.export("csv"), content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = 'attachment; filename="results.csv"'
        return response
