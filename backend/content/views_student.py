from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsStudentOrAdmin
from exams.models import Test
from exams.serializers import TestSummarySerializer
from payments.access import AccessChecker
from payments.models import Plan
from payments.serializers import PlanSerializer

from .models import (
    ExamCentre,
    ExamCentreYear,
    Material,
    MaterialCompletion,
    Menu,
    Notification,
    Pyq,
    SiteSettings,
    UserNotification,
    Video,
)
from .serializers import (
    MenuSerializer,
    NotificationSerializer,
    SiteSettingsSerializer,
    StudentMaterialSerializer,
    StudentPyqSerializer,
    UserNotificationSerializer,
    VideoSerializer,
)
from .uploads import (
    PRIVATE_MATERIALS,
    PRIVATE_PYQS,
    PUBLIC_UPLOADS,
    InvalidFileReference,
    protected_file_response,
    resolve_file_ref,
)


def _premium_status_payload(active):
    return {
        "comboActive": active["comboActive"],
        "pyqActive": active["pyqActive"],
        "materialActive": active["materialActive"],
        "comboExpiry": active["comboExpiry"],
        "pyqExpiry": active["pyqExpiry"],
        "materialExpiry": active["materialExpiry"],
    }


def _stream_guarded_file(ref, allowed_bases, content_type=None):
    try:
        path = resolve_file_ref(ref, allowed_bases)
    except InvalidFileReference:
        return Response({"message": "Invalid file reference"}, status=status.HTTP_400_BAD_REQUEST)
    if not path.is_file():
        return Response({"message": "File not found"}, status=status.HTTP_404_NOT_FOUND)
    return protected_file_response(path, content_type=content_type)


class StudentDashboardView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        site = SiteSettings.load()
        access = AccessChecker(request.user)
        context = {"request": request, "access": access}

        videos = []
        if site.videos_enabled:
            videos = VideoSerializer(Video.objects.filter(status="active")[:12], many=True).data

        pdfs = []
        if site.pdfs_enabled:
            rows = Material.objects.filter(status="active", type="pdf")[:12]
            pdfs = StudentMaterialSerializer(rows, many=True, context=context).data

        pyqs = []
        if site.pyqs_enabled:
            rows = Material.objects.filter(status="active", type="pyq")[:12]
            pyqs = StudentMaterialSerializer(rows, many=True, context=context).data

        notifications = []
        if site.notifications_enabled:
            notifications = NotificationSerializer(Notification.objects.filter(status="active")[:10], many=True).data

        tests = []
        if site.tests_enabled:
            rows = Test.objects.filter(is_active=True, question_count__gt=0).order_by("-created_at", "-id")[:20]
            tests = TestSummarySerializer(rows, many=True).data

        plans = Plan.objects.filter(status="active").order_by("id")
        return Response(
            {
                "settings": SiteSettingsSerializer(site).data,
                "premiumPlans": [
                    {key: row[key] for key in ("code", "name", "pricePaise", "durationDays", "isFree")}
                    for row in PlanSerializer(plans, many=True).data
                ],
                "premiumStatus": _premium_status_payload(access.active),
                "videos": videos,
                "pdfs": pdfs,
                "pyqs": pyqs,
                "notifications": notifications,
                "tests": tests,
            }
        )


class StudentMenuListView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        menus = Menu.objects.filter(status="active", type__in=["student", "both"]).order_by("menu_order", "id")
        return Response({"menus": MenuSerializer(menus, many=True).data})


class StudentMenuDetailView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request, menu_id):
        try:
            menu = Menu.objects.get(id=menu_id, status="active", type__in=["student", "both"])
        except Menu.DoesNotExist:
            return Response({"message": "Menu not found"}, status=status.HTTP_404_NOT_FOUND)

        resource_type = (menu.resource_type or "link").lower()
        videos = []
        pdfs = []
        if resource_type == "video":
            videos = VideoSerializer(Video.objects.filter(status="active")[:60], many=True).data
        elif resource_type == "pdf":
            rows = Material.objects.filter(status="active", menu=menu)
            pdfs = StudentMaterialSerializer(
                rows,
                many=True,
                context={"request": request, "access": AccessChecker(request.user)},
            ).data

        return Response(
            {
                "menu": MenuSerializer(menu).data,
                "resourceType": resource_type,
                "videos": videos,
                "pdfs": pdfs,
            }
        )


class StudentVideoListView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        videos = Video.objects.filter(status="active")[:60]
        return Response({"videos": VideoSerializer(videos, many=True).data})


class StudentNotificationListView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        notifications = Notification.objects.filter(status="active")[:50]
        inbox = UserNotification.objects.filter(user=request.user)[:50]
        return Response(
            {
                "notifications": NotificationSerializer(notifications, many=True).data,
                "inbox": UserNotificationSerializer(inbox, many=True).data,
            }
        )


class StudentMaterialListView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        material_type = str(request.query_params.get("type") or "pdf").strip().lower()
        if material_type not in {"pdf", "pyq"}:
            material_type = "pdf"
        materials = Material.objects.filter(status="active", type=material_type)

        access_filter = str(request.query_params.get("access") or "").strip().lower()
        if access_filter in {"free", "paid"}:
            materials = materials.filter(access_type=access_filter)

        serializer = StudentMaterialSerializer(
            materials,
            many=True,
            context={"request": request, "access": AccessChecker(request.user)},
        )
        return Response({"materials": serializer.data})


class StudentMaterialFileView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request, material_id):
        try:
            material = Material.objects.get(id=material_id, status="active")
        except Material.DoesNotExist:
            return Response({"message": "Material not found"}, status=status.HTTP_404_NOT_FOUND)

        if material.access_type == "paid":
            if not AccessChecker(request.user).can_access(material.plan_code):
                return Response({"message": "Premium access required"}, status=status.HTTP_403_FORBIDDEN)
            if material.type == "pyq":
                bases = [PRIVATE_PYQS, PRIVATE_MATERIALS]
            else:
                bases = [PRIVATE_MATERIALS]
        else:
            bases = [PRIVATE_MATERIALS, PUBLIC_UPLOADS]

        return _stream_guarded_file(material.pdf_url, bases)


class MaterialCompleteView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def post(self, request):
        try:
            material_id = int(request.data.get("materialId"))
        except (TypeError, ValueError):
            return Response({"message": "materialId is required"}, status=status.HTTP_400_BAD_REQUEST)

        material = Material.objects.filter(id=material_id).first()
        if not material:
            return Response({"message": "Material not found"}, status=status.HTTP_404_NOT_FOUND)

        completion, created = MaterialCompletion.objects.get_or_create(user=request.user, material=material)
        if not created:
            completion.save(update_fields=["completed_at"])
        return Response({"completed": True})


class MaterialCompletedListView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        ids = MaterialCompletion.objects.filter(user=request.user).values_list("material_id", flat=True)
        return Response({"completedIds": list(ids)})


class StudentPyqListView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        pyqs = Pyq.objects.filter(status="active").order_by("-year", "-created_at", "-id")
        serializer = StudentPyqSerializer(pyqs, many=True, context={"access": AccessChecker(request.user)})
        return Response({"pyqs": serializer.data})


class StudentExamCentreListView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        centres = ExamCentre.objects.filter(status="active").order_by("name").values("id", "name")
        return Response({"centres": list(centres)})


class StudentExamCentreYearListView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request, centre_id):
        years = (
            ExamCentreYear.objects.filter(centre_id=centre_id, status="active")
            .order_by("-year")
            .values("id", "year")
        )
        return Response({"years": list(years)})


class PyqByCentreYearView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        centre_id = str(request.query_params.get("centreId") or "").strip()
        year = str(request.query_params.get("year") or "").strip()
        if not centre_id.isdigit():
            return Response({"message": "centreId is required"}, status=status.HTTP_400_BAD_REQUEST)
        if not year:
            return Response({"message": "year is required"}, status=status.HTTP_400_BAD_REQUEST)

        pyqs = Pyq.objects.filter(status="active", centre_id=int(centre_id), year=year).order_by("-created_at", "-id")
        serializer = StudentPyqSerializer(pyqs, many=True, context={"access": AccessChecker(request.user)})
        return Response({"pyqs": serializer.data})


class StudentPyqFileView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request, pyq_id):
        pyq = Pyq.objects.filter(id=pyq_id, status="active").first()
        if not pyq:
            return Response({"message": "PYQ not found"}, status=status.HTTP_404_NOT_FOUND)

        if (pyq.access_type or "paid") == "paid":
            if not AccessChecker(request.user).can_access("pyq"):
                return Response({"message": "Premium access required"}, status=status.HTTP_403_FORBIDDEN)
            bases = [PRIVATE_PYQS]
        else:
            bases = [PUBLIC_UPLOADS]

        return _stream_guarded_file(pyq.pdf_url, bases, content_type="application/pdf")
