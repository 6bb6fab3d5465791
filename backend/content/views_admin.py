import json
import logging

from django.db import IntegrityError, transaction
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdminRole

from .models import (
    ExamCentre,
    ExamCentreYear,
    Material,
    Menu,
    Notification,
    Pyq,
    SiteSettings,
    Specimen,
    Video,
)
from .serializers import (
    ExamCentreSerializer,
    ExamCentreYearSerializer,
    MaterialAdminSerializer,
    MenuSerializer,
    NotificationSerializer,
    PyqAdminSerializer,
    SiteSettingsSerializer,
    SpecimenSerializer,
    VideoSerializer,
)
from .uploads import UploadError, save_upload

logger = logging.getLogger(__name__)

STATUSES = {"active", "inactive"}


def _pick(data, *keys):
    """Return ``(True, value)`` for the first key present in ``data``."""
    for key in keys:
        if key in data:
            return True, data.get(key)
    return False, None


def _text(value):
    return str(value if value is not None else "").strip()


def _to_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _not_found(message):
    return Response({"message": message}, status=status.HTTP_404_NOT_FOUND)


def _no_fields():
    return Response({"message": "No fields to update"}, status=status.HTTP_400_BAD_REQUEST)


def _validation_failed(errors, key="details"):
    return Response({"message": "Validation failed", key: errors}, status=status.HTTP_400_BAD_REQUEST)


class MenuAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        menus = Menu.objects.all()
        menu_type = _text(request.query_params.get("type")).lower()
        if menu_type in {"student", "admin"}:
            menus = menus.filter(type__in=[menu_type, "both"])
        elif menu_type == "both":
            menus = menus.filter(type="both")
        menu_status = _text(request.query_params.get("status")).lower()
        if menu_status in STATUSES:
            menus = menus.filter(status=menu_status)
        menus = menus.order_by("menu_order", "id")
        return Response({"menus": MenuSerializer(menus, many=True).data})

    def post(self, request):
        data = request.data
        name = _text(data.get("name"))
        if not name:
            return Response({"message": "name is required"}, status=status.HTTP_400_BAD_REQUEST)

        menu_type = _text(data.get("type")).lower() or "student"
        if menu_type not in {"student", "admin", "both"}:
            return Response({"message": "type must be student, admin or both"}, status=status.HTTP_400_BAD_REQUEST)
        menu_status = _text(data.get("status")).lower() or "active"
        if menu_status not in STATUSES:
            return Response({"message": "status must be active or inactive"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            menu_order = int(data.get("menu_order") or 0)
        except (TypeError, ValueError):
            return Response({"message": "menu_order must be a number"}, status=status.HTTP_400_BAD_REQUEST)

        parent = None
        if data.get("parent_id"):
            parent_id = str(data.get("parent_id"))
            parent = Menu.objects.filter(id=parent_id).first() if parent_id.isdigit() else None
            if not parent:
                return Response({"message": "Parent menu not found"}, status=status.HTTP_400_BAD_REQUEST)

        menu = Menu.objects.create(
            name=name,
            route=_text(data.get("route")),
            icon=_text(data.get("icon")) or "📄",
            resource_type=_text(data.get("resource_type") or data.get("resourceType")).lower() or "link",
            type=menu_type,
            status=menu_status,
            menu_order=menu_order,
            parent=parent,
        )
        return Response({"menu": MenuSerializer(menu).data}, status=status.HTTP_201_CREATED)


class MenuAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def put(self, request, menu_id):
        try:
            menu = Menu.objects.get(id=menu_id)
        except Menu.DoesNotExist:
            return _not_found("Menu not found")

        data = request.data
        updates = {}
        for field in ("name", "route", "icon"):
            if field in data:
                updates[field] = _text(data.get(field))
        present, value = _pick(data, "resource_type", "resourceType")
        if present:
            updates["resource_type"] = _text(value).lower() or "link"
        if "type" in data:
            updates["type"] = _text(data.get("type")).lower()
            if updates["type"] not in {"student", "admin", "both"}:
                return Response({"message": "type must be student, admin or both"}, status=status.HTTP_400_BAD_REQUEST)
        if "status" in data:
            updates["status"] = _text(data.get("status")).lower()
            if updates["status"] not in STATUSES:
                return Response({"message": "status must be active or inactive"}, status=status.HTTP_400_BAD_REQUEST)
        if "menu_order" in data:
            try:
                updates["menu_order"] = int(data.get("menu_order") or 0)
            except (TypeError, ValueError):
                return Response({"message": "menu_order must be a number"}, status=status.HTTP_400_BAD_REQUEST)
        if "parent_id" in data:
            parent_id = data.get("parent_id")
            if parent_id in (None, ""):
                updates["parent_id"] = None
            elif str(parent_id).isdigit() and Menu.objects.filter(id=parent_id).exclude(id=menu.id).exists():
                updates["parent_id"] = int(parent_id)
            else:
                return Response({"message": "Parent menu not found"}, status=status.HTTP_400_BAD_REQUEST)

        if not updates:
            return _no_fields()
        if updates.get("name") == "":
            return Response({"message": "name cannot be empty"}, status=status.HTTP_400_BAD_REQUEST)

        for key, value in updates.items():
            setattr(menu, key, value)
        menu.save()
        return Response({"menu": MenuSerializer(menu).data})

    def delete(self, request, menu_id):
        deleted, _ = Menu.objects.filter(id=menu_id).delete()
        if not deleted:
            return _not_found("Menu not found")
        return Response({"deleted": True})


class MenuReorderView(APIView):
    permission_classes = [IsAdminRole]

    def put(self, request):
        orders = request.data.get("orders")
        if not isinstance(orders, list):
            return Response({"message": "orders must be an array"}, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            for item in orders:
                if not isinstance(item, dict) or not item.get("id"):
                    return Response({"message": "Each order needs an id"}, status=status.HTTP_400_BAD_REQUEST)
                try:
                    menu_order = int(item.get("menu_order") or 0)
                except (TypeError, ValueError):
                    return Response({"message": "menu_order must be a number"}, status=status.HTTP_400_BAD_REQUEST)
                Menu.objects.filter(id=item["id"]).update(menu_order=menu_order)
        return Response({"reordered": True})


class UploadAdminView(APIView):
    permission_classes = [IsAdminRole]
    target_key = ""

    def post(self, request):
        uploaded = request.FILES.get("file")
        if not uploaded:
            return Response({"message": "file is required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            stored = save_upload(uploaded, self.target_key)
        except UploadError as exc:
            return Response({"message": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        logger.info("Admin %s uploaded %s", request.user.id, stored.get("url") or stored.get("ref"))
        return Response(stored, status=status.HTTP_201_CREATED)


class ExamCentreAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        centres = ExamCentre.objects.order_by("name")
        return Response({"centres": ExamCentreSerializer(centres, many=True).data})

    def post(self, request):
        name = _text(request.data.get("name"))
        if not name:
            return Response({"message": "name is required"}, status=status.HTTP_400_BAD_REQUEST)
        centre_status = _text(request.data.get("status")).lower() or "active"
        if centre_status not in STATUSES:
            return Response({"message": "status must be active or inactive"}, status=status.HTTP_400_BAD_REQUEST)
        if ExamCentre.objects.filter(name__iexact=name).exists():
            return Response({"message": "Centre already exists"}, status=status.HTTP_409_CONFLICT)

        centre = ExamCentre.objects.create(name=name, status=centre_status)
        return Response({"centre": ExamCentreSerializer(centre).data}, status=status.HTTP_201_CREATED)


class ExamCentreAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def put(self, request, centre_id):
        try:
            centre = ExamCentre.objects.get(id=centre_id)
        except ExamCentre.DoesNotExist:
            return _not_found("Centre not found")

        update_fields = []
        if "name" in request.data:
            name = _text(request.data.get("name"))
            if not name:
                return Response({"message": "name cannot be empty"}, status=status.HTTP_400_BAD_REQUEST)
            if ExamCentre.objects.filter(name__iexact=name).exclude(id=centre.id).exists():
                return Response({"message": "Centre already exists"}, status=status.HTTP_409_CONFLICT)
            centre.name = name
            update_fields.append("name")
        if "status" in request.data:
            centre_status = _text(request.data.get("status")).lower()
            if centre_status not in STATUSES:
                return Response({"message": "status must be active or inactive"}, status=status.HTTP_400_BAD_REQUEST)
            centre.status = centre_status
            update_fields.append("status")

        if not update_fields:
            return _no_fields()
        centre.save(update_fields=update_fields)
        return Response({"centre": ExamCentreSerializer(centre).data})

    def delete(self, request, centre_id):
        with transaction.atomic():
            Pyq.objects.filter(centre_id=centre_id).update(centre=None)
            deleted, _ = ExamCentre.objects.filter(id=centre_id).delete()
        if not deleted:
            return _not_found("Centre not found")
        return Response({"ok": True})


class ExamCentreYearAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request, centre_id):
        if not ExamCentre.objects.filter(id=centre_id).exists():
            return _not_found("Centre not found")
        years = ExamCentreYear.objects.filter(centre_id=centre_id).order_by("-year")
        return Response({"years": ExamCentreYearSerializer(years, many=True).data})

    def post(self, request, centre_id):
        try:
            centre = ExamCentre.objects.get(id=centre_id)
        except ExamCentre.DoesNotExist:
            return _not_found("Centre not found")

        year = _text(request.data.get("year"))
        if not year:
            return Response({"message": "year is required"}, status=status.HTTP_400_BAD_REQUEST)
        year_status = _text(request.data.get("status")).lower() or "active"
        if year_status not in STATUSES:
            return Response({"message": "status must be active or inactive"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            row = ExamCentreYear.objects.create(centre=centre, year=year, status=year_status)
        except IntegrityError:
            return Response({"message": "Year already exists"}, status=status.HTTP_409_CONFLICT)
        return Response({"year": ExamCentreYearSerializer(row).data}, status=status.HTTP_201_CREATED)


class ExamCentreYearAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def put(self, request, year_id):
        try:
            row = ExamCentreYear.objects.get(id=year_id)
        except ExamCentreYear.DoesNotExist:
            return _not_found("Year not found")

        update_fields = []
        if "year" in request.data:
            year = _text(request.data.get("year"))
            if not year:
                return Response({"message": "year cannot be empty"}, status=status.HTTP_400_BAD_REQUEST)
            if ExamCentreYear.objects.filter(centre_id=row.centre_id, year=year).exclude(id=row.id).exists():
                return Response({"message": "Year already exists"}, status=status.HTTP_409_CONFLICT)
            row.year = year
            update_fields.append("year")
        if "status" in request.data:
            year_status = _text(request.data.get("status")).lower()
            if year_status not in STATUSES:
                return Response({"message": "status must be active or inactive"}, status=status.HTTP_400_BAD_REQUEST)
            row.status = year_status
            update_fields.append("status")

        if not update_fields:
            return _no_fields()
        row.save(update_fields=update_fields)
        return Response({"year": ExamCentreYearSerializer(row).data})

    def delete(self, request, year_id):
        try:
            row = ExamCentreYear.objects.get(id=year_id)
        except ExamCentreYear.DoesNotExist:
            return _not_found("Year not found")
        if Pyq.objects.filter(centre_id=row.centre_id, year=row.year).exists():
            return Response(
                {"message": "Cannot delete year with existing PYQs"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        row.delete()
        return Response({"ok": True})


def _video_updates(data, partial):
    updates = {}
    errors = {}

    if "title" in data or not partial:
        updates["title"] = _text(data.get("title"))
        if not updates["title"]:
            errors["title"] = "Title is required"
    present, value = _pick(data, "videoUrl", "video_url")
    if present or not partial:
        updates["video_url"] = _text(value)
        if not updates["video_url"]:
            errors["videoUrl"] = "Video URL is required"
        elif not updates["video_url"].startswith(("http://", "https://", "/")):
            errors["videoUrl"] = "Video URL must be a valid URL"
    if "subject" in data or not partial:
        updates["subject"] = _text(data.get("subject")) or "General"
    present, value = _pick(data, "thumbnailUrl", "thumbnail_url")
    if present:
        updates["thumbnail_url"] = _text(value)
    if "duration" in data:
        updates["duration"] = _text(data.get("duration"))
    if "status" in data or not partial:
        updates["status"] = _text(data.get("status")).lower() or "active"
        if updates["status"] not in STATUSES:
            errors["status"] = "Status must be active or inactive"
    return updates, errors


class VideoAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        return Response({"videos": VideoSerializer(Video.objects.all(), many=True).data})

    def post(self, request):
        updates, errors = _video_updates(request.data, partial=False)
        if errors:
            return _validation_failed(errors)
        video = Video.objects.create(**updates)
        return Response({"video": VideoSerializer(video).data}, status=status.HTTP_201_CREATED)


class VideoAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def put(self, request, video_id):
        try:
            video = Video.objects.get(id=video_id)
        except Video.DoesNotExist:
            return _not_found("Video not found")

        updates, errors = _video_updates(request.data, partial=True)
        if errors:
            return _validation_failed(errors)
        if not updates:
            return _no_fields()
        for key, value in updates.items():
            setattr(video, key, value)
        video.save()
        return Response({"video": VideoSerializer(video).data})

    def delete(self, request, video_id):
        deleted, _ = Video.objects.filter(id=video_id).delete()
        if not deleted:
            return _not_found("Video not found")
        return Response({"ok": True})


def _material_updates(data, partial):
    updates = {}
    errors = {}

    if "title" in data or not partial:
        updates["title"] = _text(data.get("title"))
        if not updates["title"]:
            errors["title"] = "Title is required"
    present, value = _pick(data, "pdfUrl", "pdf_url")
    if present or not partial:
        updates["pdf_url"] = _text(value)
        if not updates["pdf_url"]:
            errors["pdfUrl"] = "PDF URL is required"
    if "subject" in data:
        updates["subject"] = _text(data.get("subject"))
    if "description" in data:
        updates["description"] = _text(data.get("description"))
    if "type" in data or not partial:
        updates["type"] = _text(data.get("type")).lower() or "pdf"
        if updates["type"] not in {"pdf", "pyq"}:
            errors["type"] = "Type must be pdf or pyq"
    present, value = _pick(data, "accessType", "access_type")
    if present or not partial:
        updates["access_type"] = _text(value).lower() or "free"
        if updates["access_type"] not in {"free", "paid"}:
            errors["accessType"] = "Access type must be free or paid"
    if "status" in data or not partial:
        updates["status"] = _text(data.get("status")).lower() or "active"
        if updates["status"] not in STATUSES:
            errors["status"] = "Status must be active or inactive"
    present, value = _pick(data, "menuId", "menu_id")
    if present:
        if value in (None, ""):
            updates["menu_id"] = None
        elif str(value).isdigit() and Menu.objects.filter(id=value).exists():
            updates["menu_id"] = int(value)
        else:
            errors["menuId"] = "Menu not found"
    return updates, errors


class MaterialAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        materials = Material.objects.all()
        material_type = _text(request.query_params.get("type")).lower()
        if material_type in {"pdf", "pyq"}:
            materials = materials.filter(type=material_type)
        return Response({"materials": MaterialAdminSerializer(materials, many=True).data})

    def post(self, request):
        updates, errors = _material_updates(request.data, partial=False)
        if errors:
            return _validation_failed(errors, key="errors")
        material = Material.objects.create(**updates)
        return Response({"material": MaterialAdminSerializer(material).data}, status=status.HTTP_201_CREATED)


class MaterialAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def put(self, request, material_id):
        try:
            material = Material.objects.get(id=material_id)
        except Material.DoesNotExist:
            return _not_found("Material not found")

        updates, errors = _material_updates(request.data, partial=True)
        if errors:
            return _validation_failed(errors, key="errors")
        if not updates:
            return _no_fields()
        for key, value in updates.items():
            setattr(material, key, value)
        material.save()
        return Response({"material": MaterialAdminSerializer(material).data})

    def delete(self, request, material_id):
        deleted, _ = Material.objects.filter(id=material_id).delete()
        if not deleted:
            return _not_found("Material not found")
        return Response({"ok": True})


def _default_title(message):
    if len(message) <= 60:
        return message
    return f"{message[:60]}…"


class NotificationAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        return Response({"notifications": NotificationSerializer(Notification.objects.all(), many=True).data})

    def post(self, request):
        message = _text(request.data.get("message"))
        if not message:
            return Response({"message": "message is required"}, status=status.HTTP_400_BAD_REQUEST)
        notification_status = _text(request.data.get("status")).lower() or "active"
        if notification_status not in STATUSES:
            return Response({"message": "status must be active or inactive"}, status=status.HTTP_400_BAD_REQUEST)

        notification = Notification.objects.create(
            title=_text(request.data.get("title")) or _default_title(message),
            message=message,
            status=notification_status,
        )
        return Response(
            {"notification": NotificationSerializer(notification).data},
            status=status.HTTP_201_CREATED,
        )


class NotificationAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def put(self, request, notification_id):
        try:
            notification = Notification.objects.get(id=notification_id)
        except Notification.DoesNotExist:
            return _not_found("Notification not found")

        update_fields = []
        if "message" in request.data:
            message = _text(request.data.get("message"))
            if not message:
                return Response({"message": "message cannot be empty"}, status=status.HTTP_400_BAD_REQUEST)
            notification.message = message
            update_fields.append("message")
        if "title" in request.data:
            notification.title = _text(request.data.get("title")) or _default_title(notification.message)
            update_fields.append("title")
        if "status" in request.data:
            notification_status = _text(request.data.get("status")).lower()
            if notification_status not in STATUSES:
                return Response({"message": "status must be active or inactive"}, status=status.HTTP_400_BAD_REQUEST)
            notification.status = notification_status
            update_fields.append("status")

        if not update_fields:
            return _no_fields()
        notification.save(update_fields=update_fields)
        return Response({"notification": NotificationSerializer(notification).data})

    def delete(self, request, notification_id):
        deleted, _ = Notification.objects.filter(id=notification_id).delete()
        if not deleted:
            return _not_found("Notification not found")
        return Response({"ok": True})


def parse_specimen_options(raw):
    """Accept a list, a JSON string or an object keyed 0-3; return four stripped strings or None."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if isinstance(raw, dict):
        raw = [raw.get(str(index), raw.get(index)) for index in range(4)]
    if not isinstance(raw, (list, tuple)) or len(raw) != 4:
        return None
    options = [_text(option) if isinstance(option, (str, int, float)) else "" for option in raw]
    if not all(options):
        return None
    return options


def _specimen_updates(data, partial):
    updates = {}
    errors = {}

    present, value = _pick(data, "imageUrl", "image_url")
    if present or not partial:
        updates["image_url"] = _text(value)
        if not updates["image_url"]:
            errors["imageUrl"] = "Image URL is required"
    if "options" in data or not partial:
        options = parse_specimen_options(data.get("options"))
        if options is None:
            errors["options"] = "Options must be exactly 4 non-empty strings"
        else:
            updates["options"] = options
    if "correct" in data or not partial:
        try:
            correct = int(data.get("correct"))
            if correct not in range(4):
                raise ValueError
            updates["correct"] = correct
        except (TypeError, ValueError):
            errors["correct"] = "Correct must be an option index between 0 and 3"
    present, value = _pick(data, "questionText", "question_text")
    if present:
        updates["question_text"] = _text(value)
    if "status" in data or not partial:
        updates["status"] = _text(data.get("status")).lower() or "active"
        if updates["status"] not in STATUSES:
            errors["status"] = "Status must be active or inactive"
    return updates, errors


class SpecimenAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        return Response({"specimens": SpecimenSerializer(Specimen.objects.all(), many=True).data})

    def post(self, request):
        updates, errors = _specimen_updates(request.data, partial=False)
        if errors:
            return _validation_failed(errors)
        specimen = Specimen.objects.create(**updates)
        return Response({"specimen": SpecimenSerializer(specimen).data}, status=status.HTTP_201_CREATED)


class SpecimenAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def put(self, request, specimen_id):
        try:
            specimen = Specimen.objects.get(id=specimen_id)
        except Specimen.DoesNotExist:
            return _not_found("Specimen not found")

        updates, errors = _specimen_updates(request.data, partial=True)
        if errors:
            return _validation_failed(errors)
        if not updates:
            return _no_fields()
        for key, value in updates.items():
            setattr(specimen, key, value)
        specimen.save()
        return Response({"specimen": SpecimenSerializer(specimen).data})

    def delete(self, request, specimen_id):
        deleted, _ = Specimen.objects.filter(id=specimen_id).delete()
        if not deleted:
            return _not_found("Specimen not found")
        return Response({"ok": True})


def _ensure_centre_by_name(name):
    centre = ExamCentre.objects.filter(name__iexact=name).first()
    if centre is None:
        return ExamCentre.objects.create(name=name, status="active")
    if centre.status != "active":
        centre.status = "active"
        centre.save(update_fields=["status"])
    return centre


def _ensure_centre_year(centre, year):
    row, created = ExamCentreYear.objects.get_or_create(centre=centre, year=year, defaults={"status": "active"})
    if not created and row.status != "active":
        row.status = "active"
        row.save(update_fields=["status"])
    return row


def _resolve_pyq_centre(data):
    """Return ``(centre, error_message)`` from centre_name / centre_id in the payload."""
    centre_name = _text(data.get("centre_name") or data.get("centreName"))
    if centre_name:
        return _ensure_centre_by_name(centre_name), None
    centre_id = data.get("centre_id") or data.get("centreId")
    if centre_id in (None, ""):
        return None, "exam centre is required"
    centre = ExamCentre.objects.filter(id=centre_id).first() if str(centre_id).isdigit() else None
    if centre is None:
        return None, "Invalid centre_id"
    return centre, None


class PyqAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        pyqs = Pyq.objects.select_related("centre").order_by("-year", "-created_at", "-id")
        return Response(PyqAdminSerializer(pyqs, many=True).data)

    def post(self, request):
        data = request.data
        title = _text(data.get("title"))
        pdf_url = _text(data.get("pdf_url") or data.get("pdfUrl"))
        if not title or not pdf_url:
            return Response({"message": "title and pdf_url are required"}, status=status.HTTP_400_BAD_REQUEST)

        access_type = _text(data.get("access_type") or data.get("accessType")).lower() or "paid"
        if access_type not in {"free", "paid"}:
            return Response({"message": "access_type must be free or paid"}, status=status.HTTP_400_BAD_REQUEST)
        pyq_status = _text(data.get("status")).lower() or "active"
        if pyq_status not in STATUSES:
            return Response({"message": "status must be active or inactive"}, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            centre, error = _resolve_pyq_centre(data)
            if error:
                transaction.set_rollback(True)
                return Response({"message": error}, status=status.HTTP_400_BAD_REQUEST)
            year = _text(data.get("year"))
            if not year:
                transaction.set_rollback(True)
                return Response({"message": "year is required"}, status=status.HTTP_400_BAD_REQUEST)
            _ensure_centre_year(centre, year)

            pyq = Pyq.objects.create(
                title=title,
                pdf_url=pdf_url,
                solution_url=_text(data.get("solution_url") or data.get("solutionUrl")),
                subject=_text(data.get("subject")) or "General",
                year=year,
                centre=centre,
                access_type=access_type,
                status=pyq_status,
            )
        return Response({"id": pyq.id}, status=status.HTTP_201_CREATED)


class PyqAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def put(self, request, pyq_id):
        try:
            pyq = Pyq.objects.select_related("centre").get(id=pyq_id)
        except Pyq.DoesNotExist:
            return _not_found("PYQ not found")

        data = request.data
        updates = {}
        aliases = {
            "title": ("title",),
            "pdf_url": ("pdf_url", "pdfUrl"),
            "solution_url": ("solution_url", "solutionUrl"),
            "subject": ("subject",),
            "year": ("year",),
        }
        for field, keys in aliases.items():
            present, value = _pick(data, *keys)
            if present:
                updates[field] = _text(value)
        present, value = _pick(data, "access_type", "accessType")
        if present:
            updates["access_type"] = _text(value).lower()
            if updates["access_type"] not in {"free", "paid"}:
                return Response({"message": "access_type must be free or paid"}, status=status.HTTP_400_BAD_REQUEST)
        if "status" in data:
            updates["status"] = _text(data.get("status")).lower()
            if updates["status"] not in STATUSES:
                return Response({"message": "status must be active or inactive"}, status=status.HTTP_400_BAD_REQUEST)

        centre_changed = any(key in data for key in ("centre_name", "centreName", "centre_id", "centreId"))
        if not updates and not centre_changed:
            return _no_fields()
        for field in ("title", "pdf_url"):
            if field in updates and not updates[field]:
                return Response({"message": f"{field} cannot be empty"}, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            if centre_changed:
                centre, error = _resolve_pyq_centre(data)
                if error:
                    transaction.set_rollback(True)
                    return Response({"message": error}, status=status.HTTP_400_BAD_REQUEST)
                updates["centre"] = centre
            for key, value in updates.items():
                setattr(pyq, key, value)
            if pyq.centre and pyq.year and (centre_changed or "year" in updates):
                _ensure_centre_year(pyq.centre, pyq.year)
            pyq.save()
        return Response({"updated": True})

    def delete(self, request, pyq_id):
        deleted, _ = Pyq.objects.filter(id=pyq_id).delete()
        if not deleted:
            return _not_found("PYQ not found")
        return Response({"deleted": True})


class SiteSettingsAdminView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        return Response({"settings": SiteSettingsSerializer(SiteSettings.load()).data})

    def put(self, request):
        site = SiteSettings.load()
        aliases = {
            "videos_enabled": ("videosEnabled", "videos_enabled"),
            "tests_enabled": ("testsEnabled", "tests_enabled"),
            "pdfs_enabled": ("pdfsEnabled", "pdfs_enabled"),
            "pyqs_enabled": ("pyqsEnabled", "pyqs_enabled"),
            "notifications_enabled": ("notificationsEnabled", "notifications_enabled"),
        }
        update_fields = []
        for field, keys in aliases.items():
            present, value = _pick(request.data, *keys)
            if present:
                setattr(site, field, _to_bool(value))
                update_fields.append(field)

        if not update_fields:
            return _no_fields()
        site.save(update_fields=update_fields + ["updated_at"])
        return Response({"settings": SiteSettingsSerializer(site).data})
