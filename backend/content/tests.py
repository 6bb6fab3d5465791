import shutil
import tempfile
from datetime import timedelta
from pathlib import Path

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from exams.models import Test as MockTest
from payments.models import Plan, UserAccess

from .models import ExamCentre, ExamCentreYear, Material, Menu, Pyq, SiteSettings, Specimen, Video
from .uploads import InvalidFileReference, resolve_file_ref
from .views_admin import parse_specimen_options

User = get_user_model()


def _make_student(email="student@example.com"):
    return User.objects.create_user(username=email, email=email, password="x", name="Student")


def _make_admin(email="admin@example.com"):
    return User.objects.create_user(username=email, email=email, password="x", name="Admin", role="admin")


class UploadRootMixin:
    def setUp(self):
        super().setUp()
        self.upload_root = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, self.upload_root, ignore_errors=True)
        override = override_settings(UPLOAD_ROOT=self.upload_root)
        override.enable()
        self.addCleanup(override.disable)

    def write_file(self, relative, content=b"%PDF-1.4 test"):
        path = self.upload_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path


class StudentDashboardTests(TestCase):
    def setUp(self):
        self.student = _make_student()
        self.client = APIClient()
        self.client.force_authenticate(self.student)

    def test_disabled_sections_come_back_empty(self):
        Video.objects.create(title="Soil basics", video_url="https://video.test/1")
        MockTest.objects.create(title="Mock 1", question_count=5)
        SiteSettings.objects.filter(pk=1).update(videos_enabled=False, tests_enabled=False)

        response = self.client.get("/api/student/dashboard")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["videos"], [])
        self.assertEqual(response.data["tests"], [])
        self.assertFalse(response.data["settings"]["videosEnabled"])

    def test_dashboard_lists_only_startable_tests(self):
        MockTest.objects.create(title="Ready", question_count=5)
        MockTest.objects.create(title="Empty", question_count=0)
        MockTest.objects.create(title="Hidden", question_count=5, is_active=False)

        response = self.client.get("/api/student/dashboard")

        self.assertEqual([row["title"] for row in response.data["tests"]], ["Ready"])
        self.assertEqual({row["code"] for row in response.data["premiumPlans"]}, {"pyq", "materials", "combo"})

    def test_anonymous_request_is_rejected(self):
        response = APIClient().get("/api/student/dashboard")

        self.assertEqual(response.status_code, 401)


class StudentMenuTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(_make_student())

    def test_student_menus_exclude_admin_and_inactive(self):
        Menu.objects.create(name="Videos", type="student", menu_order=2)
        Menu.objects.create(name="Shared", type="both", menu_order=1)
        Menu.objects.create(name="Admin only", type="admin")
        Menu.objects.create(name="Off", type="student", status="inactive")

        response = self.client.get("/api/student/menus")

        self.assertEqual([row["name"] for row in response.data["menus"]], ["Shared", "Videos"])

    def test_pdf_menu_lists_its_materials(self):
        menu = Menu.objects.create(name="Agronomy notes", type="student", resource_type="pdf")
        Material.objects.create(title="Chapter 1", pdf_url="/uploads/materials/c1.pdf", menu=menu)
        Material.objects.create(title="Elsewhere", pdf_url="/uploads/materials/c2.pdf")

        response = self.client.get(f"/api/student/menu/{menu.id}")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["resourceType"], "pdf")
        self.assertEqual([row["title"] for row in response.data["pdfs"]], ["Chapter 1"])

    def test_admin_menu_is_not_visible_to_students(self):
        menu = Menu.objects.create(name="Reports", type="admin")

        response = self.client.get(f"/api/student/menu/{menu.id}")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["message"], "Menu not found")


class PaidMaterialAccessTests(UploadRootMixin, TestCase):
    def setUp(self):
        super().setUp()
        Plan.objects.filter(code__in=["materials", "pyq", "combo"]).update(is_free=False, price_paise=19900)
        self.student = _make_student()
        self.client = APIClient()
        self.client.force_authenticate(self.student)
        self.write_file("private_uploads/materials/notes.pdf")
        self.material = Material.objects.create(
            title="Premium notes",
            pdf_url="private_uploads/materials/notes.pdf",
            access_type="paid",
        )

    def test_locked_material_hides_private_reference(self):
        response = self.client.get("/api/student/materials")

        row = response.data["materials"][0]
        self.assertTrue(row["locked"])
        self.assertEqual(row["pdfUrl"], f"/api/student/materials/{self.material.id}/file")

    def test_file_requires_premium_access(self):
        response = self.client.get(f"/api/student/materials/{self.material.id}/file")

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["message"], "Premium access required")

    def test_combo_access_unlocks_material_file(self):
        UserAccess.objects.create(user=self.student, combo_access=True, expiry=timezone.now() + timedelta(days=30))

        response = self.client.get(f"/api/student/materials/{self.material.id}/file")

        self.assertEqual(response.status_code, 200)
        self.assertIn("no-store", response["Cache-Control"])
        self.assertEqual(response["X-Content-Type-Options"], "nosniff")
        self.assertEqual(b"".join(response.streaming_content), b"%PDF-1.4 test")

    def test_expired_access_is_ignored(self):
        UserAccess.objects.create(
            user=self.student,
            material_access=True,
            material_expiry=timezone.now() - timedelta(days=1),
        )

        response = self.client.get(f"/api/student/materials/{self.material.id}/file")

        self.assertEqual(response.status_code, 403)

    def test_reference_outside_private_folder_is_rejected(self):
        UserAccess.objects.create(user=self.student, combo_access=True, expiry=timezone.now() + timedelta(days=30))
        self.material.pdf_url = "private_uploads/materials/../../secret.pdf"
        self.material.save()

        response = self.client.get(f"/api/student/materials/{self.material.id}/file")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Invalid file reference")


class PyqAccessTests(UploadRootMixin, TestCase):
    def setUp(self):
        super().setUp()
        Plan.objects.filter(code="pyq").update(is_free=False, price_paise=9900)
        self.client = APIClient()
        self.student = _make_student()
        self.client.force_authenticate(self.student)
        self.centre = ExamCentre.objects.create(name="Bengaluru")

    def test_free_pyq_streams_as_pdf(self):
        self.write_file("uploads/pyqs/2023.pdf")
        pyq = Pyq.objects.create(
            title="KCET 2023", pdf_url="/uploads/pyqs/2023.pdf", year="2023", centre=self.centre, access_type="free"
        )

        response = self.client.get(f"/api/student/pyqs/{pyq.id}/pdf")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")

    def test_paid_pyq_is_locked_in_listing(self):
        Pyq.objects.create(title="KCET 2022", pdf_url="private_uploads/pyqs/2022.pdf", year="2022", centre=self.centre)

        response = self.client.get("/api/student/pyqs")

        self.assertTrue(response.data["pyqs"][0]["locked"])
        self.assertEqual(response.data["pyqs"][0]["accessType"], "paid")

    def test_by_centre_year_requires_numeric_centre(self):
        response = self.client.get("/api/student/pyqs/by-centre-year", {"centreId": "abc", "year": "2023"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "centreId is required")

    def test_by_centre_year_filters(self):
        Pyq.objects.create(title="A", pdf_url="x.pdf", year="2023", centre=self.centre)
        Pyq.objects.create(title="B", pdf_url="y.pdf", year="2022", centre=self.centre)

        response = self.client.get(
            "/api/student/pyqs/by-centre-year", {"centreId": str(self.centre.id), "year": "2023"}
        )

        self.assertEqual([row["title"] for row in response.data["pyqs"]], ["A"])


class MaterialCompletionTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(_make_student())

    def test_completion_is_idempotent(self):
        material = Material.objects.create(title="Notes", pdf_url="/uploads/materials/n.pdf")

        self.client.post("/api/student/materials/complete", {"materialId": material.id}, format="json")
        self.client.post("/api/student/materials/complete", {"materialId": material.id}, format="json")
        response = self.client.get("/api/student/materials/completed")

        self.assertEqual(response.data["completedIds"], [material.id])

    def test_unknown_material(self):
        response = self.client.post("/api/student/materials/complete", {"materialId": 404}, format="json")

        self.assertEqual(response.status_code, 404)


class AdminUploadTests(UploadRootMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(_make_admin())

    def test_public_image_upload_returns_url(self):
        image = SimpleUploadedFile("leaf photo.png", b"\x89PNG data", content_type="image/png")

        response = self.client.post("/api/admin/upload/specimen-image", {"file": image}, format="multipart")

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data["url"].startswith("/uploads/images/leaf_photo_"))
        self.assertTrue((self.upload_root / response.data["url"].lstrip("/")).is_file())

    def test_private_pyq_upload_returns_reference(self):
        pdf = SimpleUploadedFile("paper.pdf", b"%PDF-1.4", content_type="application/pdf")

        response = self.client.post("/api/admin/upload/pyq-pdf", {"file": pdf}, format="multipart")

        self.assertEqual(response.status_code, 201)
        self.assertNotIn("url", response.data)
        self.assertTrue(response.data["ref"].startswith("private_uploads/pyqs/"))

    def test_wrong_type_is_rejected(self):
        doc = SimpleUploadedFile("notes.docx", b"doc", content_type="application/octet-stream")

        response = self.client.post("/api/admin/upload/pyq-pdf", {"file": doc}, format="multipart")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Only PDF files are allowed")

    def test_missing_file(self):
        response = self.client.post("/api/admin/upload/material-pdf", {}, format="multipart")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "file is required")


class AdminContentTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(_make_admin())

    def test_video_validation_reports_details(self):
        response = self.client.post("/api/admin/videos", {"title": "", "videoUrl": "ftp://x"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Validation failed")
        self.assertIn("title", response.data["details"])
        self.assertIn("videoUrl", response.data["details"])

    def test_material_rejects_unknown_menu(self):
        response = self.client.post(
            "/api/admin/materials",
            {"title": "Notes", "pdfUrl": "/uploads/materials/n.pdf", "menuId": 999},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["errors"]["menuId"], "Menu not found")

    def test_menu_reorder(self):
        first = Menu.objects.create(name="First", menu_order=1)
        second = Menu.objects.create(name="Second", menu_order=2)

        response = self.client.put(
            "/api/admin/menu/reorder",
            {"orders": [{"id": first.id, "menu_order": 5}, {"id": second.id, "menu_order": 1}]},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual((first.menu_order, second.menu_order), (5, 1))

    def test_menu_update_rejects_unknown_parent(self):
        menu = Menu.objects.create(name="Child")

        response = self.client.put(f"/api/admin/menu/{menu.id}", {"parent_id": "nope"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Parent menu not found")

    def test_pyq_create_by_centre_name_registers_year(self):
        response = self.client.post(
            "/api/admin/pyqs",
            {"title": "KCET 2021", "pdf_url": "private_uploads/pyqs/a.pdf", "centre_name": "Mysuru", "year": "2021"},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        centre = ExamCentre.objects.get(name="Mysuru")
        self.assertTrue(ExamCentreYear.objects.filter(centre=centre, year="2021").exists())
        self.assertEqual(Pyq.objects.get(id=response.data["id"]).access_type, "paid")

    def test_pyq_create_requires_centre(self):
        response = self.client.post(
            "/api/admin/pyqs", {"title": "KCET", "pdf_url": "a.pdf", "year": "2021"}, format="json"
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "exam centre is required")
        self.assertFalse(Pyq.objects.exists())

    def test_year_with_pyqs_cannot_be_deleted(self):
        centre = ExamCentre.objects.create(name="Udupi")
        year = ExamCentreYear.objects.create(centre=centre, year="2020")
        Pyq.objects.create(title="Old", pdf_url="a.pdf", year="2020", centre=centre)

        response = self.client.delete(f"/api/admin/exam-centre-years/{year.id}")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Cannot delete year with existing PYQs")

    def test_specimen_options_must_be_four(self):
        response = self.client.post(
            "/api/admin/specimens",
            {"imageUrl": "/uploads/images/a.png", "options": ["a", "b"], "correct": 0},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("options", response.data["details"])
        self.assertFalse(Specimen.objects.exists())

    def test_settings_update_toggles_flags(self):
        response = self.client.put("/api/admin/settings", {"pdfsEnabled": "false"}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["settings"]["pdfsEnabled"])
        self.assertTrue(SiteSettings.load().videos_enabled)


class FileReferenceTests(TestCase):
    def test_parse_specimen_options_accepts_json_and_keyed_objects(self):
        self.assertEqual(parse_specimen_options('["a", "b", "c", "d"]'), ["a", "b", "c", "d"])
        self.assertEqual(parse_specimen_options({"0": "w", "1": "x", "2": "y", "3": "z"}), ["w", "x", "y", "z"])
        self.assertIsNone(parse_specimen_options(["a", "", "c", "d"]))

    @override_settings(UPLOAD_ROOT=Path("/srv/kcet"))
    def test_remote_urls_are_not_files(self):
        with self.assertRaises(InvalidFileReference):
            resolve_file_ref("https://cdn.test/file.pdf", ["uploads"])
