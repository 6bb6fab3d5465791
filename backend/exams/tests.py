import csv
import io
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from content.models import SiteSettings, Video

from .models import Result
from .models import TestQuestion as Question
from .models import Test as MockTest
from .scoring import first_attempt_leaderboard, option_letter, score_submission

User = get_user_model()


def _student(email):
    return User.objects.create_user(username=email, email=email, password="x", name=email.split("@")[0].title())


def _build_test(question_count=3, answers="ABC", **kwargs):
    test = MockTest.objects.create(title=kwargs.pop("title", "Agronomy Mock"), question_count=question_count, **kwargs)
    for order, answer in enumerate(answers, start=1):
        Question.objects.create(
            test=test,
            question_text=f"Question {order}",
            image_url=f"/uploads/images/q{order}.png",
            option_a="Option A",
            option_b="Option B",
            option_c="Option C",
            option_d="Option D",
            correct_option=answer,
            question_order=order,
        )
    return test


class ScoringTests(TestCase):
    def test_option_letter(self):
        self.assertEqual(option_letter(0), "A")
        self.assertEqual(option_letter(3.0), "D")
        self.assertIsNone(option_letter(4))
        self.assertIsNone(option_letter("1"))
        self.assertIsNone(option_letter(True))
        self.assertIsNone(option_letter(None))

    def test_unanswered_known_question_counts_wrong(self):
        test = _build_test()
        q1, q2, q3 = test.questions.order_by("question_order")

        scored = score_submission(
            test,
            [
                {"questionId": q1.id, "selected": 0},
                {"questionId": q2.id, "selected": None},
                {"questionId": q3.id, "selected": 0},
            ],
        )

        self.assertEqual((scored.correct, scored.wrong), (1, 2))
        self.assertEqual(scored.score, 4)
        self.assertEqual(scored.accuracy, 33.33)
        self.assertEqual(
            scored.responses[1],
            {"questionId": q2.id, "selected": None, "correct": False, "correctOption": "B", "selectedIndex": None},
        )

    def test_foreign_and_repeated_questions_are_not_scored_twice(self):
        test = _build_test()
        other = _build_test(title="Other", answers="A")
        q1 = test.questions.get(question_order=1)

        scored = score_submission(
            test,
            [
                {"questionId": q1.id, "selected": 0},
                {"questionId": q1.id, "selected": 0},
                {"questionId": other.questions.get().id, "selected": 0},
                "garbage",
            ],
        )

        self.assertEqual((scored.correct, scored.wrong), (1, 0))
        self.assertEqual(len(scored.responses), 3)
        self.assertIsNone(scored.responses[2]["correctOption"])

    def test_zero_question_test_has_zero_accuracy(self):
        test = MockTest.objects.create(title="Empty", question_count=0)

        self.assertEqual(score_submission(test, []).accuracy, 0)


class StudentTestFlowTests(TestCase):
    def setUp(self):
        self.student = _student("asha@example.com")
        self.client = APIClient()
        self.client.force_authenticate(self.student)
        self.test = _build_test()

    def test_list_hides_tests_when_disabled(self):
        SiteSettings.objects.filter(pk=1).update(tests_enabled=False)

        response = self.client.get("/api/student/tests")

        self.assertEqual(response.data, {"tests": []})

    def test_start_returns_ordered_questions_without_answers(self):
        response = self.client.get(f"/api/student/tests/{self.test.id}/start")

        self.assertEqual(response.status_code, 200)
        questions = response.data["questions"]
        self.assertEqual([q["index"] for q in questions], [0, 1, 2])
        self.assertEqual(questions[0]["questionText"], "Question 1")
        self.assertEqual(len(questions[0]["options"]), 4)
        self.assertNotIn("correctOption", questions[0])
        self.assertEqual(response.data["test"]["marksCorrect"], 4)
        self.assertIn("serverTime", response.data)

    def test_start_disabled_tests(self):
        SiteSettings.objects.filter(pk=1).update(tests_enabled=False)

        response = self.client.get(f"/api/student/tests/{self.test.id}/start")

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["message"], "Tests are disabled")

    def test_start_inactive_test_is_not_found(self):
        self.test.is_active = False
        self.test.save()

        response = self.client.get(f"/api/student/tests/{self.test.id}/start")

        self.assertEqual(response.status_code, 404)

    def test_start_needs_enough_questions(self):
        short = _build_test(question_count=5, answers="AB", title="Short")

        response = self.client.get(f"/api/student/tests/{short.id}/start")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Not enough questions to start the test")

    def test_start_without_questions(self):
        empty = MockTest.objects.create(title="Empty", question_count=0)

        response = self.client.get(f"/api/student/tests/{empty.id}/start")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "No questions available to start the test")

    def test_submit_requires_numeric_time(self):
        response = self.client.post(
            f"/api/student/tests/{self.test.id}/submit",
            {"responses": [], "timeTakenSec": "90"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "responses (array) and timeTakenSec (number) are required")

    def test_submit_scores_and_ranks(self):
        rival = _student("ravi@example.com")
        Result.objects.create(user=rival, test=self.test, score=12, correct_count=3, total_questions=3, time_taken_sec=50)
        Result.objects.create(user=rival, test=self.test, score=8, correct_count=2, total_questions=3, time_taken_sec=20)
        questions = list(self.test.questions.order_by("question_order"))

        response = self.client.post(
            f"/api/student/tests/{self.test.id}/submit",
            {
                "responses": [
                    {"questionId": questions[0].id, "selected": 0},
                    {"questionId": questions[1].id, "selected": 1},
                    {"questionId": questions[2].id, "selected": 3},
                ],
                "timeTakenSec": 40,
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        result = response.data["result"]
        self.assertEqual(result["score"], 8)
        self.assertEqual(result["outOf"], 12)
        self.assertEqual(result["accuracy"], 66.67)
        self.assertEqual((result["correctCount"], result["wrongCount"]), (2, 1))
        # Beaten by the perfect score and by the equal score with a lower time.
        self.assertEqual(result["rank"], 3)

    def test_results_are_private(self):
        other = _student("other@example.com")
        foreign = Result.objects.create(user=other, test=self.test, score=4, total_questions=3)

        response = self.client.get(f"/api/student/results/{foreign.id}")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["message"], "Result not found")

    def test_result_detail_merges_question_data(self):
        question = self.test.questions.get(question_order=2)
        result = Result.objects.create(
            user=self.student,
            test=self.test,
            total_questions=3,
            responses=[
                {"questionId": question.id, "selected": "A", "correct": False, "correctOption": "B", "selectedIndex": 0}
            ],
        )

        response = self.client.get(f"/api/student/results/{result.id}")

        row = response.data["result"]["responses"][0]
        self.assertEqual(response.data["result"]["testTitle"], "Agronomy Mock")
        self.assertEqual(row["questionText"], "Question 2")
        self.assertEqual(row["questionOrder"], 2)
        self.assertEqual(row["options"], ["Option A", "Option B", "Option C", "Option D"])

    def test_result_detail_hides_questions_from_other_tests(self):
        hidden = _build_test(title="Unreleased Mock", answers="D", question_count=1, is_active=False)
        hidden_question = hidden.questions.get()
        submit = self.client.post(
            f"/api/student/tests/{self.test.id}/submit",
            {"responses": [{"questionId": hidden_question.id, "selected": 0}], "timeTakenSec": 10},
            format="json",
        )

        response = self.client.get(f"/api/student/results/{submit.data['result']['id']}")

        rows = [row for row in response.data["result"]["responses"] if row["questionId"] == hidden_question.id]
        self.assertEqual(submit.data["result"]["correctCount"], 0)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["questionText"], "")
        self.assertEqual(rows[0]["options"], [])
        self.assertEqual(rows[0]["correctOption"], "")

    def test_progress_is_chronological(self):
        now = timezone.now()
        for offset, score in ((3, 4), (2, 8), (1, 12)):
            Result.objects.create(
                user=self.student, test=self.test, score=score, total_questions=3, date=now - timedelta(days=offset)
            )

        response = self.client.get("/api/student/progress")

        self.assertEqual([point["score"] for point in response.data["points"]], [4, 8, 12])

    def test_results_reject_non_numeric_test_id(self):
        response = self.client.get("/api/student/results", {"testId": "x"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "testId must be a number")


class AdminTestManagementTests(TestCase):
    def setUp(self):
        cache.clear()
        self.admin = User.objects.create_user(
            username="admin@example.com", email="admin@example.com", password="x", name="Admin", role="admin"
        )
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

    def _builder_question(self, **overrides):
        question = {
            "questionText": "Which crop?",
            "imageUrl": "/uploads/images/crop.png",
            "optionA": "Rice",
            "optionB": "Wheat",
            "optionC": "Maize",
            "optionD": "Ragi",
            "correctOption": "d",
        }
        question.update(overrides)
        return question

    def test_builder_creates_test_and_questions(self):
        response = self.client.post(
            "/api/admin/tests/builder",
            {"title": "Crop Mock", "questionCount": 2, "questions": [self._builder_question(), self._builder_question()]},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        test = MockTest.objects.get(id=response.data["test"]["id"])
        self.assertEqual(test.questions.count(), 2)
        self.assertEqual(list(test.questions.values_list("correct_option", flat=True)), ["D", "D"])
        self.assertEqual(list(test.questions.values_list("question_order", flat=True)), [1, 2])

    def test_builder_reports_question_errors_by_index(self):
        response = self.client.post(
            "/api/admin/tests/builder",
            {
                "title": "Crop Mock",
                "questionCount": 2,
                "questions": [self._builder_question(), self._builder_question(imageUrl="", correctOption="E")],
            },
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        errors = response.data["details"]["questions"]
        self.assertEqual(errors[0]["index"], 1)
        self.assertIn("imageUrl", errors[0])
        self.assertIn("correctOption", errors[0])
        self.assertFalse(MockTest.objects.exists())

    def test_builder_count_mismatch(self):
        response = self.client.post(
            "/api/admin/tests/builder",
            {"title": "Crop Mock", "questionCount": 3, "questions": [self._builder_question()]},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("questions", response.data["details"])

    def test_detail_includes_answers_for_admin(self):
        test = _build_test()

        response = self.client.get(f"/api/admin/tests/{test.id}")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([q["correctOption"] for q in response.data["test"]["questions"]], ["A", "B", "C"])

    def test_update_and_delete_cascade(self):
        test = _build_test()
        student = _student("s@example.com")
        Result.objects.create(user=student, test=test, score=4, total_questions=3)

        update = self.client.put(f"/api/admin/tests/{test.id}", {"isActive": False}, format="json")
        delete = self.client.delete(f"/api/admin/tests/{test.id}")

        self.assertFalse(update.data["test"]["isActive"])
        self.assertEqual(delete.data, {"ok": True})
        self.assertFalse(Question.objects.exists())
        self.assertFalse(Result.objects.exists())

    def test_question_import_from_csv(self):
        test = MockTest.objects.create(title="Import target", question_count=2)
        sheet = io.StringIO()
        writer = csv.writer(sheet)
        writer.writerow(["question_order", "question_text", "image_url", "option_a", "option_b", "option_c", "option_d", "correct_option"])
        writer.writerow([1, "Soil pH?", "/uploads/images/a.png", "5", "6", "7", "8", "c"])
        writer.writerow([2, "Best fertiliser?", "/uploads/images/b.png", "N", "P", "K", "NPK", "D"])
        upload = SimpleUploadedFile("questions.csv", sheet.getvalue().encode("utf-8"), content_type="text/csv")

        response = self.client.post(f"/api/admin/tests/{test.id}/questions/import", {"file": upload}, format="multipart")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["new"], 2)
        self.assertEqual(response.data["questionsAvailable"], 2)
        self.assertEqual(test.questions.get(question_order=1).correct_option, "C")

    def _question_sheet(self, *rows):
        sheet = io.StringIO()
        writer = csv.writer(sheet)
        writer.writerow(["id", "question_order", "question_text", "image_url", "option_a", "option_b", "option_c", "option_d", "correct_option"])
        for row in rows:
            writer.writerow(row)
        return SimpleUploadedFile("questions.csv", sheet.getvalue().encode("utf-8"), content_type="text/csv")

    def test_question_import_keeps_questions_of_other_tests(self):
        source = _build_test(title="Plant Pathology", answers="A", question_count=1)
        target = MockTest.objects.create(title="Import target", question_count=1)
        foreign = source.questions.get()
        upload = self._question_sheet([foreign.id, 1, "Rust is caused by?", "/uploads/images/r.png", "Fungi", "Virus", "Bacteria", "Mite", "a"])

        response = self.client.post(f"/api/admin/tests/{target.id}/questions/import", {"file": upload}, format="multipart")

        self.assertEqual(response.status_code, 200)
        self.assertEqual((response.data["new"], response.data["updated"]), (1, 0))
        foreign.refresh_from_db()
        self.assertEqual(foreign.test_id, source.id)
        self.assertEqual(foreign.question_text, "Question 1")
        self.assertEqual(target.questions.get().question_text, "Rust is caused by?")

    def test_question_import_updates_own_question_by_id(self):
        test = _build_test(title="Horticulture", answers="A", question_count=1)
        own = test.questions.get()
        upload = self._question_sheet([own.id, 1, "Edited text", "/uploads/images/q1.png", "W", "X", "Y", "Z", "b"])

        response = self.client.post(f"/api/admin/tests/{test.id}/questions/import", {"file": upload}, format="multipart")

        self.assertEqual(response.data["updated"], 1)
        own.refresh_from_db()
        self.assertEqual((own.question_text, own.correct_option), ("Edited text", "B"))
        self.assertEqual(test.questions.count(), 1)

    def test_question_import_fills_empty_question_count(self):
        test = MockTest.objects.create(title="Fresh", question_count=0)
        upload = self._question_sheet(
            ["", 1, "Q one", "/uploads/images/1.png", "a", "b", "c", "d", "A"],
            ["", 2, "Q two", "/uploads/images/2.png", "a", "b", "c", "d", "B"],
        )

        response = self.client.post(f"/api/admin/tests/{test.id}/questions/import", {"file": upload}, format="multipart")

        self.assertEqual(response.data["questionCount"], 2)
        test.refresh_from_db()
        self.assertEqual(test.question_count, 2)
        student_client = APIClient()
        student_client.force_authenticate(_student("new@example.com"))
        listed = student_client.get("/api/student/tests")
        self.assertIn(test.id, [row["id"] for row in listed.data["tests"]])

    def test_question_import_requires_file(self):
        test = MockTest.objects.create(title="Import target", question_count=2)

        response = self.client.post(f"/api/admin/tests/{test.id}/questions/import", {}, format="multipart")

        self.assertEqual(response.status_code, 400)


class AdminReportTests(TestCase):
    def setUp(self):
        cache.clear()
        admin = User.objects.create_user(
            username="admin@example.com", email="admin@example.com", password="x", name="Admin", role="admin"
        )
        self.client = APIClient()
        self.client.force_authenticate(admin)
        self.test = _build_test()
        self.asha = _student("asha@example.com")
        self.ravi = _student("ravi@example.com")
        now = timezone.now()
        # Asha's first attempt is the one that counts on the leaderboard.
        Result.objects.create(user=self.asha, test=self.test, score=4, time_taken_sec=30, total_questions=3, accuracy=33.33, date=now)
        Result.objects.create(user=self.asha, test=self.test, score=12, time_taken_sec=20, total_questions=3, accuracy=100, date=now)
        Result.objects.create(user=self.ravi, test=self.test, score=8, time_taken_sec=60, total_questions=3, accuracy=66.67, date=now)

    def test_leaderboard_uses_first_attempts(self):
        rows = first_attempt_leaderboard(self.test.id, 10)

        self.assertEqual([(row.user_id, row.score, row.rank) for row in rows], [(self.ravi.id, 8, 1), (self.asha.id, 4, 2)])

    def test_results_with_test_id_are_ranked(self):
        response = self.client.get("/api/admin/results", {"testId": self.test.id})

        rows = response.data["results"]
        self.assertEqual([row["rank"] for row in rows], [1, 2])
        self.assertEqual(rows[0]["student_email"], "ravi@example.com")
        self.assertEqual(rows[0]["test_title"], "Agronomy Mock")

    def test_results_without_test_id_are_latest(self):
        response = self.client.get("/api/admin/results")

        self.assertEqual(len(response.data["results"]), 3)
        self.assertNotIn("rank", response.data["results"][0])

    def test_results_reject_bad_test_id(self):
        response = self.client.get("/api/admin/results", {"testId": "abc"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "testId must be a number")

    def test_csv_export_ranked(self):
        response = self.client.get("/api/admin/results/export.csv", {"testId": self.test.id})

        self.assertEqual(response.status_code, 200)
        self.assertIn('filename="results.csv"', response["Content-Disposition"])
        rows = list(csv.reader(io.StringIO(response.content.decode("utf-8"))))
        self.assertEqual(
            rows[0],
            ["rank", "date", "student_name", "student_email", "test_title", "score", "accuracy", "time_taken_sec"],
        )
        self.assertEqual(rows[1][0], "1")
        self.assertEqual(rows[1][3], "ravi@example.com")

    def test_csv_export_without_rank(self):
        response = self.client.get("/api/admin/results/export.csv")

        rows = list(csv.reader(io.StringIO(response.content.decode("utf-8"))))
        self.assertEqual(rows[0][0], "date")
        self.assertEqual(len(rows), 4)

    def test_dashboard_counts(self):
        Video.objects.create(title="Soil", video_url="https://video.test/1")

        response = self.client.get("/api/admin/dashboard")

        self.assertEqual(response.data["students"], {"count": 2})
        self.assertEqual(response.data["tests"], {"count": 1})
        self.assertEqual(response.data["videos"], {"count": 1})

    def test_analytics_average_accuracy(self):
        response = self.client.get("/api/admin/analytics")

        self.assertEqual(response.data["resultsCount"], 3)
        self.assertAlmostEqual(response.data["avgAccuracy"], (33.33 + 100 + 66.67) / 3, places=2)

    def test_reports_need_admin_role(self):
        client = APIClient()
        client.force_authenticate(self.asha)

        response = client.get("/api/admin/analytics")

        self.assertEqual(response.status_code, 403)
