import csv
import logging

from django.db import transaction
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from tablib import Dataset
from tablib.exceptions import TablibException

from accounts.permissions import IsAdminRole, IsStudentOrAdmin
from content.models import SiteSettings

from .models import OPTION_LETTERS, Result, Test, TestQuestion
from .resources import QUESTION_IMPORT_HEADERS, TestQuestionResource
from .scoring import rank_for, score_submission
from .serializers import (
    StartQuestionSerializer,
    StudentResultSerializer,
    TestDetailSerializer,
    TestSummarySerializer,
)

logger = logging.getLogger(__name__)

MAX_BUILDER_QUESTIONS = 50
STUDENT_RESULTS_LIMIT = 50


def _tests_disabled():
    return Response({"message": "Tests are disabled"}, status=status.HTTP_403_FORBIDDEN)


def _test_not_found():
    return Response({"message": "Test not found"}, status=status.HTTP_404_NOT_FOUND)


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_int(value, default=None):
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not number.is_integer():
        return None
    return int(number)


def _to_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _text(value):
    return str(value if value is not None else "").strip()


def _first(data, *keys):
    for key in keys:
        if data.get(key) is not None:
            return data.get(key)
    return None


# Student


class StudentTestListView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        if not SiteSettings.load().tests_enabled:
            return Response({"tests": []})
        tests = Test.objects.filter(is_active=True, question_count__gt=0).order_by("-created_at", "-id")
        return Response({"tests": TestSummarySerializer(tests, many=True).data})


class StartTestView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request, test_id):
        if not SiteSettings.load().tests_enabled:
            return _tests_disabled()

        test = Test.objects.filter(id=test_id, is_active=True).first()
        if not test:
            return _test_not_found()

        questions = list(test.questions.order_by("question_order", "id"))
        if not questions:
            return Response(
                {"message": "No questions available to start the test"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if len(questions) < test.question_count:
            logger.info(
                "Test %s has %s of %s questions, refusing start",
                test.id,
                len(questions),
                test.question_count,
            )
            return Response(
                {"message": "Not enough questions to start the test"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        positions = {question.id: index for index, question in enumerate(questions)}
        payload = StartQuestionSerializer(questions, many=True, context={"positions": positions}).data
        return Response(
            {
                "test": {
                    "id": test.id,
                    "title": test.title,
                    "questionCount": test.question_count,
                    "perQuestionSeconds": test.per_question_seconds,
                    "marksCorrect": test.marks_correct,
                },
                "questions": payload,
                "serverTime": timezone.now(),
            }
        )


class SubmitTestView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def post(self, request, test_id):
        if not SiteSettings.load().tests_enabled:
            return _tests_disabled()

        test = Test.objects.filter(id=test_id).first()
        if not test:
            return _test_not_found()

        responses = request.data.get("responses")
        time_taken = request.data.get("timeTakenSec")
        if not isinstance(responses, list) or not _is_number(time_taken):
            return Response(
                {"message": "responses (array) and timeTakenSec (number) are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        scored = score_submission(test, responses)
        result = Result.objects.create(
            user=request.user,
            test=test,
            score=scored.score,
            correct_count=scored.correct,
            wrong_count=scored.wrong,
            total_questions=scored.total,
            accuracy=scored.accuracy,
            time_taken_sec=float(time_taken),
            responses=scored.responses,
        )
        rank = rank_for(result)
        logger.info(
            "User %s submitted test %s: score %s, rank %s",
            request.user.id,
            test.id,
            result.score,
            rank,
        )

        return Response(
            {
                "result": {
                    "id": result.id,
                    "score": result.score,
                    "outOf": scored.total * test.marks_correct,
                    "accuracy": result.accuracy,
                    "correctCount": result.correct_count,
                    "wrongCount": result.wrong_count,
                    "totalQuestions": result.total_questions,
                    "timeTakenSec": result.time_taken_sec,
                    "rank": rank,
                    "date": result.date,
                }
            },
            status=status.HTTP_201_CREATED,
        )


class StudentResultListView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        results = Result.objects.filter(user=request.user).select_related("test").order_by("-date", "-id")

        raw_test_id = request.query_params.get("testId")
        if raw_test_id:
            test_id = _to_int(raw_test_id)
            if test_id is None:
                return Response({"message": "testId must be a number"}, status=status.HTTP_400_BAD_REQUEST)
            results = results.filter(test_id=test_id)

        limit = _to_int(request.query_params.get("limit"), STUDENT_RESULTS_LIMIT) or STUDENT_RESULTS_LIMIT
        limit = max(1, min(limit, STUDENT_RESULTS_LIMIT))
        return Response({"results": StudentResultSerializer(results[:limit], many=True).data})


class StudentResultDetailView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request, result_id):
        result = Result.objects.filter(id=result_id, user=request.user).select_related("test").first()
        if not result:
            return Response({"message": "Result not found"}, status=status.HTTP_404_NOT_FOUND)

        responses = result.responses if isinstance(result.responses, list) else []
        question_ids = [item.get("questionId") for item in responses if isinstance(item, dict)]
        questions = TestQuestion.objects.filter(test_id=result.test_id).in_bulk(
            [qid for qid in question_ids if isinstance(qid, int)]
        )

        detailed = []
        for item in responses:
            if not isinstance(item, dict):
                continue
            question = questions.get(item.get("questionId"))
            detailed.append(
                {
                    **item,
                    "questionText": question.question_text if question else "",
                    "imageUrl": question.image_url if question else "",
                    "options": question.options if question else [],
                    "correctOption": question.correct_option if question else "",
                    "questionOrder": question.question_order if question else 0,
                }
            )

        data = StudentResultSerializer(result).data
        data["responses"] = detailed
        return Response({"result": data})


class StudentProgressView(APIView):
    permission_classes = [IsStudentOrAdmin]

    def get(self, request):
        latest = list(Result.objects.filter(user=request.user).order_by("-date", "-id")[:10])
        latest.reverse()
        points = [{"date": row.date, "score": row.score, "accuracy": row.accuracy} for row in latest]
        return Response({"points": points})


# Admin


class TestAdminListView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        tests = Test.objects.order_by("-created_at", "-id")
        return Response({"tests": TestSummarySerializer(tests, many=True).data})

    def post(self, request):
        data = request.data
        title = _text(data.get("title"))
        if not title:
            return Response({"message": "title is required"}, status=status.HTTP_400_BAD_REQUEST)

        errors = {}
        numbers = {}
        for key, default in (("questionCount", 0), ("perQuestionSeconds", 30), ("marksCorrect", 4)):
            value = _to_int(data.get(key), default)
            if value is None or value < 0:
                errors[key] = "must be a non-negative number"
            numbers[key] = value
        if errors:
            return Response({"message": "Validation failed", "details": errors}, status=status.HTTP_400_BAD_REQUEST)

        test = Test.objects.create(
            title=title,
            is_active=_to_bool(data.get("isActive", True)),
            question_count=numbers["questionCount"],
            per_question_seconds=numbers["perQuestionSeconds"],
            marks_correct=numbers["marksCorrect"],
        )
        return Response({"test": TestSummarySerializer(test).data}, status=status.HTTP_201_CREATED)


class TestBuilderView(APIView):
    """Create a test together with its full question set in one transaction."""

    permission_classes = [IsAdminRole]

    def post(self, request):
        data = request.data
        title = _text(data.get("title"))
        per_question_seconds = _to_int(data.get("perQuestionSeconds"), 30)
        marks_correct = _to_int(data.get("marksCorrect"), 4)
        question_count = _to_int(data.get("questionCount"), 10)
        questions = data.get("questions") if isinstance(data.get("questions"), list) else None

        errors = {}
        if not title:
            errors["title"] = "title is required"
        if per_question_seconds is None or per_question_seconds <= 0:
            errors["perQuestionSeconds"] = "must be a positive number"
        if marks_correct is None or marks_correct <= 0:
            errors["marksCorrect"] = "must be a positive number"
        if question_count is None or not 0 < question_count <= MAX_BUILDER_QUESTIONS:
            errors["questionCount"] = f"must be between 1 and {MAX_BUILDER_QUESTIONS}"
        if not questions:
            errors["questions"] = "at least 1 question is required"
        elif question_count is not None and len(questions) != question_count:
            errors["questions"] = f"question count mismatch: expected {question_count}, got {len(questions)}"
        if errors:
            return Response({"message": "Validation failed", "details": errors}, status=status.HTTP_400_BAD_REQUEST)

        cleaned = []
        question_errors = []
        for index, item in enumerate(questions):
            item = item if isinstance(item, dict) else {}
            row = {
                "question_text": _text(_first(item, "questionText", "question_text")),
                "image_url": _text(_first(item, "imageUrl", "image_url")),
                "option_a": _text(_first(item, "optionA", "option_a")),
                "option_b": _text(_first(item, "optionB", "option_b")),
                "option_c": _text(_first(item, "optionC", "option_c")),
                "option_d": _text(_first(item, "optionD", "option_d")),
                "correct_option": _text(_first(item, "correctOption", "correct_option")).upper(),
                "question_order": _to_int(_first(item, "questionOrder", "question_order"), index + 1),
            }

            item_errors = {}
            for key, field_name in (
                ("questionText", "question_text"),
                ("imageUrl", "image_url"),
                ("optionA", "option_a"),
                ("optionB", "option_b"),
                ("optionC", "option_c"),
                ("optionD", "option_d"),
            ):
                if not row[field_name]:
                    item_errors[key] = f"{key} is required"
            if row["correct_option"] not in OPTION_LETTERS:
                item_errors["correctOption"] = "correctOption must be A, B, C, or D"
            if row["question_order"] is None or row["question_order"] < 0:
                item_errors["questionOrder"] = "questionOrder must be a number"

            if item_errors:
                question_errors.append({"index": index, **item_errors})
            cleaned.append(row)

        if question_errors:
            return Response(
                {"message": "Validation failed", "details": {"questions": question_errors}},
                status=status.HTTP_400_BAD_REQUEST,
            )

        with transaction.atomic():
            test = Test.objects.create(
                title=title,
                is_active=_to_bool(data.get("isActive", True)),
                question_count=question_count,
                per_question_seconds=per_question_seconds,
                marks_correct=marks_correct,
            )
            TestQuestion.objects.bulk_create([TestQuestion(test=test, **row) for row in cleaned])

        logger.info("Admin %s built test %s with %s questions", request.user.id, test.id, len(cleaned))
        return Response({"test": TestSummarySerializer(test).data}, status=status.HTTP_201_CREATED)


class TestAdminDetailView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request, test_id):
        test = Test.objects.prefetch_related("questions").filter(id=test_id).first()
        if not test:
            return _test_not_found()
        return Response({"test": TestDetailSerializer(test).data})

    def put(self, request, test_id):
        test = Test.objects.filter(id=test_id).first()
        if not test:
            return _test_not_found()

        data = request.data
        if "title" in data:
            title = _text(data.get("title"))
            if not title:
                return Response({"message": "title is required"}, status=status.HTTP_400_BAD_REQUEST)
            test.title = title
        if "isActive" in data:
            test.is_active = _to_bool(data.get("isActive"))
        for key, field_name in (
            ("questionCount", "question_count"),
            ("perQuestionSeconds", "per_question_seconds"),
            ("marksCorrect", "marks_correct"),
        ):
            if key not in data:
                continue
            value = _to_int(data.get(key))
            if value is None or value < 0:
                return Response(
                    {"message": "Validation failed", "details": {key: "must be a non-negative number"}},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            setattr(test, field_name, value)
        test.save()
        return Response({"test": TestSummarySerializer(test).data})

    def delete(self, request, test_id):
        test = Test.objects.filter(id=test_id).first()
        if not test:
            return _test_not_found()
        test.delete()
        logger.info("Admin %s deleted test %s", request.user.id, test_id)
        return Response({"ok": True})


class TestQuestionImportView(APIView):
    """Bulk-load questions for one test from an uploaded CSV sheet."""

    permission_classes = [IsAdminRole]

    def post(self, request, test_id):
        test = Test.objects.filter(id=test_id).first()
        if not test:
            return _test_not_found()

        upload = request.FILES.get("file")
        if not upload:
            return Response({"message": "file is required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            raw = upload.read().decode("utf-8-sig")
            source = Dataset().load(raw, format="csv")
        except (UnicodeDecodeError, csv.Error, TablibException) as exc:
            return Response({"message": f"Could not read file: {exc}"}, status=status.HTTP_400_BAD_REQUEST)

        headers = [str(header or "").strip().lower() for header in source.headers or []]
        dataset = Dataset(headers=QUESTION_IMPORT_HEADERS)
        for values in source:
            row = dict(zip(headers, values))
            dataset.append([row.get("id") or "", test.id] + [row.get(column, "") for column in QUESTION_IMPORT_HEADERS[2:]])

        if len(dataset) == 0:
            return Response({"message": "No rows found in file"}, status=status.HTTP_400_BAD_REQUEST)

        result = TestQuestionResource(test=test).import_data(
            dataset, dry_run=False, raise_errors=False, use_transactions=True
        )
        totals = getattr(result, "totals", {}) or {}
        new_rows = int(totals.get("new", 0))
        updated_rows = int(totals.get("update", 0))
        error_rows = int(totals.get("error", 0)) + int(totals.get("invalid", 0))
        available = test.questions.count()
        if test.question_count == 0 and available:
            test.question_count = available
            test.save(update_fields=["question_count", "updated_at"])

        logger.info("Admin %s imported %s questions into test %s", request.user.id, new_rows + updated_rows, test.id)
        return Response(
            {
                "new": new_rows,
                "updated": updated_rows,
                "imported": new_rows + updated_rows,
                "skipped": int(totals.get("skip", 0)),
                "errorRows": error_rows,
                "questionsAvailable": available,
                "questionCount": test.question_count,
            }
        )
