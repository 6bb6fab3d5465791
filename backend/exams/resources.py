from import_export import fields, resources
from import_export.widgets import ForeignKeyWidget

from .models import Result, Test, TestQuestion

QUESTION_COLUMNS = (
    "id",
    "test",
    "question_order",
    "question_text",
    "image_url",
    "option_a",
    "option_b",
    "option_c",
    "option_d",
    "correct_option",
)

QUESTION_IMPORT_HEADERS = [
    "id",
    "test_id",
    "question_order",
    "question_text",
    "image_url",
    "option_a",
    "option_b",
    "option_c",
    "option_d",
    "correct_option",
]

RESULT_COLUMNS = (
    "id",
    "date",
    "student_name",
    "student_email",
    "test_title",
    "score",
    "correct_count",
    "wrong_count",
    "total_questions",
    "accuracy",
    "time_taken_sec",
)


class TestQuestionResource(resources.ModelResource):
    test = fields.Field(
        column_name="test_id",
        attribute="test",
        widget=ForeignKeyWidget(Test, "id"),
    )

    class Meta:
        model = TestQuestion
        import_id_fields = ("id",)
        fields = QUESTION_COLUMNS
        export_order = QUESTION_COLUMNS
        skip_unchanged = True
        report_skipped = True
        clean_model_instances = True

    def __init__(self, test=None, **kwargs):
        super().__init__(**kwargs)
        self.test = test

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.test is not None:
            queryset = queryset.filter(test=self.test)
        return queryset

    def before_import_row(self, row, **kwargs):
        row["correct_option"] = str(row.get("correct_option") or "").strip().upper()
        if self.test is None:
            return
        # ids outside the target test are imported as new questions
        row["test_id"] = self.test.id
        question_id = str(row.get("id") or "").strip()
        if not question_id.isdigit() or not self.get_queryset().filter(id=int(question_id)).exists():
            row["id"] = ""


class ResultResource(resources.ModelResource):
    student_name = fields.Field(column_name="student_name", attribute="user__name", readonly=True)
    student_email = fields.Field(column_name="student_email", attribute="user__email", readonly=True)
    test_title = fields.Field(column_name="test_title", attribute="test__title", readonly=True)

    class Meta:
        model = Result
        fields = RESULT_COLUMNS
        export_order = RESULT_COLUMNS
