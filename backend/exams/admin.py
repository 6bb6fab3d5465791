from django.contrib import admin
from import_export.admin import ExportMixin, ImportExportModelAdmin

from .models import Result, Test, TestQuestion
from .resources import ResultResource, TestQuestionResource


class TestQuestionInline(admin.TabularInline):
    model = TestQuestion
    extra = 1
    fields = ("question_order", "question_text", "image_url", "correct_option")


@admin.register(Test)
class TestAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "title",
        "is_active",
        "question_count",
        "questions_loaded",
        "per_question_seconds",
        "marks_correct",
        "created_at",
    )
    list_filter = ("is_active",)
    search_fields = ("title",)
    inlines = [TestQuestionInline]
    actions = ("activate_tests", "deactivate_tests")

    @admin.display(description="Loaded")
    def questions_loaded(self, obj):
        return obj.questions.count()

    @admin.action(description="Activate selected tests")
    def activate_tests(self, request, queryset):
        queryset.update(is_active=True)

    @admin.action(description="Deactivate selected tests")
    def deactivate_tests(self, request, queryset):
        queryset.update(is_active=False)


@admin.register(TestQuestion)
class TestQuestionAdmin(ImportExportModelAdmin):
    list_display = ("id", "test", "question_order", "correct_option", "created_at")
    list_filter = ("test",)
    search_fields = ("question_text", "test__title")
    resource_classes = [TestQuestionResource]


@admin.register(Result)
class ResultAdmin(ExportMixin, admin.ModelAdmin):
    list_display = ("id", "user", "test", "score", "accuracy", "time_taken_sec", "date")
    list_filter = ("test",)
    search_fields = ("user__email", "user__name", "test__title")
    readonly_fields = ("responses",)
    resource_classes = [ResultResource]
