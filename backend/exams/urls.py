from django.urls import path

from . import views_exam, views_reports

student_urlpatterns = [
    path("tests", views_exam.StudentTestListView.as_view()),
    path("tests/<int:test_id>/start", views_exam.StartTestView.as_view()),
    path("tests/<int:test_id>/submit", views_exam.SubmitTestView.as_view()),
    path("results", views_exam.StudentResultListView.as_view()),
    path("results/<int:result_id>", views_exam.StudentResultDetailView.as_view()),
    path("progress", views_exam.StudentProgressView.as_view()),
]

admin_urlpatterns = [
    path("dashboard", views_reports.AdminDashboardView.as_view()),
    path("analytics", views_reports.AnalyticsView.as_view()),
    path("tests", views_exam.TestAdminListView.as_view()),
    path("tests/builder", views_exam.TestBuilderView.as_view()),
    path("tests/<int:test_id>", views_exam.TestAdminDetailView.as_view()),
    path("tests/<int:test_id>/questions/import", views_exam.TestQuestionImportView.as_view()),
    path("results", views_reports.AdminResultListView.as_view()),
    path("results/export.csv", views_reports.ResultExportCSVView.as_view()),
]
