from django.urls import path

from . import views_admin, views_student

student_urlpatterns = [
    path("dashboard", views_student.StudentDashboardView.as_view()),
    path("menus", views_student.StudentMenuListView.as_view()),
    path("menu/<int:menu_id>", views_student.StudentMenuDetailView.as_view()),
    path("videos", views_student.StudentVideoListView.as_view()),
    path("notifications", views_student.StudentNotificationListView.as_view()),
    path("materials", views_student.StudentMaterialListView.as_view()),
    path("materials/complete", views_student.MaterialCompleteView.as_view()),
    path("materials/completed", views_student.MaterialCompletedListView.as_view()),
    path("materials/<int:material_id>/file", views_student.StudentMaterialFileView.as_view()),
    path("pyqs", views_student.StudentPyqListView.as_view()),
    path("pyqs/by-centre-year", views_student.PyqByCentreYearView.as_view()),
    path("pyqs/<int:pyq_id>/pdf", views_student.StudentPyqFileView.as_view()),
    path("exam-centres", views_student.StudentExamCentreListView.as_view()),
    path("exam-centres/<int:centre_id>/years", views_student.StudentExamCentreYearListView.as_view()),
]

admin_urlpatterns = [
    path("menu", views_admin.MenuAdminListView.as_view()),
    path("menu/reorder", views_admin.MenuReorderView.as_view()),
    path("menu/<int:menu_id>", views_admin.MenuAdminDetailView.as_view()),
    path("upload/specimen-image", views_admin.UploadAdminView.as_view(target_key="specimen-image")),
    path("upload/material-pdf", views_admin.UploadAdminView.as_view(target_key="material-pdf")),
    path("upload/material-private", views_admin.UploadAdminView.as_view(target_key="material-private")),
    path("upload/pyq-pdf", views_admin.UploadAdminView.as_view(target_key="pyq-pdf")),
    path("upload/pyq-public", views_admin.UploadAdminView.as_view(target_key="pyq-public")),
    path("exam-centres", views_admin.ExamCentreAdminListView.as_view()),
    path("exam-centres/<int:centre_id>", views_admin.ExamCentreAdminDetailView.as_view()),
    path("exam-centres/<int:centre_id>/years", views_admin.ExamCentreYearAdminListView.as_view()),
    path("exam-centre-years/<int:year_id>", views_admin.ExamCentreYearAdminDetailView.as_view()),
    path("videos", views_admin.VideoAdminListView.as_view()),
    path("videos/<int:video_id>", views_admin.VideoAdminDetailView.as_view()),
    path("materials", views_admin.MaterialAdminListView.as_view()),
    path("materials/<int:material_id>", views_admin.MaterialAdminDetailView.as_view()),
    path("notifications", views_admin.NotificationAdminListView.as_view()),
    path("notifications/<int:notification_id>", views_admin.NotificationAdminDetailView.as_view()),
    path("specimens", views_admin.SpecimenAdminListView.as_view()),
    path("specimens/<int:specimen_id>", views_admin.SpecimenAdminDetailView.as_view()),
    path("pyqs", views_admin.PyqAdminListView.as_view()),
    path("pyqs/<int:pyq_id>", views_admin.PyqAdminDetailView.as_view()),
    path("settings", views_admin.SiteSettingsAdminView.as_view()),
]
