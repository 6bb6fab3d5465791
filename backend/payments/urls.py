from django.urls import path

from .views import (
    PaymentAdminListView,
    PlanAdminDetailView,
    PlanAdminListView,
    PremiumOrderView,
    PremiumPlansView,
    PremiumStatusView,
    PremiumVerifyView,
    RazorpayWebhookView,
)

urlpatterns = [
    path("razorpay", RazorpayWebhookView.as_view()),
]

student_urlpatterns = [
    path("premium/plans", PremiumPlansView.as_view()),
    path("premium/status", PremiumStatusView.as_view()),
    path("premium/order", PremiumOrderView.as_view()),
    path("premium/verify", PremiumVerifyView.as_view()),
]

admin_urlpatterns = [
    path("plans", PlanAdminListView.as_view()),
    path("plans/<int:plan_id>", PlanAdminDetailView.as_view()),
    path("payments", PaymentAdminListView.as_view()),
]
