from rest_framework import serializers

from .models import Payment, Plan


class PlanSerializer(serializers.ModelSerializer):
    pricePaise = serializers.IntegerField(source="price_paise")
    durationDays = serializers.IntegerField(source="duration_days")
    isFree = serializers.BooleanField(source="is_free")

    class Meta:
        model = Plan
        fields = ["id", "code", "name", "pricePaise", "durationDays", "isFree", "status"]


class PaymentRowSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id")
    userName = serializers.CharField(source="user.name")
    userEmail = serializers.CharField(source="user.email")
    planCode = serializers.CharField(source="plan.code")
    planName = serializers.CharField(source="plan.name")
    amountPaise = serializers.IntegerField(source="amount_paise")
    orderId = serializers.CharField(source="razorpay_order_id")
    paymentId = serializers.CharField(source="razorpay_payment_id")
    createdAt = serializers.DateTimeField(source="created_at")
    paidAt = serializers.DateTimeField(source="paid_at")

    class Meta:
        model = Payment
        fields = [
            "id",
            "userId",
            "userName",
            "userEmail",
            "planCode",
            "planName",
            "amountPaise",
            "orderId",
            "paymentId",
            "status",
            "createdAt",
            "paidAt",
        ]
