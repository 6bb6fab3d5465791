from rest_framework import serializers

from .models import Result, Test, TestQuestion


class TestSummarySerializer(serializers.ModelSerializer):
    isActive = serializers.BooleanField(source="is_active")
    questionCount = serializers.IntegerField(source="question_count")
    perQuestionSeconds = serializers.IntegerField(source="per_question_seconds")
    marksCorrect = serializers.IntegerField(source="marks_correct")

    class Meta:
        model = Test
        fields = ["id", "title", "isActive", "questionCount", "perQuestionSeconds", "marksCorrect"]


class TestQuestionAdminSerializer(serializers.ModelSerializer):
    questionText = serializers.CharField(source="question_text")
    imageUrl = serializers.CharField(source="image_url")
    options = serializers.ListField(child=serializers.CharField(), read_only=True)
    correctOption = serializers.CharField(source="correct_option")
    questionOrder = serializers.IntegerField(source="question_order")

    class Meta:
        model = TestQuestion
        fields = ["id", "questionText", "imageUrl", "options", "correctOption", "questionOrder"]


class TestDetailSerializer(TestSummarySerializer):
    questions = TestQuestionAdminSerializer(many=True, read_only=True)

    class Meta(TestSummarySerializer.Meta):
        fields = TestSummarySerializer.Meta.fields + ["questions"]


class StartQuestionSerializer(serializers.Serializer):
    """Question payload handed to a student; never carries the answer."""

    index = serializers.SerializerMethodField()
    id = serializers.IntegerField()
    imageUrl = serializers.CharField(source="image_url")
    questionText = serializers.CharField(source="question_text")
    options = serializers.ListField(child=serializers.CharField())

    def get_index(self, obj):
        return self.context["positions"][obj.id]


class StudentResultSerializer(serializers.ModelSerializer):
    testId = serializers.IntegerField(source="test_id")
    testTitle = serializers.SerializerMethodField()
    correctCount = serializers.IntegerField(source="correct_count")
    wrongCount = serializers.IntegerField(source="wrong_count")
    totalQuestions = serializers.IntegerField(source="total_questions")
    timeTakenSec = serializers.FloatField(source="time_taken_sec")

    class Meta:
        model = Result
        fields = [
            "id",
            "testId",
            "testTitle",
            "score",
            "correctCount",
            "wrongCount",
            "totalQuestions",
            "accuracy",
            "timeTakenSec",
            "date",
        ]

    def get_testTitle(self, obj):
        return obj.test.title if obj.test_id else ""


class AdminResultRowSerializer(serializers.ModelSerializer):
    test_id = serializers.IntegerField()
    user_id = serializers.IntegerField()
    student_name = serializers.CharField(source="user.name", default=None)
    student_email = serializers.CharField(source="user.email", default=None)
    test_title = serializers.CharField(source="test.title", default=None)

    class Meta:
        model = Result
        fields = [
            "id",
            "user_id",
            "test_id",
            "score",
            "correct_count",
            "wrong_count",
            "total_questions",
            "accuracy",
            "time_taken_sec",
            "date",
            "student_name",
            "student_email",
            "test_title",
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        rank = getattr(instance, "rank", None)
        if rank is not None:
            data["rank"] = rank
        return data
