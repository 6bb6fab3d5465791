from django.conf import settings
from django.db import models
from django.utils import timezone


OPTION_LETTERS = ("A", "B", "C", "D")


class Test(models.Model):
    title = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)
    question_count = models.PositiveIntegerField(default=0)
    per_question_seconds = models.PositiveIntegerField(default=30)
    marks_correct = models.PositiveIntegerField(default=4)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.title


class TestQuestion(models.Model):
    OPTION_CHOICES = [(letter, letter) for letter in OPTION_LETTERS]

    test = models.ForeignKey(Test, on_delete=models.CASCADE, related_name="questions")
    question_text = models.TextField()
    image_url = models.CharField(max_length=500)
    option_a = models.CharField(max_length=500)
    option_b = models.CharField(max_length=500)
    option_c = models.CharField(max_length=500)
    option_d = models.CharField(max_length=500)
    correct_option = models.CharField(max_length=1, choices=OPTION_CHOICES)
    question_order = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["question_order", "id"]

    def __str__(self):
        return f"{self.test_id} | Q{self.question_order}"

    @property
    def options(self):
        return [self.option_a, self.option_b, self.option_c, self.option_d]


class Result(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="results")
    test = models.ForeignKey(Test, on_delete=models.CASCADE, related_name="results")
    score = models.IntegerField(default=0)
    correct_count = models.PositiveIntegerField(default=0)
    wrong_count = models.PositiveIntegerField(default=0)
    total_questions = models.PositiveIntegerField(default=0)
    accuracy = models.FloatField(default=0)
    time_taken_sec = models.FloatField(default=0)
    responses = models.JSONField(default=list, blank=True)
    date = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["test", "score"], name="exams_resul_test_id_5e0b7c_idx"),
            models.Index(fields=["user", "date"], name="exams_resul_user_id_0d6a1e_idx"),
        ]

    def __str__(self):
        return f"{self.user_id} | {self.test_id} | {self.score}"

    @property
    def out_of(self):
        return self.total_questions * (self.test.marks_correct if self.test_id else 4)
