# aula_platform/exams/models.py
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Sum

from courses.models import Course


class Exam(models.Model):
    class State(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISHED = "published", "Published"
        CLOSED = "closed", "Closed"

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='exams')
    instructor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='authored_exams')

    # Configuration block
    duration_minutes = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    max_attempts = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    show_answers = models.BooleanField(default=True, help_text="Reveal correct answers once an attempt is graded")
    shuffle_questions = models.BooleanField(default=False)
    shuffle_options = models.BooleanField(default=False)
    passing_score = models.PositiveIntegerField(default=60, validators=[MaxValueValidator(100)])

    open_at = models.DateTimeField()
    close_at = models.DateTimeField()

    total_weight = models.DecimalField(max_digits=9, decimal_places=2, default=Decimal('0'))
    state = models.CharField(max_length=20, choices=State.choices, default=State.DRAFT)

    # Derived statistics, only written by assessments.services.refresh_statistics
    stats_graded_count = models.PositiveIntegerField(default=0)
    stats_average = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))
    stats_passed = models.PositiveIntegerField(default=0)
    stats_failed = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-close_at', '-created_at']
        indexes = [
            models.Index(fields=['course', 'state'], name='exam_course_state_idx'),
            models.Index(fields=['state', 'close_at'], name='exam_state_close_idx'),
            models.Index(fields=['open_at', 'close_at'], name='exam_window_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(open_at__lt=models.F('close_at')), name='exam_open_before_close'),
        ]

    def __str__(self):
        return self.title

    def recalculate_total_weight(self):
        total = self.questions.aggregate(total=Sum('weight'))['total']
        self.total_weight = total or Decimal('0')
        return self.total_weight


class Question(models.Model):
    class QuestionType(models.TextChoices):
        MULTIPLE_CHOICE = "multiple_choice", "Multiple Choice"
        TRUE_FALSE = "true_false", "True / False"
        SHORT_ANSWER = "short_answer", "Short Answer"
        ESSAY = "essay", "Essay"

    AUTO_TYPES = (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE)
    MANUAL_TYPES = (QuestionType.SHORT_ANSWER, QuestionType.ESSAY)

    exam = models.ForeignKey(Exam, related_name='questions', on_delete=models.CASCADE)
    question_type = models.CharField(max_length=20, choices=QuestionType.choices)
    prompt = models.TextField()
    # Canonical value for true/false, reference answer for short answers
    correct_value = models.TextField(blank=True)
    weight = models.DecimalField(max_digits=7, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order', 'id']
        constraints = [
            models.CheckConstraint(condition=models.Q(weight__gte=0), name='question_weight_non_negative'),
        ]

    def __str__(self):
        return f"{self.prompt[:50]}..."

    @property
    def is_auto_gradable(self):
        return self.question_type in self.AUTO_TYPES

    def correct_option_key(self):
        for option in self.options.all():
            if option.is_correct:
                return option.key
        return None


class Option(models.Model):
    question = models.ForeignKey(Question, related_name='options', on_delete=models.CASCADE)
    key = models.CharField(max_length=20)
    text = models.CharField(max_length=500)
    is_correct = models.BooleanField(default=False)
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order', 'id']
        constraints = [
            models.UniqueConstraint(fields=['question', 'key'], name='unique_option_key_per_question'),
        ]

    def __str__(self):
        return f"{self.key}) {self.text}"
