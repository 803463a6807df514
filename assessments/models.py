# assessments/models.py
from decimal import Decimal

from django.conf import settings
from django.db import models

from exams.models import Exam, Question


class Attempt(models.Model):
    """One student's timed pass at an exam."""

    class State(models.TextChoices):
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"  # Submitted, manual grading owed
        GRADED = "graded", "Graded"

    exam = models.ForeignKey(Exam, related_name='attempts', on_delete=models.CASCADE)
    student = models.ForeignKey(settings.AUTH_USER_MODEL, related_name='attempts', on_delete=models.CASCADE)
    number = models.PositiveIntegerField()

    state = models.CharField(max_length=20, choices=State.choices, default=State.IN_PROGRESS)
    raw_score = models.DecimalField(max_digits=9, decimal_places=2, default=Decimal('0'))
    percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))

    started_at = models.DateTimeField()
    submitted_at = models.DateTimeField(null=True, blank=True)
    elapsed_minutes = models.PositiveIntegerField(null=True, blank=True)
    feedback = models.TextField(blank=True)

    class Meta:
        ordering = ['exam', 'student', 'number']
        constraints = [
            # A racing second start for the same slot fails here instead of
            # creating a duplicate attempt number.
            models.UniqueConstraint(fields=['exam', 'student', 'number'], name='unique_attempt_number_per_student'),
        ]
        indexes = [
            models.Index(fields=['exam', 'state'], name='attempt_exam_state_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.exam.title} #{self.number}"


class AnswerRecord(models.Model):
    attempt = models.ForeignKey(Attempt, related_name='answers', on_delete=models.CASCADE)
    question = models.ForeignKey(Question, related_name='answer_records', on_delete=models.CASCADE)

    value = models.TextField(null=True, blank=True)
    # None until decided; only short answer and essay stay None after submission
    is_correct = models.BooleanField(null=True)
    score = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal('0'))
    comment = models.TextField(blank=True)

    class Meta:
        ordering = ['question__order', 'question_id']
        constraints = [
            models.UniqueConstraint(fields=['attempt', 'question'], name='unique_answer_per_question'),
        ]

    def __str__(self):
        return f"Attempt {self.attempt_id} / Q{self.question_id}"
