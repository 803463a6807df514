# aula_platform/courses/models.py
from django.conf import settings
from django.db import models


class Course(models.Model):
    """Roster record: who teaches a course and who is enrolled in it."""
    title = models.CharField(max_length=255)
    code = models.CharField(max_length=30, unique=True)
    instructor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='taught_courses'
    )
    students = models.ManyToManyField(
        settings.AUTH_USER_MODEL, related_name='enrolled_courses', blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['code']

    def __str__(self):
        return f"{self.code} - {self.title}"
