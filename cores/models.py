from django.conf import settings
from django.core.cache import cache
from django.db import models


class PlatformSetting(models.Model):
    # --- General ---
    site_name = models.CharField(max_length=100, default="Aula Campus")
    support_email = models.EmailField(default="support@aula.local")

    # --- Exam Defaults ---
    default_pass_mark = models.PositiveIntegerField(default=60, help_text="Default pass mark percentage")
    default_exam_duration = models.PositiveIntegerField(default=60, help_text="Default duration in minutes")
    default_max_attempts = models.PositiveIntegerField(default=1)
    default_reminder_hours = models.PositiveIntegerField(
        default=24, help_text="Look-ahead window for closing/opening reminders"
    )

    def save(self, *args, **kwargs):
        self.pk = 1  # Singleton pattern
        super().save(*args, **kwargs)
        cache.set('platform_settings', self)

    def delete(self, *args, **kwargs):
        pass

    @classmethod
    def load(cls):
        obj = cache.get('platform_settings')
        if obj is None:
            obj, created = cls.objects.get_or_create(pk=1)
            cache.set('platform_settings', obj)
        return obj

    def __str__(self):
        return "Platform Settings"


class AuditLog(models.Model):
    ACTION_CHOICES = [
        ('CREATE', 'Create'),
        ('UPDATE', 'Update'),
        ('DELETE', 'Delete'),
        ('PUBLISH', 'Exam Published'),
        ('CLOSE', 'Exam Closed'),
        ('GRADE', 'Grade Submitted'),
        ('SETTINGS', 'Settings Changed'),
    ]

    actor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    target_model = models.CharField(max_length=50, help_text="e.g., Exam, Attempt")
    target_object_id = models.CharField(max_length=100, blank=True, null=True)
    details = models.TextField(blank=True, help_text="Description of changes")
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.actor} - {self.action} - {self.timestamp}"

    @classmethod
    def record(cls, actor, action, target, details=''):
        return cls.objects.create(
            actor=actor if actor is not None and actor.is_authenticated else None,
            action=action,
            target_model=type(target).__name__,
            target_object_id=str(target.pk),
            details=details,
        )
