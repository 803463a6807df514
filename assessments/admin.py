from django.contrib import admin

from .models import AnswerRecord, Attempt


class AnswerRecordInline(admin.TabularInline):
    model = AnswerRecord
    extra = 0


@admin.register(Attempt)
class AttemptAdmin(admin.ModelAdmin):
    list_display = ('exam', 'student', 'number', 'state', 'percentage', 'submitted_at')
    list_filter = ('state',)
    inlines = [AnswerRecordInline]
