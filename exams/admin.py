from django.contrib import admin

from .models import Exam, Option, Question


class OptionInline(admin.TabularInline):
    model = Option
    extra = 0


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ('prompt', 'exam', 'question_type', 'weight', 'order', 'is_auto_gradable')
    list_filter = ('question_type',)
    inlines = [OptionInline]


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ('title', 'course', 'state', 'open_at', 'close_at', 'total_weight')
    list_filter = ('state',)
    search_fields = ('title', 'course__code')
    readonly_fields = ('total_weight', 'stats_graded_count', 'stats_average', 'stats_passed', 'stats_failed')
