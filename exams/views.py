import logging

from django.db.models import Prefetch
from django.utils import timezone
from rest_framework import filters, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from assessments.models import Attempt
from assessments.permissions import IsInstructorOrAdmin
from assessments.serializers import RankedAttemptSerializer
from assessments.statistics import best_attempts_by_student, rank_attempts
from cores.models import AuditLog, PlatformSetting
from cores.permissions import IsPlatformAdmin
from courses.roster import enrolled_course_ids, get_roster, is_enrolled

from . import availability, reconciliation, services
from .models import Exam, Question
from .serializers import ExamListSerializer, ExamSerializer, StudentExamSerializer

logger = logging.getLogger(__name__)


class ExamViewSet(viewsets.ModelViewSet):
    queryset = Exam.objects.all().select_related('course').order_by('-close_at', '-created_at')

    # Enable search on title and course code
    filter_backends = [filters.SearchFilter]
    search_fields = ['title', 'course__code']

    def get_queryset(self):
        user = self.request.user
        queryset = super().get_queryset().prefetch_related(
            Prefetch('questions', queryset=Question.objects.prefetch_related('options')),
            'attempts',
        )
        course_id = self.request.query_params.get('course')
        if course_id:
            queryset = queryset.filter(course_id=course_id)

        if user.is_student:
            # Students never see drafts
            queryset = queryset.exclude(state=Exam.State.DRAFT)
            if self.action == 'list':
                queryset = queryset.filter(course_id__in=enrolled_course_ids(user))
            return queryset
        if self.action == 'list' and not user.is_admin:
            return queryset.filter(instructor=user)
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return ExamListSerializer
        if self.action == 'retrieve' and self.request.user.is_student:
            return StudentExamSerializer
        return ExamSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['now'] = timezone.now()
        return context

    def get_permissions(self):
        if self.action in ['list', 'retrieve']:
            return [permissions.IsAuthenticated()]
        if self.action == 'reconcile':
            return [IsPlatformAdmin()]
        return [IsInstructorOrAdmin()]

    def get_object(self):
        exam = super().get_object()
        user = self.request.user
        if user.is_student:
            roster = get_roster(exam.course_id)
            if not is_enrolled(roster, user):
                raise PermissionDenied("You are not enrolled in this course.")
        else:
            services.require_manager(exam, user)
        return exam

    # --- CRUD ---

    def perform_create(self, serializer):
        exam = serializer.save()
        AuditLog.record(self.request.user, 'CREATE', exam, details=f"Created exam: {exam.title}")

    def perform_update(self, serializer):
        exam = serializer.save()
        AuditLog.record(self.request.user, 'UPDATE', exam, details=f"Updated exam: {exam.title}")

    def perform_destroy(self, instance):
        AuditLog.record(self.request.user, 'DELETE', instance, details=f"Deleted exam: {instance.title}")
        services.delete_exam(instance, self.request.user)

    # --- LIFECYCLE ---

    @action(detail=True, methods=['post'])
    def publish(self, request, pk=None):
        exam = services.publish_exam(self.get_object(), request.user)
        AuditLog.record(request.user, 'PUBLISH', exam, details=f"Published exam: {exam.title}")
        return Response(ExamSerializer(exam, context=self.get_serializer_context()).data)

    @action(detail=True, methods=['post'])
    def close(self, request, pk=None):
        exam = services.close_exam(self.get_object(), request.user)
        AuditLog.record(request.user, 'CLOSE', exam, details=f"Closed exam: {exam.title}")
        return Response(ExamSerializer(exam, context=self.get_serializer_context()).data)

    @action(detail=False, methods=['post'])
    def reconcile(self, request):
        count = reconciliation.reconcile()
        logger.info("Manual reconciliation by %s closed %d exam(s)", request.user, count)
        return Response({"status": "States reconciled", "closed": count})

    # --- REMINDER FEEDS ---

    def _reminder_hours(self, request):
        raw = request.query_params.get('hours')
        if raw is None:
            return PlatformSetting.load().default_reminder_hours
        try:
            hours = int(raw)
        except ValueError:
            raise ValidationError({'hours': "Must be a whole number of hours."})
        if hours < 1:
            raise ValidationError({'hours': "Must be at least 1."})
        return hours

    def _reminder_feed(self, request, queryset):
        if not request.user.is_admin:
            queryset = queryset.filter(instructor=request.user)
        serializer = ExamListSerializer(queryset, many=True, context=self.get_serializer_context())
        return Response(serializer.data)

    @action(detail=False, methods=['get'], url_path='closing-soon')
    def closing_soon(self, request):
        return self._reminder_feed(request, reconciliation.closing_within(self._reminder_hours(request)))

    @action(detail=False, methods=['get'], url_path='opening-soon')
    def opening_soon(self, request):
        return self._reminder_feed(request, reconciliation.opening_within(self._reminder_hours(request)))

    # --- STATISTICS ---

    @action(detail=True, methods=['get'])
    def statistics(self, request, pk=None):
        exam = self.get_object()
        now = timezone.now()
        attempts = list(exam.attempts.select_related('student'))
        enrolled = get_roster(exam.course_id).student_ids
        enrolled_attempts = [a for a in attempts if a.student_id in enrolled]

        ranked = rank_attempts(enrolled_attempts)
        percentages = [a.percentage for a in ranked]
        best = sorted(best_attempts_by_student(enrolled_attempts).values(), key=lambda a: (-a.percentage, a.number))

        return Response({
            'total_attempts': len(attempts),
            'in_progress': sum(1 for a in attempts if a.state == Attempt.State.IN_PROGRESS),
            'pending_grading': sum(1 for a in attempts if a.state == Attempt.State.COMPLETED),
            'graded': sum(1 for a in attempts if a.state == Attempt.State.GRADED),
            'graded_count': exam.stats_graded_count,
            'average': exam.stats_average,
            'passed': exam.stats_passed,
            'failed': exam.stats_failed,
            'best_percentage': max(percentages) if percentages else 0,
            'worst_percentage': min(percentages) if percentages else 0,
            'ranked_attempts': RankedAttemptSerializer(ranked, many=True).data,
            'best_attempts': RankedAttemptSerializer(best, many=True).data,
            'state': exam.state,
            'effective_state': availability.resolve_state(exam.state, exam.open_at, exam.close_at, now),
            'availability': availability.summarize(exam.state, exam.open_at, exam.close_at, now),
        }, status=status.HTTP_200_OK)
