from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status, views
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from cores.models import AuditLog
from exams.models import Exam
from exams.services import require_manager

from . import services
from .models import Attempt
from .permissions import IsInstructorOrAdmin, IsStudent
from .serializers import (
    AttemptSerializer,
    ManualGradeSerializer,
    StudentAttemptSerializer,
    SubmitAttemptSerializer,
)


# --- STUDENT VIEWS ---

class StartAttemptView(views.APIView):
    """
    Student starts an exam.
    Resumes the attempt already in progress instead of opening a second one.
    """
    permission_classes = [IsStudent]

    def post(self, request, exam_id):
        exam = get_object_or_404(Exam, id=exam_id)
        attempt, created = services.start_attempt(exam, request.user)
        return Response({
            "status": "Attempt started" if created else "Attempt already in progress",
            "attempt_id": attempt.id,
            "attempt_number": attempt.number,
            "duration_minutes": exam.duration_minutes,
            "started_at": attempt.started_at,
            "resumed": not created,
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class SubmitAttemptView(views.APIView):
    """
    Student submits answers.
    Auto-gradable questions are scored immediately.
    """
    permission_classes = [IsStudent]

    def post(self, request, exam_id, attempt_id):
        exam = get_object_or_404(Exam, id=exam_id)
        serializer = SubmitAttemptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        attempt = services.submit_attempt(exam, attempt_id, request.user, serializer.validated_data['answers'])
        return Response({
            "status": "Graded" if attempt.state == Attempt.State.GRADED else "Submitted, pending review",
            "attempt_id": attempt.id,
            "raw_score": attempt.raw_score,
            "percentage": attempt.percentage,
            "state": attempt.state,
        })


class StudentAttemptsView(generics.ListAPIView):
    """List all attempts of the logged-in student."""
    permission_classes = [IsStudent]
    serializer_class = StudentAttemptSerializer

    def get_queryset(self):
        queryset = (
            Attempt.objects.filter(student=self.request.user)
            .select_related('exam', 'student')
            .prefetch_related('answers')
            .order_by('-started_at')
        )
        exam_id = self.request.query_params.get('exam')
        if exam_id:
            queryset = queryset.filter(exam_id=exam_id)
        return queryset


class AttemptDetailView(generics.RetrieveAPIView):
    permission_classes = [permissions.IsAuthenticated]

    def get_serializer_class(self):
        if self.request.user.is_student:
            return StudentAttemptSerializer
        return AttemptSerializer

    def get_object(self):
        attempt = get_object_or_404(
            Attempt.objects.select_related('exam', 'student').prefetch_related('answers'),
            id=self.kwargs['pk'],
        )
        if self.request.user.is_student:
            if attempt.student_id != self.request.user.pk:
                # Other students' attempts are invisible, not forbidden
                raise NotFound("Attempt not found.")
        else:
            require_manager(attempt.exam, self.request.user)
        return attempt


# --- INSTRUCTOR VIEWS ---

class PendingGradingListView(generics.ListAPIView):
    """List submitted attempts that still owe manual grading."""
    permission_classes = [IsInstructorOrAdmin]
    serializer_class = AttemptSerializer

    def get_queryset(self):
        queryset = (
            Attempt.objects.filter(state=Attempt.State.COMPLETED)
            .select_related('exam', 'student')
            .prefetch_related('answers')
            .order_by('submitted_at')
        )
        if not self.request.user.is_admin:
            queryset = queryset.filter(exam__instructor=self.request.user)
        exam_id = self.request.query_params.get('exam')
        if exam_id:
            queryset = queryset.filter(exam_id=exam_id)
        return queryset


class ManualGradeView(views.APIView):
    """Instructor submits marks for the questions that need a human."""
    permission_classes = [IsInstructorOrAdmin]

    def post(self, request, exam_id, attempt_id):
        exam = get_object_or_404(Exam, id=exam_id)
        require_manager(exam, request.user)

        serializer = ManualGradeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        grades = [
            (grade['question_id'], grade['score'], grade.get('comment', ''))
            for grade in serializer.validated_data['grades']
        ]
        attempt = services.grade_attempt(exam, attempt_id, grades, serializer.validated_data.get('feedback'))

        AuditLog.record(
            request.user, 'GRADE', attempt,
            details=f"Graded attempt #{attempt.number} of {attempt.student} on {exam.title}: {attempt.percentage}%",
        )
        return Response({
            "status": "Graded successfully",
            "attempt_id": attempt.id,
            "raw_score": attempt.raw_score,
            "percentage": attempt.percentage,
            "state": attempt.state,
        })
