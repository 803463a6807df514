from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from assessments.views import (
    AttemptDetailView,
    ManualGradeView,
    PendingGradingListView,
    StartAttemptView,
    StudentAttemptsView,
    SubmitAttemptView,
)
from exams.views import ExamViewSet

# Router
router = DefaultRouter()
router.register(r'exams', ExamViewSet, basename='exams')

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication ---
    path('api/auth/', include('users.urls')),

    # --- Student Exam Flow ---
    path('api/exams/<int:exam_id>/start/', StartAttemptView.as_view(), name='start-attempt'),
    path('api/exams/<int:exam_id>/attempts/<int:attempt_id>/submit/', SubmitAttemptView.as_view(), name='submit-attempt'),
    path('api/attempts/', StudentAttemptsView.as_view(), name='student-attempts'),
    path('api/attempts/<int:pk>/', AttemptDetailView.as_view(), name='attempt-detail'),

    # --- Instructor Grading ---
    path('api/exams/<int:exam_id>/attempts/<int:attempt_id>/grade/', ManualGradeView.as_view(), name='grade-attempt'),
    path('api/grading/pending/', PendingGradingListView.as_view(), name='grading-pending'),

    # --- Platform ---
    path('api/core/', include('cores.urls')),

    # --- Standard API Routes ---
    path('api/', include(router.urls)),
]
