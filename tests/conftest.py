from datetime import timedelta

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from courses.models import Course
from exams import services as exam_services
from exams.models import Exam
from users.models import User

PASSWORD = 'pass-1234'


@pytest.fixture(autouse=True)
def clear_settings_cache():
    # PlatformSetting caches itself; drop it so each test sees its own rows
    cache.clear()
    yield
    cache.clear()


def make_user(email, role):
    return User.objects.create_user(
        username=email.split('@')[0], email=email, password=PASSWORD, role=role,
    )


@pytest.fixture
def instructor(db):
    return make_user('instructor@example.com', User.Role.INSTRUCTOR)


@pytest.fixture
def other_instructor(db):
    return make_user('other.instructor@example.com', User.Role.INSTRUCTOR)


@pytest.fixture
def admin_user(db):
    return make_user('admin@example.com', User.Role.ADMIN)


@pytest.fixture
def student(db):
    return make_user('ana@example.com', User.Role.STUDENT)


@pytest.fixture
def other_student(db):
    return make_user('bruno@example.com', User.Role.STUDENT)


@pytest.fixture
def outsider(db):
    return make_user('carla@example.com', User.Role.STUDENT)


@pytest.fixture
def course(instructor, student, other_student):
    course = Course.objects.create(title='Algebra', code='MATH101', instructor=instructor)
    course.students.add(student, other_student)
    return course


class QuestionData:
    """Payload builders matching what the exam API accepts."""

    @staticmethod
    def multiple_choice(weight=2, correct='B', keys=('A', 'B', 'C'), order=None):
        return {
            'question_type': 'multiple_choice',
            'prompt': 'Pick the prime number',
            'weight': weight,
            'order': order,
            'options': [
                {'key': key, 'text': f'Option {key}', 'is_correct': key == correct}
                for key in keys
            ],
        }

    @staticmethod
    def true_false(weight=1, correct='true', order=None):
        return {
            'question_type': 'true_false',
            'prompt': 'Zero is an even number',
            'weight': weight,
            'order': order,
            'correct_value': correct,
        }

    @staticmethod
    def essay(weight=4, order=None):
        return {
            'question_type': 'essay',
            'prompt': 'Explain the quadratic formula',
            'weight': weight,
            'order': order,
        }

    @staticmethod
    def short_answer(weight=2, reference='42', order=None):
        return {
            'question_type': 'short_answer',
            'prompt': 'What is six times seven?',
            'weight': weight,
            'order': order,
            'correct_value': reference,
        }


@pytest.fixture
def q():
    return QuestionData


@pytest.fixture
def exam_factory(instructor, course):
    def build(questions=None, state=Exam.State.PUBLISHED, opens_in=timedelta(hours=-1),
              closes_in=timedelta(hours=1), owner=None, **config):
        now = timezone.now()
        fields = {'title': 'Midterm', 'duration_minutes': 45, 'max_attempts': 1, 'passing_score': 60}
        fields.update(config)
        if questions is None:
            questions = [QuestionData.multiple_choice()]
        exam = exam_services.create_exam(
            owner or instructor, course.pk, questions,
            open_at=now + opens_in, close_at=now + closes_in, **fields
        )
        if state != Exam.State.DRAFT:
            Exam.objects.filter(pk=exam.pk).update(state=state)
            exam.refresh_from_db()
        return exam
    return build


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def login(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return login
