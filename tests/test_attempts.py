from datetime import timedelta
from decimal import Decimal
from unittest import mock

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from assessments import services
from assessments.models import Attempt
from exams.exceptions import AttemptConflict, AttemptsExhausted, ExamUnavailable, InvalidState
from exams.models import Exam

pytestmark = pytest.mark.django_db


def questions_by_type(exam):
    return {q.question_type: q for q in exam.questions.all()}


# --- START ---

def test_start_resumes_the_attempt_in_progress(exam_factory, student):
    exam = exam_factory()

    first, created = services.start_attempt(exam, student)
    again, created_again = services.start_attempt(exam, student)

    assert created is True
    assert created_again is False
    assert first.pk == again.pk
    assert first.number == 1
    assert Attempt.objects.filter(exam=exam, student=student).count() == 1
    assert first.answers.count() == exam.questions.count()


def test_attempt_numbers_are_contiguous_up_to_the_limit(exam_factory, student, q):
    exam = exam_factory(questions=[q.multiple_choice()], max_attempts=2)
    mc = exam.questions.get()

    for _ in range(2):
        attempt, _ = services.start_attempt(exam, student)
        services.submit_attempt(exam, attempt.pk, student, [{'question_id': mc.pk, 'answer': 'A'}])

    with pytest.raises(AttemptsExhausted) as exc:
        services.start_attempt(exam, student)

    assert exc.value.detail['code'] == 'attempts_exhausted'
    assert exc.value.detail['attempts_used'] == 2
    assert exc.value.detail['max_attempts'] == 2
    numbers = list(Attempt.objects.filter(exam=exam, student=student).order_by('number').values_list('number', flat=True))
    assert numbers == [1, 2]


def test_start_before_the_window_opens_is_rejected(exam_factory, student):
    exam = exam_factory(opens_in=timedelta(hours=1), closes_in=timedelta(hours=2))

    with pytest.raises(ExamUnavailable) as exc:
        services.start_attempt(exam, student)

    assert exc.value.detail['availability']['status'] == 'not_yet_open'
    assert exc.value.detail['state'] == 'published'
    assert not Attempt.objects.filter(exam=exam).exists()


def test_start_after_close_time_is_rejected_before_reconciliation(exam_factory, student):
    exam = exam_factory(opens_in=timedelta(hours=-3), closes_in=timedelta(hours=-1))
    assert exam.state == Exam.State.PUBLISHED

    with pytest.raises(ExamUnavailable) as exc:
        services.start_attempt(exam, student)

    assert exc.value.detail['state'] == 'closed'


def test_draft_cannot_be_started(exam_factory, student):
    exam = exam_factory(state=Exam.State.DRAFT)
    with pytest.raises(ExamUnavailable):
        services.start_attempt(exam, student)


def test_student_outside_the_course_cannot_start(exam_factory, outsider):
    exam = exam_factory()
    with pytest.raises(PermissionDenied):
        services.start_attempt(exam, outsider)


def test_losing_a_concurrent_start_reports_a_conflict(exam_factory, student):
    exam = exam_factory()

    with mock.patch.object(Attempt.objects, 'create', side_effect=IntegrityError('duplicate')):
        with pytest.raises(AttemptConflict) as exc:
            services.start_attempt(exam, student)

    assert exc.value.status_code == 409
    assert exc.value.detail['attempt_number'] == 1


def test_attempt_number_is_unique_per_student(exam_factory, student):
    exam = exam_factory()
    services.start_attempt(exam, student)

    with pytest.raises(IntegrityError), transaction.atomic():
        Attempt.objects.create(exam=exam, student=student, number=1, started_at=timezone.now())


# --- SUBMIT ---

def test_auto_gradable_submission_is_graded_at_once(exam_factory, student, other_student):
    exam = exam_factory()
    mc = exam.questions.get()

    attempt, _ = services.start_attempt(exam, student)
    attempt = services.submit_attempt(exam, attempt.pk, student, [{'question_id': mc.pk, 'answer': 'B'}])

    assert attempt.state == Attempt.State.GRADED
    assert attempt.raw_score == Decimal('2')
    assert attempt.percentage == Decimal('100.00')
    record = attempt.answers.get()
    assert record.value == 'B'
    assert record.is_correct is True

    wrong, _ = services.start_attempt(exam, other_student)
    wrong = services.submit_attempt(exam, wrong.pk, other_student, [{'question_id': mc.pk, 'answer': 'A'}])
    assert wrong.raw_score == Decimal('0')
    assert wrong.answers.get().is_correct is False

    exam.refresh_from_db()
    assert exam.stats_graded_count == 2
    assert exam.stats_passed == 1
    assert exam.stats_average == Decimal('50.00')


def test_submission_with_essay_waits_for_review(exam_factory, student, q):
    exam = exam_factory(questions=[q.true_false(), q.essay()])
    questions = questions_by_type(exam)

    attempt, _ = services.start_attempt(exam, student)
    attempt = services.submit_attempt(exam, attempt.pk, student, [
        {'question_id': questions['true_false'].pk, 'answer': 'True'},
        {'question_id': questions['essay'].pk, 'answer': 'Because the discriminant...'},
    ])

    assert attempt.state == Attempt.State.COMPLETED
    assert attempt.raw_score == Decimal('1')
    assert attempt.percentage == Decimal('20.00')
    assert attempt.submitted_at is not None
    essay = attempt.answers.get(question=questions['essay'])
    assert essay.is_correct is None
    assert essay.score == Decimal('0')

    exam.refresh_from_db()
    assert exam.stats_graded_count == 0


def test_second_submission_is_rejected(exam_factory, student):
    exam = exam_factory()
    mc = exam.questions.get()
    attempt, _ = services.start_attempt(exam, student)
    services.submit_attempt(exam, attempt.pk, student, [{'question_id': mc.pk, 'answer': 'B'}])

    with pytest.raises(InvalidState) as exc:
        services.submit_attempt(exam, attempt.pk, student, [{'question_id': mc.pk, 'answer': 'A'}])

    assert exc.value.detail['state'] == 'graded'
    attempt.refresh_from_db()
    assert attempt.raw_score == Decimal('2')


def test_submitting_someone_elses_attempt_is_forbidden(exam_factory, student, other_student):
    exam = exam_factory()
    attempt, _ = services.start_attempt(exam, student)

    with pytest.raises(PermissionDenied):
        services.submit_attempt(exam, attempt.pk, other_student, [])


def test_answer_to_a_foreign_question_is_rejected(exam_factory, student, q):
    exam = exam_factory()
    elsewhere = exam_factory(questions=[q.true_false()])
    attempt, _ = services.start_attempt(exam, student)

    with pytest.raises(NotFound):
        services.submit_attempt(exam, attempt.pk, student, [
            {'question_id': elsewhere.questions.get().pk, 'answer': 'true'},
        ])

    attempt.refresh_from_db()
    assert attempt.state == Attempt.State.IN_PROGRESS


def test_unknown_attempt_is_not_found(exam_factory, student):
    with pytest.raises(NotFound):
        services.submit_attempt(exam_factory(), 999999, student, [])


# --- MANUAL GRADING ---

@pytest.fixture
def submitted_essay_attempt(exam_factory, student, q):
    exam = exam_factory(questions=[q.true_false(), q.essay()])
    questions = questions_by_type(exam)
    attempt, _ = services.start_attempt(exam, student)
    services.submit_attempt(exam, attempt.pk, student, [
        {'question_id': questions['true_false'].pk, 'answer': True},
        {'question_id': questions['essay'].pk, 'answer': 'My essay'},
    ])
    return exam, attempt, questions


def test_manual_grade_completes_the_attempt(submitted_essay_attempt):
    exam, attempt, questions = submitted_essay_attempt

    attempt = services.grade_attempt(
        exam, attempt.pk, [(questions['essay'].pk, Decimal('3'), 'Clear argument')], feedback='Well done',
    )

    assert attempt.state == Attempt.State.GRADED
    assert attempt.raw_score == Decimal('4')
    assert attempt.percentage == Decimal('80.00')
    assert attempt.feedback == 'Well done'
    essay = attempt.answers.get(question=questions['essay'])
    assert essay.is_correct is True
    assert essay.comment == 'Clear argument'

    exam.refresh_from_db()
    assert exam.stats_graded_count == 1
    assert exam.stats_passed == 1
    assert exam.stats_average == Decimal('80.00')


def test_manual_score_above_weight_is_rejected(submitted_essay_attempt):
    exam, attempt, questions = submitted_essay_attempt

    with pytest.raises(ValidationError):
        services.grade_attempt(exam, attempt.pk, [(questions['essay'].pk, Decimal('4.50'), '')])

    attempt.refresh_from_db()
    assert attempt.state == Attempt.State.COMPLETED


def test_attempt_in_progress_cannot_be_graded(exam_factory, student, q):
    exam = exam_factory(questions=[q.essay()])
    attempt, _ = services.start_attempt(exam, student)

    with pytest.raises(InvalidState):
        services.grade_attempt(exam, attempt.pk, [(exam.questions.get().pk, 1, '')])


def test_grading_a_foreign_question_is_rejected(submitted_essay_attempt, exam_factory, q):
    exam, attempt, _ = submitted_essay_attempt
    other = exam_factory(questions=[q.essay()])

    with pytest.raises(NotFound):
        services.grade_attempt(exam, attempt.pk, [(other.questions.get().pk, 1, '')])


def test_graded_attempt_cannot_be_regraded(submitted_essay_attempt):
    exam, attempt, questions = submitted_essay_attempt
    services.grade_attempt(exam, attempt.pk, [(questions['essay'].pk, 2, '')])

    with pytest.raises(InvalidState):
        services.grade_attempt(exam, attempt.pk, [(questions['essay'].pk, 4, '')])


def test_grading_must_cover_every_open_question(submitted_essay_attempt):
    exam, attempt, questions = submitted_essay_attempt

    with pytest.raises(ValidationError) as exc:
        services.grade_attempt(exam, attempt.pk, [])

    assert str(questions['essay'].pk) in str(exc.value.detail['grades'])
    attempt.refresh_from_db()
    assert attempt.state == Attempt.State.COMPLETED
    assert attempt.answers.get(question=questions['essay']).is_correct is None


def test_elapsed_minutes_round_half_up(exam_factory, student):
    exam = exam_factory()
    started = timezone.now()
    attempt, _ = services.start_attempt(exam, student, now=started)

    attempt = services.submit_attempt(
        exam, attempt.pk, student, [], now=started + timedelta(minutes=2, seconds=30),
    )

    assert attempt.elapsed_minutes == 3
    assert services.elapsed_minutes(started, started + timedelta(seconds=89)) == 1
