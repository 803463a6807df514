"""
Attempt tracker: start, submit and manually grade attempts.

States run ``in_progress -> completed -> graded``, or straight to ``graded``
at submission when the exam has nothing that needs a human. Each mutation
is one transaction that locks the rows it rewrites.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from courses.roster import get_roster, is_enrolled
from exams import availability
from exams.exceptions import AttemptConflict, AttemptsExhausted, ExamUnavailable, InvalidState
from exams.models import Exam

from . import grading
from .models import AnswerRecord, Attempt
from .statistics import compute_statistics

logger = logging.getLogger(__name__)


def _question_keys(exam):
    questions = exam.questions.prefetch_related('options')
    return {q.pk: grading.question_key(q) for q in questions}


def _states(attempt):
    return [
        grading.AnswerState(r.question_id, r.value, r.is_correct, r.score, r.comment)
        for r in attempt.answers.all()
    ]


def _write_states(attempt, states):
    records = {r.question_id: r for r in attempt.answers.all()}
    changed = []
    for state in states:
        record = records[state.question_id]
        record.value = state.value
        record.is_correct = state.is_correct
        record.score = state.score
        record.comment = state.comment or ''
        changed.append(record)
    AnswerRecord.objects.bulk_update(changed, ['value', 'is_correct', 'score', 'comment'])


def _seed_answers(attempt, exam):
    AnswerRecord.objects.bulk_create([
        AnswerRecord(attempt=attempt, question=question)
        for question in exam.questions.order_by('order', 'id')
    ])


def _get_attempt_for_update(exam, attempt_id):
    try:
        return Attempt.objects.select_for_update().get(pk=attempt_id, exam=exam)
    except (Attempt.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Attempt {attempt_id} not found for this exam.")


# --- START ---

def start_attempt(exam, student, now=None):
    """
    Open a new attempt, or hand back the one already in progress.

    Returns ``(attempt, created)``.
    """
    now = now or timezone.now()
    roster = get_roster(exam.course_id)
    if not is_enrolled(roster, student):
        raise PermissionDenied("Only students enrolled in the course can take this exam.")

    if not availability.is_open(exam.state, exam.open_at, exam.close_at, now):
        summary = availability.summarize(exam.state, exam.open_at, exam.close_at, now)
        raise ExamUnavailable(
            summary['reason'],
            state=availability.resolve_state(exam.state, exam.open_at, exam.close_at, now),
            availability=summary,
        )

    with transaction.atomic():
        previous = list(
            Attempt.objects.select_for_update()
            .filter(exam=exam, student=student)
            .order_by('number')
        )
        in_progress = next((a for a in previous if a.state == Attempt.State.IN_PROGRESS), None)
        if in_progress is not None:
            return in_progress, False

        if len(previous) >= exam.max_attempts:
            raise AttemptsExhausted(attempts_used=len(previous), max_attempts=exam.max_attempts)

        try:
            with transaction.atomic():
                attempt = Attempt.objects.create(
                    exam=exam,
                    student=student,
                    number=len(previous) + 1,
                    state=Attempt.State.IN_PROGRESS,
                    started_at=now,
                )
        except IntegrityError:
            logger.warning("Concurrent start for exam %s by %s lost the race", exam.pk, student)
            raise AttemptConflict(attempt_number=len(previous) + 1)

        _seed_answers(attempt, exam)

    logger.info("Attempt %s (#%d) started on exam %s by %s", attempt.pk, attempt.number, exam.pk, student)
    return attempt, True


def reseed_answer_records(exam):
    """Give in-progress attempts a fresh empty record per current question."""
    for attempt in exam.attempts.filter(state=Attempt.State.IN_PROGRESS):
        attempt.answers.all().delete()
        _seed_answers(attempt, exam)


# --- SUBMIT ---

def elapsed_minutes(started_at, now):
    """Whole minutes between start and submission, halves rounded up."""
    seconds = Decimal(str(max(0, (now - started_at).total_seconds())))
    return int((seconds / 60).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _parse_submitted(keys, answers):
    submitted = {}
    for answer in answers:
        question_id = answer['question_id']
        if question_id not in keys:
            raise NotFound(f"Question {question_id} is not part of this exam.")
        submitted[question_id] = answer.get('answer')
    return submitted


def submit_attempt(exam, attempt_id, student, answers, now=None):
    now = now or timezone.now()
    with transaction.atomic():
        attempt = _get_attempt_for_update(exam, attempt_id)
        if attempt.student_id != student.pk:
            raise PermissionDenied("This attempt belongs to another student.")
        if attempt.state != Attempt.State.IN_PROGRESS:
            raise InvalidState("This attempt was already submitted.", state=attempt.state)

        keys = _question_keys(exam)
        submitted = _parse_submitted(keys, answers)
        states = grading.apply_auto_grading(keys, _states(attempt), submitted)
        _write_states(attempt, states)

        attempt.raw_score = grading.total_score(states)
        attempt.percentage = grading.percentage(attempt.raw_score, exam.total_weight)
        attempt.submitted_at = now
        attempt.elapsed_minutes = elapsed_minutes(attempt.started_at, now)
        if grading.requires_manual_review(keys):
            attempt.state = Attempt.State.COMPLETED
        else:
            attempt.state = Attempt.State.GRADED
        attempt.save(update_fields=['raw_score', 'percentage', 'submitted_at', 'elapsed_minutes', 'state'])

        if attempt.state == Attempt.State.GRADED:
            refresh_statistics(exam)

    logger.info(
        "Attempt %s submitted: score=%s percentage=%s state=%s",
        attempt.pk, attempt.raw_score, attempt.percentage, attempt.state,
    )
    return attempt


# --- MANUAL GRADING ---

def grade_attempt(exam, attempt_id, grades, feedback=None):
    """
    Merge human scores into a submitted attempt and mark it graded.

    ``grades`` is a list of ``(question_id, score, comment)``; the raw score
    is re-summed over every answer, not just the merged ones.
    """
    with transaction.atomic():
        attempt = _get_attempt_for_update(exam, attempt_id)
        if attempt.state != Attempt.State.COMPLETED:
            raise InvalidState("Only submitted attempts awaiting review can be graded.", state=attempt.state)

        keys = _question_keys(exam)
        merged = []
        for question_id, score, comment in grades:
            key = keys.get(question_id)
            if key is None:
                raise NotFound(f"Question {question_id} is not part of this exam.")
            score = Decimal(score)
            if score < 0 or score > key.weight:
                raise ValidationError({
                    'grades': f"Score for question {question_id} must be between 0 and {key.weight}."
                })
            merged.append(grading.ManualGrade(question_id, score, comment))

        states = grading.apply_manual_grades(_states(attempt), merged)
        ungraded = grading.pending_review(keys, states)
        if ungraded:
            raise ValidationError({
                'grades': f"Questions {ungraded} still need a score before the attempt can be graded."
            })
        _write_states(attempt, states)

        attempt.raw_score = grading.total_score(states)
        attempt.percentage = grading.percentage(attempt.raw_score, exam.total_weight)
        attempt.state = Attempt.State.GRADED
        if feedback is not None:
            attempt.feedback = feedback
        attempt.save(update_fields=['raw_score', 'percentage', 'state', 'feedback'])

        refresh_statistics(exam)

    logger.info("Attempt %s graded manually: score=%s percentage=%s", attempt.pk, attempt.raw_score, attempt.percentage)
    return attempt


# --- STATISTICS ---

def refresh_statistics(exam):
    percentages = exam.attempts.filter(state=Attempt.State.GRADED).values_list('percentage', flat=True)
    stats = compute_statistics(list(percentages), exam.passing_score)
    Exam.objects.filter(pk=exam.pk).update(
        stats_graded_count=stats.graded_count,
        stats_average=stats.average,
        stats_passed=stats.passed,
        stats_failed=stats.failed,
    )
    exam.stats_graded_count = stats.graded_count
    exam.stats_average = stats.average
    exam.stats_passed = stats.passed
    exam.stats_failed = stats.failed
    return stats
