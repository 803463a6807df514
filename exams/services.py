"""
Exam authoring and lifecycle operations.

Views validate payloads with serializers and then call into here; every
function raises DRF exceptions that the framework turns into responses.
"""
import logging
import string

from django.db import transaction
from rest_framework.exceptions import PermissionDenied

from courses.roster import can_manage, get_roster

from .exceptions import InvalidState
from .models import Exam, Option, Question

logger = logging.getLogger(__name__)


def option_key(index):
    if index < len(string.ascii_uppercase):
        return string.ascii_uppercase[index]
    return str(index + 1)


def require_manager(exam_or_course_id, user):
    """Only the owning instructor or an admin may change an exam."""
    if isinstance(exam_or_course_id, Exam):
        allowed = user.is_admin or exam_or_course_id.instructor_id == user.pk
    else:
        allowed = can_manage(get_roster(exam_or_course_id), user)
    if not allowed:
        raise PermissionDenied("You do not have permission to manage this exam.")


def _create_questions(exam, questions_data):
    for index, data in enumerate(questions_data):
        options = data.get('options') or []
        order = data.get('order')
        question = Question.objects.create(
            exam=exam,
            question_type=data['question_type'],
            prompt=data['prompt'],
            correct_value=data.get('correct_value') or '',
            weight=data['weight'],
            order=index if order is None else order,
        )
        Option.objects.bulk_create([
            Option(
                question=question,
                key=opt.get('key') or option_key(position),
                text=opt['text'],
                is_correct=opt.get('is_correct', False),
                order=position,
            )
            for position, opt in enumerate(options)
        ])


def blocking_attempts(exam):
    """Attempts that have left ``in_progress`` and therefore freeze the questions."""
    from assessments.models import Attempt

    return list(
        exam.attempts.exclude(state=Attempt.State.IN_PROGRESS)
        .order_by('id')
        .values_list('id', flat=True)
    )


@transaction.atomic
def create_exam(user, course_id, questions_data, **fields):
    require_manager(course_id, user)
    exam = Exam.objects.create(course_id=course_id, instructor=user, state=Exam.State.DRAFT, **fields)
    _create_questions(exam, questions_data)
    exam.recalculate_total_weight()
    exam.save(update_fields=['total_weight'])
    logger.info("Exam %s created by %s with %d question(s)", exam.pk, user, len(questions_data))
    return exam


@transaction.atomic
def replace_questions(exam, questions_data):
    """Swap the whole question list and re-seed any in-progress attempts."""
    from assessments.services import reseed_answer_records

    blocking = blocking_attempts(exam)
    if blocking:
        logger.warning("Refused question edit on exam %s; blocking attempts %s", exam.pk, blocking)
        raise InvalidState(
            "Questions cannot change once attempts have been submitted.",
            state=exam.state,
            blocking_attempts=blocking,
        )
    exam.questions.all().delete()
    _create_questions(exam, questions_data)
    exam.recalculate_total_weight()
    exam.save(update_fields=['total_weight', 'updated_at'])
    reseed_answer_records(exam)
    return exam


def _transition(exam, user, source, target):
    require_manager(exam, user)
    with transaction.atomic():
        exam = Exam.objects.select_for_update().get(pk=exam.pk)
        if exam.state != source:
            raise InvalidState(
                f"Only a {source} exam can become {target}.",
                state=exam.state,
                expected_state=source,
            )
        exam.state = target
        exam.save(update_fields=['state', 'updated_at'])
    logger.info("Exam %s moved %s -> %s by %s", exam.pk, source, target, user)
    return exam


def publish_exam(exam, user):
    return _transition(exam, user, Exam.State.DRAFT, Exam.State.PUBLISHED)


def close_exam(exam, user):
    return _transition(exam, user, Exam.State.PUBLISHED, Exam.State.CLOSED)


def delete_exam(exam, user):
    require_manager(exam, user)
    exam_id = exam.pk
    exam.delete()
    logger.info("Exam %s deleted by %s", exam_id, user)
