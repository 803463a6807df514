"""
Grading as pure transforms over answer snapshots.

Submission runs ``apply_auto_grading`` and manual review runs
``apply_manual_grades``; both take the current list of ``AnswerState`` and
return a new one, so either pass can be re-run on its own output.
"""
from collections import namedtuple
from decimal import ROUND_HALF_UP, Decimal

from exams.models import Question

TWO_PLACES = Decimal('0.01')
ZERO = Decimal('0')

QuestionKey = namedtuple('QuestionKey', ['question_id', 'question_type', 'weight', 'correct_value', 'correct_option'])
AnswerState = namedtuple('AnswerState', ['question_id', 'value', 'is_correct', 'score', 'comment'])
ManualGrade = namedtuple('ManualGrade', ['question_id', 'score', 'comment'])


def question_key(question):
    return QuestionKey(
        question_id=question.pk,
        question_type=question.question_type,
        weight=Decimal(question.weight),
        correct_value=question.correct_value,
        correct_option=question.correct_option_key(),
    )


def _normalize(value):
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value).strip()


def auto_grade(key, value):
    """Return ``(is_correct, score)`` for one answer.

    Multiple choice and true/false are all-or-nothing against the weight.
    Short answer and essay always defer to a human: ``(None, 0)``.
    """
    value = _normalize(value)
    if key.question_type == Question.QuestionType.MULTIPLE_CHOICE:
        is_correct = value is not None and key.correct_option is not None and value == key.correct_option
    elif key.question_type == Question.QuestionType.TRUE_FALSE:
        expected = _normalize(key.correct_value)
        is_correct = value is not None and bool(expected) and value.lower() == expected.lower()
    else:
        return None, ZERO
    return is_correct, (key.weight if is_correct else ZERO)


def apply_auto_grading(keys, states, submitted):
    """Record submitted values and score every auto-gradable answer.

    ``keys`` maps question id to ``QuestionKey``; ``submitted`` maps question
    id to the raw value the student sent. Unanswered questions keep their
    current value.
    """
    graded = []
    for state in states:
        key = keys[state.question_id]
        value = _normalize(submitted[state.question_id]) if state.question_id in submitted else state.value
        is_correct, score = auto_grade(key, value)
        graded.append(state._replace(value=value, is_correct=is_correct, score=score))
    return graded


def apply_manual_grades(states, grades):
    """Overwrite score and comment of the graded answers; correctness is ``score > 0``."""
    by_question = {grade.question_id: grade for grade in grades}
    merged = []
    for state in states:
        grade = by_question.get(state.question_id)
        if grade is None:
            merged.append(state)
            continue
        score = Decimal(grade.score)
        merged.append(state._replace(
            score=score,
            is_correct=score > 0,
            comment=grade.comment if grade.comment is not None else state.comment,
        ))
    return merged


def total_score(states):
    return sum((Decimal(state.score) for state in states), ZERO)


def percentage(raw_score, total_weight):
    total_weight = Decimal(total_weight)
    if total_weight == 0:
        return ZERO.quantize(TWO_PLACES)
    return (Decimal(100) * Decimal(raw_score) / total_weight).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def requires_manual_review(keys):
    return any(key.question_type in Question.MANUAL_TYPES for key in keys.values())


def pending_review(keys, states):
    """Ids of open questions whose answers have no verdict yet."""
    return [
        state.question_id for state in states
        if keys[state.question_id].question_type in Question.MANUAL_TYPES and state.is_correct is None
    ]
