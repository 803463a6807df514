"""
Aggregates over graded attempts.

Everything here is recomputed from the attempts passed in; nothing is patched
incrementally.
"""
from collections import namedtuple
from decimal import ROUND_HALF_UP, Decimal

from .grading import TWO_PLACES
from .models import Attempt

ExamStatistics = namedtuple('ExamStatistics', ['graded_count', 'average', 'passed', 'failed'])


def compute_statistics(percentages, passing_score):
    percentages = [Decimal(p) for p in percentages]
    if not percentages:
        return ExamStatistics(0, Decimal('0.00'), 0, 0)
    average = (sum(percentages) / len(percentages)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    passed = sum(1 for p in percentages if p >= passing_score)
    return ExamStatistics(len(percentages), average, passed, len(percentages) - passed)


def _graded(attempts):
    return [a for a in attempts if a.state == Attempt.State.GRADED]


def rank_attempts(attempts):
    """Graded attempts, best percentage first; earlier attempt wins a tie."""
    return sorted(_graded(attempts), key=lambda a: (-a.percentage, a.number))


def select_best_attempt(attempts):
    ranked = rank_attempts(attempts)
    return ranked[0] if ranked else None


def best_attempts_by_student(attempts):
    best = {}
    for attempt in rank_attempts(attempts):
        best.setdefault(attempt.student_id, attempt)
    return best
