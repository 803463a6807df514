"""
Batch transition of published exams whose close time has passed.

Called on a timer by the external scheduler (``manage.py reconcile_exams``)
and on demand by admins. Drafts are never touched.
"""
import logging
from datetime import timedelta

from django.utils import timezone

from .models import Exam

logger = logging.getLogger(__name__)


def reconcile(now=None):
    """Close every published exam past its close time. Returns the count."""
    now = now or timezone.now()
    # One UPDATE keyed on the current stored state; concurrent readers see
    # either the old row (which the resolver already reports as closed) or
    # the new one.
    closed = Exam.objects.filter(
        state=Exam.State.PUBLISHED, close_at__lt=now
    ).update(state=Exam.State.CLOSED, updated_at=now)
    if closed:
        logger.info("Reconciliation closed %d exam(s)", closed)
    else:
        logger.debug("Reconciliation found nothing to close")
    return closed


def closing_within(hours, now=None):
    """Published exams that close in the next ``hours`` hours."""
    now = now or timezone.now()
    limit = now + timedelta(hours=hours)
    return (
        Exam.objects.filter(state=Exam.State.PUBLISHED, close_at__gte=now, close_at__lte=limit)
        .select_related('course')
        .order_by('close_at')
    )


def opening_within(hours, now=None):
    """Published exams that open in the next ``hours`` hours."""
    now = now or timezone.now()
    limit = now + timedelta(hours=hours)
    return (
        Exam.objects.filter(state=Exam.State.PUBLISHED, open_at__gte=now, open_at__lte=limit)
        .select_related('course')
        .order_by('open_at')
    )
