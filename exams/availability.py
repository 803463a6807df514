"""
Effective availability of an exam.

The stored ``Exam.state`` is only as fresh as the last reconciliation run, so
every read path asks these functions instead of looking at the column. Both
functions are pure: they only look at their arguments.
"""
import math

DRAFT = "draft"
PUBLISHED = "published"
CLOSED = "closed"

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR


def resolve_state(stored_state, open_at, close_at, now):
    """Map the stored lifecycle state onto what is true at ``now``.

    A draft stays a draft no matter the clock; publication is a human act.
    A published exam past its close time is closed. A published exam whose
    window has not opened yet is still published (upcoming).
    """
    if stored_state == DRAFT:
        return DRAFT
    if stored_state == PUBLISHED and now > close_at:
        return CLOSED
    return stored_state


def is_open(stored_state, open_at, close_at, now):
    return (
        resolve_state(stored_state, open_at, close_at, now) == PUBLISHED
        and open_at <= now <= close_at
    )


def _plural(value, unit):
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


def summarize(stored_state, open_at, close_at, now):
    """Human readable availability block for list and detail views."""
    effective = resolve_state(stored_state, open_at, close_at, now)

    if effective == DRAFT:
        return {'available': False, 'status': 'draft', 'reason': "The exam is still a draft."}

    if effective == CLOSED:
        return {
            'available': False,
            'status': 'closed',
            'reason': "The exam is closed.",
            'expired': now > close_at,
        }

    if now < open_at:
        remaining = (open_at - now).total_seconds()
        days = math.ceil(remaining / SECONDS_PER_DAY)
        hours = math.ceil(remaining / SECONDS_PER_HOUR)
        return {
            'available': False,
            'status': 'not_yet_open',
            'reason': "The exam is not open yet.",
            'opens_in': _plural(days, 'day') if days > 1 else _plural(hours, 'hour'),
            'open_at': open_at,
        }

    remaining = (close_at - now).total_seconds()
    days = int(remaining // SECONDS_PER_DAY)
    hours = int((remaining % SECONDS_PER_DAY) // SECONDS_PER_HOUR)
    if days > 0:
        closes_in = f"{_plural(days, 'day')} and {_plural(hours, 'hour')}"
    else:
        closes_in = _plural(hours, 'hour')
    return {
        'available': True,
        'status': 'open',
        'closes_in': closes_in,
        'close_at': close_at,
    }
