from datetime import datetime, timedelta
from datetime import timezone as dt_timezone

from exams import availability

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=dt_timezone.utc)


def test_draft_stays_draft_whatever_the_clock():
    past_window = (NOW - timedelta(days=3), NOW - timedelta(days=2))
    assert availability.resolve_state('draft', *past_window, NOW) == 'draft'
    assert availability.summarize('draft', *past_window, NOW)['status'] == 'draft'


def test_published_exam_past_close_resolves_closed():
    open_at, close_at = NOW - timedelta(hours=3), NOW - timedelta(minutes=1)
    assert availability.resolve_state('published', open_at, close_at, NOW) == 'closed'

    summary = availability.summarize('published', open_at, close_at, NOW)
    assert summary['status'] == 'closed'
    assert summary['expired'] is True
    assert summary['available'] is False


def test_upcoming_exam_is_published_but_not_open():
    open_at, close_at = NOW + timedelta(hours=1), NOW + timedelta(hours=2)

    assert availability.resolve_state('published', open_at, close_at, NOW) == 'published'
    assert availability.is_open('published', open_at, close_at, NOW) is False

    summary = availability.summarize('published', open_at, close_at, NOW)
    assert summary['status'] == 'not_yet_open'
    assert summary['opens_in'] == '1 hour'


def test_opens_in_counts_days_beyond_one_day():
    open_at = NOW + timedelta(days=2, hours=1)
    summary = availability.summarize('published', open_at, open_at + timedelta(hours=2), NOW)
    assert summary['opens_in'] == '3 days'


def test_open_window_reports_time_left():
    open_at, close_at = NOW - timedelta(hours=1), NOW + timedelta(days=2, hours=5, minutes=30)

    assert availability.is_open('published', open_at, close_at, NOW) is True
    summary = availability.summarize('published', open_at, close_at, NOW)
    assert summary['status'] == 'open'
    assert summary['available'] is True
    assert summary['closes_in'] == '2 days and 5 hours'


def test_window_bounds_are_inclusive():
    open_at, close_at = NOW, NOW + timedelta(hours=1)
    assert availability.is_open('published', open_at, close_at, open_at) is True
    assert availability.is_open('published', open_at, close_at, close_at) is True
    assert availability.is_open('published', open_at, close_at, close_at + timedelta(seconds=1)) is False


def test_stored_closed_is_never_open():
    open_at, close_at = NOW - timedelta(hours=1), NOW + timedelta(hours=1)
    assert availability.resolve_state('closed', open_at, close_at, NOW) == 'closed'
    assert availability.is_open('closed', open_at, close_at, NOW) is False
    assert availability.summarize('closed', open_at, close_at, NOW)['expired'] is False
