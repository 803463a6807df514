"""
Roster lookups used by the assessment engine.

The engine never touches ``Course`` directly; it asks for a ``Roster`` and
authorises against it.
"""
from collections import namedtuple

from rest_framework.exceptions import NotFound

from .models import Course

Roster = namedtuple('Roster', ['course_id', 'instructor_id', 'student_ids'])


def get_roster(course_id):
    try:
        course = Course.objects.get(pk=course_id)
    except (Course.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Course {course_id} not found.")
    student_ids = frozenset(course.students.values_list('id', flat=True))
    return Roster(course.pk, course.instructor_id, student_ids)


def is_enrolled(roster, user):
    return user.pk in roster.student_ids


def can_manage(roster, user):
    return user.is_admin or roster.instructor_id == user.pk


def enrolled_course_ids(user):
    return list(user.enrolled_courses.values_list('id', flat=True))
