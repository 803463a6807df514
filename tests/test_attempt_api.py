from datetime import timedelta

import pytest

from assessments.models import Attempt
from cores.models import AuditLog

pytestmark = pytest.mark.django_db


@pytest.fixture
def essay_exam(exam_factory, q):
    return exam_factory(questions=[q.true_false(), q.essay()])


def question_ids(exam):
    return {q.question_type: q.pk for q in exam.questions.all()}


def test_start_then_resume(client_for, student, essay_exam):
    client = client_for(student)

    response = client.post(f'/api/exams/{essay_exam.pk}/start/')
    assert response.status_code == 201
    assert response.data['attempt_number'] == 1
    assert response.data['duration_minutes'] == 45
    assert response.data['resumed'] is False

    again = client.post(f'/api/exams/{essay_exam.pk}/start/')
    assert again.status_code == 200
    assert again.data['attempt_id'] == response.data['attempt_id']
    assert again.data['resumed'] is True


def test_start_outside_window_explains_why(client_for, student, exam_factory):
    exam = exam_factory(opens_in=timedelta(hours=1), closes_in=timedelta(hours=2))

    response = client_for(student).post(f'/api/exams/{exam.pk}/start/')

    assert response.status_code == 403
    assert response.data['code'] == 'exam_unavailable'
    assert response.data['availability']['status'] == 'not_yet_open'


def test_instructor_cannot_start(client_for, instructor, essay_exam):
    assert client_for(instructor).post(f'/api/exams/{essay_exam.pk}/start/').status_code == 403


def test_submit_review_and_grade(client_for, student, instructor, essay_exam):
    ids = question_ids(essay_exam)
    client = client_for(student)
    attempt_id = client.post(f'/api/exams/{essay_exam.pk}/start/').data['attempt_id']
    submit_url = f'/api/exams/{essay_exam.pk}/attempts/{attempt_id}/submit/'
    answers = {'answers': [
        {'question_id': ids['true_false'], 'answer': True},
        {'question_id': ids['essay'], 'answer': 'Completing the square gives the formula.'},
    ]}

    response = client.post(submit_url, answers, format='json')
    assert response.status_code == 200, response.data
    assert response.data['state'] == 'completed'
    assert str(response.data['percentage']) == '20.00'

    response = client.post(submit_url, answers, format='json')
    assert response.status_code == 409
    assert response.data['code'] == 'invalid_state'

    own = client.get(f'/api/attempts/{attempt_id}/').data
    assert all('is_correct' not in answer for answer in own['answers'])

    staff = client_for(instructor)
    pending = staff.get('/api/grading/pending/').data
    assert [row['id'] for row in pending] == [attempt_id]

    response = staff.post(
        f'/api/exams/{essay_exam.pk}/attempts/{attempt_id}/grade/',
        {'grades': [{'question_id': ids['essay'], 'score': '3', 'comment': 'Good'}], 'feedback': 'Nice work'},
        format='json',
    )
    assert response.status_code == 200, response.data
    assert response.data['state'] == 'graded'
    assert str(response.data['percentage']) == '80.00'
    assert AuditLog.objects.filter(action='GRADE', target_object_id=str(attempt_id)).exists()
    assert staff.get('/api/grading/pending/').data == []

    attempt = Attempt.objects.get(pk=attempt_id)
    assert attempt.feedback == 'Nice work'


def test_grade_score_over_weight_is_a_bad_request(client_for, student, instructor, essay_exam):
    ids = question_ids(essay_exam)
    client = client_for(student)
    attempt_id = client.post(f'/api/exams/{essay_exam.pk}/start/').data['attempt_id']
    client.post(f'/api/exams/{essay_exam.pk}/attempts/{attempt_id}/submit/', {'answers': []}, format='json')

    response = client_for(instructor).post(
        f'/api/exams/{essay_exam.pk}/attempts/{attempt_id}/grade/',
        {'grades': [{'question_id': ids['essay'], 'score': '9'}]},
        format='json',
    )
    assert response.status_code == 400


def test_students_cannot_grade(client_for, student, essay_exam):
    response = client_for(student).post(
        f'/api/exams/{essay_exam.pk}/attempts/1/grade/', {'grades': []}, format='json',
    )
    assert response.status_code == 403


def test_other_instructor_cannot_grade(client_for, student, other_instructor, essay_exam):
    attempt_id = client_for(student).post(f'/api/exams/{essay_exam.pk}/start/').data['attempt_id']

    response = client_for(other_instructor).post(
        f'/api/exams/{essay_exam.pk}/attempts/{attempt_id}/grade/', {'grades': []}, format='json',
    )
    assert response.status_code == 403


def test_students_only_see_their_own_attempts(client_for, student, other_student, essay_exam):
    own_id = client_for(student).post(f'/api/exams/{essay_exam.pk}/start/').data['attempt_id']
    client = client_for(other_student)
    client.post(f'/api/exams/{essay_exam.pk}/start/')

    listed = client.get('/api/attempts/').data
    assert len(listed) == 1
    assert listed[0]['id'] != own_id
    assert client.get(f'/api/attempts/{own_id}/').status_code == 404


def test_unknown_question_in_submission_is_not_found(client_for, student, essay_exam):
    client = client_for(student)
    attempt_id = client.post(f'/api/exams/{essay_exam.pk}/start/').data['attempt_id']

    response = client.post(
        f'/api/exams/{essay_exam.pk}/attempts/{attempt_id}/submit/',
        {'answers': [{'question_id': 987654, 'answer': 'x'}]},
        format='json',
    )
    assert response.status_code == 404


def test_grading_with_missing_essay_score_is_a_bad_request(client_for, student, instructor, essay_exam):
    client = client_for(student)
    attempt_id = client.post(f'/api/exams/{essay_exam.pk}/start/').data['attempt_id']
    client.post(f'/api/exams/{essay_exam.pk}/attempts/{attempt_id}/submit/', {'answers': []}, format='json')

    response = client_for(instructor).post(
        f'/api/exams/{essay_exam.pk}/attempts/{attempt_id}/grade/', {'grades': []}, format='json',
    )

    assert response.status_code == 400
    assert Attempt.objects.get(pk=attempt_id).state == Attempt.State.COMPLETED


def test_exhausted_attempts_report_numeric_limits(client_for, student, exam_factory):
    exam = exam_factory()
    mc = exam.questions.get()
    client = client_for(student)
    attempt_id = client.post(f'/api/exams/{exam.pk}/start/').data['attempt_id']
    client.post(
        f'/api/exams/{exam.pk}/attempts/{attempt_id}/submit/',
        {'answers': [{'question_id': mc.pk, 'answer': 'B'}]}, format='json',
    )

    response = client.post(f'/api/exams/{exam.pk}/start/')

    assert response.status_code == 403
    body = response.json()
    assert body['code'] == 'attempts_exhausted'
    assert body['attempts_used'] == 1
    assert body['max_attempts'] == 1
