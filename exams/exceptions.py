from rest_framework import status
from rest_framework.exceptions import APIException


class ExamEngineError(APIException):
    """
    Base for caller-facing engine failures.

    Extra keyword arguments are added to the response body next to ``detail``
    so the client can see the state or limits that caused the rejection.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be processed."
    default_code = 'exam_error'

    def __init__(self, detail=None, code=None, **context):
        detail = detail if detail is not None else self.default_detail
        code = code or self.default_code
        self.context = context
        super().__init__({'detail': detail, 'code': code}, code)
        # Context keeps its native types in the response body
        self.detail.update(context)


class InvalidState(ExamEngineError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The operation is not allowed in the current state."
    default_code = 'invalid_state'


class AttemptConflict(ExamEngineError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Another request created this attempt first. Retry to resume it."
    default_code = 'attempt_conflict'


class ExamUnavailable(ExamEngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "The exam is not open."
    default_code = 'exam_unavailable'


class AttemptsExhausted(ExamEngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You have used all your attempts for this exam."
    default_code = 'attempts_exhausted'
