"""
Error taxonomy for quiz authoring.

Constraint violations are always 400s the caller can fix by adjusting the
proposed answer set. Store failures wrap database errors raised while
reading or writing and are never swallowed.
"""
import logging
from contextlib import contextmanager

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException

from quizzes.constraints.base import ViolationKind

logger = logging.getLogger(__name__)


class ConstraintViolation(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The answer set for this question is invalid.'
    default_code = 'validation_error'
    kind = 'constraint_violation'


class TooManyAnswers(ConstraintViolation):
    default_detail = 'Too many answers for this question type.'
    kind = ViolationKind.TOO_MANY_ANSWERS


class InvalidAnswerCount(ConstraintViolation):
    default_detail = 'Wrong number of answers for this question type.'
    kind = ViolationKind.INVALID_ANSWER_COUNT


class MustHaveExactlyOneCorrect(ConstraintViolation):
    default_detail = 'Must have exactly one correct answer.'
    kind = ViolationKind.MUST_HAVE_EXACTLY_ONE_CORRECT


class CannotDeleteLastAnswer(ConstraintViolation):
    default_detail = 'Cannot delete the last answer. A question must have at least one answer.'
    kind = ViolationKind.CANNOT_DELETE_LAST_ANSWER


class StoreFailure(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'The quiz store could not complete the operation.'
    default_code = 'store_failure'


VIOLATIONS_BY_KIND = {
    cls.kind: cls for cls in (
        TooManyAnswers, InvalidAnswerCount, MustHaveExactlyOneCorrect, CannotDeleteLastAnswer
    )
}


def violation_for_kind(kind, reason=None):
    exc_class = VIOLATIONS_BY_KIND.get(kind, ConstraintViolation)
    return exc_class(reason)


@contextmanager
def store_errors(operation, **context):
    """Re-raise database errors from the wrapped block as StoreFailure."""
    try:
        yield
    except DatabaseError as exc:
        logger.exception(f"STORE_FAILURE | Operation: {operation} | Context: {context}")
        raise StoreFailure(f"Failed to {operation}.") from exc


class PublishValidationFailed(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Quiz cannot be published due to validation errors'
    default_code = 'validation_failed'

    def __init__(self, errors, warnings, detail=None):
        super().__init__(detail)
        self.details = {'errors': list(errors), 'warnings': list(warnings)}


class InvalidQuizStatus(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Quiz is not currently published'
    default_code = 'invalid_status'


class QuizCodeUnavailable(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Failed to generate unique code after maximum attempts'
    default_code = 'code_generation_failed'


class InvalidQuizCode(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Code must be a 6-digit number'
    default_code = 'invalid_code'
