"""
Project-wide DRF exception handler.

Every API error leaves as ``{"error": <code>, "message": <text>, "request_id": <id>}``.
Constraint violations also carry the violation ``code``; serializer and
publishing failures carry ``details``.
"""
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions
from rest_framework.views import exception_handler

from quizzes.exceptions import ConstraintViolation, PublishValidationFailed

ERROR_CODES = {
    exceptions.Throttled: 'rate_limit_exceeded',
    exceptions.NotAuthenticated: 'unauthorized',
    exceptions.AuthenticationFailed: 'unauthorized',
    exceptions.ValidationError: 'validation_error',
}


def quiz_exception_handler(exc, context):
    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is None:
        return None

    request = context.get('request')
    body = {
        'error': _error_code(exc),
        'message': _message(exc),
        'request_id': getattr(request, 'request_id', None),
    }
    if isinstance(exc, ConstraintViolation):
        body['code'] = exc.kind
    if isinstance(exc, exceptions.ValidationError):
        body['details'] = response.data
    if isinstance(exc, PublishValidationFailed):
        body['details'] = exc.details

    response.data = body
    return response


def _error_code(exc):
    for exc_class, code in ERROR_CODES.items():
        if isinstance(exc, exc_class):
            return code
    return exc.default_code


def _message(exc):
    if isinstance(exc, exceptions.ValidationError):
        return 'Invalid request data'
    detail = exc.detail
    if isinstance(detail, (list, tuple)) and detail:
        detail = detail[0]
    if isinstance(detail, dict):
        return str(exc.default_detail)
    return str(detail)
