"""
DRF exception handler for the offers API.

Every error is rendered as::

    {"error": {"code": ..., "message": ..., "messages": [...], "details": {...}}}

Engine ``InvalidInput`` errors carry the offending field and offer id in
``details`` so clients can highlight the exact input.
"""
import logging

from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from offers.errors import InvalidInput

logger = logging.getLogger(__name__)

STATUS_CODES = {
    400: 'bad_request',
    401: 'unauthorized',
    403: 'forbidden',
    404: 'not_found',
    405: 'method_not_allowed',
    429: 'too_many_requests',
}


def _first(value):
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else 'Invalid value'
    return str(value)


def _error_body(code, message, messages=None, details=None):
    error = {'code': code, 'message': message, 'messages': messages or [message]}
    if details:
        error['details'] = details
    return {'error': error}


def invalid_input_response(exc: InvalidInput) -> Response:
    return Response(
        _error_body('invalid_input', exc.message, details={'field': exc.field, 'job_id': exc.job_id}),
        status=status.HTTP_400_BAD_REQUEST,
    )


def custom_exception_handler(exc, context):
    if isinstance(exc, InvalidInput):
        logger.info('Rejected offer engine input: %r', exc)
        return invalid_input_response(exc)

    response = exception_handler(exc, context)
    if response is None:
        logger.error('Unhandled exception in %s', context.get('view'), exc_info=exc)
        return Response(
            _error_body('internal_server_error', 'An unexpected error occurred. Please try again later.'),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    # Clients re-authenticate on 401, so session failures are reported as such.
    if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    data = response.data
    details = {}
    if isinstance(data, dict) and 'detail' in data and len(data) == 1:
        messages = [_first(data['detail'])]
    elif isinstance(data, dict):
        details = {field: _first(errors) for field, errors in data.items()}
        messages = [f"{str(field).replace('_', ' ').capitalize()}: {msg}" for field, msg in details.items()]
    else:
        messages = [_first(data)]
    if not messages:
        messages = ['An error occurred.']

    code = getattr(exc, 'default_code', None) or STATUS_CODES.get(response.status_code, 'error')
    response.data = _error_body(code, messages[0], messages, details)
    return response
