"""
Domain exceptions and the API exception handler for consistent error responses.
"""
from django.core.exceptions import ObjectDoesNotExist
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status, exceptions as drf_exceptions
import logging

logger = logging.getLogger(__name__)


class InvalidScheduleState(drf_exceptions.APIException):
    """Raised when a scheduled submission is no longer in a state that allows the change."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Scheduled submission is no longer pending.'
    default_code = 'invalid_schedule_state'


class ExperimentNotActive(drf_exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'A/B test is no longer active.'
    default_code = 'experiment_not_active'


class InvalidResponseType(drf_exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Response type must be one of: interview, rejection, follow_up.'
    default_code = 'invalid_response_type'


def _collect_messages_from_response_data(response_data):
    """Build a list of human-readable messages from DRF error response data."""
    messages = []
    if isinstance(response_data, dict):
        # DRF often returns {'field': ['msg']} or {'detail': 'msg'}
        if 'detail' in response_data and not isinstance(response_data.get('detail'), (dict, list)):
            messages.append(str(response_data['detail']))
        for field, value in response_data.items():
            if field == 'detail':
                continue
            if isinstance(value, (list, tuple)) and value:
                msg = str(value[0])
            else:
                msg = str(value)
            field_label = str(field).replace('_', ' ').capitalize()
            messages.append(f"{field_label}: {msg}")
    elif isinstance(response_data, (list, tuple)):
        messages.extend(str(v) for v in response_data if v)
    elif response_data:
        messages.append(str(response_data))
    return messages


def custom_exception_handler(exc, context):
    """
    Custom exception handler that provides consistent error response format.

    Returns:
        Response with format:
        {
            "error": {
                "code": "error_code",
                "message": "User-friendly error message",
                "details": {...}  # Optional field-specific errors
            }
        }
    """
    # Owner-scoped lookups that miss surface as 404s
    if isinstance(exc, ObjectDoesNotExist):
        exc = drf_exceptions.NotFound(str(exc) or 'Not found.')

    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
            response.status_code = status.HTTP_401_UNAUTHORIZED

        messages = _collect_messages_from_response_data(response.data)
        custom_response_data = {
            'error': {
                'code': get_error_code(exc, response.status_code),
                'message': (messages[0] if messages else get_error_message(exc, response.data)),
            }
        }
        if messages:
            custom_response_data['error']['messages'] = messages

        if isinstance(response.data, dict):
            details = {}
            for field, errors in response.data.items():
                if field == 'detail':
                    continue
                if isinstance(errors, list):
                    details[field] = errors[0] if errors else 'Invalid value'
                else:
                    details[field] = str(errors)

            if details:
                custom_response_data['error']['details'] = details

        response.data = custom_response_data
    else:
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        response = Response(
            {
                'error': {
                    'code': 'internal_server_error',
                    'message': 'An unexpected error occurred. Please try again later.',
                }
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return response


# Django's Http404 and PermissionDenied reach the handler without a default_code
FALLBACK_CODES = {
    403: 'permission_denied',
    404: 'not_found',
}


def get_error_code(exc, status_code):
    return getattr(exc, 'default_code', None) or FALLBACK_CODES.get(status_code, 'error')


def get_error_message(exc, response_data):
    """Message used when the response data carried no readable text."""
    return str(getattr(exc, 'detail', '') or '') or 'Request failed.'
