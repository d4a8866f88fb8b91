"""
Error handling for calls to the euprava backend services.
Turns failed HTTP responses into ApiError with a user-facing message.
"""

import functools
import logging
import traceback

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    400: 'Invalid request. Please check your input and try again.',
    401: 'Authentication required. Please log in again.',
    403: "You don't have permission to perform this action.",
    404: 'The requested resource was not found.',
    409: 'A conflict occurred. This resource may already exist.',
    422: 'Validation failed. Please check your input.',
    500: 'Server error. Please try again later.',
    502: 'Service temporarily unavailable. Please try again later.',
    503: 'Service unavailable. Please try again later.',
}


class ApiError(Exception):
    """A backend call failed. status is None when the service was unreachable."""

    def __init__(self, message, status=None, status_text=None, data=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.status_text = status_text
        self.data = data

    def __str__(self):
        return self.message


def get_status_message(status):
    """User-friendly message for an HTTP status code."""
    if status in STATUS_MESSAGES:
        return STATUS_MESSAGES[status]
    return f'Request failed with status {status}. Please try again.'


def extract_error_message(response):
    """Pull the error text out of a failed response body."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        if data.get('error'):
            return str(data['error'])
        if data.get('message'):
            return str(data['message'])
    elif isinstance(data, str) and data:
        return data

    return get_status_message(response.status_code)


def error_from_response(response):
    """Build an ApiError for a non-2xx requests.Response."""
    try:
        data = response.json()
    except ValueError:
        data = None
    return ApiError(
        extract_error_message(response),
        status=response.status_code,
        status_text=response.reason,
        data=data,
    )


def is_auth_error(error):
    return getattr(error, 'status', None) in (401, 403)


def is_not_found_error(error):
    return getattr(error, 'status', None) == 404


def is_client_error(error):
    status = getattr(error, 'status', None)
    return status is not None and 400 <= status < 500


def is_server_error(error):
    status = getattr(error, 'status', None)
    return status is not None and 500 <= status < 600


def is_conflict_error(error):
    """409, or the auth service's duplicate-account message."""
    if getattr(error, 'status', None) == 409:
        return True
    return 'already exists' in str(error)


def log_application_error(error, context=None):
    """Log an unexpected error with its traceback."""
    message = str(error)
    if context:
        message = f"{message} | Context: {context}"
    logger.error(f"Application error: {message}")
    logger.error(f"Traceback: {traceback.format_exc()}")


def error_handler_decorator(context=None):
    """Decorator that logs unexpected errors in routes and re-raises them."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ApiError:
                raise
            except Exception as e:
                log_application_error(e, context or func.__name__)
                # Re-raise the exception to maintain normal error handling
                raise
        return wrapper
    return decorator
