"""
Error types and the API exception handler.

Every error leaving the API is shaped as::

    {"message": "<human readable>", "error": "<CODE or details>"}

Validation failures additionally carry the per-field messages under
``errors``.
"""

import logging
import traceback

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.serializers import as_serializer_error

logger = logging.getLogger(__name__)


# ============================================================================
# Domain errors
# ============================================================================

class HomeHeroError(Exception):
    """
    Base class for business rule violations raised below the view layer.

    Subclasses set ``status_code`` and ``error_code``; the exception handler
    turns them into responses.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = 'BAD_REQUEST'
    default_message = 'The request could not be processed.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidStatusTransition(HomeHeroError):
    """Raised when a booking is asked to move along an edge the lifecycle does not allow."""

    error_code = 'INVALID_STATUS_TRANSITION'
    default_message = 'Invalid booking status transition.'

    def __init__(self, current_status=None, new_status=None, message=None):
        self.current_status = current_status
        self.new_status = new_status
        if message is None and current_status is not None:
            message = f'Cannot change booking status from {current_status} to {new_status}.'
        super().__init__(message)


class StaleBookingError(HomeHeroError):
    """Raised when a conditional booking update loses against a concurrent writer."""

    status_code = status.HTTP_409_CONFLICT
    error_code = 'STALE_BOOKING'
    default_message = 'The booking was modified by another request. Reload it and try again.'


class DuplicateReviewError(HomeHeroError):
    """Raised when a booking already has a review."""

    error_code = 'DUPLICATE_REVIEW'
    default_message = 'This booking has already been reviewed. Each booking can only be reviewed once.'


# ============================================================================
# Authentication errors
# ============================================================================

class MissingToken(exceptions.NotAuthenticated):
    default_detail = 'No token provided. Authorization denied.'
    default_code = 'MISSING_TOKEN'


class InvalidTokenFormat(exceptions.AuthenticationFailed):
    default_detail = 'Invalid token format.'
    default_code = 'INVALID_TOKEN_FORMAT'


class TokenExpired(exceptions.AuthenticationFailed):
    default_detail = 'Token expired. Please login again.'
    default_code = 'TOKEN_EXPIRED'


class InvalidIdentityToken(exceptions.AuthenticationFailed):
    default_detail = 'Invalid token.'
    default_code = 'INVALID_TOKEN'


class VerificationFailed(exceptions.AuthenticationFailed):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Token verification failed.'
    default_code = 'VERIFICATION_FAILED'


class AccountDisabled(exceptions.AuthenticationFailed):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'This account has been disabled.'
    default_code = 'ACCOUNT_DISABLED'


# Codes used when DRF raises its own exception classes
DEFAULT_ERROR_CODES = {
    exceptions.ValidationError: 'VALIDATION_ERROR',
    exceptions.ParseError: 'VALIDATION_ERROR',
    exceptions.NotAuthenticated: 'MISSING_TOKEN',
    exceptions.AuthenticationFailed: 'INVALID_TOKEN',
    exceptions.PermissionDenied: 'FORBIDDEN',
    exceptions.NotFound: 'NOT_FOUND',
    exceptions.MethodNotAllowed: 'METHOD_NOT_ALLOWED',
    exceptions.UnsupportedMediaType: 'UNSUPPORTED_MEDIA_TYPE',
    exceptions.Throttled: 'THROTTLED',
}


def _error_code(exc):
    """Pick the public error code for an APIException."""
    code = exc.default_code
    if isinstance(code, str) and code.isupper():
        return code
    for exc_class in type(exc).__mro__:
        if exc_class in DEFAULT_ERROR_CODES:
            return DEFAULT_ERROR_CODES[exc_class]
    return str(code).upper()


def _message_from_detail(detail):
    """Flatten DRF error details down to the first readable message."""
    if isinstance(detail, dict):
        for value in detail.values():
            return _message_from_detail(value)
        return 'Invalid request.'
    if isinstance(detail, (list, tuple)):
        if not detail:
            return 'Invalid request.'
        return _message_from_detail(detail[0])
    return str(detail)


def api_exception_handler(exc, context):
    """
    DRF exception handler producing ``{message, error}`` bodies.

    Handles, in order:
    1. Domain errors (``HomeHeroError`` subclasses)
    2. Django model validation errors, reported like serializer errors
    3. Everything DRF already knows how to turn into a response
    4. Anything else, logged and reported as a 500

    Args:
        exc: The raised exception
        context: DRF context dict (contains the view and request)

    Returns:
        Response: Shaped error response
    """
    # rest_framework.views resolves DEFAULT_AUTHENTICATION_CLASSES on import,
    # which loads core.authentication and in turn this module
    from rest_framework.views import exception_handler

    view = context.get('view')
    view_name = type(view).__name__ if view is not None else 'unknown'

    if isinstance(exc, HomeHeroError):
        logger.info(f"{view_name}: {exc.error_code} - {exc.message}")
        return Response(
            {'message': exc.message, 'error': exc.error_code},
            status=exc.status_code
        )

    if isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(as_serializer_error(exc))
    elif isinstance(exc, (Http404, ObjectDoesNotExist)):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    # DRF raises a bare NotAuthenticated when no credentials were sent
    if type(exc) is exceptions.NotAuthenticated:
        auth_header = getattr(exc, 'auth_header', None)
        exc = MissingToken()
        if auth_header:
            exc.auth_header = auth_header

    response = exception_handler(exc, context)

    if response is None:
        logger.error(f"Unhandled error in {view_name}: {exc}", exc_info=exc)
        if getattr(settings, 'ENVIRONMENT', 'development') == 'production':
            error = {}
        else:
            error = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return Response(
            {'message': 'Internal server error.', 'error': error},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    code = _error_code(exc)

    body = {
        'message': _message_from_detail(exc.detail),
        'error': code,
    }
    if isinstance(exc, exceptions.ValidationError):
        body['errors'] = response.data

    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        logger.warning(f"Authentication refused in {view_name}: {code}")
    elif isinstance(exc, exceptions.PermissionDenied):
        logger.warning(f"Permission denied in {view_name}: {body['message']}")

    response.data = body
    return response
