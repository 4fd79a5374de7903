"""
Loyalty error taxonomy and the DRF exception handler that renders it.

Every mutation entry point raises one of the ``LoyaltyError`` subclasses
*before* writing anything; partially successful operations are reported
through result objects instead (see ``apps.common.results``).
"""
import logging

from django.db import InterfaceError, OperationalError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

# Connectivity loss must abort the whole unit of work, never be skipped per item
FATAL_DATABASE_ERRORS = (OperationalError, InterfaceError)


class LoyaltyError(Exception):
    """Base class for errors raised by the loyalty services."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Loyalty operation failed'

    def __init__(self, message=None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self):
        return {'detail': self.message, **self.context}


class LoyaltyValidationError(LoyaltyError):
    """Malformed input: missing fields, non-positive points, bad references."""
    default_message = 'Validation error'


class BulkValidationError(LoyaltyValidationError):
    """One or more bulk rows failed validation; nothing was written."""
    default_message = 'Bulk upload validation failed'

    def __init__(self, errors, message=None):
        self.errors = list(errors)
        super().__init__(message)

    def to_dict(self):
        return {'detail': self.message, 'row_errors': self.errors}


class NotFoundError(LoyaltyError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Resource not found'


class ConflictError(LoyaltyError):
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Resource already exists'


class InsufficientPointsError(LoyaltyError):
    """Requested redemption exceeds the active ledger sum."""

    def __init__(self, available, requested):
        self.available = available
        self.requested = requested
        self.shortfall = requested - available
        super().__init__(
            f"Insufficient points. Available: {available}, Requested: {requested}",
            available=available,
            requested=requested,
            shortfall=self.shortfall,
        )


class PersistenceError(LoyaltyError):
    """Storage failure inside a unit of work; the unit was rolled back."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Failed to persist loyalty changes'


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns consistent error responses
    """
    if isinstance(exc, LoyaltyError):
        if exc.status_code >= 500:
            logger.error(f"Loyalty error: {exc}", exc_info=True)
        else:
            logger.warning(f"Loyalty request rejected: {exc}")
        return Response({
            'code': exc.status_code,
            'msg': exc.message,
            'errors': exc.to_dict(),
        }, status=exc.status_code)

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        logger.error(f"API Exception: {exc}", exc_info=True)

        custom_response_data = {
            'code': response.status_code,
            'msg': 'An error occurred',
            'errors': response.data
        }

        if response.status_code == status.HTTP_400_BAD_REQUEST:
            custom_response_data['msg'] = 'Validation error'
        elif response.status_code == status.HTTP_401_UNAUTHORIZED:
            custom_response_data['msg'] = 'Authentication required'
        elif response.status_code == status.HTTP_403_FORBIDDEN:
            custom_response_data['msg'] = 'Permission denied'
        elif response.status_code == status.HTTP_404_NOT_FOUND:
            custom_response_data['msg'] = 'Resource not found'
        elif response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            custom_response_data['msg'] = 'Method not allowed'

        response.data = custom_response_data

    return response
