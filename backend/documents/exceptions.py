"""
Error taxonomy for the documents API.

Services raise these; DRF turns them into responses through
docsign_exception_handler, which renders every error as
{"error": <message>, "code": <code>}.
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DocsignError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'An error occurred'
    default_code = 'error'


class ValidationError(DocsignError):
    """Malformed payload or a request the document cannot accept."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid payload'
    default_code = 'invalid'


class NotFoundError(DocsignError):
    """Entity absent or not owned by the scoping key."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


class ForbiddenError(DocsignError):
    """Caller is not part of the document."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Unauthorized access'
    default_code = 'forbidden'


class ConflictError(DocsignError):
    """Request conflicts with the current document/recipient state."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict with current state'
    default_code = 'conflict'


class AlreadySubmittedError(ConflictError):
    default_detail = 'Document has already been submitted'
    default_code = 'already_submitted'


class TransientStorageError(DocsignError):
    """Transaction timed out or aborted; the whole batch is safe to retry."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Storage temporarily unavailable, please retry'
    default_code = 'transient_storage'


def docsign_exception_handler(exc, context):
    """Render API errors as {"error", "code"} payloads."""
    response = exception_handler(exc, context)

    if response is None:
        # Unhandled: let Django's 500 machinery take over, but record it first
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}")
        return None

    data = response.data
    if isinstance(data, dict) and 'detail' in data:
        detail = data['detail']
        payload = {
            'error': str(detail),
            'code': getattr(detail, 'code', None) or getattr(exc, 'default_code', 'error'),
        }
    else:
        # Serializer field errors
        payload = {
            'error': 'Invalid payload',
            'code': 'invalid',
            'details': data,
        }

    if response.status_code >= 500:
        logger.error(f"API error {response.status_code}: {payload['error']}")

    response.data = payload
    return response
