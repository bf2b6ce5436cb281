"""
API errors for the marketplace and the handler that renders them.

Each error has a fixed HTTP status and a stable ``code`` that clients can
match on. Anything else that escapes a view is logged and rendered as a
generic server error.
"""

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ListingNotFound(exceptions.NotFound):
    default_detail = 'Listing not found.'
    default_code = 'listing_not_found'


class NotParticipant(exceptions.PermissionDenied):
    default_detail = 'Not authorized.'
    default_code = 'not_participant'


class NotListingOwner(exceptions.PermissionDenied):
    default_detail = 'Not authorized.'
    default_code = 'not_listing_owner'


class SelfMessaging(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Cannot message yourself.'
    default_code = 'self_message'


class AlreadyUnlocked(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Already unlocked.'
    default_code = 'already_unlocked'


class PaymentRequired(exceptions.PermissionDenied):
    """
    Seller tried to reply before paying the messaging unlock.

    Rendered as 403 like other permission failures, but with its own code so
    clients can offer the checkout flow instead of an error.
    """
    default_detail = 'Payment required to reply. Unlock messaging for $500.'
    default_code = 'payment_required'


class EmptyMessage(exceptions.ValidationError):
    """Message text is missing or blank (empty or whitespace only)."""

    default_detail = 'Message text required.'
    default_code = 'empty_message'


class WebhookVerificationFailed(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Webhook signature verification failed.'
    default_code = 'webhook_verification_failed'


class PaymentSetupFailed(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Payment setup failed.'
    default_code = 'payment_setup_failed'


def _first_code(codes):
    """Pull a single code out of the nested structure DRF returns."""
    if isinstance(codes, str):
        return codes
    if isinstance(codes, dict):
        return 'invalid'
    if isinstance(codes, (list, tuple)) and codes:
        return _first_code(codes[0])
    return 'error'


def api_exception_handler(exc, context):
    """
    Render API errors as ``{"detail": ..., "code": ...}``.

    Field-level validation errors keep DRF's per-field layout so forms can
    show them, with the ``code`` added alongside. Unexpected exceptions are
    logged with traceback and never leak their message to the client.
    """
    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    if not isinstance(exc, exceptions.APIException):
        view = context.get('view')
        logger.exception(
            f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}"
        )
        return Response(
            {'detail': 'Server error.', 'code': 'server_error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    code = _first_code(exc.get_codes())
    if isinstance(response.data, dict):
        response.data.setdefault('code', code)
    elif isinstance(response.data, list):
        response.data = {
            'detail': response.data[0] if len(response.data) == 1 else response.data,
            'code': code,
        }
    return response
