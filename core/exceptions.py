"""
Domain error taxonomy and the REST exception handler.

Every error leaves the API as ``{"error": <message>, "code": <CODE>, ...}``.
Domain errors carry their own HTTP status; anything unclassified is logged
with a correlation ID and reported as an opaque 500.
"""

import logging
import uuid

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MarketplaceError(exceptions.APIException):
    """Base class for domain errors raised by services and the authorization gate."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed'
    default_code = 'error'
    error_code = 'ERROR'

    def __init__(self, detail=None, **extra):
        super().__init__(detail=detail)
        self.extra = extra


class ForbiddenRole(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action'
    error_code = 'FORBIDDEN_ROLE'


class ForbiddenScope(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action'
    error_code = 'FORBIDDEN_SCOPE'


class Unverified(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'A verified campus email is required for this action'
    error_code = 'UNVERIFIED'


class Conflict(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists'
    error_code = 'CONFLICT'


class PreconditionFailed(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource is in use and cannot be changed'
    error_code = 'PRECONDITION_FAILED'


class EmptyCart(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Cart is empty'
    error_code = 'EMPTY_CART'


class StaleCart(MarketplaceError):
    """Cart price or quantity no longer matches the catalog."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Cart is out of date'
    error_code = 'STALE_CART'

    REASON_MISSING = 'missing'
    REASON_PRICE = 'price'
    REASON_STOCK = 'stock'

    def __init__(self, product_id, reason):
        messages = {
            self.REASON_MISSING: 'Product is no longer available',
            self.REASON_PRICE: 'Product price has changed',
            self.REASON_STOCK: 'Insufficient stock for product',
        }
        super().__init__(
            detail=messages.get(reason, self.default_detail),
            product_id=str(product_id),
            reason=reason,
        )
        self.product_id = str(product_id)
        self.reason = reason


class ShopUnavailable(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Shop is not accepting orders'
    error_code = 'SHOP_UNAVAILABLE'

    def __init__(self, shop_id):
        super().__init__(shop_id=str(shop_id))
        self.shop_id = str(shop_id)


class InvalidTransition(MarketplaceError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = 'Invalid status transition'
    error_code = 'INVALID_TRANSITION'

    def __init__(self, from_status, to_status):
        super().__init__(
            detail=f'Cannot change order status from {from_status} to {to_status}',
            from_status=from_status,
            to_status=to_status,
        )
        self.from_status = from_status
        self.to_status = to_status


# DRF exceptions that keep their status but get a stable code
_FRAMEWORK_CODES = {
    exceptions.ValidationError: 'VALIDATION',
    exceptions.ParseError: 'VALIDATION',
    exceptions.NotAuthenticated: 'UNAUTHENTICATED',
    exceptions.AuthenticationFailed: 'UNAUTHENTICATED',
    exceptions.PermissionDenied: 'FORBIDDEN_ROLE',
    exceptions.NotFound: 'NOT_FOUND',
    exceptions.MethodNotAllowed: 'METHOD_NOT_ALLOWED',
    exceptions.UnsupportedMediaType: 'VALIDATION',
    exceptions.Throttled: 'THROTTLED',
}


def _framework_code(exc):
    for exc_class, code in _FRAMEWORK_CODES.items():
        if isinstance(exc, exc_class):
            return code
    return 'ERROR'


def marketplace_exception_handler(exc, context):
    """Render every error with the marketplace error envelope."""
    if isinstance(exc, MarketplaceError):
        body = {'error': str(exc.detail), 'code': exc.error_code}
        body.update(exc.extra)
        return Response(body, status=exc.status_code)

    if isinstance(exc, exceptions.ValidationError):
        return Response(
            {'error': 'Invalid request data', 'code': 'VALIDATION', 'details': exc.detail},
            status=exc.status_code,
        )

    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, Http404):
            code = 'NOT_FOUND'
            message = 'Not found'
        elif isinstance(exc, PermissionDenied):
            code = 'FORBIDDEN_ROLE'
            message = 'You do not have permission to perform this action'
        else:
            code = _framework_code(exc)
            detail = getattr(exc, 'detail', None)
            message = str(detail) if detail is not None else 'Request failed'
        response.data = {'error': message, 'code': code}
        return response

    correlation_id = str(uuid.uuid4())
    view = context.get('view')
    logger.error(
        f"Unhandled error [{correlation_id}] in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
        exc_info=exc,
    )
    return Response(
        {'error': 'Internal server error', 'code': 'INTERNAL', 'correlation_id': correlation_id},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
