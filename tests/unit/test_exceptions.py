"""
Tests for the error envelope produced by the REST exception handler.

Run with: pytest tests/unit/test_exceptions.py -v
"""

import uuid

from rest_framework import exceptions

from core.exceptions import (
    ForbiddenScope,
    InvalidTransition,
    ShopUnavailable,
    StaleCart,
    marketplace_exception_handler,
)


def handle(exc):
    return marketplace_exception_handler(exc, {'view': None})


class TestMarketplaceExceptionHandler:

    def test_stale_cart_names_product_and_reason(self):
        product_id = uuid.uuid4()
        response = handle(StaleCart(product_id, StaleCart.REASON_PRICE))

        assert response.status_code == 409
        assert response.data['code'] == 'STALE_CART'
        assert response.data['product_id'] == str(product_id)
        assert response.data['reason'] == 'price'

    def test_invalid_transition_names_both_states(self):
        response = handle(InvalidTransition('in_transit', 'cancelled'))

        assert response.status_code == 422
        assert response.data['from_status'] == 'in_transit'
        assert response.data['to_status'] == 'cancelled'

    def test_shop_unavailable(self):
        shop_id = uuid.uuid4()
        response = handle(ShopUnavailable(shop_id))

        assert response.status_code == 409
        assert response.data == {
            'error': 'Shop is not accepting orders',
            'code': 'SHOP_UNAVAILABLE',
            'shop_id': str(shop_id),
        }

    def test_forbidden_scope_has_no_resource_details(self):
        response = handle(ForbiddenScope())

        assert response.status_code == 403
        assert set(response.data) == {'error', 'code'}

    def test_validation_error(self):
        response = handle(exceptions.ValidationError({'price': ['Required']}))

        assert response.status_code == 400
        assert response.data['code'] == 'VALIDATION'
        assert response.data['details'] == {'price': ['Required']}

    def test_not_found(self):
        response = handle(exceptions.NotFound())

        assert response.status_code == 404
        assert response.data['code'] == 'NOT_FOUND'

    def test_unhandled_error_is_opaque(self):
        response = handle(RuntimeError('database password is hunter2'))

        assert response.status_code == 500
        assert response.data['code'] == 'INTERNAL'
        assert response.data['error'] == 'Internal server error'
        assert 'hunter2' not in str(response.data)
        uuid.UUID(response.data['correlation_id'])
