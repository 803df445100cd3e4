"""
Integration tests for order status changes, stock restoration and the
payment endpoints.

Run with: pytest tests/integration/test_order_lifecycle.py -v
"""

import pytest

from marketplace.models import Order, OrderStatusChange, Product
from tests.factories import cart_line, checkout_payload


def status_url(order_id):
    return f'/api/orders/{order_id}/status'


@pytest.fixture
def placed_order(customer_client, product_a):
    response = customer_client.post(
        '/api/orders',
        checkout_payload(cart_line(product_a, 3)),
        format='json',
    )
    assert response.status_code == 201
    return Order.objects.get(pk=response.data['orders'][0]['order']['id'])


def advance(client, order, *statuses):
    for new_status in statuses:
        response = client.patch(status_url(order.id), {'status': new_status}, format='json')
        assert response.status_code == 200, response.data
    order.refresh_from_db()
    return order


@pytest.mark.django_db
class TestStatusTransitions:

    def test_shop_drives_order_to_delivery(self, owner_a_client, placed_order):
        order = advance(owner_a_client, placed_order, 'accepted', 'in_transit', 'delivered')

        assert order.status == Order.Status.DELIVERED
        assert order.accepted_at is not None
        assert order.in_transit_at is not None
        assert order.delivered_at is not None

        history = list(order.status_history.values_list('from_status', 'to_status', 'actor_kind'))
        assert history == [
            ('processing', 'accepted', 'shop'),
            ('accepted', 'in_transit', 'shop'),
            ('in_transit', 'delivered', 'shop'),
        ]

    def test_customer_cannot_cancel_in_transit(self, customer_client, owner_a_client, placed_order):
        advance(owner_a_client, placed_order, 'accepted', 'in_transit')

        response = customer_client.patch(status_url(placed_order.id), {'status': 'cancelled'}, format='json')

        assert response.status_code == 422
        assert response.data['code'] == 'INVALID_TRANSITION'
        assert response.data['from_status'] == 'in_transit'
        assert response.data['to_status'] == 'cancelled'
        placed_order.refresh_from_db()
        assert placed_order.status == Order.Status.IN_TRANSIT

    def test_customer_cannot_accept(self, customer_client, placed_order):
        response = customer_client.patch(status_url(placed_order.id), {'status': 'accepted'}, format='json')

        assert response.status_code == 422

    def test_states_cannot_be_skipped(self, owner_a_client, placed_order):
        response = owner_a_client.patch(status_url(placed_order.id), {'status': 'delivered'}, format='json')

        assert response.status_code == 422

    def test_delivered_is_terminal(self, owner_a_client, admin_client, placed_order):
        advance(owner_a_client, placed_order, 'accepted', 'in_transit', 'delivered')

        response = admin_client.patch(status_url(placed_order.id), {'status': 'cancelled'}, format='json')

        assert response.status_code == 422

    def test_stranger_gets_forbidden_scope(self, owner_b_client, placed_order):
        response = owner_b_client.patch(status_url(placed_order.id), {'status': 'accepted'}, format='json')

        assert response.status_code == 403
        assert response.data['code'] == 'FORBIDDEN_SCOPE'

    def test_unknown_status_value(self, owner_a_client, placed_order):
        response = owner_a_client.patch(status_url(placed_order.id), {'status': 'shipped'}, format='json')

        assert response.status_code == 400
        assert response.data['code'] == 'VALIDATION'

    def test_detail_lists_allowed_transitions(self, owner_a_client, customer_client, placed_order):
        owner_view = owner_a_client.get(f'/api/orders/{placed_order.id}').data
        customer_view = customer_client.get(f'/api/orders/{placed_order.id}').data

        assert set(owner_view['allowed_transitions']) == {'accepted', 'cancelled'}
        assert customer_view['allowed_transitions'] == ['cancelled']


@pytest.mark.django_db
class TestCancellation:

    def test_customer_cancel_while_processing_restores_stock(self, customer_client, placed_order, product_a):
        product_a.refresh_from_db()
        assert product_a.stock == 7

        response = customer_client.patch(
            status_url(placed_order.id),
            {'status': 'cancelled', 'reason': 'Ordered by mistake'},
            format='json',
        )

        assert response.status_code == 200
        assert response.data['status'] == 'cancelled'
        assert response.data['cancellation_reason'] == 'Ordered by mistake'
        product_a.refresh_from_db()
        assert product_a.stock == 10

    def test_shop_cancel_after_accept_restores_stock(self, owner_a_client, placed_order, product_a):
        advance(owner_a_client, placed_order, 'accepted', 'cancelled')

        product_a.refresh_from_db()
        assert product_a.stock == 10

    def test_admin_cancel_in_transit_restores_stock(self, owner_a_client, admin_client, placed_order, product_a):
        advance(owner_a_client, placed_order, 'accepted', 'in_transit')
        order = advance(admin_client, placed_order, 'cancelled')

        assert order.cancelled_at is not None
        assert OrderStatusChange.objects.filter(order=order, to_status='cancelled', actor_kind='admin').exists()
        product_a.refresh_from_db()
        assert product_a.stock == 10

    def test_cancel_survives_deleted_product(self, customer_client, placed_order, product_a):
        # Deletion is only refused while orders are open; simulate a product removed out of band
        Product.objects.filter(pk=product_a.pk).delete()

        response = customer_client.patch(status_url(placed_order.id), {'status': 'cancelled'}, format='json')

        assert response.status_code == 200
        assert response.data['items'][0]['name'] == 'Linear Algebra'


@pytest.mark.django_db
class TestPaymentEndpoints:

    def test_payment_instrument_redisplayed(self, customer_client, placed_order):
        response = customer_client.get(f'/api/orders/{placed_order.id}/payment')

        assert response.status_code == 200
        assert response.data['payment']['payment_url'] == placed_order.upi_payment_url
        assert response.data['payment']['amount'] == placed_order.total
        assert response.data['payment']['reference'] == str(placed_order.id)
        assert response.data['instructions']

    def test_qr_png(self, customer_client, placed_order):
        response = customer_client.get(f'/api/orders/{placed_order.id}/payment/qr')

        assert response.status_code == 200
        assert response['Content-Type'] == 'image/png'
        assert response.content.startswith(b'\x89PNG')

    def test_customer_attaches_payment_proof(self, customer_client, placed_order):
        response = customer_client.patch(
            f'/api/orders/{placed_order.id}/payment-proof',
            {'payment_screenshot': 'https://uploads.example.com/proof.png'},
            format='json',
        )

        assert response.status_code == 200
        assert response.data['payment_screenshot'] == 'https://uploads.example.com/proof.png'
        assert response.data['status'] == 'processing'

    def test_shop_cannot_attach_payment_proof(self, owner_a_client, placed_order):
        response = owner_a_client.patch(
            f'/api/orders/{placed_order.id}/payment-proof',
            {'payment_screenshot': 'https://uploads.example.com/proof.png'},
            format='json',
        )

        assert response.status_code == 403

    def test_no_payment_proof_on_cancelled_order(self, customer_client, placed_order):
        advance(customer_client, placed_order, 'cancelled')

        response = customer_client.patch(
            f'/api/orders/{placed_order.id}/payment-proof',
            {'payment_screenshot': 'https://uploads.example.com/proof.png'},
            format='json',
        )

        assert response.status_code == 409
        assert response.data['code'] == 'PRECONDITION_FAILED'
