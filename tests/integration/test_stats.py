"""
Integration tests for shop owner and admin dashboards.

Run with: pytest tests/integration/test_stats.py -v
"""

import pytest

from marketplace.models import Shop
from tests.factories import cart_line, checkout_payload


@pytest.mark.django_db
class TestShopStats:

    def test_stats_exclude_cancelled_orders(self, customer_client, owner_a_client, product_a):
        first = customer_client.post('/api/orders', checkout_payload(cart_line(product_a, 2)), format='json')
        second = customer_client.post('/api/orders', checkout_payload(cart_line(product_a, 1)), format='json')
        cancelled_id = second.data['orders'][0]['order']['id']
        customer_client.patch(f'/api/orders/{cancelled_id}/status', {'status': 'cancelled'}, format='json')

        response = owner_a_client.get('/api/shop/stats')

        assert first.status_code == 201
        assert response.status_code == 200
        assert response.data['total_orders'] == 2
        assert response.data['total_sales'] == 250
        assert response.data['weekly_products_sold'] == 2
        assert response.data['orders_by_status']['cancelled'] == 1
        assert response.data['orders_by_status']['processing'] == 1
        assert response.data['total_products'] == 1

    def test_customer_cannot_read_shop_stats(self, customer_client):
        response = customer_client.get('/api/shop/stats')

        assert response.status_code == 403


@pytest.mark.django_db
class TestAdminStats:

    def test_platform_totals(self, admin_client, customer_client, product_a, owner_b):
        Shop.objects.create(owner=owner_b, name='Pending', address='X', upi_id='p@upi')
        customer_client.post('/api/orders', checkout_payload(cart_line(product_a, 1)), format='json')

        response = admin_client.get('/api/admin/stats')

        assert response.status_code == 200
        assert response.data['active_shops'] == 1
        assert response.data['pending_shops'] == 1
        assert response.data['total_orders'] == 1
        assert response.data['platform_revenue'] == 150

    def test_pending_shops_queue(self, admin_client, shop_a, owner_b):
        Shop.objects.create(owner=owner_b, name='Pending', address='X', upi_id='p@upi')

        response = admin_client.get('/api/admin/shops/pending')

        assert response.status_code == 200
        assert [s['name'] for s in response.data['results']] == ['Pending']

    def test_shop_owner_cannot_read_admin_stats(self, owner_a_client):
        assert owner_a_client.get('/api/admin/stats').status_code == 403
