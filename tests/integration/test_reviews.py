"""
Integration tests for review gating and the product rating summary.

Run with: pytest tests/integration/test_reviews.py -v
"""

import pytest

from marketplace.models import Order, Product, Review
from tests.factories import cart_line, checkout_payload, client_for, create_user

REVIEWS_URL = '/api/reviews'


def place_and_deliver(customer_client, owner_client, *lines):
    response = customer_client.post('/api/orders', checkout_payload(*lines), format='json')
    assert response.status_code == 201
    order_id = response.data['orders'][0]['order']['id']
    for new_status in ('accepted', 'in_transit', 'delivered'):
        r = owner_client.patch(f'/api/orders/{order_id}/status', {'status': new_status}, format='json')
        assert r.status_code == 200
    return Order.objects.get(pk=order_id)


def review_payload(product, order, rating, comment=''):
    return {
        'product_id': str(product.id),
        'order_id': str(order.id),
        'rating': rating,
        'comment': comment,
    }


@pytest.fixture
def delivered_order(customer_client, owner_a_client, product_a):
    return place_and_deliver(customer_client, owner_a_client, cart_line(product_a, 1))


@pytest.mark.django_db
class TestReviewGating:

    def test_review_product_from_delivered_order(self, customer_client, delivered_order, product_a):
        response = customer_client.post(
            REVIEWS_URL, review_payload(product_a, delivered_order, 4, 'Clean copy'), format='json'
        )

        assert response.status_code == 201
        assert response.data['rating'] == 4
        product_a.refresh_from_db()
        assert product_a.review_count == 1
        assert product_a.rating_avg == 4.0

    def test_product_not_in_delivered_order_is_forbidden(self, customer_client, delivered_order, product_b):
        response = customer_client.post(
            REVIEWS_URL, review_payload(product_b, delivered_order, 5), format='json'
        )

        assert response.status_code == 403
        assert response.data['code'] == 'FORBIDDEN_SCOPE'
        assert Review.objects.count() == 0

    def test_undelivered_order_is_forbidden(self, customer_client, product_a):
        response = customer_client.post('/api/orders', checkout_payload(cart_line(product_a, 1)), format='json')
        order = Order.objects.get(pk=response.data['orders'][0]['order']['id'])

        response = customer_client.post(REVIEWS_URL, review_payload(product_a, order, 5), format='json')

        assert response.status_code == 403

    def test_someone_elses_order_is_forbidden(self, delivered_order, product_a):
        stranger = create_user('customer-stranger')

        response = client_for(stranger).post(
            REVIEWS_URL, review_payload(product_a, delivered_order, 5), format='json'
        )

        assert response.status_code == 403

    def test_duplicate_review_conflicts(self, customer_client, delivered_order, product_a):
        payload = review_payload(product_a, delivered_order, 4)
        assert customer_client.post(REVIEWS_URL, payload, format='json').status_code == 201

        response = customer_client.post(REVIEWS_URL, payload, format='json')

        assert response.status_code == 409
        assert response.data['code'] == 'CONFLICT'
        assert Review.objects.count() == 1

    @pytest.mark.parametrize('rating', [0, 6])
    def test_rating_out_of_range(self, customer_client, delivered_order, product_a, rating):
        response = customer_client.post(
            REVIEWS_URL, review_payload(product_a, delivered_order, rating), format='json'
        )

        assert response.status_code == 400

    def test_shop_owner_cannot_review(self, owner_a_client, delivered_order, product_a):
        response = owner_a_client.post(
            REVIEWS_URL, review_payload(product_a, delivered_order, 5), format='json'
        )

        assert response.status_code == 403
        assert response.data['code'] == 'FORBIDDEN_ROLE'


@pytest.mark.django_db
class TestRatingSummary:

    def test_average_over_orders(self, customer_client, owner_a_client, delivered_order, product_a):
        second_order = place_and_deliver(customer_client, owner_a_client, cart_line(product_a, 1))

        customer_client.post(REVIEWS_URL, review_payload(product_a, delivered_order, 5), format='json')
        customer_client.post(REVIEWS_URL, review_payload(product_a, second_order, 2), format='json')

        product_a.refresh_from_db()
        assert product_a.review_count == 2
        assert product_a.rating_avg == pytest.approx(3.5)

    def test_admin_edit_recomputes(self, customer_client, admin_client, delivered_order, product_a):
        review_id = customer_client.post(
            REVIEWS_URL, review_payload(product_a, delivered_order, 5), format='json'
        ).data['id']

        response = admin_client.patch(f'{REVIEWS_URL}/{review_id}', {'rating': 1}, format='json')

        assert response.status_code == 200
        product_a.refresh_from_db()
        assert product_a.rating_avg == 1.0

    def test_admin_delete_resets_to_zero(self, customer_client, admin_client, delivered_order, product_a):
        review_id = customer_client.post(
            REVIEWS_URL, review_payload(product_a, delivered_order, 5), format='json'
        ).data['id']

        response = admin_client.delete(f'{REVIEWS_URL}/{review_id}')

        assert response.status_code == 204
        product_a.refresh_from_db()
        assert product_a.review_count == 0
        assert product_a.rating_avg == 0.0

    def test_customer_cannot_delete_review(self, customer_client, delivered_order, product_a):
        review_id = customer_client.post(
            REVIEWS_URL, review_payload(product_a, delivered_order, 5), format='json'
        ).data['id']

        response = customer_client.delete(f'{REVIEWS_URL}/{review_id}')

        assert response.status_code == 403
        assert Review.objects.filter(pk=review_id).exists()

    def test_product_reviews_listing_is_public(self, api_client, customer_client, delivered_order, product_a):
        customer_client.post(REVIEWS_URL, review_payload(product_a, delivered_order, 4, 'Good'), format='json')

        response = api_client.get(f'/api/products/{product_a.id}/reviews')

        assert response.status_code == 200
        assert response.data['count'] == 1
        assert response.data['results'][0]['comment'] == 'Good'


@pytest.mark.django_db
class TestRecalculateCommand:

    def test_repairs_drifted_summary(self, customer_client, delivered_order, product_a):
        from io import StringIO

        from django.core.management import call_command

        customer_client.post(REVIEWS_URL, review_payload(product_a, delivered_order, 4), format='json')
        Product.objects.filter(pk=product_a.pk).update(rating_avg=1.0, review_count=7)

        out = StringIO()
        call_command('recalculate_product_ratings', '--dry-run', stdout=out)
        product_a.refresh_from_db()
        assert product_a.review_count == 7
        assert 'Would update 1 products' in out.getvalue()

        call_command('recalculate_product_ratings', stdout=StringIO())
        product_a.refresh_from_db()
        assert product_a.review_count == 1
        assert product_a.rating_avg == 4.0
