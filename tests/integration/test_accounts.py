"""
Integration tests for identity token verification, user upsert and admin
role escalation.

Run with: pytest tests/integration/test_accounts.py -v
"""

import pytest
from rest_framework.test import APIClient

from accounts.models import User
from tests.factories import client_for, make_token

UPSERT_URL = '/api/auth/user'


@pytest.mark.django_db
class TestIdentityAuthentication:

    def test_missing_token(self, api_client):
        response = api_client.post(UPSERT_URL)

        assert response.status_code == 401
        assert response.data['code'] == 'UNAUTHENTICATED'

    def test_garbage_token(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer not.a.token')

        response = api_client.post(UPSERT_URL)

        assert response.status_code == 401

    def test_expired_token(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {make_token("uid-1", expires_in=-3600)}')

        response = api_client.post(UPSERT_URL)

        assert response.status_code == 401

    def test_known_identity_without_user_record(self):
        response = client_for('uid-without-record', 'x@campus.edu').get('/api/orders')

        assert response.status_code == 403
        assert response.data['code'] == 'FORBIDDEN_ROLE'


@pytest.mark.django_db
class TestUserUpsert:

    def test_first_upsert_creates_verified_customer(self):
        client = client_for('uid-123', 'Priya@IIT.EDU', 'Priya S')

        response = client.post(UPSERT_URL)

        assert response.status_code == 201
        assert response.data['id'] == 'uid-123'
        assert response.data['email'] == 'priya@iit.edu'
        assert response.data['role'] == 'customer'
        assert response.data['is_verified'] is True

    def test_non_institution_email_is_unverified(self):
        response = client_for('uid-456', 'someone@gmail.com').post(UPSERT_URL)

        assert response.status_code == 201
        assert response.data['is_verified'] is False

    def test_upsert_is_idempotent(self):
        client = client_for('uid-789', 'ravi@campus.edu', 'Ravi')

        first = client.post(UPSERT_URL)
        second = client.post(UPSERT_URL)

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.data == first.data
        assert User.objects.filter(pk='uid-789').count() == 1

    def test_upsert_never_changes_stored_role(self, admin_user):
        response = client_for(admin_user).post(UPSERT_URL)

        assert response.status_code == 200
        assert response.data['role'] == 'admin'

    def test_user_detail(self, customer_client, customer):
        response = customer_client.get(f'/api/users/{customer.pk}')

        assert response.status_code == 200
        assert response.data['name'] == customer.name

    def test_user_detail_missing(self, customer_client):
        assert customer_client.get('/api/users/nobody').status_code == 404



class TestInstitutionEmail:

    @pytest.mark.parametrize('suffix, email', [
        ('.edu', 'a@iit.edu'),
        ('college.edu', 'a@cs.college.edu'),
        ('college.edu', 'A@College.EDU'),
    ])
    def test_matching_domains(self, settings, suffix, email):
        settings.INSTITUTION_EMAIL_SUFFIX = suffix

        assert User.is_institution_email(email) is True

    @pytest.mark.parametrize('email', [
        'x@fakecollege.edu',
        'college.edu@gmail.com',
        'collegeedu',
        '',
    ])
    def test_suffix_must_match_whole_domain_labels(self, settings, email):
        settings.INSTITUTION_EMAIL_SUFFIX = 'college.edu'

        assert User.is_institution_email(email) is False

    def test_leading_at_or_dot_in_setting(self, settings):
        settings.INSTITUTION_EMAIL_SUFFIX = '@college.edu'

        assert User.is_institution_email('a@college.edu') is True
        assert User.is_institution_email('a@fakecollege.edu') is False


@pytest.mark.django_db
class TestRoleEscalation:

    def test_admin_grants_admin(self, admin_client, customer):
        response = admin_client.patch(f'/api/admin/users/{customer.pk}/role', {'role': 'admin'}, format='json')

        assert response.status_code == 200
        customer.refresh_from_db()
        assert customer.role == User.UserRole.ADMIN

    def test_only_admin_escalation_supported(self, admin_client, customer):
        response = admin_client.patch(
            f'/api/admin/users/{customer.pk}/role', {'role': 'shop_owner'}, format='json'
        )

        assert response.status_code == 400

    def test_non_admin_cannot_escalate(self, customer_client, customer):
        response = customer_client.patch(f'/api/admin/users/{customer.pk}/role', {'role': 'admin'}, format='json')

        assert response.status_code == 403
        customer.refresh_from_db()
        assert customer.role == User.UserRole.CUSTOMER

    def test_role_claim_in_token_is_ignored(self, customer):
        token = make_token(customer.pk, customer.email, role='admin')
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = client.get('/api/admin/stats')

        assert response.status_code == 403
