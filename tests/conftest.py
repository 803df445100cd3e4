"""
Shared fixtures: users in each role, verified shops, products, and API
clients that present identity tokens signed with the test key.
"""

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from accounts.models import User
from marketplace.models import Product, Shop
from tests.factories import client_for, create_product, create_user


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def customer(db):
    return create_user('customer-one')


@pytest.fixture
def other_customer(db):
    return create_user('customer-two')


@pytest.fixture
def admin_user(db):
    return create_user('admin-one', role=User.UserRole.ADMIN)


@pytest.fixture
def owner_a(db):
    return create_user('owner-a', role=User.UserRole.SHOP_OWNER)


@pytest.fixture
def owner_b(db):
    return create_user('owner-b', role=User.UserRole.SHOP_OWNER)


@pytest.fixture
def shop_a(owner_a):
    return Shop.objects.create(
        owner=owner_a,
        name="Ada's Books",
        address='Library Block',
        upi_id='ada@okbank',
        verified=True,
    )


@pytest.fixture
def shop_b(owner_b):
    return Shop.objects.create(
        owner=owner_b,
        name='Campus Stationers',
        address='Main Gate',
        upi_id='stationers@upi',
        verified=True,
    )


@pytest.fixture
def product_a(shop_a):
    return create_product(
        shop_a,
        title='Linear Algebra',
        price=100,
        stock=10,
        category=Product.Category.BOOKS,
        tags=['maths', 'textbook'],
        images=['https://img.example.com/linear-algebra.jpg'],
    )


@pytest.fixture
def product_b(shop_b):
    return create_product(
        shop_b,
        title='Graph Notebook',
        price=50,
        stock=10,
        category=Product.Category.STATIONERY,
    )


@pytest.fixture
def customer_client(customer):
    return client_for(customer)


@pytest.fixture
def admin_client(admin_user):
    return client_for(admin_user)


@pytest.fixture
def owner_a_client(owner_a):
    return client_for(owner_a)


@pytest.fixture
def owner_b_client(owner_b):
    return client_for(owner_b)
