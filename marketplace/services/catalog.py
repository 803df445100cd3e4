"""
Catalog queries.

Read-side of the catalog: listable shops and products, the featured
projection, and role-scoped order listings. The featured projection is the
only cached read.
"""

import logging

from django.conf import settings
from django.core.cache import cache

from accounts.policies import OrderPolicy
from marketplace.models import Order, Product, Shop

logger = logging.getLogger(__name__)

FEATURED_CACHE_KEY = 'marketplace:featured-products'


def shops_queryset():
    """Shops, newest first."""
    return Shop.objects.select_related('owner').order_by('-created_at')


def products_queryset(shop_id=None):
    """
    Products, newest first.

    Without a shop filter only products of verified shops are listed; a shop's
    own page shows its catalog regardless.
    """
    queryset = Product.objects.select_related('shop').order_by('-created_at')
    if shop_id is None:
        queryset = queryset.filter(shop__verified=True)
    return queryset


def featured_base_queryset():
    """Reviewed products of verified shops in featured order, not yet limited."""
    return (
        Product.objects.select_related('shop')
        .filter(review_count__gte=1, shop__verified=True)
        .order_by('-rating_avg', '-review_count', '-created_at')
    )


def featured_queryset():
    """
    Up to FEATURED_PRODUCTS_LIMIT reviewed products of verified shops, ordered
    by rating average, then review count, then newest.
    """
    return featured_base_queryset()[:settings.FEATURED_PRODUCTS_LIMIT]


def featured_products():
    """Featured projection, served from a short-lived cache."""
    products = cache.get(FEATURED_CACHE_KEY)
    if products is None:
        products = list(featured_queryset())
        cache.set(FEATURED_CACHE_KEY, products, settings.FEATURED_CACHE_TTL)
        logger.debug(f"Featured projection rebuilt with {len(products)} product(s)")
    return products


def invalidate_featured_cache():
    cache.delete(FEATURED_CACHE_KEY)


def orders_for(user):
    """Orders visible to ``user``, newest first."""
    queryset = (
        Order.objects.select_related('shop', 'customer')
        .prefetch_related('items')
        .order_by('-created_at')
    )
    return OrderPolicy.scope(user, queryset)


def product_has_open_orders(product):
    """True while a non-terminal order still references the product."""
    return (
        Order.objects.filter(items__product_id=product.pk)
        .exclude(status__in=Order.TERMINAL_STATUSES)
        .exists()
    )
