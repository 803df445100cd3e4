"""
Product Service

Catalog mutations by shop owners (and admins). A product referenced by an
order that is still in flight cannot be deleted.
"""

import logging

from django.db import transaction
from rest_framework import exceptions

from accounts.gate import require_scope
from accounts.policies import ShopPolicy
from core.exceptions import ForbiddenScope, PreconditionFailed
from marketplace.models import Product, Shop
from .catalog import invalidate_featured_cache, product_has_open_orders

logger = logging.getLogger(__name__)


class ProductService:
    """Service for catalog writes."""

    @classmethod
    def resolve_target_shop(cls, user, shop_id=None):
        """
        Shop a new product goes into: the caller's own shop, or for admins
        the shop named in the request.
        """
        if ShopPolicy.is_admin(user):
            if shop_id is None:
                raise exceptions.ValidationError({'shop_id': 'This field is required.'})
            shop = Shop.objects.filter(pk=shop_id).first()
            if shop is None:
                raise exceptions.NotFound('Shop not found')
            return shop

        shop = Shop.objects.filter(owner=user).first()
        if shop is None or (shop_id is not None and str(shop.pk) != str(shop_id)):
            raise ForbiddenScope()
        return shop

    @classmethod
    @transaction.atomic
    def create_product(cls, user, shop, data):
        if not ShopPolicy.can_manage_catalog(user, shop):
            raise ForbiddenScope()
        product = Product.objects.create(shop=shop, **data)
        logger.info(f"Product {product.id} '{product.title}' added to shop {shop.id} by {user.pk}")
        return product

    @classmethod
    @transaction.atomic
    def update_product(cls, user, product, data):
        require_scope(user, 'edit', product)
        product = Product.objects.select_for_update().get(pk=product.pk)

        changed = []
        for field_name, value in data.items():
            if getattr(product, field_name) != value:
                setattr(product, field_name, value)
                changed.append(field_name)

        if changed:
            product.save(update_fields=changed + ['updated_at'])
            invalidate_featured_cache()
            logger.info(f"Product {product.id} updated by {user.pk}: {changed}")
        return product

    @classmethod
    @transaction.atomic
    def delete_product(cls, user, product):
        """
        Raises:
            PreconditionFailed: a non-terminal order still references the product
        """
        require_scope(user, 'delete', product)
        product = Product.objects.select_for_update().get(pk=product.pk)

        if product_has_open_orders(product):
            raise PreconditionFailed('Product has orders in progress and cannot be deleted')

        product_id = product.id
        product.delete()
        invalidate_featured_cache()
        logger.info(f"Product {product_id} deleted by {user.pk}")
