"""
Review Service

A customer may review a product once per delivered order that contains it.
The rating summary is recomputed by the review signals inside the same
transaction, so a reader never sees a review without its effect on the
summary.
"""

import logging

from django.db import IntegrityError, transaction

from accounts.gate import require_scope
from core.exceptions import Conflict, ForbiddenScope
from marketplace.models import Order, Product, Review

logger = logging.getLogger(__name__)


def can_review(user, order, product):
    """The order is the user's own, delivered, and contains the product."""
    return (
        order is not None
        and product is not None
        and order.customer_id == user.pk
        and order.status == Order.Status.DELIVERED
        and order.items.filter(product_id=product.pk).exists()
    )


class ReviewService:
    """Service for reviews."""

    @classmethod
    def create_review(cls, user, product_id, order_id, rating, comment=''):
        """
        Raises:
            ForbiddenScope: no delivered order of the user's contains the product
            Conflict: the user already reviewed this product for this order
        """
        order = Order.objects.filter(pk=order_id).first()
        product = Product.objects.filter(pk=product_id).first()

        if not can_review(user, order, product):
            logger.warning(
                f"Review refused for {user.pk}: product {product_id} not in a delivered order {order_id}"
            )
            raise ForbiddenScope()

        if Review.objects.filter(user=user, order=order, product=product).exists():
            raise Conflict('You have already reviewed this product for this order')

        try:
            with transaction.atomic():
                review = Review.objects.create(
                    user=user,
                    order=order,
                    product=product,
                    rating=rating,
                    comment=comment or '',
                )
        except IntegrityError:
            raise Conflict('You have already reviewed this product for this order')

        logger.info(f"Review {review.id} ({rating}/5) on product {product.id} by {user.pk}")
        return review

    @classmethod
    @transaction.atomic
    def update_review(cls, user, review, data):
        """Admin-only edit."""
        require_scope(user, 'edit', review)
        for field_name in ('rating', 'comment'):
            if field_name in data:
                setattr(review, field_name, data[field_name])
        review.save()
        logger.info(f"Review {review.id} edited by {user.pk}")
        return review

    @classmethod
    @transaction.atomic
    def delete_review(cls, user, review):
        """Admin-only delete."""
        require_scope(user, 'delete', review)
        review_id = review.id
        review.delete()
        logger.info(f"Review {review_id} deleted by {user.pk}")
