"""
Rating Aggregator

Keeps each product's rating summary equal to its reviews: the count of
reviews and the arithmetic mean of their ratings, or exactly 0 when there
are none. Recomputes run inside the same transaction as the review write.
"""

import logging

from django.db import transaction
from django.db.models import Avg, Count

from marketplace.models import Product, Review
from .catalog import invalidate_featured_cache

logger = logging.getLogger(__name__)


@transaction.atomic
def recompute_product_rating(product_id):
    """
    Recalculate and store the rating summary of one product from all of its reviews.

    Returns:
        The updated Product, or None if the product no longer exists
    """
    product = Product.objects.select_for_update().filter(pk=product_id).first()
    if product is None:
        return None

    summary = Review.objects.filter(product_id=product_id).aggregate(
        avg=Avg('rating'),
        count=Count('id'),
    )
    count = summary['count'] or 0
    avg = float(summary['avg']) if count else 0.0

    if product.review_count != count or product.rating_avg != avg:
        product.review_count = count
        product.rating_avg = avg
        product.save(update_fields=['review_count', 'rating_avg', 'updated_at'])

    logger.debug(f"Product {product_id} rating: {avg:.3f} over {count} review(s)")

    invalidate_featured_cache()
    return product
