"""
Review Signals

Recompute the product's rating summary whenever a review is created,
updated or deleted, in the same transaction as the review write.
"""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Review
from .services.ratings import recompute_product_rating


@receiver(post_save, sender=Review)
def review_saved_update_rating(sender, instance, created, **kwargs):
    """Update the rating summary when a review is created or edited."""
    recompute_product_rating(instance.product_id)


@receiver(post_delete, sender=Review)
def review_deleted_update_rating(sender, instance, **kwargs):
    """Update the rating summary when a review is deleted."""
    recompute_product_rating(instance.product_id)
