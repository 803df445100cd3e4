"""
Management command to recalculate product rating summaries (rating_avg,
review_count) from stored reviews.

Run with: python manage.py recalculate_product_ratings
"""

from django.core.management.base import BaseCommand
from django.db.models import Avg, Count

from marketplace.models import Product, Review
from marketplace.services.catalog import invalidate_featured_cache
from marketplace.services.ratings import recompute_product_rating


class Command(BaseCommand):
    help = 'Recalculate product rating summaries (rating_avg, review_count) from reviews'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be updated without making changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN - No changes will be made'))

        updated_count = 0

        for product in Product.objects.all().order_by('pk'):
            stats = Review.objects.filter(product=product).aggregate(
                avg=Avg('rating'),
                count=Count('id'),
            )
            new_count = stats['count'] or 0
            new_avg = float(stats['avg']) if new_count else 0.0

            if product.review_count != new_count or product.rating_avg != new_avg:
                self.stdout.write(
                    f"Product: {product.title} (ID: {product.id})\n"
                    f"  Reviews: {product.review_count} -> {new_count}\n"
                    f"  Rating: {product.rating_avg:.2f} -> {new_avg:.2f}"
                )

                if not dry_run:
                    recompute_product_rating(product.pk)

                updated_count += 1

        if dry_run:
            self.stdout.write(
                self.style.WARNING(f'\nWould update {updated_count} products')
            )
        else:
            invalidate_featured_cache()
            self.stdout.write(
                self.style.SUCCESS(f'\nUpdated {updated_count} products')
            )
