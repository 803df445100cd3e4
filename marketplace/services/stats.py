"""
Marketplace Statistics

Dashboard aggregates for shop owners and admins:
- Shop: sales, orders, catalog size, average rating, last-7-days activity
- Admin: users, active and pending shops, orders, platform revenue

Revenue and units sold exclude cancelled orders.
"""

from datetime import timedelta

from django.db.models import Avg, Count, Sum
from django.utils import timezone

from accounts.models import User
from marketplace.models import Order, OrderItem, Product, Shop


class ShopStatsService:
    """Service for a shop owner's dashboard."""

    def __init__(self, shop):
        self.shop = shop

    def get_stats(self):
        """
        Get shop overview statistics.

        Returns:
            dict: Overview metrics for the shop
        """
        week_ago = timezone.now() - timedelta(days=7)

        orders = Order.objects.filter(shop=self.shop)
        billable = orders.exclude(status=Order.Status.CANCELLED)
        weekly = billable.filter(created_at__gte=week_ago)

        # Mean of the per-product averages over products that have reviews
        average_rating = Product.objects.filter(
            shop=self.shop,
            review_count__gt=0
        ).aggregate(avg=Avg('rating_avg'))['avg'] or 0.0

        weekly_products_sold = OrderItem.objects.filter(
            order__in=weekly
        ).aggregate(total=Sum('quantity'))['total'] or 0

        return {
            'shop_id': str(self.shop.id),
            'total_sales': billable.aggregate(total=Sum('total'))['total'] or 0,
            'total_orders': orders.count(),
            'total_products': Product.objects.filter(shop=self.shop).count(),
            'average_rating': round(float(average_rating), 1),
            'weekly_orders': weekly.count(),
            'weekly_revenue': weekly.aggregate(total=Sum('total'))['total'] or 0,
            'weekly_products_sold': weekly_products_sold,
            'orders_by_status': self._orders_by_status(orders),
        }

    @staticmethod
    def _orders_by_status(orders):
        counts = {status: 0 for status in Order.Status.values}
        for row in orders.values('status').annotate(count=Count('id')):
            counts[row['status']] = row['count']
        return counts


class AdminStatsService:
    """Service for the platform-wide admin dashboard."""

    def get_stats(self):
        orders = Order.objects.all()
        return {
            'total_users': User.objects.count(),
            'active_shops': Shop.objects.filter(verified=True).count(),
            'pending_shops': Shop.objects.filter(verified=False).count(),
            'total_orders': orders.count(),
            'platform_revenue': orders.exclude(
                status=Order.Status.CANCELLED
            ).aggregate(total=Sum('total'))['total'] or 0,
        }
