"""
Marketplace Models

Shops, their catalogs, the per-shop orders produced by checkout, and the
reviews that feed each product's rating summary.

Amounts are integers in the smallest currency unit (paise).
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models
from django.db.models import F, Q


upi_id_validator = RegexValidator(
    regex=r'^[A-Za-z0-9._-]+@[A-Za-z0-9.-]+$',
    message='UPI ID must look like handle@psp'
)

TAG_SEPARATOR = '\n'


class Shop(models.Model):
    """
    On-campus vendor. One shop per owner; only verified shops are listed
    publicly or accept checkouts.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='shop',
        help_text="Shop owner (at most one shop per user)"
    )

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    address = models.CharField(max_length=500)
    upi_id = models.CharField(
        max_length=100,
        validators=[upi_id_validator],
        help_text="UPI payee handle receiving payments (handle@psp)"
    )

    verified = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Set by an admin after off-platform due diligence"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'marketplace_shops'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['verified', '-created_at'], name='shops_verified_created_idx'),
        ]

    def __str__(self):
        return self.name

    @property
    def is_listable(self):
        return self.verified


class ShopVerificationLog(models.Model):
    """Append-only trail of verified-flag changes on a shop."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    shop = models.ForeignKey(Shop, on_delete=models.PROTECT, related_name='verification_log')
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='shop_verification_changes'
    )
    verified_from = models.BooleanField()
    verified_to = models.BooleanField()
    note = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'marketplace_shop_verification_log'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.shop_id}: {self.verified_from} -> {self.verified_to}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Verification log entries cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Verification log entries cannot be deleted")


class Product(models.Model):
    """Catalog item sold by a single shop."""

    class Category(models.TextChoices):
        BOOKS = 'books', 'Books'
        ELECTRONICS = 'electronics', 'Electronics'
        STATIONERY = 'stationery', 'Stationery'
        FASHION = 'fashion', 'Fashion'
        SPORTS = 'sports', 'Sports'
        OTHER = 'other', 'Other'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    shop = models.ForeignKey(Shop, on_delete=models.PROTECT, related_name='products')

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.PositiveIntegerField(help_text="Price in the smallest currency unit")
    stock = models.PositiveIntegerField(default=0)
    category = models.CharField(
        max_length=20,
        choices=Category.choices,
        default=Category.OTHER,
        db_index=True
    )
    tags = models.JSONField(default=list, blank=True)
    # Tags joined by TAG_SEPARATOR, used for search
    tags_text = models.TextField(blank=True, default='', editable=False)
    images = models.JSONField(default=list, blank=True, help_text="Ordered image URLs")

    # Rating summary maintained from reviews
    rating_avg = models.FloatField(default=0.0)
    review_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'marketplace_products'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['shop', '-created_at'], name='products_shop_created_idx'),
            models.Index(fields=['category', '-created_at'], name='products_category_created_idx'),
            models.Index(fields=['-rating_avg', '-review_count'], name='products_rating_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.shop_id})"

    def save(self, *args, **kwargs):
        self.tags_text = TAG_SEPARATOR.join(self.tags or [])
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'tags' in update_fields:
            kwargs['update_fields'] = {*update_fields, 'tags_text'}
        super().save(*args, **kwargs)

    @property
    def rating_display(self):
        return round(self.rating_avg, 1)

    def reduce_stock(self, quantity):
        """Decrement stock. Caller must hold the row lock."""
        if quantity > self.stock:
            raise ValidationError(
                f"Insufficient stock for '{self.title}'. Available: {self.stock}, Requested: {quantity}."
            )
        self.stock -= quantity
        self.save(update_fields=['stock', 'updated_at'])

    def restore_stock(self, quantity):
        """Return stock from a cancelled order. Caller must hold the row lock."""
        self.stock += quantity
        self.save(update_fields=['stock', 'updated_at'])


class Order(models.Model):
    """
    One shop's share of a checkout. Items are snapshotted at creation and
    the status only changes through the order lifecycle engine.
    """

    class Status(models.TextChoices):
        PROCESSING = 'processing', 'Processing'
        ACCEPTED = 'accepted', 'Accepted'
        IN_TRANSIT = 'in_transit', 'In Transit'
        DELIVERED = 'delivered', 'Delivered'
        CANCELLED = 'cancelled', 'Cancelled'

    TERMINAL_STATUSES = (Status.DELIVERED, Status.CANCELLED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='orders'
    )
    shop = models.ForeignKey(Shop, on_delete=models.PROTECT, related_name='orders')

    # Money (smallest currency unit)
    subtotal = models.PositiveIntegerField()
    tax = models.PositiveIntegerField(default=0)
    delivery_fee = models.PositiveIntegerField()
    total = models.PositiveIntegerField()

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PROCESSING,
        db_index=True
    )

    # Delivery address value object, copied from the checkout request
    delivery_address = models.JSONField()

    # Payment (offline UPI)
    upi_payment_url = models.CharField(max_length=1000)
    upi_qr_url = models.URLField(max_length=2000)
    payment_screenshot = models.URLField(
        max_length=1000,
        blank=True,
        help_text="Customer-uploaded payment confirmation; evidence only"
    )

    # Lifecycle timestamps
    accepted_at = models.DateTimeField(null=True, blank=True)
    in_transit_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'marketplace_orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['shop', '-created_at'], name='orders_shop_created_idx'),
            models.Index(fields=['customer', '-created_at'], name='orders_customer_created_idx'),
            models.Index(fields=['status', '-created_at'], name='orders_status_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total=F('subtotal') + F('tax') + F('delivery_fee')),
                name='orders_total_matches_parts',
            ),
        ]

    def __str__(self):
        return f"Order {self.id} ({self.get_status_display()})"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES


class OrderItem(models.Model):
    """Snapshot of a purchased product. Immutable once written."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')

    # Products may later be deleted; the snapshot keeps the order readable
    product = models.ForeignKey(
        Product,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name='order_items'
    )
    name = models.CharField(max_length=200)
    unit_price = models.PositiveIntegerField()
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    image = models.URLField(max_length=1000, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'marketplace_order_items'
        ordering = ['order', 'position']

    def __str__(self):
        return f"{self.quantity} x {self.name}"

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Order items cannot be modified after creation")
        super().save(*args, **kwargs)


class OrderStatusChange(models.Model):
    """Append-only history of every status transition an order went through."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='status_history')
    from_status = models.CharField(max_length=20, choices=Order.Status.choices)
    to_status = models.CharField(max_length=20, choices=Order.Status.choices)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='order_status_changes'
    )
    actor_kind = models.CharField(max_length=20)
    reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'marketplace_order_status_changes'
        ordering = ['created_at']

    def __str__(self):
        return f"{self.order_id}: {self.from_status} -> {self.to_status}"


class Review(models.Model):
    """Customer rating of a product bought in a delivered order."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='reviews')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='reviews'
    )
    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name='reviews')
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    comment = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'marketplace_reviews'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'order', 'product'],
                name='reviews_unique_user_order_product',
            ),
            models.CheckConstraint(
                condition=Q(rating__gte=1) & Q(rating__lte=5),
                name='reviews_rating_range',
            ),
        ]
        indexes = [
            models.Index(fields=['product', '-created_at'], name='reviews_product_created_idx'),
        ]

    def __str__(self):
        return f"{self.rating}/5 for {self.product_id} by {self.user_id}"
