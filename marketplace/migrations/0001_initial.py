import django.core.validators
import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models

import marketplace.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Shop',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('address', models.CharField(max_length=500)),
                ('upi_id', models.CharField(help_text='UPI payee handle receiving payments (handle@psp)', max_length=100, validators=[marketplace.models.upi_id_validator])),
                ('verified', models.BooleanField(db_index=True, default=False, help_text='Set by an admin after off-platform due diligence')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.OneToOneField(help_text='Shop owner (at most one shop per user)', on_delete=django.db.models.deletion.PROTECT, related_name='shop', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'marketplace_shops',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['verified', '-created_at'], name='shops_verified_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='ShopVerificationLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('verified_from', models.BooleanField()),
                ('verified_to', models.BooleanField()),
                ('note', models.CharField(blank=True, max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('changed_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shop_verification_changes', to=settings.AUTH_USER_MODEL)),
                ('shop', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='verification_log', to='marketplace.shop')),
            ],
            options={
                'db_table': 'marketplace_shop_verification_log',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('price', models.PositiveIntegerField(help_text='Price in the smallest currency unit')),
                ('stock', models.PositiveIntegerField(default=0)),
                ('category', models.CharField(choices=[('books', 'Books'), ('electronics', 'Electronics'), ('stationery', 'Stationery'), ('fashion', 'Fashion'), ('sports', 'Sports'), ('other', 'Other')], db_index=True, default='other', max_length=20)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('images', models.JSONField(blank=True, default=list, help_text='Ordered image URLs')),
                ('rating_avg', models.FloatField(default=0.0)),
                ('review_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('shop', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='products', to='marketplace.shop')),
            ],
            options={
                'db_table': 'marketplace_products',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['shop', '-created_at'], name='products_shop_created_idx'),
                    models.Index(fields=['category', '-created_at'], name='products_category_created_idx'),
                    models.Index(fields=['-rating_avg', '-review_count'], name='products_rating_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('subtotal', models.PositiveIntegerField()),
                ('tax', models.PositiveIntegerField(default=0)),
                ('delivery_fee', models.PositiveIntegerField()),
                ('total', models.PositiveIntegerField()),
                ('status', models.CharField(choices=[('processing', 'Processing'), ('accepted', 'Accepted'), ('in_transit', 'In Transit'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled')], db_index=True, default='processing', max_length=20)),
                ('delivery_address', models.JSONField()),
                ('upi_payment_url', models.CharField(max_length=1000)),
                ('upi_qr_url', models.URLField(max_length=2000)),
                ('payment_screenshot', models.URLField(blank=True, help_text='Customer-uploaded payment confirmation; evidence only', max_length=1000)),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('in_transit_at', models.DateTimeField(blank=True, null=True)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_reason', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to=settings.AUTH_USER_MODEL)),
                ('shop', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='marketplace.shop')),
            ],
            options={
                'db_table': 'marketplace_orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['shop', '-created_at'], name='orders_shop_created_idx'),
                    models.Index(fields=['customer', '-created_at'], name='orders_customer_created_idx'),
                    models.Index(fields=['status', '-created_at'], name='orders_status_created_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('total', models.F('subtotal') + models.F('tax') + models.F('delivery_fee'))), name='orders_total_matches_parts'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('unit_price', models.PositiveIntegerField()),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('image', models.URLField(blank=True, max_length=1000)),
                ('position', models.PositiveIntegerField(default=0)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='marketplace.order')),
                ('product', models.ForeignKey(db_constraint=False, on_delete=django.db.models.deletion.DO_NOTHING, related_name='order_items', to='marketplace.product')),
            ],
            options={
                'db_table': 'marketplace_order_items',
                'ordering': ['order', 'position'],
            },
        ),
        migrations.CreateModel(
            name='OrderStatusChange',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('from_status', models.CharField(choices=[('processing', 'Processing'), ('accepted', 'Accepted'), ('in_transit', 'In Transit'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled')], max_length=20)),
                ('to_status', models.CharField(choices=[('processing', 'Processing'), ('accepted', 'Accepted'), ('in_transit', 'In Transit'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled')], max_length=20)),
                ('actor_kind', models.CharField(max_length=20)),
                ('reason', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='order_status_changes', to=settings.AUTH_USER_MODEL)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='status_history', to='marketplace.order')),
            ],
            options={
                'db_table': 'marketplace_order_status_changes',
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='Review',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('rating', models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ('comment', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reviews', to='marketplace.order')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews', to='marketplace.product')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reviews', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'marketplace_reviews',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['product', '-created_at'], name='reviews_product_created_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'order', 'product'), name='reviews_unique_user_order_product'),
                    models.CheckConstraint(condition=models.Q(('rating__gte', 1), ('rating__lte', 5)), name='reviews_rating_range'),
                ],
            },
        ),
    ]
