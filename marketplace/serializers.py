"""
Marketplace Serializers

Serializers for shops, products, orders, reviews and the checkout request.
Ownership fields (shop owner, product shop, order customer) are never
writable: they come from the authenticated caller.
"""

from phonenumber_field.serializerfields import PhoneNumberField
from rest_framework import serializers

from .models import (
    TAG_SEPARATOR,
    Order,
    OrderItem,
    OrderStatusChange,
    Product,
    Review,
    Shop,
    ShopVerificationLog,
    upi_id_validator,
)
from .services.checkout import CartLine


# =============================================================================
# SHOPS
# =============================================================================

class ShopSerializer(serializers.ModelSerializer):
    owner_name = serializers.CharField(source='owner.name', read_only=True)

    class Meta:
        model = Shop
        fields = [
            'id', 'owner', 'owner_name', 'name', 'description', 'address',
            'upi_id', 'verified', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ShopCreateSerializer(serializers.ModelSerializer):
    """SECURITY: owner and verified are never accepted from the client."""

    class Meta:
        model = Shop
        fields = ['name', 'description', 'address', 'upi_id']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Shop name cannot be blank.")
        return value


class ShopAdminUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(max_length=500, required=False)
    upi_id = serializers.CharField(max_length=100, required=False, validators=[upi_id_validator])
    verified = serializers.BooleanField(required=False)
    note = serializers.CharField(max_length=500, required=False, allow_blank=True)


class ShopVerificationLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShopVerificationLog
        fields = ['id', 'shop', 'changed_by', 'verified_from', 'verified_to', 'note', 'created_at']
        read_only_fields = fields


# =============================================================================
# PRODUCTS
# =============================================================================

class ProductSerializer(serializers.ModelSerializer):
    shop_name = serializers.CharField(source='shop.name', read_only=True)
    rating_display = serializers.FloatField(read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'shop', 'shop_name', 'title', 'description', 'price', 'stock',
            'category', 'tags', 'images', 'rating_avg', 'rating_display',
            'review_count', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ProductWriteSerializer(serializers.ModelSerializer):
    """
    Create/update payload.

    SECURITY: The shop and rating summary are read-only; the shop comes from
    the caller (admins may name one with shop_id on create).
    """
    shop_id = serializers.UUIDField(required=False, write_only=True)
    price = serializers.IntegerField(min_value=0)
    stock = serializers.IntegerField(min_value=0)
    tags = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False, allow_empty=True
    )
    images = serializers.ListField(
        child=serializers.URLField(max_length=1000), required=False, allow_empty=True
    )

    class Meta:
        model = Product
        fields = ['shop_id', 'title', 'description', 'price', 'stock', 'category', 'tags', 'images']

    def validate_tags(self, value):
        # Tags are an unordered set; keep first occurrence of each
        seen = []
        for tag in (t.strip() for t in value):
            if TAG_SEPARATOR in tag:
                raise serializers.ValidationError("Tags cannot contain line breaks")
            if tag and tag not in seen:
                seen.append(tag)
        return seen


# =============================================================================
# ORDERS
# =============================================================================

class DeliveryAddressSerializer(serializers.Serializer):
    recipient_name = serializers.CharField(max_length=200)
    phone = PhoneNumberField()
    email = serializers.EmailField()
    address_line1 = serializers.CharField(max_length=300)
    address_line2 = serializers.CharField(max_length=300, required=False, allow_blank=True, default='')
    campus_location = serializers.CharField(max_length=200)
    postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        # Stored as a plain JSON value object on every order
        value['phone'] = str(value['phone'])
        return value


class CartLineSerializer(serializers.Serializer):
    """One cart line; title and shop name sent by the client are ignored."""
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=0)
    unit_price = serializers.IntegerField(min_value=0)
    shop_id = serializers.UUIDField(required=False, allow_null=True)


class CheckoutSerializer(serializers.Serializer):
    items = CartLineSerializer(many=True, allow_empty=True)
    delivery_address = DeliveryAddressSerializer()

    def cart_lines(self):
        return [
            CartLine(
                product_id=item['product_id'],
                quantity=item['quantity'],
                unit_price=item['unit_price'],
                shop_id=item.get('shop_id'),
            )
            for item in self.validated_data['items']
        ]


class OrderItemSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    line_total = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderItem
        fields = ['product_id', 'name', 'unit_price', 'quantity', 'image', 'line_total']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    shop_name = serializers.CharField(source='shop.name', read_only=True)
    customer_id = serializers.CharField(read_only=True)
    shop_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customer_id', 'shop_id', 'shop_name', 'items',
            'subtotal', 'tax', 'delivery_fee', 'total', 'status',
            'delivery_address', 'upi_payment_url', 'upi_qr_url', 'payment_screenshot',
            'accepted_at', 'in_transit_at', 'delivered_at', 'cancelled_at',
            'cancellation_reason', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class OrderStatusChangeSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusChange
        fields = ['from_status', 'to_status', 'actor', 'actor_kind', 'reason', 'created_at']
        read_only_fields = fields


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')


class PaymentProofSerializer(serializers.Serializer):
    payment_screenshot = serializers.URLField(max_length=1000)


# =============================================================================
# REVIEWS
# =============================================================================

class ReviewSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.name', read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'product', 'user', 'user_name', 'order', 'rating', 'comment', 'created_at', 'updated_at']
        read_only_fields = fields


class ReviewCreateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    order_id = serializers.UUIDField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=2000, required=False, allow_blank=True, default='')


class ReviewAdminUpdateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    comment = serializers.CharField(max_length=2000, required=False, allow_blank=True)
