from django.contrib import admin

from .models import Order, OrderItem, OrderStatusChange, Product, Review, Shop, ShopVerificationLog
from .services.shops import ShopService


class ShopVerificationLogInline(admin.TabularInline):
    model = ShopVerificationLog
    fk_name = 'shop'
    extra = 0
    can_delete = False
    readonly_fields = ['changed_by', 'verified_from', 'verified_to', 'note', 'created_at']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Shop)
class ShopAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'upi_id', 'verified', 'created_at']
    list_filter = ['verified']
    search_fields = ['name', 'owner__email', 'upi_id']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [ShopVerificationLogInline]

    def save_model(self, request, obj, form, change):
        previous_verified = None
        if change:
            previous_verified = Shop.objects.filter(pk=obj.pk).values_list('verified', flat=True).first()
        super().save_model(request, obj, form, change)

        # Admin site edits must leave the same audit trail as the API
        if change and previous_verified is not None and previous_verified != obj.verified:
            ShopService.record_verification_change(obj, request.user, previous_verified, note='Changed in admin site')


@admin.register(ShopVerificationLog)
class ShopVerificationLogAdmin(admin.ModelAdmin):
    list_display = ['shop', 'changed_by', 'verified_from', 'verified_to', 'created_at']
    list_filter = ['verified_to']
    readonly_fields = ['shop', 'changed_by', 'verified_from', 'verified_to', 'note', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        # Append-only
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['title', 'shop', 'category', 'price', 'stock', 'rating_avg', 'review_count', 'created_at']
    list_filter = ['category', 'shop__verified']
    search_fields = ['title', 'description', 'shop__name']
    readonly_fields = ['id', 'rating_avg', 'review_count', 'created_at', 'updated_at']


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ['product_id', 'name', 'unit_price', 'quantity', 'image', 'position']

    def has_add_permission(self, request, obj=None):
        return False


class OrderStatusChangeInline(admin.TabularInline):
    model = OrderStatusChange
    extra = 0
    can_delete = False
    readonly_fields = ['from_status', 'to_status', 'actor', 'actor_kind', 'reason', 'created_at']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Orders are read-only here: status changes must go through the API so the
    lifecycle rules and stock restoration apply.
    """
    list_display = ['id', 'customer', 'shop', 'status', 'total', 'created_at']
    list_filter = ['status']
    search_fields = ['id', 'customer__email', 'shop__name']
    inlines = [OrderItemInline, OrderStatusChangeInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['product', 'user', 'rating', 'created_at']
    list_filter = ['rating']
    search_fields = ['product__title', 'user__email', 'comment']
    readonly_fields = ['product', 'user', 'order', 'created_at', 'updated_at']
