import django_filters
from django.db.models import Q

from .models import TAG_SEPARATOR, Order, Product, Shop


class ShopFilter(django_filters.FilterSet):
    verified = django_filters.BooleanFilter(field_name='verified')

    class Meta:
        model = Shop
        fields = ['verified']


class ProductFilter(django_filters.FilterSet):
    """
    Catalog filters. ``search`` is a case-insensitive substring match over
    title, description and tags; results are not ranked.
    """
    shopId = django_filters.UUIDFilter(field_name='shop_id')
    category = django_filters.ChoiceFilter(choices=Product.Category.choices)
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Product
        fields = ['shopId', 'category', 'search']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        match = Q(title__icontains=value) | Q(description__icontains=value)
        if TAG_SEPARATOR not in value:
            match |= Q(tags_text__icontains=value)
        return queryset.filter(match)


class OrderFilter(django_filters.FilterSet):
    userId = django_filters.CharFilter(field_name='customer_id')
    shopId = django_filters.UUIDFilter(field_name='shop_id')
    status = django_filters.ChoiceFilter(choices=Order.Status.choices)

    class Meta:
        model = Order
        fields = ['userId', 'shopId', 'status']
