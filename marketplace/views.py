"""
Catalog Views

Shops, products and reviews. Reads are public; every write resolves the
caller through the authorization gate and hands off to a service.
"""

from django.conf import settings
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import exceptions, generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.gate import get_scoped_object, resolve_caller
from accounts.models import User
from .filters import ProductFilter, ShopFilter
from .models import Product, Review, Shop
from .serializers import (
    ProductSerializer,
    ProductWriteSerializer,
    ReviewAdminUpdateSerializer,
    ReviewCreateSerializer,
    ReviewSerializer,
    ShopAdminUpdateSerializer,
    ShopCreateSerializer,
    ShopSerializer,
)
from .services import catalog
from .services.products import ProductService
from .services.reviews import ReviewService
from .services.shops import ShopService

R = User.UserRole


class PublicReadMixin:
    """Safe methods are open to anonymous callers; writes need a verified identity."""

    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]


# =============================================================================
# SHOPS
# =============================================================================

class ShopListCreateView(PublicReadMixin, generics.ListCreateAPIView):
    """
    GET  /api/shops?verified=<bool>
    POST /api/shops   (verified users; promotes the caller to shop owner)
    """
    serializer_class = ShopSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = ShopFilter

    def get_queryset(self):
        return catalog.shops_queryset()

    def create(self, request, *args, **kwargs):
        user = resolve_caller(request, verified=True)

        serializer = ShopCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        shop = ShopService.create_shop(user, serializer.validated_data)
        return Response(ShopSerializer(shop).data, status=status.HTTP_201_CREATED)


class ShopDetailView(PublicReadMixin, APIView):
    """
    GET   /api/shops/<id>
    PATCH /api/shops/<id>   (admin only: metadata and verified flag)
    """

    def get(self, request, pk):
        shop = catalog.shops_queryset().filter(pk=pk).first()
        if shop is None:
            raise exceptions.NotFound('Shop not found')
        return Response(ShopSerializer(shop).data)

    def patch(self, request, pk):
        user = resolve_caller(request, roles=[R.ADMIN])

        serializer = ShopAdminUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        note = data.pop('note', '')

        shop = get_scoped_object(user, Shop.objects.all(), pk, action='edit')
        shop = ShopService.update_shop(user, shop.pk, data, note=note)
        return Response(ShopSerializer(shop).data)


# =============================================================================
# PRODUCTS
# =============================================================================

class ProductListCreateView(PublicReadMixin, generics.ListCreateAPIView):
    """
    GET  /api/products?shopId=&category=&search=&featured=
    POST /api/products   (shop owner for own shop; admin with shop_id)
    """
    serializer_class = ProductSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = ProductFilter

    def _featured_requested(self):
        return self.request.query_params.get('featured', '').lower() in ('true', '1', 'yes')

    def get_queryset(self):
        if self._featured_requested():
            return catalog.featured_base_queryset()
        return catalog.products_queryset(shop_id=self.request.query_params.get('shopId') or None)

    def list(self, request, *args, **kwargs):
        if not self._featured_requested():
            return super().list(request, *args, **kwargs)

        filtered = any(request.query_params.get(key) for key in ('shopId', 'category', 'search'))
        if filtered:
            products = list(self.filter_queryset(self.get_queryset())[:settings.FEATURED_PRODUCTS_LIMIT])
        else:
            products = catalog.featured_products()
        return Response({'count': len(products), 'results': ProductSerializer(products, many=True).data})

    def create(self, request, *args, **kwargs):
        user = resolve_caller(request, roles=[R.SHOP_OWNER, R.ADMIN])

        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        shop = ProductService.resolve_target_shop(user, data.pop('shop_id', None))

        product = ProductService.create_product(user, shop, data)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


class FeaturedProductListView(APIView):
    """GET /api/products/featured"""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        products = catalog.featured_products()
        return Response({'count': len(products), 'results': ProductSerializer(products, many=True).data})


class ProductDetailView(PublicReadMixin, APIView):
    """
    GET    /api/products/<id>
    PATCH  /api/products/<id>   (owning shop or admin)
    DELETE /api/products/<id>   (owning shop or admin; not while orders are open)
    """

    def get(self, request, pk):
        product = Product.objects.select_related('shop').filter(pk=pk).first()
        if product is None:
            raise exceptions.NotFound('Product not found')
        return Response(ProductSerializer(product).data)

    def patch(self, request, pk):
        user = resolve_caller(request, roles=[R.SHOP_OWNER, R.ADMIN])
        product = get_scoped_object(user, Product.objects.select_related('shop'), pk, action='edit')

        serializer = ProductWriteSerializer(product, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        if 'shop_id' in data:
            raise exceptions.ValidationError({'shop_id': 'A product cannot move to another shop.'})

        product = ProductService.update_product(user, product, data)
        return Response(ProductSerializer(product).data)

    def delete(self, request, pk):
        user = resolve_caller(request, roles=[R.SHOP_OWNER, R.ADMIN])
        product = get_scoped_object(user, Product.objects.select_related('shop'), pk, action='delete')

        ProductService.delete_product(user, product)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# REVIEWS
# =============================================================================

class ProductReviewListView(generics.ListAPIView):
    """GET /api/products/<id>/reviews"""
    serializer_class = ReviewSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):
        if not Product.objects.filter(pk=self.kwargs['pk']).exists():
            raise exceptions.NotFound('Product not found')
        return (
            Review.objects.select_related('user')
            .filter(product_id=self.kwargs['pk'])
            .order_by('-created_at')
        )


class ReviewCreateView(APIView):
    """POST /api/reviews   (customers, for products of their delivered orders)"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        user = resolve_caller(request, roles=[R.CUSTOMER])

        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        review = ReviewService.create_review(user, **serializer.validated_data)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


class ReviewDetailView(APIView):
    """
    PATCH  /api/reviews/<id>   (admin only)
    DELETE /api/reviews/<id>   (admin only)
    """
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        user = resolve_caller(request, roles=[R.ADMIN])
        review = get_scoped_object(user, Review.objects.all(), pk, action='edit')

        serializer = ReviewAdminUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        review = ReviewService.update_review(user, review, serializer.validated_data)
        return Response(ReviewSerializer(review).data)

    def delete(self, request, pk):
        user = resolve_caller(request, roles=[R.ADMIN])
        review = get_scoped_object(user, Review.objects.all(), pk, action='delete')

        ReviewService.delete_review(user, review)
        return Response(status=status.HTTP_204_NO_CONTENT)
