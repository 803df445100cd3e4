"""
Dashboard Views

Shop owner statistics and the admin console: platform statistics, the shop
verification queue and each shop's verification history.
"""

from rest_framework import exceptions, generics, permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.gate import resolve_caller
from accounts.models import User
from .models import Shop, ShopVerificationLog
from .serializers import ShopSerializer, ShopVerificationLogSerializer
from .services.stats import AdminStatsService, ShopStatsService


R = User.UserRole


class ShopStatsView(APIView):
    """GET /api/shop/stats   (caller's own shop)"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        user = resolve_caller(request, roles=[R.SHOP_OWNER])

        shop = Shop.objects.filter(owner=user).first()
        if shop is None:
            raise exceptions.NotFound('Shop not found')

        return Response(ShopStatsService(shop).get_stats())


class AdminStatsView(APIView):
    """GET /api/admin/stats"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        resolve_caller(request, roles=[R.ADMIN])
        return Response(AdminStatsService().get_stats())


class AdminPendingShopsView(generics.ListAPIView):
    """GET /api/admin/shops/pending   (unverified shops, newest first)"""
    serializer_class = ShopSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        resolve_caller(self.request, roles=[R.ADMIN])
        return (
            Shop.objects.select_related('owner')
            .filter(verified=False)
            .order_by('-created_at')
        )


class AdminShopAuditView(generics.ListAPIView):
    """GET /api/admin/shops/<id>/audit   (verification changes, newest first)"""
    serializer_class = ShopVerificationLogSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        resolve_caller(self.request, roles=[R.ADMIN])
        if not Shop.objects.filter(pk=self.kwargs['pk']).exists():
            raise exceptions.NotFound('Shop not found')
        return ShopVerificationLog.objects.filter(shop_id=self.kwargs['pk']).order_by('-created_at')
