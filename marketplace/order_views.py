"""
Order Views

Checkout, role-scoped order listings, status changes and the offline UPI
payment artifacts of each order.
"""

from django.http import HttpResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import exceptions, generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.gate import get_scoped_object, resolve_caller
from accounts.models import User
from accounts.policies import OrderPolicy
from core.exceptions import ForbiddenScope
from .filters import OrderFilter
from .models import Order, Shop
from .serializers import (
    CheckoutSerializer,
    OrderSerializer,
    OrderStatusChangeSerializer,
    OrderStatusUpdateSerializer,
    PaymentProofSerializer,
)
from .services import catalog
from .services.checkout import CheckoutService
from .services.order_lifecycle import OrderLifecycleService, allowed_next_statuses
from .services.upi import instrument_for_order, render_qr_png

R = User.UserRole


class OrderListCreateView(generics.ListCreateAPIView):
    """
    GET  /api/orders?userId=&shopId=&status=
         customer: own orders; shop owner: own shop's orders; admin: all
    POST /api/orders
         checkout: one order and one UPI instrument per shop in the cart
    """
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = OrderFilter

    def get_queryset(self):
        user = resolve_caller(self.request, roles=[R.CUSTOMER, R.SHOP_OWNER, R.ADMIN])
        return catalog.orders_for(user)

    def create(self, request, *args, **kwargs):
        user = resolve_caller(request, roles=[R.CUSTOMER])

        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = CheckoutService.checkout(
            user,
            serializer.cart_lines(),
            serializer.validated_data['delivery_address'],
        )

        return Response({
            'orders': [
                {
                    'order': OrderSerializer(placed.order).data,
                    'payment': placed.instrument.as_dict(),
                    'instructions': placed.instrument.instructions(),
                }
                for placed in result.placed
            ],
            'summary': {
                'order_count': result.order_count,
                'grand_total': result.grand_total,
                'delivery_fee_per_order': result.delivery_fee,
                'delivery_fee_total': result.delivery_fee_total,
                'delivery_fee_notice': result.delivery_fee_notice(),
            },
        }, status=status.HTTP_201_CREATED)


class ShopOrderListView(generics.ListAPIView):
    """GET /api/shop/orders   (orders placed with the caller's shop)"""
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = OrderFilter

    def get_queryset(self):
        user = resolve_caller(self.request, roles=[R.SHOP_OWNER])
        shop = Shop.objects.filter(owner=user).first()
        if shop is None:
            raise exceptions.NotFound('Shop not found')
        return catalog.orders_for(user).filter(shop=shop)


def _order_queryset():
    return Order.objects.select_related('shop', 'customer').prefetch_related('items')


class OrderDetailView(APIView):
    """GET /api/orders/<id>   (parties to the order and admins)"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        user = resolve_caller(request)
        order = get_scoped_object(user, _order_queryset(), pk)

        data = OrderSerializer(order).data
        data['status_history'] = OrderStatusChangeSerializer(order.status_history.all(), many=True).data
        data['allowed_transitions'] = allowed_next_statuses(user, order)
        return Response(data)


class OrderStatusView(APIView):
    """
    PATCH /api/orders/<id>/status

    The lifecycle engine decides whether the caller may fire the edge.
    """
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        user = resolve_caller(request, roles=[R.CUSTOMER, R.SHOP_OWNER, R.ADMIN])

        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderLifecycleService.transition(
            user,
            pk,
            serializer.validated_data['status'],
            reason=serializer.validated_data['reason'],
        )
        return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data)


class OrderPaymentView(APIView):
    """GET /api/orders/<id>/payment   (re-display the order's UPI instrument)"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        user = resolve_caller(request)
        order = get_scoped_object(user, _order_queryset(), pk)

        instrument = instrument_for_order(order)
        return Response({
            'order_id': str(order.id),
            'payment': instrument.as_dict(),
            'instructions': instrument.instructions(),
            'payment_screenshot': order.payment_screenshot or None,
        })


class OrderPaymentQRView(APIView):
    """GET /api/orders/<id>/payment/qr   (PNG rendered locally)"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        user = resolve_caller(request)
        order = get_scoped_object(user, _order_queryset(), pk)

        png = render_qr_png(order.upi_payment_url)
        response = HttpResponse(png, content_type='image/png')
        response['Cache-Control'] = 'private, max-age=3600'
        return response


class OrderPaymentProofView(APIView):
    """
    PATCH /api/orders/<id>/payment-proof

    Attach the URL of an uploaded payment screenshot. Does not change status.
    """
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        user = resolve_caller(request)
        order = get_scoped_object(user, _order_queryset(), pk)
        if not OrderPolicy.can_attach_payment_proof(user, order):
            raise ForbiddenScope()

        serializer = PaymentProofSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        OrderLifecycleService.attach_payment_proof(
            user, order, serializer.validated_data['payment_screenshot']
        )
        return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data)
