from django.urls import path

from . import admin_views, order_views, views

app_name = 'marketplace'

urlpatterns = [
    # Shops
    path('shops', views.ShopListCreateView.as_view(), name='shop-list'),
    path('shops/<uuid:pk>', views.ShopDetailView.as_view(), name='shop-detail'),

    # Products (featured must precede the detail route)
    path('products', views.ProductListCreateView.as_view(), name='product-list'),
    path('products/featured', views.FeaturedProductListView.as_view(), name='product-featured'),
    path('products/<uuid:pk>', views.ProductDetailView.as_view(), name='product-detail'),
    path('products/<uuid:pk>/reviews', views.ProductReviewListView.as_view(), name='product-reviews'),

    # Reviews
    path('reviews', views.ReviewCreateView.as_view(), name='review-create'),
    path('reviews/<uuid:pk>', views.ReviewDetailView.as_view(), name='review-detail'),

    # Orders
    path('orders', order_views.OrderListCreateView.as_view(), name='order-list'),
    path('orders/<uuid:pk>', order_views.OrderDetailView.as_view(), name='order-detail'),
    path('orders/<uuid:pk>/status', order_views.OrderStatusView.as_view(), name='order-status'),
    path('orders/<uuid:pk>/payment', order_views.OrderPaymentView.as_view(), name='order-payment'),
    path('orders/<uuid:pk>/payment/qr', order_views.OrderPaymentQRView.as_view(), name='order-payment-qr'),
    path('orders/<uuid:pk>/payment-proof', order_views.OrderPaymentProofView.as_view(), name='order-payment-proof'),

    # Shop owner dashboard
    path('shop/orders', order_views.ShopOrderListView.as_view(), name='shop-orders'),
    path('shop/stats', admin_views.ShopStatsView.as_view(), name='shop-stats'),

    # Admin console
    path('admin/stats', admin_views.AdminStatsView.as_view(), name='admin-stats'),
    path('admin/shops/pending', admin_views.AdminPendingShopsView.as_view(), name='admin-pending-shops'),
    path('admin/shops/<uuid:pk>/audit', admin_views.AdminShopAuditView.as_view(), name='admin-shop-audit'),
]
