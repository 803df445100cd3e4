"""
URL configuration for core project.

Every API route lives under /api/ without a trailing slash.
"""
from django.contrib import admin
from django.urls import path, include
from django.views.generic import RedirectView

urlpatterns = [
    path('', RedirectView.as_view(url='/admin/', permanent=False)),
    path('admin/', admin.site.urls),
    path('api/', include('accounts.urls')),
    path('api/', include('marketplace.urls')),
]
