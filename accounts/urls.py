from django.urls import path

from .views import UserUpsertView, UserDetailView, AdminUserRoleView

app_name = 'accounts'

urlpatterns = [
    path('auth/user', UserUpsertView.as_view(), name='user-upsert'),
    path('users/<str:pk>', UserDetailView.as_view(), name='user-detail'),
    path('admin/users/<str:pk>/role', AdminUserRoleView.as_view(), name='admin-user-role'),
]
