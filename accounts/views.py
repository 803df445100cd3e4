from rest_framework import exceptions, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .gate import resolve_caller
from .models import User
from .serializers import UserSerializer, UserRoleSerializer
from .services.user_service import UserService


class UserUpsertView(APIView):
    """
    POST /api/auth/user

    Create the caller's User record from the verified identity claims.
    Returns 201 the first time and 200 with the unchanged record afterwards.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        user, created = UserService.upsert_from_identity(request.user)
        return Response(
            UserSerializer(user).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


class UserDetailView(APIView):
    """GET /api/users/<id>"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        resolve_caller(request)
        user = User.objects.filter(pk=pk).first()
        if user is None:
            raise exceptions.NotFound('User not found')
        return Response(UserSerializer(user).data)


class AdminUserRoleView(APIView):
    """
    PATCH /api/admin/users/<id>/role

    Admin-only escalation of another user to admin.
    """
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        actor = resolve_caller(request, roles=[User.UserRole.ADMIN])

        serializer = UserRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserService.grant_role(actor, pk, serializer.validated_data['role'])
        return Response(UserSerializer(user).data)
