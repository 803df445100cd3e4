from rest_framework import serializers

from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Public representation of a marketplace user."""

    class Meta:
        model = User
        fields = ('id', 'name', 'email', 'role', 'is_verified', 'created_at', 'updated_at')
        read_only_fields = fields


class UserRoleSerializer(serializers.Serializer):
    """Admin role escalation payload."""
    role = serializers.ChoiceField(choices=User.UserRole.choices)
