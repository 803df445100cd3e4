"""
User Service

Creates users from verified identities and handles role escalation.
Roles only ever move customer -> shop_owner (on shop creation) or
any -> admin (by an admin); users are never deleted.
"""

import logging

from django.db import transaction
from rest_framework import exceptions, serializers

from accounts.models import User
from accounts.policies import UserPolicy
from core.exceptions import ForbiddenRole

logger = logging.getLogger(__name__)


class UserService:
    """Service for the users collection."""

    @classmethod
    def upsert_from_identity(cls, identity):
        """
        Get or create the caller's User record.

        Upserting the same identity twice yields the same user; an existing
        record is never modified here.

        Returns:
            (user, created) tuple
        """
        user, created = User.objects.upsert_from_identity(identity)
        if created:
            logger.info(
                f"Created user {user.pk} ({user.email}), verified={user.is_verified}"
            )
        return user, created

    @classmethod
    @transaction.atomic
    def promote_to_shop_owner(cls, user):
        """Promote a customer who just opened a shop. Admins keep their role."""
        locked = User.objects.select_for_update().get(pk=user.pk)
        if locked.role == User.UserRole.CUSTOMER:
            locked.role = User.UserRole.SHOP_OWNER
            locked.save(update_fields=['role', 'updated_at'])
            logger.info(f"User {locked.pk} promoted to shop_owner")
        return locked

    @classmethod
    @transaction.atomic
    def grant_role(cls, actor, target_id, role):
        """
        Escalate a user to admin.

        Only escalation to admin is exposed; shop_owner is granted by opening
        a shop and there is no demotion.
        """
        if role != User.UserRole.ADMIN:
            raise serializers.ValidationError({'role': 'Only escalation to admin is supported.'})

        target = User.objects.select_for_update().filter(pk=target_id).first()
        if target is None:
            raise exceptions.NotFound("User not found")
        if not UserPolicy.can_change_role(actor, target):
            raise ForbiddenRole()

        if target.role != role:
            previous = target.role
            target.role = role
            target.save(update_fields=['role', 'updated_at'])
            logger.info(f"User {target.pk} role changed {previous} -> {role} by {actor.pk}")
        return target
