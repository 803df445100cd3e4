"""
Shop Service

Shop onboarding and admin verification. Opening a shop promotes the owner
to shop_owner in the same transaction; every verified-flag change is
written to the append-only verification log.
"""

import logging

from django.db import IntegrityError, transaction

from accounts.services.user_service import UserService
from core.exceptions import Conflict
from marketplace.models import Shop, ShopVerificationLog

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'description', 'address', 'upi_id', 'verified')


class ShopService:
    """Service for shops."""

    @classmethod
    def create_shop(cls, owner, data):
        """
        Open a shop for ``owner``.

        Raises:
            Conflict: the owner already has a shop
        """
        try:
            with transaction.atomic():
                if Shop.objects.filter(owner=owner).exists():
                    raise Conflict('You already have a shop')
                shop = Shop.objects.create(owner=owner, verified=False, **data)
                UserService.promote_to_shop_owner(owner)
        except IntegrityError:
            # Lost a race with a concurrent create for the same owner
            raise Conflict('You already have a shop')

        logger.info(f"Shop {shop.id} '{shop.name}' created by {owner.pk}, pending verification")
        return shop

    @classmethod
    @transaction.atomic
    def update_shop(cls, actor, shop_id, data, note=''):
        """
        Admin update of shop metadata and verification.

        Returns:
            The updated Shop
        """
        shop = Shop.objects.select_for_update().get(pk=shop_id)
        previous_verified = shop.verified

        changed = []
        for field_name in EDITABLE_FIELDS:
            if field_name in data and getattr(shop, field_name) != data[field_name]:
                setattr(shop, field_name, data[field_name])
                changed.append(field_name)

        if changed:
            shop.save(update_fields=changed + ['updated_at'])

        if shop.verified != previous_verified:
            cls.record_verification_change(shop, actor, previous_verified, note)

        return shop

    @staticmethod
    def record_verification_change(shop, actor, previous_verified, note=''):
        ShopVerificationLog.objects.create(
            shop=shop,
            changed_by=actor,
            verified_from=previous_verified,
            verified_to=shop.verified,
            note=note,
        )
        logger.info(
            f"Shop {shop.id} verification {previous_verified} -> {shop.verified} by {actor.pk}"
        )
