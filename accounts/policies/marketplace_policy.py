"""
Marketplace Authorization Policies

Access rules for shops, products, orders and reviews. Admins bypass every
ownership check; everyone else is limited to what they own.
"""

from .base_policy import BasePolicy


class ShopPolicy(BasePolicy):
    """Authorization policy for shops."""

    @classmethod
    def scope(cls, user, queryset):
        if cls.is_admin(user):
            return queryset
        return queryset.filter(owner=user)

    @classmethod
    def can_view(cls, user, shop):
        return cls.is_admin(user) or cls.owns_shop(user, shop)

    @classmethod
    def can_edit(cls, user, shop):
        """Metadata and verification changes are reserved for admins."""
        return cls.is_admin(user)

    @classmethod
    def can_delete(cls, user, shop):
        return False

    @classmethod
    def can_manage_catalog(cls, user, shop):
        """
        Check if user can add products to shop.

        Access Rules:
        - Admin: any shop
        - Shop owner: own shop only
        """
        if cls.is_admin(user):
            return True
        return cls.is_shop_owner(user) and cls.owns_shop(user, shop)


class ProductPolicy(BasePolicy):
    """Authorization policy for products."""

    @classmethod
    def scope(cls, user, queryset):
        if cls.is_admin(user):
            return queryset
        return queryset.filter(shop__owner=user)

    @classmethod
    def can_view(cls, user, product):
        return True

    @classmethod
    def can_edit(cls, user, product):
        return ShopPolicy.can_manage_catalog(user, product.shop)

    @classmethod
    def can_delete(cls, user, product):
        return ShopPolicy.can_manage_catalog(user, product.shop)


class OrderPolicy(BasePolicy):
    """Authorization policy for orders."""

    @classmethod
    def scope(cls, user, queryset):
        """
        Role-scoped order listing.

        - Customer: orders they placed
        - Shop owner: orders placed with their shop
        - Admin: all orders
        """
        if cls.is_admin(user):
            return queryset
        if cls.is_shop_owner(user):
            return queryset.filter(shop__owner=user)
        return queryset.filter(customer=user)

    @classmethod
    def can_view(cls, user, order):
        return (
            cls.is_admin(user)
            or order.customer_id == user.pk
            or cls.owns_shop(user, order.shop)
        )

    @classmethod
    def can_edit(cls, user, order):
        """Any party to the order may attempt a transition; the state machine decides."""
        return cls.can_view(user, order)

    @classmethod
    def can_attach_payment_proof(cls, user, order):
        return cls.is_admin(user) or order.customer_id == user.pk

    @classmethod
    def can_delete(cls, user, order):
        return False


class ReviewPolicy(BasePolicy):
    """Authorization policy for reviews. Edits and deletes are admin-only."""

    @classmethod
    def scope(cls, user, queryset):
        return queryset

    @classmethod
    def can_view(cls, user, review):
        return True

    @classmethod
    def can_edit(cls, user, review):
        return cls.is_admin(user)

    @classmethod
    def can_delete(cls, user, review):
        return cls.is_admin(user)


class UserPolicy(BasePolicy):
    """Authorization policy for user records."""

    @classmethod
    def scope(cls, user, queryset):
        if cls.is_admin(user):
            return queryset
        return queryset.filter(pk=user.pk)

    @classmethod
    def can_view(cls, user, target):
        return True

    @classmethod
    def can_edit(cls, user, target):
        return cls.is_admin(user) or target.pk == user.pk

    @classmethod
    def can_change_role(cls, user, target):
        return cls.is_admin(user)

    @classmethod
    def can_delete(cls, user, target):
        return False
