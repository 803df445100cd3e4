"""
Base Policy Class

Provides common authorization methods for all policy classes.
Policies are pure functions of (role, resource owner, action): they read
the persisted user and the resource, and never touch request data.
"""


class BasePolicy:
    """
    Base class for all authorization policies.
    Provides helper methods for common permission checks.
    """

    @staticmethod
    def is_admin(user):
        """Check if user is a marketplace administrator."""
        return user.role == 'admin'

    @staticmethod
    def is_shop_owner(user):
        """Check if user runs a shop."""
        return user.role == 'shop_owner'

    @staticmethod
    def is_customer(user):
        """Check if user is a plain customer."""
        return user.role == 'customer'

    @staticmethod
    def owns_shop(user, shop):
        """Check if user is the owner of the given shop."""
        return shop is not None and shop.owner_id == user.pk

    @classmethod
    def scope(cls, user, queryset):
        """
        Filter queryset based on user's access level.
        Override in subclasses for model-specific scoping.

        Args:
            user: User instance
            queryset: Base queryset to filter

        Returns:
            Filtered queryset
        """
        raise NotImplementedError("Subclasses must implement scope() method")

    @classmethod
    def can_view(cls, user, resource):
        """Check if user can view resource."""
        raise NotImplementedError("Subclasses must implement can_view() method")

    @classmethod
    def can_edit(cls, user, resource):
        """Check if user can edit resource."""
        raise NotImplementedError("Subclasses must implement can_edit() method")

    @classmethod
    def can_delete(cls, user, resource):
        """Check if user can delete resource."""
        raise NotImplementedError("Subclasses must implement can_delete() method")
