"""
Authorization Policies (CanCanCan-style)

This module provides policy classes for resource-level authorization.
Each policy defines what actions users can perform on specific resources.
"""

from .base_policy import BasePolicy
from .marketplace_policy import (
    ShopPolicy,
    ProductPolicy,
    OrderPolicy,
    ReviewPolicy,
    UserPolicy,
)

# Policy registry maps model names to their policy classes
POLICY_REGISTRY = {
    'Shop': ShopPolicy,
    'Product': ProductPolicy,
    'Order': OrderPolicy,
    'Review': ReviewPolicy,
    'User': UserPolicy,
}


def get_policy_for_resource(resource):
    """
    Get the appropriate policy class for a resource.

    Args:
        resource: Model instance or class

    Returns:
        Policy class or None if no policy registered
    """
    if isinstance(resource, type):
        resource_type = resource.__name__
    else:
        resource_type = resource.__class__.__name__

    return POLICY_REGISTRY.get(resource_type)


def authorize(user, action, resource):
    """
    Check if user can perform action on resource.

    Args:
        user: User instance
        action: Action name (e.g., 'view', 'edit', 'delete')
        resource: Resource instance

    Returns:
        Boolean indicating if action is allowed
    """
    policy_class = get_policy_for_resource(resource)

    if not policy_class:
        # No policy defined, deny by default
        return False

    method = getattr(policy_class, f'can_{action}', None)

    if not method:
        # Method not defined, deny by default
        return False

    return method(user, resource)


__all__ = [
    'BasePolicy',
    'ShopPolicy',
    'ProductPolicy',
    'OrderPolicy',
    'ReviewPolicy',
    'UserPolicy',
    'get_policy_for_resource',
    'authorize',
]
