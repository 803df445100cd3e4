"""
Authorization gate.

Every mutation goes through here. The gate maps the verified identity on the
request to the persisted User, checks the user's stored role (never a
client-supplied claim) and, for resource-scoped actions, asks the policy
registry whether the caller may act on that resource.
"""

import logging

from rest_framework import exceptions

from core.exceptions import ForbiddenRole, ForbiddenScope, Unverified
from .models import User
from .policies import authorize

logger = logging.getLogger(__name__)


def resolve_caller(request, roles=None, verified=False):
    """
    Resolve the persisted User behind a request.

    Args:
        request: DRF request authenticated with an Identity
        roles: iterable of role values the caller must hold (None = any role)
        verified: require a campus-verified email

    Returns:
        User instance

    Raises:
        NotAuthenticated: no verified identity on the request
        ForbiddenRole: no User record or role not in ``roles``
        Unverified: ``verified`` requested and the user is not verified
    """
    identity = getattr(request, 'user', None)
    if identity is None or not getattr(identity, 'is_authenticated', False):
        raise exceptions.NotAuthenticated()

    user = User.objects.filter(pk=identity.pk).first()
    if user is None:
        logger.info(f"Identity {identity.pk} has no user record yet")
        raise ForbiddenRole()

    if roles is not None and user.role not in roles:
        raise ForbiddenRole()

    if verified and not user.is_verified:
        raise Unverified()

    return user


def require_scope(user, action, resource):
    """Raise ForbiddenScope unless the policy allows ``action`` on ``resource``."""
    if not authorize(user, action, resource):
        logger.warning(
            f"Scope denied: user={user.pk} action={action} "
            f"resource={resource.__class__.__name__}:{resource.pk}"
        )
        raise ForbiddenScope()


def get_scoped_object(user, queryset, pk, action='view'):
    """
    Load a resource and check the caller's scope on it.

    Non-admin callers get ForbiddenScope whether the resource is missing or
    belongs to someone else, so existence never leaks. Admins get NotFound.
    """
    resource = queryset.filter(pk=pk).first()
    if resource is None:
        if user.role == User.UserRole.ADMIN:
            raise exceptions.NotFound()
        raise ForbiddenScope()
    require_scope(user, action, resource)
    return resource
