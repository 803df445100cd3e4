"""
Order Lifecycle

Per-order state machine. Every status write goes through ``transition``;
nothing else assigns ``Order.status``.

    processing -> accepted -> in_transit -> delivered
         \\            \\            \\
          +------------+------------+--> cancelled

Who may fire each edge depends on the caller's relation to the order: the
owner of the order's shop, the customer who placed it, or an admin.
Cancelling returns every item's quantity to stock.
"""

import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from accounts.models import User
from core.exceptions import ForbiddenScope, InvalidTransition, PreconditionFailed
from marketplace.models import Order, OrderStatusChange, Product
from .concurrency import lock_rows

logger = logging.getLogger(__name__)

S = Order.Status

ACTOR_SHOP = 'shop'
ACTOR_CUSTOMER = 'customer'
ACTOR_ADMIN = 'admin'

# (from, to) -> actor kinds allowed to fire it
ORDER_TRANSITIONS = {
    (S.PROCESSING, S.ACCEPTED): {ACTOR_SHOP, ACTOR_ADMIN},
    (S.PROCESSING, S.CANCELLED): {ACTOR_SHOP, ACTOR_CUSTOMER, ACTOR_ADMIN},
    (S.ACCEPTED, S.IN_TRANSIT): {ACTOR_SHOP, ACTOR_ADMIN},
    (S.ACCEPTED, S.CANCELLED): {ACTOR_SHOP, ACTOR_ADMIN},
    (S.IN_TRANSIT, S.DELIVERED): {ACTOR_SHOP, ACTOR_ADMIN},
    (S.IN_TRANSIT, S.CANCELLED): {ACTOR_ADMIN},
}

STATUS_TIMESTAMP_FIELDS = {
    S.ACCEPTED: 'accepted_at',
    S.IN_TRANSIT: 'in_transit_at',
    S.DELIVERED: 'delivered_at',
    S.CANCELLED: 'cancelled_at',
}


def actor_kinds(user, order):
    """Relations the user has to the order (a user may hold more than one)."""
    kinds = set()
    if user.role == User.UserRole.ADMIN:
        kinds.add(ACTOR_ADMIN)
    if order.shop.owner_id == user.pk:
        kinds.add(ACTOR_SHOP)
    if order.customer_id == user.pk:
        kinds.add(ACTOR_CUSTOMER)
    return kinds


def allowed_next_statuses(user, order):
    """Statuses ``user`` may move ``order`` to right now."""
    kinds = actor_kinds(user, order)
    return [
        to_status for (from_status, to_status), allowed in ORDER_TRANSITIONS.items()
        if from_status == order.status and kinds & allowed
    ]


def validate_status_transition(current_status, new_status, kinds):
    """
    Validate that a status transition is allowed for the given actor kinds.

    Raises:
        InvalidTransition if the edge does not exist or none of ``kinds`` may fire it
    """
    allowed = ORDER_TRANSITIONS.get((current_status, new_status))
    if not allowed or not (kinds & allowed):
        raise InvalidTransition(current_status, new_status)
    return True


class OrderLifecycleService:
    """Service for advancing orders through their lifecycle."""

    @classmethod
    @transaction.atomic
    def transition(cls, user, order_id, new_status, reason=''):
        """
        Move an order to ``new_status``.

        Returns:
            The updated Order

        Raises:
            ForbiddenScope: caller is not a party to the order (or it does not exist)
            NotFound: admin asked for an order that does not exist
            InvalidTransition: the edge is not permitted for the caller
        """
        order = (
            Order.objects.select_for_update(of=('self',))
            .select_related('shop')
            .filter(pk=order_id)
            .first()
        )
        if order is None:
            if user.role == User.UserRole.ADMIN:
                raise NotFound('Order not found')
            raise ForbiddenScope()

        kinds = actor_kinds(user, order)
        if not kinds:
            raise ForbiddenScope()

        old_status = order.status
        validate_status_transition(old_status, new_status, kinds)

        now = timezone.now()
        order.status = new_status
        setattr(order, STATUS_TIMESTAMP_FIELDS[new_status], now)
        update_fields = ['status', STATUS_TIMESTAMP_FIELDS[new_status], 'updated_at']

        if new_status == S.CANCELLED:
            order.cancellation_reason = reason or ''
            update_fields.append('cancellation_reason')
            cls._restore_stock(order)

        order.save(update_fields=update_fields)

        # Record the actor kind that justified the edge, preferring the most specific
        allowed = ORDER_TRANSITIONS[(old_status, new_status)]
        for kind in (ACTOR_SHOP, ACTOR_CUSTOMER, ACTOR_ADMIN):
            if kind in kinds and kind in allowed:
                actor_kind = kind
                break

        OrderStatusChange.objects.create(
            order=order,
            from_status=old_status,
            to_status=new_status,
            actor=user,
            actor_kind=actor_kind,
            reason=reason or '',
        )

        logger.info(
            f"Order {order.id} {old_status} -> {new_status} by {user.pk} ({actor_kind})"
        )
        return order

    @staticmethod
    def _restore_stock(order):
        """Return every item's quantity to its product, if the product still exists."""
        items = list(order.items.all())
        products = lock_rows(Product.objects.all(), [item.product_id for item in items])

        for item in items:
            product = products.get(item.product_id)
            if product is None:
                logger.info(f"Order {order.id}: product {item.product_id} gone, stock not restored")
                continue
            product.restore_stock(item.quantity)
            logger.info(f"Order {order.id}: restored {item.quantity} of {product.id}")

    @classmethod
    @transaction.atomic
    def attach_payment_proof(cls, user, order, screenshot_url):
        """
        Record the customer's payment screenshot. Evidence only: the status
        is left untouched.
        """
        order = Order.objects.select_for_update(of=('self',)).get(pk=order.pk)
        if order.status == S.CANCELLED:
            raise PreconditionFailed('Cannot attach payment proof to a cancelled order')

        order.payment_screenshot = screenshot_url
        order.save(update_fields=['payment_screenshot', 'updated_at'])
        logger.info(f"Order {order.id}: payment proof attached by {user.pk}")
        return order
